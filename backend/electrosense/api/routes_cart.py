from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from electrosense.api.deps import get_store
from electrosense.db import get_db
from electrosense.repositories.document_store import DocumentStore
from electrosense.repositories.product_repo import ProductRepository
from electrosense.schemas.cart_schema import AddToCartIn, CartOut, QuantityIn
from electrosense.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])

CART_COOKIE = "cart_uuid"


def _get_cart_uuid_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(CART_COOKIE)


def get_cart_service(
    request: Request, response: Response, db: Session = Depends(get_db)
) -> CartService:
    cart = CartService.for_session(db, _get_cart_uuid_cookie(request))
    response.set_cookie(CART_COOKIE, cart.cart_uuid, httponly=False, samesite="Lax")
    return cart


@router.get("", response_model=CartOut, summary="Get cart")
def get_cart(cart: CartService = Depends(get_cart_service)):
    return cart.to_out()


@router.post("/items", response_model=CartOut, summary="Add one unit of a product")
def add_item(
    payload: AddToCartIn,
    cart: CartService = Depends(get_cart_service),
    store: DocumentStore = Depends(get_store),
):
    product = ProductRepository(store).get(payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    cart.add_item(product)
    return cart.to_out()


@router.put("/items/{product_id}", response_model=CartOut, summary="Set line quantity (0 removes)")
def update_item(product_id: str, payload: QuantityIn, cart: CartService = Depends(get_cart_service)):
    cart.update_quantity(product_id, payload.quantity)
    return cart.to_out()


@router.delete("/items/{product_id}", response_model=CartOut, summary="Remove line")
def remove_item(product_id: str, cart: CartService = Depends(get_cart_service)):
    cart.remove_item(product_id)
    return cart.to_out()


@router.delete("", response_model=CartOut, summary="Empty the cart")
def clear_cart(cart: CartService = Depends(get_cart_service)):
    cart.clear()
    return cart.to_out()
