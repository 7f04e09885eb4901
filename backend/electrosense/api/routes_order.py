from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from electrosense.adapters.identity import Identity, current_identity
from electrosense.api.deps import get_store
from electrosense.api.routes_cart import get_cart_service
from electrosense.repositories.document_store import DocumentStore
from electrosense.schemas.order_schema import CheckoutIn, CheckoutOut, OrderRecord
from electrosense.services.cart_service import CartService
from electrosense.services.order_service import (
    EmptyCart,
    OrderAccessDenied,
    OrderNotFound,
    OrderService,
)
from electrosense.utils.transactions import StoreError

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post(
    "",
    response_model=CheckoutOut,
    status_code=status.HTTP_201_CREATED,
    summary="Checkout: turn the cart into a Pending order",
)
def create_order(
    payload: CheckoutIn,
    identity: Identity = Depends(current_identity),
    cart: CartService = Depends(get_cart_service),
    store: DocumentStore = Depends(get_store),
):
    try:
        return OrderService(store).place_order(identity, payload, cart)
    except EmptyCart as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Order could not be saved: {e}")


@router.get("", response_model=List[OrderRecord], summary="My orders, newest first")
def my_orders(identity: Identity = Depends(current_identity), store: DocumentStore = Depends(get_store)):
    return OrderService(store).list_orders_for_user(identity.uid)


@router.get("/{order_id}", response_model=OrderRecord, summary="One of my orders")
def my_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
    store: DocumentStore = Depends(get_store),
):
    try:
        return OrderService(store).get_order_for_user(order_id, identity)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
