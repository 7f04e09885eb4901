from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from electrosense.api.deps import get_hub, get_store, require_admin
from electrosense.repositories.document_store import DocumentStore
from electrosense.repositories.product_repo import ProductRepository
from electrosense.schemas.category_schema import CategoryIn, CategoryRecord
from electrosense.schemas.order_schema import (
    OrderFeedOut,
    OrderRecord,
    OrderStatus,
    StatusChangeIn,
    StockAdjustmentOut,
    TransitionOut,
)
from electrosense.schemas.product_schema import ProductIn, ProductRecord, ProductUpdateIn, StockIn
from electrosense.schemas.user_schema import RoleChangeIn, UserDetailOut, UserRecord
from electrosense.services.catalogue_service import (
    CatalogueException,
    CatalogueService,
    CategoryNotFound,
)
from electrosense.services.inventory_service import InventoryException, ProductNotFound
from electrosense.services.order_lifecycle import OrderLifecycleService
from electrosense.services.order_service import OrderNotFound, OrderService
from electrosense.services.subscriptions import SubscriptionHub
from electrosense.services.user_service import UserNotFound, UserService
from electrosense.utils.transactions import StoreError, TransactionAborted

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---- orders ----


@router.get("/orders", response_model=List[OrderRecord], summary="Dashboard: all orders, newest first")
def list_orders(status: Optional[OrderStatus] = None, store: DocumentStore = Depends(get_store)):
    return OrderService(store).list_orders(status=status)


@router.get("/orders/watch", response_model=OrderFeedOut, summary="Dashboard long-poll: orders once they change")
def watch_orders(
    status: Optional[OrderStatus] = None,
    tag: Optional[str] = None,
    timeout: float = Query(25.0, ge=0, le=60),
    hub: SubscriptionHub = Depends(get_hub),
):
    filters = [("status", "==", status)] if status else None
    try:
        new_tag, orders = hub.next_snapshot(
            "orders", known_tag=tag, timeout=timeout, filters=filters, order_by="created_at", descending=True
        )
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return OrderFeedOut(tag=new_tag, changed=new_tag != tag, orders=orders)


@router.get("/orders/{order_id}", response_model=OrderRecord, summary="Order detail")
def get_order(order_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return OrderService(store).get_order(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/orders/{order_id}/status", response_model=TransitionOut, summary="Change order status")
def change_status(order_id: str, payload: StatusChangeIn, store: DocumentStore = Depends(get_store)):
    orders = OrderService(store)
    try:
        order = orders.get_order(order_id)
        result = OrderLifecycleService(store).apply_status_change(order, payload.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InventoryException, TransactionAborted) as e:
        # report what actually committed, not what was asked for
        committed = orders.repo.get(order_id) or order
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "message": str(e),
                "status": committed.status.value,
                "stockUpdated": committed.stock_updated,
            },
        )

    return TransitionOut(
        order=result.order,
        action=result.action.value,
        adjustments=[StockAdjustmentOut.model_validate(a) for a in result.adjustments],
        unrestored=result.unrestored,
    )


# ---- products ----


@router.get("/products", response_model=List[ProductRecord], summary="All products, including out of stock")
def list_products(
    category: Optional[str] = None,
    q: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    return ProductRepository(store).list(category=category, search=q)


@router.post(
    "/products",
    response_model=ProductRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create product (SKU allocated from its category)",
)
def create_product(payload: ProductIn, store: DocumentStore = Depends(get_store)):
    try:
        return CatalogueService(store).create_product(payload)
    except CatalogueException as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/products/{product_id}", response_model=ProductRecord, summary="Update product (SKU kept)")
def update_product(product_id: str, payload: ProductUpdateIn, store: DocumentStore = Depends(get_store)):
    try:
        return CatalogueService(store).update_product(product_id, payload)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransactionAborted as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete product")
def delete_product(product_id: str, store: DocumentStore = Depends(get_store)):
    try:
        CatalogueService(store).delete_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/products/{product_id}/stock", response_model=StockAdjustmentOut, summary="Set stock quantity")
def set_stock(product_id: str, payload: StockIn, store: DocumentStore = Depends(get_store)):
    try:
        adj = CatalogueService(store).set_stock(product_id, payload.stock_quantity)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InventoryException as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransactionAborted as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StockAdjustmentOut.model_validate(adj)


@router.get("/sku/next", summary="Preview the next SKU for a prefix")
def next_sku(prefix: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    return {"sku": CatalogueService(store).skus.next_sku(prefix)}


# ---- categories ----


@router.post(
    "/categories",
    response_model=CategoryRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
def create_category(payload: CategoryIn, store: DocumentStore = Depends(get_store)):
    try:
        return CatalogueService(store).create_category(payload)
    except CatalogueException as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/categories/{category_id}", response_model=CategoryRecord, summary="Update category")
def update_category(category_id: str, payload: CategoryIn, store: DocumentStore = Depends(get_store)):
    try:
        return CatalogueService(store).update_category(category_id, payload)
    except CategoryNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CatalogueException as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete category")
def delete_category(category_id: str, store: DocumentStore = Depends(get_store)):
    try:
        CatalogueService(store).delete_category(category_id)
    except CategoryNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# ---- users ----


@router.get("/users", response_model=List[UserRecord], summary="Find users by email prefix")
def search_users(email: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    return UserService(store).search(email)


@router.get("/users/{user_id}", response_model=UserDetailOut, summary="User profile with their orders")
def get_user(user_id: str, store: DocumentStore = Depends(get_store)):
    try:
        user, orders = UserService(store).get_user_with_orders(user_id)
    except UserNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return UserDetailOut(user=user, orders=orders)


@router.patch("/users/{user_id}/role", response_model=UserRecord, summary="Change a user's role")
def change_role(user_id: str, payload: RoleChangeIn, store: DocumentStore = Depends(get_store)):
    try:
        return UserService(store).change_role(user_id, payload.role)
    except UserNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransactionAborted as e:
        raise HTTPException(status_code=409, detail=str(e))
