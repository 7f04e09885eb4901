from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Union
from uuid import uuid4

from electrosense.adapters.identity import Identity
from electrosense.config import settings
from electrosense.repositories.document_store import DocumentStore, TransactionHandle
from electrosense.repositories.order_repo import OrderRepository
from electrosense.schemas.order_schema import (
    BankTransferOut,
    CheckoutIn,
    CheckoutOut,
    LineItem,
    OrderRecord,
    OrderStatus,
)
from electrosense.services.cart_service import CartService
from electrosense.utils.logging import get_logger

log = get_logger("orders")

_CENTS = Decimal("0.01")


class OrderServiceException(Exception):
    pass


class OrderNotFound(OrderServiceException):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class OrderAccessDenied(OrderServiceException):
    pass


class EmptyCart(OrderServiceException):
    pass


class OrderService:
    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()
        self.repo = OrderRepository(self.store)

    def _gen_order_id(self) -> str:
        return f"ORD-{uuid4().hex[:12].upper()}"

    def place_order(self, identity: Identity, details: CheckoutIn, cart: CartService) -> CheckoutOut:
        """
        Turn the cart into a Pending order and empty the cart.

        Line items are snapshots of the cart lines; the identity is trusted as
        given. No stock moves here: reservation happens when the order is
        first moved into a processing status.
        """
        if not cart.lines:
            raise EmptyCart("Cart is empty")

        items = [
            LineItem(
                product_id=line.product_id,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                image_url=line.image_url,
            )
            for line in cart.lines
        ]
        items_total = sum((item.line_total for item in items), Decimal("0"))
        order = OrderRecord(
            id=self._gen_order_id(),
            user_id=identity.uid,
            user_name=details.name,
            user_email=identity.email,
            phone=details.phone,
            address=details.address,
            items=items,
            total=(items_total + settings.SHIPPING_FEE).quantize(_CENTS),
            status=OrderStatus.PENDING,
            stock_updated=False,
            created_at=datetime.now(timezone.utc),
        )

        def _create(tx: TransactionHandle) -> OrderRecord:
            tx.set("orders", order.id, order)
            return order

        self.store.transaction(_create)
        cart.clear()
        log.info("Order %s placed by %s (total %s)", order.id, identity.uid, order.total)
        return CheckoutOut(order=order, payment=self.bank_transfer_for(order))

    def bank_transfer_for(self, order: OrderRecord) -> BankTransferOut:
        return BankTransferOut(
            bank=settings.BANK_NAME,
            account_name=settings.BANK_ACCOUNT_NAME,
            account_number=settings.BANK_ACCOUNT_NUMBER,
            branch=settings.BANK_BRANCH,
            reference=order.id,
            amount=order.total,
            currency=settings.CURRENCY,
        )

    def get_order(self, order_id: str) -> OrderRecord:
        order = self.repo.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def get_order_for_user(self, order_id: str, identity: Identity) -> OrderRecord:
        order = self.get_order(order_id)
        if order.user_id != identity.uid:
            raise OrderAccessDenied("You do not have permission to view this order.")
        return order

    def list_orders(self, status: Optional[Union[OrderStatus, str]] = None) -> List[OrderRecord]:
        return self.repo.list(status=OrderStatus(status) if status else None)

    def list_orders_for_user(self, user_id: str) -> List[OrderRecord]:
        return self.repo.list_for_user(user_id)
