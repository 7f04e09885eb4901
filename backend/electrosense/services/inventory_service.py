from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from electrosense.repositories.document_store import DocumentStore, TransactionHandle
from electrosense.schemas.order_schema import LineItem
from electrosense.utils.logging import get_logger

log = get_logger("inventory")


class InventoryException(Exception):
    pass


class ProductNotFound(InventoryException):
    def __init__(self, product_id: str, name: Optional[str] = None):
        self.product_id = product_id
        self.name = name
        super().__init__(f"Product {name or product_id} (ID: {product_id}) not found")


class InsufficientStock(InventoryException):
    def __init__(self, product_id: str, name: Optional[str], available: int, requested: int):
        self.product_id = product_id
        self.name = name
        self.available = available
        self.requested = requested
        self.shortfall = requested - available
        super().__init__(
            f"Not enough stock for {name or product_id}: "
            f"available={available}, requested={requested}"
        )


@dataclass(frozen=True)
class StockAdjustment:
    product_id: str
    name: Optional[str]
    previous: int
    new_quantity: int

    @property
    def delta(self) -> int:
        return self.new_quantity - self.previous


def aggregate_demand(items: Iterable[LineItem]) -> "OrderedDict[str, Tuple[Optional[str], int]]":
    """Sum quantities per product id, keeping first-seen order and name."""
    demand: "OrderedDict[str, Tuple[Optional[str], int]]" = OrderedDict()
    for item in items:
        name, qty = demand.get(item.product_id, (item.name, 0))
        demand[item.product_id] = (name, qty + item.quantity)
    return demand


class InventoryService:
    """
    Stock movements on Product.stock_quantity.

    `reserve` and `release` only read and compute; the returned adjustments
    are written by `apply`, so a caller can finish every read of a
    transaction before issuing its first write.
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()

    def reserve(
        self, tx: TransactionHandle, product_id: str, quantity: int, name: Optional[str] = None
    ) -> StockAdjustment:
        product = tx.get("products", product_id)
        if product is None:
            raise ProductNotFound(product_id, name)
        new_quantity = product.stock_quantity - quantity
        if new_quantity < 0:
            raise InsufficientStock(
                product_id, name or product.name, product.stock_quantity, quantity
            )
        return StockAdjustment(product_id, name or product.name, product.stock_quantity, new_quantity)

    def release(
        self, tx: TransactionHandle, product_id: str, quantity: int, name: Optional[str] = None
    ) -> Optional[StockAdjustment]:
        product = tx.get("products", product_id)
        if product is None:
            log.warning(
                "Product %s (ID: %s) no longer exists; %d unit(s) cannot be restored",
                name or product_id,
                product_id,
                quantity,
            )
            return None
        return StockAdjustment(
            product_id, name or product.name, product.stock_quantity, product.stock_quantity + quantity
        )

    def apply(self, tx: TransactionHandle, adjustments: Iterable[StockAdjustment]) -> None:
        for adj in adjustments:
            tx.update("products", adj.product_id, {"stock_quantity": adj.new_quantity})

    def reserve_lines(self, tx: TransactionHandle, items: Iterable[LineItem]) -> List[StockAdjustment]:
        # all reads (and all validation) first; any failure leaves nothing written
        plan = [
            self.reserve(tx, product_id, qty, name)
            for product_id, (name, qty) in aggregate_demand(items).items()
        ]
        self.apply(tx, plan)
        return plan

    def release_lines(
        self, tx: TransactionHandle, items: Iterable[LineItem]
    ) -> Tuple[List[StockAdjustment], List[str]]:
        plan = []
        unrestored = []
        for product_id, (name, qty) in aggregate_demand(items).items():
            adj = self.release(tx, product_id, qty, name)
            if adj is None:
                unrestored.append(product_id)
            else:
                plan.append(adj)
        self.apply(tx, plan)
        return plan, unrestored

    def available_quantity(self, product_id: str) -> int:
        product = self.store.get("products", product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product.stock_quantity

    def set_stock(self, product_id: str, quantity: int) -> StockAdjustment:
        """Administrator's manual stock edit."""
        if quantity < 0:
            raise InventoryException("Stock quantity cannot be negative")

        def _set(tx: TransactionHandle) -> StockAdjustment:
            product = tx.get("products", product_id)
            if product is None:
                raise ProductNotFound(product_id)
            adj = StockAdjustment(product_id, product.name, product.stock_quantity, quantity)
            self.apply(tx, [adj])
            return adj

        adj = self.store.transaction(_set)
        log.info("Stock of %s set manually: %d -> %d", product_id, adj.previous, adj.new_quantity)
        return adj
