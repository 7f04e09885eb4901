"""
Order status changes and the stock movements they imply.

This is the only code allowed to change an order's status or its
`stock_updated` flag, and the only code that moves stock because of an
order. The flag records whether the order's quantities are currently
subtracted from product stock:

    stock_updated  new status                     action
    -------------  -----------------------------  ------------------------------
    False          Processing/Shipped/Completed   reserve every line, flag=True
    True           Cancelled                      release every line, flag=False
    any            anything else                  relabel the status only

Reserving or releasing happens in one store transaction together with the
status write, so either the whole transition commits or none of it does.
"""
import enum
from dataclasses import dataclass, field
from typing import List, Optional, Union

from electrosense.repositories.document_store import DocumentStore, TransactionHandle
from electrosense.schemas.order_schema import RESERVING_STATUSES, OrderRecord, OrderStatus
from electrosense.services.inventory_service import InventoryService, StockAdjustment
from electrosense.services.order_service import OrderNotFound
from electrosense.utils.logging import get_logger

log = get_logger("lifecycle")


class TransitionAction(str, enum.Enum):
    NOOP = "noop"
    RESERVE = "reserve"
    RELEASE = "release"
    RELABEL = "relabel"


@dataclass
class TransitionResult:
    order: OrderRecord
    action: TransitionAction
    adjustments: List[StockAdjustment] = field(default_factory=list)
    unrestored: List[str] = field(default_factory=list)


def classify_transition(
    status: OrderStatus, stock_updated: bool, new_status: OrderStatus
) -> TransitionAction:
    if new_status == status:
        return TransitionAction.NOOP
    if new_status in RESERVING_STATUSES and not stock_updated:
        return TransitionAction.RESERVE
    if new_status == OrderStatus.CANCELLED and stock_updated:
        return TransitionAction.RELEASE
    return TransitionAction.RELABEL


class OrderLifecycleService:
    def __init__(
        self, store: Optional[DocumentStore] = None, inventory: Optional[InventoryService] = None
    ):
        self.store = store or DocumentStore()
        self.inventory = inventory or InventoryService(self.store)

    def apply_status_change(
        self, order: OrderRecord, new_status: Union[OrderStatus, str]
    ) -> TransitionResult:
        """
        Move `order` to `new_status`.

        Re-selecting the order's current status returns immediately without
        touching the store. Otherwise the order is re-read inside the
        transaction and classified against its committed status and flag, so
        a stale `order` snapshot cannot reserve or release twice.

        Raises ProductNotFound / InsufficientStock when a reservation cannot
        be satisfied, OrderNotFound when the order is gone and
        TransactionAborted when the store refuses the commit. In every such
        case nothing was written.
        """
        new_status = OrderStatus(new_status)
        if order.status == new_status:
            return TransitionResult(order=order, action=TransitionAction.NOOP)

        try:
            result = self.store.transaction(lambda tx: self._transition(tx, order.id, new_status))
        except Exception as e:
            log.warning(
                "Order %s: %s -> %s rejected: %s", order.id, order.status.value, new_status.value, e
            )
            raise

        log.info(
            "Order %s: %s -> %s (%s)",
            order.id,
            order.status.value,
            result.order.status.value,
            result.action.value,
        )
        return result

    def _transition(
        self, tx: TransactionHandle, order_id: str, new_status: OrderStatus
    ) -> TransitionResult:
        current = tx.get("orders", order_id)
        if current is None:
            raise OrderNotFound(order_id)

        action = classify_transition(current.status, current.stock_updated, new_status)
        adjustments: List[StockAdjustment] = []
        unrestored: List[str] = []

        if action is TransitionAction.NOOP:
            return TransitionResult(order=current, action=action)

        if action is TransitionAction.RESERVE:
            adjustments = self.inventory.reserve_lines(tx, current.items)
            changes = {"status": new_status, "stock_updated": True}
        elif action is TransitionAction.RELEASE:
            adjustments, unrestored = self.inventory.release_lines(tx, current.items)
            changes = {"status": new_status, "stock_updated": False}
        else:
            changes = {"status": new_status}

        tx.update("orders", order_id, changes)
        return TransitionResult(
            order=current.model_copy(update=changes),
            action=action,
            adjustments=adjustments,
            unrestored=unrestored,
        )
