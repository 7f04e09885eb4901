from typing import List, Optional

from electrosense.repositories.document_store import DocumentStore
from electrosense.schemas.order_schema import OrderRecord, OrderStatus


class OrderRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, order_id: str) -> Optional[OrderRecord]:
        return self.store.get("orders", order_id)

    def list(self, status: Optional[OrderStatus] = None, limit: Optional[int] = None) -> List[OrderRecord]:
        """Dashboard view: newest first, optionally one status only."""
        filters = [("status", "==", status)] if status else None
        return self.store.query(
            "orders", filters=filters, order_by="created_at", descending=True, limit=limit
        )

    def list_for_user(self, user_id: str) -> List[OrderRecord]:
        return self.store.query(
            "orders",
            filters=[("user_id", "==", user_id)],
            order_by="created_at",
            descending=True,
        )
