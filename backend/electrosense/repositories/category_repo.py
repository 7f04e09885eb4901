from typing import List, Optional

from electrosense.repositories.document_store import DocumentStore
from electrosense.schemas.category_schema import CategoryRecord


class CategoryRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, category_id: str) -> Optional[CategoryRecord]:
        return self.store.get("categories", category_id)

    def get_by_name(self, name: str) -> Optional[CategoryRecord]:
        found = self.store.query("categories", filters=[("name", "==", name)], limit=1)
        return found[0] if found else None

    def list(self) -> List[CategoryRecord]:
        return self.store.query("categories", order_by="name")
