from typing import List, Optional

from electrosense.repositories.document_store import DocumentStore
from electrosense.schemas.product_schema import ProductRecord


class ProductRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, product_id: str) -> Optional[ProductRecord]:
        return self.store.get("products", product_id)

    def list(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        in_stock_only: bool = False,
    ) -> List[ProductRecord]:
        """
        Products sorted by name. A name-prefix `search` wins over `category`
        when both are given; `in_stock_only` hides anything with no stock.
        """
        filters = []
        if search:
            filters.append(("name", "startswith", search))
        elif category:
            filters.append(("category", "==", category))
        if in_stock_only:
            filters.append(("stock_quantity", ">", 0))
        return self.store.query("products", filters=filters, order_by="name")

    def list_by_sku_prefix(self, prefix: str) -> List[ProductRecord]:
        return self.store.query("products", filters=[("sku", "startswith", prefix)], order_by="sku")
