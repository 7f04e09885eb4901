import os
from datetime import datetime, timezone
from typing import List, Optional

from filelock import FileLock, Timeout

from electrosense.config import settings
from electrosense.repositories.category_repo import CategoryRepository
from electrosense.repositories.document_store import DocumentStore, TransactionHandle, new_id
from electrosense.repositories.product_repo import ProductRepository
from electrosense.schemas.category_schema import CategoryIn, CategoryRecord
from electrosense.schemas.product_schema import ProductIn, ProductRecord, ProductUpdateIn
from electrosense.services.inventory_service import InventoryService, ProductNotFound, StockAdjustment
from electrosense.services.sku_service import SkuAllocator, normalize_prefix
from electrosense.utils.logging import get_logger
from electrosense.utils.transactions import TransactionAborted

log = get_logger("catalogue")


class CatalogueException(Exception):
    pass


class CategoryNotFound(CatalogueException):
    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category {category_id} not found")


class CatalogueService:
    def __init__(self, store: Optional[DocumentStore] = None, inventory: Optional[InventoryService] = None):
        self.store = store or DocumentStore()
        self.products = ProductRepository(self.store)
        self.categories = CategoryRepository(self.store)
        self.skus = SkuAllocator(self.store)
        self.inventory = inventory or InventoryService(self.store)

    # ---- products ----

    def prefix_for(self, category_name: Optional[str]) -> str:
        category = self.categories.get_by_name(category_name) if category_name else None
        if category and category.sku_prefix:
            return normalize_prefix(category.sku_prefix)
        return normalize_prefix(None)

    def _sku_lock(self, prefix: str) -> FileLock:
        os.makedirs(settings.LOCK_DIR, exist_ok=True)
        path = os.path.join(settings.LOCK_DIR, f"sku-{prefix}.lock")
        return FileLock(path, timeout=settings.LOCK_TIMEOUT_SECONDS)

    def create_product(self, data: ProductIn) -> ProductRecord:
        prefix = self.prefix_for(data.category)
        try:
            # allocate and insert under one lock
            with self._sku_lock(prefix):
                record = ProductRecord(
                    id=new_id(),
                    sku=self.skus.next_sku(prefix),
                    created_at=datetime.now(timezone.utc),
                    **data.model_dump(),
                )
                self.store.transaction(lambda tx: tx.set("products", record.id, record))
        except Timeout:
            raise CatalogueException(f"SKU allocation for {prefix} is busy, try again")
        except TransactionAborted as e:
            # most often a SKU already taken
            raise CatalogueException(f"Product could not be saved under prefix {prefix}: {e}") from e
        log.info("Product %s created with SKU %s", record.id, record.sku)
        return record

    def update_product(self, product_id: str, data: ProductUpdateIn) -> ProductRecord:
        """Change the fields sent; SKU, creation time and anything left out are kept."""
        fields = data.changes()

        def _update(tx: TransactionHandle) -> ProductRecord:
            current = tx.get("products", product_id)
            if current is None:
                raise ProductNotFound(product_id)
            updated = current.model_copy(update=fields)
            # the legacy image already lives on in image_urls
            tx.update("products", product_id, {**fields, "image_urls": updated.image_urls, "image": None})
            return updated

        return self.store.transaction(_update)

    def delete_product(self, product_id: str) -> None:
        # orders keep their line snapshots; nothing cascades
        if not self.store.transaction(lambda tx: tx.delete("products", product_id)):
            raise ProductNotFound(product_id)
        log.info("Product %s deleted", product_id)

    def set_stock(self, product_id: str, quantity: int) -> StockAdjustment:
        return self.inventory.set_stock(product_id, quantity)

    # ---- categories ----

    def list_categories(self) -> List[CategoryRecord]:
        return self.categories.list()

    def _check_name_free(self, name: str, category_id: Optional[str] = None):
        clash = self.categories.get_by_name(name)
        if clash and clash.id != category_id:
            raise CatalogueException(f"Category '{name}' already exists")

    def create_category(self, data: CategoryIn) -> CategoryRecord:
        self._check_name_free(data.name)
        record = CategoryRecord(id=new_id(), **data.model_dump())
        try:
            self.store.transaction(lambda tx: tx.set("categories", record.id, record))
        except TransactionAborted as e:
            raise CatalogueException(f"Category '{data.name}' could not be saved: {e}") from e
        return record

    def update_category(self, category_id: str, data: CategoryIn) -> CategoryRecord:
        self._check_name_free(data.name, category_id)

        def _update(tx: TransactionHandle) -> CategoryRecord:
            if tx.get("categories", category_id) is None:
                raise CategoryNotFound(category_id)
            tx.update("categories", category_id, data.model_dump())
            return CategoryRecord(id=category_id, **data.model_dump())

        try:
            return self.store.transaction(_update)
        except TransactionAborted as e:
            raise CatalogueException(f"Category '{data.name}' could not be saved: {e}") from e

    def delete_category(self, category_id: str) -> None:
        if not self.store.transaction(lambda tx: tx.delete("categories", category_id)):
            raise CategoryNotFound(category_id)
