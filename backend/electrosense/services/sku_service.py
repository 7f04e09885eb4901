import re
import time
from typing import Optional

from electrosense.config import settings
from electrosense.repositories.document_store import DocumentStore
from electrosense.repositories.product_repo import ProductRepository
from electrosense.utils.logging import get_logger
from electrosense.utils.transactions import StoreError

log = get_logger("sku")

_DIGITS = re.compile(r"\d+")


def normalize_prefix(prefix: Optional[str]) -> str:
    return (prefix or settings.DEFAULT_SKU_PREFIX).strip().upper()


class SkuAllocator:
    """
    Hands out `<PREFIX><NNNN>` SKUs: one past the highest numeric suffix
    already used under the prefix. Callers that persist the SKU must hold
    the prefix lock (see CatalogueService) for the read and the write.
    """

    def __init__(self, store: Optional[DocumentStore] = None, pad_width: Optional[int] = None):
        self.products = ProductRepository(store or DocumentStore())
        self.pad_width = pad_width or settings.SKU_PAD_WIDTH

    def next_sku(self, prefix: Optional[str] = None) -> str:
        prefix = normalize_prefix(prefix)
        try:
            existing = self.products.list_by_sku_prefix(prefix)
        except StoreError as e:
            fallback = f"{prefix}{str(int(time.time() * 1000))[-4:]}"
            log.warning("SKU scan for %s failed (%s); using %s", prefix, e, fallback)
            return fallback

        highest = 0
        for product in existing:
            suffix = product.sku[len(prefix):]
            if _DIGITS.fullmatch(suffix):
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:0{self.pad_width}d}"
