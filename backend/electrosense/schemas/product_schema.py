from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from electrosense.schemas.base import DocumentModel, pick


def split_tags(value: Any) -> List[str]:
    """Tags arrive as a list or as the admin form's comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [t.strip() for t in value if isinstance(t, str) and t.strip()]


def clean_urls(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    return [u.strip() for u in value if isinstance(u, str) and u.strip()]


class ProductRecord(DocumentModel):
    id: str
    name: str = ""
    category: Optional[str] = None
    sku: str = ""
    price: Decimal = Decimal("0")
    stock_quantity: int = 0
    description: str = ""
    specs_description: str = ""
    tags: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        urls = clean_urls(pick(data, "image_urls", "imageUrls"))
        legacy = clean_urls(pick(data, "image", "imageUrl"))
        data["imageUrls"] = urls or legacy
        data["tags"] = split_tags(data.get("tags"))
        data["description"] = pick(data, "description", default="")
        data["specsDescription"] = pick(data, "specs_description", "specsDescription", default="")
        data["price"] = pick(data, "price", default=0)
        data["stockQuantity"] = pick(data, "stock_quantity", "stockQuantity", default=0)
        return data

    @property
    def primary_image(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    def to_document(self) -> Dict[str, Any]:
        doc = super().to_document()
        # rewritten documents drop the legacy single-image field
        doc["image"] = None
        return doc


class ProductIn(DocumentModel):
    name: str = Field(..., min_length=1)
    category: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    description: str = ""
    specs_description: str = ""
    tags: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, v):
        return split_tags(v)

    @field_validator("image_urls", mode="before")
    @classmethod
    def _clean_urls(cls, v):
        return clean_urls(v)


class StockIn(DocumentModel):
    stock_quantity: int = Field(..., ge=0)


class ProductUpdateIn(DocumentModel):
    """Partial edit: only the fields sent are changed."""

    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    specs_description: Optional[str] = None
    tags: Optional[List[str]] = None
    image_urls: Optional[List[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, v):
        return split_tags(v)

    @field_validator("image_urls", mode="before")
    @classmethod
    def _clean_urls(cls, v):
        return clean_urls(v)

    def changes(self) -> Dict[str, Any]:
        # `category` is the only field that may be cleared
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None or k == "category"
        }
