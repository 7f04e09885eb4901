import re
from typing import Optional

from pydantic import Field, field_validator

from electrosense.schemas.base import DocumentModel

_PREFIX_RE = re.compile(r"[A-Za-z]{3,4}")


class CategoryRecord(DocumentModel):
    id: str
    name: str
    sku_prefix: str = ""
    icon: Optional[str] = None


class CategoryIn(DocumentModel):
    name: str = Field(..., min_length=1)
    sku_prefix: str
    icon: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("sku_prefix")
    @classmethod
    def _check_prefix(cls, v: str) -> str:
        v = v.strip()
        if not _PREFIX_RE.fullmatch(v):
            raise ValueError("SKU prefix must be 3-4 letters")
        return v.upper()
