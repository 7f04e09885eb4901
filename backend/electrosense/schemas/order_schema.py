import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import ConfigDict, Field, model_validator

from electrosense.schemas.base import DocumentModel, pick


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# statuses that require the order's stock to be held
RESERVING_STATUSES = frozenset(
    {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.COMPLETED}
)


class LineItem(DocumentModel):
    """Product snapshot taken at checkout; never reconciled with the live product."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    image_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # cart-era documents stored the whole product, keyed by `id`
        data["productId"] = pick(data, "product_id", "productId", "id")
        image = pick(data, "image_url", "imageUrl")
        urls = pick(data, "image_urls", "imageUrls")
        if not image and urls:
            image = urls[0]
        data["imageUrl"] = image
        return data

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class OrderRecord(DocumentModel):
    id: str
    user_id: str
    user_name: str = ""
    user_email: str = ""
    phone: str = ""
    address: str = ""
    items: List[LineItem] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.PENDING
    stock_updated: bool = False
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _default_missing_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field, alias in (
            ("user_name", "userName"),
            ("user_email", "userEmail"),
            ("phone", "phone"),
            ("address", "address"),
        ):
            data[alias] = pick(data, field, alias, default="")
        # orders written before the reservation flag existed were never reserved
        data["stockUpdated"] = bool(pick(data, "stock_updated", "stockUpdated", default=False))
        return data

    @property
    def items_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


class CheckoutIn(DocumentModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)


class StatusChangeIn(DocumentModel):
    status: OrderStatus


class BankTransferOut(DocumentModel):
    bank: str
    account_name: str
    account_number: str
    branch: str
    reference: str
    amount: Decimal
    currency: str


class CheckoutOut(DocumentModel):
    order: OrderRecord
    payment: BankTransferOut


class StockAdjustmentOut(DocumentModel):
    product_id: str
    name: Optional[str] = None
    previous: int
    new_quantity: int


class TransitionOut(DocumentModel):
    order: OrderRecord
    action: str
    adjustments: List[StockAdjustmentOut] = Field(default_factory=list)
    unrestored: List[str] = Field(default_factory=list)


class OrderFeedOut(DocumentModel):
    tag: str
    changed: bool
    orders: List[OrderRecord] = Field(default_factory=list)
