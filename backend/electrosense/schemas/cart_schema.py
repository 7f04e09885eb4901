from decimal import Decimal
from typing import List, Optional, Union

from pydantic import Field

from electrosense.schemas.base import DocumentModel


class CartLine(DocumentModel):
    product_id: str
    name: str
    price: Decimal = Decimal("0")
    image_url: Optional[str] = None
    quantity: int = Field(1, ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class CartOut(DocumentModel):
    cart_uuid: str
    items: List[CartLine]
    item_count: int
    subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal


class AddToCartIn(DocumentModel):
    product_id: str


class QuantityIn(DocumentModel):
    # the storefront sends whatever the number input holds
    quantity: Union[int, str, None] = None
