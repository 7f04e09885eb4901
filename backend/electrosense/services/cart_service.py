import uuid
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from electrosense.config import settings
from electrosense.repositories.cart_repo import CartRepository
from electrosense.schemas.cart_schema import CartLine, CartOut
from electrosense.schemas.product_schema import ProductRecord


def parse_quantity(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class CartService:
    """
    One shopper's cart. Lines are loaded from storage when the service is
    created and the whole cart is saved back after every mutation.
    """

    def __init__(self, storage: CartRepository, cart_uuid: Optional[str] = None):
        self.storage = storage
        self.cart_uuid = cart_uuid or uuid.uuid4().hex
        self._lines: List[CartLine] = storage.load(self.cart_uuid)

    @classmethod
    def for_session(cls, db: Session, cart_uuid: Optional[str] = None) -> "CartService":
        return cls(CartRepository(db), cart_uuid)

    def _save(self):
        self.storage.save(self.cart_uuid, self._lines)

    def _index(self, product_id: str) -> Optional[int]:
        return next((i for i, line in enumerate(self._lines) if line.product_id == product_id), None)

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal("0"))

    def add_item(self, product: ProductRecord) -> CartLine:
        """Add one unit of `product`, snapshotting its name, price and first image."""
        i = self._index(product.id)
        if i is None:
            line = CartLine(
                product_id=product.id,
                name=product.name,
                price=product.price,
                image_url=product.primary_image,
                quantity=1,
            )
            self._lines.append(line)
        else:
            line = self._lines[i].model_copy(update={"quantity": self._lines[i].quantity + 1})
            self._lines[i] = line
        self._save()
        return line

    def update_quantity(self, product_id: str, quantity: Any) -> Optional[CartLine]:
        qty = parse_quantity(quantity)
        i = self._index(product_id)
        if i is None:
            return None
        if qty == 0:
            del self._lines[i]
            line = None
        else:
            line = self._lines[i].model_copy(update={"quantity": qty})
            self._lines[i] = line
        self._save()
        return line

    def remove_item(self, product_id: str):
        self._lines = [line for line in self._lines if line.product_id != product_id]
        self._save()

    def clear(self):
        self._lines = []
        self._save()

    def to_out(self) -> CartOut:
        subtotal = self.subtotal
        fee = settings.SHIPPING_FEE if self._lines else Decimal("0")
        return CartOut(
            cart_uuid=self.cart_uuid,
            items=list(self._lines),
            item_count=self.item_count,
            subtotal=subtotal,
            shipping_fee=fee,
            total=subtotal + fee,
        )
