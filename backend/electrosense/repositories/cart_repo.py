from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from electrosense.models.cart import Cart
from electrosense.models.cart_item import CartItem
from electrosense.schemas.cart_schema import CartLine


class CartRepository:
    """Persistence boundary of the cart: whole-cart load and whole-cart save."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_uuid(self, cart_uuid: str) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.cart_uuid == cart_uuid).first()

    def load(self, cart_uuid: str) -> List[CartLine]:
        cart = self.get_by_uuid(cart_uuid)
        if not cart:
            return []
        return [
            CartLine(
                product_id=it.product_id,
                name=it.name,
                price=it.price,
                image_url=it.image_url,
                quantity=it.quantity,
            )
            for it in cart.items
        ]

    def save(self, cart_uuid: str, lines: List[CartLine]) -> Cart:
        cart = self.get_by_uuid(cart_uuid)
        if not cart:
            cart = Cart(cart_uuid=cart_uuid)
            self.db.add(cart)
        cart.items = [
            CartItem(
                position=i,
                product_id=line.product_id,
                name=line.name,
                price=line.price,
                image_url=line.image_url,
                quantity=line.quantity,
            )
            for i, line in enumerate(lines)
        ]
        cart.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        return cart
