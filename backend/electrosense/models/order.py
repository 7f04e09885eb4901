from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from electrosense.db import Base
from electrosense.models.document import DocumentMixin


class Order(DocumentMixin, Base):
    __tablename__ = "orders"

    id = Column(String(40), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    user_name = Column(String(256), nullable=True)
    user_email = Column(String(256), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(Text, nullable=True)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(32), nullable=False, default="Pending", index=True)
    stock_updated = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_document(self) -> Dict[str, Any]:
        doc = super().to_document()
        doc["items"] = [line.to_document() for line in self.lines]
        return doc

    def apply_document(self, values: Dict[str, Any]) -> None:
        super().apply_document(values)
        if "items" in values:
            self.lines = [
                OrderLine(
                    position=i,
                    product_id=item["product_id"],
                    name=item["name"],
                    price=item["price"],
                    quantity=item["quantity"],
                    image_url=item.get("image_url"),
                )
                for i, item in enumerate(values["items"])
            ]


class OrderLine(Base):
    """Snapshot of a purchased product; product_id is deliberately not a foreign key."""

    __tablename__ = "order_lines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        String(40), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(40), nullable=False)
    name = Column(String(256), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    image_url = Column(String(512), nullable=True)

    order = relationship("Order", back_populates="lines")

    def to_document(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "image_url": self.image_url,
        }
