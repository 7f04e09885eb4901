from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String, Text

from electrosense.db import Base
from electrosense.models.document import DocumentMixin


class Product(DocumentMixin, Base):
    __tablename__ = "products"

    id = Column(String(40), primary_key=True)
    sku = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(256), nullable=False, index=True)
    category = Column(String(128), nullable=True, index=True)
    description = Column(Text, nullable=True)
    specs_description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    tags = Column(JSON, nullable=True)
    image_urls = Column(JSON, nullable=True)
    image = Column(String(512), nullable=True)  # legacy single image, superseded by image_urls
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Product id={self.id} sku={self.sku} stock={self.stock_quantity}>"
