from sqlalchemy import Column, String

from electrosense.db import Base
from electrosense.models.document import DocumentMixin


class Category(DocumentMixin, Base):
    __tablename__ = "categories"
    __internal_columns__ = ()

    id = Column(String(40), primary_key=True)
    name = Column(String(128), unique=True, index=True, nullable=False)
    sku_prefix = Column(String(8), nullable=False)
    icon = Column(String(256), nullable=True)

    def __repr__(self):
        return f"<Category name={self.name} prefix={self.sku_prefix}>"
