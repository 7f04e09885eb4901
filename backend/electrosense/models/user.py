from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String

from electrosense.db import Base
from electrosense.models.document import DocumentMixin


class User(DocumentMixin, Base):
    """Shop profile of a signed-in account; `id` is the identity provider's uid."""

    __tablename__ = "users"
    __internal_columns__ = ()

    id = Column(String(128), primary_key=True)
    name = Column(String(256), nullable=True)
    email = Column(String(256), nullable=False, index=True, default="")
    role = Column(String(32), nullable=False, default="customer")
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
