import enum
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, model_validator

from electrosense.schemas.base import DocumentModel, pick
from electrosense.schemas.order_schema import OrderRecord


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    CASHIER = "cashier"
    ADMIN = "admin"


class UserRecord(DocumentModel):
    id: str
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.CUSTOMER
    is_admin: bool = False
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_role(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        is_admin = bool(pick(data, "is_admin", "isAdmin", default=False))
        # sign-up documents only carry isAdmin
        role = pick(data, "role") or (UserRole.ADMIN if is_admin else UserRole.CUSTOMER)
        data["role"] = role
        data["isAdmin"] = is_admin
        data["name"] = pick(data, "name", default="")
        data["email"] = pick(data, "email", default="")
        return data


class ProfileIn(DocumentModel):
    name: str = ""


class RoleChangeIn(DocumentModel):
    role: UserRole


class UserDetailOut(DocumentModel):
    user: UserRecord
    orders: List[OrderRecord] = Field(default_factory=list)
