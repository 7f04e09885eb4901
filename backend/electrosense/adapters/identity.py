from typing import Optional

from fastapi import Header, HTTPException, status
from pydantic import BaseModel


class Identity(BaseModel):
    """
    The signed-in user as seen by the backend.

    Authentication itself lives outside this service; an upstream proxy (or the
    test client) passes the verified user in the X-User-* headers.
    """

    uid: str
    email: str = ""
    is_admin: bool = False


def current_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in required")
    return Identity(
        uid=x_user_id,
        email=x_user_email or "",
        is_admin=(x_user_role or "").lower() == "admin",
    )
