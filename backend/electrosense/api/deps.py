from fastapi import Depends, HTTPException, Request, status

from electrosense.adapters.identity import Identity, current_identity
from electrosense.repositories.document_store import DocumentStore
from electrosense.services.subscriptions import SubscriptionHub
from electrosense.services.user_service import UserService


def get_store() -> DocumentStore:
    return DocumentStore()


def get_hub(request: Request) -> SubscriptionHub:
    return request.app.state.subscriptions


def require_admin(
    identity: Identity = Depends(current_identity), store: DocumentStore = Depends(get_store)
) -> Identity:
    if not UserService(store).is_admin(identity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return identity
