from fastapi import APIRouter, Depends, HTTPException, Response, status

from electrosense.adapters.identity import Identity, current_identity
from electrosense.api.deps import get_store
from electrosense.repositories.document_store import DocumentStore
from electrosense.schemas.user_schema import ProfileIn, UserRecord
from electrosense.services.user_service import UserNotFound, UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/me", response_model=UserRecord, summary="Create my profile after sign-up")
def create_profile(
    payload: ProfileIn,
    response: Response,
    identity: Identity = Depends(current_identity),
    store: DocumentStore = Depends(get_store),
):
    profile, created = UserService(store).ensure_profile(identity, payload.name)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return profile


@router.get("/me", response_model=UserRecord, summary="My profile")
def my_profile(identity: Identity = Depends(current_identity), store: DocumentStore = Depends(get_store)):
    try:
        return UserService(store).get_user(identity.uid)
    except UserNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
