from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from electrosense.adapters.identity import Identity
from electrosense.repositories.document_store import DocumentStore, TransactionHandle
from electrosense.repositories.user_repo import UserRepository
from electrosense.schemas.order_schema import OrderRecord
from electrosense.schemas.user_schema import UserRecord, UserRole
from electrosense.services.order_service import OrderService
from electrosense.utils.logging import get_logger

log = get_logger("users")


class UserServiceException(Exception):
    pass


class UserNotFound(UserServiceException):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class UserService:
    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()
        self.repo = UserRepository(self.store)
        self.orders = OrderService(self.store)

    def ensure_profile(self, identity: Identity, name: str = "") -> Tuple[UserRecord, bool]:
        """
        Create the profile of a newly signed-up account, not an admin.
        An existing profile is returned untouched. Returns (profile, created).
        """

        def _ensure(tx: TransactionHandle) -> Tuple[UserRecord, bool]:
            existing = tx.get("users", identity.uid)
            if existing is not None:
                return existing, False
            profile = UserRecord(
                id=identity.uid,
                name=name,
                email=identity.email,
                role=UserRole.CUSTOMER,
                is_admin=False,
                created_at=datetime.now(timezone.utc),
            )
            tx.set("users", profile.id, profile)
            return profile, True

        profile, created = self.store.transaction(_ensure)
        if created:
            log.info("Profile created for %s (%s)", profile.id, profile.email)
        return profile, created

    def get_user(self, user_id: str) -> UserRecord:
        user = self.repo.get(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    def search(self, email_prefix: Optional[str]) -> List[UserRecord]:
        return self.repo.search_by_email((email_prefix or "").strip())

    def change_role(self, user_id: str, role: Union[UserRole, str]) -> UserRecord:
        role = UserRole(role)
        changes = {"role": role, "is_admin": role == UserRole.ADMIN}

        def _change(tx: TransactionHandle) -> UserRecord:
            current = tx.get("users", user_id)
            if current is None:
                raise UserNotFound(user_id)
            tx.update("users", user_id, changes)
            return current.model_copy(update=changes)

        user = self.store.transaction(_change)
        log.info("Role of %s set to %s", user_id, role.value)
        return user

    def get_user_with_orders(self, user_id: str) -> Tuple[UserRecord, List[OrderRecord]]:
        user = self.get_user(user_id)
        return user, self.orders.list_orders_for_user(user_id)

    def is_admin(self, identity: Identity) -> bool:
        """A stored profile decides; accounts without one keep the gateway's role."""
        profile = self.repo.get(identity.uid)
        if profile is None:
            return identity.is_admin
        return profile.is_admin
