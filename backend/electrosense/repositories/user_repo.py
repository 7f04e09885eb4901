from typing import List, Optional

from electrosense.repositories.document_store import DocumentStore
from electrosense.schemas.user_schema import UserRecord


class UserRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, user_id: str) -> Optional[UserRecord]:
        return self.store.get("users", user_id)

    def search_by_email(self, prefix: str) -> List[UserRecord]:
        """Users whose email starts with `prefix`, by email. An empty prefix finds nobody."""
        if not prefix:
            return []
        return self.store.query("users", filters=[("email", "startswith", prefix)], order_by="email")
