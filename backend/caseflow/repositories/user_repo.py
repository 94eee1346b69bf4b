"""User Repository - Identity and role lookups"""
from typing import Dict, Iterable, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import User
from ..domain.errors import AlreadyExistsError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """
    Repository for users

    Acts as the identity/role provider for the engine: ``get_role`` returns
    the actor's current role string, which is trusted as-is.
    """

    def __init__(self, db: Optional[Database] = None):
        self._users: Collection = get_collection("users", db)

    def create(self, user: User) -> User:
        """Create a user"""
        doc = user.model_dump(mode="json")
        doc["_id"] = user.user_id
        try:
            self._users.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError(f"User {user.user_id} already exists")
        logger.info(f"Created user: {user.user_id}", extra={"tenant_id": user.tenant_id})
        return user

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        doc = self._users.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def get_role(self, user_id: str) -> Optional[str]:
        """Get the user's current role, or None if the user is unknown or inactive"""
        doc = self._users.find_one(
            {"user_id": user_id, "is_active": True},
            {"role": 1}
        )
        return doc.get("role") if doc else None

    def get_display_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        """Map user IDs to display names (unknown IDs are omitted)"""
        ids = list(set(user_ids))
        if not ids:
            return {}
        cursor = self._users.find({"user_id": {"$in": ids}}, {"user_id": 1, "name": 1})
        return {doc["user_id"]: doc.get("name", "") for doc in cursor}
