"""User Repository - Data access for active and pending accounts"""
from datetime import datetime
from typing import List, Optional

from .record_store import RecordStore, to_record
from .store_provider import get_record_store
from ..domain.models import User, PendingUser
from ..domain.enums import Role, UserStatus, Collection
from ..domain.errors import NotFoundError, UserNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class UserRepository:
    """Repository for ``users`` and ``pendingUsers``"""

    USERS = Collection.USERS.value
    PENDING = Collection.PENDING_USERS.value

    def __init__(self, store: Optional[RecordStore] = None):
        self._store = store or get_record_store()

    # =========================================================================
    # Active Users
    # =========================================================================

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        created_at: Optional[datetime] = None,
        user_id: Optional[str] = None
    ) -> User:
        """Create an approved account"""
        record = {
            "name": name,
            "email": email,
            "password_hash": password_hash,
            "role": role.value,
            "status": UserStatus.APPROVED.value,
            "created_at": created_at or utc_now(),
        }
        if user_id:
            record["id"] = user_id

        user = User.model_validate(self._store.create(self.USERS, record))
        logger.info(
            f"Created user {user.email}",
            extra={"user_id": user.id, "collection": self.USERS}
        )
        return user

    def get_user(self, user_id: str) -> User:
        """Get user by ID or raise UserNotFoundError"""
        try:
            return User.model_validate(self._store.get_by_id(self.USERS, user_id))
        except NotFoundError:
            raise UserNotFoundError(f"User {user_id} not found", details={"user_id": user_id})

    def find_user(self, user_id: str) -> Optional[User]:
        doc = self._store.find_one(self.USERS, {"id": user_id})
        return User.model_validate(doc) if doc else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive email lookup"""
        doc = self._store.find_one(self.USERS, {"email": email})
        return User.model_validate(doc) if doc else None

    def list_users(
        self,
        roles: Optional[List[Role]] = None,
        status: Optional[UserStatus] = None
    ) -> List[User]:
        """List users, oldest first"""
        query = {}
        if roles:
            query["role"] = {"$in": [r.value for r in roles]}
        if status:
            query["status"] = status.value
        docs = self._store.get_all(self.USERS, query, sort_by="created_at")
        return [User.model_validate(doc) for doc in docs]

    def count_admins(self) -> int:
        return self._store.count(self.USERS, {
            "role": Role.ADMIN.value,
            "status": UserStatus.APPROVED.value,
        })

    def update_role(self, user_id: str, role: Role) -> User:
        try:
            doc = self._store.update(self.USERS, user_id, {"role": role.value})
        except NotFoundError:
            raise UserNotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return User.model_validate(doc)

    def delete_user(self, user_id: str) -> None:
        try:
            self._store.delete(self.USERS, user_id)
        except NotFoundError:
            raise UserNotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        logger.info(f"Deleted user {user_id}", extra={"user_id": user_id, "collection": self.USERS})

    # =========================================================================
    # Pending Signups
    # =========================================================================

    def create_pending_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role
    ) -> PendingUser:
        pending = PendingUser(
            id="",
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            created_at=utc_now(),
        )
        doc = self._store.create(self.PENDING, to_record(pending, exclude={"id"}))
        pending = PendingUser.model_validate(doc)
        logger.info(
            f"Created pending signup for {pending.email}",
            extra={"user_id": pending.id, "collection": self.PENDING}
        )
        return pending

    def get_pending_user(self, pending_id: str) -> PendingUser:
        try:
            return PendingUser.model_validate(self._store.get_by_id(self.PENDING, pending_id))
        except NotFoundError:
            raise UserNotFoundError(
                f"Pending user {pending_id} not found",
                details={"pending_user_id": pending_id}
            )

    def find_pending_by_email(self, email: str) -> Optional[PendingUser]:
        doc = self._store.find_one(self.PENDING, {"email": email})
        return PendingUser.model_validate(doc) if doc else None

    def list_pending_users(self) -> List[PendingUser]:
        """Pending signups, oldest first"""
        docs = self._store.get_all(self.PENDING, sort_by="created_at")
        return [PendingUser.model_validate(doc) for doc in docs]

    def count_pending_users(self) -> int:
        return self._store.count(self.PENDING)

    def delete_pending_user(self, pending_id: str) -> None:
        try:
            self._store.delete(self.PENDING, pending_id)
        except NotFoundError:
            raise UserNotFoundError(
                f"Pending user {pending_id} not found",
                details={"pending_user_id": pending_id}
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    def email_in_use(self, email: str) -> bool:
        """True if the email is taken by an account or a pending signup"""
        return (
            self._store.count(self.USERS, {"email": email}) > 0
            or self._store.count(self.PENDING, {"email": email}) > 0
        )
