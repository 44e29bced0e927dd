"""Notification Repository - Data access for the notification bell"""
from typing import List, Optional

from .record_store import RecordStore
from .store_provider import get_record_store
from ..domain.models import Notification
from ..domain.enums import ApprovalStatus, Collection
from ..domain.errors import NotificationNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for notification operations, always scoped to the recipient"""

    COLLECTION = Collection.NOTIFICATIONS.value

    def __init__(self, store: Optional[RecordStore] = None):
        self._store = store or get_record_store()

    def create_notification(
        self,
        user_id: str,
        type: ApprovalStatus,
        title: str,
        message: str,
        approval_id: Optional[str] = None
    ) -> Notification:
        """Create an unread notification"""
        record = {
            "user_id": user_id,
            "type": type.value,
            "title": title,
            "message": message,
            "approval_id": approval_id,
            "timestamp": utc_now(),
            "read": False,
        }
        notification = Notification.model_validate(self._store.create(self.COLLECTION, record))

        logger.info(
            f"Created notification for {user_id}",
            extra={
                "notification_id": notification.id,
                "user_id": user_id,
                "approval_id": approval_id,
                "status": type.value
            }
        )
        return notification

    def get_notifications_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None
    ) -> List[Notification]:
        """Get notifications for a user, newest first"""
        query = {"user_id": user_id}
        if unread_only:
            query["read"] = False

        docs = self._store.get_all(
            self.COLLECTION, query, sort_by="timestamp", descending=True, limit=limit
        )
        return [Notification.model_validate(doc) for doc in docs]

    def get_unread_count(self, user_id: str) -> int:
        """Get count of unread notifications for a user"""
        return self._store.count(self.COLLECTION, {"user_id": user_id, "read": False})

    def get_notification(self, notification_id: str, user_id: str) -> Notification:
        """Get a notification owned by the user; foreign ids are not found"""
        doc = self._store.find_one(self.COLLECTION, {"id": notification_id, "user_id": user_id})
        if doc is None:
            raise NotificationNotFoundError(
                f"Notification {notification_id} not found",
                details={"notification_id": notification_id}
            )
        return Notification.model_validate(doc)

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark a notification as read"""
        self.get_notification(notification_id, user_id)
        doc = self._store.update(self.COLLECTION, notification_id, {"read": True})
        return Notification.model_validate(doc)

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark all notifications as read for a user. Returns count of updated."""
        count = self._store.update_many(
            self.COLLECTION, {"user_id": user_id, "read": False}, {"read": True}
        )
        logger.info(f"Marked {count} notifications as read for {user_id}", extra={"user_id": user_id})
        return count

    def delete_notification(self, notification_id: str, user_id: str) -> None:
        self.get_notification(notification_id, user_id)
        self._store.delete(self.COLLECTION, notification_id)

    def delete_all_for_user(self, user_id: str) -> int:
        """Delete every notification of a user. Returns count deleted."""
        count = self._store.delete_many(self.COLLECTION, {"user_id": user_id})
        logger.info(f"Cleared {count} notifications for {user_id}", extra={"user_id": user_id})
        return count

    def exists_for_approval(self, approval_id: str, user_id: str) -> bool:
        return self._store.count(
            self.COLLECTION, {"approval_id": approval_id, "user_id": user_id}
        ) > 0
