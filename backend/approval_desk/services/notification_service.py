"""Notification Service - In-app notifications for approval decisions"""
from typing import List, Optional

from ..domain.models import Approval, Notification, ActorContext
from ..domain.enums import ApprovalStatus
from ..repositories.record_store import RecordStore
from ..repositories.notification_repo import NotificationRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Service for creating and managing a user's notifications"""

    DECISION_TITLES = {
        ApprovalStatus.APPROVED: "Your request was approved",
        ApprovalStatus.REJECTED: "Your request was rejected",
    }

    def __init__(self, store: Optional[RecordStore] = None):
        self.repo = NotificationRepository(store)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def notify(
        self,
        recipient_id: str,
        type: ApprovalStatus,
        title: str,
        message: str,
        approval_id: Optional[str] = None
    ) -> Notification:
        """Create an unread notification for a recipient"""
        return self.repo.create_notification(
            user_id=recipient_id,
            type=type,
            title=title,
            message=message,
            approval_id=approval_id
        )

    def notify_decision(self, approval: Approval) -> Notification:
        """Tell the requester that their approval was decided"""
        verb = approval.status.value
        message = f'"{approval.title}" was {verb}.'
        if approval.signed_files:
            count = len(approval.signed_files)
            noun = "file is" if count == 1 else "files are"
            message += f" {count} signed {noun} available for download."
        if approval.feedback:
            message += f" Feedback: {approval.feedback}"

        return self.notify(
            recipient_id=approval.requester_id,
            type=approval.status,
            title=self.DECISION_TITLES.get(approval.status, "Your request was updated"),
            message=message,
            approval_id=approval.id
        )

    # =========================================================================
    # Viewer Operations
    # =========================================================================

    def list_for_user(
        self,
        viewer: ActorContext,
        unread_only: bool = False,
        limit: Optional[int] = None
    ) -> List[Notification]:
        return self.repo.get_notifications_for_user(viewer.id, unread_only=unread_only, limit=limit)

    def unread_count(self, viewer: ActorContext) -> int:
        return self.repo.get_unread_count(viewer.id)

    def mark_read(self, viewer: ActorContext, notification_id: str) -> Notification:
        return self.repo.mark_as_read(notification_id, viewer.id)

    def mark_all_read(self, viewer: ActorContext) -> int:
        return self.repo.mark_all_as_read(viewer.id)

    def delete(self, viewer: ActorContext, notification_id: str) -> None:
        self.repo.delete_notification(notification_id, viewer.id)
        logger.info(
            f"Deleted notification {notification_id}",
            extra={"notification_id": notification_id, "user_id": viewer.id}
        )

    def clear_all(self, viewer: ActorContext) -> int:
        return self.repo.delete_all_for_user(viewer.id)
