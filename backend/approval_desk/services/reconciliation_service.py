"""Reconciliation Service - Repairs half-applied multi-record transitions"""
from typing import Dict, Optional

from ..domain.enums import AuditAction
from ..domain.errors import DomainError, NotFoundError
from ..repositories.record_store import RecordStore
from ..repositories.approval_repo import ApprovalRepository
from ..repositories.user_repo import UserRepository
from ..repositories.notification_repo import NotificationRepository
from ..repositories.audit_repo import AuditRepository
from ..utils.logger import get_logger
from .approval_service import ApprovalService

logger = get_logger(__name__)


class ReconciliationService:
    """
    Idempotent repair pass

    - a pending signup whose email is already an active account is removed
    - a decided approval whose notification was never written gets it now
    """

    def __init__(self, store: Optional[RecordStore] = None):
        self.user_repo = UserRepository(store)
        self.approval_repo = ApprovalRepository(store)
        self.notification_repo = NotificationRepository(store)
        self.audit_repo = AuditRepository(store)
        self.approval_service = ApprovalService(store)

    def remove_duplicate_pendings(self) -> int:
        removed = 0
        for pending in self.user_repo.list_pending_users():
            user = self.user_repo.find_user_by_email(pending.email)
            if user is None:
                continue
            try:
                self.user_repo.delete_pending_user(pending.id)
            except NotFoundError:
                continue
            self.audit_repo.create_event(
                AuditAction.PENDING_DUPLICATE_REMOVED,
                target_id=user.id,
                target_email=user.email,
                details={"pending_user_id": pending.id}
            )
            removed += 1
        return removed

    def redeliver_notifications(self) -> int:
        delivered = 0
        for approval in self.approval_repo.list_unnotified_decisions():
            if self.notification_repo.exists_for_approval(approval.id, approval.requester_id):
                # Written before the flag was set
                self.approval_repo.mark_notified(approval.id)
                continue
            if self.approval_service.deliver_decision(approval).notified:
                delivered += 1
        return delivered

    def run(self) -> Dict[str, int]:
        """Run every repair; a failing step is logged and the next one still runs"""
        result = {"duplicate_pendings_removed": 0, "notifications_redelivered": 0}
        for key, step in (
            ("duplicate_pendings_removed", self.remove_duplicate_pendings),
            ("notifications_redelivered", self.redeliver_notifications),
        ):
            try:
                result[key] = step()
            except DomainError as e:
                logger.error(
                    f"Reconciliation step {key} failed: {e.message}",
                    extra={"action": key, "error_code": e.error_code}
                )

        if any(result.values()):
            logger.info(f"Reconciliation repaired records: {result}", extra={"action": "reconcile"})
        return result
