"""Dashboard Service - Per-role statistics projected from current records"""
from typing import Dict, List, Optional

from ..domain.models import Approval, ActorContext, DashboardSnapshot
from ..domain.enums import Role, ApprovalStatus
from ..repositories.record_store import RecordStore
from ..repositories.approval_repo import ApprovalRepository
from ..repositories.user_repo import UserRepository
from ..repositories.notification_repo import NotificationRepository
from ..utils.time import utc_now

RECENT_LIMIT = 5


class DashboardService:
    """
    Read-only projection, recomputed on every call

    Nothing here is cached between calls; sessions keep the last snapshot
    they computed.
    """

    def __init__(self, store: Optional[RecordStore] = None):
        self.approval_repo = ApprovalRepository(store)
        self.user_repo = UserRepository(store)
        self.notification_repo = NotificationRepository(store)

    def _count(self, **query) -> int:
        return self.approval_repo.count_approvals(query)

    # =========================================================================
    # Counts
    # =========================================================================

    def counts(self, actor: ActorContext) -> Dict[str, int]:
        if actor.role == Role.REQUESTER:
            return {
                "total": self._count(requester_id=actor.id),
                "pending": self._count(requester_id=actor.id, status=ApprovalStatus.PENDING),
                "approved": self._count(requester_id=actor.id, status=ApprovalStatus.APPROVED),
                "rejected": self._count(requester_id=actor.id, status=ApprovalStatus.REJECTED),
            }
        if actor.role == Role.APPROVER:
            return {
                "pending_assigned": self._count(
                    assigned_approver_id=actor.id, status=ApprovalStatus.PENDING
                ),
                "approved_by_me": self._count(processed_by=actor.id, status=ApprovalStatus.APPROVED),
                "rejected_by_me": self._count(processed_by=actor.id, status=ApprovalStatus.REJECTED),
                "global_pending": self._count(status=ApprovalStatus.PENDING),
            }
        if actor.role == Role.ADMIN:
            return {
                "total": self._count(),
                "pending": self._count(status=ApprovalStatus.PENDING),
                "pending_users": self.user_repo.count_pending_users(),
            }
        return {}

    def recent_activity(self, actor: ActorContext, limit: int = RECENT_LIMIT) -> List[Approval]:
        """Most recent approvals relevant to the actor, newest first"""
        if actor.role == Role.REQUESTER:
            return self.approval_repo.list_approvals({"requester_id": actor.id}, limit=limit)
        if actor.role == Role.APPROVER:
            assigned = self.approval_repo.list_approvals(
                {"assigned_approver_id": actor.id, "status": ApprovalStatus.PENDING}, limit=limit
            )
            processed = self.approval_repo.list_approvals({"processed_by": actor.id}, limit=limit)
            merged = {a.id: a for a in assigned + processed}
            return sorted(merged.values(), key=lambda a: a.created_at, reverse=True)[:limit]
        if actor.role == Role.ADMIN:
            return self.approval_repo.list_approvals(limit=limit)
        return []

    def badges(self, actor: ActorContext) -> Dict[str, int]:
        """Counters for the navigation badges"""
        if actor.role == Role.ADMIN:
            pending = self._count(status=ApprovalStatus.PENDING)
            pending_users = self.user_repo.count_pending_users()
        elif actor.role == Role.APPROVER:
            pending = self._count(assigned_approver_id=actor.id, status=ApprovalStatus.PENDING)
            pending_users = 0
        else:
            pending = self._count(requester_id=actor.id, status=ApprovalStatus.PENDING)
            pending_users = 0

        return {
            "pending_approvals": pending,
            "pending_users": pending_users,
            "unread_notifications": self.notification_repo.get_unread_count(actor.id),
        }

    def snapshot(self, actor: ActorContext) -> DashboardSnapshot:
        return DashboardSnapshot(
            role=actor.role,
            counts=self.counts(actor),
            badges=self.badges(actor),
            recent_activity=[a.to_summary() for a in self.recent_activity(actor)],
            generated_at=utc_now(),
        )
