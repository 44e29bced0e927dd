"""Approval Service - Approval request lifecycle"""
from typing import List, Optional

from ..domain.models import Approval, ActorContext, FileAttachment, UserSummary
from ..domain.enums import Role, UserStatus, ApprovalStatus, Decision, APPROVER_ROLES
from ..domain.errors import (
    AuthorizationError, ValidationError, StateError, ConcurrencyError, DomainError
)
from ..engine.permission_guard import PermissionGuard
from ..repositories.record_store import RecordStore
from ..repositories.approval_repo import ApprovalRepository
from ..repositories.user_repo import UserRepository
from ..config.settings import settings
from ..utils.logger import get_logger
from ..utils.time import utc_now
from .notification_service import NotificationService

logger = get_logger(__name__)


class ApprovalService:
    """
    Service for approval requests

    An approval starts ``pending`` and moves exactly once to ``approved`` or
    ``rejected``. The move is a conditional update on ``status == pending``,
    so of two racing decisions only one is applied.
    """

    def __init__(self, store: Optional[RecordStore] = None):
        self.repo = ApprovalRepository(store)
        self.user_repo = UserRepository(store)
        self.notifications = NotificationService(store)
        self.guard = PermissionGuard()

    # =========================================================================
    # Submission
    # =========================================================================

    def _validate_files(self, files: List[FileAttachment], field: str) -> None:
        limit = settings.attachments_max_bytes
        for f in files:
            if len(f.content_handle) > limit:
                raise ValidationError(
                    f"File {f.name} exceeds the {settings.attachments_max_mb} MB limit",
                    details={"field": field, "file_name": f.name}
                )

    def submit_request(
        self,
        requester: ActorContext,
        title: str,
        description: str,
        assigned_approver_id: str,
        files: Optional[List[FileAttachment]] = None
    ) -> Approval:
        """
        Submit a new approval request

        Raises:
            ValidationError: empty fields, unknown or ineligible approver,
                oversized attachment
        """
        title = (title or "").strip()
        description = (description or "").strip()
        assigned_approver_id = (assigned_approver_id or "").strip()
        files = files or []

        missing = [
            name for name, value in (
                ("title", title),
                ("description", description),
                ("assigned_approver_id", assigned_approver_id),
            ) if not value
        ]
        if missing:
            raise ValidationError(
                "Title, description and approver are required",
                details={"missing": missing}
            )

        approver = self.user_repo.find_user(assigned_approver_id)
        if (approver is None or approver.status != UserStatus.APPROVED
                or approver.role not in APPROVER_ROLES):
            raise ValidationError(
                "Assigned approver must be an active approver or admin",
                details={"assigned_approver_id": assigned_approver_id}
            )

        self._validate_files(files, "files")

        approval = self.repo.create_approval(
            title=title,
            description=description,
            requester_id=requester.id,
            requester_name=requester.name,
            assigned_approver_id=approver.id,
            assigned_approver_name=approver.name,
            files=files
        )

        logger.info(
            f"Approval submitted: {approval.id}",
            extra={
                "approval_id": approval.id,
                "actor_id": requester.id,
                "user_id": approver.id,
                "status": approval.status.value
            }
        )
        return approval

    # =========================================================================
    # Decision
    # =========================================================================

    def process_request(
        self,
        actor: ActorContext,
        approval_id: str,
        decision: Decision,
        feedback: Optional[str] = None,
        signed_files: Optional[List[FileAttachment]] = None
    ) -> Approval:
        """
        Approve or reject a pending approval

        Raises:
            NotFoundError: approval does not exist
            AuthorizationError: actor is neither admin nor the assigned approver
            StateError: approval already decided (including a lost race)
        """
        approval = self.repo.get_approval(approval_id)

        if not self.guard.is_process_participant(actor, approval):
            logger.warning(
                f"Process denied for {actor.id} on {approval_id}",
                extra={"actor_id": actor.id, "approval_id": approval_id}
            )
            raise AuthorizationError(
                "Only the assigned approver or an admin can process this approval",
                details={"approval_id": approval_id}
            )

        if approval.is_decided:
            raise StateError(
                f"Approval is already {approval.status.value}",
                details={"approval_id": approval_id, "status": approval.status.value}
            )

        if not self.guard.can_process(actor, approval):
            raise AuthorizationError(
                "You cannot process this approval",
                details={"approval_id": approval_id}
            )

        new_status = decision.to_status()
        # Signed files only survive an approval
        kept_files = list(signed_files or []) if new_status == ApprovalStatus.APPROVED else []
        self._validate_files(kept_files, "signed_files")

        try:
            approval = self.repo.apply_decision(
                approval_id,
                status=new_status,
                processed_by=actor.id,
                feedback=feedback or "",
                signed_files=kept_files,
                processed_at=utc_now()
            )
        except ConcurrencyError:
            current = self.repo.get_approval(approval_id)
            logger.warning(
                f"Approval {approval_id} was decided concurrently",
                extra={"approval_id": approval_id, "actor_id": actor.id, "status": current.status.value}
            )
            raise StateError(
                f"Approval is already {current.status.value}",
                details={"approval_id": approval_id, "status": current.status.value}
            )

        logger.info(
            f"Approval {new_status.value}: {approval_id}",
            extra={
                "approval_id": approval_id,
                "actor_id": actor.id,
                "decision": decision.value,
                "status": new_status.value
            }
        )

        return self.deliver_decision(approval)

    def deliver_decision(self, approval: Approval) -> Approval:
        """
        Write the requester notification and mark the approval notified.

        A failure leaves ``notified`` false for reconciliation to retry; the
        decision itself stays committed.
        """
        try:
            self.notifications.notify_decision(approval)
            return self.repo.mark_notified(approval.id)
        except DomainError as e:
            logger.error(
                f"Decision notification for {approval.id} not delivered: {e.message}",
                extra={"approval_id": approval.id, "error_code": e.error_code}
            )
            return approval

    # =========================================================================
    # Queries
    # =========================================================================

    def get_approval(self, actor: ActorContext, approval_id: str) -> Approval:
        approval = self.repo.get_approval(approval_id)
        self.guard.require_view(actor, approval)
        return approval

    def list_visible(self, actor: ActorContext) -> List[Approval]:
        """Every approval the actor is allowed to see, newest first"""
        query = self.guard.visibility_filter(actor)
        if query is None:
            return []
        return self.repo.list_approvals(query)

    def list_my_requests(
        self,
        actor: ActorContext,
        status: Optional[ApprovalStatus] = None
    ) -> List[Approval]:
        query = {"requester_id": actor.id}
        if status:
            query["status"] = status
        return self.repo.list_approvals(query)

    def list_pending_for_approver(self, actor: ActorContext) -> List[Approval]:
        """Pending approvals assigned to the actor; admins see every pending one"""
        query = {"status": ApprovalStatus.PENDING}
        if actor.role != Role.ADMIN:
            query["assigned_approver_id"] = actor.id
        return self.repo.list_approvals(query)

    def list_history_for_approver(self, actor: ActorContext) -> List[Approval]:
        """Decided approvals assigned to the actor"""
        return self.repo.list_approvals({
            "assigned_approver_id": actor.id,
            "status": {"$ne": ApprovalStatus.PENDING},
        })

    def list_all(
        self,
        actor: ActorContext,
        status: Optional[ApprovalStatus] = None
    ) -> List[Approval]:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only administrators can list every approval")
        query = {"status": status} if status else {}
        return self.repo.list_approvals(query)

    def list_approver_candidates(self) -> List[UserSummary]:
        """Active users who can be assigned as approver"""
        users = self.user_repo.list_users(roles=list(APPROVER_ROLES), status=UserStatus.APPROVED)
        return [u.to_summary() for u in users]

    def count_global_pending(self) -> int:
        return self.repo.count_approvals({"status": ApprovalStatus.PENDING})
