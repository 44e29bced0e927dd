"""Permission Guard - Authorization rules for approvals and user management"""
from typing import Any, Dict, Optional, Union

from ..domain.models import Approval, ActorContext, User
from ..domain.enums import Role, ApprovalStatus
from ..domain.errors import AuthorizationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

Principal = Union[ActorContext, User]


class PermissionGuard:
    """
    Permission enforcement for approval operations

    Rules:
    - Admin can view and process every approval and manage users
    - Requester can only view their own approvals
    - Approver can view approvals assigned to them and process them while pending
    - Any role not listed here is denied
    """

    def can_view(self, actor: Principal, approval: Approval) -> bool:
        """Check if actor can view the approval"""
        if actor.role == Role.ADMIN:
            return True
        if actor.role in (Role.APPROVER, Role.REQUESTER):
            return actor.id in (approval.requester_id, approval.assigned_approver_id)
        return False

    def can_process(self, actor: Principal, approval: Approval) -> bool:
        """
        Check if actor can approve or reject the approval

        Admins bypass the pending check here; the lifecycle still refuses to
        move a decided approval.
        """
        if actor.role == Role.ADMIN:
            return True
        if actor.role in (Role.APPROVER, Role.REQUESTER):
            return (
                actor.id == approval.assigned_approver_id
                and approval.status == ApprovalStatus.PENDING
            )
        return False

    def is_process_participant(self, actor: Principal, approval: Approval) -> bool:
        """Admin or the assigned approver, regardless of status"""
        return actor.role == Role.ADMIN or actor.id == approval.assigned_approver_id

    def can_manage_users(self, actor: Principal) -> bool:
        return actor.role == Role.ADMIN

    def visibility_filter(self, actor: Principal) -> Optional[Dict[str, Any]]:
        """
        Record store filter for the approvals an actor may list

        Returns:
            ``{}`` for admins (everything), a field match otherwise,
            or None when the actor may see nothing
        """
        if actor.role == Role.ADMIN:
            return {}
        if actor.role == Role.APPROVER:
            return {"assigned_approver_id": actor.id}
        if actor.role == Role.REQUESTER:
            return {"requester_id": actor.id}
        return None

    # =========================================================================
    # Enforcement
    # =========================================================================

    def require_view(self, actor: Principal, approval: Approval) -> None:
        if not self.can_view(actor, approval):
            logger.warning(
                f"View denied for {actor.id} on {approval.id}",
                extra={"actor_id": actor.id, "approval_id": approval.id}
            )
            raise AuthorizationError(
                "You do not have access to this approval",
                details={"approval_id": approval.id}
            )

    def require_manage_users(self, actor: Principal, action: str) -> None:
        if not self.can_manage_users(actor):
            logger.warning(
                f"User management denied for {actor.id}: {action}",
                extra={"actor_id": actor.id, "action": action}
            )
            raise AuthorizationError(
                "Only administrators can manage users",
                details={"action": action}
            )
