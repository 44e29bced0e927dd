"""Onboarding Service - Signup, account approval and user management"""
import re
from typing import List, Optional, Tuple

from ..domain.models import User, PendingUser, ActorContext
from ..domain.enums import Role, UserStatus, ApprovalStatus, AuditAction, SELF_SERVICE_ROLES
from ..domain.errors import (
    ValidationError, EmailInUseError, ConflictError, InvariantError, LastAdminError,
    StoreError, NotFoundError, UserNotFoundError
)
from ..engine.permission_guard import PermissionGuard
from ..repositories.record_store import RecordStore
from ..repositories.user_repo import UserRepository
from ..repositories.approval_repo import ApprovalRepository
from ..repositories.audit_repo import AuditRepository
from ..config.settings import settings
from ..utils.logger import get_logger
from ..utils.passwords import hash_password, MAX_PASSWORD_BYTES

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def _parse_role(role, allowed: Tuple[Role, ...]) -> Role:
    try:
        parsed = Role(role)
    except ValueError:
        parsed = None
    if parsed not in allowed:
        raise ValidationError(
            f"Role must be one of: {', '.join(r.value for r in allowed)}",
            details={"field": "role", "value": str(getattr(role, "value", role))}
        )
    return parsed


class OnboardingService:
    """
    Service for the account lifecycle

    Signups wait in ``pendingUsers`` until an admin approves (moved to
    ``users``) or rejects (deleted) them. Admins can also register approved
    accounts directly. At least one approved admin always remains.
    """

    def __init__(self, store: Optional[RecordStore] = None):
        self.repo = UserRepository(store)
        self.audit_repo = AuditRepository(store)
        self.approval_repo = ApprovalRepository(store)
        self.guard = PermissionGuard()

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_account(
        self,
        name: str,
        email: str,
        password: str,
        role,
        allowed_roles: Tuple[Role, ...]
    ) -> Tuple[str, str, Role]:
        name = (name or "").strip()
        email = (email or "").strip()
        password = password or ""

        missing = [k for k, v in (("name", name), ("email", email), ("password", password)) if not v]
        if missing:
            raise ValidationError("All fields are required", details={"missing": missing})

        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Email address is not valid", details={"field": "email"})

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                details={"field": "password"}
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                details={"field": "password"}
            )

        return name, email, _parse_role(role, allowed_roles)

    def _ensure_email_free(self, email: str) -> None:
        if self.repo.email_in_use(email):
            raise EmailInUseError("Email is already registered", details={"email": email})

    # =========================================================================
    # Signup
    # =========================================================================

    def signup(self, name: str, email: str, password: str, role) -> PendingUser:
        """
        Register a self-service account awaiting admin approval

        Raises:
            ValidationError: missing fields, bad email, short password, admin role
            ConflictError: email already used by an account or pending signup
        """
        name, email, role = self._validate_account(name, email, password, role, SELF_SERVICE_ROLES)
        self._ensure_email_free(email)

        try:
            pending = self.repo.create_pending_user(name, email, hash_password(password), role)
        except ConflictError:
            # Unique index caught a concurrent signup
            raise EmailInUseError("Email is already registered", details={"email": email})

        logger.info(
            f"Signup received from {email}",
            extra={"user_id": pending.id, "status": UserStatus.PENDING.value}
        )
        return pending

    def register_user(
        self,
        admin: ActorContext,
        name: str,
        email: str,
        password: str,
        role
    ) -> User:
        """Create an approved account of any role, admins included"""
        self.guard.require_manage_users(admin, "register_user")
        name, email, role = self._validate_account(name, email, password, role, tuple(Role))
        self._ensure_email_free(email)

        try:
            user = self.repo.create_user(name, email, hash_password(password), role)
        except ConflictError:
            raise EmailInUseError("Email is already registered", details={"email": email})

        self.audit_repo.create_event(
            AuditAction.USER_REGISTERED,
            actor=admin,
            target_id=user.id,
            target_email=user.email,
            details={"role": role.value}
        )
        return user

    # =========================================================================
    # Pending Signups
    # =========================================================================

    def approve_user(self, admin: ActorContext, pending_user_id: str) -> User:
        """
        Move a pending signup into ``users``

        The create and the delete are two writes. If removing the pending record
        fails and the record is still there, the created account is removed
        again and StoreError is raised. If the record is gone the delete was
        applied despite the error and the approval stands. A retry for an email
        that is already active only removes the leftover pending record.
        """
        self.guard.require_manage_users(admin, "approve_user")
        pending = self.repo.get_pending_user(pending_user_id)

        existing = self.repo.find_user_by_email(pending.email)
        if existing is not None:
            logger.warning(
                f"Pending signup {pending.id} already active as {existing.id}",
                extra={"user_id": existing.id, "actor_id": admin.id}
            )
            self.repo.delete_pending_user(pending.id)
            return existing

        user = self.repo.create_user(
            name=pending.name,
            email=pending.email,
            password_hash=pending.password_hash,
            role=pending.role,
            created_at=pending.created_at
        )

        try:
            self.repo.delete_pending_user(pending.id)
        except StoreError as e:
            if not self._pending_exists(pending.id):
                logger.warning(
                    f"Pending signup {pending.id} was removed despite a store error, keeping {user.id}",
                    extra={"user_id": user.id, "actor_id": admin.id, "error_code": e.error_code}
                )
            else:
                self._roll_back_approval(admin, pending, user, e)
                raise

        self.audit_repo.create_event(
            AuditAction.SIGNUP_APPROVED,
            actor=admin,
            target_id=user.id,
            target_email=user.email,
            details={"pending_user_id": pending.id, "role": user.role.value}
        )
        logger.info(
            f"Signup approved for {user.email}",
            extra={"user_id": user.id, "actor_id": admin.id, "status": UserStatus.APPROVED.value}
        )
        return user

    def _pending_exists(self, pending_id: str) -> bool:
        """Re-read after a failed delete; a StoreError here propagates and the account is kept"""
        try:
            self.repo.get_pending_user(pending_id)
        except UserNotFoundError:
            return False
        return True

    def _roll_back_approval(self, admin: ActorContext, pending: PendingUser, user: User, error: StoreError) -> None:
        logger.error(
            f"Could not remove pending signup {pending.id}, rolling back {user.id}",
            extra={"user_id": user.id, "actor_id": admin.id, "error_code": error.error_code}
        )
        try:
            self.repo.delete_user(user.id)
        except (StoreError, NotFoundError) as rollback_error:
            logger.error(
                f"Rollback of {user.id} failed, reconciliation will remove the pending copy: "
                f"{rollback_error.message}",
                extra={"user_id": user.id}
            )

    def reject_user(self, admin: ActorContext, pending_user_id: str) -> None:
        """Drop a pending signup. Nobody is notified; there is no account yet."""
        self.guard.require_manage_users(admin, "reject_user")
        pending = self.repo.get_pending_user(pending_user_id)
        self.repo.delete_pending_user(pending.id)

        self.audit_repo.create_event(
            AuditAction.SIGNUP_REJECTED,
            actor=admin,
            target_id=pending.id,
            target_email=pending.email
        )

    def list_pending_users(self, admin: ActorContext) -> List[PendingUser]:
        self.guard.require_manage_users(admin, "list_pending_users")
        return self.repo.list_pending_users()

    # =========================================================================
    # Active Users
    # =========================================================================

    def list_users(self, admin: ActorContext, role: Optional[Role] = None) -> List[User]:
        self.guard.require_manage_users(admin, "list_users")
        return self.repo.list_users(roles=[role] if role else None)

    def list_admins(self, admin: ActorContext) -> List[User]:
        self.guard.require_manage_users(admin, "list_admins")
        return self.repo.list_users(roles=[Role.ADMIN])

    def change_role(self, admin: ActorContext, user_id: str, new_role) -> User:
        """
        Switch a user between approver and requester

        Raises:
            NotFoundError: user does not exist
            InvariantError: target is an admin
            ValidationError: new role is not approver or requester
        """
        self.guard.require_manage_users(admin, "change_role")
        user = self.repo.get_user(user_id)

        if user.role == Role.ADMIN:
            raise InvariantError(
                "Administrator roles cannot be changed",
                details={"user_id": user_id}
            )

        role = _parse_role(new_role, SELF_SERVICE_ROLES)
        if role == user.role:
            return user

        updated = self.repo.update_role(user_id, role)
        self.audit_repo.create_event(
            AuditAction.ROLE_CHANGED,
            actor=admin,
            target_id=user_id,
            target_email=user.email,
            details={"from": user.role.value, "to": role.value}
        )
        logger.info(
            f"Role of {user.email} changed to {role.value}",
            extra={"user_id": user_id, "actor_id": admin.id, "action": "change_role"}
        )
        return updated

    def delete_user(self, admin: ActorContext, user_id: str) -> None:
        """
        Delete an account

        Raises:
            InvariantError: the last approved admin would be removed
            ValidationError: an admin deleting their own account
        """
        self.guard.require_manage_users(admin, "delete_user")
        user = self.repo.get_user(user_id)

        if user.role == Role.ADMIN:
            if self.repo.count_admins() <= 1:
                raise LastAdminError(
                    "At least one administrator must remain",
                    details={"user_id": user_id}
                )
            if user.id == admin.id:
                raise ValidationError(
                    "Administrators cannot delete their own account",
                    details={"user_id": user_id}
                )

        if user.role in (Role.APPROVER, Role.ADMIN):
            open_count = self.approval_repo.count_approvals({
                "assigned_approver_id": user.id,
                "status": ApprovalStatus.PENDING,
            })
            if open_count:
                logger.warning(
                    f"Deleting {user.email} leaves {open_count} pending approvals for admins",
                    extra={"user_id": user.id, "actor_id": admin.id}
                )

        self.repo.delete_user(user.id)
        self.audit_repo.create_event(
            AuditAction.USER_DELETED,
            actor=admin,
            target_id=user.id,
            target_email=user.email,
            details={"role": user.role.value}
        )

    # =========================================================================
    # Startup
    # =========================================================================

    def ensure_bootstrap_admin(self) -> Optional[User]:
        """Create the configured administrator when no approved admin exists"""
        if self.repo.count_admins() > 0:
            return None

        email = settings.bootstrap_admin_email
        existing = self.repo.find_user_by_email(email)
        if existing is not None:
            # Never promote an existing account
            logger.error(
                f"Bootstrap admin email {email} belongs to a {existing.role.value}",
                extra={"user_id": existing.id}
            )
            return None

        user = self.repo.create_user(
            name=settings.bootstrap_admin_name,
            email=email,
            password_hash=hash_password(settings.bootstrap_admin_password),
            role=Role.ADMIN
        )
        self.audit_repo.create_event(
            AuditAction.BOOTSTRAP_ADMIN_CREATED,
            target_id=user.id,
            target_email=user.email
        )
        logger.warning(f"Created bootstrap admin {email}", extra={"user_id": user.id})
        return user
