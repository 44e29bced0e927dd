"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class Role(str, Enum):
    """User roles"""
    ADMIN = "admin"           # Full visibility and user management
    APPROVER = "approver"     # Decides approvals assigned to them
    REQUESTER = "requester"   # Submits approvals


# Roles a user can pick at signup, and the roles an admin can switch a user between
SELF_SERVICE_ROLES = (Role.APPROVER, Role.REQUESTER)

# Roles that may be assigned as the approver of a request
APPROVER_ROLES = (Role.APPROVER, Role.ADMIN)


class UserStatus(str, Enum):
    """Account status"""
    PENDING = "pending"
    APPROVED = "approved"


class ApprovalStatus(str, Enum):
    """Approval lifecycle state"""
    PENDING = "pending"
    APPROVED = "approved"    # Terminal
    REJECTED = "rejected"    # Terminal

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class Decision(str, Enum):
    """Outcome an approver can record"""
    APPROVED = "approved"
    REJECTED = "rejected"

    def to_status(self) -> ApprovalStatus:
        return ApprovalStatus(self.value)


class AuditAction(str, Enum):
    """User-management actions recorded in the audit trail"""
    SIGNUP_APPROVED = "SIGNUP_APPROVED"
    SIGNUP_REJECTED = "SIGNUP_REJECTED"
    USER_REGISTERED = "USER_REGISTERED"
    ROLE_CHANGED = "ROLE_CHANGED"
    USER_DELETED = "USER_DELETED"
    BOOTSTRAP_ADMIN_CREATED = "BOOTSTRAP_ADMIN_CREATED"
    PENDING_DUPLICATE_REMOVED = "PENDING_DUPLICATE_REMOVED"


class Collection(str, Enum):
    """Record store collection names"""
    USERS = "users"
    PENDING_USERS = "pendingUsers"
    APPROVALS = "approvals"
    NOTIFICATIONS = "notifications"
    AUDIT_EVENTS = "auditEvents"
