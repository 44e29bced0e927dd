"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

from .enums import Role, UserStatus, ApprovalStatus, AuditAction


# ============================================================================
# Users
# ============================================================================

class User(BaseModel):
    """Active user account (``users`` collection)"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Store-assigned user ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email, unique and case-sensitive as stored")
    password_hash: str = Field(..., description="bcrypt hash")
    role: Role
    status: UserStatus = Field(default=UserStatus.APPROVED)
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_summary(self) -> "UserSummary":
        return UserSummary(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            status=self.status,
            created_at=self.created_at,
        )

    def to_actor(self, session_id: Optional[str] = None) -> "ActorContext":
        return ActorContext(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            session_id=session_id,
        )


class PendingUser(User):
    """Signup awaiting admin approval (``pendingUsers`` collection)"""
    status: UserStatus = Field(default=UserStatus.PENDING)


class UserSummary(BaseModel):
    """User without credentials, safe to return from the API"""
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    email: str
    role: Role
    status: UserStatus
    created_at: datetime


class ActorContext(BaseModel):
    """The authenticated user performing an operation"""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="User email")
    role: Role = Field(..., description="Role at login time, refreshed per request")
    session_id: Optional[str] = Field(None, description="Session the request belongs to")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# ============================================================================
# Attachments
# ============================================================================

class FileAttachment(BaseModel):
    """Opaque file blob addressed by name and content handle (e.g. a data URI)"""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Original file name")
    content_handle: str = Field(..., min_length=1, description="Self-describing encoded payload")

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        # Older records used fileName/fileData or name/data
        if isinstance(data, dict) and "content_handle" not in data:
            data = dict(data)
            for key in ("fileData", "file_data", "data"):
                if key in data:
                    data["content_handle"] = data.pop(key)
                    break
            for key in ("fileName", "file_name"):
                if key in data and "name" not in data:
                    data["name"] = data.pop(key)
        return data


# ============================================================================
# Approval
# ============================================================================

class Approval(BaseModel):
    """Approval request (``approvals`` collection)"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Store-assigned approval ID")
    title: str
    description: str
    requester_id: str = Field(..., description="Owner, immutable")
    requester_name: Optional[str] = Field(None, description="Requester name at submission")
    assigned_approver_id: str = Field(..., description="Approver, immutable once set")
    assigned_approver_name: Optional[str] = Field(None, description="Approver name at submission")
    status: ApprovalStatus = Field(default=ApprovalStatus.PENDING)
    files: List[FileAttachment] = Field(default_factory=list)
    signed_files: List[FileAttachment] = Field(default_factory=list, description="Only set on approval")
    feedback: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    notified: bool = Field(default=False, description="Decision notification persisted")

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_single_file(cls, data: Any) -> Any:
        # Records written before multi-file support carried one file inline
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("files") and data.get("file_name") and data.get("file_data"):
                data["files"] = [{"name": data.pop("file_name"), "content_handle": data.pop("file_data")}]
            if (not data.get("signed_files") and data.get("signed_file_name")
                    and data.get("signed_file_data")):
                data["signed_files"] = [{
                    "name": data.pop("signed_file_name"),
                    "content_handle": data.pop("signed_file_data"),
                }]
        return data

    @property
    def is_decided(self) -> bool:
        return self.status.is_terminal

    def to_summary(self) -> "ApprovalSummary":
        return ApprovalSummary(
            id=self.id,
            title=self.title,
            status=self.status,
            requester_id=self.requester_id,
            requester_name=self.requester_name,
            assigned_approver_id=self.assigned_approver_id,
            assigned_approver_name=self.assigned_approver_name,
            file_count=len(self.files),
            signed_file_count=len(self.signed_files),
            created_at=self.created_at,
            processed_at=self.processed_at,
        )


class ApprovalSummary(BaseModel):
    """List view of an approval, without file payloads"""
    id: str
    title: str
    status: ApprovalStatus
    requester_id: str
    requester_name: Optional[str] = None
    assigned_approver_id: str
    assigned_approver_name: Optional[str] = None
    file_count: int = 0
    signed_file_count: int = 0
    created_at: datetime
    processed_at: Optional[datetime] = None


# ============================================================================
# Notifications
# ============================================================================

class Notification(BaseModel):
    """
    In-app notification for the notification bell.
    Created only when an approval is decided; type mirrors the decision.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Store-assigned notification ID")
    user_id: str = Field(..., description="Recipient")
    type: ApprovalStatus = Field(..., description="Status of the triggering approval")
    title: str
    message: str
    approval_id: Optional[str] = Field(None, description="Reference for navigation, not ownership")
    timestamp: datetime
    read: bool = Field(default=False)


# ============================================================================
# Audit
# ============================================================================

class AuditEvent(BaseModel):
    """User-management audit event (append-only)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    action: AuditAction
    actor_id: Optional[str] = Field(None, description="None for system actions")
    actor_email: Optional[str] = None
    target_id: Optional[str] = None
    target_email: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    correlation_id: Optional[str] = None


# ============================================================================
# Dashboard
# ============================================================================

class DashboardSnapshot(BaseModel):
    """Per-role statistics, recomputed on every request"""
    role: Role
    counts: Dict[str, int] = Field(default_factory=dict)
    badges: Dict[str, int] = Field(default_factory=dict)
    recent_activity: List[ApprovalSummary] = Field(default_factory=list)
    generated_at: datetime
