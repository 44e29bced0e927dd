"""
API Schemas

Request and response models shared by the route modules.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from ...domain.models import ApprovalSummary, FileAttachment, UserSummary, Notification
from ...utils.time import format_time_ago


# =============================================================================
# Auth Schemas
# =============================================================================

class SignupRequest(BaseModel):
    """Self-service signup"""
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=255)
    password: str
    role: str = Field(..., description="approver or requester")


class SignupResponse(BaseModel):
    """Signup accepted, waiting for an administrator"""
    pending_user_id: str
    message: str


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserSummary


# =============================================================================
# Approval Schemas
# =============================================================================

class CreateApprovalRequest(BaseModel):
    """Request to submit a new approval"""
    title: str = Field(..., max_length=500)
    description: str = Field(..., max_length=5000)
    assigned_approver_id: str
    files: List[FileAttachment] = Field(default_factory=list)


class DecisionRequest(BaseModel):
    """Request for approve/reject"""
    feedback: Optional[str] = Field(None, max_length=2000)
    signed_files: List[FileAttachment] = Field(
        default_factory=list,
        description="Countersigned files, kept only when approving"
    )


class ApprovalListResponse(BaseModel):
    """Response for approval lists"""
    items: List[ApprovalSummary]
    total: int


# =============================================================================
# User Schemas
# =============================================================================

class RegisterUserRequest(BaseModel):
    """Admin-created account, approved immediately"""
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=255)
    password: str
    role: str


class ChangeRoleRequest(BaseModel):
    role: str


class UserListResponse(BaseModel):
    items: List[UserSummary]
    total: int


class ActionResponse(BaseModel):
    """Generic outcome of a mutating action"""
    success: bool
    message: str


# =============================================================================
# Notification Schemas
# =============================================================================

class NotificationResponse(BaseModel):
    """Single notification response"""
    id: str
    type: str
    title: str
    message: str
    approval_id: Optional[str] = None
    read: bool
    timestamp: datetime
    time_ago: str

    @classmethod
    def from_notification(cls, n: Notification) -> "NotificationResponse":
        return cls(
            id=n.id,
            type=n.type.value,
            title=n.title,
            message=n.message,
            approval_id=n.approval_id,
            read=n.read,
            timestamp=n.timestamp,
            time_ago=format_time_ago(n.timestamp),
        )


class NotificationListResponse(BaseModel):
    """List of notifications with metadata"""
    items: List[NotificationResponse]
    unread_count: int
    total: int


class UnreadCountResponse(BaseModel):
    """Just the unread count"""
    unread_count: int


class MarkReadResponse(BaseModel):
    """Response after bulk notification changes"""
    success: bool
    marked_count: int
