"""Users API - Account administration"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from ..deps import get_admin_user_dep, get_correlation_id_dep
from ...domain.models import ActorContext, UserSummary
from ...domain.enums import Role
from ...services.onboarding_service import OnboardingService
from ...services.session_service import get_session_manager
from ...utils.logger import get_logger
from .schemas import RegisterUserRequest, ChangeRoleRequest, UserListResponse, ActionResponse

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Active Users
# =============================================================================

@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[Role] = Query(None),
    actor: ActorContext = Depends(get_admin_user_dep)
):
    """All accounts, optionally filtered by role"""
    users = OnboardingService().list_users(actor, role)
    return UserListResponse(items=[u.to_summary() for u in users], total=len(users))


@router.post("", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
async def register_user(
    request: RegisterUserRequest,
    actor: ActorContext = Depends(get_admin_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Create an approved account directly (any role)"""
    user = OnboardingService().register_user(
        actor,
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role
    )
    return user.to_summary()


@router.patch("/{user_id}/role", response_model=UserSummary)
async def change_role(
    user_id: str,
    request: ChangeRoleRequest,
    actor: ActorContext = Depends(get_admin_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Switch a non-admin between approver and requester"""
    return OnboardingService().change_role(actor, user_id, request.role).to_summary()


@router.delete("/{user_id}", response_model=ActionResponse)
async def delete_user(
    user_id: str,
    actor: ActorContext = Depends(get_admin_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Delete an account; its open sessions end with it"""
    OnboardingService().delete_user(actor, user_id)
    get_session_manager().close_for_user(user_id)
    return ActionResponse(success=True, message=f"User {user_id} deleted")


# =============================================================================
# Pending Signups
# =============================================================================

@router.get("/pending", response_model=UserListResponse)
async def list_pending_users(
    actor: ActorContext = Depends(get_admin_user_dep)
):
    """Signups waiting for approval"""
    pending = OnboardingService().list_pending_users(actor)
    return UserListResponse(items=[p.to_summary() for p in pending], total=len(pending))


@router.post("/pending/{pending_user_id}/approve", response_model=UserSummary)
async def approve_user(
    pending_user_id: str,
    actor: ActorContext = Depends(get_admin_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Activate a pending signup"""
    return OnboardingService().approve_user(actor, pending_user_id).to_summary()


@router.post("/pending/{pending_user_id}/reject", response_model=ActionResponse)
async def reject_user(
    pending_user_id: str,
    actor: ActorContext = Depends(get_admin_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Discard a pending signup"""
    OnboardingService().reject_user(actor, pending_user_id)
    return ActionResponse(success=True, message=f"Signup {pending_user_id} rejected")
