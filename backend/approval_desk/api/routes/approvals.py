"""Approvals API - Submit, list and decide approval requests"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from ..deps import get_current_user_dep, get_admin_user_dep, get_correlation_id_dep
from ...domain.models import ActorContext, Approval, UserSummary
from ...domain.enums import ApprovalStatus, Decision
from ...services.approval_service import ApprovalService
from ...utils.logger import get_logger
from .schemas import CreateApprovalRequest, DecisionRequest, ApprovalListResponse

logger = get_logger(__name__)

router = APIRouter()


def _list_response(approvals: List[Approval]) -> ApprovalListResponse:
    return ApprovalListResponse(
        items=[a.to_summary() for a in approvals],
        total=len(approvals)
    )


# =============================================================================
# Listings
# =============================================================================

@router.get("", response_model=ApprovalListResponse)
async def list_visible(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Every approval the caller may see.

    Requesters see their own, approvers those assigned to them, admins all.
    """
    return _list_response(ApprovalService().list_visible(actor))


@router.get("/mine", response_model=ApprovalListResponse)
async def list_my_requests(
    status_filter: Optional[ApprovalStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Approvals the caller submitted"""
    return _list_response(ApprovalService().list_my_requests(actor, status_filter))


@router.get("/pending", response_model=ApprovalListResponse)
async def list_pending(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Pending approvals waiting on the caller (every pending one for admins)"""
    return _list_response(ApprovalService().list_pending_for_approver(actor))


@router.get("/history", response_model=ApprovalListResponse)
async def list_history(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Approvals assigned to the caller that are already decided"""
    return _list_response(ApprovalService().list_history_for_approver(actor))


@router.get("/all", response_model=ApprovalListResponse)
async def list_all(
    status_filter: Optional[ApprovalStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_admin_user_dep)
):
    """All approvals (admin only)"""
    return _list_response(ApprovalService().list_all(actor, status_filter))


@router.get("/approvers", response_model=List[UserSummary])
async def list_approvers(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Users that can be picked as the approver of a new request"""
    return ApprovalService().list_approver_candidates()


# =============================================================================
# Single Approval
# =============================================================================

@router.post("", response_model=Approval, status_code=status.HTTP_201_CREATED)
async def submit_request(
    request: CreateApprovalRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Submit a new approval request"""
    return ApprovalService().submit_request(
        requester=actor,
        title=request.title,
        description=request.description,
        assigned_approver_id=request.assigned_approver_id,
        files=request.files
    )


@router.get("/{approval_id}", response_model=Approval)
async def get_approval(
    approval_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Approval details including file payloads"""
    return ApprovalService().get_approval(actor, approval_id)


@router.post("/{approval_id}/approve", response_model=Approval)
async def approve(
    approval_id: str,
    request: DecisionRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Approve a pending approval.

    Only the assigned approver or an admin may decide. Signed files are
    attached to the approval and the requester is notified.
    """
    return ApprovalService().process_request(
        actor=actor,
        approval_id=approval_id,
        decision=Decision.APPROVED,
        feedback=request.feedback,
        signed_files=request.signed_files
    )


@router.post("/{approval_id}/reject", response_model=Approval)
async def reject(
    approval_id: str,
    request: DecisionRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Reject a pending approval. Signed files are discarded."""
    return ApprovalService().process_request(
        actor=actor,
        approval_id=approval_id,
        decision=Decision.REJECTED,
        feedback=request.feedback,
        signed_files=request.signed_files
    )
