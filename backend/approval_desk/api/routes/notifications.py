"""User Notifications API - In-app notification bell endpoints"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..deps import get_current_user_dep
from ...domain.models import ActorContext
from ...services.notification_service import NotificationService
from ...utils.logger import get_logger
from .schemas import (
    NotificationResponse, NotificationListResponse, UnreadCountResponse,
    MarkReadResponse, ActionResponse
)

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    limit: Optional[int] = Query(None, ge=1, le=500),
    unread_only: bool = Query(False),
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Get notifications for the current user.

    - Sorted by newest first
    - Supports filtering by unread only
    """
    service = NotificationService()
    notifications = service.list_for_user(actor, unread_only=unread_only, limit=limit)

    return NotificationListResponse(
        items=[NotificationResponse.from_notification(n) for n in notifications],
        unread_count=service.unread_count(actor),
        total=len(notifications)
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Get just the unread notification count.

    This is a lightweight endpoint for polling the notification badge.
    """
    return UnreadCountResponse(unread_count=NotificationService().unread_count(actor))


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Mark all of the caller's notifications as read"""
    count = NotificationService().mark_all_read(actor)
    return MarkReadResponse(success=True, marked_count=count)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Mark a single notification as read"""
    notification = NotificationService().mark_read(actor, notification_id)
    return NotificationResponse.from_notification(notification)


@router.delete("/{notification_id}", response_model=ActionResponse)
async def delete_notification(
    notification_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Delete one of the caller's notifications"""
    NotificationService().delete(actor, notification_id)
    return ActionResponse(success=True, message="Notification deleted")


@router.delete("", response_model=MarkReadResponse)
async def clear_notifications(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Delete every notification of the caller"""
    count = NotificationService().clear_all(actor)
    return MarkReadResponse(success=True, marked_count=count)
