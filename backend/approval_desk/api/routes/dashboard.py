"""Dashboard API - Per-role statistics"""
from fastapi import APIRouter, Depends

from ..deps import get_current_user_dep
from ...domain.models import ActorContext, DashboardSnapshot
from ...services.dashboard_service import DashboardService

router = APIRouter()


@router.get("", response_model=DashboardSnapshot)
async def get_dashboard(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Counts, badges and recent activity for the caller's role, computed now"""
    return DashboardService().snapshot(actor)
