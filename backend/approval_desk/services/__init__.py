"""Service modules - Business logic layer"""
from .approval_service import ApprovalService
from .onboarding_service import OnboardingService
from .notification_service import NotificationService
from .dashboard_service import DashboardService
from .session_service import Session, SessionManager, get_session_manager
from .auth_service import AuthService
from .reconciliation_service import ReconciliationService

__all__ = [
    "ApprovalService",
    "OnboardingService",
    "NotificationService",
    "DashboardService",
    "Session",
    "SessionManager",
    "get_session_manager",
    "AuthService",
    "ReconciliationService",
]
