"""Session Service - Server-side sessions with periodic dashboard refresh"""
import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional

from ..domain.models import User, ActorContext, DashboardSnapshot
from ..domain.errors import AuthenticationError, DomainError
from ..repositories.record_store import RecordStore
from ..repositories.user_repo import UserRepository
from ..config.settings import settings
from ..utils.idgen import generate_session_id
from ..utils.logger import get_logger
from ..utils.time import utc_now
from .dashboard_service import DashboardService

if TYPE_CHECKING:
    from ..scheduler.refresh_scheduler import RefreshScheduler

logger = get_logger(__name__)


class Session:
    """
    One logged-in user

    Holds the latest dashboard snapshot and unread count. Refresh results are
    applied last-write-wins; a closed session ignores further refreshes.
    """

    def __init__(self, session_id: str, user_id: str, expires_at: datetime):
        self.id = session_id
        self.user_id = user_id
        self.created_at = utc_now()
        self.expires_at = expires_at
        self.dashboard: Optional[DashboardSnapshot] = None
        self.unread_count: int = 0
        self.refreshed_at: Optional[datetime] = None
        self.closed = False
        self._lock = threading.Lock()

    @property
    def is_expired(self) -> bool:
        return utc_now() >= self.expires_at

    @property
    def is_active(self) -> bool:
        return not self.closed and not self.is_expired

    def apply_refresh(self, snapshot: DashboardSnapshot) -> None:
        with self._lock:
            if self.closed:
                return
            self.dashboard = snapshot
            self.unread_count = snapshot.badges.get("unread_notifications", 0)
            self.refreshed_at = snapshot.generated_at

    def close(self) -> None:
        with self._lock:
            self.closed = True


class SessionManager:
    """Owns every open session and its refresh job"""

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        scheduler: Optional["RefreshScheduler"] = None,
        ttl_minutes: Optional[int] = None
    ):
        self.user_repo = UserRepository(store)
        self.dashboard_service = DashboardService(store)
        self.scheduler = scheduler
        self._ttl = timedelta(minutes=ttl_minutes or settings.session_ttl_minutes)
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def attach_scheduler(self, scheduler: Optional["RefreshScheduler"]) -> None:
        self.scheduler = scheduler

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self, user: User) -> Session:
        """Open a session and start its refresh job"""
        session = Session(generate_session_id(), user.id, utc_now() + self._ttl)
        with self._lock:
            self._sessions[session.id] = session

        self.refresh(session.id)
        if self.scheduler is not None:
            self.scheduler.schedule_session_refresh(session.id, self.refresh)

        logger.info(
            f"Session opened for {user.email}",
            extra={"session_id": session.id, "user_id": user.id}
        )
        return session

    def close(self, session_id: str) -> None:
        """Close a session; its refresh job is removed and never fires again"""
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if self.scheduler is not None:
            self.scheduler.cancel_session_refresh(session_id)

        if session is not None:
            session.close()
            logger.info(
                "Session closed",
                extra={"session_id": session_id, "user_id": session.user_id}
            )

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def close_for_user(self, user_id: str) -> int:
        sessions = [s.id for s in self.active_sessions() if s.user_id == user_id]
        for session_id in sessions:
            self.close(session_id)
        return len(sessions)

    def get(self, session_id: str) -> Session:
        """Get an active session or raise AuthenticationError"""
        session = self._sessions.get(session_id)
        if session is None:
            raise AuthenticationError("Session has ended, please log in again")
        if session.is_expired:
            self.close(session_id)
            raise AuthenticationError("Session has expired, please log in again")
        return session

    def active_sessions(self) -> List[Session]:
        return [s for s in list(self._sessions.values()) if s.is_active]

    # =========================================================================
    # Actor Resolution
    # =========================================================================

    def resolve_actor(self, session_id: str) -> ActorContext:
        """
        Current actor for a session, with the role re-read from the store

        A user deleted while logged in loses the session.
        """
        session = self.get(session_id)
        user = self.user_repo.find_user(session.user_id)
        if user is None:
            self.close(session_id)
            raise AuthenticationError("Account no longer exists")
        return user.to_actor(session_id)

    # =========================================================================
    # Refresh
    # =========================================================================

    def refresh(self, session_id: str) -> Optional[DashboardSnapshot]:
        """Recompute the dashboard of one session"""
        session = self._sessions.get(session_id)
        if session is None or not session.is_active:
            return None

        try:
            actor = self.resolve_actor(session_id)
            snapshot = self.dashboard_service.snapshot(actor)
        except AuthenticationError:
            return None
        except DomainError as e:
            logger.warning(
                f"Dashboard refresh failed: {e.message}",
                extra={"session_id": session_id, "error_code": e.error_code}
            )
            return None

        session.apply_refresh(snapshot)
        return snapshot


# Global manager instance
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get global session manager instance"""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def set_session_manager(manager: Optional[SessionManager]) -> None:
    global _session_manager
    _session_manager = manager
