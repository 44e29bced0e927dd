"""Refresh Scheduler - Per-session dashboard refresh and periodic reconciliation

Handles:
- One interval job per open session, removed when the session closes
- The reconciliation pass that repairs half-applied transitions
"""
from typing import Callable, List, Optional
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import settings
from ..domain.errors import DomainError
from ..utils.logger import get_logger, set_correlation_id
from ..utils.idgen import generate_correlation_id

logger = get_logger(__name__)

SESSION_JOB_PREFIX = "refresh:"
RECONCILE_JOB_ID = "reconcile"


class RefreshScheduler:
    """
    APScheduler wrapper running jobs on a background thread.

    Session jobs may be added before ``start``; they begin firing once the
    scheduler runs.
    """

    def __init__(
        self,
        refresh_interval_seconds: Optional[int] = None,
        reconcile_interval_seconds: Optional[int] = None
    ):
        self.refresh_interval = refresh_interval_seconds or settings.refresh_interval_seconds
        self.reconcile_interval = reconcile_interval_seconds or settings.reconcile_interval_seconds
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._is_running = False

    def start(self, reconcile: Optional[Callable[[], object]] = None) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        if reconcile is not None:
            self.scheduler.add_job(
                self._run_reconcile,
                trigger=IntervalTrigger(seconds=self.reconcile_interval),
                args=[reconcile],
                id=RECONCILE_JOB_ID,
                name="Reconcile multi-record transitions",
                replace_existing=True,
                max_instances=1,
                coalesce=True
            )

        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Refresh scheduler started (refresh every {self.refresh_interval}s, "
            f"reconcile every {self.reconcile_interval}s)"
        )

    def stop(self) -> None:
        """Stop the scheduler"""
        if self._is_running:
            self.scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Refresh scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running"""
        return self._is_running

    # =========================================================================
    # Session Jobs
    # =========================================================================

    def schedule_session_refresh(self, session_id: str, refresh: Callable[[str], object]) -> None:
        self.scheduler.add_job(
            self._run_refresh,
            trigger=IntervalTrigger(seconds=self.refresh_interval),
            args=[refresh, session_id],
            id=f"{SESSION_JOB_PREFIX}{session_id}",
            name=f"Refresh session {session_id}",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

    def cancel_session_refresh(self, session_id: str) -> bool:
        """Remove a session job. Returns False if there was none."""
        try:
            self.scheduler.remove_job(f"{SESSION_JOB_PREFIX}{session_id}")
        except JobLookupError:
            return False
        return True

    def session_job_ids(self) -> List[str]:
        return [
            job.id for job in self.scheduler.get_jobs()
            if job.id.startswith(SESSION_JOB_PREFIX)
        ]

    # =========================================================================
    # Job Bodies
    # =========================================================================

    def _run_refresh(self, refresh: Callable[[str], object], session_id: str) -> None:
        set_correlation_id(generate_correlation_id())
        try:
            refresh(session_id)
        except DomainError as e:
            logger.warning(
                f"Session refresh failed: {e.message}",
                extra={"session_id": session_id, "error_code": e.error_code}
            )

    def _run_reconcile(self, reconcile: Callable[[], object]) -> None:
        set_correlation_id(generate_correlation_id())
        try:
            reconcile()
        except DomainError as e:
            logger.error(
                f"Reconciliation failed: {e.message}",
                extra={"action": "reconcile", "error_code": e.error_code}
            )


# Global scheduler instance
_scheduler: Optional[RefreshScheduler] = None


def get_scheduler() -> RefreshScheduler:
    """Get or create scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = RefreshScheduler()
    return _scheduler


def start_scheduler(reconcile: Optional[Callable[[], object]] = None) -> RefreshScheduler:
    """Start the global scheduler"""
    scheduler = get_scheduler()
    scheduler.start(reconcile)
    return scheduler


def stop_scheduler() -> None:
    """Stop the global scheduler"""
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None
