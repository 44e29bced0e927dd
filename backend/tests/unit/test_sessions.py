"""Tests for login, sessions and the refresh scheduler"""
import pytest

from approval_desk.domain.enums import Role, ApprovalStatus
from approval_desk.domain.errors import AuthenticationError
from approval_desk.scheduler.refresh_scheduler import RefreshScheduler
from approval_desk.services.auth_service import AuthService
from approval_desk.services.session_service import SessionManager
from tests.conftest import PASSWORD


@pytest.fixture
def scheduler():
    refresh = RefreshScheduler(refresh_interval_seconds=3600, reconcile_interval_seconds=3600)
    yield refresh
    refresh.stop()


@pytest.fixture
def auth(sessions) -> AuthService:
    return AuthService(sessions=sessions)


class TestLogin:

    def test_login_returns_user_and_token(self, auth, requester):
        user, token = auth.login(requester.email, PASSWORD)
        assert user.id == requester.id

        actor = auth.authenticate(f"Bearer {token}")
        assert actor.id == requester.id
        assert actor.session_id

    @pytest.mark.parametrize("email,password", [
        ("riley@company.com", "wrong-password"),
        ("nobody@company.com", PASSWORD),
        ("RILEY@company.com", PASSWORD),
    ])
    def test_bad_credentials(self, auth, requester, email, password):
        with pytest.raises(AuthenticationError):
            auth.login(email, password)

    def test_logout_revokes_token(self, auth, requester):
        _, token = auth.login(requester.email, PASSWORD)
        actor = auth.authenticate(token)

        auth.logout(actor.session_id)

        with pytest.raises(AuthenticationError):
            auth.authenticate(token)

    def test_role_is_reloaded_per_request(self, auth, onboarding, admin_actor, requester):
        _, token = auth.login(requester.email, PASSWORD)
        onboarding.change_role(admin_actor, requester.id, Role.APPROVER)
        assert auth.authenticate(token).role == Role.APPROVER

    def test_deleted_user_loses_session(self, auth, onboarding, admin_actor, requester):
        _, token = auth.login(requester.email, PASSWORD)
        onboarding.delete_user(admin_actor, requester.id)
        with pytest.raises(AuthenticationError):
            auth.authenticate(token)

    def test_garbage_token(self, auth):
        with pytest.raises(AuthenticationError):
            auth.authenticate("Bearer not-a-jwt")


class TestSessionRefresh:

    def test_open_computes_first_snapshot(self, sessions, requester):
        session = sessions.open(requester)
        assert session.dashboard is not None
        assert session.dashboard.role == Role.REQUESTER
        assert session.unread_count == 0

    def test_refresh_picks_up_new_notifications(self, sessions, notifications, requester):
        session = sessions.open(requester)
        notifications.notify(requester.id, ApprovalStatus.APPROVED, "Done", "Done")

        sessions.refresh(session.id)
        assert session.unread_count == 1

    def test_closed_session_never_refreshes(self, sessions, requester):
        session = sessions.open(requester)
        first = session.dashboard
        sessions.close(session.id)

        assert sessions.refresh(session.id) is None
        assert session.closed
        assert session.dashboard is first

    def test_expired_session_is_rejected(self, store, requester):
        manager = SessionManager(store, ttl_minutes=1)
        session = manager.open(requester)
        session.expires_at = session.created_at

        with pytest.raises(AuthenticationError):
            manager.get(session.id)


class TestRefreshScheduler:

    def test_session_job_lifecycle(self, store, scheduler, requester):
        manager = SessionManager(store, scheduler=scheduler)
        session = manager.open(requester)
        assert scheduler.session_job_ids() == [f"refresh:{session.id}"]

        manager.close(session.id)
        assert scheduler.session_job_ids() == []
        assert scheduler.cancel_session_refresh(session.id) is False

    def test_start_registers_reconcile_job(self, scheduler):
        scheduler.start(reconcile=lambda: None)
        assert scheduler.is_running
        assert scheduler.scheduler.get_job("reconcile") is not None

        scheduler.stop()
        assert not scheduler.is_running

    def test_close_all_clears_jobs(self, store, scheduler, requester, approver):
        manager = SessionManager(store, scheduler=scheduler)
        manager.open(requester)
        manager.open(approver)
        assert len(scheduler.session_job_ids()) == 2

        manager.close_all()
        assert scheduler.session_job_ids() == []
        assert manager.active_sessions() == []
