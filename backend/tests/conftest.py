"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
Every test runs against a fresh in-memory LocalRecordStore.
"""

import os

# Settings are read at import time
os.environ["STORE_BACKEND"] = "local"
os.environ["LOCAL_STORE_PATH"] = ""
os.environ["LOG_TO_FILE"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from typing import Generator, Optional, Set, Tuple

from approval_desk.domain.enums import Role
from approval_desk.domain.errors import StoreError
from approval_desk.domain.models import User, ActorContext
from approval_desk.repositories.local_store import LocalRecordStore
from approval_desk.repositories.store_provider import set_record_store
from approval_desk.repositories.user_repo import UserRepository
from approval_desk.services.approval_service import ApprovalService
from approval_desk.services.dashboard_service import DashboardService
from approval_desk.services.notification_service import NotificationService
from approval_desk.services.onboarding_service import OnboardingService
from approval_desk.services.session_service import SessionManager, set_session_manager
from approval_desk.utils.passwords import hash_password

PASSWORD = "secret123"


class FailingRecordStore(LocalRecordStore):
    """
    Local store that raises StoreError for selected (operation, collection) pairs

    ``fail_on`` fails before the write; ``fail_after`` applies the write and
    then fails, like a lost acknowledgement from a remote database.
    """

    def __init__(self, path: Optional[str] = None):
        super().__init__(path)
        self.fail_on: Set[Tuple[str, str]] = set()
        self.fail_after: Set[Tuple[str, str]] = set()

    def _run(self, operation: str, collection: str, write):
        key = (operation, collection)
        if key in self.fail_on:
            raise StoreError(f"Simulated {operation} failure on {collection}")
        result = write()
        if key in self.fail_after:
            raise StoreError(f"Simulated lost {operation} acknowledgement on {collection}")
        return result

    def create(self, collection, data):
        return self._run("create", collection, lambda: super(FailingRecordStore, self).create(collection, data))

    def update(self, collection, record_id, data, expected=None):
        return self._run(
            "update", collection,
            lambda: super(FailingRecordStore, self).update(collection, record_id, data, expected)
        )

    def delete(self, collection, record_id):
        return self._run("delete", collection, lambda: super(FailingRecordStore, self).delete(collection, record_id))


@pytest.fixture(scope="session")
def password_hash() -> str:
    """One bcrypt hash shared by every seeded user"""
    return hash_password(PASSWORD)


@pytest.fixture
def store() -> Generator[FailingRecordStore, None, None]:
    """Fresh record store, installed as the process-wide store"""
    record_store = FailingRecordStore()
    record_store.ensure_indexes()
    set_record_store(record_store)
    yield record_store
    set_record_store(None)


@pytest.fixture
def sessions(store) -> Generator[SessionManager, None, None]:
    manager = SessionManager(store)
    set_session_manager(manager)
    yield manager
    manager.close_all()
    set_session_manager(None)


@pytest.fixture
def onboarding(store) -> OnboardingService:
    return OnboardingService(store)


@pytest.fixture
def approvals(store) -> ApprovalService:
    return ApprovalService(store)


@pytest.fixture
def notifications(store) -> NotificationService:
    return NotificationService(store)


@pytest.fixture
def dashboard(store) -> DashboardService:
    return DashboardService(store)


@pytest.fixture
def make_user(store, password_hash):
    """Factory creating approved users directly in the store"""
    repo = UserRepository(store)

    def _make(name: str, email: str, role: Role) -> User:
        return repo.create_user(name, email, password_hash, role)

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user("Ada Admin", "admin@company.com", Role.ADMIN)


@pytest.fixture
def approver(make_user) -> User:
    return make_user("Dana Approver", "dana@company.com", Role.APPROVER)


@pytest.fixture
def other_approver(make_user) -> User:
    return make_user("Omar Approver", "omar@company.com", Role.APPROVER)


@pytest.fixture
def requester(make_user) -> User:
    return make_user("Riley Requester", "riley@company.com", Role.REQUESTER)


@pytest.fixture
def other_requester(make_user) -> User:
    return make_user("Sam Requester", "sam@company.com", Role.REQUESTER)


@pytest.fixture
def admin_actor(admin) -> ActorContext:
    return admin.to_actor()


@pytest.fixture
def approver_actor(approver) -> ActorContext:
    return approver.to_actor()


@pytest.fixture
def requester_actor(requester) -> ActorContext:
    return requester.to_actor()
