"""API tests through the FastAPI test client"""
import pytest
from fastapi.testclient import TestClient

from approval_desk.main import app
from approval_desk.config.settings import settings
from tests.conftest import PASSWORD

API = "/api/v1"


@pytest.fixture
def client(store, sessions) -> TestClient:
    return TestClient(app)


def _login(client: TestClient, email: str, password: str = PASSWORD) -> dict:
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client, admin):
    return _login(client, admin.email)


@pytest.fixture
def approver_headers(client, approver):
    return _login(client, approver.email)


@pytest.fixture
def requester_headers(client, requester):
    return _login(client, requester.email)


class TestHealth:

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Approval Desk"

    def test_health_reports_store(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["store"]["backend"] == "local"

    def test_correlation_id_echoed(self, client):
        response = client.get("/", headers={"X-Correlation-Id": "COR-test"})
        assert response.headers["X-Correlation-Id"] == "COR-test"


class TestAuth:

    def test_signup_then_approve_then_login(self, client, admin_headers):
        signup = client.post(f"{API}/auth/signup", json={
            "name": "Kim", "email": "kim@company.com", "password": "secret1", "role": "requester"
        })
        assert signup.status_code == 201
        pending_id = signup.json()["pending_user_id"]

        blocked = client.post(f"{API}/auth/login", json={"email": "kim@company.com", "password": "secret1"})
        assert blocked.status_code == 401
        assert blocked.json()["error"]["code"] == "ACCOUNT_PENDING"

        approved = client.post(f"{API}/users/pending/{pending_id}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

        headers = _login(client, "kim@company.com", "secret1")
        me = client.get(f"{API}/auth/me", headers=headers).json()
        assert me["email"] == "kim@company.com"
        assert "password_hash" not in me

    def test_duplicate_signup_is_conflict(self, client, requester):
        response = client.post(f"{API}/auth/signup", json={
            "name": "Riley", "email": requester.email, "password": "secret1", "role": "requester"
        })
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_IN_USE"

    def test_invalid_signup_is_bad_request(self, client):
        response = client.post(f"{API}/auth/signup", json={
            "name": "Kim", "email": "kim@company.com", "password": "123", "role": "requester"
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_missing_token(self, client):
        assert client.get(f"{API}/approvals").status_code == 401

    def test_logout_revokes_token(self, client, requester_headers):
        assert client.post(f"{API}/auth/logout", headers=requester_headers).status_code == 200
        assert client.get(f"{API}/auth/me", headers=requester_headers).status_code == 401


class TestApprovalFlow:

    def _submit(self, client, headers, approver_id):
        response = client.post(f"{API}/approvals", headers=headers, json={
            "title": "Vendor contract",
            "description": "Annual renewal",
            "assigned_approver_id": approver_id,
            "files": [{"name": "contract.pdf", "content_handle": "data:application/pdf;base64,JVBERi0="}],
        })
        assert response.status_code == 201, response.text
        return response.json()

    def test_submit_approve_notify(self, client, approver, requester_headers, approver_headers):
        approval = self._submit(client, requester_headers, approver.id)
        assert approval["status"] == "pending"

        pending = client.get(f"{API}/approvals/pending", headers=approver_headers).json()
        assert [a["id"] for a in pending["items"]] == [approval["id"]]

        decided = client.post(f"{API}/approvals/{approval['id']}/approve", headers=approver_headers, json={
            "feedback": "Signed",
            "signed_files": [{"name": "signed.pdf", "content_handle": "data:application/pdf;base64,U2ln"}],
        })
        assert decided.status_code == 200
        assert decided.json()["status"] == "approved"
        assert len(decided.json()["signed_files"]) == 1

        count = client.get(f"{API}/notifications/unread-count", headers=requester_headers).json()
        assert count["unread_count"] == 1

        inbox = client.get(f"{API}/notifications", headers=requester_headers).json()
        assert inbox["items"][0]["approval_id"] == approval["id"]
        assert inbox["items"][0]["time_ago"] == "just now"

    def test_second_decision_is_conflict(self, client, approver, requester_headers, approver_headers):
        approval = self._submit(client, requester_headers, approver.id)
        url = f"{API}/approvals/{approval['id']}"

        assert client.post(f"{url}/reject", headers=approver_headers, json={}).status_code == 200
        again = client.post(f"{url}/approve", headers=approver_headers, json={})
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "INVALID_STATE"

    def test_unassigned_approver_is_forbidden(self, client, approver, other_approver, requester_headers):
        approval = self._submit(client, requester_headers, approver.id)
        headers = _login(client, other_approver.email)

        response = client.post(f"{API}/approvals/{approval['id']}/approve", headers=headers, json={})
        assert response.status_code == 403
        assert client.get(f"{API}/approvals/{approval['id']}", headers=headers).status_code == 403

    def test_unknown_approval_is_not_found(self, client, approver_headers):
        response = client.post(f"{API}/approvals/APR-missing/approve", headers=approver_headers, json={})
        assert response.status_code == 404

    def test_oversized_attachment_rejected(self, client, approver, requester_headers, monkeypatch):
        monkeypatch.setattr(settings, "attachments_max_mb", 1)
        handle = "x" * (settings.attachments_max_bytes + 1)
        response = client.post(f"{API}/approvals", headers=requester_headers, json={
            "title": "Big", "description": "Big", "assigned_approver_id": approver.id,
            "files": [{"name": "big.bin", "content_handle": handle}],
        })
        assert response.status_code == 400

    def test_all_is_admin_only(self, client, requester_headers, admin_headers):
        assert client.get(f"{API}/approvals/all", headers=requester_headers).status_code == 403
        assert client.get(f"{API}/approvals/all", headers=admin_headers).status_code == 200

    def test_approver_candidates(self, client, admin, approver, requester_headers):
        ids = {u["id"] for u in client.get(f"{API}/approvals/approvers", headers=requester_headers).json()}
        assert ids == {admin.id, approver.id}


class TestUsers:

    def test_non_admin_cannot_list_users(self, client, requester_headers):
        assert client.get(f"{API}/users", headers=requester_headers).status_code == 403

    def test_register_change_role_delete(self, client, admin_headers):
        created = client.post(f"{API}/users", headers=admin_headers, json={
            "name": "Lee", "email": "lee@company.com", "password": "secret1", "role": "requester"
        })
        assert created.status_code == 201
        user_id = created.json()["id"]

        changed = client.patch(f"{API}/users/{user_id}/role", headers=admin_headers, json={"role": "approver"})
        assert changed.json()["role"] == "approver"

        assert client.delete(f"{API}/users/{user_id}", headers=admin_headers).status_code == 200
        users = client.get(f"{API}/users", headers=admin_headers).json()
        assert user_id not in [u["id"] for u in users["items"]]

    def test_deleted_admin_loses_session_and_last_admin_kept(self, client, admin, make_user):
        from approval_desk.domain.enums import Role

        other = make_user("Second Admin", "second@company.com", Role.ADMIN)
        other_headers = _login(client, other.email)
        admin_headers = _login(client, admin.email)

        assert client.delete(f"{API}/users/{admin.id}", headers=other_headers).status_code == 200
        # The deleted admin's session is gone with the account
        assert client.delete(f"{API}/users/{other.id}", headers=admin_headers).status_code == 401

        last_admin = client.delete(f"{API}/users/{other.id}", headers=other_headers)
        assert last_admin.status_code == 409
        assert last_admin.json()["error"]["code"] == "LAST_ADMIN"

    def test_reject_pending_signup(self, client, admin_headers):
        signup = client.post(f"{API}/auth/signup", json={
            "name": "Kim", "email": "kim@company.com", "password": "secret1", "role": "approver"
        }).json()

        rejected = client.post(f"{API}/users/pending/{signup['pending_user_id']}/reject", headers=admin_headers)
        assert rejected.status_code == 200
        assert client.get(f"{API}/users/pending", headers=admin_headers).json()["total"] == 0


class TestNotificationsAndDashboard:

    def test_notification_mutations(self, client, notifications, requester, requester_headers):
        from approval_desk.domain.enums import ApprovalStatus

        first = notifications.notify(requester.id, ApprovalStatus.APPROVED, "One", "One")
        notifications.notify(requester.id, ApprovalStatus.REJECTED, "Two", "Two")

        read = client.post(f"{API}/notifications/{first.id}/read", headers=requester_headers)
        assert read.json()["read"] is True

        assert client.post(f"{API}/notifications/read-all", headers=requester_headers).json()["marked_count"] == 1
        assert client.delete(f"{API}/notifications/{first.id}", headers=requester_headers).status_code == 200
        assert client.delete(f"{API}/notifications/{first.id}", headers=requester_headers).status_code == 404
        assert client.delete(f"{API}/notifications", headers=requester_headers).json()["marked_count"] == 1

    def test_dashboard_by_role(self, client, approver, requester_headers, admin_headers):
        client.post(f"{API}/approvals", headers=requester_headers, json={
            "title": "T", "description": "D", "assigned_approver_id": approver.id
        })

        mine = client.get(f"{API}/dashboard", headers=requester_headers).json()
        assert mine["role"] == "requester"
        assert mine["counts"] == {"total": 1, "pending": 1, "approved": 0, "rejected": 0}

        overall = client.get(f"{API}/dashboard", headers=admin_headers).json()
        assert overall["counts"]["pending"] == 1
        assert overall["badges"]["pending_approvals"] == 1


class TestErrorResponses:

    def test_store_outage_asks_client_to_retry(self, client, store):
        store.fail_on.add(("create", "pendingUsers"))
        response = client.post(f"{API}/auth/signup", json={
            "name": "Kim", "email": "kim@company.com", "password": "secret1", "role": "requester"
        })

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "5"
        assert response.json()["error"] == {
            "code": "STORE_ERROR", "message": "Simulated create failure on pendingUsers", "details": {}
        }

    def test_failed_login_challenges_for_bearer(self, client, requester):
        response = client.post(f"{API}/auth/login", json={"email": requester.email, "password": "wrong-pass"})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_validation_failure_masks_password(self, client, caplog):
        response = client.post(f"{API}/auth/login", json={"password": "hunter22"})

        assert response.status_code == 400
        assert "hunter22" not in response.text
        assert "hunter22" not in caplog.text


class TestLifespan:

    def test_startup_seeds_bootstrap_admin(self, store, sessions):
        with TestClient(app) as client:
            headers = _login(client, settings.bootstrap_admin_email, settings.bootstrap_admin_password)
            assert client.get(f"{API}/auth/me", headers=headers).json()["role"] == "admin"
