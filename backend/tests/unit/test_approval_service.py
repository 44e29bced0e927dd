"""Tests for the approval lifecycle"""
import pytest

from approval_desk.domain.enums import Role, ApprovalStatus, Decision
from approval_desk.domain.errors import (
    ValidationError, AuthorizationError, StateError, ApprovalNotFoundError
)
from approval_desk.domain.models import FileAttachment
from approval_desk.repositories.approval_repo import ApprovalRepository

CONTRACT = FileAttachment(name="contract.pdf", content_handle="data:application/pdf;base64,JVBERi0=")
SIGNED = FileAttachment(name="contract-signed.pdf", content_handle="data:application/pdf;base64,U2lnbmVk")


@pytest.fixture
def pending(approvals, requester_actor, approver):
    return approvals.submit_request(
        requester_actor,
        title="Vendor contract",
        description="Annual renewal",
        assigned_approver_id=approver.id,
        files=[CONTRACT]
    )


class TestSubmitRequest:

    def test_creates_pending_approval(self, pending, requester, approver):
        assert pending.status == ApprovalStatus.PENDING
        assert pending.requester_id == requester.id
        assert pending.assigned_approver_id == approver.id
        assert pending.requester_name == requester.name
        assert pending.assigned_approver_name == approver.name
        assert pending.files == [CONTRACT]
        assert pending.signed_files == []
        assert pending.feedback is None
        assert pending.processed_at is None
        assert pending.processed_by is None

    def test_no_notification_on_submit(self, pending, notifications, requester_actor, approver):
        assert notifications.unread_count(requester_actor) == 0
        assert notifications.unread_count(approver.to_actor()) == 0

    @pytest.mark.parametrize("title,description", [
        ("", "Annual renewal"),
        ("Vendor contract", "   "),
    ])
    def test_empty_fields_rejected(self, approvals, requester_actor, approver, title, description):
        with pytest.raises(ValidationError):
            approvals.submit_request(requester_actor, title, description, approver.id)

    def test_unknown_approver_rejected(self, approvals, requester_actor):
        with pytest.raises(ValidationError):
            approvals.submit_request(requester_actor, "Title", "Description", "USR-missing")

    def test_requester_cannot_be_assigned(self, approvals, requester_actor, other_requester):
        with pytest.raises(ValidationError):
            approvals.submit_request(requester_actor, "Title", "Description", other_requester.id)

    def test_admin_can_be_assigned(self, approvals, requester_actor, admin):
        approval = approvals.submit_request(requester_actor, "Title", "Description", admin.id)
        assert approval.assigned_approver_id == admin.id


class TestProcessRequest:

    def test_approve_notifies_requester_once(self, approvals, notifications, pending,
                                             approver_actor, requester_actor):
        approved = approvals.process_request(
            approver_actor, pending.id, Decision.APPROVED, feedback="Looks good", signed_files=[SIGNED]
        )

        assert approved.status == ApprovalStatus.APPROVED
        assert approved.processed_by == approver_actor.id
        assert approved.processed_at is not None
        assert approved.feedback == "Looks good"
        assert approved.signed_files == [SIGNED]
        assert approved.notified is True

        inbox = notifications.list_for_user(requester_actor)
        assert len(inbox) == 1
        assert inbox[0].type == ApprovalStatus.APPROVED
        assert inbox[0].approval_id == pending.id
        assert inbox[0].read is False
        assert "1 signed file" in inbox[0].message

    def test_reject_discards_signed_files(self, approvals, pending, approver_actor):
        rejected = approvals.process_request(
            approver_actor, pending.id, Decision.REJECTED, feedback=None, signed_files=[SIGNED]
        )
        assert rejected.status == ApprovalStatus.REJECTED
        assert rejected.signed_files == []
        assert rejected.feedback == ""

    def test_reject_also_notifies(self, approvals, notifications, pending, approver_actor, requester_actor):
        approvals.process_request(approver_actor, pending.id, Decision.REJECTED, feedback="Too expensive")
        inbox = notifications.list_for_user(requester_actor)
        assert [n.type for n in inbox] == [ApprovalStatus.REJECTED]

    def test_unauthorized_approver_leaves_state_unchanged(self, approvals, notifications, pending,
                                                          other_approver, requester_actor):
        with pytest.raises(AuthorizationError):
            approvals.process_request(other_approver.to_actor(), pending.id, Decision.APPROVED)

        current = ApprovalRepository().get_approval(pending.id)
        assert current.status == ApprovalStatus.PENDING
        assert current.processed_at is None
        assert notifications.unread_count(requester_actor) == 0

    def test_requester_cannot_process_own_request(self, approvals, pending, requester_actor):
        with pytest.raises(AuthorizationError):
            approvals.process_request(requester_actor, pending.id, Decision.APPROVED)

    def test_double_processing_keeps_first_decision(self, approvals, notifications, pending,
                                                    approver_actor, requester_actor):
        first = approvals.process_request(approver_actor, pending.id, Decision.APPROVED)

        with pytest.raises(StateError):
            approvals.process_request(approver_actor, pending.id, Decision.REJECTED)

        current = ApprovalRepository().get_approval(pending.id)
        assert current.status == ApprovalStatus.APPROVED
        assert current.processed_at == first.processed_at
        assert len(notifications.list_for_user(requester_actor)) == 1

    def test_admin_gets_state_error_on_decided(self, approvals, pending, approver_actor, admin_actor):
        approvals.process_request(approver_actor, pending.id, Decision.REJECTED)
        with pytest.raises(StateError):
            approvals.process_request(admin_actor, pending.id, Decision.APPROVED)

    def test_admin_can_process_any_pending(self, approvals, pending, admin_actor):
        approved = approvals.process_request(admin_actor, pending.id, Decision.APPROVED)
        assert approved.processed_by == admin_actor.id

    def test_missing_approval(self, approvals, approver_actor):
        with pytest.raises(ApprovalNotFoundError):
            approvals.process_request(approver_actor, "APR-missing", Decision.APPROVED)

    def test_lost_race_is_state_error(self, approvals, store, pending, approver_actor, admin_actor):
        # Another writer decides between the read and the conditional update
        original_get = approvals.repo.get_approval
        calls = {"n": 0}

        def stale_then_fresh(approval_id):
            calls["n"] += 1
            approval = original_get(approval_id)
            if calls["n"] == 1:
                store.update("approvals", approval_id, {"status": "rejected"})
            return approval

        approvals.repo.get_approval = stale_then_fresh

        with pytest.raises(StateError):
            approvals.process_request(approver_actor, pending.id, Decision.APPROVED)
        assert original_get(pending.id).status == ApprovalStatus.REJECTED

    def test_deleted_approver_only_admin_can_process(self, approvals, onboarding, pending,
                                                     approver, admin_actor, requester_actor):
        onboarding.delete_user(admin_actor, approver.id)

        with pytest.raises(AuthorizationError):
            approvals.process_request(requester_actor, pending.id, Decision.APPROVED)

        decided = approvals.process_request(admin_actor, pending.id, Decision.APPROVED)
        assert decided.assigned_approver_id == approver.id


class TestListings:

    def test_requester_never_sees_other_requests(self, approvals, approver, requester_actor,
                                                 other_requester):
        approvals.submit_request(requester_actor, "Mine", "Mine", approver.id)
        approvals.submit_request(other_requester.to_actor(), "Theirs", "Theirs", approver.id)

        visible = approvals.list_visible(requester_actor)
        assert [a.title for a in visible] == ["Mine"]
        assert all(a.requester_id == requester_actor.id for a in approvals.list_my_requests(requester_actor))

    def test_approver_sees_assigned_only(self, approvals, approver, other_approver, requester_actor):
        approvals.submit_request(requester_actor, "For Dana", "x", approver.id)
        approvals.submit_request(requester_actor, "For Omar", "x", other_approver.id)

        assert [a.title for a in approvals.list_visible(approver.to_actor())] == ["For Dana"]
        assert approvals.count_global_pending() == 2

    def test_admin_sees_all(self, approvals, approver, other_approver, requester_actor, admin_actor):
        approvals.submit_request(requester_actor, "One", "x", approver.id)
        approvals.submit_request(requester_actor, "Two", "x", other_approver.id)

        assert len(approvals.list_visible(admin_actor)) == 2
        assert len(approvals.list_all(admin_actor)) == 2
        assert len(approvals.list_pending_for_approver(admin_actor)) == 2

    def test_list_all_is_admin_only(self, approvals, approver_actor):
        with pytest.raises(AuthorizationError):
            approvals.list_all(approver_actor)

    def test_pending_and_history_split(self, approvals, approver, requester_actor, approver_actor):
        first = approvals.submit_request(requester_actor, "First", "x", approver.id)
        approvals.submit_request(requester_actor, "Second", "x", approver.id)
        approvals.process_request(approver_actor, first.id, Decision.APPROVED)

        assert [a.title for a in approvals.list_pending_for_approver(approver_actor)] == ["Second"]
        assert [a.title for a in approvals.list_history_for_approver(approver_actor)] == ["First"]

    def test_my_requests_status_filter(self, approvals, approver, requester_actor, approver_actor):
        first = approvals.submit_request(requester_actor, "First", "x", approver.id)
        approvals.submit_request(requester_actor, "Second", "x", approver.id)
        approvals.process_request(approver_actor, first.id, Decision.REJECTED)

        rejected = approvals.list_my_requests(requester_actor, ApprovalStatus.REJECTED)
        assert [a.id for a in rejected] == [first.id]

    def test_get_approval_checks_visibility(self, approvals, pending, other_requester, requester_actor):
        assert approvals.get_approval(requester_actor, pending.id).id == pending.id
        with pytest.raises(AuthorizationError):
            approvals.get_approval(other_requester.to_actor(), pending.id)

    def test_approver_candidates(self, approvals, admin, approver, requester):
        candidates = {u.id: u.role for u in approvals.list_approver_candidates()}
        assert candidates == {admin.id: Role.ADMIN, approver.id: Role.APPROVER}
