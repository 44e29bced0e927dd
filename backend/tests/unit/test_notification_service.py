"""Tests for notification dispatch and the viewer's inbox"""
import pytest

from approval_desk.domain.enums import ApprovalStatus
from approval_desk.domain.errors import NotificationNotFoundError


@pytest.fixture
def inbox(notifications, requester):
    """Three notifications for the requester, oldest first"""
    return [
        notifications.notify(requester.id, ApprovalStatus.APPROVED, f"Title {i}", f"Message {i}", f"APR-{i}")
        for i in range(3)
    ]


class TestNotify:

    def test_new_notification_is_unread(self, inbox, notifications, requester_actor):
        assert all(n.read is False for n in inbox)
        assert notifications.unread_count(requester_actor) == 3

    def test_listing_is_newest_first(self, inbox, notifications, requester_actor):
        listed = notifications.list_for_user(requester_actor)
        assert [n.id for n in listed] == [n.id for n in reversed(inbox)]


class TestViewerScope:

    def test_mark_read(self, inbox, notifications, requester_actor):
        marked = notifications.mark_read(requester_actor, inbox[0].id)
        assert marked.read is True
        assert notifications.unread_count(requester_actor) == 2
        assert len(notifications.list_for_user(requester_actor, unread_only=True)) == 2

    def test_mark_all_read(self, inbox, notifications, requester_actor):
        assert notifications.mark_all_read(requester_actor) == 3
        assert notifications.unread_count(requester_actor) == 0
        assert notifications.mark_all_read(requester_actor) == 0

    def test_delete(self, inbox, notifications, requester_actor):
        notifications.delete(requester_actor, inbox[1].id)
        assert inbox[1].id not in [n.id for n in notifications.list_for_user(requester_actor)]

    def test_clear_all(self, inbox, notifications, requester_actor):
        assert notifications.clear_all(requester_actor) == 3
        assert notifications.list_for_user(requester_actor) == []

    def test_foreign_notification_is_not_found(self, inbox, notifications, approver_actor, requester_actor):
        with pytest.raises(NotificationNotFoundError):
            notifications.mark_read(approver_actor, inbox[0].id)
        with pytest.raises(NotificationNotFoundError):
            notifications.delete(approver_actor, inbox[0].id)
        assert notifications.unread_count(requester_actor) == 3

    def test_bulk_operations_stay_scoped(self, inbox, notifications, approver, approver_actor, requester_actor):
        notifications.notify(approver.id, ApprovalStatus.REJECTED, "Other", "Other")
        notifications.clear_all(requester_actor)
        assert notifications.unread_count(approver_actor) == 1
