"""Tests for the local record store"""
import os

import pytest

from approval_desk.domain.errors import (
    NotFoundError, ConflictError, ConcurrencyError, StoreError
)
from approval_desk.repositories.local_store import LocalRecordStore
from approval_desk.utils.time import utc_now


@pytest.fixture
def local() -> LocalRecordStore:
    store = LocalRecordStore()
    store.ensure_indexes()
    return store


class TestCrud:

    def test_create_assigns_prefixed_id(self, local):
        record = local.create("approvals", {"title": "A"})
        assert record["id"].startswith("APR-")
        assert local.get_by_id("approvals", record["id"])["title"] == "A"

    def test_returned_records_are_copies(self, local):
        record = local.create("approvals", {"title": "A", "files": []})
        record["files"].append("mutated")
        assert local.get_by_id("approvals", record["id"])["files"] == []

    def test_missing_record(self, local):
        with pytest.raises(NotFoundError):
            local.get_by_id("users", "USR-missing")
        with pytest.raises(NotFoundError):
            local.delete("users", "USR-missing")
        with pytest.raises(NotFoundError):
            local.update("users", "USR-missing", {"name": "x"})

    def test_filters(self, local):
        for status in ("pending", "approved", "rejected"):
            local.create("approvals", {"status": status})

        assert local.count("approvals", {"status": "pending"}) == 1
        assert local.count("approvals", {"status": {"$ne": "pending"}}) == 2
        assert local.count("approvals", {"status": {"$in": ["pending", "approved"]}}) == 2

    def test_update_many_and_delete_many(self, local):
        for _ in range(3):
            local.create("notifications", {"user_id": "u1", "read": False})
        local.create("notifications", {"user_id": "u2", "read": False})

        assert local.update_many("notifications", {"user_id": "u1"}, {"read": True}) == 3
        assert local.update_many("notifications", {"user_id": "u1"}, {"read": True}) == 0
        assert local.delete_many("notifications", {"user_id": "u1"}) == 3
        assert local.count("notifications") == 1


class TestConstraints:

    def test_unique_email(self, local):
        local.create("users", {"email": "a@company.com"})
        with pytest.raises(ConflictError):
            local.create("users", {"email": "a@company.com"})

    def test_email_uniqueness_is_per_collection(self, local):
        local.create("users", {"email": "a@company.com"})
        local.create("pendingUsers", {"email": "a@company.com"})

    def test_conditional_update(self, local):
        record = local.create("approvals", {"status": "pending"})

        local.update("approvals", record["id"], {"status": "approved"}, expected={"status": "pending"})
        with pytest.raises(ConcurrencyError):
            local.update("approvals", record["id"], {"status": "rejected"}, expected={"status": "pending"})

        assert local.get_by_id("approvals", record["id"])["status"] == "approved"


class TestPersistence:

    def test_round_trips_through_json_file(self, tmp_path):
        path = str(tmp_path / "store.json")
        created_at = utc_now()

        first = LocalRecordStore(path)
        record = first.create("approvals", {"title": "A", "created_at": created_at})

        second = LocalRecordStore(path)
        loaded = second.get_by_id("approvals", record["id"])
        assert loaded["title"] == "A"
        assert loaded["created_at"] == created_at

    def test_unreadable_file_is_store_error(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            LocalRecordStore(str(path))

    def test_health_check(self, local):
        local.create("users", {"email": "a@company.com"})
        health = local.health_check()
        assert health["status"] == "healthy"
        assert health["backend"] == "local"
        assert health["collections"]["users"] == 1


class TestFailedWrites:

    @pytest.fixture
    def persistent(self, tmp_path) -> LocalRecordStore:
        store = LocalRecordStore(str(tmp_path / "store.json"))
        store.ensure_indexes()
        return store

    @pytest.fixture
    def broken_disk(self, monkeypatch):
        def _replace(src, dst):
            raise OSError("disk full")
        return lambda: monkeypatch.setattr(os, "replace", _replace)

    def test_failed_create_is_not_kept(self, persistent, broken_disk, monkeypatch):
        broken_disk()
        with pytest.raises(StoreError):
            persistent.create("pendingUsers", {"email": "kim@company.com"})
        assert persistent.count("pendingUsers") == 0

        # The email is not reserved by the failed write
        monkeypatch.undo()
        persistent.create("pendingUsers", {"email": "kim@company.com"})

    def test_failed_update_and_delete_keep_record(self, persistent, broken_disk):
        record = persistent.create("approvals", {"status": "pending"})
        broken_disk()

        with pytest.raises(StoreError):
            persistent.update("approvals", record["id"], {"status": "approved"}, expected={"status": "pending"})
        with pytest.raises(StoreError):
            persistent.delete("approvals", record["id"])

        assert persistent.get_by_id("approvals", record["id"])["status"] == "pending"

    def test_failed_bulk_writes_change_nothing(self, persistent, broken_disk):
        for _ in range(2):
            persistent.create("notifications", {"user_id": "u1", "read": False})
        broken_disk()

        with pytest.raises(StoreError):
            persistent.update_many("notifications", {"user_id": "u1"}, {"read": True})
        with pytest.raises(StoreError):
            persistent.delete_many("notifications", {"user_id": "u1"})

        assert persistent.count("notifications", {"read": False}) == 2

    def test_file_keeps_last_good_state(self, persistent, broken_disk, tmp_path):
        kept = persistent.create("approvals", {"title": "A"})
        broken_disk()
        with pytest.raises(StoreError):
            persistent.create("approvals", {"title": "B"})

        reloaded = LocalRecordStore(str(tmp_path / "store.json"))
        assert [r["id"] for r in reloaded.get_all("approvals")] == [kept["id"]]
