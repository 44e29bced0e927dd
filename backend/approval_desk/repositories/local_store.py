"""Local Record Store - in-process collections with optional JSON file persistence"""
import copy
import json
import os
import tempfile
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .record_store import RecordStore, Record, Filter, UNIQUE_EMAIL_COLLECTIONS
from ..domain.errors import ConflictError, ConcurrencyError, NotFoundError, StoreError
from ..utils.idgen import generate_record_id
from ..utils.logger import get_logger
from ..utils.time import format_iso, parse_iso

logger = get_logger(__name__)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {"$date": format_iso(value)}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and "$date" in obj:
        return parse_iso(obj["$date"])
    return obj


def _matches(record: Record, filter: Optional[Filter]) -> bool:
    if not filter:
        return True
    for field, condition in filter.items():
        value = record.get(field)
        if isinstance(condition, dict):
            if "$in" in condition and value not in condition["$in"]:
                return False
            if "$ne" in condition and value == condition["$ne"]:
                return False
        elif value != condition:
            return False
    return True


class LocalRecordStore(RecordStore):
    """
    Record store kept in process memory.

    When ``path`` is given every mutation is flushed to a JSON file (written
    to a temp file and atomically replaced), and the file is loaded on start.
    Mutations are built on a copy of the collection and only swapped in once
    the file write succeeded, so a StoreError leaves the store as it was.
    All operations hold one lock, so the conditional update is a real
    compare-and-set.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = path or None
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[str, Record]] = {}
        self._unique_fields: Dict[str, List[str]] = {}
        if self._path:
            self._load()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> None:
        if not os.path.exists(self._path):
            return
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                raw = json.load(fh, object_hook=_decode)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load local store from {self._path}: {e}")
            raise StoreError("Local record store could not be loaded", details={"path": self._path}) from e

        self._collections = {
            name: {record["id"]: record for record in records}
            for name, records in raw.items()
        }
        logger.info(f"Loaded local store from {self._path}")

    def _flush(self, collections: Dict[str, Dict[str, Record]]) -> None:
        if not self._path:
            return
        payload = {name: list(records.values()) for name, records in collections.items()}
        directory = os.path.dirname(os.path.abspath(self._path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, default=_encode, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(f"Failed to write local store to {self._path}: {e}")
            raise StoreError("Local record store could not be written", details={"path": self._path}) from e

    def _commit(self, collection: str, records: Dict[str, Record]) -> None:
        """Persist ``records`` as the new content of ``collection``, then swap it in"""
        self._flush({**self._collections, collection: records})
        self._collections[collection] = records

    # =========================================================================
    # Helpers
    # =========================================================================

    def _records(self, collection: str) -> Dict[str, Record]:
        return self._collections.setdefault(collection, {})

    def _get_or_raise(self, collection: str, record_id: str) -> Record:
        record = self._records(collection).get(record_id)
        if record is None:
            raise NotFoundError(
                f"Record {record_id} not found in {collection}",
                details={"collection": collection, "id": record_id}
            )
        return record

    def _check_unique(self, collection: str, candidate: Record) -> None:
        for field in self._unique_fields.get(collection, []):
            value = candidate.get(field)
            for other in self._records(collection).values():
                if other["id"] != candidate["id"] and other.get(field) == value:
                    raise ConflictError(
                        f"Duplicate key in {collection}",
                        details={"collection": collection, "key": {field: value}}
                    )

    # =========================================================================
    # RecordStore
    # =========================================================================

    def get_all(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Record]:
        with self._lock:
            records = [r for r in self._records(collection).values() if _matches(r, filter)]
            if sort_by:
                # Ties keep insertion order, reversed when descending
                if descending:
                    records.reverse()
                records.sort(key=lambda r: (r.get(sort_by) is not None, r.get(sort_by)), reverse=descending)
            if limit:
                records = records[:limit]
            return copy.deepcopy(records)

    def get_by_id(self, collection: str, record_id: str) -> Record:
        with self._lock:
            return copy.deepcopy(self._get_or_raise(collection, record_id))

    def create(self, collection: str, data: Record) -> Record:
        with self._lock:
            record = copy.deepcopy(data)
            record["id"] = record.get("id") or generate_record_id(collection)
            if record["id"] in self._records(collection):
                raise ConflictError(
                    f"Record {record['id']} already exists in {collection}",
                    details={"collection": collection, "id": record["id"]}
                )
            self._check_unique(collection, record)
            self._commit(collection, {**self._records(collection), record["id"]: record})
            return copy.deepcopy(record)

    def update(
        self,
        collection: str,
        record_id: str,
        data: Record,
        expected: Optional[Filter] = None
    ) -> Record:
        with self._lock:
            current = self._get_or_raise(collection, record_id)
            if expected and not _matches(current, expected):
                raise ConcurrencyError(
                    f"Record {record_id} in {collection} no longer matches the expected state",
                    details={"collection": collection, "id": record_id, "expected": expected}
                )
            updated = copy.deepcopy(current)
            updated.update({k: copy.deepcopy(v) for k, v in data.items() if k != "id"})
            self._check_unique(collection, updated)
            self._commit(collection, {**self._records(collection), record_id: updated})
            return copy.deepcopy(updated)

    def delete(self, collection: str, record_id: str) -> None:
        with self._lock:
            self._get_or_raise(collection, record_id)
            remaining = dict(self._records(collection))
            del remaining[record_id]
            self._commit(collection, remaining)

    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        with self._lock:
            return sum(1 for r in self._records(collection).values() if _matches(r, filter))

    def update_many(self, collection: str, filter: Filter, data: Record) -> int:
        with self._lock:
            records = dict(self._records(collection))
            modified = 0
            for record_id, record in records.items():
                if _matches(record, filter):
                    changes = {k: v for k, v in data.items() if k != "id" and record.get(k) != v}
                    if changes:
                        records[record_id] = {**record, **copy.deepcopy(changes)}
                        modified += 1
            if modified:
                self._commit(collection, records)
            return modified

    def delete_many(self, collection: str, filter: Filter) -> int:
        with self._lock:
            records = self._records(collection)
            remaining = {rid: r for rid, r in records.items() if not _matches(r, filter)}
            removed = len(records) - len(remaining)
            if removed:
                self._commit(collection, remaining)
            return removed

    def ensure_indexes(self) -> None:
        with self._lock:
            for collection in UNIQUE_EMAIL_COLLECTIONS:
                self._unique_fields[collection] = ["email"]

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "status": "healthy",
                "backend": "local",
                "persistent": bool(self._path),
                "collections": {name: len(records) for name, records in self._collections.items()},
            }
