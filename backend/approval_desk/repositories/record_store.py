"""Record Store - Collection-agnostic CRUD contract shared by all backends"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

Record = Dict[str, Any]
Filter = Dict[str, Any]

# Collections whose "email" field must be unique
UNIQUE_EMAIL_COLLECTIONS = ("users", "pendingUsers")


def plain(value: Any) -> Any:
    """Strip enums down to their values, recursively"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain(v) for v in value]
    return value


def to_record(model: BaseModel, exclude: Optional[set] = None) -> Record:
    """Dump a domain model into a storable record (datetimes kept native)"""
    return plain(model.model_dump(mode="python", exclude=exclude))


class RecordStore(ABC):
    """
    Generic record store over named collections.

    Records are plain dicts. ``id`` is assigned by the store on create and is
    unique within its collection. Filters are equality matches per field;
    a value may also be ``{"$in": [...]}`` or ``{"$ne": value}``.

    Single-record operations are atomic. ``update`` with ``expected`` is a
    conditional update: it only applies when every expected field still holds
    the expected value, otherwise ``ConcurrencyError`` is raised.

    Backend I/O failures are raised as ``StoreError``.
    """

    @abstractmethod
    def get_all(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Record]:
        """Return matching records (insertion order unless sorted)"""

    @abstractmethod
    def get_by_id(self, collection: str, record_id: str) -> Record:
        """Return a record or raise NotFoundError"""

    @abstractmethod
    def create(self, collection: str, data: Record) -> Record:
        """Insert a record and return it with its assigned id"""

    @abstractmethod
    def update(
        self,
        collection: str,
        record_id: str,
        data: Record,
        expected: Optional[Filter] = None
    ) -> Record:
        """Apply a partial update and return the updated record"""

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        """Delete a record or raise NotFoundError"""

    @abstractmethod
    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        """Count matching records"""

    @abstractmethod
    def update_many(self, collection: str, filter: Filter, data: Record) -> int:
        """Apply a partial update to every matching record, return modified count"""

    @abstractmethod
    def delete_many(self, collection: str, filter: Filter) -> int:
        """Delete every matching record, return deleted count"""

    def find_one(self, collection: str, filter: Filter) -> Optional[Record]:
        """First matching record or None"""
        records = self.get_all(collection, filter, limit=1)
        return records[0] if records else None

    def ensure_indexes(self) -> None:
        """Create backend indexes / unique constraints"""

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Report backend health"""

    def close(self) -> None:
        """Release backend resources"""
