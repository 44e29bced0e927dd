"""MongoDB Record Store - document database backend"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from .record_store import RecordStore, Record, Filter
from . import mongo_client
from ..domain.errors import ConflictError, ConcurrencyError, NotFoundError, StoreError
from ..utils.idgen import generate_record_id
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MongoRecordStore(RecordStore):
    """Record store over MongoDB collections; ``_id`` mirrors ``id``"""

    def __init__(self, database: Optional[Database] = None):
        self._db = database

    @property
    def db(self) -> Database:
        if self._db is None:
            with self._guard("*", "connect"):
                self._db = mongo_client.get_database()
        return self._db

    def _collection(self, name: str) -> Collection:
        return self.db[name]

    @contextmanager
    def _guard(self, collection: str, operation: str) -> Iterator[None]:
        """Translate driver errors into domain errors"""
        try:
            yield
        except DuplicateKeyError as e:
            raise ConflictError(
                f"Duplicate key in {collection}",
                details={"collection": collection, "key": (e.details or {}).get("keyValue")}
            )
        except PyMongoError as e:
            logger.error(
                f"MongoDB {operation} on {collection} failed: {e}",
                extra={"collection": collection, "action": operation}
            )
            raise StoreError(
                f"Record store unavailable during {operation}",
                details={"collection": collection}
            ) from e

    @staticmethod
    def _to_record(doc: Optional[Dict[str, Any]]) -> Optional[Record]:
        if doc is None:
            return None
        doc.pop("_id", None)
        return doc

    def get_all(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Record]:
        with self._guard(collection, "find"):
            cursor = self._collection(collection).find(filter or {})
            if sort_by:
                cursor = cursor.sort(sort_by, DESCENDING if descending else ASCENDING)
            else:
                cursor = cursor.sort("$natural", ASCENDING)
            if limit:
                cursor = cursor.limit(limit)
            return [self._to_record(doc) for doc in cursor]

    def get_by_id(self, collection: str, record_id: str) -> Record:
        with self._guard(collection, "find_one"):
            doc = self._collection(collection).find_one({"_id": record_id})
        if doc is None:
            raise NotFoundError(
                f"Record {record_id} not found in {collection}",
                details={"collection": collection, "id": record_id}
            )
        return self._to_record(doc)

    def create(self, collection: str, data: Record) -> Record:
        record = dict(data)
        record["id"] = record.get("id") or generate_record_id(collection)
        doc = dict(record)
        doc["_id"] = record["id"]

        with self._guard(collection, "insert"):
            self._collection(collection).insert_one(doc)

        logger.debug(
            f"Created record in {collection}",
            extra={"collection": collection, "record_id": record["id"]}
        )
        return record

    def update(
        self,
        collection: str,
        record_id: str,
        data: Record,
        expected: Optional[Filter] = None
    ) -> Record:
        updates = {k: v for k, v in data.items() if k not in ("id", "_id")}
        filter_query: Dict[str, Any] = {"_id": record_id}
        if expected:
            filter_query.update(expected)

        with self._guard(collection, "update"):
            result = self._collection(collection).find_one_and_update(
                filter_query,
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )

            if result is None:
                if expected and self._collection(collection).count_documents({"_id": record_id}, limit=1):
                    raise ConcurrencyError(
                        f"Record {record_id} in {collection} no longer matches the expected state",
                        details={"collection": collection, "id": record_id, "expected": expected}
                    )
                raise NotFoundError(
                    f"Record {record_id} not found in {collection}",
                    details={"collection": collection, "id": record_id}
                )

        return self._to_record(result)

    def delete(self, collection: str, record_id: str) -> None:
        with self._guard(collection, "delete"):
            result = self._collection(collection).delete_one({"_id": record_id})
        if result.deleted_count == 0:
            raise NotFoundError(
                f"Record {record_id} not found in {collection}",
                details={"collection": collection, "id": record_id}
            )

    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        with self._guard(collection, "count"):
            return self._collection(collection).count_documents(filter or {})

    def update_many(self, collection: str, filter: Filter, data: Record) -> int:
        with self._guard(collection, "update_many"):
            result = self._collection(collection).update_many(filter, {"$set": data})
        return result.modified_count

    def delete_many(self, collection: str, filter: Filter) -> int:
        with self._guard(collection, "delete_many"):
            result = self._collection(collection).delete_many(filter)
        return result.deleted_count

    def ensure_indexes(self) -> None:
        with self._guard("*", "create_indexes"):
            mongo_client.create_indexes(self.db)

    def health_check(self) -> Dict[str, Any]:
        return mongo_client.health_check()

    def close(self) -> None:
        mongo_client.close_connection()
        self._db = None
