"""Record Store Provider - Process-wide store selection"""
from typing import Optional

from .record_store import RecordStore
from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global store instance
_store: Optional[RecordStore] = None


def create_record_store(backend: Optional[str] = None) -> RecordStore:
    """Build a record store for the configured backend"""
    backend = (backend or settings.store_backend).lower()

    if backend == "mongo":
        from .mongo_store import MongoRecordStore
        return MongoRecordStore()
    if backend == "local":
        from .local_store import LocalRecordStore
        return LocalRecordStore(settings.local_store_path or None)

    raise ValueError(f"Unknown store backend: {backend}")


def get_record_store() -> RecordStore:
    """Get or create the global record store"""
    global _store
    if _store is None:
        _store = create_record_store()
        logger.info(f"Record store initialized: {type(_store).__name__}")
    return _store


def set_record_store(store: Optional[RecordStore]) -> None:
    """Replace the global record store (used on startup and in tests)"""
    global _store
    _store = store


def close_record_store() -> None:
    """Release the global record store"""
    global _store
    if _store is not None:
        _store.close()
        _store = None
        logger.info("Record store closed")
