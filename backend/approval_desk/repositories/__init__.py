"""Repository modules - Data access layer"""
from .record_store import RecordStore
from .store_provider import get_record_store, set_record_store, close_record_store
from .user_repo import UserRepository
from .approval_repo import ApprovalRepository
from .notification_repo import NotificationRepository
from .audit_repo import AuditRepository

__all__ = [
    "RecordStore",
    "get_record_store",
    "set_record_store",
    "close_record_store",
    "UserRepository",
    "ApprovalRepository",
    "NotificationRepository",
    "AuditRepository",
]
