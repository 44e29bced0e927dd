"""Audit Repository - Data access for audit events"""
from typing import Any, Dict, List, Optional

from .record_store import RecordStore, to_record
from .store_provider import get_record_store
from ..domain.models import AuditEvent, ActorContext
from ..domain.enums import AuditAction, Collection
from ..utils.logger import get_logger, get_correlation_id
from ..utils.time import utc_now

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit event operations (append-only)"""

    COLLECTION = Collection.AUDIT_EVENTS.value

    def __init__(self, store: Optional[RecordStore] = None):
        self._store = store or get_record_store()

    def create_event(
        self,
        action: AuditAction,
        actor: Optional[ActorContext] = None,
        target_id: Optional[str] = None,
        target_email: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """Create an audit event (append-only)"""
        event = AuditEvent(
            id="",
            action=action,
            actor_id=actor.id if actor else None,
            actor_email=actor.email if actor else None,
            target_id=target_id,
            target_email=target_email,
            details=details or {},
            timestamp=utc_now(),
            correlation_id=get_correlation_id() or None,
        )
        doc = self._store.create(self.COLLECTION, to_record(event, exclude={"id"}))
        event = AuditEvent.model_validate(doc)

        logger.info(
            f"Created audit event: {action.value}",
            extra={
                "action": action.value,
                "actor_id": event.actor_id,
                "user_id": target_id,
                "record_id": event.id
            }
        )
        return event

    def get_recent_events(
        self,
        actions: Optional[List[AuditAction]] = None,
        limit: int = 100
    ) -> List[AuditEvent]:
        """Get recent audit events, newest first"""
        query: Dict[str, Any] = {}
        if actions:
            query["action"] = {"$in": [a.value for a in actions]}

        docs = self._store.get_all(
            self.COLLECTION, query, sort_by="timestamp", descending=True, limit=limit
        )
        return [AuditEvent.model_validate(doc) for doc in docs]

    def get_events_for_target(self, target_id: str) -> List[AuditEvent]:
        docs = self._store.get_all(
            self.COLLECTION, {"target_id": target_id}, sort_by="timestamp", descending=True
        )
        return [AuditEvent.model_validate(doc) for doc in docs]
