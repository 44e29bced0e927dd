"""Approval Repository - Data access for approval requests"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from .record_store import RecordStore, plain
from .store_provider import get_record_store
from ..domain.models import Approval, FileAttachment
from ..domain.enums import ApprovalStatus, Collection
from ..domain.errors import NotFoundError, ApprovalNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class ApprovalRepository:
    """Repository for approval operations"""

    COLLECTION = Collection.APPROVALS.value

    def __init__(self, store: Optional[RecordStore] = None):
        self._store = store or get_record_store()

    def create_approval(
        self,
        title: str,
        description: str,
        requester_id: str,
        requester_name: Optional[str],
        assigned_approver_id: str,
        assigned_approver_name: Optional[str],
        files: List[FileAttachment]
    ) -> Approval:
        """Create a pending approval"""
        record = {
            "title": title,
            "description": description,
            "requester_id": requester_id,
            "requester_name": requester_name,
            "assigned_approver_id": assigned_approver_id,
            "assigned_approver_name": assigned_approver_name,
            "status": ApprovalStatus.PENDING.value,
            "files": [f.model_dump() for f in files],
            "signed_files": [],
            "feedback": None,
            "created_at": utc_now(),
            "processed_at": None,
            "processed_by": None,
            "notified": False,
        }
        approval = Approval.model_validate(self._store.create(self.COLLECTION, record))
        logger.info(
            f"Created approval: {approval.id}",
            extra={"approval_id": approval.id, "user_id": requester_id, "status": approval.status.value}
        )
        return approval

    def get_approval(self, approval_id: str) -> Approval:
        """Get approval by ID or raise ApprovalNotFoundError"""
        try:
            return Approval.model_validate(self._store.get_by_id(self.COLLECTION, approval_id))
        except NotFoundError:
            raise ApprovalNotFoundError(
                f"Approval {approval_id} not found",
                details={"approval_id": approval_id}
            )

    def list_approvals(
        self,
        query: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None
    ) -> List[Approval]:
        """List approvals, newest first"""
        docs = self._store.get_all(
            self.COLLECTION,
            plain(query or {}),
            sort_by="created_at",
            descending=True,
            limit=limit
        )
        return [Approval.model_validate(doc) for doc in docs]

    def count_approvals(self, query: Optional[Dict[str, Any]] = None) -> int:
        return self._store.count(self.COLLECTION, plain(query or {}))

    def apply_decision(
        self,
        approval_id: str,
        status: ApprovalStatus,
        processed_by: str,
        feedback: str,
        signed_files: List[FileAttachment],
        processed_at: Optional[datetime] = None
    ) -> Approval:
        """
        Record a decision, only if the approval is still pending.

        Raises:
            ConcurrencyError: the approval was decided by someone else first
        """
        updates = {
            "status": status.value,
            "processed_by": processed_by,
            "processed_at": processed_at or utc_now(),
            "feedback": feedback,
            "signed_files": [f.model_dump() for f in signed_files],
            "notified": False,
        }
        doc = self._store.update(
            self.COLLECTION,
            approval_id,
            updates,
            expected={"status": ApprovalStatus.PENDING.value}
        )
        return Approval.model_validate(doc)

    def mark_notified(self, approval_id: str) -> Approval:
        doc = self._store.update(self.COLLECTION, approval_id, {"notified": True})
        return Approval.model_validate(doc)

    def list_unnotified_decisions(self) -> List[Approval]:
        """Decided approvals whose notification was never persisted"""
        docs = self._store.get_all(self.COLLECTION, {
            "status": {"$ne": ApprovalStatus.PENDING.value},
            "notified": False,
        })
        return [Approval.model_validate(doc) for doc in docs]
