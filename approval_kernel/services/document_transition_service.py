"""
approval_kernel.services.document_transition_service -- Decide documents.

Responsibility:
    Applies exactly one approve or reject transition to one backing
    document row.  Records who decided, when, and for rejections why.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.  Flushes
    within the caller's transaction and never commits.

Invariants enforced:
    - Only documents in a pending-like status may be decided.
    - One call performs one transition; there is no retry.

Failure modes:
    - DocumentNotFoundError if the row does not exist.
    - DocumentNotPendingError if the row already left the pending set
      (someone else decided it first).
    - InvalidReasonError if a rejection arrives without a reason.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from approval_kernel.domain.approval_item import ApprovalAction, RequestType
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.domain.rejection_gate import require_reason
from approval_kernel.exceptions import DocumentNotFoundError, DocumentNotPendingError
from approval_kernel.logging_config import get_logger
from approval_kernel.models.documents import DOCUMENT_MODELS, PendingDocumentMixin

logger = get_logger("services.document_transition")


@dataclass(frozen=True)
class DocumentLifecycle:
    """Status vocabulary of one document type."""

    pending_statuses: frozenset[str]
    approved_status: str = "approved"
    rejected_status: str = "rejected"

    def target_status(self, action: ApprovalAction) -> str:
        if action is ApprovalAction.APPROVE:
            return self.approved_status
        return self.rejected_status


class DocumentTransitionService:
    """Approves and rejects backing document rows."""

    def __init__(
        self,
        session: Session,
        lifecycles: dict[RequestType, DocumentLifecycle],
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._lifecycles = lifecycles
        self._clock = clock or SystemClock()

    def approve(
        self,
        request_type: RequestType,
        document_id: int,
        actor: str = "system",
    ) -> PendingDocumentMixin:
        return self._transition(request_type, document_id, ApprovalAction.APPROVE, actor, None)

    def reject(
        self,
        request_type: RequestType,
        document_id: int,
        reason: str,
        actor: str = "system",
    ) -> PendingDocumentMixin:
        reason = require_reason(ApprovalAction.REJECT, reason)
        return self._transition(request_type, document_id, ApprovalAction.REJECT, actor, reason)

    def _transition(
        self,
        request_type: RequestType,
        document_id: int,
        action: ApprovalAction,
        actor: str,
        reason: str | None,
    ) -> PendingDocumentMixin:
        model = DOCUMENT_MODELS[request_type]
        lifecycle = self._lifecycles[request_type]

        document = self._session.get(model, document_id, with_for_update=True)
        if document is None:
            raise DocumentNotFoundError(request_type.value, document_id)

        if document.status not in lifecycle.pending_statuses:
            raise DocumentNotPendingError(
                request_type.value, document_id, document.status,
            )

        previous_status = document.status
        document.status = lifecycle.target_status(action)
        document.decided_at = self._clock.now()
        document.decided_by = actor
        if reason is not None:
            document.rejection_reason = reason
        self._session.flush()

        logger.info(
            "document_decided",
            extra={
                "request_type": request_type.value,
                "document_id": document_id,
                "number": document.number,
                "action": action.value,
                "previous_status": previous_status,
                "new_status": document.status,
            },
        )

        return document
