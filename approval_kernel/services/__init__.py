"""Services for the approval kernel (write side)."""

from approval_kernel.services.document_transition_service import (
    DocumentLifecycle,
    DocumentTransitionService,
)

__all__ = [
    "DocumentLifecycle",
    "DocumentTransitionService",
]
