"""
Config-to-kernel bridges.

Translate ``EngineConfig`` sections into the plain kernel inputs the
document backend expects.  The kernel never imports from approval_config.
"""

from __future__ import annotations

from approval_config.schema import EngineConfig
from approval_kernel.domain.approval_item import RequestType
from approval_kernel.services.document_transition_service import DocumentLifecycle


def build_lifecycles(config: EngineConfig) -> dict[RequestType, DocumentLifecycle]:
    """One DocumentLifecycle per request type."""
    return {
        request_type: DocumentLifecycle(
            pending_statuses=frozenset(section.pending_statuses),
            approved_status=section.approved_status,
            rejected_status=section.rejected_status,
        )
        for request_type, section in config.request_types.items()
    }
