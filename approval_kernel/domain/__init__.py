"""
Pure domain layer.

Value objects and in-memory state for the approval queue with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (except through Clock)
- I/O
"""

from approval_kernel.domain.approval_item import (
    ApprovalAction,
    ApprovalCounts,
    ApprovalItem,
    BulkOperationResult,
    ItemKey,
    RequestType,
    queue_order_key,
)
from approval_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from approval_kernel.domain.query import (
    ALL_TYPES,
    ApprovalFilter,
    ApprovalPage,
    SourcePage,
    SourceWarning,
)
from approval_kernel.domain.rejection_gate import require_reason
from approval_kernel.domain.selection import SelectionModel

__all__ = [
    "ALL_TYPES",
    "ApprovalAction",
    "ApprovalCounts",
    "ApprovalFilter",
    "ApprovalItem",
    "ApprovalPage",
    "BulkOperationResult",
    "Clock",
    "DeterministicClock",
    "ItemKey",
    "RequestType",
    "SelectionModel",
    "SourcePage",
    "SourceWarning",
    "SystemClock",
    "queue_order_key",
    "require_reason",
]
