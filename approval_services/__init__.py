"""
approval_services -- Async orchestration of the unified approval queue.

Architecture position:
    Sits above ``approval_kernel`` (domain, persistence) and
    ``approval_config``.  Nothing in the kernel imports from here.

Contents:
    aggregator          Merged, paginated view over per-type sources.
    dispatch_registry   Exhaustive per-type approve/reject handlers.
    bulk_executor       Concurrent all-settle bulk actions.
    query_cache         Filter-keyed page snapshots.
    workbench           Presentation-facing facade.
    sql_backend         SQLAlchemy-backed sources and handlers.
"""

from approval_services.aggregator import ApprovalAggregator, ApprovalSource
from approval_services.bulk_executor import (
    BULK_TRANSITIONS,
    ActionOutcome,
    ActionTaskGroup,
    BulkExecutionEngine,
    BulkState,
)
from approval_services.dispatch_registry import (
    ApprovalHandler,
    CallableHandler,
    DispatchRegistry,
)
from approval_services.query_cache import QueryCache
from approval_services.sql_backend import (
    SqlDocumentHandler,
    SqlDocumentSource,
    build_sql_backend,
    build_sql_workbench,
)
from approval_services.workbench import ApprovalWorkbench

__all__ = [
    "ActionOutcome",
    "ActionTaskGroup",
    "ApprovalAggregator",
    "ApprovalHandler",
    "ApprovalSource",
    "ApprovalWorkbench",
    "BULK_TRANSITIONS",
    "BulkExecutionEngine",
    "BulkState",
    "CallableHandler",
    "DispatchRegistry",
    "QueryCache",
    "SqlDocumentHandler",
    "SqlDocumentSource",
    "build_sql_backend",
    "build_sql_workbench",
]
