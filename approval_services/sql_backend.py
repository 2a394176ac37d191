"""
approval_services.sql_backend -- Async adapters over the SQL document tables.

Responsibility:
    Wraps the kernel's PendingDocumentSelector and DocumentTransitionService
    as ApprovalSource / ApprovalHandler implementations, and wires a full
    workbench from an EngineConfig and a session factory.

Architecture position:
    Services -- the only place where the async orchestration meets the
    blocking SQLAlchemy session.  Blocking work runs in a worker thread via
    ``asyncio.to_thread`` with a fresh session per call; sessions are never
    shared across threads.

Failure modes:
    - Source queries propagate driver errors; the aggregator turns them
      into SourceUnavailableError warnings.
    - Handler calls propagate DocumentNotFoundError/DocumentNotPendingError;
      the registry wraps them into ActionRejectedError.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.orm import Session, sessionmaker

from approval_config.bridges import build_lifecycles
from approval_config.schema import EngineConfig
from approval_kernel.db.engine import session_scope
from approval_kernel.domain.approval_item import ApprovalItem, RequestType
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.domain.query import SourcePage
from approval_kernel.selectors.pending_selector import PendingDocumentSelector
from approval_kernel.services.document_transition_service import (
    DocumentLifecycle,
    DocumentTransitionService,
)
from approval_services.aggregator import ApprovalAggregator
from approval_services.bulk_executor import BulkExecutionEngine
from approval_services.dispatch_registry import DispatchRegistry
from approval_services.query_cache import QueryCache
from approval_services.workbench import ApprovalWorkbench


class SqlDocumentSource:
    """ApprovalSource reading one document table."""

    def __init__(
        self,
        request_type: RequestType,
        session_factory: sessionmaker[Session],
        statuses: frozenset[str],
    ) -> None:
        self.request_type = request_type
        self._session_factory = session_factory
        self._statuses = statuses

    async def list_pending(self, *, search: str, limit: int | None) -> SourcePage:
        return await asyncio.to_thread(self._list_pending, search, limit)

    def _list_pending(self, search: str, limit: int | None) -> SourcePage:
        with self._session_factory() as session:
            return PendingDocumentSelector(session).list_pending(
                self.request_type, self._statuses, search=search, limit=limit,
            )


class SqlDocumentHandler:
    """ApprovalHandler that decides rows in one document table."""

    def __init__(
        self,
        request_type: RequestType,
        session_factory: sessionmaker[Session],
        lifecycles: dict[RequestType, DocumentLifecycle],
        clock: Clock | None = None,
        actor: str = "system",
    ) -> None:
        self.request_type = request_type
        self._session_factory = session_factory
        self._lifecycles = lifecycles
        self._clock = clock or SystemClock()
        self._actor = actor

    async def approve(self, item: ApprovalItem) -> None:
        await asyncio.to_thread(self._decide, item, None)

    async def reject(self, item: ApprovalItem, reason: str) -> None:
        await asyncio.to_thread(self._decide, item, reason)

    def _decide(self, item: ApprovalItem, reason: str | None) -> None:
        with session_scope(self._session_factory) as session:
            service = DocumentTransitionService(session, self._lifecycles, self._clock)
            if reason is None:
                service.approve(self.request_type, item.id, actor=self._actor)
            else:
                service.reject(self.request_type, item.id, reason, actor=self._actor)


def build_sql_backend(
    session_factory: sessionmaker[Session],
    config: EngineConfig,
    clock: Clock | None = None,
    actor: str = "system",
) -> tuple[ApprovalAggregator, DispatchRegistry]:
    """Build the aggregator and registry for every configured document type."""
    lifecycles = build_lifecycles(config)
    sources = {
        t: SqlDocumentSource(t, session_factory, lifecycles[t].pending_statuses)
        for t in lifecycles
    }
    handlers = {
        t: SqlDocumentHandler(t, session_factory, lifecycles, clock, actor)
        for t in lifecycles
    }
    aggregator = ApprovalAggregator(
        sources,
        source_timeout=config.source_timeout_seconds,
        max_page_size=config.max_page_size,
    )
    return aggregator, DispatchRegistry(handlers)


def build_sql_workbench(
    session_factory: sessionmaker[Session],
    config: EngineConfig,
    clock: Clock | None = None,
    actor: str = "system",
) -> ApprovalWorkbench:
    """A ready-to-use workbench over the SQL document tables."""
    aggregator, registry = build_sql_backend(session_factory, config, clock, actor)
    return ApprovalWorkbench(
        aggregator,
        registry,
        bulk_engine=BulkExecutionEngine(registry),
        cache=QueryCache(),
        default_page_size=config.default_page_size,
    )
