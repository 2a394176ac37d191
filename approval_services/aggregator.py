"""
approval_services.aggregator -- Merged view over independent sources.

Responsibility:
    Given an ApprovalFilter, asks each request type's source for its
    pending items, merges them into one ordered queue, cuts out the
    requested page and computes per-type counts over the whole
    search-filtered universe.

Architecture position:
    Services -- async orchestration over external per-type sources.

Invariants enforced:
    - Every source is consulted on every query so count tiles stay true
      regardless of the active type filter.  Sources outside the filter
      are asked for counts only (limit=0).
    - Pagination happens after the merge.  Each included source returns
      its first ``page * page_size`` items, which is enough to build any
      window up to that page.
    - Merge order: created_at descending, then type order, then id.
    - counts.total == sum of per-type counts.

Failure modes:
    - A source that raises or times out is left out of the page.  Its
      count degrades to zero, its type is listed in counts.unavailable,
      the page carries a SourceWarning and a structured warning is logged.
      The query as a whole never fails for one source.
    - InvalidQueryError if page_size exceeds the configured maximum.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol
from uuid import uuid4

from approval_kernel.domain.approval_item import (
    ApprovalCounts,
    ApprovalItem,
    ItemKey,
    RequestType,
    queue_order_key,
)
from approval_kernel.domain.query import (
    ApprovalFilter,
    ApprovalPage,
    SourcePage,
    SourceWarning,
)
from approval_kernel.exceptions import (
    InvalidQueryError,
    MissingHandlerError,
    SourceUnavailableError,
)
from approval_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.aggregator")


class ApprovalSource(Protocol):
    """One request type's collection of pending documents."""

    async def list_pending(self, *, search: str, limit: int | None) -> SourcePage:
        """Return the first ``limit`` matching pending items and the total.

        Items must be ordered most recent first, ties by ascending id.
        ``limit=0`` asks for the count only.
        """
        ...


class ApprovalAggregator:
    """Builds ApprovalPage snapshots from per-type sources."""

    def __init__(
        self,
        sources: Mapping[RequestType, ApprovalSource],
        *,
        source_timeout: float | None = None,
        max_page_size: int | None = None,
    ) -> None:
        missing = [t.value for t in RequestType if t not in sources]
        if missing:
            raise MissingHandlerError("ApprovalAggregator", missing)
        self._sources: Mapping[RequestType, ApprovalSource] = MappingProxyType(
            dict(sources)
        )
        self._source_timeout = source_timeout
        self._max_page_size = max_page_size

    async def query(self, flt: ApprovalFilter) -> ApprovalPage:
        """Return one page of the merged queue plus global counts."""
        with LogContext.bind(correlation_id=uuid4().hex):
            return await self._load(flt)

    async def _load(self, flt: ApprovalFilter) -> ApprovalPage:
        if self._max_page_size is not None and flt.page_size > self._max_page_size:
            raise InvalidQueryError(
                "page_size", flt.page_size, f"must be <= {self._max_page_size}",
            )

        window_end = flt.page * flt.page_size
        request_types = list(RequestType)
        results = await asyncio.gather(
            *(
                self._fetch(t, flt.search, window_end if flt.includes(t) else 0)
                for t in request_types
            )
        )

        totals: dict[RequestType, int] = {}
        warnings: list[SourceWarning] = []
        candidates: list[ApprovalItem] = []
        for request_type, result in zip(request_types, results):
            if isinstance(result, SourceWarning):
                warnings.append(result)
                continue
            totals[request_type] = result.total
            if flt.includes(request_type):
                candidates.extend(
                    item for item in result.items[:window_end]
                    if item.type is request_type
                )

        counts = ApprovalCounts.from_mapping(
            totals, unavailable=(w.request_type for w in warnings),
        )
        total = sum(
            count for t, count in counts.by_type.items() if flt.includes(t)
        )
        merged = _merge(candidates)
        items = tuple(merged[flt.offset:flt.offset + flt.page_size])

        logger.debug(
            "approval_page_loaded",
            extra={
                "type_filter": str(flt.type),
                "page": flt.page,
                "page_size": flt.page_size,
                "item_count": len(items),
                "total": total,
                "unavailable": [w.request_type.value for w in warnings],
            },
        )

        return ApprovalPage(
            filter=flt,
            items=items,
            counts=counts,
            total=total,
            warnings=tuple(warnings),
        )

    async def _fetch(
        self,
        request_type: RequestType,
        search: str,
        limit: int,
    ) -> SourcePage | SourceWarning:
        with LogContext.bind(request_type=request_type.value):
            return await self._fetch_one(request_type, search, limit)

    async def _fetch_one(
        self,
        request_type: RequestType,
        search: str,
        limit: int,
    ) -> SourcePage | SourceWarning:
        source = self._sources[request_type]
        try:
            pending = source.list_pending(search=search, limit=limit)
            if self._source_timeout is not None:
                return await asyncio.wait_for(pending, self._source_timeout)
            return await pending
        except TimeoutError as exc:
            error = SourceUnavailableError(
                request_type.value, f"timed out after {self._source_timeout}s",
            )
            error.__cause__ = exc
        except Exception as exc:
            error = SourceUnavailableError(
                request_type.value, str(exc) or type(exc).__name__,
            )
            error.__cause__ = exc

        logger.warning(
            "source_unavailable",
            extra={"source_type": request_type.value},
            exc_info=error,
        )
        return SourceWarning(request_type=request_type, reason=error.reason)


def _merge(items: list[ApprovalItem]) -> list[ApprovalItem]:
    """Sort into queue order, keeping the first occurrence of each key."""
    seen: set[ItemKey] = set()
    merged: list[ApprovalItem] = []
    for item in sorted(items, key=queue_order_key):
        if item.key in seen:
            continue
        seen.add(item.key)
        merged.append(item)
    return merged
