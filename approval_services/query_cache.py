"""
approval_services.query_cache -- Filter-keyed page cache.

Holds ApprovalPage snapshots keyed by the ApprovalFilter that produced
them.  Pages are frozen, so a cached page is returned as-is.  Any
successful approve/reject makes every cached page stale; callers
invalidate the whole cache after an action.
"""

from __future__ import annotations

from approval_kernel.domain.query import ApprovalFilter, ApprovalPage
from approval_kernel.logging_config import get_logger

logger = get_logger("services.query_cache")


class QueryCache:
    """In-process map of filter -> page."""

    def __init__(self) -> None:
        self._pages: dict[ApprovalFilter, ApprovalPage] = {}

    def get(self, flt: ApprovalFilter) -> ApprovalPage | None:
        return self._pages.get(flt)

    def put(self, flt: ApprovalFilter, page: ApprovalPage) -> None:
        self._pages[flt] = page

    def invalidate(self, flt: ApprovalFilter | None = None) -> int:
        """Drop one entry, or every entry when ``flt`` is None.

        Returns the number of entries removed.
        """
        if flt is None:
            removed = len(self._pages)
            self._pages.clear()
        else:
            removed = 1 if self._pages.pop(flt, None) is not None else 0
        if removed:
            logger.debug("query_cache_invalidated", extra={"removed": removed})
        return removed

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, flt: object) -> bool:
        return flt in self._pages
