"""
approval_services.workbench -- Presentation-facing approval surface.

Responsibility:
    The single object a UI or CLI talks to.  Loads aggregated pages
    (through the query cache), owns the selection for the loaded page, and
    runs single and bulk approve/reject actions, refreshing the view after
    anything that changes document state.

Architecture position:
    Services -- composes ApprovalAggregator, DispatchRegistry,
    BulkExecutionEngine, QueryCache and the kernel SelectionModel.

Invariants enforced:
    - Moving to a different filter or page clears the selection; reloading
      the same view only drops keys that are no longer on the page.
    - The rejection reason is checked before any dispatch.
    - Every action that reached a handler invalidates the whole cache,
      since counts move for every filter.
    - After a bulk run the selection is empty, whatever the outcome.

Failure modes:
    - ActionRejectedError from a single action (the view is not refreshed).
    - SelectionError for a bulk action with nothing selected, or a key that
      is not on the loaded page.
    - InvalidReasonError / BulkOperationInProgressError from the engine.
"""

from __future__ import annotations

from dataclasses import replace

from approval_kernel.domain.approval_item import (
    ApprovalAction,
    ApprovalItem,
    BulkOperationResult,
    ItemKey,
)
from approval_kernel.domain.query import ApprovalFilter, ApprovalPage
from approval_kernel.domain.rejection_gate import require_reason
from approval_kernel.domain.selection import SelectionModel
from approval_kernel.exceptions import SelectionError
from approval_kernel.logging_config import get_logger
from approval_services.aggregator import ApprovalAggregator
from approval_services.bulk_executor import BulkExecutionEngine
from approval_services.dispatch_registry import DispatchRegistry
from approval_services.query_cache import QueryCache

logger = get_logger("services.workbench")


class ApprovalWorkbench:
    """Stateful approval queue session: current view, selection, actions."""

    def __init__(
        self,
        aggregator: ApprovalAggregator,
        registry: DispatchRegistry,
        *,
        bulk_engine: BulkExecutionEngine | None = None,
        cache: QueryCache | None = None,
        default_page_size: int = 20,
    ) -> None:
        self._aggregator = aggregator
        self._registry = registry
        self._bulk_engine = bulk_engine or BulkExecutionEngine(registry)
        self._cache = cache if cache is not None else QueryCache()
        self._selection = SelectionModel()
        self._filter = ApprovalFilter(page_size=default_page_size)
        self._page: ApprovalPage | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def selection(self) -> SelectionModel:
        return self._selection

    @property
    def current_filter(self) -> ApprovalFilter:
        return self._filter

    @property
    def current_page(self) -> ApprovalPage | None:
        return self._page

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def bulk_engine(self) -> BulkExecutionEngine:
        return self._bulk_engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_aggregated_view(
        self, flt: ApprovalFilter | None = None,
    ) -> ApprovalPage:
        """Load (or reuse from cache) the page for ``flt``.

        Without an argument the current filter is reloaded.
        """
        flt = flt if flt is not None else self._filter
        page = self._cache.get(flt)
        if page is None:
            page = await self._aggregator.query(flt)
            # Degraded pages are not cached so the next load retries.
            if not page.degraded:
                self._cache.put(flt, page)

        if flt != self._filter:
            self._selection.clear()
        self._filter = flt
        self._page = page
        self._selection.bind_page(page.items)
        return page

    async def refresh(self) -> ApprovalPage:
        """Drop the cached copy of the current view and reload it."""
        self._cache.invalidate(self._filter)
        return await self.get_aggregated_view(self._filter)

    async def go_to_page(self, page: int) -> ApprovalPage:
        """Move to ``page``, clamped to the known page range."""
        last = self._page.total_pages if self._page is not None else 1
        target = min(max(1, page), last)
        return await self.get_aggregated_view(replace(self._filter, page=target))

    async def next_page(self) -> ApprovalPage:
        return await self.go_to_page(self._filter.page + 1)

    async def previous_page(self) -> ApprovalPage:
        return await self.go_to_page(self._filter.page - 1)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def run_single_action(
        self,
        target: ApprovalItem | ItemKey,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> ApprovalPage:
        """Approve or reject one item, then return the refreshed view.

        Raises:
            InvalidReasonError: reject without a usable reason.
            SelectionError: ``target`` is a key not on the loaded page.
            ActionRejectedError: the handler failed.
        """
        reason = require_reason(action, reason)
        item = self._resolve(target)
        await self._registry.dispatch(item, action, reason)
        return await self._reload_after_action()

    async def run_bulk_action(
        self,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> BulkOperationResult:
        """Apply ``action`` to every selected item on the loaded page."""
        reason = require_reason(action, reason)
        if self._selection.selected_count == 0:
            raise SelectionError("No items selected for bulk action")
        items = self._selection.selected_items(
            self._page.items if self._page is not None else (),
        )

        try:
            result = await self._bulk_engine.run(items, action, reason)
        finally:
            self._selection.clear()

        logger.info(
            "bulk_action_applied",
            extra={
                "action": action.value,
                "succeeded": result.succeeded,
                "failed": result.failed,
            },
        )
        await self._reload_after_action()
        return result

    async def _reload_after_action(self) -> ApprovalPage:
        # Deciding the last items on the final page can shrink the page range.
        self._cache.invalidate()
        page = await self.get_aggregated_view(self._filter)
        if page.page > page.total_pages:
            page = await self.get_aggregated_view(
                replace(self._filter, page=page.total_pages),
            )
        return page

    def _resolve(self, target: ApprovalItem | ItemKey) -> ApprovalItem:
        if isinstance(target, ApprovalItem):
            return target
        item = self._page.find(target) if self._page is not None else None
        if item is None:
            raise SelectionError(f"{target} is not on the loaded page", target)
        return item
