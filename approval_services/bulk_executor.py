"""
approval_services.bulk_executor -- Concurrent all-settle bulk actions.

Responsibility:
    Applies one action (approve, or reject with a shared reason) to a set of
    items concurrently, waits for every call to settle, and reports
    aggregate success/failure counts.

Architecture position:
    Services -- drives the DispatchRegistry; owned by the workbench.

Invariants enforced:
    - Lifecycle IDLE -> RUNNING -> COMPLETED -> IDLE (BULK_TRANSITIONS).
      A run cannot start while another is RUNNING.
    - Every handler is resolved and the reason is checked before the first
      dispatch, so a wiring gap or a blank reason aborts with zero calls.
    - All-settle: one failing item never cancels or blocks the others.
    - No rollback and no retry.  succeeded + failed == len(items).

Failure modes:
    - BulkOperationInProgressError when invoked while RUNNING.
    - InvalidReasonError for a reject without a usable reason.
    - UnknownRequestTypeError for an item whose type has no handler.
    - Per-item handler failures are collected, never raised.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from approval_kernel.domain.approval_item import (
    ApprovalAction,
    ApprovalItem,
    BulkOperationResult,
    ItemKey,
)
from approval_kernel.domain.rejection_gate import require_reason
from approval_kernel.exceptions import BulkOperationInProgressError
from approval_kernel.logging_config import LogContext, get_logger
from approval_services.dispatch_registry import DispatchRegistry

logger = get_logger("services.bulk_executor")


class BulkState(str, Enum):
    """Lifecycle of the bulk engine."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


BULK_TRANSITIONS: dict[BulkState, frozenset[BulkState]] = {
    BulkState.IDLE: frozenset({BulkState.RUNNING}),
    BulkState.RUNNING: frozenset({BulkState.COMPLETED}),
    BulkState.COMPLETED: frozenset({BulkState.IDLE}),
}


@dataclass(frozen=True)
class ActionOutcome:
    """Settled result of one item's call."""

    key: ItemKey
    succeeded: bool
    error: BaseException | None = None


class ActionTaskGroup:
    """Fan-out group that waits for every task regardless of failures.

    Unlike ``asyncio.TaskGroup`` a failing member does not cancel its
    siblings.
    """

    def __init__(self) -> None:
        self._tasks: list[tuple[ItemKey, asyncio.Future[None]]] = []

    def submit(self, key: ItemKey, call: Awaitable[None]) -> None:
        self._tasks.append((key, asyncio.ensure_future(call)))

    def __len__(self) -> int:
        return len(self._tasks)

    async def join(self) -> list[ActionOutcome]:
        """Wait for all submitted tasks and return outcomes in submit order."""
        if self._tasks:
            await asyncio.wait([task for _, task in self._tasks])

        outcomes: list[ActionOutcome] = []
        for key, task in self._tasks:
            if task.cancelled():
                outcomes.append(
                    ActionOutcome(key, False, asyncio.CancelledError())
                )
                continue
            error = task.exception()
            outcomes.append(ActionOutcome(key, error is None, error))
        return outcomes


class BulkExecutionEngine:
    """Runs bulk approve/reject through a DispatchRegistry."""

    def __init__(self, registry: DispatchRegistry) -> None:
        self._registry = registry
        self._state = BulkState.IDLE
        self._running_bulk_id: str | None = None

    @property
    def state(self) -> BulkState:
        return self._state

    def _transition(self, target: BulkState) -> None:
        allowed = BULK_TRANSITIONS.get(self._state, frozenset())
        if target not in allowed:
            raise BulkOperationInProgressError(self._running_bulk_id)
        self._state = target

    async def run(
        self,
        items: Sequence[ApprovalItem],
        action: ApprovalAction,
        reason: str | None = None,
    ) -> BulkOperationResult:
        """Dispatch ``action`` for every item and fold the outcomes."""
        reason = require_reason(action, reason)
        if self._state is BulkState.RUNNING:
            raise BulkOperationInProgressError(self._running_bulk_id)

        calls = [
            (item.key, self._registry.bind(item, action, reason))
            for item in items
        ]

        if self._state is BulkState.COMPLETED:
            self._transition(BulkState.IDLE)
        self._transition(BulkState.RUNNING)
        bulk_id = uuid4().hex
        self._running_bulk_id = bulk_id
        started = time.monotonic()

        try:
            with LogContext.bind(bulk_id=bulk_id):
                logger.info(
                    "bulk_operation_started",
                    extra={"action": action.value, "item_count": len(calls)},
                )
                group = ActionTaskGroup()
                for key, call in calls:
                    group.submit(key, call())
                outcomes = await group.join()

                succeeded = sum(1 for o in outcomes if o.succeeded)
                result = BulkOperationResult(
                    succeeded=succeeded, failed=len(outcomes) - succeeded,
                )
                logger.info(
                    "bulk_operation_completed",
                    extra={
                        "action": action.value,
                        "succeeded": result.succeeded,
                        "failed": result.failed,
                        "duration_ms": round(
                            (time.monotonic() - started) * 1000, 2
                        ),
                    },
                )
                return result
        finally:
            self._running_bulk_id = None
            self._transition(BulkState.COMPLETED)
