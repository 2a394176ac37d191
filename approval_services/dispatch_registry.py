"""
approval_services.dispatch_registry -- Per-type approve/reject dispatch.

Responsibility:
    Hides the transport of each document type behind two capabilities,
    ``approve(item)`` and ``reject(item, reason)``, and selects the handler
    solely by ``item.type``.

Architecture position:
    Services -- orchestration over kernel value objects and external
    per-type backends.

Invariants enforced:
    - Exhaustive table: a registry cannot be constructed unless every
      RequestType has a handler (MissingHandlerError at wiring time).
    - One call, one external transition, no retry.
    - Empty/whitespace rejection reasons never reach a handler.

Failure modes:
    - UnknownRequestTypeError for a value that is not a registered type.
      Fatal; never collected.
    - ActionRejectedError wrapping any handler failure, carrying the item
      key and the cause.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Protocol

from approval_kernel.domain.approval_item import (
    ApprovalAction,
    ApprovalItem,
    RequestType,
)
from approval_kernel.domain.rejection_gate import require_reason
from approval_kernel.exceptions import (
    ActionRejectedError,
    DispatchError,
    MissingHandlerError,
    UnknownRequestTypeError,
)
from approval_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.dispatch_registry")


# ---------------------------------------------------------------------------
# Handler contract
# ---------------------------------------------------------------------------


class ApprovalHandler(Protocol):
    """Approve/reject capabilities of one request type's backend.

    Success is a normal return; failure is any raised exception.
    """

    async def approve(self, item: ApprovalItem) -> None: ...

    async def reject(self, item: ApprovalItem, reason: str) -> None: ...


@dataclass(frozen=True)
class CallableHandler:
    """A handler assembled from two coroutine functions."""

    approve_fn: Callable[[ApprovalItem], Awaitable[None]]
    reject_fn: Callable[[ApprovalItem, str], Awaitable[None]]

    async def approve(self, item: ApprovalItem) -> None:
        await self.approve_fn(item)

    async def reject(self, item: ApprovalItem, reason: str) -> None:
        await self.reject_fn(item, reason)


ActionCall = Callable[[], Awaitable[None]]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class DispatchRegistry:
    """Maps every RequestType to its ApprovalHandler.

    Usage:
        registry = DispatchRegistry({t: handler_for(t) for t in RequestType})
        await registry.dispatch(item, ApprovalAction.APPROVE)
    """

    def __init__(self, handlers: Mapping[RequestType, ApprovalHandler]) -> None:
        unknown = [key for key in handlers if not isinstance(key, RequestType)]
        if unknown:
            raise UnknownRequestTypeError(unknown[0])
        missing = [t.value for t in RequestType if t not in handlers]
        if missing:
            raise MissingHandlerError("DispatchRegistry", missing)
        self._handlers: Mapping[RequestType, ApprovalHandler] = MappingProxyType(
            dict(handlers)
        )

    def handler_for(self, request_type: RequestType) -> ApprovalHandler:
        """Return the handler for a type.

        Raises:
            UnknownRequestTypeError: if ``request_type`` has no handler.
        """
        try:
            return self._handlers[request_type]
        except (KeyError, TypeError):
            raise UnknownRequestTypeError(request_type) from None

    def bind(
        self,
        item: ApprovalItem,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> ActionCall:
        """Resolve the handler now and return the call to run later.

        Validation (handler lookup, rejection reason) happens here, so a
        caller can prepare every call of a bulk run before dispatching any.
        """
        handler = self.handler_for(item.type)
        reason = require_reason(action, reason)

        async def call() -> None:
            with LogContext.bind(request_type=item.type.value):
                await _run()

        async def _run() -> None:
            try:
                if action is ApprovalAction.APPROVE:
                    await handler.approve(item)
                else:
                    await handler.reject(item, reason)
            except (ActionRejectedError, DispatchError):
                logger.warning(
                    "approval_action_failed",
                    extra={"item_key": str(item.key), "action": action.value},
                )
                raise
            except Exception as exc:
                logger.warning(
                    "approval_action_failed",
                    extra={
                        "item_key": str(item.key),
                        "action": action.value,
                        "cause": _describe(exc),
                    },
                )
                raise ActionRejectedError(
                    item.type.value, item.id, action.value, _describe(exc),
                ) from exc

            logger.info(
                "approval_action_dispatched",
                extra={"item_key": str(item.key), "action": action.value},
            )

        return call

    async def dispatch(
        self,
        item: ApprovalItem,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> None:
        """Run exactly one approve/reject for one item."""
        await self.bind(item, action, reason)()


def _describe(exc: Exception) -> str:
    message = str(exc)
    return message if message else type(exc).__name__
