"""
Approval item domain types (``approval_kernel.domain.approval_item``).

Responsibility
--------------
Pure value objects for the unified approval queue: the closed set of
request types, the composite item key, the normalized pending item, the
per-type counts and the bulk operation result.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``db/``, ``models/``, ``services/`` or outer layers.

Invariants enforced
-------------------
* The pair ``(type, id)`` is the only stable identity of an item.  ``id``
  alone is unique only within its type.  ``ItemKey`` is the sole key type
  used for selection and dispatch.
* ``ApprovalCounts.total`` equals the sum of the per-type buckets and every
  ``RequestType`` has a bucket.
* ``ApprovalItem.created_at`` is always timezone-aware; naive timestamps are
  interpreted as UTC.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import NamedTuple


# =========================================================================
# Request types
# =========================================================================


class RequestType(str, Enum):
    """Closed set of document types that surface in the approval queue.

    Declaration order is the canonical type order used to break ties
    when merging sources.
    """

    PURCHASE_REQUISITION = "purchase_requisition"
    PURCHASE_ORDER = "purchase_order"
    STORE_STOCK_TRANSFER = "store_stock_transfer"
    LOCATION_STOCK_TRANSFER = "location_stock_transfer"
    STOCK_TRANSFER = "stock_transfer"
    EXPENSE = "expense"
    CASH_LODGEMENT = "cash_lodgement"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]

    @property
    def number_prefix(self) -> str:
        """Document number prefix used by the originating module."""
        return _TYPE_PREFIXES[self]

    @property
    def ordinal(self) -> int:
        return _TYPE_ORDER[self]


_TYPE_LABELS: dict[RequestType, str] = {
    RequestType.PURCHASE_REQUISITION: "Purchase Requisition",
    RequestType.PURCHASE_ORDER: "Purchase Order",
    RequestType.STORE_STOCK_TRANSFER: "Store Stock Transfer",
    RequestType.LOCATION_STOCK_TRANSFER: "Location Stock Transfer",
    RequestType.STOCK_TRANSFER: "Stock Transfer",
    RequestType.EXPENSE: "Expense",
    RequestType.CASH_LODGEMENT: "Cash Lodgement",
}

_TYPE_PREFIXES: dict[RequestType, str] = {
    RequestType.PURCHASE_REQUISITION: "PRF",
    RequestType.PURCHASE_ORDER: "PRO",
    RequestType.STORE_STOCK_TRANSFER: "SST",
    RequestType.LOCATION_STOCK_TRANSFER: "LST",
    RequestType.STOCK_TRANSFER: "STF",
    RequestType.EXPENSE: "EXP",
    RequestType.CASH_LODGEMENT: "LDG",
}

_TYPE_ORDER: dict[RequestType, int] = {t: i for i, t in enumerate(RequestType)}


class ApprovalAction(str, Enum):
    """The binary decision an approver can make."""

    APPROVE = "approve"
    REJECT = "reject"


# =========================================================================
# Composite key and item
# =========================================================================


class ItemKey(NamedTuple):
    """Composite ``(type, id)`` key identifying an item across sources."""

    type: RequestType
    id: int

    def __str__(self) -> str:
        return f"{self.type.value}#{self.id}"


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class ApprovalItem:
    """A pending request normalized from any source type. Immutable."""

    type: RequestType
    id: int
    number: str
    title: str
    description: str
    amount: Decimal
    status: str
    created_at: datetime
    created_by: str
    entity_name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        object.__setattr__(self, "created_at", ensure_aware(self.created_at))

    @property
    def key(self) -> ItemKey:
        return ItemKey(self.type, self.id)

    def matches(self, search: str) -> bool:
        """Case-insensitive substring match over number, title, description."""
        needle = search.strip().lower()
        if not needle:
            return True
        return any(
            needle in value.lower()
            for value in (self.number, self.title, self.description)
        )


def queue_order_key(item: ApprovalItem) -> tuple[float, int, int]:
    """Sort key for the merged queue.

    Most recent first by ``created_at``, ties broken by type order then id.
    """
    return (-item.created_at.timestamp(), item.type.ordinal, item.id)


# =========================================================================
# Counts
# =========================================================================


@dataclass(frozen=True)
class ApprovalCounts:
    """Pending counts per request type across the whole matching universe.

    Types whose source failed are listed in ``unavailable`` and count as
    zero, so ``total`` stays the sum of the buckets.
    """

    by_type: Mapping[RequestType, int]
    total: int
    unavailable: frozenset[RequestType] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        missing = [t.value for t in RequestType if t not in self.by_type]
        if missing:
            raise ValueError(f"ApprovalCounts missing buckets: {missing}")
        if self.total != sum(self.by_type.values()):
            raise ValueError(
                f"ApprovalCounts total {self.total} != "
                f"sum of buckets {sum(self.by_type.values())}"
            )
        object.__setattr__(self, "by_type", MappingProxyType(dict(self.by_type)))

    @classmethod
    def from_mapping(
        cls,
        counts: Mapping[RequestType, int],
        unavailable: Iterable[RequestType] = (),
    ) -> ApprovalCounts:
        """Build counts, filling absent types with zero."""
        by_type = {t: int(counts.get(t, 0)) for t in RequestType}
        return cls(
            by_type=by_type,
            total=sum(by_type.values()),
            unavailable=frozenset(unavailable),
        )

    @classmethod
    def empty(cls) -> ApprovalCounts:
        return cls.from_mapping({})

    def __getitem__(self, request_type: RequestType) -> int:
        return self.by_type[request_type]

    def is_known(self, request_type: RequestType) -> bool:
        """False when the type's count degraded because its source failed."""
        return request_type not in self.unavailable


# =========================================================================
# Bulk result
# =========================================================================


@dataclass(frozen=True)
class BulkOperationResult:
    """Aggregate outcome of one bulk run.

    Carries counts only; which items failed is not reported in bulk mode.
    """

    succeeded: int
    failed: int

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0
