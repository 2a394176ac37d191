"""
Queue query value objects (``approval_kernel.domain.query``).

Responsibility
--------------
The filter handed to the aggregator, the per-source answer, and the merged
page returned to callers.  All types are frozen; a page is an immutable
snapshot that can be cached and shared.

Invariants enforced
-------------------
* ``ApprovalFilter.page >= 1`` and ``page_size > 0`` (``InvalidQueryError``).
* ``ApprovalPage.total_pages == max(1, ceil(total / page_size))``.
* ``len(ApprovalPage.items) <= page_size``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal

from approval_kernel.domain.approval_item import (
    ApprovalCounts,
    ApprovalItem,
    ItemKey,
    RequestType,
)
from approval_kernel.exceptions import InvalidQueryError

ALL_TYPES: Literal["all"] = "all"

TypeFilter = RequestType | Literal["all"]


def parse_type_filter(value: str | RequestType) -> TypeFilter:
    """Accept ``"all"``, a RequestType, or a RequestType value string."""
    if isinstance(value, RequestType):
        return value
    if value == ALL_TYPES:
        return ALL_TYPES
    try:
        return RequestType(value)
    except ValueError:
        raise InvalidQueryError("type", value, "unknown request type") from None


@dataclass(frozen=True)
class ApprovalFilter:
    """What the caller wants to see: type tile, search text, page window."""

    type: TypeFilter = ALL_TYPES
    search: str = ""
    page: int = 1
    page_size: int = 20

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", parse_type_filter(self.type))
        if not isinstance(self.page, int) or self.page < 1:
            raise InvalidQueryError("page", self.page, "must be an integer >= 1")
        if not isinstance(self.page_size, int) or self.page_size <= 0:
            raise InvalidQueryError("page_size", self.page_size, "must be an integer > 0")
        object.__setattr__(self, "search", (self.search or "").strip())

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def includes(self, request_type: RequestType) -> bool:
        return self.type == ALL_TYPES or self.type == request_type


@dataclass(frozen=True)
class SourcePage:
    """One source's answer: its first ``limit`` items and its full count."""

    items: tuple[ApprovalItem, ...]
    total: int


@dataclass(frozen=True)
class SourceWarning:
    """Non-fatal notice that a source was left out of a page."""

    request_type: RequestType
    reason: str


@dataclass(frozen=True)
class ApprovalPage:
    """One page of the merged queue plus counts. Immutable snapshot."""

    filter: ApprovalFilter
    items: tuple[ApprovalItem, ...]
    counts: ApprovalCounts
    total: int
    warnings: tuple[SourceWarning, ...] = field(default_factory=tuple)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.filter.page_size))

    @property
    def page(self) -> int:
        return self.filter.page

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def start_index(self) -> int:
        """1-based position of the first item shown (0 on an empty page)."""
        return self.filter.offset + 1 if self.items else 0

    @property
    def end_index(self) -> int:
        return self.filter.offset + len(self.items)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    @property
    def keys(self) -> tuple[ItemKey, ...]:
        return tuple(item.key for item in self.items)

    def find(self, key: ItemKey) -> ApprovalItem | None:
        for item in self.items:
            if item.key == key:
                return item
        return None
