"""
Engine configuration schema.

Frozen dataclasses that the YAML loader produces.  ``EngineConfig`` is the
only runtime artifact; nothing reads YAML after it has been built.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from approval_kernel.domain.approval_item import RequestType


@dataclass(frozen=True)
class RequestTypeConfig:
    """Status vocabulary of one request type's source."""

    request_type: RequestType
    pending_statuses: tuple[str, ...] = ("pending",)
    approved_status: str = "approved"
    rejected_status: str = "rejected"


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for the approval queue."""

    default_page_size: int = 20
    max_page_size: int = 100
    source_timeout_seconds: float = 10.0
    database_url: str = "sqlite:///approvals.db"
    request_types: dict[RequestType, RequestTypeConfig] = field(default_factory=dict)
    checksum: str = ""

    def for_type(self, request_type: RequestType) -> RequestTypeConfig:
        return self.request_types[request_type]
