"""
Pytest fixtures for the approval engine test suite.

Provides:
- Structured logging configured for the whole session, plus log capture
- In-memory sources and recording handlers for every request type
- A SQLite file database per test for the SQL document backend
- Deterministic clock and default configuration
"""

import asyncio
import json
import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from io import StringIO
from itertools import count

import pytest

from approval_config import get_active_config
from approval_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from approval_kernel.domain.approval_item import ApprovalItem, RequestType
from approval_kernel.domain.clock import DeterministicClock
from approval_kernel.domain.query import SourcePage
from approval_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from approval_kernel.models.documents import DOCUMENT_MODELS

BASE_TIME = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture approval_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "source_unavailable" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("approval_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Items, sources and handlers
# =============================================================================


def make_item(
    request_type: RequestType,
    item_id: int,
    *,
    created_at: datetime | None = None,
    title: str | None = None,
    description: str = "",
    amount: Decimal | str = "100.00",
    status: str = "pending",
) -> ApprovalItem:
    """Build a queue item with a predictable number and timestamp."""
    return ApprovalItem(
        type=request_type,
        id=item_id,
        number=f"{request_type.number_prefix}-{item_id:05d}",
        title=title or f"{request_type.label} {item_id}",
        description=description,
        amount=Decimal(amount),
        status=status,
        created_at=created_at or BASE_TIME - timedelta(minutes=item_id),
        created_by="tester",
    )


class InMemorySource:
    """ApprovalSource over a fixed list of items."""

    def __init__(self, items=(), *, error: Exception | None = None, delay: float = 0):
        self.items = list(items)
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, int | None]] = []

    async def list_pending(self, *, search, limit):
        self.calls.append((search, limit))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        matched = sorted(
            (item for item in self.items if item.matches(search)),
            key=lambda item: (-item.created_at.timestamp(), item.id),
        )
        shown = matched if limit is None else matched[:limit]
        return SourcePage(items=tuple(shown), total=len(matched))


class RecordingHandler:
    """ApprovalHandler that records calls and fails for chosen ids."""

    def __init__(self, fail_ids=(), error: Exception | None = None):
        self.fail_ids = set(fail_ids)
        self.error = error or RuntimeError("backend refused")
        self.approved: list[ApprovalItem] = []
        self.rejected: list[tuple[ApprovalItem, str]] = []

    async def approve(self, item):
        await asyncio.sleep(0)
        if item.id in self.fail_ids:
            raise self.error
        self.approved.append(item)

    async def reject(self, item, reason):
        await asyncio.sleep(0)
        if item.id in self.fail_ids:
            raise self.error
        self.rejected.append((item, reason))


@pytest.fixture
def sources():
    """One empty InMemorySource per request type; tests fill ``items``."""
    return {t: InMemorySource() for t in RequestType}


@pytest.fixture
def handlers():
    """One RecordingHandler per request type."""
    return {t: RecordingHandler() for t in RequestType}


# =============================================================================
# Clock and configuration
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(BASE_TIME)


@pytest.fixture
def default_config():
    return get_active_config()


# =============================================================================
# SQL document backend
# =============================================================================


@pytest.fixture
def session_factory(tmp_path):
    """Fresh SQLite file database with all document tables."""
    init_engine_from_url(f"sqlite:///{tmp_path / 'approvals.db'}")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def seed_documents(session_factory):
    """
    Insert documents and return their ids.

    Usage::

        ids = seed_documents(RequestType.EXPENSE, 3, status="pending")
    """
    numbers = count(1)

    def _seed(request_type, n, *, status="pending", title=None, start=BASE_TIME):
        model = DOCUMENT_MODELS[request_type]
        ids = []
        with session_scope(session_factory) as session:
            for i in range(n):
                seq = next(numbers)
                doc = model(
                    number=f"{request_type.number_prefix}-{seq:05d}",
                    title=title or f"{request_type.label} {seq}",
                    description=f"seeded document {seq}",
                    amount=Decimal("25.50") * (i + 1),
                    status=status,
                    created_at=start - timedelta(minutes=seq),
                    created_by="seed",
                )
                session.add(doc)
                session.flush()
                ids.append(doc.id)
        return ids

    return _seed
