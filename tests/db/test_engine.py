"""Tests for engine initialization and session scope."""

import pytest
from sqlalchemy import select

from approval_kernel.db.engine import (
    get_engine,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from approval_kernel.domain.approval_item import RequestType
from approval_kernel.exceptions import ConfigurationError
from approval_kernel.models.documents import Expense


@pytest.mark.parametrize(
    "url",
    ["sqlite://", "sqlite:///:memory:", "sqlite:///file:docs?mode=memory&uri=true"],
)
def test_in_memory_sqlite_rejected(url):
    with pytest.raises(ConfigurationError) as exc_info:
        init_engine_from_url(url)
    assert exc_info.value.source == "database_url"


def test_rejected_url_leaves_engine_uninitialized():
    reset_engine()
    with pytest.raises(ConfigurationError):
        init_engine_from_url("sqlite://")
    with pytest.raises(RuntimeError):
        get_engine()


def test_session_scope_rolls_back_on_error(session_factory, seed_documents):
    [doc_id] = seed_documents(RequestType.EXPENSE, 1)

    with pytest.raises(ValueError):
        with session_scope(session_factory) as session:
            session.get(Expense, doc_id).status = "approved"
            raise ValueError("abort")

    with session_factory() as session:
        status = session.scalars(select(Expense.status).where(Expense.id == doc_id)).one()
    assert status == "pending"
