"""Tests for DocumentTransitionService against SQLite."""

import pytest

from approval_config import build_lifecycles
from approval_kernel.domain.approval_item import RequestType
from approval_kernel.exceptions import (
    DocumentNotFoundError,
    DocumentNotPendingError,
    InvalidReasonError,
)
from approval_kernel.models.documents import Expense, PurchaseRequisition
from approval_kernel.services.document_transition_service import (
    DocumentLifecycle,
    DocumentTransitionService,
)
from tests.conftest import BASE_TIME


@pytest.fixture
def lifecycles(default_config):
    return build_lifecycles(default_config)


def test_approve_records_decision(session_factory, seed_documents, lifecycles, deterministic_clock):
    [doc_id] = seed_documents(RequestType.EXPENSE, 1)

    with session_factory() as session:
        service = DocumentTransitionService(session, lifecycles, deterministic_clock)
        service.approve(RequestType.EXPENSE, doc_id, actor="alice")
        session.commit()

    with session_factory() as session:
        doc = session.get(Expense, doc_id)
        assert doc.status == "approved"
        assert doc.decided_by == "alice"
        assert doc.decided_at.replace(tzinfo=None) == deterministic_clock.now().replace(tzinfo=None)
        assert doc.rejection_reason is None


def test_each_decision_uses_current_clock_time(
    session_factory, seed_documents, lifecycles, deterministic_clock,
):
    first_id, second_id = seed_documents(RequestType.EXPENSE, 2)

    with session_factory() as session:
        service = DocumentTransitionService(session, lifecycles, deterministic_clock)
        service.approve(RequestType.EXPENSE, first_id)
        deterministic_clock.advance(90)
        service.approve(RequestType.EXPENSE, second_id)
        session.commit()

    with session_factory() as session:
        first = session.get(Expense, first_id).decided_at.replace(tzinfo=None)
        second = session.get(Expense, second_id).decided_at.replace(tzinfo=None)
    assert (second - first).total_seconds() == 90

    deterministic_clock.set_time(BASE_TIME)
    assert deterministic_clock.now() == BASE_TIME


def test_reject_stores_reason(session_factory, seed_documents, lifecycles):
    [doc_id] = seed_documents(RequestType.PURCHASE_REQUISITION, 1, status="pending_review")

    with session_factory() as session:
        DocumentTransitionService(session, lifecycles).reject(
            RequestType.PURCHASE_REQUISITION, doc_id, "budget exceeded",
        )
        session.commit()

    with session_factory() as session:
        doc = session.get(PurchaseRequisition, doc_id)
        assert doc.status == "rejected"
        assert doc.rejection_reason == "budget exceeded"


def test_missing_document(session_factory, lifecycles):
    with session_factory() as session:
        with pytest.raises(DocumentNotFoundError) as exc_info:
            DocumentTransitionService(session, lifecycles).approve(RequestType.EXPENSE, 42)
    assert exc_info.value.document_id == 42


def test_already_decided_document(session_factory, seed_documents, lifecycles):
    [doc_id] = seed_documents(RequestType.EXPENSE, 1, status="approved")

    with session_factory() as session:
        with pytest.raises(DocumentNotPendingError) as exc_info:
            DocumentTransitionService(session, lifecycles).reject(
                RequestType.EXPENSE, doc_id, "late",
            )
    assert exc_info.value.status == "approved"
    assert exc_info.value.code == "DOCUMENT_NOT_PENDING"


def test_reject_requires_reason(session_factory, seed_documents, lifecycles):
    [doc_id] = seed_documents(RequestType.EXPENSE, 1)

    with session_factory() as session:
        with pytest.raises(InvalidReasonError):
            DocumentTransitionService(session, lifecycles).reject(RequestType.EXPENSE, doc_id, " ")


def test_custom_status_vocabulary(session_factory, seed_documents):
    [doc_id] = seed_documents(RequestType.EXPENSE, 1, status="awaiting")
    lifecycles = {
        RequestType.EXPENSE: DocumentLifecycle(
            pending_statuses=frozenset({"awaiting"}),
            approved_status="paid",
            rejected_status="declined",
        )
    }

    with session_factory() as session:
        doc = DocumentTransitionService(session, lifecycles).approve(RequestType.EXPENSE, doc_id)
        assert doc.status == "paid"
