"""Tests for BulkExecutionEngine and ActionTaskGroup."""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from approval_kernel.domain.approval_item import ApprovalAction, ItemKey, RequestType
from approval_kernel.exceptions import (
    BulkOperationInProgressError,
    InvalidReasonError,
    UnknownRequestTypeError,
)
from approval_services.bulk_executor import (
    BULK_TRANSITIONS,
    ActionTaskGroup,
    BulkExecutionEngine,
    BulkState,
)
from approval_services.dispatch_registry import DispatchRegistry
from tests.conftest import RecordingHandler, make_item


def _engine(handlers) -> BulkExecutionEngine:
    return BulkExecutionEngine(DispatchRegistry(handlers))


class TestBulkRun:
    @pytest.mark.asyncio
    async def test_all_succeed(self, handlers):
        items = [make_item(RequestType.EXPENSE, i) for i in range(1, 4)]

        result = await _engine(handlers).run(items, ApprovalAction.APPROVE)

        assert (result.succeeded, result.failed) == (3, 0)
        assert result.all_succeeded
        assert handlers[RequestType.EXPENSE].approved == items

    @pytest.mark.asyncio
    async def test_partial_failure_counts(self, handlers):
        handlers[RequestType.EXPENSE] = RecordingHandler(fail_ids={2, 4})
        items = [make_item(RequestType.EXPENSE, i) for i in range(1, 6)]

        result = await _engine(handlers).run(items, ApprovalAction.APPROVE)

        assert (result.succeeded, result.failed) == (3, 2)
        assert [i.id for i in handlers[RequestType.EXPENSE].approved] == [1, 3, 5]

    @pytest.mark.asyncio
    async def test_same_reason_reaches_every_handler(self, handlers):
        items = [
            make_item(RequestType.PURCHASE_ORDER, 1),
            make_item(RequestType.EXPENSE, 1),
            make_item(RequestType.EXPENSE, 2),
        ]

        result = await _engine(handlers).run(items, ApprovalAction.REJECT, "budget exceeded")

        assert result.succeeded == 3
        rejected = handlers[RequestType.PURCHASE_ORDER].rejected + handlers[RequestType.EXPENSE].rejected
        assert sorted(str(i.key) for i, _ in rejected) == [
            "expense#1", "expense#2", "purchase_order#1",
        ]
        assert {reason for _, reason in rejected} == {"budget exceeded"}

    @pytest.mark.asyncio
    async def test_blank_reason_dispatches_nothing(self, handlers):
        engine = _engine(handlers)
        with pytest.raises(InvalidReasonError):
            await engine.run([make_item(RequestType.EXPENSE, 1)], ApprovalAction.REJECT, " ")

        assert handlers[RequestType.EXPENSE].rejected == []
        assert engine.state is BulkState.IDLE

    @pytest.mark.asyncio
    async def test_unknown_type_fails_before_any_dispatch(self, handlers):
        engine = _engine(handlers)
        bogus = make_item(RequestType.EXPENSE, 2)
        object.__setattr__(bogus, "type", "invoice")

        with pytest.raises(UnknownRequestTypeError):
            await engine.run(
                [make_item(RequestType.EXPENSE, 1), bogus], ApprovalAction.APPROVE,
            )
        assert handlers[RequestType.EXPENSE].approved == []

    @pytest.mark.asyncio
    async def test_empty_run(self, handlers):
        engine = _engine(handlers)
        result = await engine.run([], ApprovalAction.APPROVE)
        assert result.attempted == 0
        assert engine.state is BulkState.COMPLETED

    @pytest.mark.asyncio
    async def test_completion_logged_with_bulk_id(self, handlers, captured_logs):
        handlers[RequestType.EXPENSE] = RecordingHandler(fail_ids={1})
        items = [make_item(RequestType.EXPENSE, i) for i in (1, 2)]

        await _engine(handlers).run(items, ApprovalAction.APPROVE)

        done = [r for r in captured_logs() if r["message"] == "bulk_operation_completed"]
        assert len(done) == 1
        assert done[0]["succeeded"] == 1
        assert done[0]["failed"] == 1
        assert "duration_ms" in done[0]
        assert done[0]["bulk_id"]
        failed = [r for r in captured_logs() if r["message"] == "approval_action_failed"]
        assert failed[0]["bulk_id"] == done[0]["bulk_id"]


class TestLifecycle:
    def test_transition_table(self):
        assert BULK_TRANSITIONS[BulkState.IDLE] == {BulkState.RUNNING}
        assert BULK_TRANSITIONS[BulkState.RUNNING] == {BulkState.COMPLETED}
        assert BULK_TRANSITIONS[BulkState.COMPLETED] == {BulkState.IDLE}

    @pytest.mark.asyncio
    async def test_second_run_while_running_rejected(self, handlers):
        release = asyncio.Event()

        class Blocking(RecordingHandler):
            async def approve(self, item):
                await release.wait()
                await super().approve(item)

        handlers[RequestType.EXPENSE] = Blocking()
        engine = _engine(handlers)
        first = asyncio.create_task(
            engine.run([make_item(RequestType.EXPENSE, 1)], ApprovalAction.APPROVE)
        )
        await asyncio.sleep(0)
        assert engine.state is BulkState.RUNNING

        with pytest.raises(BulkOperationInProgressError):
            await engine.run([make_item(RequestType.EXPENSE, 2)], ApprovalAction.APPROVE)

        release.set()
        result = await first
        assert result.succeeded == 1
        assert engine.state is BulkState.COMPLETED

    @pytest.mark.asyncio
    async def test_engine_reusable_after_completion(self, handlers):
        engine = _engine(handlers)
        await engine.run([make_item(RequestType.EXPENSE, 1)], ApprovalAction.APPROVE)
        result = await engine.run([make_item(RequestType.EXPENSE, 2)], ApprovalAction.APPROVE)
        assert result.succeeded == 1
        assert engine.state is BulkState.COMPLETED


class TestActionTaskGroup:
    @pytest.mark.asyncio
    async def test_failures_do_not_cancel_siblings(self):
        finished = []

        async def ok(n):
            await asyncio.sleep(0.01)
            finished.append(n)

        async def boom():
            raise ValueError("nope")

        group = ActionTaskGroup()
        key = ItemKey(RequestType.EXPENSE, 1)
        group.submit(key, boom())
        group.submit(ItemKey(RequestType.EXPENSE, 2), ok(2))
        outcomes = await group.join()

        assert finished == [2]
        assert [o.succeeded for o in outcomes] == [False, True]
        assert isinstance(outcomes[0].error, ValueError)
        assert outcomes[0].key == key

    @pytest.mark.asyncio
    async def test_empty_group(self):
        assert await ActionTaskGroup().join() == []


class InFlightHandler(RecordingHandler):
    """Handler that records how many calls overlap."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.peak = 0

    async def approve(self, item):
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        await super().approve(item)


@pytest.mark.asyncio
async def test_bulk_calls_run_concurrently(handlers):
    handler = InFlightHandler()
    handlers[RequestType.EXPENSE] = handler
    items = [make_item(RequestType.EXPENSE, i) for i in range(1, 6)]

    result = await _engine(handlers).run(items, ApprovalAction.APPROVE)

    assert result.succeeded == 5
    assert handler.peak == 5


@settings(max_examples=30, deadline=None)
@given(
    k=st.integers(min_value=1, max_value=15),
    data=st.data(),
)
def test_k_items_m_failures(k, data):
    fail_ids = data.draw(st.sets(st.integers(min_value=1, max_value=k)))
    handlers = {t: RecordingHandler() for t in RequestType}
    handlers[RequestType.PURCHASE_REQUISITION] = RecordingHandler(fail_ids=fail_ids)
    items = [make_item(RequestType.PURCHASE_REQUISITION, i) for i in range(1, k + 1)]

    result = asyncio.run(_engine(handlers).run(items, ApprovalAction.APPROVE))

    assert result.succeeded == k - len(fail_ids)
    assert result.failed == len(fail_ids)
