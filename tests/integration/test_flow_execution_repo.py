"""Execution store tests against SQLite: uniqueness, claims, leases and the due set."""

from datetime import timedelta

import pytest

from app.application.dtos.flow import FlowCreate
from app.application.dtos.flow_execution import ExecutionCreate
from app.infrastructure.persistence.execution_store import SqlExecutionStore
from app.infrastructure.persistence.repositories.flow_execution_repo import (
    FlowExecutionRepository,
)
from app.infrastructure.persistence.repositories.flow_repo import FlowRepository
from app.shared.enums import ExecutionStatus, FlowStatus
from tests.helpers import START, TENANT_ID, hot_lead_flow

LEASE = 300


@pytest.fixture
def store(session_factory) -> SqlExecutionStore:
    return SqlExecutionStore(session_factory)


@pytest.fixture
async def flow(session_factory):
    async with session_factory() as session, session.begin():
        repo = FlowRepository(session)
        created = await repo.create_flow(
            TENANT_ID, FlowCreate(name="Hot leads", flow_data=hot_lead_flow())
        )
        return await repo.update_flow(created.id, TENANT_ID, status=FlowStatus.ACTIVE)


def _create(flow, lead_id: str = "lead-1") -> ExecutionCreate:
    return ExecutionCreate(
        flow_id=flow.id,
        lead_id=lead_id,
        flow_version=flow.version,
        graph_snapshot=flow.flow_data,
        current_node_id="tag",
        execution_data={"tag_id": "hot"},
        started_at=START,
    )


async def _get(session_factory, execution_id: str):
    async with session_factory() as session:
        return await FlowExecutionRepository(session).get_by_id(execution_id)


async def test_start_execution_persists_snapshot(store, flow, session_factory) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))

    stored = await _get(session_factory, execution.id)
    assert stored.status is ExecutionStatus.RUNNING
    assert stored.graph_snapshot == hot_lead_flow()
    assert stored.execution_data == {"tag_id": "hot"}
    assert stored.started_at == START
    assert stored.next_execution_at is None
    assert stored.version == 1


async def test_one_live_execution_per_flow_and_lead(store, flow) -> None:
    first = await store.start_execution(TENANT_ID, _create(flow))

    assert first is not None
    assert await store.start_execution(TENANT_ID, _create(flow)) is None
    assert await store.start_execution(TENANT_ID, _create(flow, "lead-2")) is not None


async def test_terminal_execution_frees_the_lead(store, flow) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))
    claimed, claim = await store.claim(execution.id, START, LEASE)
    claimed.complete(START)

    assert await store.release(claimed, claim) is True
    assert await store.start_execution(TENANT_ID, _create(flow)) is not None


async def test_claim_is_exclusive_until_lease_expires(store, flow) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))

    first = await store.claim(execution.id, START, LEASE)
    assert first is not None
    assert await store.claim(execution.id, START + timedelta(seconds=10), LEASE) is None

    later = START + timedelta(seconds=LEASE + 1)
    second = await store.claim(execution.id, later, LEASE)
    assert second is not None

    stale_execution, stale_claim = first
    assert await store.release(stale_execution, stale_claim) is False

    fresh_execution, fresh_claim = second
    assert await store.release(fresh_execution, fresh_claim) is True


async def test_renewed_lease_keeps_other_workers_out(store, flow) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))
    _, claim = await store.claim(execution.id, START, LEASE)

    renewed_at = START + timedelta(seconds=LEASE - 10)
    assert await store.renew_claim(claim, renewed_at) is True

    past_first_lease = START + timedelta(seconds=LEASE + 1)
    assert await store.get_due_ids(past_first_lease, LEASE, 10) == []
    assert await store.claim(execution.id, past_first_lease, LEASE) is None

    past_renewal = renewed_at + timedelta(seconds=LEASE + 1)
    taken_over = await store.claim(execution.id, past_renewal, LEASE)
    assert taken_over is not None
    assert await store.renew_claim(claim, past_renewal) is False

async def test_release_writes_state_and_clears_lease(store, flow, session_factory) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))
    claimed, claim = await store.claim(execution.id, START, LEASE)
    claimed.current_node_id = "wait"
    claimed.suspend_until(START + timedelta(days=2), START)
    claimed.steps_executed = 2

    assert await store.release(claimed, claim)

    stored = await _get(session_factory, execution.id)
    assert stored.status is ExecutionStatus.WAITING
    assert stored.current_node_id == "wait"
    assert stored.next_execution_at == START + timedelta(days=2)
    assert stored.steps_executed == 2
    assert stored.version == 3
    assert await store.claim(execution.id, START + timedelta(seconds=1), LEASE) is not None


async def test_terminal_and_paused_are_not_claimable(store, flow, session_factory) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))
    current = await _get(session_factory, execution.id)
    current.pause()
    async with session_factory() as session, session.begin():
        assert await FlowExecutionRepository(session).save_if_unclaimed(current, START)

    assert await store.claim(execution.id, START, LEASE) is None
    assert await store.claim("missing", START, LEASE) is None


async def test_operator_save_blocked_while_claimed(store, flow, session_factory) -> None:
    execution = await store.start_execution(TENANT_ID, _create(flow))
    snapshot = await _get(session_factory, execution.id)
    claimed, claim = await store.claim(execution.id, START, LEASE)

    snapshot.pause()
    async with session_factory() as session, session.begin():
        repo = FlowExecutionRepository(session)
        assert await repo.save_if_unclaimed(snapshot, START - timedelta(seconds=LEASE)) is False

    await store.release(claimed, claim)
    # Stale version is still rejected after the worker is gone
    async with session_factory() as session, session.begin():
        repo = FlowExecutionRepository(session)
        assert await repo.save_if_unclaimed(snapshot, START - timedelta(seconds=LEASE)) is False

    current = await _get(session_factory, execution.id)
    current.pause()
    async with session_factory() as session, session.begin():
        repo = FlowExecutionRepository(session)
        assert await repo.save_if_unclaimed(current, START - timedelta(seconds=LEASE)) is True
    assert current.version == (await _get(session_factory, execution.id)).version


async def test_due_ids(store, flow, session_factory) -> None:
    fresh = await store.start_execution(TENANT_ID, _create(flow, "lead-fresh"))

    waiting = await store.start_execution(TENANT_ID, _create(flow, "lead-waiting"))
    claimed, claim = await store.claim(waiting.id, START, LEASE)
    claimed.suspend_until(START + timedelta(days=2), START)
    await store.release(claimed, claim)

    held = await store.start_execution(TENANT_ID, _create(flow, "lead-held"))
    await store.claim(held.id, START, LEASE)

    done = await store.start_execution(TENANT_ID, _create(flow, "lead-done"))
    claimed, claim = await store.claim(done.id, START, LEASE)
    claimed.complete(START)
    await store.release(claimed, claim)

    now_due = await store.get_due_ids(START + timedelta(minutes=1), LEASE, 100)
    assert set(now_due) == {fresh.id}

    later_due = await store.get_due_ids(START + timedelta(days=2, minutes=1), LEASE, 100)
    assert set(later_due) == {fresh.id, waiting.id, held.id}

    assert len(await store.get_due_ids(START + timedelta(days=3), LEASE, 1)) == 1


async def test_stats_rows_filter_by_flow(store, flow, session_factory) -> None:
    await store.start_execution(TENANT_ID, _create(flow))

    async with session_factory() as session:
        repo = FlowExecutionRepository(session)
        all_rows = await repo.get_stats_rows(TENANT_ID)
        flow_rows = await repo.get_stats_rows(TENANT_ID, flow_id=flow.id)
        other_rows = await repo.get_stats_rows(TENANT_ID, flow_id="other")
        other_tenant = await repo.get_stats_rows("someone-else")

    assert [row.status for row in all_rows] == [ExecutionStatus.RUNNING]
    assert len(flow_rows) == 1
    assert other_rows == []
    assert other_tenant == []
