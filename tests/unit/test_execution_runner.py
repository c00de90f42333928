"""ExecutionRunner tests: claim, lease renewal during long advances, release."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.application.dtos.action import ActionSucceeded
from app.application.dtos.flow_execution import ExecutionClaim
from app.application.services.condition_evaluator import ConditionEvaluator
from app.application.services.graph_interpreter import GraphInterpreter
from app.application.services.wait_planner import WaitPlanner
from app.application.use_cases.engine.execution_runner import ExecutionRunner
from app.domain.entities.flow_execution import FlowExecutionEntity
from app.shared.enums import ExecutionStatus
from app.shared.utils.clock import ManualClock
from tests.helpers import START, make_edge, make_node

SLOW_ACTION = timedelta(seconds=200)


def _tagging_chain() -> dict:
    """Three add_tag actions in a row, then end."""
    return {
        "nodes": [
            make_node("a", "action", {"action_type": "add_tag", "tag_id": "a"}),
            make_node("b", "action", {"action_type": "add_tag", "tag_id": "b"}),
            make_node("c", "action", {"action_type": "add_tag", "tag_id": "c"}),
            make_node("end", "end"),
        ],
        "edges": [make_edge("a", "b"), make_edge("b", "c"), make_edge("c", "end")],
    }


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def dispatcher(clock) -> AsyncMock:
    async def slow_execute(action, context):
        clock.advance(SLOW_ACTION)
        return ActionSucceeded()

    mock = AsyncMock()
    mock.execute.side_effect = slow_execute
    return mock


@pytest.fixture
def claim() -> ExecutionClaim:
    return ExecutionClaim(execution_id="exec-1", token="tok-1", claimed_at=START)


@pytest.fixture
def store(claim) -> AsyncMock:
    execution = FlowExecutionEntity(
        id="exec-1",
        tenant_id="org",
        flow_id="flow-1",
        lead_id="lead-1",
        current_node_id="a",
        status=ExecutionStatus.RUNNING,
        execution_data={},
        started_at=START,
        graph_snapshot=_tagging_chain(),
    )
    mock = AsyncMock()
    mock.claim.return_value = (execution, claim)
    mock.renew_claim.return_value = True
    mock.release.return_value = True
    return mock


@pytest.fixture
def runner(store, dispatcher, clock) -> ExecutionRunner:
    evaluator = ConditionEvaluator(AsyncMock())
    interpreter = GraphInterpreter(
        dispatcher, evaluator, WaitPlanner(evaluator, default_check_minutes=60), clock
    )
    return ExecutionRunner(store, interpreter, clock, lease_seconds=300)


async def test_not_claimable_skips(runner, store, dispatcher) -> None:
    store.claim.return_value = None

    assert await runner.run("exec-1") is None
    store.claim.assert_awaited_once_with("exec-1", START, 300)
    dispatcher.execute.assert_not_awaited()
    store.release.assert_not_awaited()


async def test_long_advance_renews_lease_between_nodes(runner, store, claim, clock) -> None:
    execution = await runner.run("exec-1")

    assert execution.status is ExecutionStatus.COMPLETED
    assert [c.args for c in store.renew_claim.await_args_list] == [
        (claim, START + SLOW_ACTION),
        (claim, START + 2 * SLOW_ACTION),
        (claim, START + 3 * SLOW_ACTION),
    ]
    store.release.assert_awaited_once_with(execution, claim)


async def test_short_advance_does_not_renew(runner, store, dispatcher) -> None:
    dispatcher.execute.side_effect = None
    dispatcher.execute.return_value = ActionSucceeded()

    execution = await runner.run("exec-1")

    assert execution.status is ExecutionStatus.COMPLETED
    store.renew_claim.assert_not_awaited()


async def test_lease_taken_over_mid_advance_stops_before_next_action(
    runner, store, dispatcher
) -> None:
    store.renew_claim.return_value = False

    assert await runner.run("exec-1") is None
    assert dispatcher.execute.await_count == 1
    store.release.assert_not_awaited()


async def test_lost_claim_at_release_discards_result(runner, store) -> None:
    store.release.return_value = False

    assert await runner.run("exec-1") is None
