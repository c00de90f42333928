"""WaitPlanner tests: resume instants for delay, date and field waits."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from app.application.services.wait_planner import FallThrough, SuspendUntil, WaitPlanner
from app.domain.entities.flow_graph import ConditionConfig, WaitConfig
from app.domain.exceptions import FlowDefinitionException
from app.shared.enums import ConditionOperator, DelayUnit, WaitType

NOW = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)


@pytest.fixture
def evaluator() -> AsyncMock:
    mock = AsyncMock()
    mock.evaluate.return_value = False
    return mock


@pytest.fixture
def planner(evaluator) -> WaitPlanner:
    return WaitPlanner(evaluator, default_check_minutes=60)


async def _plan(planner: WaitPlanner, wait: WaitConfig, waiting_since: datetime | None = None):
    return await planner.plan(
        wait,
        node_id="w",
        now=NOW,
        waiting_since=waiting_since,
        tenant_id="org",
        lead_id="lead-1",
        execution_data={},
    )


@pytest.mark.parametrize(
    "value, unit, expected",
    [
        (30, DelayUnit.MINUTES, timedelta(minutes=30)),
        (2, DelayUnit.HOURS, timedelta(hours=2)),
        (2, DelayUnit.DAYS, timedelta(days=2)),
    ],
)
async def test_delay_suspends_for_duration(planner, value, unit, expected) -> None:
    wait = WaitConfig(wait_type=WaitType.DELAY, delay_value=value, delay_unit=unit)
    assert await _plan(planner, wait) == SuspendUntil(NOW + expected)


async def test_zero_delay_falls_through(planner) -> None:
    wait = WaitConfig(wait_type=WaitType.DELAY, delay_value=0, delay_unit=DelayUnit.HOURS)
    assert isinstance(await _plan(planner, wait), FallThrough)


async def test_until_future_date_suspends(planner) -> None:
    wait = WaitConfig(wait_type=WaitType.UNTIL_DATE, date="2025-03-10T12:00:00Z")
    assert await _plan(planner, wait) == SuspendUntil(datetime(2025, 3, 10, 12, 0, tzinfo=UTC))


async def test_until_past_date_falls_through(planner) -> None:
    wait = WaitConfig(wait_type=WaitType.UNTIL_DATE, date="2025-01-01")
    assert await _plan(planner, wait) == FallThrough("date already reached")


async def test_until_invalid_date_is_definition_error(planner) -> None:
    wait = WaitConfig(wait_type=WaitType.UNTIL_DATE, date="next tuesday")
    with pytest.raises(FlowDefinitionException) as exc_info:
        await _plan(planner, wait)
    assert exc_info.value.details["node_id"] == "w"


def _field_wait(**kwargs) -> WaitConfig:
    return WaitConfig(
        wait_type=WaitType.UNTIL_FIELD,
        condition=ConditionConfig(operator=ConditionOperator.EXISTS, field="email"),
        **kwargs,
    )


async def test_field_wait_met_falls_through(planner, evaluator) -> None:
    evaluator.evaluate.return_value = True
    assert await _plan(planner, _field_wait()) == FallThrough("condition met")


async def test_field_wait_rechecks_after_default_interval(planner) -> None:
    assert await _plan(planner, _field_wait()) == SuspendUntil(NOW + timedelta(minutes=60))


async def test_field_wait_uses_configured_interval(planner) -> None:
    plan = await _plan(planner, _field_wait(check_interval_minutes=10))
    assert plan == SuspendUntil(NOW + timedelta(minutes=10))


async def test_field_wait_next_check_capped_by_deadline(planner) -> None:
    since = NOW - timedelta(hours=23, minutes=30)
    plan = await _plan(planner, _field_wait(max_wait_hours=24), waiting_since=since)
    assert plan == SuspendUntil(since + timedelta(hours=24))


async def test_field_wait_gives_up_after_max_wait(planner) -> None:
    since = NOW - timedelta(hours=25)
    plan = await _plan(planner, _field_wait(max_wait_hours=24), waiting_since=since)
    assert plan == FallThrough("max wait elapsed")
