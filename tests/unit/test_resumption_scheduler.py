"""ResumptionScheduler tests with a mocked store and runner."""

import asyncio
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.application.use_cases.engine.resumption_scheduler import ResumptionScheduler
from app.shared.utils.clock import ManualClock
from tests.helpers import START


@pytest.fixture
def store() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def runner() -> AsyncMock:
    return AsyncMock()


def _scheduler(store, runner, **kwargs) -> ResumptionScheduler:
    return ResumptionScheduler(
        store,
        runner,
        ManualClock(START),
        interval_seconds=kwargs.pop("interval_seconds", 30),
        batch_size=10,
        lease_seconds=120,
        **kwargs,
    )


async def test_nothing_due(store, runner) -> None:
    store.get_due_ids.return_value = []

    result = await _scheduler(store, runner).run_due()

    assert (result.due, result.advanced, result.skipped, result.failed) == (0, 0, 0, 0)
    store.get_due_ids.assert_awaited_once_with(START, 120, 10)
    runner.run.assert_not_awaited()


async def test_counts_advanced_skipped_and_failed(store, runner) -> None:
    store.get_due_ids.return_value = ["e1", "e2", "e3"]
    outcomes = {"e1": SimpleNamespace(id="e1"), "e2": None, "e3": RuntimeError("boom")}

    async def run(execution_id):
        outcome = outcomes[execution_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    runner.run.side_effect = run

    result = await _scheduler(store, runner).run_due()

    assert (result.due, result.advanced, result.skipped, result.failed) == (3, 1, 1, 1)


async def test_explicit_now_overrides_clock(store, runner) -> None:
    store.get_due_ids.return_value = []
    later = START + timedelta(days=3)

    await _scheduler(store, runner).run_due(later)

    assert store.get_due_ids.await_args.args[0] == later


async def test_concurrency_is_bounded(store, runner) -> None:
    store.get_due_ids.return_value = [f"e{i}" for i in range(6)]
    in_flight = 0
    peak = 0

    async def run(execution_id):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return SimpleNamespace(id=execution_id)

    runner.run.side_effect = run

    result = await _scheduler(store, runner, concurrency=2).run_due()

    assert result.advanced == 6
    assert peak <= 2


async def test_background_loop_start_and_stop(store, runner) -> None:
    store.get_due_ids.return_value = []
    scheduler = _scheduler(store, runner, interval_seconds=3600)

    scheduler.start()
    scheduler.start()
    for _ in range(3):
        await asyncio.sleep(0)
    assert scheduler.is_running

    await scheduler.stop()

    assert not scheduler.is_running
    store.get_due_ids.assert_awaited_once()


async def test_loop_survives_failed_cycle(store, runner) -> None:
    calls = 0

    async def get_due_ids(*args):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("db down")
        return []

    store.get_due_ids.side_effect = get_due_ids
    scheduler = _scheduler(store, runner)
    scheduler.interval_seconds = 0

    scheduler.start()
    for _ in range(5):
        await asyncio.sleep(0)
    await scheduler.stop()

    assert store.get_due_ids.await_count >= 2
