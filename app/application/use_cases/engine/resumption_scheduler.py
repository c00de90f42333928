"""Resumption scheduler: re-enters the interpreter for due executions."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

from app.application.dtos.flow_execution import SchedulerRunResult
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IExecutionStore
    from app.application.interfaces.services import IClock
    from app.application.use_cases.engine.execution_runner import ExecutionRunner

logger = get_logger(__name__)


class ResumptionScheduler:
    """Finds due executions and advances them with bounded concurrency.

    Safe to run from several processes at once: the runner's claim step
    lets exactly one worker advance a given execution.
    """

    def __init__(
        self,
        store: IExecutionStore,
        runner: ExecutionRunner,
        clock: IClock,
        *,
        interval_seconds: int = 30,
        batch_size: int = 100,
        concurrency: int = 8,
        lease_seconds: int = 300,
    ) -> None:
        self.store = store
        self.runner = runner
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.concurrency = concurrency
        self.lease_seconds = lease_seconds
        self._task: asyncio.Task[None] | None = None

    @traced("flow.scheduler.run_due")
    async def run_due(self, now: datetime | None = None) -> SchedulerRunResult:
        """Run one resumption cycle over executions due at now."""
        now = now or self.clock.now()
        due_ids = await self.store.get_due_ids(now, self.lease_seconds, self.batch_size)
        result = SchedulerRunResult(due=len(due_ids))
        if not due_ids:
            return result

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _run_one(execution_id: str) -> None:
            async with semaphore:
                try:
                    execution = await self.runner.run(execution_id)
                except Exception:
                    logger.exception("Resuming execution %s failed", execution_id)
                    result.failed += 1
                    return
                if execution is None:
                    result.skipped += 1
                else:
                    result.advanced += 1

        await asyncio.gather(*(_run_one(execution_id) for execution_id in due_ids))
        add_span_attributes(
            **{
                "scheduler.due": result.due,
                "scheduler.advanced": result.advanced,
                "scheduler.skipped": result.skipped,
                "scheduler.failed": result.failed,
            }
        )
        logger.info(
            "Resumption cycle: %d due, %d advanced, %d skipped, %d failed",
            result.due,
            result.advanced,
            result.skipped,
            result.failed,
        )
        return result

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the periodic background loop. No-op when already running."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop(), name="flow-resumption-scheduler")
        logger.info("Resumption scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Resumption scheduler stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_due()
            except Exception:
                logger.exception("Resumption cycle failed")
            await asyncio.sleep(self.interval_seconds)
