"""Resume-instant computation for wait nodes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.application.services.condition_evaluator import ConditionEvaluator
from app.domain.entities.flow_graph import WaitConfig
from app.domain.exceptions import FlowDefinitionException
from app.shared.enums import DelayUnit, WaitType
from app.shared.utils.datetime import parse_iso_datetime

_UNIT_SECONDS = {
    DelayUnit.MINUTES: 60,
    DelayUnit.HOURS: 3600,
    DelayUnit.DAYS: 86400,
}


@dataclass(frozen=True)
class SuspendUntil:
    """Park the execution at the wait node until resume_at."""

    resume_at: datetime


@dataclass(frozen=True)
class FallThrough:
    """Wait already satisfied; continue to the successor now."""

    reason: str


WaitPlan = SuspendUntil | FallThrough


def delay_to_timedelta(value: int, unit: DelayUnit) -> timedelta:
    return timedelta(seconds=value * _UNIT_SECONDS[unit])


class WaitPlanner:
    """Turns a WaitConfig into SuspendUntil or FallThrough."""

    def __init__(self, evaluator: ConditionEvaluator, default_check_minutes: int) -> None:
        self.evaluator = evaluator
        self.default_check_minutes = default_check_minutes

    async def plan(
        self,
        wait: WaitConfig,
        *,
        node_id: str,
        now: datetime,
        waiting_since: datetime | None,
        tenant_id: str,
        lead_id: str,
        execution_data: dict[str, Any],
    ) -> WaitPlan:
        """Compute the plan for a wait node evaluated at now.

        Raises:
            FlowDefinitionException: until_date is not ISO-8601.
            ResourceNotFoundException, ExternalServiceException: from field conditions.
        """
        match wait.wait_type:
            case WaitType.DELAY:
                resume_at = now + delay_to_timedelta(wait.delay_value or 0, wait.delay_unit)
                return self._suspend_or_pass(resume_at, now, "zero delay")
            case WaitType.UNTIL_DATE:
                try:
                    resume_at = parse_iso_datetime(wait.date or "")
                except ValueError as e:
                    raise FlowDefinitionException(
                        f"Invalid until_date value: {wait.date!r}", node_id
                    ) from e
                return self._suspend_or_pass(resume_at, now, "date already reached")
            case WaitType.UNTIL_FIELD:
                return await self._plan_field_wait(
                    wait, now, waiting_since, tenant_id, lead_id, execution_data
                )

    @staticmethod
    def _suspend_or_pass(resume_at: datetime, now: datetime, reason: str) -> WaitPlan:
        if resume_at <= now:
            return FallThrough(reason)
        return SuspendUntil(resume_at)

    async def _plan_field_wait(
        self,
        wait: WaitConfig,
        now: datetime,
        waiting_since: datetime | None,
        tenant_id: str,
        lead_id: str,
        execution_data: dict[str, Any],
    ) -> WaitPlan:
        if await self.evaluator.evaluate(wait.condition, tenant_id, lead_id, execution_data):
            return FallThrough("condition met")

        next_check = now + timedelta(
            minutes=wait.check_interval_minutes or self.default_check_minutes
        )
        if wait.max_wait_hours is None:
            return SuspendUntil(next_check)

        deadline = (waiting_since or now) + timedelta(hours=wait.max_wait_hours)
        if deadline <= now:
            return FallThrough("max wait elapsed")
        return SuspendUntil(min(next_check, deadline))
