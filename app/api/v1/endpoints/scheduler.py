"""Scheduler API: run one resumption cycle on demand."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import get_scheduler
from app.application.use_cases.engine import ResumptionScheduler
from app.core.limiter import limit_scheduler_run
from app.schemas.execution import SchedulerRunResponse

router = APIRouter()


@router.post("/run", response_model=SchedulerRunResponse)
@limit_scheduler_run
async def run_scheduler(
    request: Request,
    scheduler: Annotated[ResumptionScheduler, Depends(get_scheduler)],
):
    """Resume every execution due now (all tenants)."""
    return SchedulerRunResponse.model_validate(await scheduler.run_due())
