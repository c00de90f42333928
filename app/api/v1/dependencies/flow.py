"""Flow, execution and metrics dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.repositories import IFlowExecutionRepository
from app.application.interfaces.services import IClock
from app.application.use_cases.executions import ExecutionControlUseCase
from app.application.use_cases.flows import ComputeMetricsUseCase, FlowDefinitionsUseCase
from app.core.config import get_settings
from app.infrastructure.persistence.database import get_db, get_db_transactional
from app.infrastructure.persistence.repositories import (
    FlowExecutionRepository,
    FlowRepository,
)

from .engine import get_clock


async def get_flow_definitions(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FlowDefinitionsUseCase:
    """Flow definitions for read operations."""
    return FlowDefinitionsUseCase(FlowRepository(db))


async def get_flow_definitions_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> FlowDefinitionsUseCase:
    """Flow definitions for writes (transactional)."""
    return FlowDefinitionsUseCase(FlowRepository(db))


async def get_execution_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IFlowExecutionRepository:
    return FlowExecutionRepository(db)


async def get_execution_control(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    clock: Annotated[IClock, Depends(get_clock)],
) -> ExecutionControlUseCase:
    """Operator transitions share the request transaction."""
    settings = get_settings()
    return ExecutionControlUseCase(
        FlowExecutionRepository(db),
        clock,
        lease_seconds=settings.claim_lease_seconds,
        log_max_entries=settings.execution_log_max_entries,
    )


async def get_metrics_use_case(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ComputeMetricsUseCase:
    return ComputeMetricsUseCase(FlowRepository(db), FlowExecutionRepository(db))
