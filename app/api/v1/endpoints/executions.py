"""Execution API: inspection and operator pause/resume/cancel."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import get_execution_control, get_execution_repo, get_tenant_id
from app.application.interfaces.repositories import IFlowExecutionRepository
from app.application.use_cases.executions import ExecutionControlUseCase
from app.core.limiter import limit_writes
from app.domain.exceptions import ResourceNotFoundException
from app.schemas.execution import ExecutionResponse

router = APIRouter()


@router.get("/{execution_id}", response_model=ExecutionResponse)
async def get_execution(
    execution_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    executions: Annotated[IFlowExecutionRepository, Depends(get_execution_repo)],
):
    execution = await executions.get_by_id_and_tenant(execution_id, tenant_id)
    if execution is None:
        raise ResourceNotFoundException("flow_execution", execution_id)
    return ExecutionResponse.model_validate(execution)


@router.post("/{execution_id}/pause", response_model=ExecutionResponse)
@limit_writes
async def pause_execution(
    request: Request,
    execution_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    control: Annotated[ExecutionControlUseCase, Depends(get_execution_control)],
):
    """Pause; the scheduler skips it until resumed. 409 while a worker holds it."""
    return ExecutionResponse.model_validate(await control.pause(tenant_id, execution_id))


@router.post("/{execution_id}/resume", response_model=ExecutionResponse)
@limit_writes
async def resume_execution(
    request: Request,
    execution_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    control: Annotated[ExecutionControlUseCase, Depends(get_execution_control)],
):
    """Resume; back into the scheduler's due set."""
    return ExecutionResponse.model_validate(await control.resume(tenant_id, execution_id))


@router.post("/{execution_id}/cancel", response_model=ExecutionResponse)
@limit_writes
async def cancel_execution(
    request: Request,
    execution_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    control: Annotated[ExecutionControlUseCase, Depends(get_execution_control)],
):
    """Cancel; the execution becomes completed and stops for good."""
    return ExecutionResponse.model_validate(await control.cancel(tenant_id, execution_id))
