"""Flow API: thin routes delegating to the flow definition and metrics use cases."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from app.api.v1.dependencies import (
    get_execution_repo,
    get_flow_definitions,
    get_flow_definitions_for_write,
    get_metrics_use_case,
    get_tenant_id,
)
from app.application.dtos.flow import FlowCreate, FlowUpdate
from app.application.interfaces.repositories import IFlowExecutionRepository
from app.application.use_cases.flows import ComputeMetricsUseCase, FlowDefinitionsUseCase
from app.core.limiter import limit_writes
from app.schemas.execution import ExecutionResponse
from app.schemas.flow import (
    FlowCreateRequest,
    FlowResponse,
    FlowUpdateRequest,
    FlowValidationResponse,
)
from app.schemas.metrics import ExecutionStatsResponse
from app.shared.enums import ExecutionStatus, FlowStatus

router = APIRouter()


@router.post("", response_model=FlowResponse, status_code=201)
@limit_writes
async def create_flow(
    request: Request,
    body: FlowCreateRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions_for_write)],
):
    """Create a draft flow (tenant-scoped)."""
    flow = await flows.create_flow(
        tenant_id,
        FlowCreate(
            name=body.name,
            description=body.description,
            flow_data=body.flow_data,
            created_by=body.created_by,
        ),
    )
    return FlowResponse.model_validate(flow)


@router.get("", response_model=list[FlowResponse])
async def list_flows(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions)],
    status: FlowStatus | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List flows for tenant (newest first), optionally filtered by status."""
    result = await flows.list_flows(tenant_id, status=status, skip=skip, limit=limit)
    return [FlowResponse.model_validate(f) for f in result]


@router.get("/{flow_id}", response_model=FlowResponse)
async def get_flow(
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions)],
):
    return FlowResponse.model_validate(await flows.get_flow(tenant_id, flow_id))


@router.put("/{flow_id}", response_model=FlowResponse)
@limit_writes
async def update_flow(
    request: Request,
    flow_id: str,
    body: FlowUpdateRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions_for_write)],
):
    """Update name, description or graph. A graph change bumps the version."""
    flow = await flows.update_flow(
        tenant_id,
        flow_id,
        FlowUpdate(name=body.name, description=body.description, flow_data=body.flow_data),
    )
    return FlowResponse.model_validate(flow)


@router.delete("/{flow_id}", status_code=204)
@limit_writes
async def delete_flow(
    request: Request,
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions_for_write)],
):
    """Soft delete; executions are retained."""
    await flows.delete_flow(tenant_id, flow_id)
    return Response(status_code=204)


@router.post("/{flow_id}/activate", response_model=FlowResponse)
@limit_writes
async def activate_flow(
    request: Request,
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions_for_write)],
):
    """Validate the graph and activate; 422 with errors/warnings when invalid."""
    return FlowResponse.model_validate(await flows.activate_flow(tenant_id, flow_id))


@router.post("/{flow_id}/pause", response_model=FlowResponse)
@limit_writes
async def pause_flow(
    request: Request,
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions_for_write)],
):
    return FlowResponse.model_validate(await flows.pause_flow(tenant_id, flow_id))


@router.post("/{flow_id}/validate", response_model=FlowValidationResponse)
async def validate_flow(
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions)],
):
    """Run the graph validator without changing the flow."""
    return FlowValidationResponse.model_validate(await flows.validate_flow(tenant_id, flow_id))


@router.get("/{flow_id}/executions", response_model=list[ExecutionResponse])
async def list_flow_executions(
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    flows: Annotated[FlowDefinitionsUseCase, Depends(get_flow_definitions)],
    executions: Annotated[IFlowExecutionRepository, Depends(get_execution_repo)],
    status: ExecutionStatus | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List executions of a flow (newest first)."""
    await flows.get_flow(tenant_id, flow_id)
    result = await executions.get_by_flow(
        flow_id, tenant_id, status=status, skip=skip, limit=limit
    )
    return [ExecutionResponse.model_validate(e) for e in result]


@router.get("/{flow_id}/metrics", response_model=ExecutionStatsResponse)
async def get_flow_metrics(
    flow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    metrics: Annotated[ComputeMetricsUseCase, Depends(get_metrics_use_case)],
):
    """Execution statistics for one flow."""
    stats = await metrics.compute_flow_metrics(tenant_id, flow_id)
    return ExecutionStatsResponse.model_validate(stats)
