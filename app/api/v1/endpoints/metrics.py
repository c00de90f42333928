"""Metrics API: tenant-wide flow and execution statistics."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.dependencies import get_metrics_use_case, get_tenant_id
from app.application.use_cases.flows import ComputeMetricsUseCase
from app.schemas.metrics import FlowMetricsResponse

router = APIRouter()


@router.get("", response_model=FlowMetricsResponse)
async def get_metrics(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    metrics: Annotated[ComputeMetricsUseCase, Depends(get_metrics_use_case)],
):
    return FlowMetricsResponse.model_validate(await metrics.compute_metrics(tenant_id))
