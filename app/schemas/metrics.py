"""Metrics API schemas."""

from pydantic import BaseModel, ConfigDict


class ExecutionStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_executions: int
    executions_by_status: dict[str, int]
    completion_rate: float
    average_execution_duration_hours: float


class TopFlowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    flow_id: str
    flow_name: str
    execution_count: int
    completion_rate: float


class FlowMetricsResponse(BaseModel):
    """Tenant-wide flow and execution statistics."""

    model_config = ConfigDict(from_attributes=True)

    total_flows: int
    active_flows: int
    paused_flows: int
    draft_flows: int
    executions: ExecutionStatsResponse
    top_flows_by_execution_count: list[TopFlowResponse]
