"""DTOs for the metrics aggregator (read-only projection)."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExecutionStats:
    """Execution statistics for a set of executions (one flow or a whole tenant)."""

    total_executions: int
    executions_by_status: dict[str, int]
    completion_rate: float
    average_execution_duration_hours: float


@dataclass(frozen=True)
class TopFlowMetric:
    flow_id: str
    flow_name: str
    execution_count: int
    completion_rate: float


@dataclass(frozen=True)
class FlowMetrics:
    """Tenant-wide flow and execution statistics."""

    total_flows: int
    active_flows: int
    paused_flows: int
    draft_flows: int
    executions: ExecutionStats
    top_flows_by_execution_count: list[TopFlowMetric] = field(default_factory=list)
