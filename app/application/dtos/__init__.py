"""Application DTOs (no ORM dependency)."""

from app.application.dtos.action import (
    ActionContext,
    ActionFailed,
    ActionOutcome,
    ActionSucceeded,
)
from app.application.dtos.flow import FlowCreate, FlowUpdate, FlowValidationResult
from app.application.dtos.flow_execution import (
    DomainEvent,
    ExecutionClaim,
    ExecutionCreate,
    ExecutionStatsRow,
    MatchResult,
    SchedulerRunResult,
)
from app.application.dtos.metrics import ExecutionStats, FlowMetrics, TopFlowMetric

__all__ = [
    "ActionContext",
    "ActionFailed",
    "ActionOutcome",
    "ActionSucceeded",
    "DomainEvent",
    "ExecutionClaim",
    "ExecutionCreate",
    "ExecutionStats",
    "ExecutionStatsRow",
    "FlowCreate",
    "FlowMetrics",
    "FlowUpdate",
    "FlowValidationResult",
    "MatchResult",
    "SchedulerRunResult",
    "TopFlowMetric",
]
