"""Flow execution API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.shared.enums import ExecutionErrorKind, ExecutionStatus


class ExecutionLogEntry(BaseModel):
    node_id: str
    kind: str
    outcome: str
    at: str
    detail: str | None = None


class ExecutionResponse(BaseModel):
    """One lead's progress through a flow."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    flow_id: str
    lead_id: str
    flow_version: int
    current_node_id: str | None
    status: ExecutionStatus
    execution_data: dict[str, Any]
    started_at: datetime
    completed_at: datetime | None
    next_execution_at: datetime | None
    created_by: str | None
    retry_count: int
    last_error: str | None
    error_kind: ExecutionErrorKind | None
    waiting_since: datetime | None
    steps_executed: int
    execution_log: list[ExecutionLogEntry] = Field(default_factory=list)


class SchedulerRunResponse(BaseModel):
    """Counters for one on-demand resumption cycle."""

    model_config = ConfigDict(from_attributes=True)

    due: int
    advanced: int
    skipped: int
    failed: int
