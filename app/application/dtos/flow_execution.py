"""DTOs for flow executions, domain events and scheduler runs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.shared.enums import ExecutionStatus
from app.shared.utils.datetime import parse_iso_datetime, utc_now


@dataclass(frozen=True)
class DomainEvent:
    """A CRM domain event (lead created, tag added, stage changed, ...)."""

    type: str
    lead_id: str
    tenant_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form used on the Redis channel."""
        return {
            "type": self.type,
            "lead_id": self.lead_id,
            "tenant_id": self.tenant_id,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DomainEvent":
        """Deserialize from a Redis message; occurred_at defaults to now."""
        raw_occurred_at = data.get("occurred_at")
        return cls(
            type=data["type"],
            lead_id=data["lead_id"],
            tenant_id=data["tenant_id"],
            payload=dict(data.get("payload") or {}),
            occurred_at=parse_iso_datetime(raw_occurred_at) if raw_occurred_at else utc_now(),
        )


@dataclass(frozen=True)
class ExecutionCreate:
    """Write-model for a new execution produced by the trigger matcher."""

    flow_id: str
    lead_id: str
    flow_version: int
    graph_snapshot: dict[str, Any]
    current_node_id: str
    execution_data: dict[str, Any]
    started_at: datetime
    created_by: str | None = None


@dataclass(frozen=True)
class ExecutionClaim:
    """A worker's lease on one execution; released by writing the new state."""

    execution_id: str
    token: str
    claimed_at: datetime


@dataclass(frozen=True)
class ExecutionStatsRow:
    """Per-execution projection used by the metrics aggregator."""

    flow_id: str
    status: ExecutionStatus
    started_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True)
class MatchResult:
    """Outcome of routing one domain event through the trigger matcher."""

    matched_flow_ids: list[str] = field(default_factory=list)
    created_execution_ids: list[str] = field(default_factory=list)
    duplicate_flow_ids: list[str] = field(default_factory=list)


@dataclass
class SchedulerRunResult:
    """Counters for one resumption cycle."""

    due: int = 0
    advanced: int = 0
    skipped: int = 0
    failed: int = 0
