"""Flow execution domain entity.

One lead's live position inside one flow. The graph interpreter mutates an
entity in memory; the execution store persists it under a worker claim.

Terminal states: completed, and error without a pending retry. Everything
else (running, waiting, paused, error with next_execution_at set) is live,
and at most one live execution exists per (flow_id, lead_id).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.entities.flow_graph import FlowGraph
from app.shared.enums import ExecutionErrorKind, ExecutionStatus


@dataclass
class FlowExecutionEntity:
    """Domain entity for a flow execution."""

    id: str
    tenant_id: str
    flow_id: str
    lead_id: str
    current_node_id: str | None
    status: ExecutionStatus
    execution_data: dict[str, Any]
    started_at: datetime
    graph_snapshot: dict[str, Any]
    flow_version: int = 1
    completed_at: datetime | None = None
    next_execution_at: datetime | None = None
    created_by: str | None = None
    retry_count: int = 0
    last_error: str | None = None
    error_kind: ExecutionErrorKind | None = None
    waiting_since: datetime | None = None
    steps_executed: int = 0
    execution_log: list[dict[str, Any]] = field(default_factory=list)
    version: int = 1

    @property
    def is_retry_pending(self) -> bool:
        return self.status is ExecutionStatus.ERROR and self.next_execution_at is not None

    @property
    def is_terminal(self) -> bool:
        """Completed, or errored with no retry scheduled."""
        if self.status is ExecutionStatus.COMPLETED:
            return True
        return self.status is ExecutionStatus.ERROR and self.next_execution_at is None

    def graph(self) -> FlowGraph:
        """Parse the graph captured when the execution started."""
        return FlowGraph.from_payload(self.graph_snapshot)

    def move_to(self, node_id: str) -> None:
        self.current_node_id = node_id
        self.status = ExecutionStatus.RUNNING
        self.next_execution_at = None
        self.waiting_since = None

    def suspend_until(self, resume_at: datetime, now: datetime) -> None:
        """Park at the current (wait) node until resume_at."""
        self.status = ExecutionStatus.WAITING
        self.next_execution_at = resume_at
        if self.waiting_since is None:
            self.waiting_since = now

    def complete(self, now: datetime) -> None:
        self.status = ExecutionStatus.COMPLETED
        self.completed_at = now
        self.current_node_id = None
        self.next_execution_at = None
        self.waiting_since = None

    def fail(self, kind: ExecutionErrorKind, reason: str) -> None:
        """Terminal error; current_node_id is kept to show where it stopped."""
        self.status = ExecutionStatus.ERROR
        self.error_kind = kind
        self.last_error = reason
        self.next_execution_at = None

    def schedule_retry(self, reason: str, retry_at: datetime) -> None:
        """Retryable error: same node, re-attempted by the scheduler at retry_at."""
        self.status = ExecutionStatus.ERROR
        self.error_kind = ExecutionErrorKind.TRANSIENT
        self.last_error = reason
        self.retry_count += 1
        self.next_execution_at = retry_at

    def clear_error(self) -> None:
        self.retry_count = 0
        self.last_error = None
        self.error_kind = None

    def record_step(
        self,
        node_id: str,
        kind: str,
        outcome: str,
        now: datetime,
        *,
        max_entries: int,
        detail: str | None = None,
    ) -> None:
        """Append to the bounded execution log (oldest entries dropped)."""
        entry: dict[str, Any] = {
            "node_id": node_id,
            "kind": kind,
            "outcome": outcome,
            "at": now.isoformat(),
        }
        if detail:
            entry["detail"] = detail
        self.execution_log.append(entry)
        if len(self.execution_log) > max_entries:
            del self.execution_log[: len(self.execution_log) - max_entries]

    def pause(self) -> None:
        """Operator pause; next_execution_at is kept for resume."""
        self.status = ExecutionStatus.PAUSED

    def resume(self, now: datetime, *, parked_on_wait: bool) -> None:
        """Operator resume: back to waiting on a pending wait, else due now."""
        if parked_on_wait and self.next_execution_at is not None:
            self.status = ExecutionStatus.WAITING
            return
        self.status = ExecutionStatus.RUNNING
        self.next_execution_at = now
