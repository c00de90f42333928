"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from app.shared.enums import ExecutionStatus, FlowStatus

if TYPE_CHECKING:
    from app.application.dtos.flow import FlowCreate
    from app.application.dtos.flow_execution import (
        ExecutionClaim,
        ExecutionCreate,
        ExecutionStatsRow,
    )
    from app.domain.entities.flow import FlowEntity
    from app.domain.entities.flow_execution import FlowExecutionEntity


# Flow repository interface
class IFlowRepository(Protocol):
    """Protocol for flow definition repository (DIP)."""

    async def create_flow(self, tenant_id: str, data: FlowCreate) -> FlowEntity:
        """Create a draft flow."""

    async def get_by_id_and_tenant(self, flow_id: str, tenant_id: str) -> FlowEntity | None:
        """Return a non-deleted flow in tenant."""

    async def get_by_tenant(
        self,
        tenant_id: str,
        status: FlowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[FlowEntity]:
        """Return non-deleted flows in tenant (newest first), optionally filtered by status."""

    async def get_active_flows(self, tenant_id: str) -> list[FlowEntity]:
        """Return active, non-deleted flows in tenant."""

    async def update_flow(
        self,
        flow_id: str,
        tenant_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        flow_data: dict[str, Any] | None = None,
        status: FlowStatus | None = None,
    ) -> FlowEntity | None:
        """Apply changes; a flow_data change increments version. None when not found."""

    async def soft_delete(self, flow_id: str, tenant_id: str) -> bool:
        """Pause and mark deleted. False when not found."""

    async def count_by_status(self, tenant_id: str) -> dict[str, int]:
        """Return non-deleted flow counts keyed by status."""

    async def get_names(self, tenant_id: str, flow_ids: set[str]) -> dict[str, str]:
        """Return flow names by id (deleted flows included)."""


# Flow execution repository interface
class IFlowExecutionRepository(Protocol):
    """Protocol for flow execution repository (DIP)."""

    async def has_live_execution(self, flow_id: str, lead_id: str) -> bool:
        """True when a non-terminal execution exists for (flow, lead)."""

    async def create_execution(self, tenant_id: str, data: ExecutionCreate) -> FlowExecutionEntity:
        """Insert a running execution; the store rejects a second live one for (flow, lead)."""

    async def get_by_id(self, execution_id: str) -> FlowExecutionEntity | None:
        """Return execution by ID."""

    async def get_by_id_and_tenant(
        self, execution_id: str, tenant_id: str
    ) -> FlowExecutionEntity | None:
        """Return execution by ID within tenant."""

    async def get_by_flow(
        self,
        flow_id: str,
        tenant_id: str,
        status: ExecutionStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[FlowExecutionEntity]:
        """Return executions of a flow (newest first)."""

    async def claim(
        self, execution_id: str, now: datetime, lease_expired_before: datetime
    ) -> tuple[FlowExecutionEntity, ExecutionClaim] | None:
        """Atomically take the lease on a live execution. None when terminal, paused or held."""

    async def release(self, execution: FlowExecutionEntity, claim: ExecutionClaim) -> bool:
        """Write execution state and drop the lease. False when the claim was lost."""

    async def save_if_unclaimed(
        self, execution: FlowExecutionEntity, lease_expired_before: datetime
    ) -> bool:
        """Operator write conditioned on version and on no unexpired lease."""

    async def get_due_ids(
        self, now: datetime, lease_expired_before: datetime, limit: int = 100
    ) -> list[str]:
        """Return ids of executions eligible to resume at now (oldest due first)."""

    async def get_stats_rows(
        self, tenant_id: str, flow_id: str | None = None
    ) -> list[ExecutionStatsRow]:
        """Return the status/timing projection of executions in tenant (optionally one flow)."""


# Execution store interface
class IExecutionStore(Protocol):
    """Protocol for the engine's transactional view of flows and executions.

    Each method runs in its own unit of work, so background workers (trigger
    matcher, runner, scheduler) never hold a transaction across an advance.
    """

    async def get_active_flows(self, tenant_id: str) -> list[FlowEntity]:
        """Return active, non-deleted flows in tenant."""

    async def start_execution(
        self, tenant_id: str, data: ExecutionCreate
    ) -> FlowExecutionEntity | None:
        """Create a running execution; None when (flow, lead) already has a live one."""

    async def claim(
        self, execution_id: str, now: datetime, lease_seconds: int
    ) -> tuple[FlowExecutionEntity, ExecutionClaim] | None:
        """Take the lease on an execution; None when terminal, paused or held elsewhere."""

    async def renew_claim(self, claim: ExecutionClaim, now: datetime) -> bool:
        """Extend a held lease to now; False when another worker took it over."""

    async def release(self, execution: FlowExecutionEntity, claim: ExecutionClaim) -> bool:
        """Persist the advanced state and drop the lease; False when the claim was lost."""

    async def get_due_ids(self, now: datetime, lease_seconds: int, limit: int) -> list[str]:
        """Return ids of executions eligible to resume at now."""
