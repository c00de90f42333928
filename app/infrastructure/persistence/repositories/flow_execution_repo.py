"""FlowExecution repository (implements IFlowExecutionRepository).

Concurrency discipline:
- claim() is a conditional UPDATE keyed on the row version and on the
  absence of an unexpired lease; it bumps version and stores a fresh
  claim token.
- release() writes the new state only while the row still carries that
  token, then clears the lease.
- save_if_unclaimed() is the operator path: version must match and no
  worker may hold an unexpired lease.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow_execution import (
    ExecutionClaim,
    ExecutionCreate,
    ExecutionStatsRow,
)
from app.domain.entities.flow_execution import FlowExecutionEntity
from app.infrastructure.persistence.models.flow import FlowExecution
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import ExecutionErrorKind, ExecutionStatus
from app.shared.utils.datetime import ensure_utc
from app.shared.utils.generators import generate_claim_token


def active_key(flow_id: str, lead_id: str) -> str:
    return f"{flow_id}:{lead_id}"


def to_execution_entity(row: FlowExecution) -> FlowExecutionEntity:
    return FlowExecutionEntity(
        id=row.id,
        tenant_id=row.tenant_id,
        flow_id=row.flow_id,
        lead_id=row.lead_id,
        current_node_id=row.current_node_id,
        status=ExecutionStatus(row.status),
        execution_data=dict(row.execution_data or {}),
        started_at=ensure_utc(row.started_at),
        graph_snapshot=row.graph_snapshot or {},
        flow_version=row.flow_version,
        completed_at=ensure_utc(row.completed_at),
        next_execution_at=ensure_utc(row.next_execution_at),
        created_by=row.created_by,
        retry_count=row.retry_count,
        last_error=row.last_error,
        error_kind=ExecutionErrorKind(row.error_kind) if row.error_kind else None,
        waiting_since=ensure_utc(row.waiting_since),
        steps_executed=row.steps_executed,
        execution_log=list(row.execution_log or []),
        version=row.version,
    )


def _state_values(execution: FlowExecutionEntity) -> dict[str, Any]:
    """Columns written back after an advance or an operator transition."""
    return {
        "current_node_id": execution.current_node_id,
        "status": execution.status.value,
        "execution_data": execution.execution_data,
        "completed_at": execution.completed_at,
        "next_execution_at": execution.next_execution_at,
        "retry_count": execution.retry_count,
        "last_error": execution.last_error,
        "error_kind": execution.error_kind.value if execution.error_kind else None,
        "waiting_since": execution.waiting_since,
        "steps_executed": execution.steps_executed,
        "execution_log": execution.execution_log,
        "active_key": None
        if execution.is_terminal
        else active_key(execution.flow_id, execution.lead_id),
        "claim_token": None,
        "claimed_at": None,
        "version": FlowExecution.version + 1,
    }


def _lease_free(lease_expired_before: datetime) -> Any:
    return or_(
        FlowExecution.claim_token.is_(None),
        FlowExecution.claimed_at < lease_expired_before,
    )


class FlowExecutionRepository(BaseRepository[FlowExecution]):
    """Flow execution repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, FlowExecution)

    async def has_live_execution(self, flow_id: str, lead_id: str) -> bool:
        result = await self.db.execute(
            select(FlowExecution.id).where(
                FlowExecution.active_key == active_key(flow_id, lead_id)
            )
        )
        return result.first() is not None

    async def create_execution(
        self, tenant_id: str, data: ExecutionCreate
    ) -> FlowExecutionEntity:
        """Insert a running execution.

        Raises sqlalchemy IntegrityError (on flush) when a live execution
        already exists for (flow, lead).
        """
        row = FlowExecution(
            tenant_id=tenant_id,
            flow_id=data.flow_id,
            lead_id=data.lead_id,
            current_node_id=data.current_node_id,
            status=ExecutionStatus.RUNNING.value,
            execution_data=data.execution_data,
            started_at=data.started_at,
            created_by=data.created_by,
            flow_version=data.flow_version,
            graph_snapshot=data.graph_snapshot,
            retry_count=0,
            steps_executed=0,
            execution_log=[],
            active_key=active_key(data.flow_id, data.lead_id),
            version=1,
        )
        return to_execution_entity(await self._create_row(row))

    async def get_by_id(self, execution_id: str) -> FlowExecutionEntity | None:
        row = await self._get_row(execution_id)
        return to_execution_entity(row) if row else None

    async def get_by_id_and_tenant(
        self, execution_id: str, tenant_id: str
    ) -> FlowExecutionEntity | None:
        result = await self.db.execute(
            select(FlowExecution).where(
                FlowExecution.id == execution_id,
                FlowExecution.tenant_id == tenant_id,
            )
        )
        row = result.scalar_one_or_none()
        return to_execution_entity(row) if row else None

    async def get_by_flow(
        self,
        flow_id: str,
        tenant_id: str,
        status: ExecutionStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[FlowExecutionEntity]:
        q = select(FlowExecution).where(
            FlowExecution.flow_id == flow_id,
            FlowExecution.tenant_id == tenant_id,
        )
        if status is not None:
            q = q.where(FlowExecution.status == status.value)
        q = q.order_by(FlowExecution.started_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(q)
        return [to_execution_entity(row) for row in result.scalars().all()]

    async def claim(
        self, execution_id: str, now: datetime, lease_expired_before: datetime
    ) -> tuple[FlowExecutionEntity, ExecutionClaim] | None:
        """Take the lease on a live, non-paused execution. None when not claimable."""
        current = await self._get_row(execution_id)
        if (
            current is None
            or current.active_key is None
            or current.status == ExecutionStatus.PAUSED.value
        ):
            return None
        token = generate_claim_token()
        result = await self.db.execute(
            update(FlowExecution)
            .where(
                FlowExecution.id == execution_id,
                FlowExecution.version == current.version,
                _lease_free(lease_expired_before),
            )
            .values(claim_token=token, claimed_at=now, version=FlowExecution.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        await self.db.refresh(current)
        return (
            to_execution_entity(current),
            ExecutionClaim(execution_id=execution_id, token=token, claimed_at=now),
        )

    async def renew_claim(self, claim: ExecutionClaim, now: datetime) -> bool:
        """Push the lease forward for a long advance; False when the claim was lost."""
        result = await self.db.execute(
            update(FlowExecution)
            .where(
                FlowExecution.id == claim.execution_id,
                FlowExecution.claim_token == claim.token,
            )
            .values(claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release(self, execution: FlowExecutionEntity, claim: ExecutionClaim) -> bool:
        """Write the advanced state; False when the claim was lost meanwhile."""
        result = await self.db.execute(
            update(FlowExecution)
            .where(
                FlowExecution.id == claim.execution_id,
                FlowExecution.claim_token == claim.token,
            )
            .values(**_state_values(execution))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def save_if_unclaimed(
        self, execution: FlowExecutionEntity, lease_expired_before: datetime
    ) -> bool:
        result = await self.db.execute(
            update(FlowExecution)
            .where(
                FlowExecution.id == execution.id,
                FlowExecution.version == execution.version,
                _lease_free(lease_expired_before),
            )
            .values(**_state_values(execution))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        execution.version += 1
        return True

    async def get_due_ids(
        self, now: datetime, lease_expired_before: datetime, limit: int = 100
    ) -> list[str]:
        """Live, non-paused, unleased executions whose resume instant has passed.

        Running executions without a pending instant are included: they were
        created (or resumed) but their advance never finished.
        """
        result = await self.db.execute(
            select(FlowExecution.id)
            .where(
                FlowExecution.active_key.is_not(None),
                FlowExecution.status != ExecutionStatus.PAUSED.value,
                _lease_free(lease_expired_before),
                or_(
                    FlowExecution.next_execution_at <= now,
                    (FlowExecution.status == ExecutionStatus.RUNNING.value)
                    & FlowExecution.next_execution_at.is_(None),
                ),
            )
            .order_by(FlowExecution.next_execution_at.asc(), FlowExecution.started_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_stats_rows(
        self, tenant_id: str, flow_id: str | None = None
    ) -> list[ExecutionStatsRow]:
        q = select(
            FlowExecution.flow_id,
            FlowExecution.status,
            FlowExecution.started_at,
            FlowExecution.completed_at,
        ).where(FlowExecution.tenant_id == tenant_id)
        if flow_id is not None:
            q = q.where(FlowExecution.flow_id == flow_id)
        result = await self.db.execute(q)
        return [
            ExecutionStatsRow(
                flow_id=row.flow_id,
                status=ExecutionStatus(row.status),
                started_at=ensure_utc(row.started_at),
                completed_at=ensure_utc(row.completed_at),
            )
            for row in result.all()
        ]
