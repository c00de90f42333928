"""SQL execution store (implements IExecutionStore).

Opens one session and one transaction per call on top of the flow and
execution repositories.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.flow_execution import ExecutionClaim, ExecutionCreate
from app.domain.entities.flow import FlowEntity
from app.domain.entities.flow_execution import FlowExecutionEntity
from app.infrastructure.persistence.repositories.flow_execution_repo import (
    FlowExecutionRepository,
)
from app.infrastructure.persistence.repositories.flow_repo import FlowRepository
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class SqlExecutionStore:
    """Unit-of-work wrapper used by the trigger matcher, runner and scheduler."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_active_flows(self, tenant_id: str) -> list[FlowEntity]:
        async with self.session_factory() as session:
            return await FlowRepository(session).get_active_flows(tenant_id)

    async def start_execution(
        self, tenant_id: str, data: ExecutionCreate
    ) -> FlowExecutionEntity | None:
        try:
            async with self.session_factory() as session, session.begin():
                repo = FlowExecutionRepository(session)
                if await repo.has_live_execution(data.flow_id, data.lead_id):
                    return None
                return await repo.create_execution(tenant_id, data)
        except IntegrityError:
            # Lost the insert race to a concurrent matcher for the same (flow, lead)
            logger.info(
                "Live execution already exists for flow %s lead %s (concurrent insert)",
                data.flow_id,
                data.lead_id,
            )
            return None

    async def claim(
        self, execution_id: str, now: datetime, lease_seconds: int
    ) -> tuple[FlowExecutionEntity, ExecutionClaim] | None:
        async with self.session_factory() as session, session.begin():
            return await FlowExecutionRepository(session).claim(
                execution_id, now, now - timedelta(seconds=lease_seconds)
            )

    async def renew_claim(self, claim: ExecutionClaim, now: datetime) -> bool:
        async with self.session_factory() as session, session.begin():
            return await FlowExecutionRepository(session).renew_claim(claim, now)

    async def release(self, execution: FlowExecutionEntity, claim: ExecutionClaim) -> bool:
        async with self.session_factory() as session, session.begin():
            return await FlowExecutionRepository(session).release(execution, claim)

    async def get_due_ids(self, now: datetime, lease_seconds: int, limit: int) -> list[str]:
        async with self.session_factory() as session:
            return await FlowExecutionRepository(session).get_due_ids(
                now, now - timedelta(seconds=lease_seconds), limit
            )
