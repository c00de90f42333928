"""AutomationFlow repository (implements IFlowRepository)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow import FlowCreate
from app.domain.entities.flow import FlowEntity
from app.infrastructure.persistence.models.flow import AutomationFlow
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import FlowStatus
from app.shared.utils.datetime import ensure_utc, utc_now


def _empty_graph() -> dict[str, Any]:
    return {"nodes": [], "edges": []}


def to_flow_entity(row: AutomationFlow) -> FlowEntity:
    return FlowEntity(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        description=row.description,
        status=FlowStatus(row.status),
        flow_data=row.flow_data or _empty_graph(),
        version=row.version,
        created_by=row.created_by,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
    )


class FlowRepository(BaseRepository[AutomationFlow]):
    """Flow definition repository. Soft-deleted flows are hidden from reads."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AutomationFlow)

    async def _get_live_row(self, flow_id: str, tenant_id: str) -> AutomationFlow | None:
        result = await self.db.execute(
            select(AutomationFlow).where(
                AutomationFlow.id == flow_id,
                AutomationFlow.tenant_id == tenant_id,
                AutomationFlow.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def create_flow(self, tenant_id: str, data: FlowCreate) -> FlowEntity:
        """Create a draft flow; return created entity."""
        row = AutomationFlow(
            tenant_id=tenant_id,
            name=data.name,
            description=data.description,
            status=FlowStatus.DRAFT.value,
            flow_data=data.flow_data or _empty_graph(),
            version=1,
            created_by=data.created_by,
        )
        return to_flow_entity(await self._create_row(row))

    async def get_by_id_and_tenant(self, flow_id: str, tenant_id: str) -> FlowEntity | None:
        row = await self._get_live_row(flow_id, tenant_id)
        return to_flow_entity(row) if row else None

    async def get_by_tenant(
        self,
        tenant_id: str,
        status: FlowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[FlowEntity]:
        q = select(AutomationFlow).where(
            AutomationFlow.tenant_id == tenant_id,
            AutomationFlow.deleted_at.is_(None),
        )
        if status is not None:
            q = q.where(AutomationFlow.status == status.value)
        q = q.order_by(AutomationFlow.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(q)
        return [to_flow_entity(row) for row in result.scalars().all()]

    async def get_active_flows(self, tenant_id: str) -> list[FlowEntity]:
        result = await self.db.execute(
            select(AutomationFlow)
            .where(
                AutomationFlow.tenant_id == tenant_id,
                AutomationFlow.status == FlowStatus.ACTIVE.value,
                AutomationFlow.deleted_at.is_(None),
            )
            .order_by(AutomationFlow.created_at.asc())
        )
        return [to_flow_entity(row) for row in result.scalars().all()]

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
        """Apply changes; a flow_data change increments version."""
        row = await self._get_live_row(flow_id, tenant_id)
        if row is None:
            return None
        if name is not None:
            row.name = name
        if description is not None:
            row.description = description
        if flow_data is not None and flow_data != row.flow_data:
            row.flow_data = flow_data
            row.version += 1
        if status is not None:
            row.status = status.value
        return to_flow_entity(await self._update_row(row))

    async def soft_delete(self, flow_id: str, tenant_id: str) -> bool:
        row = await self._get_live_row(flow_id, tenant_id)
        if row is None:
            return False
        row.status = FlowStatus.PAUSED.value
        row.deleted_at = utc_now()
        await self._update_row(row)
        return True

    async def count_by_status(self, tenant_id: str) -> dict[str, int]:
        result = await self.db.execute(
            select(AutomationFlow.status, func.count(AutomationFlow.id))
            .where(
                AutomationFlow.tenant_id == tenant_id,
                AutomationFlow.deleted_at.is_(None),
            )
            .group_by(AutomationFlow.status)
        )
        return {status: count for status, count in result.all()}

    async def get_names(self, tenant_id: str, flow_ids: set[str]) -> dict[str, str]:
        if not flow_ids:
            return {}
        result = await self.db.execute(
            select(AutomationFlow.id, AutomationFlow.name).where(
                AutomationFlow.tenant_id == tenant_id,
                AutomationFlow.id.in_(flow_ids),
            )
        )
        return {flow_id: name for flow_id, name in result.all()}
