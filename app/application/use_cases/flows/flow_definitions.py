"""Flow definition use cases: CRUD plus activation lifecycle."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.application.services.flow_graph_validator import validate_flow_graph
from app.domain.exceptions import FlowValidationException, ResourceNotFoundException
from app.shared.enums import FlowStatus
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.dtos.flow import FlowCreate, FlowUpdate, FlowValidationResult
    from app.application.interfaces.repositories import IFlowRepository
    from app.domain.entities.flow import FlowEntity

logger = get_logger(__name__)


class FlowDefinitionsUseCase:
    """Operator-facing flow store operations.

    Executions already in flight keep the graph they started with; edits and
    status changes here only affect executions started afterwards.
    """

    def __init__(self, flow_repo: IFlowRepository) -> None:
        self.flow_repo = flow_repo

    async def create_flow(self, tenant_id: str, data: FlowCreate) -> FlowEntity:
        flow = await self.flow_repo.create_flow(tenant_id, data)
        logger.info("Created flow %s (%s) in tenant %s", flow.id, flow.name, tenant_id)
        return flow

    async def get_flow(self, tenant_id: str, flow_id: str) -> FlowEntity:
        flow = await self.flow_repo.get_by_id_and_tenant(flow_id, tenant_id)
        if flow is None:
            raise ResourceNotFoundException("flow", flow_id)
        return flow

    async def list_flows(
        self,
        tenant_id: str,
        status: FlowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[FlowEntity]:
        return await self.flow_repo.get_by_tenant(tenant_id, status=status, skip=skip, limit=limit)

    async def update_flow(self, tenant_id: str, flow_id: str, data: FlowUpdate) -> FlowEntity:
        """Apply a partial update.

        An active flow only accepts a graph that passes validation, so the
        matcher never starts executions on a broken graph.

        Raises:
            ResourceNotFoundException: Flow not found in tenant.
            FlowValidationException: Active flow and the new graph has errors.
        """
        current = await self.get_flow(tenant_id, flow_id)
        if data.flow_data is not None and current.is_active:
            self._ensure_valid(flow_id, validate_flow_graph(data.flow_data))
        flow = await self.flow_repo.update_flow(
            flow_id,
            tenant_id,
            name=data.name,
            description=data.description,
            flow_data=data.flow_data,
        )
        if flow is None:
            raise ResourceNotFoundException("flow", flow_id)
        return flow

    async def validate_flow(self, tenant_id: str, flow_id: str) -> FlowValidationResult:
        flow = await self.get_flow(tenant_id, flow_id)
        return validate_flow_graph(flow.flow_data)

    async def activate_flow(self, tenant_id: str, flow_id: str) -> FlowEntity:
        """Validate the graph and mark the flow active.

        Raises:
            FlowValidationException: The validator reported errors.
        """
        flow = await self.get_flow(tenant_id, flow_id)
        self._ensure_valid(flow_id, validate_flow_graph(flow.flow_data))
        return await self._set_status(tenant_id, flow_id, FlowStatus.ACTIVE)

    async def pause_flow(self, tenant_id: str, flow_id: str) -> FlowEntity:
        """Stop matching new events; in-flight executions carry on."""
        await self.get_flow(tenant_id, flow_id)
        return await self._set_status(tenant_id, flow_id, FlowStatus.PAUSED)

    async def delete_flow(self, tenant_id: str, flow_id: str) -> None:
        if not await self.flow_repo.soft_delete(flow_id, tenant_id):
            raise ResourceNotFoundException("flow", flow_id)
        logger.info("Deleted flow %s in tenant %s", flow_id, tenant_id)

    async def _set_status(self, tenant_id: str, flow_id: str, status: FlowStatus) -> FlowEntity:
        flow = await self.flow_repo.update_flow(flow_id, tenant_id, status=status)
        if flow is None:
            raise ResourceNotFoundException("flow", flow_id)
        logger.info("Flow %s is now %s", flow_id, status.value)
        return flow

    @staticmethod
    def _ensure_valid(flow_id: str, result: FlowValidationResult) -> None:
        if not result.is_valid:
            raise FlowValidationException(flow_id, result.errors, result.warnings)
