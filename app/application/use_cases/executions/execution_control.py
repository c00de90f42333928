"""Operator transitions on a flow execution (pause, resume, cancel)."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from app.domain.entities.flow_graph import WaitConfig
from app.domain.exceptions import (
    ExecutionConflictException,
    FlowDefinitionException,
    InvalidExecutionTransitionException,
    ResourceNotFoundException,
)
from app.shared.enums import ExecutionStatus
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IFlowExecutionRepository
    from app.application.interfaces.services import IClock
    from app.domain.entities.flow_execution import FlowExecutionEntity

logger = get_logger(__name__)

OPERATOR = "operator"


class ExecutionControlUseCase:
    """Out-of-band status writes that never race an in-flight advance.

    Each write is conditioned on the execution's version and on no worker
    holding an unexpired claim; otherwise ExecutionConflictException.
    """

    def __init__(
        self,
        execution_repo: IFlowExecutionRepository,
        clock: IClock,
        lease_seconds: int = 300,
        log_max_entries: int = 200,
    ) -> None:
        self.execution_repo = execution_repo
        self.clock = clock
        self.lease_seconds = lease_seconds
        self.log_max_entries = log_max_entries

    async def get(self, tenant_id: str, execution_id: str) -> FlowExecutionEntity:
        execution = await self.execution_repo.get_by_id_and_tenant(execution_id, tenant_id)
        if execution is None:
            raise ResourceNotFoundException("flow_execution", execution_id)
        return execution

    async def pause(self, tenant_id: str, execution_id: str) -> FlowExecutionEntity:
        """running / waiting / retry-pending error → paused."""
        execution = await self.get(tenant_id, execution_id)
        if execution.is_terminal or execution.status is ExecutionStatus.PAUSED:
            raise InvalidExecutionTransitionException(
                execution_id, execution.status.value, "pause"
            )
        execution.pause()
        return await self._save(execution, "paused")

    async def resume(self, tenant_id: str, execution_id: str) -> FlowExecutionEntity:
        """paused → waiting (pending wait) or running due now.

        The scheduler picks the execution up on its next cycle.
        """
        execution = await self.get(tenant_id, execution_id)
        if execution.status is not ExecutionStatus.PAUSED:
            raise InvalidExecutionTransitionException(
                execution_id, execution.status.value, "resume"
            )
        execution.resume(self.clock.now(), parked_on_wait=self._parked_on_wait(execution))
        return await self._save(execution, "resumed")

    async def cancel(self, tenant_id: str, execution_id: str) -> FlowExecutionEntity:
        """Any non-terminal status → completed."""
        execution = await self.get(tenant_id, execution_id)
        if execution.is_terminal:
            raise InvalidExecutionTransitionException(
                execution_id, execution.status.value, "cancel"
            )
        node_id = execution.current_node_id
        execution.complete(self.clock.now())
        return await self._save(execution, "cancelled", node_id)

    def _parked_on_wait(self, execution: FlowExecutionEntity) -> bool:
        try:
            node = execution.graph().get_node(execution.current_node_id)
        except FlowDefinitionException:
            return False
        return node is not None and isinstance(node.config, WaitConfig)

    async def _save(
        self,
        execution: FlowExecutionEntity,
        outcome: str,
        node_id: str | None = None,
    ) -> FlowExecutionEntity:
        now = self.clock.now()
        execution.record_step(
            node_id or execution.current_node_id or "-",
            OPERATOR,
            outcome,
            now,
            max_entries=self.log_max_entries,
        )
        saved = await self.execution_repo.save_if_unclaimed(
            execution, now - timedelta(seconds=self.lease_seconds)
        )
        if not saved:
            raise ExecutionConflictException(execution.id)
        logger.info("Execution %s %s by operator", execution.id, outcome)
        return execution
