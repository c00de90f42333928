"""Trigger matcher: turns domain events into new flow executions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.application.dtos.flow_execution import DomainEvent, ExecutionCreate, MatchResult
from app.application.services.trigger_filters import trigger_matches
from app.domain.exceptions import FlowDefinitionException
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import TracedOperation

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IExecutionStore
    from app.application.interfaces.services import IClock
    from app.application.use_cases.engine.execution_runner import ExecutionRunner
    from app.domain.entities.flow import FlowEntity

logger = get_logger(__name__)


class TriggerMatcher:
    """Single entry point for domain events (the event bus's subscriber)."""

    def __init__(
        self,
        store: IExecutionStore,
        runner: ExecutionRunner,
        clock: IClock,
    ) -> None:
        self.store = store
        self.runner = runner
        self.clock = clock

    async def on_domain_event(self, event: DomainEvent) -> MatchResult:
        """Start one execution per matching active flow, then advance each.

        A lead already inside a flow is not entered again: the event is
        dropped for that flow. Failures are isolated per flow.
        """
        result = MatchResult()
        attributes = {
            "tenant.id": event.tenant_id,
            "flow.lead_id": event.lead_id,
            "event.type": event.type,
        }
        async with TracedOperation("flow.match_event", attributes) as op:
            flows = await self.store.get_active_flows(event.tenant_id)
            for flow in flows:
                try:
                    execution_id = await self._start(flow, event, result)
                except FlowDefinitionException as e:
                    logger.warning("Flow %s cannot be started: %s", flow.id, e.message)
                    continue
                except Exception:
                    logger.exception(
                        "Trigger matching failed for flow %s, event %s lead %s",
                        flow.id,
                        event.type,
                        event.lead_id,
                    )
                    continue
                if execution_id is not None:
                    result.created_execution_ids.append(execution_id)

            for execution_id in result.created_execution_ids:
                try:
                    await self.runner.run(execution_id)
                except Exception:
                    # Left running with no pending instant; the scheduler picks it up
                    logger.exception("First advance of execution %s failed", execution_id)
            if op.span is not None:
                op.span.set_attribute("flow.matched", len(result.matched_flow_ids))
        return result

    async def _start(
        self, flow: FlowEntity, event: DomainEvent, result: MatchResult
    ) -> str | None:
        graph = flow.graph()
        triggers = graph.trigger_nodes()
        if len(triggers) != 1:
            logger.warning(
                "Flow %s has %d trigger nodes; skipping", flow.id, len(triggers)
            )
            return None
        trigger = triggers[0]
        if not trigger_matches(trigger.config, event.type, event.payload, event.occurred_at):
            return None
        result.matched_flow_ids.append(flow.id)

        first_node_id = graph.successor(trigger.id)
        if first_node_id is None:
            raise FlowDefinitionException(
                f"Trigger {trigger.id} of flow {flow.id} has no outgoing edge", trigger.id
            )
        execution = await self.store.start_execution(
            flow.tenant_id,
            ExecutionCreate(
                flow_id=flow.id,
                lead_id=event.lead_id,
                flow_version=flow.version,
                graph_snapshot=flow.flow_data,
                current_node_id=first_node_id,
                execution_data=dict(event.payload),
                started_at=self.clock.now(),
                created_by=flow.created_by,
            ),
        )
        if execution is None:
            result.duplicate_flow_ids.append(flow.id)
            logger.info(
                "Lead %s already inside flow %s; %s event dropped",
                event.lead_id,
                flow.id,
                event.type,
            )
            return None
        logger.info(
            "Started execution %s of flow %s for lead %s", execution.id, flow.id, event.lead_id
        )
        return execution.id
