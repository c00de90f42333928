"""Graph interpreter: walks one execution through its flow graph.

advance() evaluates nodes one at a time until the execution suspends at a
wait node, schedules a retry after a transient action failure, completes,
or fails. Every outcome is written onto the execution entity; advance()
never raises.

Re-entry rules:
- waiting: the wait node already gated time, so the walk resumes at its
  successor. Field waits are the exception and are re-checked in place.
- error with a pending retry: the failed node is re-attempted.
- running: the current node is evaluated.
- paused and terminal executions are returned untouched.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from app.application.dtos.action import ActionContext, ActionFailed, ActionSucceeded
from app.application.interfaces.services import IActionDispatcher, IClock
from app.application.services.condition_evaluator import ConditionEvaluator
from app.application.services.wait_planner import FallThrough, SuspendUntil, WaitPlanner
from app.domain.entities.flow_execution import FlowExecutionEntity
from app.domain.entities.flow_graph import (
    ActionConfig,
    ConditionConfig,
    EndConfig,
    FlowGraph,
    FlowNode,
    TriggerConfig,
    WaitConfig,
)
from app.domain.exceptions import (
    ExternalServiceException,
    FlowDefinitionException,
    LeadflowException,
)
from app.shared.enums import (
    BranchHandle,
    ExecutionErrorKind,
    ExecutionStatus,
    WaitType,
)
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import TracedOperation

logger = get_logger(__name__)


class _Stop(Exception):
    """Internal: the walk reached a suspension point or a terminal state."""


class _LeaseLost(_Stop):
    """Internal: the worker lost its lease; no further node may run."""


class GraphInterpreter:
    """Sequential step loop over one execution at a time."""

    def __init__(
        self,
        dispatcher: IActionDispatcher,
        evaluator: ConditionEvaluator,
        wait_planner: WaitPlanner,
        clock: IClock,
        *,
        max_steps: int = 1000,
        max_retries: int = 5,
        retry_base_seconds: int = 60,
        retry_max_seconds: int = 3600,
        log_max_entries: int = 200,
    ) -> None:
        self.dispatcher = dispatcher
        self.evaluator = evaluator
        self.wait_planner = wait_planner
        self.clock = clock
        self.max_steps = max_steps
        self.max_retries = max_retries
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds
        self.log_max_entries = log_max_entries

    def retry_delay(self, retry_count: int) -> timedelta:
        """Exponential backoff for the (retry_count + 1)-th retry, capped."""
        seconds = min(self.retry_base_seconds * 2**retry_count, self.retry_max_seconds)
        return timedelta(seconds=seconds)

    def is_due(self, execution: FlowExecutionEntity, now: datetime) -> bool:
        """Whether advance() would do anything at now."""
        if execution.is_terminal or execution.status is ExecutionStatus.PAUSED:
            return False
        if execution.next_execution_at is None:
            return execution.status is ExecutionStatus.RUNNING
        return execution.next_execution_at <= now

    async def advance(
        self,
        execution: FlowExecutionEntity,
        heartbeat: Callable[[], Awaitable[bool]] | None = None,
    ) -> FlowExecutionEntity:
        """Walk the execution to its next suspension point or terminal state.

        heartbeat is awaited before every node; when it returns False the walk
        stops at once and the in-memory state must not be persisted.
        """
        now = self.clock.now()
        if not self.is_due(execution, now):
            return execution

        attributes = {
            "flow.id": execution.flow_id,
            "flow.execution_id": execution.id,
            "flow.lead_id": execution.lead_id,
            "tenant.id": execution.tenant_id,
        }
        async with TracedOperation("flow.advance", attributes) as op:
            try:
                graph = execution.graph()
                await self._walk(execution, graph, heartbeat)
            except _Stop:
                pass
            except FlowDefinitionException as e:
                self._fail(execution, ExecutionErrorKind.DEFINITION, e.message, e.details.get("node_id"))
            if op.span is not None:
                op.span.set_attribute("flow.status", execution.status.value)
        return execution

    async def _walk(
        self,
        execution: FlowExecutionEntity,
        graph: FlowGraph,
        heartbeat: Callable[[], Awaitable[bool]] | None,
    ) -> None:
        if execution.status is ExecutionStatus.WAITING:
            node = self._current_node(execution, graph)
            is_field_wait = (
                isinstance(node.config, WaitConfig)
                and node.config.wait_type is WaitType.UNTIL_FIELD
            )
            if not is_field_wait:
                self._record(execution, node, "resumed")
                self._go_to_successor(execution, graph, node)
        elif execution.status is ExecutionStatus.ERROR:
            execution.status = ExecutionStatus.RUNNING
            execution.next_execution_at = None

        steps = 0
        while True:
            if steps >= self.max_steps:
                raise FlowDefinitionException(
                    f"Step limit of {self.max_steps} exceeded; the graph likely loops",
                    execution.current_node_id,
                )
            if heartbeat is not None and not await heartbeat():
                logger.warning(
                    "Execution %s: lease lost before node %s, stopping",
                    execution.id,
                    execution.current_node_id,
                )
                raise _LeaseLost
            node = self._current_node(execution, graph)
            steps += 1
            execution.steps_executed += 1
            try:
                await self._step(execution, graph, node)
            except (_Stop, FlowDefinitionException):
                raise
            except ExternalServiceException as e:
                if e.retryable:
                    self._retry_or_fail(execution, node, e.message)
                else:
                    self._fail(execution, ExecutionErrorKind.PERMANENT, e.message, node.id)
                raise _Stop from e
            except LeadflowException as e:
                self._fail(execution, ExecutionErrorKind.PERMANENT, e.message, node.id)
                raise _Stop from e
            except Exception as e:
                logger.exception(
                    "Unexpected error at node %s of execution %s", node.id, execution.id
                )
                self._fail(execution, ExecutionErrorKind.PERMANENT, f"Unexpected error: {e}", node.id)
                raise _Stop from e
            # Each node starts with the full retry budget
            execution.clear_error()

    async def _step(
        self, execution: FlowExecutionEntity, graph: FlowGraph, node: FlowNode
    ) -> None:
        match node.config:
            case EndConfig():
                self._record(execution, node, "completed")
                self._complete(execution)
                raise _Stop
            case TriggerConfig():
                self._record(execution, node, "entered")
                self._go_to_successor(execution, graph, node)
            case ActionConfig() as action:
                await self._run_action(execution, graph, node, action)
            case ConditionConfig() as condition:
                result = await self.evaluator.evaluate(
                    condition, execution.tenant_id, execution.lead_id, execution.execution_data
                )
                handle = BranchHandle.YES if result else BranchHandle.NO
                target = graph.branch_target(node.id, handle)
                if target is None:
                    raise FlowDefinitionException(
                        f"Condition {node.id} has no '{handle.value}' edge", node.id
                    )
                self._record(execution, node, handle.value)
                execution.move_to(target)
            case WaitConfig() as wait:
                now = self.clock.now()
                plan = await self.wait_planner.plan(
                    wait,
                    node_id=node.id,
                    now=now,
                    waiting_since=execution.waiting_since,
                    tenant_id=execution.tenant_id,
                    lead_id=execution.lead_id,
                    execution_data=execution.execution_data,
                )
                match plan:
                    case SuspendUntil(resume_at=resume_at):
                        execution.clear_error()
                        execution.suspend_until(resume_at, now)
                        self._record(execution, node, "waiting", resume_at.isoformat())
                        raise _Stop
                    case FallThrough(reason=reason):
                        self._record(execution, node, "passed", reason)
                        self._go_to_successor(execution, graph, node)

    async def _run_action(
        self,
        execution: FlowExecutionEntity,
        graph: FlowGraph,
        node: FlowNode,
        action: ActionConfig,
    ) -> None:
        context = ActionContext(
            tenant_id=execution.tenant_id,
            flow_id=execution.flow_id,
            execution_id=execution.id,
            lead_id=execution.lead_id,
            node_id=node.id,
            execution_data=dict(execution.execution_data),
            created_by=execution.created_by,
        )
        outcome = await self.dispatcher.execute(action, context)
        match outcome:
            case ActionSucceeded(derived=derived):
                execution.execution_data.update(derived)
                self._record(execution, node, "succeeded")
                self._go_to_successor(execution, graph, node)
            case ActionFailed(reason=reason, retryable=True):
                self._retry_or_fail(execution, node, reason)
                raise _Stop
            case ActionFailed(reason=reason):
                self._fail(execution, ExecutionErrorKind.PERMANENT, reason, node.id)
                raise _Stop

    def _current_node(self, execution: FlowExecutionEntity, graph: FlowGraph) -> FlowNode:
        node = graph.get_node(execution.current_node_id)
        if node is None:
            raise FlowDefinitionException(
                f"Node {execution.current_node_id!r} does not exist in the flow graph",
                execution.current_node_id,
            )
        return node

    def _go_to_successor(
        self, execution: FlowExecutionEntity, graph: FlowGraph, node: FlowNode
    ) -> None:
        """Move along the single outgoing edge; no edge means the flow is done."""
        target = graph.successor(node.id)
        if target is None:
            self._complete(execution)
            raise _Stop
        execution.move_to(target)

    def _complete(self, execution: FlowExecutionEntity) -> None:
        execution.clear_error()
        execution.complete(self.clock.now())
        logger.info("Flow execution %s completed (flow %s)", execution.id, execution.flow_id)

    def _retry_or_fail(self, execution: FlowExecutionEntity, node: FlowNode, reason: str) -> None:
        if execution.retry_count >= self.max_retries:
            self._fail(
                execution,
                ExecutionErrorKind.PERMANENT,
                f"Retries exhausted after {execution.retry_count} attempts: {reason}",
                node.id,
            )
            return
        retry_at = self.clock.now() + self.retry_delay(execution.retry_count)
        execution.schedule_retry(reason, retry_at)
        self._record(execution, node, "retry_scheduled", reason)
        logger.info(
            "Execution %s: transient failure at node %s, retry %d at %s: %s",
            execution.id,
            node.id,
            execution.retry_count,
            retry_at.isoformat(),
            reason,
        )

    def _fail(
        self,
        execution: FlowExecutionEntity,
        kind: ExecutionErrorKind,
        reason: str,
        node_id: str | None,
    ) -> None:
        execution.fail(kind, reason)
        if node_id is not None:
            execution.record_step(
                node_id,
                "error",
                kind.value,
                self.clock.now(),
                max_entries=self.log_max_entries,
                detail=reason,
            )
        logger.warning(
            "Execution %s failed (%s) at node %s: %s",
            execution.id,
            kind.value,
            node_id,
            reason,
        )

    def _record(
        self,
        execution: FlowExecutionEntity,
        node: FlowNode,
        outcome: str,
        detail: str | None = None,
    ) -> None:
        execution.record_step(
            node.id,
            node.kind.value,
            outcome,
            self.clock.now(),
            max_entries=self.log_max_entries,
            detail=detail,
        )
