"""Execution runner: claim, advance, release for one execution."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import TracedOperation

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IExecutionStore
    from app.application.interfaces.services import IClock
    from app.application.services.graph_interpreter import GraphInterpreter
    from app.domain.entities.flow_execution import FlowExecutionEntity

logger = get_logger(__name__)


class ExecutionRunner:
    """Advances a single execution under a worker lease.

    The interpreter runs between claim and release without an open
    transaction. Between nodes the lease is renewed once a third of it has
    elapsed, so a long walk keeps other workers out; if renewal fails the
    walk stops before the next side effect and nothing is written.
    """

    def __init__(
        self,
        store: IExecutionStore,
        interpreter: GraphInterpreter,
        clock: IClock,
        lease_seconds: int = 300,
    ) -> None:
        self.store = store
        self.interpreter = interpreter
        self.clock = clock
        self.lease_seconds = lease_seconds
        self.renew_after_seconds = lease_seconds / 3

    async def run(self, execution_id: str) -> FlowExecutionEntity | None:
        """Advance the execution if this worker can claim it.

        Returns:
            The persisted execution, or None when the claim failed (already
            claimed, terminal, paused) or was lost before release.
        """
        async with TracedOperation(
            "flow.run_execution", {"flow.execution_id": execution_id}
        ) as op:
            claimed = await self.store.claim(
                execution_id, self.clock.now(), self.lease_seconds
            )
            if claimed is None:
                logger.debug("Execution %s not claimable, skipping", execution_id)
                return None
            execution, claim = claimed
            renewed_at = claim.claimed_at
            lease_lost = False

            async def heartbeat() -> bool:
                nonlocal renewed_at, lease_lost
                now = self.clock.now()
                if (now - renewed_at).total_seconds() < self.renew_after_seconds:
                    return True
                if not await self.store.renew_claim(claim, now):
                    lease_lost = True
                    return False
                renewed_at = now
                return True

            execution = await self.interpreter.advance(execution, heartbeat)
            if lease_lost or not await self.store.release(execution, claim):
                logger.warning(
                    "Lost claim on execution %s before release; result discarded",
                    execution_id,
                )
                return None
            if op.span is not None:
                op.span.set_attribute("flow.status", execution.status.value)
            return execution
