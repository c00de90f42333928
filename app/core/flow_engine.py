"""Flow engine composition root.

build_flow_engine() wires the interpreter, the trigger matcher, the
resumption scheduler and the event bus once per process. The lifespan
starts and stops it; scripts build their own.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces.repositories import IExecutionStore
from app.application.interfaces.services import (
    IClock,
    ICrmGateway,
    IEventBus,
    IMessagingGateway,
)
from app.application.services.condition_evaluator import ConditionEvaluator
from app.application.services.graph_interpreter import GraphInterpreter
from app.application.services.wait_planner import WaitPlanner
from app.application.use_cases.engine import (
    ExecutionRunner,
    ResumptionScheduler,
    TriggerMatcher,
)
from app.core.config import Settings
from app.infrastructure.external.crm.client import CrmRestClient
from app.infrastructure.external.messaging.whatsapp_gateway import WhatsAppGatewayClient
from app.infrastructure.messaging.event_bus import build_event_bus
from app.infrastructure.persistence.execution_store import SqlExecutionStore
from app.infrastructure.services.action_dispatcher import ActionDispatcher
from app.infrastructure.services.message_template_renderer import MessageTemplateRenderer
from app.shared.telemetry.logging import get_logger
from app.shared.utils.clock import SystemClock

logger = get_logger(__name__)


@dataclass
class FlowEngine:
    """Process-wide engine components with an explicit start/stop lifecycle."""

    settings: Settings
    clock: IClock
    store: IExecutionStore
    crm: ICrmGateway
    messaging: IMessagingGateway
    interpreter: GraphInterpreter
    runner: ExecutionRunner
    matcher: TriggerMatcher
    scheduler: ResumptionScheduler
    event_bus: IEventBus

    async def start(self) -> None:
        await self.event_bus.start()
        if self.settings.scheduler_enabled:
            self.scheduler.start()
        logger.info("Flow engine started")

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.event_bus.stop()
        for gateway in (self.crm, self.messaging):
            aclose = getattr(gateway, "aclose", None)
            if aclose is not None:
                await aclose()
        logger.info("Flow engine stopped")


def build_flow_engine(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    clock: IClock | None = None,
    crm: ICrmGateway | None = None,
    messaging: IMessagingGateway | None = None,
    event_bus: IEventBus | None = None,
) -> FlowEngine:
    """Build the engine; collaborators default to the configured HTTP gateways."""
    clock = clock or SystemClock()
    crm = crm or CrmRestClient(
        settings.crm_api_url,
        settings.crm_api_key.get_secret_value() if settings.crm_api_key else None,
        timeout=settings.http_timeout_seconds,
    )
    messaging = messaging or WhatsAppGatewayClient(
        settings.messaging_gateway_url,
        settings.messaging_gateway_token.get_secret_value()
        if settings.messaging_gateway_token
        else None,
        timeout=settings.http_timeout_seconds,
    )
    store = SqlExecutionStore(session_factory)
    evaluator = ConditionEvaluator(crm)
    interpreter = GraphInterpreter(
        ActionDispatcher(crm, messaging, MessageTemplateRenderer(), clock),
        evaluator,
        WaitPlanner(evaluator, settings.field_wait_check_minutes),
        clock,
        max_steps=settings.flow_max_steps,
        max_retries=settings.action_max_retries,
        retry_base_seconds=settings.action_retry_base_seconds,
        retry_max_seconds=settings.action_retry_max_seconds,
        log_max_entries=settings.execution_log_max_entries,
    )
    runner = ExecutionRunner(store, interpreter, clock, settings.claim_lease_seconds)
    matcher = TriggerMatcher(store, runner, clock)
    scheduler = ResumptionScheduler(
        store,
        runner,
        clock,
        interval_seconds=settings.scheduler_interval_seconds,
        batch_size=settings.scheduler_batch_size,
        concurrency=settings.scheduler_concurrency,
        lease_seconds=settings.claim_lease_seconds,
    )
    event_bus = event_bus or build_event_bus(settings)
    event_bus.subscribe(matcher.on_domain_event)
    return FlowEngine(
        settings=settings,
        clock=clock,
        store=store,
        crm=crm,
        messaging=messaging,
        interpreter=interpreter,
        runner=runner,
        matcher=matcher,
        scheduler=scheduler,
        event_bus=event_bus,
    )
