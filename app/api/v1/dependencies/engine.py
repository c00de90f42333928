"""Flow engine dependencies: the process-wide engine built in the lifespan."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.application.interfaces.services import IClock, IEventBus
from app.application.use_cases.engine import ResumptionScheduler
from app.core.flow_engine import FlowEngine
from app.domain.exceptions import SqlNotConfiguredException


def get_flow_engine(request: Request) -> FlowEngine:
    engine = getattr(request.app.state, "flow_engine", None)
    if engine is None:
        raise SqlNotConfiguredException()
    return engine


def get_clock(engine: Annotated[FlowEngine, Depends(get_flow_engine)]) -> IClock:
    return engine.clock


def get_event_bus(engine: Annotated[FlowEngine, Depends(get_flow_engine)]) -> IEventBus:
    return engine.event_bus


def get_scheduler(
    engine: Annotated[FlowEngine, Depends(get_flow_engine)],
) -> ResumptionScheduler:
    return engine.scheduler
