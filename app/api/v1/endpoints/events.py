"""Domain event ingest: publishes CRM events onto the event bus."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import get_clock, get_event_bus, get_tenant_id
from app.application.dtos.flow_execution import DomainEvent
from app.application.interfaces.services import IClock, IEventBus
from app.core.limiter import limit_events
from app.schemas.event import DomainEventAccepted, DomainEventRequest
from app.shared.utils.datetime import ensure_utc

router = APIRouter()


@router.post("", response_model=DomainEventAccepted, status_code=202)
@limit_events
async def publish_event(
    request: Request,
    body: DomainEventRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    event_bus: Annotated[IEventBus, Depends(get_event_bus)],
    clock: Annotated[IClock, Depends(get_clock)],
):
    """Accept a domain event; the trigger matcher handles it asynchronously."""
    await event_bus.publish(
        DomainEvent(
            type=body.type,
            lead_id=body.lead_id,
            tenant_id=tenant_id,
            payload=body.payload,
            occurred_at=ensure_utc(body.occurred_at) or clock.now(),
        )
    )
    return DomainEventAccepted(type=body.type, lead_id=body.lead_id)
