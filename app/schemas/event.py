"""Domain event ingest API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class DomainEventRequest(BaseModel):
    """A CRM domain event (tenant comes from the tenant header)."""

    type: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="lead_created | tag_added | tag_removed | stage_changed | field_changed | date_trigger",
    )
    lead_id: str = Field(..., min_length=1, max_length=128)
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime | None = None


class DomainEventAccepted(BaseModel):
    """Response for POST /events (202)."""

    status: str = "accepted"
    type: str
    lead_id: str
