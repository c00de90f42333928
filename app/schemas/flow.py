"""Flow API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.shared.enums import FlowStatus


def _check_graph_shape(value: dict[str, Any] | None) -> dict[str, Any] | None:
    if value is None:
        return value
    for key in ("nodes", "edges"):
        items = value.get(key, [])
        if not isinstance(items, list):
            raise ValueError(f"flow_data.{key} must be a list")
        if not all(isinstance(item, dict) for item in items):
            raise ValueError(f"flow_data.{key} must contain objects")
    return value


class FlowCreateRequest(BaseModel):
    """Request body for creating a flow (starts as draft)."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    flow_data: dict[str, Any] | None = Field(
        default=None, description="Graph payload {nodes, edges}; empty graph when omitted"
    )
    created_by: str | None = Field(default=None, max_length=128)

    graph_shape = field_validator("flow_data")(_check_graph_shape)


class FlowUpdateRequest(BaseModel):
    """Request body for updating a flow (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    flow_data: dict[str, Any] | None = None

    graph_shape = field_validator("flow_data")(_check_graph_shape)


class FlowResponse(BaseModel):
    """Flow response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    name: str
    description: str | None
    status: FlowStatus
    flow_data: dict[str, Any]
    version: int
    created_by: str | None
    created_at: datetime | None
    updated_at: datetime | None


class FlowValidationResponse(BaseModel):
    """Validator output; errors block activation."""

    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    errors: list[str]
    warnings: list[str]
