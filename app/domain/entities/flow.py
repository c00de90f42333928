"""Flow definition domain entity.

A flow is a tenant-defined automation graph (trigger -> action/wait/condition
-> end) with a lifecycle status. The engine reads it only at execution start;
running executions keep their own snapshot of the graph.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain.entities.flow_graph import FlowGraph
from app.shared.enums import FlowStatus


@dataclass
class FlowEntity:
    """Domain entity for a flow definition (graph + status)."""

    id: str
    tenant_id: str
    name: str
    description: str | None
    status: FlowStatus
    flow_data: dict[str, Any]
    version: int
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def belongs_to_tenant(self, tenant_id: str) -> bool:
        """Return whether this flow belongs to the given tenant."""
        return self.tenant_id == tenant_id

    @property
    def is_active(self) -> bool:
        return self.status is FlowStatus.ACTIVE

    def graph(self) -> FlowGraph:
        """Parse flow_data; raises FlowDefinitionException when malformed."""
        return FlowGraph.from_payload(self.flow_data)
