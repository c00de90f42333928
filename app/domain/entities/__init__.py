"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.flow import FlowEntity
from app.domain.entities.flow_execution import FlowExecutionEntity
from app.domain.entities.flow_graph import FlowEdge, FlowGraph, FlowNode

__all__ = [
    "FlowEdge",
    "FlowEntity",
    "FlowExecutionEntity",
    "FlowGraph",
    "FlowNode",
]
