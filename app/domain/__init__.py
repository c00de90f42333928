"""Domain layer: entities, flow graph model, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import (
    FlowEntity,
    FlowExecutionEntity,
    FlowGraph,
)
from app.domain.exceptions import (
    ExecutionConflictException,
    ExternalServiceException,
    FlowDefinitionException,
    FlowValidationException,
    InvalidExecutionTransitionException,
    LeadflowException,
    ResourceNotFoundException,
    ValidationException,
)

__all__ = [
    # Entities
    "FlowEntity",
    "FlowExecutionEntity",
    "FlowGraph",
    # Exceptions
    "ExecutionConflictException",
    "ExternalServiceException",
    "FlowDefinitionException",
    "FlowValidationException",
    "InvalidExecutionTransitionException",
    "LeadflowException",
    "ResourceNotFoundException",
    "ValidationException",
]
