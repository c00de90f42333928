"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers, never on infrastructure directly.
"""

from app.api.v1.dependencies.engine import (
    get_clock,
    get_event_bus,
    get_flow_engine,
    get_scheduler,
)
from app.api.v1.dependencies.flow import (
    get_execution_control,
    get_execution_repo,
    get_flow_definitions,
    get_flow_definitions_for_write,
    get_metrics_use_case,
)
from app.api.v1.dependencies.tenant import get_tenant_id

__all__ = [
    "get_clock",
    "get_event_bus",
    "get_execution_control",
    "get_execution_repo",
    "get_flow_definitions",
    "get_flow_definitions_for_write",
    "get_flow_engine",
    "get_metrics_use_case",
    "get_scheduler",
    "get_tenant_id",
]
