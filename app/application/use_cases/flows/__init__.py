"""Flow use cases: definition lifecycle and metrics."""

from app.application.use_cases.flows.compute_metrics import ComputeMetricsUseCase
from app.application.use_cases.flows.flow_definitions import FlowDefinitionsUseCase

__all__ = [
    "ComputeMetricsUseCase",
    "FlowDefinitionsUseCase",
]
