"""Application use cases: one entry point per workflow."""

from app.application.use_cases.engine import (
    ExecutionRunner,
    ResumptionScheduler,
    TriggerMatcher,
)
from app.application.use_cases.executions import ExecutionControlUseCase
from app.application.use_cases.flows import ComputeMetricsUseCase, FlowDefinitionsUseCase

__all__ = [
    "ComputeMetricsUseCase",
    "ExecutionControlUseCase",
    "ExecutionRunner",
    "FlowDefinitionsUseCase",
    "ResumptionScheduler",
    "TriggerMatcher",
]
