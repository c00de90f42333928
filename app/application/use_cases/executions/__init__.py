"""Execution use cases: operator pause, resume and cancel."""

from app.application.use_cases.executions.execution_control import ExecutionControlUseCase

__all__ = ["ExecutionControlUseCase"]
