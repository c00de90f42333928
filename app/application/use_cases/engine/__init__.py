"""Engine use cases: trigger matching, execution running and resumption."""

from app.application.use_cases.engine.execution_runner import ExecutionRunner
from app.application.use_cases.engine.resumption_scheduler import ResumptionScheduler
from app.application.use_cases.engine.trigger_matcher import TriggerMatcher

__all__ = [
    "ExecutionRunner",
    "ResumptionScheduler",
    "TriggerMatcher",
]
