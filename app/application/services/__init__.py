"""Application services: conditions, waits, trigger filters, graph validation."""

from app.application.services.action_config_schemas import validate_action_config
from app.application.services.condition_evaluator import ConditionEvaluator, compare
from app.application.services.flow_graph_validator import validate_flow_graph
from app.application.services.trigger_filters import trigger_matches
from app.application.services.wait_planner import (
    FallThrough,
    SuspendUntil,
    WaitPlan,
    WaitPlanner,
)

__all__ = [
    "ConditionEvaluator",
    "FallThrough",
    "SuspendUntil",
    "WaitPlan",
    "WaitPlanner",
    "compare",
    "trigger_matches",
    "validate_action_config",
    "validate_flow_graph",
]
