"""Shared enumerations for the automation flow engine.

Cross-cutting enums used by domain, application and infrastructure
(flow lifecycle, execution lifecycle, node kinds, trigger/action/wait
types, condition operators).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class FlowStatus(_ValuesMixin, str, Enum):
    """Flow definition lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Flow execution lifecycle status."""

    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    PAUSED = "paused"
    ERROR = "error"


class ExecutionErrorKind(_ValuesMixin, str, Enum):
    """Why an execution is in the error status."""

    DEFINITION = "definition"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class NodeKind(_ValuesMixin, str, Enum):
    """Kind of node in a flow graph."""

    TRIGGER = "trigger"
    ACTION = "action"
    WAIT = "wait"
    CONDITION = "condition"
    END = "end"


class TriggerType(_ValuesMixin, str, Enum):
    """Domain event types a trigger node can react to."""

    LEAD_CREATED = "lead_created"
    TAG_ADDED = "tag_added"
    TAG_REMOVED = "tag_removed"
    STAGE_CHANGED = "stage_changed"
    FIELD_CHANGED = "field_changed"
    DATE_TRIGGER = "date_trigger"


class ActionType(_ValuesMixin, str, Enum):
    """Side effects an action node can perform."""

    SEND_WHATSAPP = "send_whatsapp"
    SEND_WHATSAPP_TEMPLATE = "send_whatsapp_template"
    ADD_TAG = "add_tag"
    REMOVE_TAG = "remove_tag"
    MOVE_STAGE = "move_stage"
    UPDATE_FIELD = "update_field"
    UPDATE_VALUE = "update_value"
    ADD_NOTE = "add_note"
    ADD_TO_CALL_QUEUE = "add_to_call_queue"
    REMOVE_FROM_CALL_QUEUE = "remove_from_call_queue"
    APPLY_TEMPLATE = "apply_template"
    CREATE_REMINDER = "create_reminder"


class WaitType(_ValuesMixin, str, Enum):
    """How a wait node computes its resume instant."""

    DELAY = "delay"
    UNTIL_DATE = "until_date"
    UNTIL_FIELD = "until_field"


class DelayUnit(_ValuesMixin, str, Enum):
    """Unit for delay waits."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class ConditionOperator(_ValuesMixin, str, Enum):
    """Comparison operators for condition nodes and field waits."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class BranchHandle(_ValuesMixin, str, Enum):
    """Edge handles leaving a condition node."""

    YES = "yes"
    NO = "no"
