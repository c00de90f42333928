"""DTOs for the action dispatcher (one side effect, classified outcome)."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ActionContext:
    """What an action handler may read: who, where, and the execution bag."""

    tenant_id: str
    flow_id: str
    execution_id: str
    lead_id: str
    node_id: str
    execution_data: dict[str, Any]
    created_by: str | None = None


@dataclass(frozen=True)
class ActionSucceeded:
    """Side effect performed; derived values merge into execution_data."""

    derived: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionFailed:
    """Side effect not performed. retryable=False is terminal for the execution."""

    reason: str
    retryable: bool = False


ActionOutcome = ActionSucceeded | ActionFailed
