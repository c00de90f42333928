"""DTOs for flow definitions (no dependency on ORM or presentation schemas)."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FlowCreate:
    """Input for creating a flow. New flows start as drafts."""

    name: str
    description: str | None = None
    flow_data: dict[str, Any] | None = None
    created_by: str | None = None


@dataclass(frozen=True)
class FlowUpdate:
    """Partial update; None means unchanged."""

    name: str | None = None
    description: str | None = None
    flow_data: dict[str, Any] | None = None


@dataclass(frozen=True)
class FlowValidationResult:
    """Output of the flow graph validator; errors block activation."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
