"""Service interfaces (ports) for the application layer.

Protocols define contracts for external collaborators and engine services (DIP).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.action import ActionContext, ActionOutcome
    from app.application.dtos.flow_execution import DomainEvent
    from app.domain.entities.flow_graph import ActionConfig


EventHandler = Callable[["DomainEvent"], Awaitable[object]]


# Clock interface
class IClock(Protocol):
    """Protocol for the time source (injectable for tests)."""

    def now(self) -> datetime:
        """Return the current UTC-aware instant."""


# CRM gateway interface
class ICrmGateway(Protocol):
    """Protocol for the CRM data store (leads, tags, activities, call queue, templates).

    Implementations raise GatewayTransientError for retryable failures and
    GatewayRequestError for permanent ones.
    """

    async def get_lead(self, tenant_id: str, lead_id: str) -> dict[str, Any] | None:
        """Return the lead record or None when it does not exist."""

    async def lead_has_tag(self, tenant_id: str, lead_id: str, tag_id: str) -> bool:
        """True when the lead carries the tag."""

    async def add_lead_tag(self, tenant_id: str, lead_id: str, tag_id: str) -> None:
        """Attach tag (no-op when already attached)."""

    async def remove_lead_tag(self, tenant_id: str, lead_id: str, tag_id: str) -> None:
        """Detach tag (no-op when absent)."""

    async def update_lead(self, tenant_id: str, lead_id: str, fields: dict[str, Any]) -> None:
        """Patch lead columns."""

    async def create_activity(
        self,
        tenant_id: str,
        lead_id: str,
        activity_type: str,
        content: str,
        user_name: str,
        created_at: datetime | None = None,
    ) -> str:
        """Insert a timeline activity (note, status change, reminder); return its id."""

    async def find_pending_call(self, tenant_id: str, lead_id: str) -> dict[str, Any] | None:
        """Return the pending call queue entry for the lead, if any."""

    async def enqueue_call(
        self,
        tenant_id: str,
        lead_id: str,
        scheduled_for: datetime,
        priority: str,
        notes: str | None,
    ) -> str:
        """Insert a pending call queue entry; return its id."""

    async def remove_pending_calls(self, tenant_id: str, lead_id: str) -> int:
        """Delete pending call queue entries; return how many were removed."""

    async def get_message_template(
        self, tenant_id: str, template_id: str
    ) -> dict[str, Any] | None:
        """Return a message template ({id, name, content}) or None."""

    async def apply_follow_up_template(
        self, tenant_id: str, lead_id: str, template_id: str, created_by: str | None
    ) -> str:
        """Attach a follow-up template to the lead; return the follow-up id."""


# Messaging gateway interface
class IMessagingGateway(Protocol):
    """Protocol for the WhatsApp delivery gateway."""

    async def send_whatsapp_message(
        self, instance_id: str, phone: str, message: str, lead_id: str
    ) -> str | None:
        """Send a text message; return the gateway message id when provided."""


# Message template renderer interface
class IMessageTemplateRenderer(Protocol):
    """Protocol for rendering message template content against lead/execution data."""

    def render(self, template: str, context: dict[str, Any], template_id: str = "inline") -> str:
        """Render template content; raise TemplateRenderError on bad syntax."""


# Action dispatcher interface
class IActionDispatcher(Protocol):
    """Protocol for executing one action node side effect."""

    async def execute(self, action: ActionConfig, context: ActionContext) -> ActionOutcome:
        """Perform the side effect and classify the outcome; never raise."""


# Event bus interface
class IEventBus(Protocol):
    """Protocol for the domain event bus feeding the trigger matcher."""

    async def start(self) -> None:
        """Begin delivering published events to subscribers."""

    async def stop(self) -> None:
        """Stop delivery and release resources."""

    async def publish(self, event: DomainEvent) -> None:
        """Publish a domain event."""

    def subscribe(self, handler: EventHandler) -> None:
        """Register a handler; call before start()."""
