"""Action dispatcher: one side effect per action node (implements IActionDispatcher).

Each action type maps to a handler coroutine. Handlers talk to the CRM and
messaging gateways and return derived values; the dispatcher validates the
config first and turns every failure into an ActionFailed with a
retryable flag. It performs no flow control.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from app.application.dtos.action import (
    ActionContext,
    ActionFailed,
    ActionOutcome,
    ActionSucceeded,
)
from app.application.interfaces.services import (
    IClock,
    ICrmGateway,
    IMessageTemplateRenderer,
    IMessagingGateway,
)
from app.application.services.action_config_schemas import validate_action_config
from app.domain.entities.flow_graph import ActionConfig
from app.domain.exceptions import ExternalServiceException, LeadflowException
from app.infrastructure.services.message_template_renderer import build_message_context
from app.shared.enums import ActionType
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import parse_iso_datetime

logger = get_logger(__name__)

SYSTEM_USER_NAME = "System"
DEFAULT_CALL_DELAY_MINUTES = 60
DEFAULT_REMINDER_DELAY = timedelta(hours=24)

Handler = Callable[[dict[str, Any], ActionContext], Awaitable[dict[str, Any]]]


class _PermanentActionError(Exception):
    """Raised by handlers for problems retrying cannot fix (missing phone, template)."""


class ActionDispatcher:
    """Executes action nodes against the CRM and messaging gateways."""

    def __init__(
        self,
        crm: ICrmGateway,
        messaging: IMessagingGateway,
        renderer: IMessageTemplateRenderer,
        clock: IClock,
    ) -> None:
        self.crm = crm
        self.messaging = messaging
        self.renderer = renderer
        self.clock = clock
        self._handlers: dict[str, Handler] = {
            ActionType.SEND_WHATSAPP: self._send_whatsapp,
            ActionType.SEND_WHATSAPP_TEMPLATE: self._send_whatsapp_template,
            ActionType.ADD_TAG: self._add_tag,
            ActionType.REMOVE_TAG: self._remove_tag,
            ActionType.MOVE_STAGE: self._move_stage,
            ActionType.UPDATE_FIELD: self._update_field,
            ActionType.UPDATE_VALUE: self._update_value,
            ActionType.ADD_NOTE: self._add_note,
            ActionType.ADD_TO_CALL_QUEUE: self._add_to_call_queue,
            ActionType.REMOVE_FROM_CALL_QUEUE: self._remove_from_call_queue,
            ActionType.APPLY_TEMPLATE: self._apply_template,
            ActionType.CREATE_REMINDER: self._create_reminder,
        }

    async def execute(self, action: ActionConfig, context: ActionContext) -> ActionOutcome:
        """Perform the action and classify the outcome. Never raises."""
        problems = validate_action_config(action.action_type, action.params)
        if problems:
            return ActionFailed(reason="; ".join(problems), retryable=False)
        handler = self._handlers[action.action_type]
        try:
            derived = await handler(action.params, context)
        except ExternalServiceException as e:
            logger.warning(
                "Action %s failed for lead %s (retryable=%s): %s",
                action.action_type,
                context.lead_id,
                e.retryable,
                e.message,
            )
            return ActionFailed(reason=e.message, retryable=e.retryable)
        except (_PermanentActionError, LeadflowException) as e:
            reason = e.message if isinstance(e, LeadflowException) else str(e)
            logger.warning(
                "Action %s failed for lead %s: %s", action.action_type, context.lead_id, reason
            )
            return ActionFailed(reason=reason, retryable=False)
        except Exception as e:
            logger.exception(
                "Unexpected error in action %s for lead %s", action.action_type, context.lead_id
            )
            return ActionFailed(reason=f"Unexpected error: {e}", retryable=False)
        return ActionSucceeded(derived=derived)

    async def _lead(self, context: ActionContext) -> dict[str, Any]:
        lead = await self.crm.get_lead(context.tenant_id, context.lead_id)
        if lead is None:
            raise _PermanentActionError(f"Lead {context.lead_id} not found")
        return lead

    async def _deliver(
        self, instance_id: str, lead: dict[str, Any], message: str, context: ActionContext
    ) -> dict[str, Any]:
        phone = lead.get("phone")
        if not phone:
            raise _PermanentActionError(f"Lead {context.lead_id} has no phone number")
        message_id = await self.messaging.send_whatsapp_message(
            instance_id, phone, message, context.lead_id
        )
        return {"last_message_id": message_id} if message_id else {}

    # Messaging
    async def _send_whatsapp(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        lead = await self._lead(context)
        message = self.renderer.render(
            params["message"], build_message_context(lead, context.execution_data)
        )
        return await self._deliver(params["instance_id"], lead, message, context)

    async def _send_whatsapp_template(
        self, params: dict[str, Any], context: ActionContext
    ) -> dict[str, Any]:
        template_id = params["template_id"]
        template = await self.crm.get_message_template(context.tenant_id, template_id)
        if template is None or not template.get("content"):
            raise _PermanentActionError(f"Message template {template_id} not found")
        lead = await self._lead(context)
        message = self.renderer.render(
            template["content"],
            build_message_context(lead, context.execution_data),
            template_id,
        )
        derived = await self._deliver(params["instance_id"], lead, message, context)
        derived["last_template_id"] = template_id
        return derived

    # Tags and pipeline
    async def _add_tag(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        await self.crm.add_lead_tag(context.tenant_id, context.lead_id, params["tag_id"])
        return {}

    async def _remove_tag(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        await self.crm.remove_lead_tag(context.tenant_id, context.lead_id, params["tag_id"])
        return {}

    async def _move_stage(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        stage_id = params["stage_id"]
        await self.crm.update_lead(
            context.tenant_id,
            context.lead_id,
            {"stage_id": stage_id, "last_contact": self.clock.now().isoformat()},
        )
        await self.crm.create_activity(
            context.tenant_id,
            context.lead_id,
            "status_change",
            "Lead moved automatically by flow",
            SYSTEM_USER_NAME,
        )
        return {"stage_id": stage_id}

    # Lead fields
    async def _update_field(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        await self.crm.update_lead(
            context.tenant_id, context.lead_id, {params["field"]: params["value"]}
        )
        return {}

    async def _update_value(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        value = float(params["value"])
        await self.crm.update_lead(context.tenant_id, context.lead_id, {"value": value})
        return {"lead_value": value}

    async def _add_note(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        note_id = await self.crm.create_activity(
            context.tenant_id, context.lead_id, "note", params["content"], SYSTEM_USER_NAME
        )
        return {"last_note_id": note_id}

    # Call queue
    async def _add_to_call_queue(
        self, params: dict[str, Any], context: ActionContext
    ) -> dict[str, Any]:
        existing = await self.crm.find_pending_call(context.tenant_id, context.lead_id)
        if existing is not None:
            return {"call_queue_id": existing.get("id")}
        delay = params.get("delay_minutes", DEFAULT_CALL_DELAY_MINUTES)
        entry_id = await self.crm.enqueue_call(
            context.tenant_id,
            context.lead_id,
            scheduled_for=self.clock.now() + timedelta(minutes=delay),
            priority=params.get("priority") or "medium",
            notes=params.get("notes"),
        )
        return {"call_queue_id": entry_id}

    async def _remove_from_call_queue(
        self, params: dict[str, Any], context: ActionContext
    ) -> dict[str, Any]:
        removed = await self.crm.remove_pending_calls(context.tenant_id, context.lead_id)
        return {"call_queue_removed": removed}

    # Follow-ups and reminders
    async def _apply_template(self, params: dict[str, Any], context: ActionContext) -> dict[str, Any]:
        follow_up_id = await self.crm.apply_follow_up_template(
            context.tenant_id, context.lead_id, params["template_id"], context.created_by
        )
        return {"follow_up_id": follow_up_id}

    async def _create_reminder(
        self, params: dict[str, Any], context: ActionContext
    ) -> dict[str, Any]:
        raw_date = params.get("reminder_date")
        if raw_date:
            try:
                remind_at = parse_iso_datetime(raw_date)
            except ValueError as e:
                raise _PermanentActionError(f"Invalid reminder_date: {raw_date!r}") from e
        else:
            remind_at = self.clock.now() + DEFAULT_REMINDER_DELAY
        content = f"REMINDER: {params['title']}"
        if params.get("description"):
            content = f"{content}\n{params['description']}"
        reminder_id = await self.crm.create_activity(
            context.tenant_id,
            context.lead_id,
            "note",
            content,
            SYSTEM_USER_NAME,
            created_at=remind_at,
        )
        return {"reminder_id": reminder_id}
