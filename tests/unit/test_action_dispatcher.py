"""ActionDispatcher tests with mocked CRM and messaging gateways."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.application.dtos.action import ActionContext, ActionFailed, ActionSucceeded
from app.domain.entities.flow_graph import ActionConfig
from app.infrastructure.exceptions import GatewayRequestError, GatewayTransientError
from app.infrastructure.services.action_dispatcher import ActionDispatcher
from app.infrastructure.services.message_template_renderer import MessageTemplateRenderer
from app.shared.utils.clock import ManualClock
from tests.helpers import START


def _context(**data) -> ActionContext:
    return ActionContext(
        tenant_id="org",
        flow_id="flow-1",
        execution_id="exec-1",
        lead_id="lead-1",
        node_id="n1",
        execution_data=data,
        created_by="user-1",
    )


@pytest.fixture
def dispatcher(crm, messaging) -> ActionDispatcher:
    return ActionDispatcher(crm, messaging, MessageTemplateRenderer(), ManualClock(START))


async def test_invalid_config_fails_without_side_effects(dispatcher, crm) -> None:
    outcome = await dispatcher.execute(ActionConfig("add_tag", {}), _context())

    assert isinstance(outcome, ActionFailed)
    assert outcome.retryable is False
    assert "tag_id" in outcome.reason
    crm.add_lead_tag.assert_not_awaited()


async def test_unknown_action_type_fails(dispatcher) -> None:
    outcome = await dispatcher.execute(ActionConfig("fax_lead", {}), _context())
    assert outcome == ActionFailed(reason="Unsupported action type: 'fax_lead'", retryable=False)


async def test_add_and_remove_tag(dispatcher, crm) -> None:
    assert await dispatcher.execute(ActionConfig("add_tag", {"tag_id": "vip"}), _context()) == ActionSucceeded()
    await dispatcher.execute(ActionConfig("remove_tag", {"tag_id": "cold"}), _context())

    crm.add_lead_tag.assert_awaited_once_with("org", "lead-1", "vip")
    crm.remove_lead_tag.assert_awaited_once_with("org", "lead-1", "cold")


async def test_send_whatsapp_renders_lead_and_execution_data(dispatcher, messaging) -> None:
    action = ActionConfig(
        "send_whatsapp",
        {"instance_id": "inst-1", "message": "Hi {{ name }}, tag {{ data.tag_id }}"},
    )

    outcome = await dispatcher.execute(action, _context(tag_id="hot"))

    assert outcome == ActionSucceeded(derived={"last_message_id": "msg-1"})
    messaging.send_whatsapp_message.assert_awaited_once_with(
        "inst-1", "+5511999990000", "Hi Ana, tag hot", "lead-1"
    )


async def test_send_whatsapp_without_phone_is_permanent(dispatcher, crm, messaging) -> None:
    crm.get_lead.return_value = {"id": "lead-1", "name": "Ana", "phone": None}
    action = ActionConfig("send_whatsapp", {"instance_id": "inst-1", "message": "Hi"})

    outcome = await dispatcher.execute(action, _context())

    assert outcome == ActionFailed(reason="Lead lead-1 has no phone number", retryable=False)
    messaging.send_whatsapp_message.assert_not_awaited()


async def test_send_whatsapp_template(dispatcher, crm, messaging) -> None:
    action = ActionConfig("send_whatsapp_template", {"instance_id": "inst-1", "template_id": "tpl-1"})

    outcome = await dispatcher.execute(action, _context())

    assert outcome == ActionSucceeded(
        derived={"last_message_id": "msg-1", "last_template_id": "tpl-1"}
    )
    crm.get_message_template.assert_awaited_once_with("org", "tpl-1")
    assert messaging.send_whatsapp_message.await_args.args[2] == "Hello Ana"


async def test_missing_template_is_permanent(dispatcher, crm) -> None:
    crm.get_message_template.return_value = None
    action = ActionConfig("send_whatsapp_template", {"instance_id": "inst-1", "template_id": "gone"})

    outcome = await dispatcher.execute(action, _context())

    assert isinstance(outcome, ActionFailed)
    assert outcome.retryable is False


async def test_broken_template_syntax_is_permanent(dispatcher) -> None:
    action = ActionConfig("send_whatsapp", {"instance_id": "inst-1", "message": "Hi {{ name "})

    outcome = await dispatcher.execute(action, _context())

    assert isinstance(outcome, ActionFailed)
    assert outcome.retryable is False
    assert "Failed to render template" in outcome.reason


async def test_gateway_transient_error_is_retryable(dispatcher, messaging) -> None:
    messaging.send_whatsapp_message.side_effect = GatewayTransientError(
        "whatsapp_gateway", "POST /send-whatsapp-message returned 503", status_code=503
    )
    action = ActionConfig("send_whatsapp", {"instance_id": "inst-1", "message": "Hi"})

    outcome = await dispatcher.execute(action, _context())

    assert outcome == ActionFailed(
        reason="POST /send-whatsapp-message returned 503", retryable=True
    )


async def test_gateway_request_error_is_permanent(dispatcher, crm) -> None:
    crm.add_lead_tag.side_effect = GatewayRequestError("crm", "POST /lead_tags returned 400")

    outcome = await dispatcher.execute(ActionConfig("add_tag", {"tag_id": "vip"}), _context())

    assert outcome == ActionFailed(reason="POST /lead_tags returned 400", retryable=False)


async def test_unexpected_error_is_permanent(dispatcher, crm) -> None:
    crm.add_lead_tag.side_effect = RuntimeError("boom")

    outcome = await dispatcher.execute(ActionConfig("add_tag", {"tag_id": "vip"}), _context())

    assert outcome == ActionFailed(reason="Unexpected error: boom", retryable=False)


async def test_move_stage_updates_lead_and_logs_activity(dispatcher, crm) -> None:
    outcome = await dispatcher.execute(ActionConfig("move_stage", {"stage_id": "won"}), _context())

    assert outcome == ActionSucceeded(derived={"stage_id": "won"})
    crm.update_lead.assert_awaited_once_with(
        "org", "lead-1", {"stage_id": "won", "last_contact": START.isoformat()}
    )
    assert crm.create_activity.await_args.args[2] == "status_change"


async def test_update_value_coerces_numeric_string(dispatcher, crm) -> None:
    outcome = await dispatcher.execute(ActionConfig("update_value", {"value": "1500.50"}), _context())

    assert outcome == ActionSucceeded(derived={"lead_value": 1500.5})
    crm.update_lead.assert_awaited_once_with("org", "lead-1", {"value": 1500.5})


async def test_update_value_rejects_text(dispatcher, crm) -> None:
    outcome = await dispatcher.execute(ActionConfig("update_value", {"value": "lots"}), _context())

    assert isinstance(outcome, ActionFailed)
    crm.update_lead.assert_not_awaited()


async def test_add_to_call_queue_reuses_pending_entry(dispatcher, crm) -> None:
    crm.find_pending_call.return_value = {"id": "call-7"}

    outcome = await dispatcher.execute(ActionConfig("add_to_call_queue", {}), _context())

    assert outcome == ActionSucceeded(derived={"call_queue_id": "call-7"})
    crm.enqueue_call.assert_not_awaited()


async def test_add_to_call_queue_schedules_after_delay(dispatcher, crm) -> None:
    action = ActionConfig("add_to_call_queue", {"priority": "high", "delay_minutes": 15})

    outcome = await dispatcher.execute(action, _context())

    assert outcome == ActionSucceeded(derived={"call_queue_id": "call-1"})
    crm.enqueue_call.assert_awaited_once_with(
        "org",
        "lead-1",
        scheduled_for=START + timedelta(minutes=15),
        priority="high",
        notes=None,
    )


async def test_remove_from_call_queue_reports_count(dispatcher, crm) -> None:
    crm.remove_pending_calls.return_value = 2
    outcome = await dispatcher.execute(ActionConfig("remove_from_call_queue", {}), _context())
    assert outcome == ActionSucceeded(derived={"call_queue_removed": 2})


async def test_apply_template_passes_flow_owner(dispatcher, crm) -> None:
    crm.apply_follow_up_template.return_value = "fu-1"

    outcome = await dispatcher.execute(ActionConfig("apply_template", {"template_id": "t-9"}), _context())

    assert outcome == ActionSucceeded(derived={"follow_up_id": "fu-1"})
    crm.apply_follow_up_template.assert_awaited_once_with("org", "lead-1", "t-9", "user-1")


async def test_create_reminder_defaults_to_next_day(dispatcher, crm) -> None:
    action = ActionConfig("create_reminder", {"title": "Call back", "description": "After lunch"})

    outcome = await dispatcher.execute(action, _context())

    assert outcome == ActionSucceeded(derived={"reminder_id": "act-1"})
    args = crm.create_activity.await_args
    assert args.args[3] == "REMINDER: Call back\nAfter lunch"
    assert args.kwargs["created_at"] == START + timedelta(hours=24)


async def test_create_reminder_invalid_date_is_permanent(dispatcher) -> None:
    action = ActionConfig("create_reminder", {"title": "Call", "reminder_date": "soon"})
    outcome = await dispatcher.execute(action, _context())
    assert outcome == ActionFailed(reason="Invalid reminder_date: 'soon'", retryable=False)
