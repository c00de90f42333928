"""Trigger filter predicates: does a trigger node accept a domain event?"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from app.domain.entities.flow_graph import TriggerConfig
from app.shared.enums import TriggerType
from app.shared.utils.datetime import parse_iso_datetime


def _calendar_day(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return parse_iso_datetime(str(value)).date()
    except ValueError:
        return None


def _same(configured: Any, received: Any) -> bool:
    return configured is not None and received is not None and str(configured) == str(received)


def trigger_matches(
    trigger: TriggerConfig,
    event_type: str,
    payload: dict[str, Any],
    now: datetime,
) -> bool:
    """Return True when the trigger reacts to this event type and its filter passes.

    Unknown trigger types never match. field_changed checks the value only
    when the trigger configures one. date_trigger compares calendar days
    with the payload date, or with today when the payload carries none.
    """
    if not trigger.trigger_type or trigger.trigger_type != event_type:
        return False

    match trigger.trigger_type:
        case TriggerType.LEAD_CREATED:
            return True
        case TriggerType.TAG_ADDED | TriggerType.TAG_REMOVED:
            return _same(trigger.tag_id, payload.get("tag_id"))
        case TriggerType.STAGE_CHANGED:
            return _same(trigger.stage_id, payload.get("stage_id"))
        case TriggerType.FIELD_CHANGED:
            if not _same(trigger.field, payload.get("field")):
                return False
            if trigger.value not in (None, ""):
                return _same(trigger.value, payload.get("value"))
            return True
        case TriggerType.DATE_TRIGGER:
            configured = _calendar_day(trigger.date)
            if configured is None:
                return False
            received = _calendar_day(payload.get("date")) or now.date()
            return configured == received
        case _:
            return False
