"""JSON schemas for action node configs, keyed by action type.

Used by the graph validator (activation) and by the action dispatcher
(execution time; a failing config is a permanent action failure).
"""

from __future__ import annotations

from typing import Any

import jsonschema

from app.shared.enums import ActionType

_NON_EMPTY_STRING: dict[str, Any] = {"type": "string", "minLength": 1}

ACTION_CONFIG_SCHEMAS: dict[str, dict[str, Any]] = {
    ActionType.SEND_WHATSAPP: {
        "type": "object",
        "properties": {"instance_id": _NON_EMPTY_STRING, "message": _NON_EMPTY_STRING},
        "required": ["instance_id", "message"],
    },
    ActionType.SEND_WHATSAPP_TEMPLATE: {
        "type": "object",
        "properties": {"instance_id": _NON_EMPTY_STRING, "template_id": _NON_EMPTY_STRING},
        "required": ["instance_id", "template_id"],
    },
    ActionType.ADD_TAG: {
        "type": "object",
        "properties": {"tag_id": _NON_EMPTY_STRING},
        "required": ["tag_id"],
    },
    ActionType.REMOVE_TAG: {
        "type": "object",
        "properties": {"tag_id": _NON_EMPTY_STRING},
        "required": ["tag_id"],
    },
    ActionType.MOVE_STAGE: {
        "type": "object",
        "properties": {"stage_id": _NON_EMPTY_STRING},
        "required": ["stage_id"],
    },
    ActionType.UPDATE_FIELD: {
        "type": "object",
        "properties": {"field": _NON_EMPTY_STRING},
        "required": ["field", "value"],
    },
    ActionType.UPDATE_VALUE: {
        "type": "object",
        "properties": {
            "value": {
                "anyOf": [
                    {"type": "number"},
                    {"type": "string", "pattern": r"^\s*-?\d+(\.\d+)?\s*$"},
                ]
            }
        },
        "required": ["value"],
    },
    ActionType.ADD_NOTE: {
        "type": "object",
        "properties": {"content": _NON_EMPTY_STRING},
        "required": ["content"],
    },
    ActionType.ADD_TO_CALL_QUEUE: {
        "type": "object",
        "properties": {
            "priority": {"enum": ["low", "medium", "high", "urgent"]},
            "notes": {"type": ["string", "null"]},
            "delay_minutes": {"type": "integer", "minimum": 0},
        },
    },
    ActionType.REMOVE_FROM_CALL_QUEUE: {"type": "object"},
    ActionType.APPLY_TEMPLATE: {
        "type": "object",
        "properties": {"template_id": _NON_EMPTY_STRING},
        "required": ["template_id"],
    },
    ActionType.CREATE_REMINDER: {
        "type": "object",
        "properties": {
            "title": _NON_EMPTY_STRING,
            "description": {"type": ["string", "null"]},
            "reminder_date": {"type": ["string", "null"]},
        },
        "required": ["title"],
    },
}


def validate_action_config(action_type: str | None, params: dict[str, Any]) -> list[str]:
    """Return config problems for the action type (empty list when valid)."""
    if not action_type:
        return ["Action type is not configured"]
    schema = ACTION_CONFIG_SCHEMAS.get(action_type)
    if schema is None:
        return [f"Unsupported action type: {action_type!r}"]
    validator = jsonschema.Draft7Validator(schema)
    return [
        f"{action_type}: {'.'.join(str(p) for p in error.path) or 'config'}: {error.message}"
        for error in sorted(validator.iter_errors(params), key=lambda e: list(e.path))
    ]
