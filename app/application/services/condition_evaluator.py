"""Condition evaluation for condition nodes and field waits.

Three condition shapes, checked in this order:
- field: compare a value from execution_data ("data." prefix or
  source="execution_data") or from the freshly fetched lead record;
- tag: exists / not_exists asks the CRM whether the lead has the tag;
- stage: equals / not_equals against the lead's stage_id.
"""

from __future__ import annotations

from typing import Any

from app.application.interfaces.services import ICrmGateway
from app.domain.entities.flow_graph import ConditionConfig
from app.domain.exceptions import ResourceNotFoundException
from app.shared.enums import ConditionOperator


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def compare(operator: ConditionOperator, actual: Any, expected: Any) -> bool:
    """Apply operator to (actual, expected).

    equals/not_equals compare string forms; greater_than/less_than compare
    numbers (a non-numeric side makes the result False); contains is a
    case-insensitive substring test; exists/not_exists ignore expected.
    """
    match operator:
        case ConditionOperator.EQUALS:
            return _as_text(actual) == _as_text(expected)
        case ConditionOperator.NOT_EQUALS:
            return _as_text(actual) != _as_text(expected)
        case ConditionOperator.GREATER_THAN | ConditionOperator.LESS_THAN:
            left, right = _as_number(actual), _as_number(expected)
            if left is None or right is None:
                return False
            return left > right if operator is ConditionOperator.GREATER_THAN else left < right
        case ConditionOperator.CONTAINS:
            return _as_text(expected).lower() in _as_text(actual).lower()
        case ConditionOperator.NOT_CONTAINS:
            return _as_text(expected).lower() not in _as_text(actual).lower()
        case ConditionOperator.EXISTS:
            return _is_present(actual)
        case ConditionOperator.NOT_EXISTS:
            return not _is_present(actual)


class ConditionEvaluator:
    """Evaluates a ConditionConfig for one lead and one execution bag."""

    def __init__(self, crm: ICrmGateway) -> None:
        self.crm = crm

    async def evaluate(
        self,
        condition: ConditionConfig,
        tenant_id: str,
        lead_id: str,
        execution_data: dict[str, Any],
    ) -> bool:
        """Return the condition outcome.

        Raises:
            ResourceNotFoundException: the lead no longer exists (lead-backed conditions).
            ExternalServiceException: the CRM call failed.
        """
        if condition.field is not None:
            if condition.reads_execution_data:
                actual = execution_data.get(condition.data_key)
            else:
                lead = await self._fetch_lead(tenant_id, lead_id)
                actual = lead.get(condition.field)
            return compare(condition.operator, actual, condition.value)

        if condition.tag_id is not None:
            has_tag = await self.crm.lead_has_tag(tenant_id, lead_id, condition.tag_id)
            if condition.operator is ConditionOperator.EXISTS:
                return has_tag
            if condition.operator is ConditionOperator.NOT_EXISTS:
                return not has_tag
            return False

        lead = await self._fetch_lead(tenant_id, lead_id)
        stage_id = lead.get("stage_id")
        if condition.operator is ConditionOperator.EQUALS:
            return stage_id == condition.stage_id
        if condition.operator is ConditionOperator.NOT_EQUALS:
            return stage_id != condition.stage_id
        return False

    async def _fetch_lead(self, tenant_id: str, lead_id: str) -> dict[str, Any]:
        lead = await self.crm.get_lead(tenant_id, lead_id)
        if lead is None:
            raise ResourceNotFoundException("lead", lead_id)
        return lead
