"""CRM REST client (implements ICrmGateway).

Talks to the CRM data store's PostgREST-style API: one resource per table
(leads, lead_tags, activities, call_queue, message_templates,
lead_follow_ups), row filters as ``column=eq.value`` query parameters,
and ``Prefer: return=representation`` to get inserted rows back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from app.infrastructure.exceptions import GatewayRequestError
from app.infrastructure.external.http_gateway import HttpGateway

_RETURN_ROW = {"Prefer": "return=representation"}


def _eq(value: str) -> str:
    return f"eq.{value}"


class CrmRestClient(HttpGateway):
    """Lead, tag, activity, call queue and template operations over HTTP."""

    service_name = "crm"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        super().__init__(base_url, headers=headers, timeout=timeout, client=client)

    async def _select_one(self, table: str, filters: dict[str, str]) -> dict[str, Any] | None:
        rows = await self._request("GET", f"/{table}", params={**filters, "limit": "1"})
        return rows[0] if rows else None

    async def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("POST", f"/{table}", json_body=row, headers=_RETURN_ROW)
        if not rows:
            raise GatewayRequestError(self.service_name, f"Insert into {table} returned no row")
        return rows[0]

    # Leads
    async def get_lead(self, tenant_id: str, lead_id: str) -> dict[str, Any] | None:
        return await self._select_one(
            "leads", {"id": _eq(lead_id), "organization_id": _eq(tenant_id)}
        )

    async def update_lead(self, tenant_id: str, lead_id: str, fields: dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            "/leads",
            params={"id": _eq(lead_id), "organization_id": _eq(tenant_id)},
            json_body=fields,
        )

    # Tags
    async def lead_has_tag(self, tenant_id: str, lead_id: str, tag_id: str) -> bool:
        row = await self._select_one(
            "lead_tags", {"lead_id": _eq(lead_id), "tag_id": _eq(tag_id), "select": "id"}
        )
        return row is not None

    async def add_lead_tag(self, tenant_id: str, lead_id: str, tag_id: str) -> None:
        if await self.lead_has_tag(tenant_id, lead_id, tag_id):
            return
        await self._request(
            "POST", "/lead_tags", json_body={"lead_id": lead_id, "tag_id": tag_id}
        )

    async def remove_lead_tag(self, tenant_id: str, lead_id: str, tag_id: str) -> None:
        await self._request(
            "DELETE", "/lead_tags", params={"lead_id": _eq(lead_id), "tag_id": _eq(tag_id)}
        )

    # Activities
    async def create_activity(
        self,
        tenant_id: str,
        lead_id: str,
        activity_type: str,
        content: str,
        user_name: str,
        created_at: datetime | None = None,
    ) -> str:
        row: dict[str, Any] = {
            "lead_id": lead_id,
            "organization_id": tenant_id,
            "type": activity_type,
            "content": content,
            "user_name": user_name,
        }
        if created_at is not None:
            row["created_at"] = created_at.isoformat()
        inserted = await self._insert("activities", row)
        return str(inserted["id"])

    # Call queue
    async def find_pending_call(self, tenant_id: str, lead_id: str) -> dict[str, Any] | None:
        return await self._select_one(
            "call_queue", {"lead_id": _eq(lead_id), "status": _eq("pending")}
        )

    async def enqueue_call(
        self,
        tenant_id: str,
        lead_id: str,
        scheduled_for: datetime,
        priority: str,
        notes: str | None,
    ) -> str:
        inserted = await self._insert(
            "call_queue",
            {
                "lead_id": lead_id,
                "scheduled_for": scheduled_for.isoformat(),
                "priority": priority,
                "notes": notes,
                "status": "pending",
            },
        )
        return str(inserted["id"])

    async def remove_pending_calls(self, tenant_id: str, lead_id: str) -> int:
        rows = await self._request(
            "DELETE",
            "/call_queue",
            params={"lead_id": _eq(lead_id), "status": _eq("pending")},
            headers=_RETURN_ROW,
        )
        return len(rows or [])

    # Templates and follow-ups
    async def get_message_template(
        self, tenant_id: str, template_id: str
    ) -> dict[str, Any] | None:
        return await self._select_one("message_templates", {"id": _eq(template_id)})

    async def apply_follow_up_template(
        self, tenant_id: str, lead_id: str, template_id: str, created_by: str | None
    ) -> str:
        inserted = await self._insert(
            "lead_follow_ups",
            {"lead_id": lead_id, "template_id": template_id, "created_by": created_by},
        )
        return str(inserted["id"])
