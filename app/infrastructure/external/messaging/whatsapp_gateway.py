"""WhatsApp delivery gateway client (implements IMessagingGateway)."""

from __future__ import annotations

import httpx

from app.infrastructure.external.http_gateway import HttpGateway


class WhatsAppGatewayClient(HttpGateway):
    """Sends WhatsApp text messages through the messaging gateway function."""

    service_name = "whatsapp_gateway"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(base_url, headers=headers, timeout=timeout, client=client)

    async def send_whatsapp_message(
        self, instance_id: str, phone: str, message: str, lead_id: str
    ) -> str | None:
        body = await self._request(
            "POST",
            "/send-whatsapp-message",
            json_body={
                "instance_id": instance_id,
                "phone": phone,
                "message": message,
                "lead_id": lead_id,
            },
        )
        if not isinstance(body, dict):
            return None
        message_id = body.get("message_id") or body.get("id")
        return str(message_id) if message_id else None
