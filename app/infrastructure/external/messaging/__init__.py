"""WhatsApp messaging gateway client."""

from app.infrastructure.external.messaging.whatsapp_gateway import WhatsAppGatewayClient

__all__ = ["WhatsAppGatewayClient"]
