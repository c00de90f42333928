"""CRM data store client."""

from app.infrastructure.external.crm.client import CrmRestClient

__all__ = ["CrmRestClient"]
