"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.flow import AutomationFlow, FlowExecution
from app.infrastructure.persistence.models.mixins import (
    CuidMixin,
    MultiTenantModel,
    SoftDeleteMixin,
    TenantMixin,
    TimestampMixin,
    VersionedMixin,
)

__all__ = [
    "AutomationFlow",
    "CuidMixin",
    "FlowExecution",
    "MultiTenantModel",
    "SoftDeleteMixin",
    "TenantMixin",
    "TimestampMixin",
    "VersionedMixin",
]
