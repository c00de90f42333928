"""AutomationFlow and FlowExecution ORM models. Graph-based lead automation."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    MultiTenantModel,
    SoftDeleteMixin,
    VersionedMixin,
)
from app.shared.enums import ExecutionErrorKind, ExecutionStatus, FlowStatus


def _in_values(column: str, values: list[str]) -> str:
    return "{} IN ({})".format(
        column, ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    )


class AutomationFlow(MultiTenantModel, SoftDeleteMixin, VersionedMixin, Base):
    """Flow definition. Table: automation_flow. Graph JSON + lifecycle status."""

    __tablename__ = "automation_flow"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=FlowStatus.DRAFT.value, index=True
    )
    flow_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index("ix_automation_flow_tenant_status", "organization_id", "status"),
        CheckConstraint(
            _in_values("status", FlowStatus.values()), name="automation_flow_status_check"
        ),
    )


class FlowExecution(MultiTenantModel, VersionedMixin, Base):
    """One lead's progress through one flow. Table: flow_execution.

    active_key is "<flow_id>:<lead_id>" while the execution is live and
    NULL once terminal; its unique constraint allows at most one live
    execution per (flow, lead).
    """

    __tablename__ = "flow_execution"

    flow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("automation_flow.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lead_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    current_node_id: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ExecutionStatus.RUNNING.value, index=True
    )
    execution_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    next_execution_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    flow_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    graph_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_kind: Mapped[str | None] = mapped_column(String, nullable=True)
    waiting_since: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    steps_executed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    execution_log: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    active_key: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    claim_token: Mapped[str | None] = mapped_column(String, nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_flow_execution_tenant_flow", "organization_id", "flow_id"),
        Index("ix_flow_execution_due", "status", "next_execution_at"),
        CheckConstraint(
            _in_values("status", ExecutionStatus.values()),
            name="flow_execution_status_check",
        ),
        CheckConstraint(
            "error_kind IS NULL OR " + _in_values("error_kind", ExecutionErrorKind.values()),
            name="flow_execution_error_kind_check",
        ),
    )
