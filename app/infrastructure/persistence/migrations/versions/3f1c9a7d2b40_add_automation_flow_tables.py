"""add_automation_flow_tables

Revision ID: 3f1c9a7d2b40
Revises:
Create Date: 2026-10-19 10:12:44.208311

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "automation_flow",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("flow_data", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'paused')",
            name="automation_flow_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_automation_flow_organization_id", "automation_flow", ["organization_id"]
    )
    op.create_index("ix_automation_flow_status", "automation_flow", ["status"])
    op.create_index("ix_automation_flow_deleted_at", "automation_flow", ["deleted_at"])
    op.create_index(
        "ix_automation_flow_tenant_status",
        "automation_flow",
        ["organization_id", "status"],
    )

    op.create_table(
        "flow_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("flow_id", sa.String(), nullable=False),
        sa.Column("lead_id", sa.String(), nullable=False),
        sa.Column("current_node_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("execution_data", sa.JSON(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_execution_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("flow_version", sa.Integer(), nullable=False),
        sa.Column("graph_snapshot", sa.JSON(), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("error_kind", sa.String(), nullable=True),
        sa.Column("waiting_since", sa.DateTime(timezone=True), nullable=True),
        sa.Column("steps_executed", sa.Integer(), nullable=False),
        sa.Column("execution_log", sa.JSON(), nullable=False),
        sa.Column("active_key", sa.String(), nullable=True),
        sa.Column("claim_token", sa.String(), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('running', 'waiting', 'completed', 'paused', 'error')",
            name="flow_execution_status_check",
        ),
        sa.CheckConstraint(
            "error_kind IS NULL OR error_kind IN ('definition', 'transient', 'permanent')",
            name="flow_execution_error_kind_check",
        ),
        sa.ForeignKeyConstraint(
            ["flow_id"], ["automation_flow.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("active_key"),
    )
    op.create_index(
        "ix_flow_execution_organization_id", "flow_execution", ["organization_id"]
    )
    op.create_index("ix_flow_execution_flow_id", "flow_execution", ["flow_id"])
    op.create_index("ix_flow_execution_lead_id", "flow_execution", ["lead_id"])
    op.create_index("ix_flow_execution_status", "flow_execution", ["status"])
    op.create_index(
        "ix_flow_execution_tenant_flow",
        "flow_execution",
        ["organization_id", "flow_id"],
    )
    op.create_index(
        "ix_flow_execution_due", "flow_execution", ["status", "next_execution_at"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_flow_execution_due", table_name="flow_execution")
    op.drop_index("ix_flow_execution_tenant_flow", table_name="flow_execution")
    op.drop_index("ix_flow_execution_status", table_name="flow_execution")
    op.drop_index("ix_flow_execution_lead_id", table_name="flow_execution")
    op.drop_index("ix_flow_execution_flow_id", table_name="flow_execution")
    op.drop_index("ix_flow_execution_organization_id", table_name="flow_execution")
    op.drop_table("flow_execution")

    op.drop_index("ix_automation_flow_tenant_status", table_name="automation_flow")
    op.drop_index("ix_automation_flow_deleted_at", table_name="automation_flow")
    op.drop_index("ix_automation_flow_status", table_name="automation_flow")
    op.drop_index("ix_automation_flow_organization_id", table_name="automation_flow")
    op.drop_table("automation_flow")
