"""add_approval_tables

Revision ID: a3f1c2d4e5b6
Revises:
Create Date: 2026-10-19 09:12:44.204871

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a3f1c2d4e5b6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # Organisation hierarchy (read-only for the approval engine)
    op.create_table(
        "forum",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("admin_user_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        if_not_exists=True,
    )
    op.create_table(
        "area",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("forum_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("admin_user_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["forum_id"], ["forum.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        if_not_exists=True,
    )
    op.create_index("ix_area_forum_id", "area", ["forum_id"], if_not_exists=True)
    op.create_table(
        "unit",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("area_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("admin_user_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["area_id"], ["area.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        if_not_exists=True,
    )
    op.create_index("ix_unit_area_id", "unit", ["area_id"], if_not_exists=True)

    op.create_table(
        "approval_workflow",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_code", sa.String(length=100), nullable=False),
        sa.Column("workflow_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("module", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column(
            "requires_all_stages",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workflow_code"),
        sa.CheckConstraint(
            "module IN ('Membership', 'Wallet', 'Claims', 'Contributions', 'Organization')",
            name="approval_workflow_module_check",
        ),
    )
    op.create_index(
        "ix_approval_workflow_module", "approval_workflow", ["module"]
    )

    op.create_table(
        "approval_stage",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("stage_name", sa.String(length=255), nullable=False),
        sa.Column("stage_order", sa.Integer(), nullable=False),
        sa.Column("approver_type", sa.String(length=20), nullable=False),
        sa.Column("role_id", sa.String(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("hierarchy_level", sa.String(length=20), nullable=True),
        sa.Column(
            "is_optional", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column(
            "auto_approve", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workflow_id"], ["approval_workflow.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "workflow_id",
            "stage_order",
            name="uq_approval_stage_workflow_order",
            deferrable=True,
            initially="DEFERRED",
        ),
        sa.CheckConstraint("stage_order > 0", name="approval_stage_order_positive"),
        sa.CheckConstraint(
            "approver_type IN ('Role', 'SpecificUser', 'Hierarchy')",
            name="approval_stage_approver_type_check",
        ),
        sa.CheckConstraint(
            "hierarchy_level IS NULL OR hierarchy_level IN ('Unit', 'Area', 'Forum')",
            name="approval_stage_hierarchy_level_check",
        ),
    )
    op.create_index(
        "ix_approval_stage_workflow_id", "approval_stage", ["workflow_id"]
    )

    op.create_table(
        "approval_request",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("forum_id", sa.String(), nullable=True),
        sa.Column("area_id", sa.String(), nullable=True),
        sa.Column("unit_id", sa.String(), nullable=True),
        sa.Column("requested_by", sa.String(), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("current_stage_order", sa.Integer(), nullable=True),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workflow_id"], ["approval_workflow.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Approved', 'Rejected', 'Cancelled')",
            name="approval_request_status_check",
        ),
    )
    op.create_index(
        "ix_approval_request_workflow_id", "approval_request", ["workflow_id"]
    )
    op.create_index("ix_approval_request_status", "approval_request", ["status"])
    op.create_index(
        "ix_approval_request_entity", "approval_request", ["entity_type", "entity_id"]
    )
    op.create_index(
        "uq_approval_request_pending_entity",
        "approval_request",
        ["entity_type", "entity_id"],
        unique=True,
        postgresql_where=sa.text("status = 'Pending'"),
    )

    op.create_table(
        "approval_stage_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("request_id", sa.String(), nullable=False),
        sa.Column("stage_id", sa.String(), nullable=False),
        sa.Column("stage_order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("assigned_approver_id", sa.String(), nullable=True),
        sa.Column("reviewed_by", sa.String(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision", sa.String(length=20), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["request_id"], ["approval_request.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["stage_id"], ["approval_stage.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "request_id", "stage_id", name="uq_approval_stage_execution_request_stage"
        ),
        sa.CheckConstraint(
            "status IN ('Pending', 'Approved', 'Rejected', 'Skipped')",
            name="approval_stage_execution_status_check",
        ),
        sa.CheckConstraint(
            "decision IS NULL OR decision IN ('Approve', 'Reject')",
            name="approval_stage_execution_decision_check",
        ),
    )
    op.create_index(
        "ix_approval_stage_execution_request_id",
        "approval_stage_execution",
        ["request_id"],
    )
    op.create_index(
        "ix_approval_stage_execution_stage_id",
        "approval_stage_execution",
        ["stage_id"],
    )
    op.create_index(
        "ix_approval_stage_execution_approver_status",
        "approval_stage_execution",
        ["assigned_approver_id", "status"],
    )


def downgrade() -> None:
    """Downgrade schema. Organisation tables are left in place."""
    op.drop_table("approval_stage_execution")
    op.drop_table("approval_request")
    op.drop_table("approval_stage")
    op.drop_table("approval_workflow")
