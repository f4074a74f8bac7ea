"""ApprovalWorkflow and ApprovalStage ORM models. Workflow definitions."""

import sqlalchemy as sa
from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import ApproverType, HierarchyLevel, WorkflowModule
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.constraints import enum_check
from approvals.infrastructure.persistence.models.mixins import (
    AuditedModel,
    TimestampedModel,
)


class ApprovalWorkflow(AuditedModel, Base):
    """Workflow definition. Table: approval_workflow. Never deleted, only deactivated."""

    __tablename__ = "approval_workflow"

    workflow_code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    workflow_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    module: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )
    requires_all_stages: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )

    __table_args__ = (
        enum_check("module", WorkflowModule.values(), "approval_workflow_module_check"),
    )


class ApprovalStage(TimestampedModel, Base):
    """One ordered stage of a workflow. Table: approval_stage."""

    __tablename__ = "approval_stage"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("approval_workflow.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage_name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage_order: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_type: Mapped[str] = mapped_column(String(20), nullable=False)
    role_id: Mapped[str | None] = mapped_column(String, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    hierarchy_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_optional: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )
    auto_approve: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )

    __table_args__ = (
        # Deferred so a stage replacement can swap orders inside one transaction.
        UniqueConstraint(
            "workflow_id",
            "stage_order",
            name="uq_approval_stage_workflow_order",
            deferrable=True,
            initially="DEFERRED",
        ),
        sa.CheckConstraint("stage_order > 0", name="approval_stage_order_positive"),
        enum_check(
            "approver_type", ApproverType.values(), "approval_stage_approver_type_check"
        ),
        sa.CheckConstraint(
            "hierarchy_level IS NULL OR hierarchy_level IN ({})".format(
                ", ".join(f"'{v}'" for v in HierarchyLevel.values())
            ),
            name="approval_stage_hierarchy_level_check",
        ),
    )
