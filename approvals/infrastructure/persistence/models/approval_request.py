"""ApprovalRequest and ApprovalStageExecution ORM models. Runtime approval state."""

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import (
    ApprovalDecision,
    ApprovalRequestStatus,
    ApprovalStageStatus,
)
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.constraints import enum_check
from approvals.infrastructure.persistence.models.mixins import TimestampedModel

_PENDING = ApprovalRequestStatus.PENDING.value


class ApprovalRequest(TimestampedModel, Base):
    """One entity's passage through a workflow. Table: approval_request."""

    __tablename__ = "approval_request"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("approval_workflow.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str] = mapped_column(String, nullable=False)
    forum_id: Mapped[str | None] = mapped_column(String, nullable=True)
    area_id: Mapped[str | None] = mapped_column(String, nullable=True)
    unit_id: Mapped[str | None] = mapped_column(String, nullable=True)
    requested_by: Mapped[str] = mapped_column(String, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=_PENDING, index=True
    )
    current_stage_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejected_by: Mapped[str | None] = mapped_column(String, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_approval_request_entity", "entity_type", "entity_id"),
        # At most one Pending request per entity.
        Index(
            "uq_approval_request_pending_entity",
            "entity_type",
            "entity_id",
            unique=True,
            postgresql_where=sa.text(f"status = '{_PENDING}'"),
        ),
        enum_check(
            "status", ApprovalRequestStatus.values(), "approval_request_status_check"
        ),
    )


class ApprovalStageExecution(TimestampedModel, Base):
    """Runtime record of one stage for one request. Table: approval_stage_execution."""

    __tablename__ = "approval_stage_execution"

    request_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("approval_request.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("approval_stage.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    stage_order: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApprovalStageStatus.PENDING.value
    )
    assigned_approver_id: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    decision: Mapped[str | None] = mapped_column(String(20), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index(
            "ix_approval_stage_execution_approver_status",
            "assigned_approver_id",
            "status",
        ),
        sa.UniqueConstraint(
            "request_id", "stage_id", name="uq_approval_stage_execution_request_stage"
        ),
        enum_check(
            "status", ApprovalStageStatus.values(), "approval_stage_execution_status_check"
        ),
        sa.CheckConstraint(
            "decision IS NULL OR decision IN ({})".format(
                ", ".join(f"'{v}'" for v in ApprovalDecision.values())
            ),
            name="approval_stage_execution_decision_check",
        ),
    )
