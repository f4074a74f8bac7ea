"""DTOs for approval requests and stage executions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from approvals.domain.enums import (
    ApprovalDecision,
    ApprovalRequestStatus,
    ApprovalStageStatus,
)
from approvals.domain.events import DomainEvent


@dataclass(frozen=True)
class OrganizationContext:
    """Organisational scope of a request, used to resolve hierarchy approvers."""

    forum_id: str | None = None
    area_id: str | None = None
    unit_id: str | None = None


@dataclass(frozen=True)
class ApprovalRequestResult:
    """Approval request read-model."""

    id: str
    workflow_id: str
    entity_type: str
    entity_id: str
    forum_id: str | None
    area_id: str | None
    unit_id: str | None
    requested_by: str
    requested_at: datetime
    status: ApprovalRequestStatus
    current_stage_order: int | None
    approved_by: str | None
    approved_at: datetime | None
    rejected_by: str | None
    rejected_at: datetime | None
    rejection_reason: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def context(self) -> OrganizationContext:
        return OrganizationContext(
            forum_id=self.forum_id, area_id=self.area_id, unit_id=self.unit_id
        )


@dataclass(frozen=True)
class StageExecutionResult:
    """Stage execution read-model."""

    id: str
    request_id: str
    stage_id: str
    stage_order: int
    status: ApprovalStageStatus
    assigned_approver_id: str | None
    reviewed_by: str | None
    reviewed_at: datetime | None
    decision: ApprovalDecision | None
    comments: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class StageExecutionToPersist:
    """One execution row to insert at submission (approver already resolved)."""

    stage_id: str
    stage_order: int
    assigned_approver_id: str | None
    status: ApprovalStageStatus = ApprovalStageStatus.PENDING
    decision: ApprovalDecision | None = None
    reviewed_at: datetime | None = None
    comments: str | None = None


@dataclass(frozen=True)
class RequestWithExecutionsResult:
    """Request plus its executions ordered by stage_order."""

    request: ApprovalRequestResult
    executions: list[StageExecutionResult]


@dataclass(frozen=True)
class EntityRequestResult:
    """Pending request for an entity (None when there is none) plus its executions."""

    request: ApprovalRequestResult | None
    executions: list[StageExecutionResult]


@dataclass(frozen=True)
class SubmissionResult:
    """Result of submitting a request. events are published after commit."""

    request: ApprovalRequestResult
    executions: list[StageExecutionResult]
    events: list[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class DecisionResult:
    """Result of processing a decision. events are published after commit."""

    execution: StageExecutionResult
    request: ApprovalRequestResult
    events: list[DomainEvent] = field(default_factory=list)
