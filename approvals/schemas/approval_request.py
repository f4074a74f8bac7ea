"""Approval request API schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from approvals.application.dtos.approval_request import (
    DecisionResult,
    EntityRequestResult,
    OrganizationContext,
    RequestWithExecutionsResult,
    SubmissionResult,
)
from approvals.domain.enums import (
    ApprovalDecision,
    ApprovalRequestStatus,
    ApprovalStageStatus,
)


class SubmitApprovalRequest(BaseModel):
    """Request body for submitting an entity for approval."""

    workflow_code: str = Field(..., min_length=1, max_length=100)
    entity_type: str = Field(..., min_length=1, max_length=100)
    entity_id: str = Field(..., min_length=1)
    forum_id: str | None = None
    area_id: str | None = None
    unit_id: str | None = None

    def context(self) -> OrganizationContext:
        return OrganizationContext(
            forum_id=self.forum_id, area_id=self.area_id, unit_id=self.unit_id
        )


class ProcessApprovalRequest(BaseModel):
    """Request body for approving or rejecting a stage execution."""

    execution_id: str = Field(..., min_length=1)
    decision: ApprovalDecision
    comments: str | None = Field(default=None, max_length=2000)


class StageExecutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class ApprovalRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class ApprovalRequestDetailResponse(BaseModel):
    """Request with its executions ordered by stage_order."""

    request: ApprovalRequestResponse
    executions: list[StageExecutionResponse]

    @classmethod
    def from_result(
        cls, result: RequestWithExecutionsResult | SubmissionResult
    ) -> ApprovalRequestDetailResponse:
        return cls(
            request=ApprovalRequestResponse.model_validate(result.request),
            executions=[
                StageExecutionResponse.model_validate(e) for e in result.executions
            ],
        )


class EntityApprovalResponse(BaseModel):
    """Pending request for an entity (null when there is none) and its executions."""

    request: ApprovalRequestResponse | None
    executions: list[StageExecutionResponse]

    @classmethod
    def from_result(cls, result: EntityRequestResult) -> EntityApprovalResponse:
        return cls(
            request=ApprovalRequestResponse.model_validate(result.request)
            if result.request
            else None,
            executions=[
                StageExecutionResponse.model_validate(e) for e in result.executions
            ],
        )


class DecisionResponse(BaseModel):
    """Updated execution and request after a decision."""

    execution: StageExecutionResponse
    request: ApprovalRequestResponse

    @classmethod
    def from_result(cls, result: DecisionResult) -> DecisionResponse:
        return cls(
            execution=StageExecutionResponse.model_validate(result.execution),
            request=ApprovalRequestResponse.model_validate(result.request),
        )
