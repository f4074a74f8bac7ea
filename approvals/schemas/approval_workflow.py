"""Approval workflow API schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from approvals.application.dtos.approval_workflow import (
    StageDefinitionInput,
    WorkflowWithStagesResult,
)
from approvals.domain.enums import ApproverType, HierarchyLevel, WorkflowModule


class StageDefinitionRequest(BaseModel):
    """One stage in a create or stage-replacement request. Send id to keep an existing stage."""

    id: str | None = None
    stage_name: str = Field(..., min_length=1, max_length=255)
    stage_order: int = Field(..., ge=1)
    approver_type: ApproverType
    role_id: str | None = None
    user_id: str | None = None
    hierarchy_level: HierarchyLevel | None = None
    is_optional: bool = False
    auto_approve: bool = False

    def to_input(self) -> StageDefinitionInput:
        return StageDefinitionInput(**self.model_dump())


class WorkflowCreateRequest(BaseModel):
    """Request body for creating a workflow with its stages."""

    workflow_code: str = Field(
        ..., min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    workflow_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    module: WorkflowModule
    entity_type: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True
    requires_all_stages: bool = True
    stages: list[StageDefinitionRequest] = Field(..., min_length=1)


class WorkflowUpdateRequest(BaseModel):
    """Request body for updating workflow metadata (partial). Stages are not touched."""

    workflow_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None
    requires_all_stages: bool | None = None


class WorkflowStagesUpdateRequest(BaseModel):
    """Request body for replacing the stage list of a workflow."""

    stages: list[StageDefinitionRequest] = Field(..., min_length=1)


class ApprovalStageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    stage_name: str
    stage_order: int
    approver_type: ApproverType
    role_id: str | None
    user_id: str | None
    hierarchy_level: HierarchyLevel | None
    is_optional: bool
    auto_approve: bool


class ApprovalWorkflowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_code: str
    workflow_name: str
    description: str | None
    module: WorkflowModule
    entity_type: str
    is_active: bool
    requires_all_stages: bool
    created_at: datetime
    created_by: str | None
    updated_at: datetime
    updated_by: str | None


class ApprovalWorkflowDetailResponse(ApprovalWorkflowResponse):
    """Workflow with its stages ordered by stage_order."""

    stages: list[ApprovalStageResponse]

    @classmethod
    def from_result(
        cls, result: WorkflowWithStagesResult
    ) -> ApprovalWorkflowDetailResponse:
        return cls(
            **ApprovalWorkflowResponse.model_validate(result.workflow).model_dump(),
            stages=[ApprovalStageResponse.model_validate(s) for s in result.stages],
        )
