"""DTOs for approval workflow definitions (workflow + stages)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from approvals.domain.entities import ApprovalStageEntity, ApprovalWorkflowEntity
from approvals.domain.enums import ApproverType, HierarchyLevel, WorkflowModule


@dataclass(frozen=True)
class ApprovalWorkflowResult:
    """Workflow read-model (result of get_by_id, get_by_code, create, update)."""

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

    def to_entity(self) -> ApprovalWorkflowEntity:
        return ApprovalWorkflowEntity(
            id=self.id,
            workflow_code=self.workflow_code,
            workflow_name=self.workflow_name,
            module=self.module,
            entity_type=self.entity_type,
            is_active=self.is_active,
            requires_all_stages=self.requires_all_stages,
            description=self.description,
        )


@dataclass(frozen=True)
class ApprovalStageResult:
    """Stage definition read-model."""

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

    def to_entity(self) -> ApprovalStageEntity:
        return ApprovalStageEntity(
            id=self.id,
            workflow_id=self.workflow_id,
            stage_name=self.stage_name,
            stage_order=self.stage_order,
            approver_type=self.approver_type,
            role_id=self.role_id,
            user_id=self.user_id,
            hierarchy_level=self.hierarchy_level,
            is_optional=self.is_optional,
            auto_approve=self.auto_approve,
        )


@dataclass(frozen=True)
class StageDefinitionInput:
    """Stage as supplied by an administrator. id is set only when updating an existing stage."""

    stage_name: str
    stage_order: int
    approver_type: ApproverType
    role_id: str | None = None
    user_id: str | None = None
    hierarchy_level: HierarchyLevel | None = None
    is_optional: bool = False
    auto_approve: bool = False
    id: str | None = None


@dataclass(frozen=True)
class WorkflowCreate:
    """Command data for creating a workflow with its stages."""

    workflow_code: str
    workflow_name: str
    module: WorkflowModule
    entity_type: str
    stages: list[StageDefinitionInput]
    description: str | None = None
    is_active: bool = True
    requires_all_stages: bool = True


@dataclass(frozen=True)
class WorkflowWithStagesResult:
    """Workflow plus its stages ordered by stage_order."""

    workflow: ApprovalWorkflowResult
    stages: list[ApprovalStageResult]
