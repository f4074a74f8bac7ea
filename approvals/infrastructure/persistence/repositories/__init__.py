"""Repositories: SQLAlchemy implementations of the application ports."""

from approvals.infrastructure.persistence.repositories.approval_request_repo import (
    ApprovalRequestRepository,
)
from approvals.infrastructure.persistence.repositories.approval_stage_repo import (
    ApprovalStageRepository,
)
from approvals.infrastructure.persistence.repositories.approval_workflow_repo import (
    ApprovalWorkflowRepository,
)
from approvals.infrastructure.persistence.repositories.organization_hierarchy_repo import (
    OrganizationHierarchyRepository,
)
from approvals.infrastructure.persistence.repositories.stage_execution_repo import (
    StageExecutionRepository,
)

__all__ = [
    "ApprovalRequestRepository",
    "ApprovalStageRepository",
    "ApprovalWorkflowRepository",
    "OrganizationHierarchyRepository",
    "StageExecutionRepository",
]
