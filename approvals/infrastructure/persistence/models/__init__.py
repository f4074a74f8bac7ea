"""Persistence models: ORM entities and mixins."""

from approvals.infrastructure.persistence.models.approval_request import (
    ApprovalRequest,
    ApprovalStageExecution,
)
from approvals.infrastructure.persistence.models.approval_workflow import (
    ApprovalStage,
    ApprovalWorkflow,
)
from approvals.infrastructure.persistence.models.mixins import (
    AuditedModel,
    CuidMixin,
    TimestampedModel,
    TimestampMixin,
    UserAuditMixin,
)
from approvals.infrastructure.persistence.models.organization import Area, Forum, Unit

__all__ = [
    "ApprovalRequest",
    "ApprovalStage",
    "ApprovalStageExecution",
    "ApprovalWorkflow",
    "Area",
    "AuditedModel",
    "CuidMixin",
    "Forum",
    "TimestampMixin",
    "TimestampedModel",
    "Unit",
    "UserAuditMixin",
]
