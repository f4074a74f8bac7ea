"""Domain entities and progression rules for approval workflows."""

from approvals.domain.entities.approval_request import (
    ApprovalProgress,
    evaluate_approval_progress,
    initial_execution_status,
    next_pending_stage_order,
)
from approvals.domain.entities.approval_workflow import (
    ApprovalStageEntity,
    ApprovalWorkflowEntity,
    validate_stage_orders,
)

__all__ = [
    "ApprovalProgress",
    "ApprovalStageEntity",
    "ApprovalWorkflowEntity",
    "evaluate_approval_progress",
    "initial_execution_status",
    "next_pending_stage_order",
    "validate_stage_orders",
]
