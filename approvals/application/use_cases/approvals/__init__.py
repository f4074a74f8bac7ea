"""Approval use cases: workflow management, submission, decisions, queries."""

from approvals.application.use_cases.approvals.approval_queries import (
    ApprovalQueryService,
)
from approvals.application.use_cases.approvals.notifications import publish_events
from approvals.application.use_cases.approvals.process_approval import (
    ProcessApprovalUseCase,
)
from approvals.application.use_cases.approvals.submit_request import (
    AUTO_APPROVED_COMMENT,
    SubmitApprovalRequestUseCase,
)
from approvals.application.use_cases.approvals.workflow_operations import (
    ApprovalWorkflowService,
)

__all__ = [
    "AUTO_APPROVED_COMMENT",
    "ApprovalQueryService",
    "ApprovalWorkflowService",
    "ProcessApprovalUseCase",
    "SubmitApprovalRequestUseCase",
    "publish_events",
]
