"""Record an approver's decision on a stage execution and advance the request."""

from __future__ import annotations

from approvals.application.dtos.approval_request import DecisionResult
from approvals.application.interfaces.repositories import (
    IApprovalRequestRepository,
    IApprovalWorkflowRepository,
    IStageExecutionRepository,
)
from approvals.domain.entities import evaluate_approval_progress
from approvals.domain.enums import (
    ApprovalDecision,
    ApprovalRequestStatus,
    ApprovalStageStatus,
)
from approvals.domain.events import (
    ApprovalRequestApproved,
    ApprovalRequestRejected,
    DomainEvent,
)
from approvals.domain.exceptions import (
    BadRequestException,
    ForbiddenException,
    ResourceNotFoundException,
)
from approvals.shared.context import get_correlation_id
from approvals.shared.telemetry.logging import get_logger
from approvals.shared.telemetry.tracing import add_span_event, traced
from approvals.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class ProcessApprovalUseCase:
    """Applies Approve or Reject to one stage execution.

    Reject is a single-stage veto: the request is Rejected at once and the
    remaining executions are left Pending. Approve moves the cursor to the
    lowest stage still Pending or finalizes the request.
    """

    def __init__(
        self,
        workflow_repo: IApprovalWorkflowRepository,
        request_repo: IApprovalRequestRepository,
        execution_repo: IStageExecutionRepository,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._request_repo = request_repo
        self._execution_repo = execution_repo

    @traced("approvals.process_approval")
    async def execute(
        self,
        execution_id: str,
        decision: ApprovalDecision,
        reviewed_by: str,
        comments: str | None = None,
    ) -> DecisionResult:
        """Process a decision.

        Preconditions are checked in order: execution exists, execution is
        Pending, caller is the assigned approver (an unassigned execution
        admits anyone), request exists, request is Pending. Stages need
        not be decided in order.

        Raises:
            ResourceNotFoundException: Execution or request not found.
            BadRequestException: Execution or request not Pending.
            ForbiddenException: Caller is not the assigned approver.
        """
        execution = await self._execution_repo.get_by_id(execution_id, for_update=True)
        if not execution:
            raise ResourceNotFoundException("approval_stage_execution", execution_id)
        if execution.status != ApprovalStageStatus.PENDING:
            raise BadRequestException(
                f"This approval stage is already {execution.status.value}",
                execution_id=execution_id,
            )
        if (
            execution.assigned_approver_id
            and execution.assigned_approver_id != reviewed_by
        ):
            logger.warning(
                "User %s refused on execution %s assigned to %s",
                reviewed_by,
                execution_id,
                execution.assigned_approver_id,
            )
            raise ForbiddenException(execution_id=execution_id)

        request = await self._request_repo.get_by_id(execution.request_id, for_update=True)
        if not request:
            raise ResourceNotFoundException("approval_request", execution.request_id)
        if request.status != ApprovalRequestStatus.PENDING:
            raise BadRequestException(
                f"Request is already {request.status.value}", request_id=request.id
            )
        workflow = await self._workflow_repo.get_by_id(request.workflow_id)
        if not workflow:
            raise ResourceNotFoundException("approval_workflow", request.workflow_id)

        now = utc_now()
        events: list[DomainEvent] = []
        if decision == ApprovalDecision.REJECT:
            execution = await self._execution_repo.record_decision(
                execution_id,
                ApprovalStageStatus.REJECTED,
                decision,
                reviewed_by=reviewed_by,
                reviewed_at=now,
                comments=comments,
            )
            request = await self._request_repo.update_status(
                request.id,
                ApprovalRequestStatus.REJECTED,
                current_stage_order=request.current_stage_order,
                rejected_by=reviewed_by,
                rejected_at=now,
                rejection_reason=comments,
            )
            logger.info(
                "Approval request %s rejected at stage %s by %s",
                request.id,
                execution.stage_order,
                reviewed_by,
            )
            add_span_event("approval.request.rejected", {"request_id": request.id})
            events.append(
                ApprovalRequestRejected(
                    request_id=request.id,
                    workflow_code=workflow.workflow_code,
                    entity_type=request.entity_type,
                    entity_id=request.entity_id,
                    rejected_by=reviewed_by,
                    rejected_at=now,
                    rejection_reason=comments,
                    user_id=reviewed_by,
                    correlation_id=get_correlation_id(),
                )
            )
            return DecisionResult(execution=execution, request=request, events=events)

        execution = await self._execution_repo.record_decision(
            execution_id,
            ApprovalStageStatus.APPROVED,
            decision,
            reviewed_by=reviewed_by,
            reviewed_at=now,
            comments=comments,
        )
        executions = await self._execution_repo.get_by_request(request.id)
        progress = evaluate_approval_progress(
            request.current_stage_order, executions, workflow.requires_all_stages
        )
        if not progress.finalize:
            request = await self._request_repo.update_status(
                request.id,
                ApprovalRequestStatus.PENDING,
                current_stage_order=progress.next_stage_order,
            )
            logger.info(
                "Approval request %s advanced to stage %s",
                request.id,
                progress.next_stage_order,
            )
            add_span_event(
                "approval.request.advanced",
                {"request_id": request.id, "stage_order": progress.next_stage_order},
            )
            return DecisionResult(execution=execution, request=request, events=events)

        request = await self._request_repo.update_status(
            request.id,
            ApprovalRequestStatus.APPROVED,
            current_stage_order=request.current_stage_order,
            approved_by=reviewed_by,
            approved_at=now,
        )
        logger.info("Approval request %s approved by %s", request.id, reviewed_by)
        add_span_event("approval.request.approved", {"request_id": request.id})
        events.append(
            ApprovalRequestApproved(
                request_id=request.id,
                workflow_code=workflow.workflow_code,
                entity_type=request.entity_type,
                entity_id=request.entity_id,
                approved_by=reviewed_by,
                approved_at=now,
                user_id=reviewed_by,
                correlation_id=get_correlation_id(),
            )
        )
        return DecisionResult(execution=execution, request=request, events=events)
