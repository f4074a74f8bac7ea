"""Submit an entity for approval: one request, one execution per stage."""

from __future__ import annotations

from approvals.application.dtos.approval_request import (
    OrganizationContext,
    StageExecutionToPersist,
    SubmissionResult,
)
from approvals.application.interfaces.repositories import (
    IApprovalRequestRepository,
    IApprovalStageRepository,
    IApprovalWorkflowRepository,
    IStageExecutionRepository,
)
from approvals.application.interfaces.services import IApproverResolver
from approvals.domain.entities import initial_execution_status, next_pending_stage_order
from approvals.domain.enums import (
    ApprovalDecision,
    ApprovalRequestStatus,
    ApprovalStageStatus,
)
from approvals.domain.events import ApprovalRequestApproved, DomainEvent
from approvals.domain.exceptions import (
    DuplicatePendingRequestException,
    ResourceNotFoundException,
)
from approvals.shared.context import get_correlation_id
from approvals.shared.telemetry.logging import get_logger
from approvals.shared.telemetry.tracing import add_span_event, traced
from approvals.shared.utils.datetime import utc_now

logger = get_logger(__name__)

AUTO_APPROVED_COMMENT = "Auto-approved"


class SubmitApprovalRequestUseCase:
    """Creates a Pending request against a workflow and materializes its executions.

    All writes share the caller's transaction. Submissions for the same
    entity are serialized by ``lock_entity`` before the pending check; the
    storage additionally guarantees at most one Pending request per entity.
    """

    def __init__(
        self,
        workflow_repo: IApprovalWorkflowRepository,
        stage_repo: IApprovalStageRepository,
        request_repo: IApprovalRequestRepository,
        execution_repo: IStageExecutionRepository,
        approver_resolver: IApproverResolver,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._stage_repo = stage_repo
        self._request_repo = request_repo
        self._execution_repo = execution_repo
        self._resolver = approver_resolver

    @traced("approvals.submit_request")
    async def execute(
        self,
        workflow_code: str,
        entity_type: str,
        entity_id: str,
        context: OrganizationContext,
        requested_by: str,
    ) -> SubmissionResult:
        """Submit an entity for approval.

        Raises:
            ResourceNotFoundException: Unknown workflow code.
            BadRequestException: Workflow inactive or without stages.
            DuplicatePendingRequestException: Entity already has a Pending request.
        """
        workflow = await self._workflow_repo.get_by_code(workflow_code)
        if not workflow:
            raise ResourceNotFoundException("approval_workflow", workflow_code)
        stages = await self._stage_repo.get_by_workflow(workflow.id)
        workflow.to_entity().ensure_accepts_requests(len(stages))
        if entity_type != workflow.entity_type:
            logger.warning(
                "Workflow %s targets %s but was submitted for %s %s",
                workflow_code,
                workflow.entity_type,
                entity_type,
                entity_id,
            )

        await self._request_repo.lock_entity(entity_type, entity_id)
        if await self._request_repo.find_pending_by_entity(entity_type, entity_id):
            logger.warning(
                "Refused submission: %s %s already has a pending request",
                entity_type,
                entity_id,
            )
            raise DuplicatePendingRequestException(entity_type, entity_id)

        now = utc_now()
        planned: list[StageExecutionToPersist] = []
        for stage in sorted(stages, key=lambda s: s.stage_order):
            stage_entity = stage.to_entity()
            approver_id = await self._resolver.resolve(stage_entity, context)
            status = initial_execution_status(stage_entity, approver_id)
            auto = status == ApprovalStageStatus.APPROVED
            planned.append(
                StageExecutionToPersist(
                    stage_id=stage.id,
                    stage_order=stage.stage_order,
                    assigned_approver_id=approver_id,
                    status=status,
                    decision=ApprovalDecision.APPROVE if auto else None,
                    reviewed_at=now if auto else None,
                    comments=AUTO_APPROVED_COMMENT if auto else None,
                )
            )

        cursor = next_pending_stage_order(planned)
        request = await self._request_repo.create_request(
            workflow_id=workflow.id,
            entity_type=entity_type,
            entity_id=entity_id,
            context=context,
            requested_by=requested_by,
            requested_at=now,
            current_stage_order=cursor if cursor is not None else planned[-1].stage_order,
        )
        executions = await self._execution_repo.create_many(request.id, planned)
        logger.info(
            "Submitted approval request %s for %s %s via %s (%d stages, current stage %s)",
            request.id,
            entity_type,
            entity_id,
            workflow_code,
            len(executions),
            cursor,
        )

        events: list[DomainEvent] = []
        if cursor is None:
            # Every stage was auto-approved or skipped.
            request = await self._request_repo.update_status(
                request.id,
                ApprovalRequestStatus.APPROVED,
                current_stage_order=request.current_stage_order,
                approved_at=now,
            )
            logger.info("Approval request %s approved at submission", request.id)
            add_span_event("approval.request.approved", {"request_id": request.id})
            events.append(
                ApprovalRequestApproved(
                    request_id=request.id,
                    workflow_code=workflow.workflow_code,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    approved_by=None,
                    approved_at=now,
                    user_id=requested_by,
                    correlation_id=get_correlation_id(),
                )
            )
        return SubmissionResult(request=request, executions=executions, events=events)
