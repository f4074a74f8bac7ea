"""Approval request API: submission, decisions, and queries.

Submission and decision routes own their transaction so that approval
events are queued for publishing only once the state change is committed.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.api.v1.dependencies import (
    CurrentUser,
    get_approval_query_service,
    get_current_user,
    get_event_publisher,
    get_process_approval_use_case,
    get_submit_request_use_case,
)
from approvals.application.interfaces.services import IApprovalEventPublisher
from approvals.application.use_cases.approvals import (
    ApprovalQueryService,
    ProcessApprovalUseCase,
    SubmitApprovalRequestUseCase,
    publish_events,
)
from approvals.core.limiter import limit_writes
from approvals.domain.enums import ApprovalRequestStatus
from approvals.domain.exceptions import ForbiddenException
from approvals.infrastructure.persistence.database import get_db
from approvals.schemas.approval_request import (
    ApprovalRequestDetailResponse,
    ApprovalRequestResponse,
    DecisionResponse,
    EntityApprovalResponse,
    ProcessApprovalRequest,
    StageExecutionResponse,
    SubmitApprovalRequest,
)

router = APIRouter()


@router.post("", response_model=ApprovalRequestDetailResponse, status_code=201)
@limit_writes
async def submit_approval_request(
    request: Request,
    body: SubmitApprovalRequest,
    background_tasks: BackgroundTasks,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    use_case: Annotated[SubmitApprovalRequestUseCase, Depends(get_submit_request_use_case)],
    publisher: Annotated[IApprovalEventPublisher | None, Depends(get_event_publisher)],
):
    """Submit an entity for approval; the caller is recorded as requester."""
    async with db.begin():
        result = await use_case.execute(
            workflow_code=body.workflow_code,
            entity_type=body.entity_type,
            entity_id=body.entity_id,
            context=body.context(),
            requested_by=current_user.id,
        )
    if result.events:
        background_tasks.add_task(publish_events, publisher, result.events)
    return ApprovalRequestDetailResponse.from_result(result)


@router.post("/process", response_model=DecisionResponse)
@limit_writes
async def process_approval(
    request: Request,
    body: ProcessApprovalRequest,
    background_tasks: BackgroundTasks,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    use_case: Annotated[ProcessApprovalUseCase, Depends(get_process_approval_use_case)],
    publisher: Annotated[IApprovalEventPublisher | None, Depends(get_event_publisher)],
):
    """Approve or reject the caller's stage execution."""
    async with db.begin():
        result = await use_case.execute(
            execution_id=body.execution_id,
            decision=body.decision,
            reviewed_by=current_user.id,
            comments=body.comments,
        )
    if result.events:
        background_tasks.add_task(publish_events, publisher, result.events)
    return DecisionResponse.from_result(result)


@router.get("", response_model=list[ApprovalRequestResponse])
async def list_approval_requests(
    _: Annotated[CurrentUser, Depends(get_current_user)],
    queries: Annotated[ApprovalQueryService, Depends(get_approval_query_service)],
    status: ApprovalRequestStatus | None = Query(None),
    entity_type: str | None = Query(None),
    workflow_id: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """Search requests, newest first."""
    requests = await queries.list_requests(
        status=status,
        entity_type=entity_type,
        workflow_id=workflow_id,
        skip=skip,
        limit=limit,
    )
    return [ApprovalRequestResponse.model_validate(r) for r in requests]


@router.get("/pending/me", response_model=list[StageExecutionResponse])
async def list_my_pending_approvals(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    queries: Annotated[ApprovalQueryService, Depends(get_approval_query_service)],
):
    """Pending executions assigned to the caller."""
    executions = await queries.find_pending_by_approver(current_user.id)
    return [StageExecutionResponse.model_validate(e) for e in executions]


@router.get("/pending/{approver_id}", response_model=list[StageExecutionResponse])
async def list_pending_approvals(
    approver_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    queries: Annotated[ApprovalQueryService, Depends(get_approval_query_service)],
):
    """Pending executions assigned to an approver (self, or any approver for admins)."""
    if approver_id != current_user.id and not current_user.is_admin:
        raise ForbiddenException(
            "You may only list your own pending approvals", approver_id=approver_id
        )
    executions = await queries.find_pending_by_approver(approver_id)
    return [StageExecutionResponse.model_validate(e) for e in executions]


@router.get(
    "/entity/{entity_type}/{entity_id}", response_model=EntityApprovalResponse
)
async def get_entity_approval(
    entity_type: str,
    entity_id: str,
    _: Annotated[CurrentUser, Depends(get_current_user)],
    queries: Annotated[ApprovalQueryService, Depends(get_approval_query_service)],
):
    """Current pending request of an entity; request is null when none is pending."""
    return EntityApprovalResponse.from_result(
        await queries.get_by_entity(entity_type, entity_id)
    )


@router.get("/{request_id}", response_model=ApprovalRequestDetailResponse)
async def get_approval_request(
    request_id: str,
    _: Annotated[CurrentUser, Depends(get_current_user)],
    queries: Annotated[ApprovalQueryService, Depends(get_approval_query_service)],
):
    return ApprovalRequestDetailResponse.from_result(await queries.get_by_id(request_id))
