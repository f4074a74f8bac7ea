"""Concurrent submissions for one entity. Require Postgres; rows are committed and removed after."""

import asyncio

import pytest
from sqlalchemy import delete, select

from approvals.application.dtos.approval_request import OrganizationContext
from approvals.application.dtos.approval_workflow import StageDefinitionInput
from approvals.application.services import ApproverResolver
from approvals.application.use_cases.approvals import SubmitApprovalRequestUseCase
from approvals.domain.enums import ApproverType, WorkflowModule
from approvals.domain.exceptions import DuplicatePendingRequestException
from approvals.infrastructure.persistence import database
from approvals.infrastructure.persistence.models import (
    ApprovalRequest,
    ApprovalStage,
    ApprovalStageExecution,
    ApprovalWorkflow,
)
from approvals.infrastructure.persistence.repositories import (
    ApprovalRequestRepository,
    ApprovalStageRepository,
    ApprovalWorkflowRepository,
    OrganizationHierarchyRepository,
    StageExecutionRepository,
)
from approvals.shared.utils.generators import generate_cuid


async def _submit(workflow_code: str, entity_id: str):
    async with database.AsyncSessionLocal() as session:
        async with session.begin():
            use_case = SubmitApprovalRequestUseCase(
                workflow_repo=ApprovalWorkflowRepository(session),
                stage_repo=ApprovalStageRepository(session),
                request_repo=ApprovalRequestRepository(session),
                execution_repo=StageExecutionRepository(session),
                approver_resolver=ApproverResolver(OrganizationHierarchyRepository(session)),
            )
            return await use_case.execute(
                workflow_code=workflow_code,
                entity_type="Member",
                entity_id=entity_id,
                context=OrganizationContext(),
                requested_by="agent-7",
            )


@pytest.fixture
async def committed_workflow(db_engine):
    code = f"WF_{generate_cuid()}"
    async with database.AsyncSessionLocal() as session:
        async with session.begin():
            workflow = await ApprovalWorkflowRepository(session).create_workflow(
                workflow_code=code,
                workflow_name="Concurrent submissions",
                module=WorkflowModule.MEMBERSHIP,
                entity_type="Member",
            )
            await ApprovalStageRepository(session).create_many(
                workflow.id,
                [
                    StageDefinitionInput(
                        stage_name="Secretary",
                        stage_order=1,
                        approver_type=ApproverType.SPECIFIC_USER,
                        user_id="secretary",
                    )
                ],
            )
    yield workflow
    async with database.AsyncSessionLocal() as session:
        async with session.begin():
            request_ids = select(ApprovalRequest.id).where(
                ApprovalRequest.workflow_id == workflow.id
            )
            await session.execute(
                delete(ApprovalStageExecution).where(
                    ApprovalStageExecution.request_id.in_(request_ids)
                )
            )
            await session.execute(
                delete(ApprovalRequest).where(ApprovalRequest.workflow_id == workflow.id)
            )
            await session.execute(
                delete(ApprovalStage).where(ApprovalStage.workflow_id == workflow.id)
            )
            await session.execute(
                delete(ApprovalWorkflow).where(ApprovalWorkflow.id == workflow.id)
            )


@pytest.mark.requires_db
async def test_concurrent_submissions_create_exactly_one_pending_request(
    committed_workflow,
) -> None:
    entity_id = generate_cuid()

    outcomes = await asyncio.gather(
        _submit(committed_workflow.workflow_code, entity_id),
        _submit(committed_workflow.workflow_code, entity_id),
        return_exceptions=True,
    )

    refused = [o for o in outcomes if isinstance(o, DuplicatePendingRequestException)]
    created = [o for o in outcomes if not isinstance(o, BaseException)]
    assert len(created) == 1
    assert len(refused) == 1
    assert len(created[0].executions) == 1
