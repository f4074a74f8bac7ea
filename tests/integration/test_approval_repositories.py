"""Repository integration tests. Require Postgres; session is rolled back after each test."""

import pytest

from approvals.application.dtos.approval_request import (
    OrganizationContext,
    StageExecutionToPersist,
)
from approvals.application.dtos.approval_workflow import StageDefinitionInput
from approvals.domain.enums import (
    ApprovalDecision,
    ApprovalRequestStatus,
    ApprovalStageStatus,
    ApproverType,
    HierarchyLevel,
    WorkflowModule,
)
from approvals.domain.exceptions import (
    DuplicatePendingRequestException,
    WorkflowCodeAlreadyExistsException,
)
from approvals.infrastructure.persistence.models import Area, Forum, Unit
from approvals.infrastructure.persistence.repositories import (
    ApprovalRequestRepository,
    ApprovalStageRepository,
    ApprovalWorkflowRepository,
    OrganizationHierarchyRepository,
    StageExecutionRepository,
)
from approvals.shared.utils.datetime import utc_now
from approvals.shared.utils.generators import generate_cuid


async def _workflow_with_stages(db_session, code: str | None = None):
    workflows = ApprovalWorkflowRepository(db_session)
    stages = ApprovalStageRepository(db_session)
    workflow = await workflows.create_workflow(
        workflow_code=code or f"WF_{generate_cuid()}",
        workflow_name="Member approval",
        module=WorkflowModule.MEMBERSHIP,
        entity_type="Member",
        created_by="admin",
    )
    created = await stages.create_many(
        workflow.id,
        [
            StageDefinitionInput(
                stage_name="Forum",
                stage_order=2,
                approver_type=ApproverType.HIERARCHY,
                hierarchy_level=HierarchyLevel.FORUM,
            ),
            StageDefinitionInput(
                stage_name="Secretary",
                stage_order=1,
                approver_type=ApproverType.SPECIFIC_USER,
                user_id="secretary",
            ),
        ],
    )
    return workflow, created


async def _pending_request(db_session, workflow_id: str, entity_id: str):
    return await ApprovalRequestRepository(db_session).create_request(
        workflow_id=workflow_id,
        entity_type="Member",
        entity_id=entity_id,
        context=OrganizationContext(forum_id="f1"),
        requested_by="agent-7",
        requested_at=utc_now(),
        current_stage_order=1,
    )


@pytest.mark.requires_db
async def test_workflow_create_and_lookup(db_session) -> None:
    workflow, stages = await _workflow_with_stages(db_session)
    repo = ApprovalWorkflowRepository(db_session)

    by_code = await repo.get_by_code(workflow.workflow_code)
    assert by_code == await repo.get_by_id(workflow.id)
    assert by_code.module == WorkflowModule.MEMBERSHIP
    assert [s.stage_order for s in stages] == [1, 2]
    assert stages[1].hierarchy_level == HierarchyLevel.FORUM
    assert workflow.id in {w.id for w in await repo.list_active(WorkflowModule.MEMBERSHIP)}


@pytest.mark.requires_db
async def test_workflow_code_is_unique(db_session) -> None:
    workflow, _ = await _workflow_with_stages(db_session)
    with pytest.raises(WorkflowCodeAlreadyExistsException):
        await _workflow_with_stages(db_session, code=workflow.workflow_code)


@pytest.mark.requires_db
async def test_update_metadata_and_deactivate(db_session) -> None:
    workflow, _ = await _workflow_with_stages(db_session)
    repo = ApprovalWorkflowRepository(db_session)

    updated = await repo.update_metadata(
        workflow.id, {"is_active": False, "workflow_name": "Retired"}, updated_by="admin-2"
    )

    assert updated.is_active is False
    assert updated.workflow_name == "Retired"
    assert updated.updated_by == "admin-2"
    assert workflow.id not in {w.id for w in await repo.list_active()}
    assert await repo.update_metadata("missing", {"is_active": True}) is None


@pytest.mark.requires_db
async def test_stage_swap_within_one_transaction(db_session) -> None:
    workflow, (first, second) = await _workflow_with_stages(db_session)
    stages = ApprovalStageRepository(db_session)

    await stages.update_stage(first.id, {"stage_order": 2})
    await stages.update_stage(second.id, {"stage_order": 1})

    reordered = await stages.get_by_workflow(workflow.id)
    assert [s.id for s in reordered] == [second.id, first.id]


@pytest.mark.requires_db
async def test_request_and_execution_lifecycle(db_session) -> None:
    workflow, (first, second) = await _workflow_with_stages(db_session)
    requests = ApprovalRequestRepository(db_session)
    stage_repo = ApprovalStageRepository(db_session)
    execution_repo = StageExecutionRepository(db_session)
    entity_id = generate_cuid()

    request = await _pending_request(db_session, workflow.id, entity_id)
    rows = await execution_repo.create_many(
        request.id,
        [
            StageExecutionToPersist(
                stage_id=second.id, stage_order=2, assigned_approver_id="forum-admin"
            ),
            StageExecutionToPersist(
                stage_id=first.id, stage_order=1, assigned_approver_id="secretary"
            ),
        ],
    )

    assert [r.stage_order for r in rows] == [1, 2]
    assert (await requests.find_pending_by_entity("Member", entity_id)).id == request.id
    assert await requests.count_pending_by_workflow(workflow.id) == 1
    assert await stage_repo.count_executions(first.id) == 1
    queue = await execution_repo.find_pending_by_approver("secretary")
    assert rows[0].id in {e.id for e in queue}

    decided = await execution_repo.record_decision(
        rows[0].id,
        ApprovalStageStatus.APPROVED,
        ApprovalDecision.APPROVE,
        reviewed_by="secretary",
        reviewed_at=utc_now(),
        comments="fine",
    )
    assert decided.status == ApprovalStageStatus.APPROVED
    assert decided.decision == ApprovalDecision.APPROVE

    finished = await requests.update_status(
        request.id,
        ApprovalRequestStatus.APPROVED,
        current_stage_order=2,
        approved_by="forum-admin",
        approved_at=utc_now(),
    )
    assert finished.status == ApprovalRequestStatus.APPROVED
    assert finished.current_stage_order == 2
    assert await requests.find_pending_by_entity("Member", entity_id) is None
    locked = await requests.get_by_id(request.id, for_update=True)
    assert locked.approved_by == "forum-admin"


@pytest.mark.requires_db
async def test_second_pending_request_for_entity_is_refused_by_storage(db_session) -> None:
    workflow, _ = await _workflow_with_stages(db_session)
    entity_id = generate_cuid()
    await ApprovalRequestRepository(db_session).lock_entity("Member", entity_id)
    await _pending_request(db_session, workflow.id, entity_id)

    with pytest.raises(DuplicatePendingRequestException):
        await _pending_request(db_session, workflow.id, entity_id)


@pytest.mark.requires_db
async def test_finalized_request_frees_the_entity(db_session) -> None:
    workflow, _ = await _workflow_with_stages(db_session)
    requests = ApprovalRequestRepository(db_session)
    entity_id = generate_cuid()
    first = await _pending_request(db_session, workflow.id, entity_id)
    await requests.update_status(
        first.id,
        ApprovalRequestStatus.REJECTED,
        rejected_by="secretary",
        rejected_at=utc_now(),
    )

    second = await _pending_request(db_session, workflow.id, entity_id)

    assert second.id != first.id
    listed = await requests.list_requests(workflow_id=workflow.id)
    assert {r.id for r in listed} == {first.id, second.id}


@pytest.mark.requires_db
async def test_hierarchy_admin_lookup(db_session) -> None:
    forum = Forum(name="Central", admin_user_id="forum-admin")
    db_session.add(forum)
    await db_session.flush()
    area = Area(forum_id=forum.id, name="East", admin_user_id="area-admin")
    db_session.add(area)
    await db_session.flush()
    unit = Unit(area_id=area.id, name="Unit 4", admin_user_id=None)
    db_session.add(unit)
    await db_session.flush()
    lookup = OrganizationHierarchyRepository(db_session)

    assert await lookup.find_forum_admin(forum.id) == "forum-admin"
    assert await lookup.find_area_admin(area.id) == "area-admin"
    assert await lookup.find_unit_admin(unit.id) is None
    assert await lookup.find_unit_admin("missing") is None
