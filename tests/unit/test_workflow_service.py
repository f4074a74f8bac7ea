"""ApprovalWorkflowService: create, metadata updates, and stage replacement rules."""

import pytest

from approvals.application.dtos.approval_request import OrganizationContext
from approvals.application.dtos.approval_workflow import (
    StageDefinitionInput,
    WorkflowCreate,
)
from approvals.application.use_cases.approvals import (
    ApprovalWorkflowService,
    SubmitApprovalRequestUseCase,
)
from approvals.domain.enums import ApproverType, HierarchyLevel, WorkflowModule
from approvals.domain.exceptions import (
    BadRequestException,
    ResourceNotFoundException,
    ValidationException,
    WorkflowCodeAlreadyExistsException,
)
from tests.fakes import InMemoryApprovalStore, hierarchy_stage, user_stage


def _create(code: str = "AGENT_ONBOARDING", stages=None) -> WorkflowCreate:
    return WorkflowCreate(
        workflow_code=code,
        workflow_name="Agent onboarding",
        module=WorkflowModule.MEMBERSHIP,
        entity_type="Agent",
        stages=stages
        if stages is not None
        else [hierarchy_stage(1, HierarchyLevel.AREA), user_stage(2, "ceo")],
    )


def _keep(stage, **changes) -> StageDefinitionInput:
    """Re-submit an existing stage, optionally changed."""
    fields = {
        "id": stage.id,
        "stage_name": stage.stage_name,
        "stage_order": stage.stage_order,
        "approver_type": stage.approver_type,
        "role_id": stage.role_id,
        "user_id": stage.user_id,
        "hierarchy_level": stage.hierarchy_level,
        "is_optional": stage.is_optional,
        "auto_approve": stage.auto_approve,
    }
    fields.update(changes)
    return StageDefinitionInput(**fields)


async def _submit_against(submit_use_case: SubmitApprovalRequestUseCase, code: str) -> None:
    await submit_use_case.execute(
        workflow_code=code,
        entity_type="Member",
        entity_id="m1",
        context=OrganizationContext(area_id="a1"),
        requested_by="agent-7",
    )


# ---- create ----


async def test_create_workflow_with_stages(
    workflow_service: ApprovalWorkflowService,
) -> None:
    result = await workflow_service.create_workflow(_create(), created_by="admin-1")

    assert result.workflow.workflow_code == "AGENT_ONBOARDING"
    assert result.workflow.is_active is True
    assert result.workflow.requires_all_stages is True
    assert result.workflow.created_by == "admin-1"
    assert [s.stage_order for s in result.stages] == [1, 2]
    assert all(s.workflow_id == result.workflow.id for s in result.stages)


async def test_create_duplicate_code_conflicts(
    workflow_service: ApprovalWorkflowService,
) -> None:
    await workflow_service.create_workflow(_create())
    with pytest.raises(WorkflowCodeAlreadyExistsException):
        await workflow_service.create_workflow(_create())


@pytest.mark.parametrize(
    "stages",
    [[], [user_stage(1, "a"), user_stage(1, "b")]],
    ids=["no-stages", "duplicate-order"],
)
async def test_create_rejects_invalid_stage_sets(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService, stages
) -> None:
    with pytest.raises(ValidationException):
        await workflow_service.create_workflow(_create(stages=stages))
    assert store.workflows == {}


async def test_create_accepts_order_gaps(workflow_service: ApprovalWorkflowService) -> None:
    result = await workflow_service.create_workflow(
        _create(stages=[user_stage(5, "a"), user_stage(1, "b")])
    )
    assert [s.stage_order for s in result.stages] == [1, 5]


# ---- metadata ----


async def test_update_metadata(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, stages = store.seed_workflow(stages=[user_stage(1, "a")])

    updated = await workflow_service.update_workflow_metadata(
        workflow.id,
        {"workflow_name": "Renamed", "requires_all_stages": False},
        updated_by="admin-2",
    )

    assert updated.workflow_name == "Renamed"
    assert updated.requires_all_stages is False
    assert updated.updated_by == "admin-2"
    assert list(store.stages.values()) == stages


async def test_update_metadata_refuses_non_metadata_fields(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, _ = store.seed_workflow(stages=[user_stage(1, "a")])
    with pytest.raises(ValidationException, match="workflow_code"):
        await workflow_service.update_workflow_metadata(workflow.id, {"workflow_code": "X"})


async def test_update_metadata_unknown_workflow(
    workflow_service: ApprovalWorkflowService,
) -> None:
    with pytest.raises(ResourceNotFoundException):
        await workflow_service.update_workflow_metadata("missing", {"is_active": False})


async def test_deactivate_with_pending_requests_is_refused(
    store: InMemoryApprovalStore,
    workflow_service: ApprovalWorkflowService,
    submit_use_case: SubmitApprovalRequestUseCase,
) -> None:
    workflow, _ = store.seed_workflow(stages=[user_stage(1, "a")])
    await _submit_against(submit_use_case, workflow.workflow_code)

    with pytest.raises(BadRequestException, match="pending requests"):
        await workflow_service.update_workflow_metadata(workflow.id, {"is_active": False})

    assert store.workflows[workflow.id].is_active is True


async def test_deactivate_without_pending_requests(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, _ = store.seed_workflow(stages=[user_stage(1, "a")])
    updated = await workflow_service.update_workflow_metadata(workflow.id, {"is_active": False})
    assert updated.is_active is False


# ---- stages ----


async def test_replace_stages_updates_adds_and_deletes_unreferenced(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, (first, second) = store.seed_workflow(
        stages=[user_stage(1, "a"), user_stage(2, "b")]
    )

    result = await workflow_service.update_workflow_stages(
        workflow.id,
        [
            _keep(second, stage_order=1, user_id="b2"),
            StageDefinitionInput(
                stage_name="Forum sign-off",
                stage_order=2,
                approver_type=ApproverType.HIERARCHY,
                hierarchy_level=HierarchyLevel.FORUM,
            ),
        ],
        updated_by="admin-3",
    )

    assert [s.id for s in result.stages][0] == second.id
    assert result.stages[0].user_id == "b2"
    assert result.stages[1].hierarchy_level == HierarchyLevel.FORUM
    assert first.id not in store.stages
    assert result.workflow.updated_by == "admin-3"


async def test_replace_stages_requires_sequential_orders(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, (stage,) = store.seed_workflow(stages=[user_stage(1, "a")])
    with pytest.raises(ValidationException, match="sequential"):
        await workflow_service.update_workflow_stages(
            workflow.id, [_keep(stage), user_stage(3, "c")]
        )


async def test_replace_stages_unknown_stage_id(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, _ = store.seed_workflow(stages=[user_stage(1, "a")])
    with pytest.raises(ResourceNotFoundException, match="approval_stage"):
        await workflow_service.update_workflow_stages(
            workflow.id, [user_stage(1, "a", id="ghost")]
        )


async def test_stage_with_executions_cannot_be_deleted(
    store: InMemoryApprovalStore,
    workflow_service: ApprovalWorkflowService,
    submit_use_case: SubmitApprovalRequestUseCase,
) -> None:
    workflow, (first, second) = store.seed_workflow(
        stages=[user_stage(1, "a"), user_stage(2, "b")]
    )
    await _submit_against(submit_use_case, workflow.workflow_code)

    with pytest.raises(BadRequestException, match="Cannot delete stages"):
        await workflow_service.update_workflow_stages(workflow.id, [_keep(first)])

    assert second.id in store.stages


async def test_stage_with_executions_cannot_be_reordered(
    store: InMemoryApprovalStore,
    workflow_service: ApprovalWorkflowService,
    submit_use_case: SubmitApprovalRequestUseCase,
) -> None:
    workflow, (first, second) = store.seed_workflow(
        stages=[user_stage(1, "a"), user_stage(2, "b")]
    )
    await _submit_against(submit_use_case, workflow.workflow_code)

    with pytest.raises(BadRequestException, match="Cannot change order"):
        await workflow_service.update_workflow_stages(
            workflow.id, [_keep(first, stage_order=2), _keep(second, stage_order=1)]
        )


async def test_stage_with_executions_cannot_change_approver_type(
    store: InMemoryApprovalStore,
    workflow_service: ApprovalWorkflowService,
    submit_use_case: SubmitApprovalRequestUseCase,
) -> None:
    workflow, (stage,) = store.seed_workflow(stages=[user_stage(1, "a")])
    await _submit_against(submit_use_case, workflow.workflow_code)

    with pytest.raises(BadRequestException, match="Cannot change approver type"):
        await workflow_service.update_workflow_stages(
            workflow.id,
            [_keep(stage, approver_type=ApproverType.ROLE, role_id="treasurer")],
        )


async def test_stage_with_executions_may_be_renamed_and_made_optional(
    store: InMemoryApprovalStore,
    workflow_service: ApprovalWorkflowService,
    submit_use_case: SubmitApprovalRequestUseCase,
) -> None:
    workflow, (stage,) = store.seed_workflow(stages=[user_stage(1, "a")])
    await _submit_against(submit_use_case, workflow.workflow_code)

    result = await workflow_service.update_workflow_stages(
        workflow.id,
        [_keep(stage, stage_name="Secretary review", is_optional=True, user_id="other")],
    )

    (updated,) = result.stages
    assert updated.stage_name == "Secretary review"
    assert updated.is_optional is True
    # Approver fields of a referenced stage are left untouched.
    assert updated.user_id == "a"


# ---- reads ----


async def test_get_workflow_by_code_and_id(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    workflow, stages = store.seed_workflow(stages=[user_stage(2, "b"), user_stage(1, "a")])

    by_code = await workflow_service.get_workflow_by_code("MEMBER_APPROVAL")
    by_id = await workflow_service.get_workflow_by_id(workflow.id)

    assert by_code == by_id
    assert [s.stage_order for s in by_id.stages] == [1, 2]


async def test_get_unknown_workflow_raises(workflow_service: ApprovalWorkflowService) -> None:
    with pytest.raises(ResourceNotFoundException):
        await workflow_service.get_workflow_by_code("NOPE")
    with pytest.raises(ResourceNotFoundException):
        await workflow_service.get_workflow_by_id("nope")


async def test_list_active_excludes_inactive(
    store: InMemoryApprovalStore, workflow_service: ApprovalWorkflowService
) -> None:
    store.seed_workflow("ACTIVE_ONE", stages=[user_stage(1, "a")])
    store.seed_workflow("RETIRED", stages=[user_stage(1, "a")], is_active=False)

    active = await workflow_service.list_active_workflows(WorkflowModule.MEMBERSHIP)
    everything = await workflow_service.list_all_workflows()

    assert [w.workflow_code for w in active] == ["ACTIVE_ONE"]
    assert {w.workflow_code for w in everything} == {"ACTIVE_ONE", "RETIRED"}
    assert await workflow_service.list_active_workflows(WorkflowModule.CLAIMS) == []
