"""Workflow validation and request progression rules (pure domain, no I/O)."""

from dataclasses import dataclass

import pytest

from approvals.domain.entities import (
    ApprovalProgress,
    ApprovalStageEntity,
    ApprovalWorkflowEntity,
    evaluate_approval_progress,
    initial_execution_status,
    next_pending_stage_order,
    validate_stage_orders,
)
from approvals.domain.enums import (
    ApprovalRequestStatus,
    ApprovalStageStatus,
    ApproverType,
    HierarchyLevel,
    WorkflowModule,
)
from approvals.domain.exceptions import BadRequestException, ValidationException

PENDING = ApprovalStageStatus.PENDING
APPROVED = ApprovalStageStatus.APPROVED
SKIPPED = ApprovalStageStatus.SKIPPED


@dataclass
class _Execution:
    stage_order: int
    status: ApprovalStageStatus


def _executions(*statuses: ApprovalStageStatus) -> list[_Execution]:
    return [_Execution(order, s) for order, s in enumerate(statuses, start=1)]


def _stage(**kwargs) -> ApprovalStageEntity:
    defaults = {
        "id": "st1",
        "workflow_id": "wf1",
        "stage_name": "Unit review",
        "stage_order": 1,
        "approver_type": ApproverType.HIERARCHY,
        "hierarchy_level": HierarchyLevel.UNIT,
    }
    defaults.update(kwargs)
    return ApprovalStageEntity(**defaults)


def _workflow(is_active: bool = True) -> ApprovalWorkflowEntity:
    return ApprovalWorkflowEntity(
        id="wf1",
        workflow_code="MEMBER_APPROVAL",
        workflow_name="Member approval",
        module=WorkflowModule.MEMBERSHIP,
        entity_type="Member",
        is_active=is_active,
        requires_all_stages=True,
    )


# ---- validate_stage_orders ----


def test_stage_orders_with_gaps_are_accepted_on_create() -> None:
    validate_stage_orders([1, 3, 10])


@pytest.mark.parametrize(
    ("orders", "message"),
    [
        ([], "At least one approval stage"),
        ([1, 1], "unique"),
        ([0, 1], "positive"),
        ([-2], "positive"),
    ],
)
def test_invalid_stage_orders_raise(orders: list[int], message: str) -> None:
    with pytest.raises(ValidationException, match=message):
        validate_stage_orders(orders)


def test_sequential_orders_required_when_replacing_stages() -> None:
    validate_stage_orders([2, 1, 3], sequential=True)
    with pytest.raises(ValidationException, match="sequential"):
        validate_stage_orders([1, 3], sequential=True)


def test_stage_entity_rejects_non_positive_order() -> None:
    with pytest.raises(ValidationException):
        _stage(stage_order=0)


# ---- ensure_accepts_requests ----


def test_inactive_workflow_refuses_requests() -> None:
    with pytest.raises(BadRequestException, match="not active"):
        _workflow(is_active=False).ensure_accepts_requests(stage_count=2)


def test_workflow_without_stages_refuses_requests() -> None:
    with pytest.raises(BadRequestException, match="no approval stages"):
        _workflow().ensure_accepts_requests(stage_count=0)


def test_active_workflow_with_stages_accepts_requests() -> None:
    _workflow().ensure_accepts_requests(stage_count=1)


# ---- initial_execution_status ----


def test_auto_approve_stage_starts_approved_even_without_approver() -> None:
    assert initial_execution_status(_stage(auto_approve=True), None) == APPROVED


def test_optional_stage_without_approver_is_skipped() -> None:
    assert initial_execution_status(_stage(is_optional=True), None) == SKIPPED


def test_optional_stage_with_approver_is_pending() -> None:
    assert initial_execution_status(_stage(is_optional=True), "u1") == PENDING


def test_mandatory_stage_without_approver_stays_pending() -> None:
    assert initial_execution_status(_stage(), None) == PENDING


# ---- next_pending_stage_order ----


def test_next_pending_is_lowest_pending_order() -> None:
    assert next_pending_stage_order(_executions(APPROVED, SKIPPED, PENDING, PENDING)) == 3


def test_next_pending_ignores_decided_stages_in_between() -> None:
    assert next_pending_stage_order(_executions(PENDING, APPROVED, PENDING)) == 1


def test_next_pending_none_when_nothing_pending() -> None:
    assert next_pending_stage_order(_executions(APPROVED, SKIPPED)) is None


# ---- evaluate_approval_progress ----


def test_progress_moves_cursor_to_next_pending_stage() -> None:
    progress = evaluate_approval_progress(1, _executions(APPROVED, PENDING, PENDING), True)
    assert progress == ApprovalProgress(finalize=False, next_stage_order=2)


def test_progress_skips_over_skipped_stages() -> None:
    progress = evaluate_approval_progress(1, _executions(APPROVED, SKIPPED, PENDING), True)
    assert progress.next_stage_order == 3


def test_progress_finalizes_when_all_approved_or_skipped() -> None:
    progress = evaluate_approval_progress(3, _executions(APPROVED, SKIPPED, APPROVED), True)
    assert progress.finalize is True
    assert progress.next_stage_order is None


def test_progress_finalizes_on_current_stage_when_not_all_stages_required() -> None:
    progress = evaluate_approval_progress(1, _executions(APPROVED, PENDING, PENDING), False)
    assert progress.finalize is True


def test_progress_keeps_cursor_when_a_later_stage_is_approved_first() -> None:
    progress = evaluate_approval_progress(1, _executions(PENDING, APPROVED), True)
    assert progress == ApprovalProgress(finalize=False, next_stage_order=1)


def test_progress_never_finalizes_with_an_earlier_stage_pending() -> None:
    # Cursor sits past an undecided stage; it returns to that stage.
    progress = evaluate_approval_progress(2, _executions(PENDING, APPROVED, APPROVED), True)
    assert progress == ApprovalProgress(finalize=False, next_stage_order=1)


def test_progress_later_approval_does_not_finalize_optional_workflow() -> None:
    progress = evaluate_approval_progress(1, _executions(PENDING, APPROVED), False)
    assert progress.finalize is False


# ---- enums ----


def test_enum_values_are_storage_strings() -> None:
    assert ApprovalRequestStatus.values() == ["Pending", "Approved", "Rejected", "Cancelled"]
    assert ApproverType.SPECIFIC_USER.value == "SpecificUser"
    assert HierarchyLevel("Forum") is HierarchyLevel.FORUM


def test_only_pending_request_status_is_non_terminal() -> None:
    assert not ApprovalRequestStatus.PENDING.is_terminal
    assert all(
        s.is_terminal for s in ApprovalRequestStatus if s is not ApprovalRequestStatus.PENDING
    )
