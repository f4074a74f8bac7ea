"""Approval request progression rules (the decision state machine).

A request owns one stage execution per workflow stage, all created at
submission. ``current_stage_order`` is a cursor at the lowest stage still
Pending. Any Pending execution may be decided, in any order, and the cursor
only ever targets an existing stage order.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from approvals.domain.entities.approval_workflow import ApprovalStageEntity
from approvals.domain.enums import ApprovalStageStatus

_DONE_STATUSES = frozenset({ApprovalStageStatus.APPROVED, ApprovalStageStatus.SKIPPED})


class _ExecutionLike(Protocol):
    """Minimal execution shape for progression rules."""

    stage_order: int
    status: ApprovalStageStatus


@dataclass(frozen=True)
class ApprovalProgress:
    """Outcome of recomputing a request after an approval.

    Exactly one of: finalize is True (request becomes Approved), or
    next_stage_order names the stage the cursor moves to.
    """

    finalize: bool
    next_stage_order: int | None = None


def initial_execution_status(
    stage: ApprovalStageEntity, assigned_approver_id: str | None
) -> ApprovalStageStatus:
    """Status a stage execution is created with at submission.

    auto_approve stages start Approved; optional stages without a resolvable
    approver start Skipped; every other stage starts Pending.
    """
    if stage.auto_approve:
        return ApprovalStageStatus.APPROVED
    if stage.is_optional and assigned_approver_id is None:
        return ApprovalStageStatus.SKIPPED
    return ApprovalStageStatus.PENDING


def next_pending_stage_order(executions: Sequence[_ExecutionLike]) -> int | None:
    """Return the lowest stage order that still has a Pending execution."""
    candidates = [
        e.stage_order for e in executions if e.status == ApprovalStageStatus.PENDING
    ]
    return min(candidates) if candidates else None


def evaluate_approval_progress(
    current_stage_order: int | None,
    executions: Sequence[_ExecutionLike],
    requires_all_stages: bool,
) -> ApprovalProgress:
    """Recompute a request after one of its executions was approved.

    The request finalizes when every execution is Approved or Skipped, or
    when the workflow does not require all stages and the current stage is
    Approved. Otherwise the cursor points at the lowest stage still Pending,
    so approving a later stage first leaves the cursor where it was.

    Args:
        current_stage_order: The request's cursor before the approval.
        executions: All executions of the request, including the one just approved.
        requires_all_stages: Workflow flag.
    """
    all_approved = all(e.status in _DONE_STATUSES for e in executions)
    current_stage_approved = any(
        e.stage_order == current_stage_order
        and e.status == ApprovalStageStatus.APPROVED
        for e in executions
    )
    if all_approved or (not requires_all_stages and current_stage_approved):
        return ApprovalProgress(finalize=True)
    next_order = next_pending_stage_order(executions)
    if next_order is None:
        # Only a Rejected execution is left undone; the request is not approvable.
        return ApprovalProgress(finalize=False, next_stage_order=current_stage_order)
    return ApprovalProgress(finalize=False, next_stage_order=next_order)
