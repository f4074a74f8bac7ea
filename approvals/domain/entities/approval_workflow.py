"""Approval workflow domain entities.

A workflow is an ordered template of approval stages bound to a business
module and an entity type. Stage orders are a sequencing key: unique within
a workflow, gaps tolerated.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from approvals.domain.enums import ApproverType, HierarchyLevel, WorkflowModule
from approvals.domain.exceptions import BadRequestException, ValidationException


@dataclass(frozen=True)
class ApprovalStageEntity:
    """One position in a workflow's sequence with the rule for its approver."""

    id: str
    workflow_id: str
    stage_name: str
    stage_order: int
    approver_type: ApproverType
    role_id: str | None = None
    user_id: str | None = None
    hierarchy_level: HierarchyLevel | None = None
    is_optional: bool = False
    auto_approve: bool = False

    def __post_init__(self) -> None:
        if self.stage_order < 1:
            raise ValidationException(
                "Stage order must be a positive integer", field="stage_order"
            )


@dataclass(frozen=True)
class ApprovalWorkflowEntity:
    """Workflow definition. Deactivated rather than deleted once referenced."""

    id: str
    workflow_code: str
    workflow_name: str
    module: WorkflowModule
    entity_type: str
    is_active: bool
    requires_all_stages: bool
    description: str | None = None

    def ensure_accepts_requests(self, stage_count: int) -> None:
        """Raise BadRequestException unless a request may be submitted against this workflow."""
        if not self.is_active:
            raise BadRequestException(
                f"Workflow {self.workflow_code} is not active",
                workflow_code=self.workflow_code,
            )
        if stage_count == 0:
            raise BadRequestException(
                "Workflow has no approval stages configured",
                workflow_code=self.workflow_code,
            )


def validate_stage_orders(orders: Iterable[int], *, sequential: bool = False) -> None:
    """Validate a workflow's stage orders.

    Args:
        orders: Stage orders of every stage in the workflow.
        sequential: When True, orders must be exactly 1..n (used when stages
            are replaced on an existing workflow).

    Raises:
        ValidationException: Empty set, non-positive or duplicate orders, or
            a gap when sequential is required.
    """
    order_list = list(orders)
    if not order_list:
        raise ValidationException(
            "At least one approval stage is required", field="stages"
        )
    if any(order < 1 for order in order_list):
        raise ValidationException(
            "Stage order must be a positive integer", field="stage_order"
        )
    if len(set(order_list)) != len(order_list):
        raise ValidationException("Stage orders must be unique", field="stage_order")
    if sequential and sorted(order_list) != list(range(1, len(order_list) + 1)):
        raise ValidationException(
            "Stage orders must be sequential (1, 2, 3...)", field="stage_order"
        )
