"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
Implementations share the request's session, so every write made during
one use case commits or rolls back together.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from approvals.domain.enums import ApprovalRequestStatus, WorkflowModule

if TYPE_CHECKING:
    from approvals.application.dtos.approval_request import (
        ApprovalRequestResult,
        OrganizationContext,
        StageExecutionResult,
        StageExecutionToPersist,
    )
    from approvals.application.dtos.approval_workflow import (
        ApprovalStageResult,
        ApprovalWorkflowResult,
        StageDefinitionInput,
    )
    from approvals.domain.enums import ApprovalDecision, ApprovalStageStatus


class IApprovalWorkflowRepository(Protocol):
    """Protocol for workflow definition persistence."""

    async def get_by_id(self, workflow_id: str) -> ApprovalWorkflowResult | None:
        """Return workflow by id."""

    async def get_by_code(self, workflow_code: str) -> ApprovalWorkflowResult | None:
        """Return workflow by unique code."""

    async def list_active(
        self, module: WorkflowModule | None = None
    ) -> list[ApprovalWorkflowResult]:
        """Return active workflows, optionally filtered by module."""

    async def list_all(self) -> list[ApprovalWorkflowResult]:
        """Return all workflows (active and inactive)."""

    async def create_workflow(
        self,
        workflow_code: str,
        workflow_name: str,
        module: WorkflowModule,
        entity_type: str,
        *,
        description: str | None = None,
        is_active: bool = True,
        requires_all_stages: bool = True,
        created_by: str | None = None,
    ) -> ApprovalWorkflowResult:
        """Create workflow; return created entity."""

    async def update_metadata(
        self,
        workflow_id: str,
        changes: dict[str, Any],
        updated_by: str | None = None,
    ) -> ApprovalWorkflowResult | None:
        """Apply metadata changes (name, description, is_active, requires_all_stages). None if absent."""


class IApprovalStageRepository(Protocol):
    """Protocol for stage definition persistence."""

    async def get_by_workflow(self, workflow_id: str) -> list[ApprovalStageResult]:
        """Return stages of a workflow ordered by stage_order."""

    async def create_many(
        self, workflow_id: str, stages: list[StageDefinitionInput]
    ) -> list[ApprovalStageResult]:
        """Insert stages for a workflow; return them ordered by stage_order."""

    async def update_stage(
        self, stage_id: str, changes: dict[str, Any]
    ) -> ApprovalStageResult | None:
        """Apply field changes to a stage. None if absent."""

    async def delete_by_ids(self, stage_ids: list[str]) -> int:
        """Delete stages by id; return number deleted."""

    async def count_executions(self, stage_id: str) -> int:
        """Return number of executions referencing the stage."""


class IApprovalRequestRepository(Protocol):
    """Protocol for approval request persistence."""

    async def get_by_id(
        self, request_id: str, *, for_update: bool = False
    ) -> ApprovalRequestResult | None:
        """Return request by id; for_update locks the row until the transaction ends."""

    async def find_pending_by_entity(
        self, entity_type: str, entity_id: str
    ) -> ApprovalRequestResult | None:
        """Return the Pending request for the entity, if any."""

    async def lock_entity(self, entity_type: str, entity_id: str) -> None:
        """Serialize submissions for one entity until the transaction ends."""

    async def count_pending_by_workflow(self, workflow_id: str) -> int:
        """Return number of Pending requests for a workflow."""

    async def create_request(
        self,
        workflow_id: str,
        entity_type: str,
        entity_id: str,
        context: OrganizationContext,
        requested_by: str,
        requested_at: datetime,
        current_stage_order: int | None,
    ) -> ApprovalRequestResult:
        """Insert a Pending request.

        Raises:
            DuplicatePendingRequestException: If storage already holds a
                Pending request for the entity.
        """

    async def update_status(
        self,
        request_id: str,
        status: ApprovalRequestStatus,
        *,
        current_stage_order: int | None = None,
        approved_by: str | None = None,
        approved_at: datetime | None = None,
        rejected_by: str | None = None,
        rejected_at: datetime | None = None,
        rejection_reason: str | None = None,
    ) -> ApprovalRequestResult:
        """Update status and the matching audit fields; return the updated request."""

    async def list_requests(
        self,
        *,
        status: ApprovalRequestStatus | None = None,
        entity_type: str | None = None,
        workflow_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ApprovalRequestResult]:
        """Return requests newest first, optionally filtered."""


class IStageExecutionRepository(Protocol):
    """Protocol for stage execution persistence."""

    async def get_by_id(
        self, execution_id: str, *, for_update: bool = False
    ) -> StageExecutionResult | None:
        """Return execution by id; for_update locks the row until the transaction ends."""

    async def get_by_request(self, request_id: str) -> list[StageExecutionResult]:
        """Return executions of a request ordered by stage_order."""

    async def create_many(
        self, request_id: str, executions: list[StageExecutionToPersist]
    ) -> list[StageExecutionResult]:
        """Insert executions for a request; return them ordered by stage_order."""

    async def record_decision(
        self,
        execution_id: str,
        status: ApprovalStageStatus,
        decision: ApprovalDecision,
        reviewed_by: str,
        reviewed_at: datetime,
        comments: str | None,
    ) -> StageExecutionResult:
        """Record a reviewer's decision; return the updated execution."""

    async def find_pending_by_approver(
        self, approver_id: str
    ) -> list[StageExecutionResult]:
        """Return Pending executions assigned to the approver, newest first."""
