"""Workflow definition store: create, update, and read approval workflows.

Workflows are never deleted (past requests reference them); they are
deactivated instead.
"""

from __future__ import annotations

from typing import Any

from approvals.application.dtos.approval_workflow import (
    ApprovalStageResult,
    ApprovalWorkflowResult,
    StageDefinitionInput,
    WorkflowCreate,
    WorkflowWithStagesResult,
)
from approvals.application.interfaces.repositories import (
    IApprovalRequestRepository,
    IApprovalStageRepository,
    IApprovalWorkflowRepository,
)
from approvals.domain.entities import validate_stage_orders
from approvals.domain.enums import WorkflowModule
from approvals.domain.exceptions import (
    BadRequestException,
    ResourceNotFoundException,
    ValidationException,
    WorkflowCodeAlreadyExistsException,
)
from approvals.shared.telemetry.logging import get_logger
from approvals.shared.telemetry.tracing import traced

logger = get_logger(__name__)

# Metadata a workflow update may touch; stages are changed only via update_workflow_stages.
_METADATA_FIELDS = frozenset(
    {"workflow_name", "description", "is_active", "requires_all_stages"}
)


class ApprovalWorkflowService:
    """Workflow CRUD (no delete) with stage validation."""

    def __init__(
        self,
        workflow_repo: IApprovalWorkflowRepository,
        stage_repo: IApprovalStageRepository,
        request_repo: IApprovalRequestRepository,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._stage_repo = stage_repo
        self._request_repo = request_repo

    @traced("approvals.create_workflow")
    async def create_workflow(
        self, data: WorkflowCreate, created_by: str | None = None
    ) -> WorkflowWithStagesResult:
        """Create a workflow and its stages.

        Raises:
            WorkflowCodeAlreadyExistsException: If workflow_code is taken.
            ValidationException: No stages, or stage orders not unique/positive.
        """
        existing = await self._workflow_repo.get_by_code(data.workflow_code)
        if existing:
            raise WorkflowCodeAlreadyExistsException(data.workflow_code)
        validate_stage_orders(s.stage_order for s in data.stages)

        workflow = await self._workflow_repo.create_workflow(
            workflow_code=data.workflow_code,
            workflow_name=data.workflow_name,
            module=data.module,
            entity_type=data.entity_type,
            description=data.description,
            is_active=data.is_active,
            requires_all_stages=data.requires_all_stages,
            created_by=created_by,
        )
        stages = await self._stage_repo.create_many(workflow.id, data.stages)
        logger.info(
            "Created approval workflow %s (%s) with %d stages",
            workflow.workflow_code,
            workflow.id,
            len(stages),
        )
        return WorkflowWithStagesResult(workflow=workflow, stages=stages)

    async def update_workflow_metadata(
        self,
        workflow_id: str,
        changes: dict[str, Any],
        updated_by: str | None = None,
    ) -> ApprovalWorkflowResult:
        """Update name, description, active flag, or requires_all_stages. Never touches stages.

        Raises:
            ResourceNotFoundException: Workflow does not exist.
            ValidationException: changes names a field that is not metadata.
            BadRequestException: Deactivating a workflow with pending requests.
        """
        unknown = set(changes) - _METADATA_FIELDS
        if unknown:
            raise ValidationException(
                f"Cannot update workflow fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        workflow = await self._workflow_repo.get_by_id(workflow_id)
        if not workflow:
            raise ResourceNotFoundException("approval_workflow", workflow_id)
        if changes.get("is_active") is False and workflow.is_active:
            pending = await self._request_repo.count_pending_by_workflow(workflow_id)
            if pending > 0:
                raise BadRequestException(
                    "Cannot deactivate workflow with pending requests",
                    workflow_id=workflow_id,
                    pending_requests=pending,
                )
        updated = await self._workflow_repo.update_metadata(
            workflow_id, changes, updated_by=updated_by
        )
        if updated is None:
            raise ResourceNotFoundException("approval_workflow", workflow_id)
        return updated

    async def update_workflow_stages(
        self,
        workflow_id: str,
        stages: list[StageDefinitionInput],
        updated_by: str | None = None,
    ) -> WorkflowWithStagesResult:
        """Replace a workflow's stage list.

        Stages with an id are updated, stages without one are created, and
        existing stages missing from the list are deleted. A stage already
        referenced by executions cannot be deleted, reordered, or change
        approver type; only its name and optional flag may change.

        Raises:
            ResourceNotFoundException: Workflow, or a referenced stage id, not found.
            ValidationException: Orders not sequential 1..n.
            BadRequestException: Change not allowed on a stage with executions.
        """
        workflow = await self._workflow_repo.get_by_id(workflow_id)
        if not workflow:
            raise ResourceNotFoundException("approval_workflow", workflow_id)
        validate_stage_orders((s.stage_order for s in stages), sequential=True)

        existing = {s.id: s for s in await self._stage_repo.get_by_workflow(workflow_id)}
        incoming_ids = {s.id for s in stages if s.id}
        missing = incoming_ids - set(existing)
        if missing:
            raise ResourceNotFoundException("approval_stage", sorted(missing)[0])

        to_delete = [stage_id for stage_id in existing if stage_id not in incoming_ids]
        for stage_id in to_delete:
            if await self._stage_repo.count_executions(stage_id) > 0:
                raise BadRequestException(
                    "Cannot delete stages that have existing approval executions. "
                    "Create a new workflow instead.",
                    stage_id=stage_id,
                )
        if to_delete:
            await self._stage_repo.delete_by_ids(to_delete)

        new_stages: list[StageDefinitionInput] = []
        for stage in stages:
            if not stage.id:
                new_stages.append(stage)
                continue
            current = existing[stage.id]
            await self._stage_repo.update_stage(
                stage.id, await self._allowed_stage_changes(current, stage)
            )
        if new_stages:
            await self._stage_repo.create_many(workflow_id, new_stages)

        updated = await self._workflow_repo.update_metadata(
            workflow_id, {}, updated_by=updated_by
        )
        logger.info(
            "Replaced stages of workflow %s: %d kept, %d added, %d deleted",
            workflow.workflow_code,
            len(incoming_ids),
            len(new_stages),
            len(to_delete),
        )
        return WorkflowWithStagesResult(
            workflow=updated or workflow,
            stages=await self._stage_repo.get_by_workflow(workflow_id),
        )

    async def _allowed_stage_changes(
        self, current: ApprovalStageResult, incoming: StageDefinitionInput
    ) -> dict[str, Any]:
        if await self._stage_repo.count_executions(current.id) == 0:
            return {
                "stage_name": incoming.stage_name,
                "stage_order": incoming.stage_order,
                "approver_type": incoming.approver_type,
                "role_id": incoming.role_id,
                "user_id": incoming.user_id,
                "hierarchy_level": incoming.hierarchy_level,
                "is_optional": incoming.is_optional,
                "auto_approve": incoming.auto_approve,
            }
        if current.stage_order != incoming.stage_order:
            raise BadRequestException(
                f'Cannot change order of stage "{current.stage_name}" '
                "as it has existing executions",
                stage_id=current.id,
            )
        if current.approver_type != incoming.approver_type:
            raise BadRequestException(
                f'Cannot change approver type of stage "{current.stage_name}" '
                "as it has existing executions",
                stage_id=current.id,
            )
        return {"stage_name": incoming.stage_name, "is_optional": incoming.is_optional}

    async def get_workflow_by_id(self, workflow_id: str) -> WorkflowWithStagesResult:
        """Return workflow with stages. Raises ResourceNotFoundException if absent."""
        workflow = await self._workflow_repo.get_by_id(workflow_id)
        if not workflow:
            raise ResourceNotFoundException("approval_workflow", workflow_id)
        stages = await self._stage_repo.get_by_workflow(workflow.id)
        return WorkflowWithStagesResult(workflow=workflow, stages=stages)

    async def get_workflow_by_code(self, workflow_code: str) -> WorkflowWithStagesResult:
        """Return workflow with stages. Raises ResourceNotFoundException if absent."""
        workflow = await self._workflow_repo.get_by_code(workflow_code)
        if not workflow:
            raise ResourceNotFoundException("approval_workflow", workflow_code)
        stages = await self._stage_repo.get_by_workflow(workflow.id)
        return WorkflowWithStagesResult(workflow=workflow, stages=stages)

    async def list_active_workflows(
        self, module: WorkflowModule | None = None
    ) -> list[ApprovalWorkflowResult]:
        return await self._workflow_repo.list_active(module)

    async def list_all_workflows(self) -> list[ApprovalWorkflowResult]:
        return await self._workflow_repo.list_all()
