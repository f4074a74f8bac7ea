"""ApprovalWorkflow repository."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.approval_workflow import ApprovalWorkflowResult
from approvals.domain.enums import WorkflowModule
from approvals.domain.exceptions import WorkflowCodeAlreadyExistsException
from approvals.infrastructure.persistence.models.approval_workflow import (
    ApprovalWorkflow,
)
from approvals.infrastructure.persistence.repositories.base import BaseRepository


def _to_result(w: ApprovalWorkflow) -> ApprovalWorkflowResult:
    """Map ApprovalWorkflow ORM to ApprovalWorkflowResult DTO."""
    return ApprovalWorkflowResult(
        id=w.id,
        workflow_code=w.workflow_code,
        workflow_name=w.workflow_name,
        description=w.description,
        module=WorkflowModule(w.module),
        entity_type=w.entity_type,
        is_active=w.is_active,
        requires_all_stages=w.requires_all_stages,
        created_at=w.created_at,
        created_by=w.created_by,
        updated_at=w.updated_at,
        updated_by=w.updated_by,
    )


class ApprovalWorkflowRepository(BaseRepository[ApprovalWorkflow]):
    """Workflow repository. Implements IApprovalWorkflowRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ApprovalWorkflow)

    async def get_by_id(self, workflow_id: str) -> ApprovalWorkflowResult | None:
        workflow = await self._get_model(workflow_id)
        return _to_result(workflow) if workflow else None

    async def get_by_code(self, workflow_code: str) -> ApprovalWorkflowResult | None:
        result = await self.db.execute(
            select(ApprovalWorkflow).where(
                ApprovalWorkflow.workflow_code == workflow_code
            )
        )
        workflow = result.scalar_one_or_none()
        return _to_result(workflow) if workflow else None

    async def list_active(
        self, module: WorkflowModule | None = None
    ) -> list[ApprovalWorkflowResult]:
        q = select(ApprovalWorkflow).where(ApprovalWorkflow.is_active.is_(True))
        if module is not None:
            q = q.where(ApprovalWorkflow.module == module.value)
        q = q.order_by(ApprovalWorkflow.workflow_name.asc())
        result = await self.db.execute(q)
        return [_to_result(w) for w in result.scalars().all()]

    async def list_all(self) -> list[ApprovalWorkflowResult]:
        result = await self.db.execute(
            select(ApprovalWorkflow).order_by(ApprovalWorkflow.created_at.desc())
        )
        return [_to_result(w) for w in result.scalars().all()]

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
        """Create workflow; return created entity.

        Raises:
            WorkflowCodeAlreadyExistsException: A concurrent create took the code.
        """
        workflow = ApprovalWorkflow(
            workflow_code=workflow_code,
            workflow_name=workflow_name,
            description=description,
            module=module.value,
            entity_type=entity_type,
            is_active=is_active,
            requires_all_stages=requires_all_stages,
            created_by=created_by,
            updated_by=created_by,
        )
        try:
            workflow = await self._add(workflow)
        except IntegrityError as e:
            raise WorkflowCodeAlreadyExistsException(workflow_code) from e
        return _to_result(workflow)

    async def update_metadata(
        self,
        workflow_id: str,
        changes: dict[str, Any],
        updated_by: str | None = None,
    ) -> ApprovalWorkflowResult | None:
        workflow = await self._get_model(workflow_id)
        if workflow is None:
            return None
        workflow = await self._apply_changes(
            workflow, {**changes, "updated_by": updated_by}
        )
        return _to_result(workflow)
