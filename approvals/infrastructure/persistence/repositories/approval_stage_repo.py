"""ApprovalStage repository."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.approval_workflow import (
    ApprovalStageResult,
    StageDefinitionInput,
)
from approvals.domain.enums import ApproverType, HierarchyLevel
from approvals.infrastructure.persistence.models.approval_request import (
    ApprovalStageExecution,
)
from approvals.infrastructure.persistence.models.approval_workflow import (
    ApprovalStage,
)
from approvals.infrastructure.persistence.repositories.base import BaseRepository


def _to_result(s: ApprovalStage) -> ApprovalStageResult:
    """Map ApprovalStage ORM to ApprovalStageResult DTO."""
    return ApprovalStageResult(
        id=s.id,
        workflow_id=s.workflow_id,
        stage_name=s.stage_name,
        stage_order=s.stage_order,
        approver_type=ApproverType(s.approver_type),
        role_id=s.role_id,
        user_id=s.user_id,
        hierarchy_level=HierarchyLevel(s.hierarchy_level) if s.hierarchy_level else None,
        is_optional=s.is_optional,
        auto_approve=s.auto_approve,
    )


class ApprovalStageRepository(BaseRepository[ApprovalStage]):
    """Stage repository. Implements IApprovalStageRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ApprovalStage)

    async def get_by_workflow(self, workflow_id: str) -> list[ApprovalStageResult]:
        result = await self.db.execute(
            select(ApprovalStage)
            .where(ApprovalStage.workflow_id == workflow_id)
            .order_by(ApprovalStage.stage_order.asc())
        )
        return [_to_result(s) for s in result.scalars().all()]

    async def create_many(
        self, workflow_id: str, stages: list[StageDefinitionInput]
    ) -> list[ApprovalStageResult]:
        created = await self._add_all(
            [
                ApprovalStage(
                    workflow_id=workflow_id,
                    stage_name=s.stage_name,
                    stage_order=s.stage_order,
                    approver_type=s.approver_type.value,
                    role_id=s.role_id,
                    user_id=s.user_id,
                    hierarchy_level=s.hierarchy_level.value if s.hierarchy_level else None,
                    is_optional=s.is_optional,
                    auto_approve=s.auto_approve,
                )
                for s in stages
            ]
        )
        return sorted((_to_result(s) for s in created), key=lambda s: s.stage_order)

    async def update_stage(
        self, stage_id: str, changes: dict[str, Any]
    ) -> ApprovalStageResult | None:
        stage = await self._get_model(stage_id)
        if stage is None:
            return None
        return _to_result(await self._apply_changes(stage, changes))

    async def delete_by_ids(self, stage_ids: list[str]) -> int:
        if not stage_ids:
            return 0
        result = await self.db.execute(
            delete(ApprovalStage).where(ApprovalStage.id.in_(stage_ids))
        )
        return result.rowcount or 0

    async def count_executions(self, stage_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ApprovalStageExecution)
            .where(ApprovalStageExecution.stage_id == stage_id)
        )
        return int(result.scalar_one())
