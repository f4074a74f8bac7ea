"""ApprovalStageExecution repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.approval_request import (
    StageExecutionResult,
    StageExecutionToPersist,
)
from approvals.domain.enums import ApprovalDecision, ApprovalStageStatus
from approvals.domain.exceptions import ResourceNotFoundException
from approvals.infrastructure.persistence.models.approval_request import (
    ApprovalStageExecution,
)
from approvals.infrastructure.persistence.repositories.base import BaseRepository


def _to_result(e: ApprovalStageExecution) -> StageExecutionResult:
    """Map ApprovalStageExecution ORM to StageExecutionResult DTO."""
    return StageExecutionResult(
        id=e.id,
        request_id=e.request_id,
        stage_id=e.stage_id,
        stage_order=e.stage_order,
        status=ApprovalStageStatus(e.status),
        assigned_approver_id=e.assigned_approver_id,
        reviewed_by=e.reviewed_by,
        reviewed_at=e.reviewed_at,
        decision=ApprovalDecision(e.decision) if e.decision else None,
        comments=e.comments,
        created_at=e.created_at,
        updated_at=e.updated_at,
    )


class StageExecutionRepository(BaseRepository[ApprovalStageExecution]):
    """Execution repository. Implements IStageExecutionRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ApprovalStageExecution)

    async def get_by_id(
        self, execution_id: str, *, for_update: bool = False
    ) -> StageExecutionResult | None:
        execution = await self._get_model(execution_id, for_update=for_update)
        return _to_result(execution) if execution else None

    async def get_by_request(self, request_id: str) -> list[StageExecutionResult]:
        result = await self.db.execute(
            select(ApprovalStageExecution)
            .where(ApprovalStageExecution.request_id == request_id)
            .order_by(ApprovalStageExecution.stage_order.asc())
        )
        return [_to_result(e) for e in result.scalars().all()]

    async def create_many(
        self, request_id: str, executions: list[StageExecutionToPersist]
    ) -> list[StageExecutionResult]:
        created = await self._add_all(
            [
                ApprovalStageExecution(
                    request_id=request_id,
                    stage_id=e.stage_id,
                    stage_order=e.stage_order,
                    status=e.status.value,
                    assigned_approver_id=e.assigned_approver_id,
                    decision=e.decision.value if e.decision else None,
                    reviewed_at=e.reviewed_at,
                    comments=e.comments,
                )
                for e in executions
            ]
        )
        return sorted((_to_result(e) for e in created), key=lambda e: e.stage_order)

    async def record_decision(
        self,
        execution_id: str,
        status: ApprovalStageStatus,
        decision: ApprovalDecision,
        reviewed_by: str,
        reviewed_at: datetime,
        comments: str | None,
    ) -> StageExecutionResult:
        execution = await self._get_model(execution_id)
        if execution is None:
            raise ResourceNotFoundException("approval_stage_execution", execution_id)
        execution = await self._apply_changes(
            execution,
            {
                "status": status,
                "decision": decision,
                "reviewed_by": reviewed_by,
                "reviewed_at": reviewed_at,
                "comments": comments,
            },
        )
        return _to_result(execution)

    async def find_pending_by_approver(
        self, approver_id: str
    ) -> list[StageExecutionResult]:
        result = await self.db.execute(
            select(ApprovalStageExecution)
            .where(
                ApprovalStageExecution.assigned_approver_id == approver_id,
                ApprovalStageExecution.status == ApprovalStageStatus.PENDING.value,
            )
            .order_by(ApprovalStageExecution.created_at.desc())
        )
        return [_to_result(e) for e in result.scalars().all()]
