"""Read-only views over approval requests and executions."""

from __future__ import annotations

from approvals.application.dtos.approval_request import (
    ApprovalRequestResult,
    EntityRequestResult,
    RequestWithExecutionsResult,
    StageExecutionResult,
)
from approvals.application.interfaces.repositories import (
    IApprovalRequestRepository,
    IStageExecutionRepository,
)
from approvals.domain.enums import ApprovalRequestStatus
from approvals.domain.exceptions import ResourceNotFoundException


class ApprovalQueryService:
    def __init__(
        self,
        request_repo: IApprovalRequestRepository,
        execution_repo: IStageExecutionRepository,
    ) -> None:
        self._request_repo = request_repo
        self._execution_repo = execution_repo

    async def find_pending_by_approver(
        self, approver_id: str
    ) -> list[StageExecutionResult]:
        """Pending executions assigned to the approver, newest first."""
        return await self._execution_repo.find_pending_by_approver(approver_id)

    async def get_by_entity(
        self, entity_type: str, entity_id: str
    ) -> EntityRequestResult:
        """Current Pending request for the entity (None if none) and its executions."""
        request = await self._request_repo.find_pending_by_entity(entity_type, entity_id)
        if not request:
            return EntityRequestResult(request=None, executions=[])
        executions = await self._execution_repo.get_by_request(request.id)
        return EntityRequestResult(request=request, executions=executions)

    async def get_by_id(self, request_id: str) -> RequestWithExecutionsResult:
        request = await self._request_repo.get_by_id(request_id)
        if not request:
            raise ResourceNotFoundException("approval_request", request_id)
        executions = await self._execution_repo.get_by_request(request.id)
        return RequestWithExecutionsResult(request=request, executions=executions)

    async def list_requests(
        self,
        *,
        status: ApprovalRequestStatus | None = None,
        entity_type: str | None = None,
        workflow_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ApprovalRequestResult]:
        return await self._request_repo.list_requests(
            status=status,
            entity_type=entity_type,
            workflow_id=workflow_id,
            skip=skip,
            limit=limit,
        )
