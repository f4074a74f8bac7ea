"""ApprovalRequest repository."""

from __future__ import annotations

import hashlib
from datetime import datetime

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.approval_request import (
    ApprovalRequestResult,
    OrganizationContext,
)
from approvals.domain.enums import ApprovalRequestStatus
from approvals.domain.exceptions import (
    DuplicatePendingRequestException,
    ResourceNotFoundException,
)
from approvals.infrastructure.persistence.models.approval_request import (
    ApprovalRequest,
)
from approvals.infrastructure.persistence.repositories.base import BaseRepository
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _advisory_lock_key(entity_type: str, entity_id: str) -> int:
    """Stable 63-bit key for pg_advisory_xact_lock (entity type + id)."""
    raw = hashlib.sha256(f"approval:{entity_type}:{entity_id}".encode()).digest()[:8]
    return int.from_bytes(raw, "big") % (2**63)


def _to_result(r: ApprovalRequest) -> ApprovalRequestResult:
    """Map ApprovalRequest ORM to ApprovalRequestResult DTO."""
    return ApprovalRequestResult(
        id=r.id,
        workflow_id=r.workflow_id,
        entity_type=r.entity_type,
        entity_id=r.entity_id,
        forum_id=r.forum_id,
        area_id=r.area_id,
        unit_id=r.unit_id,
        requested_by=r.requested_by,
        requested_at=r.requested_at,
        status=ApprovalRequestStatus(r.status),
        current_stage_order=r.current_stage_order,
        approved_by=r.approved_by,
        approved_at=r.approved_at,
        rejected_by=r.rejected_by,
        rejected_at=r.rejected_at,
        rejection_reason=r.rejection_reason,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


class ApprovalRequestRepository(BaseRepository[ApprovalRequest]):
    """Request repository. Implements IApprovalRequestRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ApprovalRequest)

    async def get_by_id(
        self, request_id: str, *, for_update: bool = False
    ) -> ApprovalRequestResult | None:
        request = await self._get_model(request_id, for_update=for_update)
        return _to_result(request) if request else None

    async def find_pending_by_entity(
        self, entity_type: str, entity_id: str
    ) -> ApprovalRequestResult | None:
        result = await self.db.execute(
            select(ApprovalRequest).where(
                ApprovalRequest.entity_type == entity_type,
                ApprovalRequest.entity_id == entity_id,
                ApprovalRequest.status == ApprovalRequestStatus.PENDING.value,
            )
        )
        request = result.scalar_one_or_none()
        return _to_result(request) if request else None

    async def lock_entity(self, entity_type: str, entity_id: str) -> None:
        """Serialize submissions for one entity until the transaction ends.

        Requires PostgreSQL (pg_advisory_xact_lock), as does the partial unique
        index on Pending requests; the engine runs on asyncpg only.
        """
        await self.db.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": _advisory_lock_key(entity_type, entity_id)},
        )

    async def count_pending_by_workflow(self, workflow_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ApprovalRequest)
            .where(
                ApprovalRequest.workflow_id == workflow_id,
                ApprovalRequest.status == ApprovalRequestStatus.PENDING.value,
            )
        )
        return int(result.scalar_one())

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
        request = ApprovalRequest(
            workflow_id=workflow_id,
            entity_type=entity_type,
            entity_id=entity_id,
            forum_id=context.forum_id,
            area_id=context.area_id,
            unit_id=context.unit_id,
            requested_by=requested_by,
            requested_at=requested_at,
            status=ApprovalRequestStatus.PENDING.value,
            current_stage_order=current_stage_order,
        )
        try:
            request = await self._add(request)
        except IntegrityError as e:
            if "unique" not in str(e.orig).lower():
                raise
            logger.warning(
                "Pending-request unique index rejected %s %s", entity_type, entity_id
            )
            raise DuplicatePendingRequestException(entity_type, entity_id) from e
        return _to_result(request)

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
        request = await self._get_model(request_id)
        if request is None:
            raise ResourceNotFoundException("approval_request", request_id)
        changes = {
            "status": status,
            "current_stage_order": current_stage_order,
            "approved_by": approved_by,
            "approved_at": approved_at,
            "rejected_by": rejected_by,
            "rejected_at": rejected_at,
            "rejection_reason": rejection_reason,
        }
        request = await self._apply_changes(
            request, {k: v for k, v in changes.items() if v is not None}
        )
        return _to_result(request)

    async def list_requests(
        self,
        *,
        status: ApprovalRequestStatus | None = None,
        entity_type: str | None = None,
        workflow_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ApprovalRequestResult]:
        q = select(ApprovalRequest)
        if status is not None:
            q = q.where(ApprovalRequest.status == status.value)
        if entity_type is not None:
            q = q.where(ApprovalRequest.entity_type == entity_type)
        if workflow_id is not None:
            q = q.where(ApprovalRequest.workflow_id == workflow_id)
        q = (
            q.order_by(ApprovalRequest.requested_at.desc(), ApprovalRequest.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(q)
        return [_to_result(r) for r in result.scalars().all()]
