"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for DB sessions, caller identity, and
application use cases. All use cases are built from infrastructure
implementations here; routes depend only on these dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.interfaces.services import IApprovalEventPublisher
from approvals.application.services import ApproverResolver
from approvals.application.use_cases.approvals import (
    ApprovalQueryService,
    ApprovalWorkflowService,
    ProcessApprovalUseCase,
    SubmitApprovalRequestUseCase,
)
from approvals.core.config import get_settings
from approvals.domain.exceptions import AuthenticationException, ForbiddenException
from approvals.infrastructure.persistence.database import (
    get_db,
    get_db_transactional,
)
from approvals.infrastructure.persistence.repositories import (
    ApprovalRequestRepository,
    ApprovalStageRepository,
    ApprovalWorkflowRepository,
    OrganizationHierarchyRepository,
    StageExecutionRepository,
)
from approvals.infrastructure.security.jwt import token_roles, verify_token
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_http_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity from the bearer token."""

    id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return get_settings().admin_role in self.roles


# ---- Identity ----


async def get_current_user_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> CurrentUser | None:
    """Return current user from JWT if present and valid; else None."""
    if not credentials:
        return None
    try:
        payload = verify_token(credentials.credentials)
    except ValueError as e:
        logger.info("Rejected bearer token: %s", e)
        return None
    return CurrentUser(id=str(payload["sub"]), roles=frozenset(token_roles(payload)))


async def get_current_user(
    current_user: Annotated[CurrentUser | None, Depends(get_current_user_optional)],
) -> CurrentUser:
    """Return current user from JWT; raise 401 if missing or invalid."""
    if current_user is None:
        raise AuthenticationException("Not authenticated")
    return current_user


async def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Require the administrator role (workflow management)."""
    if not current_user.is_admin:
        raise ForbiddenException(
            "Administrator role required", user_id=current_user.id
        )
    return current_user


# ---- Notification channel ----


def get_event_publisher(request: Request) -> IApprovalEventPublisher | None:
    """Publisher connected at startup (None when Redis is disabled)."""
    return getattr(request.app.state, "event_publisher", None)


# ---- Use cases (read) ----


def get_workflow_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApprovalWorkflowService:
    return ApprovalWorkflowService(
        workflow_repo=ApprovalWorkflowRepository(db),
        stage_repo=ApprovalStageRepository(db),
        request_repo=ApprovalRequestRepository(db),
    )


def get_approval_query_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApprovalQueryService:
    return ApprovalQueryService(
        request_repo=ApprovalRequestRepository(db),
        execution_repo=StageExecutionRepository(db),
    )


# ---- Use cases (write) ----


def get_workflow_service_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> ApprovalWorkflowService:
    """Workflow service on a transactional session (commit on success)."""
    return ApprovalWorkflowService(
        workflow_repo=ApprovalWorkflowRepository(db),
        stage_repo=ApprovalStageRepository(db),
        request_repo=ApprovalRequestRepository(db),
    )


def get_submit_request_use_case(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SubmitApprovalRequestUseCase:
    """Submission use case. The route owns the transaction (db.begin()) so
    events are published only after commit."""
    return SubmitApprovalRequestUseCase(
        workflow_repo=ApprovalWorkflowRepository(db),
        stage_repo=ApprovalStageRepository(db),
        request_repo=ApprovalRequestRepository(db),
        execution_repo=StageExecutionRepository(db),
        approver_resolver=ApproverResolver(OrganizationHierarchyRepository(db)),
    )


def get_process_approval_use_case(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProcessApprovalUseCase:
    """Decision use case. The route owns the transaction, as for submission."""
    return ProcessApprovalUseCase(
        workflow_repo=ApprovalWorkflowRepository(db),
        request_repo=ApprovalRequestRepository(db),
        execution_repo=StageExecutionRepository(db),
    )
