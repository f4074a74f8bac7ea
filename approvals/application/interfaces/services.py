"""Service interfaces (ports) for the application layer.

Protocols define contracts for capabilities the engine consumes (DIP):
organisation hierarchy lookups, approver resolution, and the notification
channel.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from approvals.application.dtos.approval_request import OrganizationContext
    from approvals.domain.entities import ApprovalStageEntity
    from approvals.domain.events import DomainEvent


class IOrganizationHierarchyLookup(Protocol):
    """Protocol for resolving the administrator of an organisation body."""

    async def find_unit_admin(self, unit_id: str) -> str | None:
        """Return the admin user id of the unit, or None."""

    async def find_area_admin(self, area_id: str) -> str | None:
        """Return the admin user id of the area, or None."""

    async def find_forum_admin(self, forum_id: str) -> str | None:
        """Return the admin user id of the forum, or None."""


class IApproverResolver(Protocol):
    """Protocol for determining the concrete approver of a stage."""

    async def resolve(
        self, stage: ApprovalStageEntity, context: OrganizationContext
    ) -> str | None:
        """Return the approver user id, or None when the stage stays unassigned."""


class IApprovalEventPublisher(Protocol):
    """Protocol for the fire-and-forget notification channel."""

    async def publish(self, event: DomainEvent) -> bool:
        """Publish the event. Return False (never raise) when delivery fails."""
