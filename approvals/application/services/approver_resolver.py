"""Approver resolution: one strategy per approver type.

Resolution runs once per stage at submission and the result is stored on
the execution as a snapshot. It is never re-evaluated, even if an
organisation body's administrator changes before the stage is reached.
"""

from __future__ import annotations

from typing import Protocol

from approvals.application.dtos.approval_request import OrganizationContext
from approvals.application.interfaces.services import IOrganizationHierarchyLookup
from approvals.domain.entities import ApprovalStageEntity
from approvals.domain.enums import ApproverType, HierarchyLevel
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ApproverStrategy(Protocol):
    """Resolves the approver for stages of one approver type."""

    async def resolve(
        self, stage: ApprovalStageEntity, context: OrganizationContext
    ) -> str | None: ...


class SpecificUserStrategy:
    """Returns the stage's configured user verbatim (existence is not checked)."""

    async def resolve(
        self, stage: ApprovalStageEntity, context: OrganizationContext
    ) -> str | None:
        return stage.user_id or None


class HierarchyStrategy:
    """Administrator of the organisation body at the stage's hierarchy level."""

    def __init__(self, lookup: IOrganizationHierarchyLookup | None) -> None:
        self._lookup = lookup

    async def resolve(
        self, stage: ApprovalStageEntity, context: OrganizationContext
    ) -> str | None:
        if self._lookup is None or stage.hierarchy_level is None:
            return None
        match stage.hierarchy_level:
            case HierarchyLevel.UNIT:
                if not context.unit_id:
                    return None
                return await self._lookup.find_unit_admin(context.unit_id)
            case HierarchyLevel.AREA:
                if not context.area_id:
                    return None
                return await self._lookup.find_area_admin(context.area_id)
            case HierarchyLevel.FORUM:
                if not context.forum_id:
                    return None
                return await self._lookup.find_forum_admin(context.forum_id)
        return None


class RoleStrategy:
    """Role stages resolve through the hierarchy level; role_id is informational."""

    def __init__(self, hierarchy: HierarchyStrategy) -> None:
        self._hierarchy = hierarchy

    async def resolve(
        self, stage: ApprovalStageEntity, context: OrganizationContext
    ) -> str | None:
        if stage.hierarchy_level is None:
            return None
        return await self._hierarchy.resolve(stage, context)


class ApproverResolver:
    """Dispatches to the strategy registered for the stage's approver type (implements IApproverResolver)."""

    def __init__(
        self,
        hierarchy_lookup: IOrganizationHierarchyLookup | None = None,
        strategies: dict[ApproverType, ApproverStrategy] | None = None,
    ) -> None:
        if strategies is None:
            hierarchy = HierarchyStrategy(hierarchy_lookup)
            strategies = {
                ApproverType.SPECIFIC_USER: SpecificUserStrategy(),
                ApproverType.ROLE: RoleStrategy(hierarchy),
                ApproverType.HIERARCHY: hierarchy,
            }
        self._strategies = strategies

    async def resolve(
        self, stage: ApprovalStageEntity, context: OrganizationContext
    ) -> str | None:
        """Return the approver user id for the stage, or None (unassigned)."""
        strategy = self._strategies.get(stage.approver_type)
        if strategy is None:
            return None
        approver_id = await strategy.resolve(stage, context)
        if approver_id is None:
            logger.info(
                "Stage %s (order %d, %s) has no resolvable approver; execution left unassigned",
                stage.id,
                stage.stage_order,
                stage.approver_type.value,
            )
        return approver_id
