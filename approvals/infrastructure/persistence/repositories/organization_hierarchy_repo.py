"""Read-only lookup of organisation body administrators."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.infrastructure.persistence.models.organization import Area, Forum, Unit


class OrganizationHierarchyRepository:
    """Implements IOrganizationHierarchyLookup over the forum/area/unit tables."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _admin_of(self, model: type[Forum | Area | Unit], body_id: str) -> str | None:
        result = await self.db.execute(
            select(model.admin_user_id).where(model.id == body_id)
        )
        return result.scalar_one_or_none()

    async def find_unit_admin(self, unit_id: str) -> str | None:
        return await self._admin_of(Unit, unit_id)

    async def find_area_admin(self, area_id: str) -> str | None:
        return await self._admin_of(Area, area_id)

    async def find_forum_admin(self, forum_id: str) -> str | None:
        return await self._admin_of(Forum, forum_id)
