"""Base repository: primary-key lookup and flush/refresh helpers shared by all repositories."""

from collections.abc import Sequence
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.infrastructure.persistence.database import Base


def _column_value(value: Any) -> Any:
    """Enums are stored by value in plain string columns."""
    return value.value if isinstance(value, Enum) else value


class BaseRepository[ModelType: Base]:
    """Generic ORM access for one model.

    Subclasses expose DTO-returning methods that match the application
    ports; ORM instances never leave the repository.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def _get_model(
        self, entity_id: str, *, for_update: bool = False
    ) -> ModelType | None:
        """Return a single record by primary key, or None.

        for_update adds SELECT ... FOR UPDATE (ignored by dialects without row locks).
        """
        model: Any = self.model
        stmt = select(self.model).where(model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _add(self, obj: ModelType) -> ModelType:
        """Persist a new record and load server defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def _add_all(self, objs: Sequence[ModelType]) -> list[ModelType]:
        """Persist several new records in one flush."""
        self.db.add_all(objs)
        await self.db.flush()
        for obj in objs:
            await self.db.refresh(obj)
        return list(objs)

    async def _apply_changes(
        self, obj: ModelType, changes: dict[str, Any]
    ) -> ModelType:
        """Set attributes on an attached record, flush, and reload it."""
        for key, value in changes.items():
            setattr(obj, key, _column_value(value))
        await self.db.flush()
        await self.db.refresh(obj)
        return obj
