"""Async engine and sessions for the approval tables.

The engine is built on first use, so importing models or repositories never
reads settings. Tables are created by the Alembic revisions under
``migrations/``.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from approvals.core.config import get_settings

logger = logging.getLogger(__name__)

# Set by _ensure_engine() on first use; avoids get_settings() at import time.
engine: Any = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def _ensure_engine() -> None:
    """Create engine and AsyncSessionLocal on first use."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return
    settings = get_settings()
    connect_args: dict[str, Any] = {}
    engine_kwargs: dict[str, Any] = {}
    if "postgresql" in settings.database_url:
        connect_args["command_timeout"] = (
            settings.db_command_timeout
            if settings.db_command_timeout is not None
            else 60
        )
        engine_kwargs["pool_size"] = (
            settings.db_pool_size if settings.db_pool_size is not None else 10
        )
        engine_kwargs["max_overflow"] = (
            settings.db_max_overflow if settings.db_max_overflow is not None else 20
        )
        engine_kwargs["pool_recycle"] = 3600
    engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        connect_args=connect_args,
        **engine_kwargs,
    )
    AsyncSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )
    logger.debug("Database engine created (echo=%s)", settings.database_echo)


def get_engine() -> Any:
    """Return the engine, creating it on first use."""
    _ensure_engine()
    return engine


async def dispose_engine() -> None:
    """Dispose the engine's connection pool (application shutdown)."""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


class Base(DeclarativeBase):
    """Declarative base of the approval models."""


async def get_db():
    """Yield a session without an open transaction.

    Read routes use it as is; submit and process open ``db.begin()`` themselves.
    """
    _ensure_engine()
    assert AsyncSessionLocal is not None
    async with AsyncSessionLocal() as session:
        yield session


async def get_db_transactional():
    """Yield a session inside a transaction that commits when the route returns.

    Workflow writes use it. A replaced stage list and its workflow row land
    together or not at all.
    """
    _ensure_engine()
    assert AsyncSessionLocal is not None
    async with AsyncSessionLocal() as session:
        async with session.begin():
            yield session
