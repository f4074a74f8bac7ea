"""Application lifespan: startup and shutdown.

Wiring of infrastructure only: notification publisher, telemetry, DB
engine dispose.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from approvals.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: telemetry (if enabled), Redis event publisher (if
    enabled). Shutdown order: publisher disconnect, telemetry shutdown,
    SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    if settings.telemetry_enabled:
        from approvals.infrastructure.persistence.database import get_engine
        from approvals.shared.telemetry.telemetry import (
            ApprovalTelemetry,
            set_telemetry,
        )

        telemetry = ApprovalTelemetry(settings)
        telemetry.start()
        telemetry.instrument(app, get_engine(), redis=settings.redis_enabled)
        set_telemetry(telemetry)

    if settings.redis_enabled:
        from approvals.infrastructure.messaging.redis_pubsub import (
            RedisApprovalEventPublisher,
        )

        publisher = RedisApprovalEventPublisher()
        await publisher.connect()
        app.state.event_publisher = publisher
    else:
        app.state.event_publisher = None
        logger.info("Redis disabled; approval events will not be published")

    yield

    # ---- Shutdown ----
    if getattr(app.state, "event_publisher", None) is not None:
        await app.state.event_publisher.disconnect()
        app.state.event_publisher = None

    from approvals.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)

    from approvals.infrastructure.persistence.database import dispose_engine

    await dispose_engine()
    logger.info("Database engine disposed")
