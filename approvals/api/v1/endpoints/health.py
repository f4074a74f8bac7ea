"""Health check endpoints for liveness and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from approvals.core.config import get_settings
from approvals.infrastructure.persistence.database import get_engine
from approvals.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database unreachable", "model": ReadinessErrorResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 when the database answers; 503 otherwise.

    The notification channel is reported but never fails readiness, since
    publishing is fire-and-forget.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content=ReadinessErrorResponse(
                message="Database unreachable"
            ).model_dump(),
        )
    publisher = getattr(request.app.state, "event_publisher", None)
    if not get_settings().redis_enabled:
        channel = "disabled"
    elif publisher is not None and publisher.is_available():
        channel = "ok"
    else:
        channel = "unavailable"
    return ReadinessResponse(event_channel=channel)
