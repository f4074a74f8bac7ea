"""Post-commit delivery of approval events to the notification channel."""

from __future__ import annotations

from collections.abc import Iterable

from approvals.application.interfaces.services import IApprovalEventPublisher
from approvals.domain.events import DomainEvent
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


async def publish_events(
    publisher: IApprovalEventPublisher | None, events: Iterable[DomainEvent]
) -> int:
    """Publish events fire-and-forget; return how many were delivered.

    Delivery failures are logged and never raised; the request state is
    already committed when this runs.
    """
    delivered = 0
    for event in events:
        if publisher is None:
            logger.warning(
                "No event publisher configured; dropped %s for %s",
                event.event_type,
                event.request_id,
            )
            continue
        try:
            ok = await publisher.publish(event)
        except Exception:
            logger.exception(
                "Publishing %s for %s failed", event.event_type, event.request_id
            )
            continue
        if ok:
            delivered += 1
        else:
            logger.warning(
                "Event %s for %s was not delivered", event.event_type, event.request_id
            )
    return delivered
