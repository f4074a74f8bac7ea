"""Redis Pub/Sub notification channel for approval events.

Finalized requests are announced on ``<prefix>:<event_type>`` (by default
``approval_events:approval.request.approved`` and
``approval_events:approval.request.rejected``). Member and agent modules
subscribe to react; the engine never waits for them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import redis.asyncio as redis

from approvals.core.config import get_settings
from approvals.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class _RedisPubSubBase:
    """Shared Redis connection and channel logic for approval event pub/sub."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = get_settings()
        self.channel_prefix = self.settings.approval_events_channel_prefix
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value()
                    if self.settings.redis_password
                    else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis pub/sub connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis pub/sub connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis pub/sub disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None

    def _get_channel(self, event_type: str) -> str:
        """Channel name for an event type."""
        return f"{self.channel_prefix}:{event_type}"


class RedisApprovalEventPublisher(_RedisPubSubBase):
    """Publishes approval events as JSON. Implements IApprovalEventPublisher."""

    async def publish(self, event: DomainEvent) -> bool:
        """Publish an event to its event-type channel.

        Returns:
            True if published, False if Redis is unavailable or the publish failed.
        """
        if not self.is_available() or self.redis is None:
            logger.warning(
                "Redis not available, dropping %s for %s",
                event.event_type,
                event.request_id,
            )
            return False
        channel = self._get_channel(event.event_type)
        try:
            receivers = await self.redis.publish(channel, json.dumps(event.to_message()))
        except Exception:
            logger.exception("Failed to publish %s", event.event_type)
            return False
        logger.info(
            "Published %s for request %s to %s (%d receivers)",
            event.event_type,
            event.request_id,
            channel,
            receivers,
        )
        return True


class ApprovalEventSubscriber(_RedisPubSubBase):
    """Subscribes to approval events for downstream consumers.

    subscribe() is reentrant: each call uses a locally-scoped PubSub that is
    closed in finally.
    """

    async def subscribe(
        self, event_type: str | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded event messages as they arrive.

        Args:
            event_type: Only this event type; None subscribes to every approval event.
        """
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available for subscription")
            return
        pattern = self._get_channel(event_type or "*")
        pubsub = self.redis.pubsub()
        try:
            await pubsub.psubscribe(pattern)
            logger.info("Subscribed to %s", pattern)
            async for message in pubsub.listen():
                if message["type"] != "pmessage":
                    continue
                try:
                    yield json.loads(message["data"])
                except (json.JSONDecodeError, TypeError):
                    logger.exception("Failed to parse approval event message")
        finally:
            await pubsub.punsubscribe(pattern)
            await pubsub.aclose()
            logger.info("Unsubscribed from %s", pattern)
