"""Messaging: Redis pub/sub notification channel for approval events."""

from approvals.infrastructure.messaging.redis_pubsub import (
    ApprovalEventSubscriber,
    RedisApprovalEventPublisher,
)

__all__ = ["ApprovalEventSubscriber", "RedisApprovalEventPublisher"]
