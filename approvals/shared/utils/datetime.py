"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the engine are timezone-aware UTC. Use utc_now()
instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)
