"""Shared utilities: request context, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from approvals.shared.context import get_correlation_id, set_correlation_id
from approvals.shared.utils import generate_cuid, utc_now

__all__ = [
    "generate_cuid",
    "get_correlation_id",
    "set_correlation_id",
    "utc_now",
]
