"""Shared utilities: datetime and id generators."""

from approvals.shared.utils.datetime import utc_now
from approvals.shared.utils.generators import generate_cuid

__all__ = [
    "generate_cuid",
    "utc_now",
]
