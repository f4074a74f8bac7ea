"""API v1."""

from approvals.api.v1.router import api_router

__all__ = ["api_router"]
