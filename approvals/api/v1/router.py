"""API v1 router aggregation.

All routes use dependencies from approvals.api.v1.dependencies (no manual
repo/service construction).
"""

from fastapi import APIRouter

from approvals.api.v1.endpoints import approval_requests, approval_workflows, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(
    approval_workflows.router,
    prefix="/approval-workflows",
    tags=["approval-workflows"],
)
api_router.include_router(
    approval_requests.router,
    prefix="/approval-requests",
    tags=["approval-requests"],
)
