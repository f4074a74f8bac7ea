"""Application services (no I/O of their own; depend on ports)."""

from approvals.application.services.approver_resolver import ApproverResolver

__all__ = ["ApproverResolver"]
