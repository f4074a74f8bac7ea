"""Domain enumerations for the approval workflow engine.

Values are the wire/storage strings (PascalCase, as stored in the status
columns and exchanged with the modules that submit requests).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings (e.g. for check constraints)."""
        return [member.value for member in cls]


class WorkflowModule(_ValuesMixin, str, Enum):
    """Business domain a workflow belongs to."""

    MEMBERSHIP = "Membership"
    WALLET = "Wallet"
    CLAIMS = "Claims"
    CONTRIBUTIONS = "Contributions"
    ORGANIZATION = "Organization"


class ApproverType(_ValuesMixin, str, Enum):
    """How a stage's approver is determined at submission time."""

    ROLE = "Role"
    SPECIFIC_USER = "SpecificUser"
    HIERARCHY = "Hierarchy"


class HierarchyLevel(_ValuesMixin, str, Enum):
    """Organisational scope whose administrator approves a stage."""

    UNIT = "Unit"
    AREA = "Area"
    FORUM = "Forum"


class ApprovalRequestStatus(_ValuesMixin, str, Enum):
    """Approval request lifecycle.

    Pending -> Approved | Rejected (terminal). Cancelled is set only by
    external collaborators; no engine operation reaches it.
    """

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalRequestStatus.PENDING


class ApprovalStageStatus(_ValuesMixin, str, Enum):
    """Stage execution lifecycle: Pending -> Approved | Rejected | Skipped."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    SKIPPED = "Skipped"


class ApprovalDecision(_ValuesMixin, str, Enum):
    """Decision recorded by a reviewer on a stage execution."""

    APPROVE = "Approve"
    REJECT = "Reject"
