"""Domain events announced when an approval request reaches a terminal state.

Other modules (member / agent activation) consume these from the
notification channel; the engine itself never performs their side effects.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from approvals.shared.utils.datetime import utc_now
from approvals.shared.utils.generators import generate_cuid


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Envelope shared by all approval events."""

    EVENT_TYPE: ClassVar[str] = ""
    AGGREGATE_TYPE: ClassVar[str] = "ApprovalRequest"

    request_id: str
    event_id: str = field(default_factory=generate_cuid)
    occurred_at: datetime = field(default_factory=utc_now)
    user_id: str | None = None
    correlation_id: str | None = None

    @property
    def event_type(self) -> str:
        return self.EVENT_TYPE

    def payload(self) -> dict[str, Any]:
        """Event-specific fields (JSON-ready)."""
        raise NotImplementedError

    def to_message(self) -> dict[str, Any]:
        """Serialize envelope + payload for publishing."""
        return {
            "event_id": self.event_id,
            "event_type": self.EVENT_TYPE,
            "aggregate_id": self.request_id,
            "aggregate_type": self.AGGREGATE_TYPE,
            "occurred_at": self.occurred_at.isoformat(),
            "version": 1,
            "payload": self.payload(),
            "metadata": {
                "user_id": self.user_id,
                "correlation_id": self.correlation_id,
            },
        }


@dataclass(frozen=True, kw_only=True)
class ApprovalRequestApproved(DomainEvent):
    """Raised when a request finalizes as Approved."""

    EVENT_TYPE: ClassVar[str] = "approval.request.approved"

    workflow_code: str
    entity_type: str
    entity_id: str
    approved_by: str | None
    approved_at: datetime

    def payload(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "workflow_code": self.workflow_code,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat(),
        }


@dataclass(frozen=True, kw_only=True)
class ApprovalRequestRejected(DomainEvent):
    """Raised when a stage is rejected (single-stage veto)."""

    EVENT_TYPE: ClassVar[str] = "approval.request.rejected"

    workflow_code: str
    entity_type: str
    entity_id: str
    rejected_by: str
    rejected_at: datetime
    rejection_reason: str | None

    def payload(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "workflow_code": self.workflow_code,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "rejected_by": self.rejected_by,
            "rejected_at": self.rejected_at.isoformat(),
            "rejection_reason": self.rejection_reason,
        }
