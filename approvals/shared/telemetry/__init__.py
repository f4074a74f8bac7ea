"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from approvals.shared.telemetry.logging import get_logger, setup_logging
from approvals.shared.telemetry.telemetry import (
    ApprovalTelemetry,
    get_telemetry,
    set_telemetry,
)
from approvals.shared.telemetry.tracing import add_span_event, traced

__all__ = [
    "setup_logging",
    "get_logger",
    "ApprovalTelemetry",
    "get_telemetry",
    "set_telemetry",
    "traced",
    "add_span_event",
]
