"""Logging filter, @traced wrapper and telemetry start-up without an exporter."""

import logging

import pytest

from approvals.core.config import get_settings
from approvals.shared.context import set_correlation_id
from approvals.shared.telemetry.logging import CorrelationIdFilter
from approvals.shared.telemetry.telemetry import ApprovalTelemetry
from approvals.shared.telemetry.tracing import _identifier_attributes, traced


def _record() -> logging.LogRecord:
    return logging.LogRecord("approvals", logging.INFO, __file__, 1, "msg", (), None)


def test_log_records_carry_correlation_id() -> None:
    set_correlation_id("corr-7")
    try:
        record = _record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "corr-7"
    finally:
        set_correlation_id(None)


def test_log_records_outside_a_request_get_placeholder() -> None:
    record = _record()
    CorrelationIdFilter().filter(record)
    assert record.correlation_id == "-"


def test_only_identifiers_become_span_attributes() -> None:
    attrs = _identifier_attributes(
        {"request_id": "r1", "comments": "free text", "approver_id": None}
    )
    assert attrs == {"approval.request_id": "r1"}


async def test_traced_async_returns_result_and_reraises() -> None:
    @traced("test.ok")
    async def ok(*, request_id: str) -> str:
        return request_id

    @traced("test.fail")
    async def fail() -> None:
        raise ValueError("boom")

    assert await ok(request_id="r1") == "r1"
    with pytest.raises(ValueError, match="boom"):
        await fail()


def test_traced_sync_function_stays_sync() -> None:
    @traced()
    def add(a: int, b: int) -> int:
        return a + b

    assert add(2, 3) == 5


def test_telemetry_with_no_exporter_starts_and_shuts_down() -> None:
    settings = get_settings().model_copy(update={"telemetry_exporter": "none"})
    telemetry = ApprovalTelemetry(settings)
    assert telemetry._build_exporter() is None

    telemetry.start()
    assert telemetry.active
    telemetry.shutdown()
    assert not telemetry.active
