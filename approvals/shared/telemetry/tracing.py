"""Span helpers for the approval use cases."""

import asyncio
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_tracer = trace.get_tracer("approvals")

# Identifiers only. Comments and rejection reasons are free text and stay
# out of span attributes.
TRACED_ARGUMENTS = frozenset({
    "workflow_code", "workflow_id", "entity_type", "entity_id", "request_id",
    "execution_id", "approver_id", "decision", "status", "module",
})


def _identifier_attributes(kwargs: dict[str, Any]) -> dict[str, str]:
    return {
        f"approval.{key}": str(value)
        for key, value in kwargs.items()
        if key in TRACED_ARGUMENTS and value is not None
    }


@contextmanager
def _span(name: str, attributes: dict[str, Any]) -> Iterator[trace.Span]:
    with _tracer.start_as_current_span(
        name, attributes=attributes, record_exception=False
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise
        span.set_status(Status(StatusCode.OK))


def traced(
    operation_name: str | None = None,
    attributes: dict | None = None,
) -> Callable:
    """Run the decorated function (sync or async) inside a span.

    Keyword arguments named in ``TRACED_ARGUMENTS`` become ``approval.*``
    attributes. An exception marks the span as failed and is re-raised.
    """

    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__qualname__}"

        def span_attributes(kwargs: dict[str, Any]) -> dict[str, Any]:
            return {**(attributes or {}), **_identifier_attributes(kwargs)}

        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(name, span_attributes(kwargs)):
                    return await func(*args, **kwargs)

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(name, span_attributes(kwargs)):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator


def add_span_event(name: str, attributes: dict | None = None) -> None:
    """Record a request state transition on the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=attributes or {})
