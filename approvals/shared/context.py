"""Request context management using contextvars.

Async-safe storage for the correlation id of the current request. It is
copied into the metadata of published approval events so downstream
handlers can tie them back to the request.

Usage:
    set_correlation_id(scope["state"]["correlation_id"])
    correlation_id = get_correlation_id()
"""

from contextvars import ContextVar

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation id for this request."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Return the correlation id of the current request, if any."""
    return _correlation_id.get()
