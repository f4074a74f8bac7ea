"""Request ID and correlation ID middleware.

Raw ASGI (no BaseHTTPMiddleware) so context variables set here are visible
to the endpoint and its background tasks. Client-provided values are
sanitized (length + character set) to prevent log injection.
"""

import re
import uuid
from typing import Callable

from approvals.shared.context import set_correlation_id

ID_MAX_LENGTH = 64
ID_ALLOWED_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1," + str(ID_MAX_LENGTH) + r"}$")


def _get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def _sanitize(raw: str | None) -> str | None:
    if raw and ID_ALLOWED_PATTERN.match(raw.strip()):
        return raw.strip()
    return None


def _with_response_header(send: Callable, header_name: str, value: str) -> Callable:
    async def send_wrapper(message: dict) -> None:
        if message["type"] == "http.response.start":
            headers = list(message.get("headers", []))
            headers.append((header_name.encode(), value.encode()))
            message["headers"] = headers
        await send(message)

    return send_wrapper


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Add or forward X-Request-ID on each request and response."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = _sanitize(_get_header(scope, header_name)) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        await app(scope, receive, _with_response_header(send, header_name, request_id))

    return asgi_app


def CorrelationIDMiddleware(
    app: Callable, header_name: str = "X-Correlation-ID"
) -> Callable:
    """Forward X-Correlation-ID (falling back to the request id) and expose it to
    the approval event metadata through the request context."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        correlation_id = (
            _sanitize(_get_header(scope, header_name))
            or scope.get("state", {}).get("request_id")
            or str(uuid.uuid4())
        )
        scope.setdefault("state", {})["correlation_id"] = correlation_id
        set_correlation_id(correlation_id)
        try:
            await app(
                scope, receive, _with_response_header(send, header_name, correlation_id)
            )
        finally:
            set_correlation_id(None)

    return asgi_app
