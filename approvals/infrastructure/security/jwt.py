"""JWT verification for caller identity.

Access tokens are issued by the identity provider and signed with the
shared SECRET_KEY. ``sub`` is the user id; ``roles`` lists role codes.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from approvals.core.config import get_settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed token with the given claims (service-to-service calls, tests).

    Args:
        data: Claims to encode (sub, roles).
        expires_delta: Optional TTL; else uses settings.access_token_expire_minutes.
    """
    settings = get_settings()
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(UTC) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    encoded = jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Enforces presence of exp and sub.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload.get("sub"):
        raise ValueError("Token missing required claim: sub")
    return payload


def token_roles(payload: dict[str, Any]) -> set[str]:
    """Return the role codes in the token's ``roles`` claim (list or space-separated string)."""
    roles = payload.get("roles") or []
    if isinstance(roles, str):
        return set(roles.split())
    return {str(r) for r in roles}
