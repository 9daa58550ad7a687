"""Session tokens for the direct SQL auth backend (signed JWT)."""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from roadwell.core.config import Settings, get_settings


def create_session_token(
    user_id: str,
    email: str,
    *,
    backend: str,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token for a directly authenticated user.

    Args:
        user_id: auth_users.id, stored as the 'sub' claim.
        email: User email (informational claim).
        backend: Backend tag written into the token.
        settings: Optional settings; defaults to get_settings().
        expires_delta: Optional TTL; else uses settings.access_token_expire_minutes.

    Returns:
        Encoded JWT string.
    """
    settings = settings or get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "backend": backend,
        "iat": now,
        "exp": now + expires_delta,
    }
    encoded = jwt.encode(
        claims,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_session_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Verify and decode a session token. Returns the payload.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if "sub" not in payload:
        raise ValueError("Token missing required claim: sub")
    return payload
