"""Security: session tokens and password hashing."""

from roadwell.infrastructure.security.jwt import create_session_token, verify_session_token
from roadwell.infrastructure.security.password import (
    get_password_hash,
    is_password_hash,
    verify_password,
)

__all__ = [
    "create_session_token",
    "get_password_hash",
    "is_password_hash",
    "verify_password",
    "verify_session_token",
]
