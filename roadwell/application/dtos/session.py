"""DTOs for the authenticated session and auth modal state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from roadwell.domain.enums import AuthBackendKind, AuthModalMode


@dataclass(frozen=True)
class SessionUser:
    """Identity attached to a session."""

    id: str
    email: str
    name: str = ""
    email_verified: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "emailVerified": self.email_verified,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionUser:
        return cls(
            id=str(data["id"]),
            email=data.get("email") or "",
            name=data.get("name") or "",
            email_verified=bool(data.get("emailVerified", False)),
        )

    @property
    def display_name(self) -> str:
        """Name for attribution; falls back to the email address."""
        return self.name or self.email


@dataclass(frozen=True)
class Session:
    """The active identity plus its opaque credential token.

    "No session" is represented by None, never by a Session with a missing
    token or user. backend is internal and only routes sign-out.
    """

    identity_token: str
    user: SessionUser
    backend: AuthBackendKind

    def __post_init__(self) -> None:
        if not self.identity_token:
            raise ValueError("Session requires an identity token")
        if self.user is None:
            raise ValueError("Session requires a user")

    def to_dict(self) -> dict[str, Any]:
        """Serialize for durable storage."""
        return {
            "jwt": self.identity_token,
            "user": self.user.to_dict(),
            "backend": self.backend.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Deserialize from durable storage.

        Raises:
            KeyError, ValueError: If the stored payload is malformed.
        """
        return cls(
            identity_token=data["jwt"],
            user=SessionUser.from_dict(data["user"]),
            backend=AuthBackendKind(data["backend"]),
        )


@dataclass(frozen=True)
class AuthModalState:
    """Presentation state of the auth modal (independent of the session)."""

    is_open: bool = False
    mode: AuthModalMode = AuthModalMode.SIGN_IN
