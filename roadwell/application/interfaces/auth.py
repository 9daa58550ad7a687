"""Auth backend port. Two variants: managed identity provider and direct SQL."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from roadwell.application.dtos.results import AuthResult
    from roadwell.application.dtos.session import Session
    from roadwell.domain.enums import AuthBackendKind


class IAuthBackend(Protocol):
    """Capability set shared by both auth backends.

    Expected failures come back as AuthResult(success=False); unexpected
    exceptions are caught inside the backend and converted the same way.
    """

    @property
    def kind(self) -> AuthBackendKind:
        """Tag written into sessions produced by this backend."""
        ...

    async def sign_up(self, email: str, password: str, name: str) -> AuthResult:
        """Create an account and return a session on success."""
        ...

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Verify credentials and return a session on success."""
        ...

    async def sign_out(self) -> AuthResult:
        """Drop backend-local state (cached tokens, connections)."""
        ...

    def current_session(self) -> Session | None:
        """Session last produced by this backend in this process, if any."""
        ...

    def resume_session(self, session: Session) -> bool:
        """Adopt a persisted session at startup; False when it can no longer be used."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
