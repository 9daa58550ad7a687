"""Single auth entry point over the configured backend.

Validates input before any network call, writes successful sessions to the
SessionStore and routes sign-out by the session's backend tag. Sessions from
the two backends are never merged: a new sign-in replaces whatever was there.
"""

from __future__ import annotations

import logging
import re

from roadwell.application.dtos.results import AuthResult
from roadwell.application.dtos.session import Session
from roadwell.application.interfaces.auth import IAuthBackend
from roadwell.application.services.session_store import SessionStore
from roadwell.domain.enums import AuthErrorCode
from roadwell.domain.exceptions import ValidationException

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_credentials(email: str, password: str) -> None:
    if not email or not email.strip():
        raise ValidationException("Email is required", field="email")
    if not _EMAIL_RE.match(email.strip()):
        raise ValidationException(AuthErrorCode.INVALID_EMAIL.user_message, field="email")
    if not password:
        raise ValidationException("Password is required", field="password")


class AuthService:
    """Sign up, sign in, sign out and session restore for one configured backend."""

    def __init__(self, backend: IAuthBackend, session_store: SessionStore) -> None:
        self.backend = backend
        self.session_store = session_store

    def _accept(self, result: AuthResult) -> AuthResult:
        if result.success and result.session is not None:
            self.session_store.set_session(result.session)
            self.session_store.close_modal()
        return result

    async def sign_up(self, email: str, password: str, name: str) -> AuthResult:
        try:
            _validate_credentials(email, password)
            if not name or not name.strip():
                raise ValidationException("Name is required", field="name")
        except ValidationException as e:
            return AuthResult.fail(e.message, e.error_code)
        result = await self.backend.sign_up(email.strip(), password, name.strip())
        return self._accept(result)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            _validate_credentials(email, password)
        except ValidationException as e:
            return AuthResult.fail(e.message, e.error_code)
        result = await self.backend.sign_in(email.strip(), password)
        return self._accept(result)

    async def sign_out(self) -> AuthResult:
        """Sign out of the backend that produced the session, then clear the store."""
        session = self.session_store.get_session()
        result = AuthResult.ok()
        if session is None or session.backend == self.backend.kind:
            result = await self.backend.sign_out()
            if not result.success:
                logger.warning("Backend sign-out reported failure: %s", result.error)
        else:
            logger.info(
                "Session from %s backend cleared without backend sign-out",
                session.backend.value,
            )
        self.session_store.clear()
        return result

    def restore_session(self) -> Session | None:
        """Restore the persisted session.

        A session from the other backend, or one the backend no longer accepts
        (expired or tampered token), is discarded.
        """
        session = self.session_store.restore()
        if session is not None and session.backend != self.backend.kind:
            logger.info(
                "Discarding persisted %s session (configured backend is %s)",
                session.backend.value,
                self.backend.kind.value,
            )
            self.session_store.clear()
            return None
        if session is not None and not self.backend.resume_session(session):
            logger.info(
                "Discarding persisted %s session: rejected by backend",
                session.backend.value,
            )
            self.session_store.clear()
            return None
        return session

    def current_session(self) -> Session | None:
        return self.session_store.get_session()
