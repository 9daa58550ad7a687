"""Direct-credential backend: email/password rows in a hosted Postgres database.

The connection string is read from the secure store, falling back to
DATABASE_URL (persisted to the store on first use). When neither is set the
backend reports UNCONFIGURED and nothing else is affected.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
from collections.abc import Callable

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from roadwell.application.dtos.results import AuthResult, OperationResult
from roadwell.application.dtos.session import Session, SessionUser
from roadwell.application.dtos.wellness import UserProfile
from roadwell.application.interfaces.storage import ISecureStore
from roadwell.core.config import Settings
from roadwell.domain.enums import AuthBackendKind, AuthErrorCode
from roadwell.infrastructure.persistence.database import DirectDatabase
from roadwell.infrastructure.persistence.models import (
    CREDENTIALS_PROVIDER,
    AuthAccount,
    AuthUser,
    UserProfileRecord,
)
from roadwell.infrastructure.security.jwt import create_session_token, verify_session_token
from roadwell.infrastructure.security.password import (
    get_password_hash,
    is_password_hash,
    verify_password,
)
from roadwell.infrastructure.storage.keys import (
    DIRECT_CONNECTION_STRING_KEY,
    DIRECT_EMAIL_KEY,
    DIRECT_USER_ID_KEY,
)
from roadwell.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MSG = "Direct database authentication is not configured"
USER_EXISTS_MSG = "User already exists"
REGISTRATION_FAILED_MSG = "Registration failed"
# Same message for unknown email and wrong password.
INVALID_CREDENTIALS_MSG = "User not found or invalid credentials"

_dummy_hash_cache: str | None = None


async def _get_dummy_hash() -> str:
    """Return a valid bcrypt hash for dummy comparison (timing-attack mitigation)."""
    global _dummy_hash_cache
    if _dummy_hash_cache is None:
        _dummy_hash_cache = await asyncio.to_thread(
            get_password_hash, "not-a-real-password"
        )
    return _dummy_hash_cache


class DirectCredentialBackend:
    """Sign-up/sign-in with bcrypt-hashed credentials; the session token is a signed JWT."""

    def __init__(
        self,
        settings: Settings,
        secure_store: ISecureStore,
        *,
        on_engine_created: Callable[[AsyncEngine], None] | None = None,
    ) -> None:
        self._settings = settings
        self._store = secure_store
        self._on_engine_created = on_engine_created
        self._db: DirectDatabase | None = None
        self._session: Session | None = None

    @property
    def kind(self) -> AuthBackendKind:
        return AuthBackendKind.DIRECT

    def current_session(self) -> Session | None:
        return self._session

    def resume_session(self, session: Session) -> bool:
        """Accept a persisted session only if its JWT verifies and names the same user."""
        try:
            payload = verify_session_token(session.identity_token, self._settings)
        except ValueError as e:
            logger.info("Persisted direct session rejected: %s", e)
            self._forget_user()
            return False
        if payload["sub"] != session.user.id:
            logger.warning("Persisted direct session token does not match its user")
            self._forget_user()
            return False
        self._session = session
        return True

    def _forget_user(self) -> None:
        for key in (DIRECT_USER_ID_KEY, DIRECT_EMAIL_KEY):
            try:
                self._store.delete_item(key)
            except (OSError, ValueError) as e:
                logger.warning("Could not clear %s: %s", key, e)

    def _resolve_url(self) -> str | None:
        try:
            stored = self._store.get_item(DIRECT_CONNECTION_STRING_KEY)
        except (OSError, ValueError) as e:
            logger.warning("Could not read connection string from secure store: %s", e)
            stored = None
        if stored:
            return stored
        url = self._settings.database_url
        if not url:
            return None
        try:
            self._store.set_item(DIRECT_CONNECTION_STRING_KEY, url)
        except (OSError, ValueError) as e:
            logger.warning("Could not persist connection string: %s", e)
        return url

    async def _database(self) -> DirectDatabase | None:
        url = self._resolve_url()
        if url is None:
            return None
        if self._db is None or self._db.url != url:
            if self._db is not None:
                await self._db.dispose()
            self._db = DirectDatabase(
                url, self._settings, on_engine_created=self._on_engine_created
            )
        return self._db

    @staticmethod
    def _unconfigured() -> AuthResult:
        return AuthResult.fail(NOT_CONFIGURED_MSG, AuthErrorCode.UNCONFIGURED.value)

    def _start_session(self, user_id: str, email: str, name: str) -> Session:
        token = create_session_token(
            user_id, email, backend=self.kind.value, settings=self._settings
        )
        try:
            self._store.set_item(DIRECT_USER_ID_KEY, user_id)
            self._store.set_item(DIRECT_EMAIL_KEY, email)
        except (OSError, ValueError) as e:
            logger.warning("Could not persist direct user keys: %s", e)
        self._session = Session(token, SessionUser(id=user_id, email=email, name=name), self.kind)
        return self._session

    @traced("auth.direct.sign_up")
    async def sign_up(self, email: str, password: str, name: str) -> AuthResult:
        """Create user, credentials account and profile in one transaction."""
        db = await self._database()
        if db is None:
            return self._unconfigured()
        try:
            async with db.session() as session, session.begin():
                existing = await session.scalar(
                    select(AuthUser.id).where(AuthUser.email == email)
                )
                if existing is not None:
                    return AuthResult.fail(USER_EXISTS_MSG, AuthErrorCode.EMAIL_IN_USE.value)
                hashed = await asyncio.to_thread(get_password_hash, password)
                user_id = await session.scalar(
                    insert(AuthUser)
                    .values(name=name, email=email)
                    .returning(AuthUser.id)
                )
                session.add(
                    AuthAccount(
                        user_id=user_id,
                        provider=CREDENTIALS_PROVIDER,
                        type=CREDENTIALS_PROVIDER,
                        provider_account_id=user_id,
                        password=hashed,
                    )
                )
                session.add(UserProfileRecord(user_id=user_id, name=name))
                await session.flush()
        except Exception:
            logger.exception("Direct sign-up failed; transaction rolled back")
            return AuthResult.fail(REGISTRATION_FAILED_MSG, AuthErrorCode.UNKNOWN.value)
        logger.info("Direct sign-up succeeded for %s", user_id)
        return AuthResult.ok(self._start_session(user_id, email, name))

    async def _check_password(self, account: AuthAccount, password: str) -> bool:
        stored = account.password or ""
        if is_password_hash(stored):
            return await asyncio.to_thread(verify_password, password, stored)
        if not self._settings.direct_auth_allow_legacy_plaintext or not stored:
            logger.warning("Rejected sign-in for account with a non-hashed password")
            await asyncio.to_thread(verify_password, password, await _get_dummy_hash())
            return False
        return hmac.compare_digest(stored.encode("utf-8"), password.encode("utf-8"))

    async def _rehash(self, db: DirectDatabase, user_id: str, password: str) -> None:
        hashed = await asyncio.to_thread(get_password_hash, password)
        try:
            async with db.session() as session, session.begin():
                await session.execute(
                    update(AuthAccount)
                    .where(
                        AuthAccount.user_id == user_id,
                        AuthAccount.provider == CREDENTIALS_PROVIDER,
                    )
                    .values(password=hashed)
                )
        except SQLAlchemyError:
            logger.exception("Failed to re-hash legacy password for user %s", user_id)

    @traced("auth.direct.sign_in")
    async def sign_in(self, email: str, password: str) -> AuthResult:
        db = await self._database()
        if db is None:
            return self._unconfigured()
        try:
            async with db.session() as session:
                row = (
                    await session.execute(
                        select(AuthUser, AuthAccount)
                        .join(AuthAccount, AuthAccount.user_id == AuthUser.id)
                        .where(
                            AuthUser.email == email,
                            AuthAccount.provider == CREDENTIALS_PROVIDER,
                        )
                    )
                ).first()
            if row is None:
                await asyncio.to_thread(verify_password, password, await _get_dummy_hash())
                return AuthResult.fail(
                    INVALID_CREDENTIALS_MSG, AuthErrorCode.INVALID_CREDENTIAL.value
                )
            user, account = row
            if not await self._check_password(account, password):
                return AuthResult.fail(
                    INVALID_CREDENTIALS_MSG, AuthErrorCode.INVALID_CREDENTIAL.value
                )
            if not is_password_hash(account.password):
                await self._rehash(db, account.user_id, password)
        except Exception:
            logger.exception("Direct sign-in failed")
            return AuthResult.fail(
                AuthErrorCode.UNKNOWN.user_message, AuthErrorCode.UNKNOWN.value
            )
        return AuthResult.ok(self._start_session(user.id, user.email, user.name or ""))

    def _current_user_id(self) -> str | None:
        if self._session is not None:
            return self._session.user.id
        try:
            return self._store.get_item(DIRECT_USER_ID_KEY)
        except (OSError, ValueError):
            return None

    @traced("auth.direct.get_user_profile")
    async def get_user_profile(self) -> OperationResult[UserProfile]:
        """Joined user_profiles + auth_users row for the signed-in user."""
        user_id = self._current_user_id()
        if not user_id:
            return OperationResult.fail("Not authenticated", "NOT_AUTHENTICATED")
        db = await self._database()
        if db is None:
            return OperationResult.fail(NOT_CONFIGURED_MSG, AuthErrorCode.UNCONFIGURED.value)
        try:
            async with db.session() as session:
                row = (
                    await session.execute(
                        select(UserProfileRecord, AuthUser.email)
                        .join(AuthUser, UserProfileRecord.user_id == AuthUser.id)
                        .where(UserProfileRecord.user_id == user_id)
                    )
                ).first()
        except SQLAlchemyError:
            logger.exception("Failed to load profile for %s", user_id)
            return OperationResult.fail("Failed to get profile", "UNKNOWN")
        if row is None:
            return OperationResult.fail("Profile not found", "RESOURCE_NOT_FOUND")
        record = row[0]
        return OperationResult.ok(
            UserProfile(
                user_id=record.user_id,
                name=record.name,
                quick_dial_number=record.quick_dial_number,
                preferences=record.preferences or {},
                streak_count=record.streak_count,
                total_points=record.total_points,
            )
        )

    async def sign_out(self) -> AuthResult:
        """Clear direct-backend keys and dispose the engine."""
        self._session = None
        self._forget_user()
        await self.aclose()
        return AuthResult.ok()

    async def aclose(self) -> None:
        if self._db is not None:
            await self._db.dispose()
            self._db = None
