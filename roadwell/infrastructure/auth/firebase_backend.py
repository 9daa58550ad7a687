"""Managed identity backend: Firebase Auth accounts plus a users/{uid} profile document.

ID tokens live for an hour. The refresh token and the ID-token expiry are kept
in the secure store, and id_token() swaps in a fresh ID token shortly before
the current one expires, including after a restart.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from roadwell.application.dtos.results import AuthResult
from roadwell.application.dtos.session import Session, SessionUser
from roadwell.application.interfaces.gateways import IDocumentGateway
from roadwell.application.interfaces.storage import ISecureStore
from roadwell.domain.enums import AuthBackendKind, AuthErrorCode
from roadwell.domain.exceptions import AuthException, RoadwellException
from roadwell.infrastructure.firebase.collections import COLLECTION_USERS, FIELD_CREATED_AT
from roadwell.infrastructure.firebase.identity_toolkit import IdentityToolkitClient
from roadwell.infrastructure.storage.keys import (
    FIREBASE_REFRESH_TOKEN_KEY,
    FIREBASE_TOKEN_EXPIRES_AT_KEY,
)
from roadwell.shared.telemetry.tracing import traced
from roadwell.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ManagedIdentityBackend:
    """Sign-up/sign-in against Firebase Auth; the session token is the provider ID token.

    documents is optional: without a document store the profile document is
    neither written nor read and the provider display name is used. Without a
    secure store tokens are never refreshed.
    """

    def __init__(
        self,
        identity: IdentityToolkitClient,
        documents: IDocumentGateway | None = None,
        secure_store: ISecureStore | None = None,
        *,
        refresh_margin_seconds: float = 300.0,
        on_token_refreshed: Callable[[Session], None] | None = None,
    ) -> None:
        self._identity = identity
        self._documents = documents
        self._store = secure_store
        self._refresh_margin = refresh_margin_seconds
        self._on_token_refreshed = on_token_refreshed
        self._refresh_lock = asyncio.Lock()
        self._session: Session | None = None

    @property
    def kind(self) -> AuthBackendKind:
        return AuthBackendKind.FIREBASE

    def current_session(self) -> Session | None:
        return self._session

    def resume_session(self, session: Session) -> bool:
        """Adopt a persisted session; an expired ID token is refreshed on first use."""
        self._session = session
        return True

    def _stored(self, key: str) -> str | None:
        if self._store is None:
            return None
        try:
            return self._store.get_item(key)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", key, e)
            return None

    def _remember_tokens(self, tokens: dict[str, Any]) -> None:
        """Persist the refresh token and when the ID token expires."""
        if self._store is None:
            return
        try:
            if tokens.get("refreshToken"):
                self._store.set_item(FIREBASE_REFRESH_TOKEN_KEY, tokens["refreshToken"])
            expires_at = time.time() + float(tokens.get("expiresIn") or 0)
            self._store.set_item(FIREBASE_TOKEN_EXPIRES_AT_KEY, str(expires_at))
        except (OSError, ValueError) as e:
            logger.warning("Could not persist Firebase tokens: %s", e)

    def _forget_tokens(self) -> None:
        if self._store is None:
            return
        for key in (FIREBASE_REFRESH_TOKEN_KEY, FIREBASE_TOKEN_EXPIRES_AT_KEY):
            try:
                self._store.delete_item(key)
            except (OSError, ValueError) as e:
                logger.warning("Could not clear %s: %s", key, e)

    def _token_is_fresh(self) -> bool:
        raw = self._stored(FIREBASE_TOKEN_EXPIRES_AT_KEY)
        try:
            expires_at = float(raw) if raw else 0.0
        except ValueError:
            expires_at = 0.0
        return expires_at - self._refresh_margin > time.time()

    async def id_token(self) -> str | None:
        """ID token of the current session, refreshed when it is about to expire.

        If no refresh token is stored, or the exchange fails, the current token
        is returned unchanged.
        """
        async with self._refresh_lock:
            session = self._session
            if session is None:
                return None
            if self._token_is_fresh():
                return session.identity_token
            refresh_token = self._stored(FIREBASE_REFRESH_TOKEN_KEY)
            if not refresh_token:
                return session.identity_token
            try:
                tokens = await self._identity.refresh_id_token(refresh_token)
            except AuthException as e:
                logger.warning("ID token refresh failed: %s", e.code.value)
                return session.identity_token
            if not tokens.get("idToken"):
                logger.warning("ID token refresh returned no token")
                return session.identity_token
            self._remember_tokens(tokens)
            refreshed = Session(tokens["idToken"], session.user, self.kind)
            self._session = refreshed
        logger.debug("Refreshed Firebase ID token for %s", refreshed.user.id)
        if self._on_token_refreshed is not None:
            self._on_token_refreshed(refreshed)
        return refreshed.identity_token

    async def _upsert_profile(self, user: SessionUser) -> None:
        """Write users/{uid}. Failure is logged; the account already exists."""
        if self._documents is None:
            return
        try:
            await self._documents.set(
                COLLECTION_USERS,
                user.id,
                {
                    "uid": user.id,
                    "email": user.email,
                    "name": user.name,
                    "emailVerified": user.email_verified,
                    FIELD_CREATED_AT: utc_now(),
                },
                merge=True,
            )
        except RoadwellException as e:
            logger.error("Failed to write profile document for %s: %s", user.id, e.message)

    async def _profile_name(self, uid: str, fallback: str) -> str:
        if self._documents is None:
            return fallback
        try:
            doc = await self._documents.get(COLLECTION_USERS, uid)
        except RoadwellException as e:
            logger.info("Profile document unavailable for %s: %s", uid, e.message)
            return fallback
        return doc.get("name") or fallback

    async def _email_verified(self, id_token: str) -> bool:
        try:
            account = await self._identity.lookup(id_token)
        except AuthException as e:
            logger.info("Account lookup failed: %s", e.code.value)
            return False
        return bool(account and account.get("emailVerified"))

    @traced("auth.firebase.sign_up")
    async def sign_up(self, email: str, password: str, name: str) -> AuthResult:
        try:
            account = await self._identity.sign_up(email, password)
            id_token = account["idToken"]
            self._remember_tokens(account)
            if name:
                try:
                    await self._identity.update_profile(id_token, name)
                except AuthException as e:
                    logger.warning("Could not set display name: %s", e.code.value)
            user = SessionUser(
                id=account["localId"],
                email=account.get("email") or email,
                name=name,
                email_verified=False,
            )
        except AuthException as e:
            return AuthResult.fail(e.message, e.code.value)
        except Exception:
            logger.exception("Unexpected error during Firebase sign-up")
            return AuthResult.fail(
                AuthErrorCode.UNKNOWN.user_message, AuthErrorCode.UNKNOWN.value
            )
        # The profile write is authorized with the new account's ID token.
        self._session = Session(id_token, user, self.kind)
        await self._upsert_profile(user)
        logger.info("Firebase sign-up succeeded for %s", user.id)
        return AuthResult.ok(self._session)

    @traced("auth.firebase.sign_in")
    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            account = await self._identity.sign_in_with_password(email, password)
            id_token = account["idToken"]
            self._remember_tokens(account)
            user = SessionUser(
                id=account["localId"],
                email=account.get("email") or email,
                name=account.get("displayName") or "",
            )
            # Provisional session so the profile read carries the ID token.
            self._session = Session(id_token, user, self.kind)
            user = SessionUser(
                id=user.id,
                email=user.email,
                name=await self._profile_name(user.id, user.name),
                email_verified=await self._email_verified(id_token),
            )
        except AuthException as e:
            self._session = None
            return AuthResult.fail(e.message, e.code.value)
        except Exception:
            self._session = None
            logger.exception("Unexpected error during Firebase sign-in")
            return AuthResult.fail(
                AuthErrorCode.UNKNOWN.user_message, AuthErrorCode.UNKNOWN.value
            )
        self._session = Session(id_token, user, self.kind)
        return AuthResult.ok(self._session)

    async def sign_out(self) -> AuthResult:
        self._session = None
        self._forget_tokens()
        return AuthResult.ok()

    async def aclose(self) -> None:
        await self._identity.aclose()
