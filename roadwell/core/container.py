"""Composition root: builds every service once per application context.

No module-level singletons: callers hold the AppContainer and close it with
aclose(). Tests pass their own secure store and HTTP clients (e.g. httpx
clients over ASGITransport) instead of patching globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from roadwell.application.dtos.session import Session
from roadwell.application.interfaces.auth import IAuthBackend
from roadwell.application.interfaces.storage import ISecureStore
from roadwell.application.services import (
    AdvocacyService,
    AuthService,
    CommunityService,
    FatigueCheckService,
    LikeController,
    SessionStore,
    WellnessService,
)
from roadwell.core.config import Settings, get_settings
from roadwell.domain.enums import AuthBackendKind
from roadwell.domain.exceptions import UnconfiguredException
from roadwell.infrastructure.auth import DirectCredentialBackend, ManagedIdentityBackend
from roadwell.infrastructure.external.remote_api import RemoteApiGateway
from roadwell.infrastructure.firebase.client import create_firestore_client
from roadwell.infrastructure.firebase.document_gateway import DocumentStoreGateway
from roadwell.infrastructure.firebase.identity_toolkit import IdentityToolkitClient
from roadwell.infrastructure.storage.keys import (
    API_KEY_STORAGE_KEY,
    DIRECT_CONNECTION_STRING_KEY,
)
from roadwell.infrastructure.storage.secure_store import create_secure_store
from roadwell.shared.telemetry.logging import setup_logging
from roadwell.shared.telemetry.telemetry import TelemetryConfig

logger = logging.getLogger(__name__)


def initialize_stores(
    secure_store: ISecureStore,
    *,
    connection_string: str | None = None,
    api_key: str | None = None,
) -> None:
    """Seed the secure store with the direct-SQL connection string and/or REST API key."""
    if connection_string:
        secure_store.set_item(DIRECT_CONNECTION_STRING_KEY, connection_string)
        logger.info("Direct database connection string stored")
    if api_key:
        secure_store.set_item(API_KEY_STORAGE_KEY, api_key)
        logger.info("Remote API key stored")


def _require_web_api_key(settings: Settings) -> str:
    secret = settings.firebase_web_api_key
    key = secret.get_secret_value() if secret is not None else ""
    if not key:
        raise UnconfiguredException("FIREBASE_WEB_API_KEY")
    return key


@dataclass
class AppContainer:
    """Every service of one application context. Optional parts are None when unconfigured."""

    settings: Settings
    secure_store: ISecureStore
    session_store: SessionStore
    auth_backend: IAuthBackend
    auth_service: AuthService
    documents: DocumentStoreGateway | None = None
    remote_api: RemoteApiGateway | None = None
    community: CommunityService | None = None
    advocacy: AdvocacyService | None = None
    wellness: WellnessService | None = None
    fatigue: FatigueCheckService | None = None
    telemetry: TelemetryConfig | None = None
    _owned_http: list[httpx.AsyncClient] = field(default_factory=list, repr=False)

    def like_controller(self, user_id: str | None = None) -> LikeController:
        """LikeController for user_id (defaults to the signed-in user).

        Raises:
            RuntimeError: Firestore is not configured.
            ValueError: No user id and nobody is signed in.
        """
        if self.documents is None:
            raise RuntimeError("Document store is not configured")
        if user_id is None:
            session = self.session_store.get_session()
            user_id = session.user.id if session else None
        return LikeController(self.documents, user_id or "")

    async def aclose(self) -> None:
        """Cancel subscriptions, close HTTP clients, dispose the SQL engine, flush spans."""
        if self.documents is not None:
            await self.documents.aclose()
        await self.auth_backend.aclose()
        for client in self._owned_http:
            await client.aclose()
        self._owned_http.clear()
        if self.telemetry is not None:
            self.telemetry.shutdown()


def build_container(
    settings: Settings | None = None,
    *,
    secure_store: ISecureStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    firestore_http_client: httpx.AsyncClient | None = None,
    identity_http_client: httpx.AsyncClient | None = None,
    remote_http_client: httpx.AsyncClient | None = None,
) -> AppContainer:
    """Wire the application from settings.

    http_client is shared by all outbound calls unless a per-service client
    is given. When no client is passed one is created and closed by aclose().
    """
    settings = settings or get_settings()
    direct = settings.auth_backend == AuthBackendKind.DIRECT.value
    web_api_key = "" if direct else _require_web_api_key(settings)
    setup_logging(settings)
    telemetry = TelemetryConfig.from_settings(settings)
    secure_store = secure_store if secure_store is not None else create_secure_store(settings)
    session_store = SessionStore(secure_store)

    owned: list[httpx.AsyncClient] = []
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.firebase_timeout_seconds)
        owned.append(http_client)

    backend: IAuthBackend

    async def firebase_id_token() -> str | None:
        # During sign-up the backend holds the token before the store does.
        if isinstance(backend, ManagedIdentityBackend) and backend.current_session():
            return await backend.id_token()
        session = session_store.get_session()
        if session is not None and session.backend is AuthBackendKind.FIREBASE:
            return session.identity_token
        return None

    def store_refreshed_session(session: Session) -> None:
        current = session_store.get_session()
        if current is not None and current.user.id == session.user.id:
            session_store.set_session(session)

    firestore = create_firestore_client(
        settings,
        http_client=firestore_http_client or http_client,
        token_provider=firebase_id_token,
    )
    documents = (
        DocumentStoreGateway(
            firestore, poll_interval=settings.subscription_poll_interval_seconds
        )
        if firestore is not None
        else None
    )

    if direct:
        backend = DirectCredentialBackend(
            settings,
            secure_store,
            on_engine_created=telemetry.instrument_sqlalchemy if telemetry else None,
        )
    else:
        identity = IdentityToolkitClient(
            web_api_key,
            base_url=settings.identity_toolkit_base_url,
            secure_token_base_url=settings.secure_token_base_url,
            http_client=identity_http_client or http_client,
        )
        backend = ManagedIdentityBackend(
            identity,
            documents,
            secure_store,
            refresh_margin_seconds=settings.firebase_token_refresh_margin_seconds,
            on_token_refreshed=store_refreshed_session,
        )
    auth_service = AuthService(backend, session_store)

    remote_api = None
    if settings.remote_api_base_url:
        remote_api = RemoteApiGateway(
            settings.remote_api_base_url,
            secure_store,
            http_client=remote_http_client or http_client,
            prefix=settings.remote_api_prefix,
            timeout=settings.remote_api_timeout_seconds,
        )
    else:
        logger.info("REMOTE_API_BASE_URL not set: wellness and fatigue services disabled")

    return AppContainer(
        settings=settings,
        secure_store=secure_store,
        session_store=session_store,
        auth_backend=backend,
        auth_service=auth_service,
        documents=documents,
        remote_api=remote_api,
        community=CommunityService(documents, session_store) if documents else None,
        advocacy=AdvocacyService(documents, session_store) if documents else None,
        wellness=WellnessService(remote_api, session_store) if remote_api else None,
        fatigue=FatigueCheckService(remote_api, session_store) if remote_api else None,
        telemetry=telemetry,
        _owned_http=owned,
    )
