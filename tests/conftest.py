"""Pytest configuration and fixtures for roadwell.

Remote services are replaced by the FastAPI fakes in tests.fakes, reached
through httpx ASGITransport. Tests that need a real Postgres use the
requires_db marker and the pg_url fixture (skipped without DATABASE_URL).
"""

import os
from collections.abc import AsyncIterator, Iterator

import httpx
import pytest

from roadwell.application.dtos.session import Session, SessionUser
from roadwell.application.services import SessionStore
from roadwell.core.config import Settings, get_settings
from roadwell.domain.enums import AuthBackendKind
from roadwell.infrastructure.external.remote_api import RemoteApiGateway
from roadwell.infrastructure.firebase import (
    DocumentStoreGateway,
    FirestoreRESTClient,
    IdentityToolkitClient,
)
from roadwell.infrastructure.storage.keys import API_KEY_STORAGE_KEY
from roadwell.infrastructure.storage.secure_store import InMemorySecureStore
from tests.fakes import (
    FIRESTORE_BASE,
    IDENTITY_BASE,
    REMOTE_BASE,
    FakeFirestore,
    FakeIdentityToolkit,
    FakeRemoteApi,
    asgi_client,
)
from tests.fakes.firestore import PROJECT_ID


@pytest.fixture(autouse=True)
def _fresh_settings_cache() -> Iterator[None]:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Firebase-backed settings pointing at the fakes."""
    return Settings(
        _env_file=None,
        auth_backend="firebase",
        firebase_project_id=PROJECT_ID,
        firebase_web_api_key="test-web-api-key",
        firestore_emulator_host="firestore.test",
        identity_toolkit_base_url=IDENTITY_BASE,
        secure_token_base_url=IDENTITY_BASE,
        secret_key="test-secret-key-0123456789abcdef",
        remote_api_base_url=REMOTE_BASE,
        subscription_poll_interval_seconds=0.01,
        database_url="",
    )


@pytest.fixture
def secure_store() -> InMemorySecureStore:
    return InMemorySecureStore()


@pytest.fixture
def session_store(secure_store: InMemorySecureStore) -> SessionStore:
    return SessionStore(secure_store)


@pytest.fixture
def driver() -> SessionUser:
    return SessionUser(id="driver-1", email="dana@example.com", name="Dana Driver")


@pytest.fixture
def signed_in(session_store: SessionStore, driver: SessionUser) -> Session:
    """A Firebase session for driver, already in the session store."""
    session = Session("id-token-driver-1", driver, AuthBackendKind.FIREBASE)
    session_store.set_session(session)
    return session


# Firestore
@pytest.fixture
def fake_firestore() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
async def firestore_http(fake_firestore: FakeFirestore) -> AsyncIterator[httpx.AsyncClient]:
    async with asgi_client(fake_firestore.app) as client:
        yield client


@pytest.fixture
def firestore_client(firestore_http: httpx.AsyncClient) -> FirestoreRESTClient:
    return FirestoreRESTClient(
        PROJECT_ID, http_client=firestore_http, base_url=FIRESTORE_BASE, emulator=True
    )


@pytest.fixture
async def documents(
    firestore_client: FirestoreRESTClient,
) -> AsyncIterator[DocumentStoreGateway]:
    gateway = DocumentStoreGateway(firestore_client, poll_interval=0.01)
    yield gateway
    await gateway.aclose()


# Identity Toolkit
@pytest.fixture
def fake_identity() -> FakeIdentityToolkit:
    return FakeIdentityToolkit()


@pytest.fixture
async def identity_client(
    fake_identity: FakeIdentityToolkit,
) -> AsyncIterator[IdentityToolkitClient]:
    async with asgi_client(fake_identity.app) as http:
        yield IdentityToolkitClient(
            fake_identity.api_key,
            base_url=IDENTITY_BASE,
            secure_token_base_url=IDENTITY_BASE,
            http_client=http,
        )


# Remote REST API
@pytest.fixture
def fake_remote() -> FakeRemoteApi:
    return FakeRemoteApi()


@pytest.fixture
async def remote_http(fake_remote: FakeRemoteApi) -> AsyncIterator[httpx.AsyncClient]:
    async with asgi_client(fake_remote.app) as client:
        yield client


@pytest.fixture
def remote_api(
    fake_remote: FakeRemoteApi,
    remote_http: httpx.AsyncClient,
    secure_store: InMemorySecureStore,
) -> RemoteApiGateway:
    """Gateway with the fake's API key already in the secure store."""
    secure_store.set_item(API_KEY_STORAGE_KEY, fake_remote.api_key)
    return RemoteApiGateway(REMOTE_BASE, secure_store, http_client=remote_http)


# Postgres
@pytest.fixture
def pg_url() -> str:
    """DATABASE_URL of a disposable Postgres database.

    Skips (pytest.skip) when DATABASE_URL is not set. Use with
    @pytest.mark.requires_db; run without DB via: pytest -m 'not requires_db'.
    """
    url = os.environ.get("DATABASE_URL", "")
    if not url.startswith(("postgres://", "postgresql")):
        pytest.skip("Postgres not configured: set DATABASE_URL to a test database")
    return url
