"""Tests for build_container wiring over the fakes."""

import httpx
import pytest

from roadwell.core.config import Settings
from roadwell.core.container import build_container, initialize_stores
from roadwell.domain.exceptions import UnconfiguredException
from roadwell.infrastructure.auth import DirectCredentialBackend, ManagedIdentityBackend
from roadwell.infrastructure.storage.keys import (
    API_KEY_STORAGE_KEY,
    DIRECT_CONNECTION_STRING_KEY,
    FIREBASE_TOKEN_EXPIRES_AT_KEY,
)
from roadwell.infrastructure.storage.secure_store import InMemorySecureStore
from tests.fakes import FakeFirestore, FakeIdentityToolkit, FakeRemoteApi, asgi_client


async def test_firebase_container_signs_up_with_user_token(
    settings: Settings,
    secure_store: InMemorySecureStore,
    fake_firestore: FakeFirestore,
    fake_identity: FakeIdentityToolkit,
) -> None:
    """The profile write made during sign-up carries the new account's ID token."""
    async with asgi_client(fake_firestore.app) as fs_http, asgi_client(fake_identity.app) as id_http:
        container = build_container(
            settings,
            secure_store=secure_store,
            firestore_http_client=fs_http,
            identity_http_client=id_http,
        )
        try:
            assert isinstance(container.auth_backend, ManagedIdentityBackend)
            result = await container.auth_service.sign_up("new@example.com", "secret1", "New")
            assert result.success is True
            assert fake_firestore.data("users/uid-1")["name"] == "New"
            assert fake_firestore.auth_headers[-1] == "Bearer id-token-uid-1"

            posted = await container.community.create_post("hello")
            assert posted.success is True
            assert container.like_controller().user_id == "uid-1"
        finally:
            await container.aclose()


async def test_restored_firebase_session_uses_refreshed_token(
    settings: Settings,
    secure_store: InMemorySecureStore,
    fake_firestore: FakeFirestore,
    fake_identity: FakeIdentityToolkit,
) -> None:
    """After a restart an expired ID token is exchanged before Firestore is called."""
    async with asgi_client(fake_firestore.app) as fs_http, asgi_client(fake_identity.app) as id_http:
        first = build_container(
            settings,
            secure_store=secure_store,
            firestore_http_client=fs_http,
            identity_http_client=id_http,
        )
        await first.auth_service.sign_up("new@example.com", "secret1", "New")
        await first.aclose()
        secure_store.set_item(FIREBASE_TOKEN_EXPIRES_AT_KEY, "0")

        container = build_container(
            settings,
            secure_store=secure_store,
            firestore_http_client=fs_http,
            identity_http_client=id_http,
        )
        try:
            restored = container.auth_service.restore_session()
            assert restored.identity_token == "id-token-uid-1"
            assert (await container.community.create_post("still here")).success is True
            assert fake_firestore.auth_headers[-1] == "Bearer id-token-uid-1-r1"
            assert container.session_store.get_session().identity_token == "id-token-uid-1-r1"
        finally:
            await container.aclose()


def test_firebase_without_web_api_key_is_unconfigured(settings: Settings) -> None:
    unkeyed = settings.model_copy(update={"firebase_web_api_key": None})
    with pytest.raises(UnconfiguredException):
        build_container(unkeyed, secure_store=InMemorySecureStore())


async def test_remote_services_need_base_url(settings: Settings) -> None:
    container = build_container(
        settings.model_copy(update={"remote_api_base_url": None}),
        secure_store=InMemorySecureStore(),
    )
    try:
        assert container.remote_api is None
        assert container.wellness is None and container.fatigue is None
        assert container.community is not None and container.advocacy is not None
    finally:
        await container.aclose()


async def test_remote_services_use_stored_api_key(
    settings: Settings, secure_store: InMemorySecureStore, signed_in, fake_remote: FakeRemoteApi
) -> None:
    initialize_stores(secure_store, api_key=fake_remote.api_key)
    async with asgi_client(fake_remote.app) as http:
        container = build_container(settings, secure_store=secure_store, remote_http_client=http)
        try:
            fake_remote.respond("GET", "/wellness/stats/driver-1", {"totalPoints": 7})
            container.session_store.set_session(signed_in)
            stats = await container.wellness.get_stats()
            assert stats.data.total_points == 7
        finally:
            await container.aclose()


async def test_direct_backend_without_firestore(tmp_path) -> None:
    settings = Settings(
        _env_file=None,
        auth_backend="direct",
        secret_key="test-secret-key-0123456789abcdef",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'roadwell.db'}",
    )
    container = build_container(settings, secure_store=InMemorySecureStore())
    try:
        assert isinstance(container.auth_backend, DirectCredentialBackend)
        assert container.documents is None
        assert container.community is None
        with pytest.raises(RuntimeError):
            container.like_controller("u1")
    finally:
        await container.aclose()


async def test_owned_http_client_is_closed(settings: Settings) -> None:
    container = build_container(settings, secure_store=InMemorySecureStore())
    [owned] = container._owned_http
    await container.aclose()
    assert owned.is_closed
    assert container._owned_http == []


async def test_injected_http_client_is_left_open(settings: Settings) -> None:
    async with httpx.AsyncClient() as http:
        container = build_container(settings, secure_store=InMemorySecureStore(), http_client=http)
        await container.aclose()
        assert not http.is_closed


def test_initialize_stores_seeds_secure_store() -> None:
    store = InMemorySecureStore()
    initialize_stores(store, connection_string="postgresql://u:p@h/db", api_key="k")
    assert store.get_item(DIRECT_CONNECTION_STRING_KEY) == "postgresql://u:p@h/db"
    assert store.get_item(API_KEY_STORAGE_KEY) == "k"
    empty = InMemorySecureStore()
    initialize_stores(empty)
    assert empty.get_item(API_KEY_STORAGE_KEY) is None


async def test_telemetry_follows_settings(settings: Settings) -> None:
    plain = build_container(settings, secure_store=InMemorySecureStore())
    assert plain.telemetry is None
    await plain.aclose()
    traced_settings = settings.model_copy(
        update={"telemetry_enabled": True, "telemetry_exporter": "none"}
    )
    container = build_container(traced_settings, secure_store=InMemorySecureStore())
    assert container.telemetry is not None
    assert container.telemetry.tracer_provider is not None
    await container.aclose()
    assert container.telemetry.tracer_provider is None
