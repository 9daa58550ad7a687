"""Tests for RemoteApiGateway against the mobile REST fake."""

import httpx
import pytest

from roadwell.domain.exceptions import (
    RemoteApiException,
    RemoteUnavailableException,
    UnconfiguredException,
)
from roadwell.infrastructure.external.remote_api import RemoteApiGateway
from roadwell.infrastructure.storage.keys import API_KEY_STORAGE_KEY
from roadwell.infrastructure.storage.secure_store import InMemorySecureStore
from tests.fakes import REMOTE_BASE, FakeRemoteApi


async def test_requests_carry_api_key(remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi) -> None:
    fake_remote.respond("GET", "/profile/u1", {"id": "u1", "name": "Dana"})
    profile = await remote_api.get_user_profile("u1")
    assert profile == {"id": "u1", "name": "Dana"}
    assert fake_remote.last.api_key == fake_remote.api_key
    assert fake_remote.last.path == "/profile/u1"


async def test_missing_api_key_is_unconfigured(
    remote_http: httpx.AsyncClient, fake_remote: FakeRemoteApi
) -> None:
    gateway = RemoteApiGateway(REMOTE_BASE, InMemorySecureStore(), http_client=remote_http)
    with pytest.raises(UnconfiguredException):
        await gateway.get_wellness_activities()
    assert fake_remote.requests == []


async def test_set_api_key_persists_and_is_used(
    remote_http: httpx.AsyncClient, fake_remote: FakeRemoteApi
) -> None:
    store = InMemorySecureStore()
    gateway = RemoteApiGateway(REMOTE_BASE, store, http_client=remote_http)
    gateway.set_api_key(fake_remote.api_key)
    await gateway.get_wellness_activities()
    assert store.get_item(API_KEY_STORAGE_KEY) == fake_remote.api_key
    assert fake_remote.last.api_key == fake_remote.api_key


async def test_unset_query_options_are_not_sent(
    remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi
) -> None:
    await remote_api.get_community_posts(limit=20, search=None)
    assert fake_remote.last.params == {"limit": "20"}
    await remote_api.get_fatigue_check_history("u1")
    assert fake_remote.last.path == "/fatigue-check/history/u1"
    assert fake_remote.last.params == {}
    await remote_api.get_wellness_stats("u1")
    assert fake_remote.last.params == {"period": "all"}


async def test_json_bodies_are_posted(remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi) -> None:
    fake_remote.respond("POST", "/community/posts/p1", {"id": "c1"}, status=201)
    result = await remote_api.add_community_comment("p1", {"content": "hi"})
    assert result == {"id": "c1"}
    assert fake_remote.last.method == "POST"
    assert fake_remote.last.body == {"content": "hi"}


async def test_error_message_from_response_body(
    remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond("GET", "/parking/locations/x", {"error": "Location not found"}, status=404)
    with pytest.raises(RemoteApiException) as exc_info:
        await remote_api.get_parking_location("x")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Location not found"
    assert exc_info.value.details["endpoint"] == "/parking/locations/x"


async def test_error_without_body_uses_status_line(
    remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond("POST", "/fatigue-check", None, status=500)
    with pytest.raises(RemoteApiException) as exc_info:
        await remote_api.submit_fatigue_check({"score": 10})
    assert exc_info.value.message == "HTTP 500: Internal Server Error"


async def test_wrong_key_is_rejected(
    remote_http: httpx.AsyncClient, secure_store: InMemorySecureStore
) -> None:
    secure_store.set_item(API_KEY_STORAGE_KEY, "stale-key")
    gateway = RemoteApiGateway(REMOTE_BASE, secure_store, http_client=remote_http)
    with pytest.raises(RemoteApiException) as exc_info:
        await gateway.get_user_profile("u1")
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid API key"


async def test_empty_success_body_decodes_to_empty_dict(
    remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond("PATCH", "/profile/u1", None, status=204)
    assert await remote_api.update_user_profile("u1", {"name": "D"}) == {}


async def test_transport_error_becomes_remote_unavailable(secure_store: InMemorySecureStore) -> None:
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    secure_store.set_item(API_KEY_STORAGE_KEY, "k")
    async with httpx.AsyncClient(transport=httpx.MockTransport(offline)) as http:
        gateway = RemoteApiGateway(REMOTE_BASE, secure_store, http_client=http)
        with pytest.raises(RemoteUnavailableException):
            await gateway.search_parking_locations(lat=1.5, lng=2.5)


async def test_non_json_success_body_is_a_remote_api_error(
    secure_store: InMemorySecureStore,
) -> None:
    """A 2xx HTML page (e.g. a captive portal) is reported, not decoded."""

    def html_page(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>ok</html>")

    secure_store.set_item(API_KEY_STORAGE_KEY, "k")
    async with httpx.AsyncClient(transport=httpx.MockTransport(html_page)) as http:
        gateway = RemoteApiGateway(REMOTE_BASE, secure_store, http_client=http)
        with pytest.raises(RemoteApiException) as exc_info:
            await gateway.get_wellness_activities()
    assert exc_info.value.status_code == 200
    assert exc_info.value.details["endpoint"] == "/wellness/activities"


@pytest.mark.parametrize(
    ("call", "method", "path"),
    [
        (lambda api: api.create_user_profile({}), "POST", "/profile"),
        (lambda api: api.complete_wellness_activity({}), "POST", "/wellness/complete"),
        (lambda api: api.create_community_post({}), "POST", "/community/posts"),
        (lambda api: api.get_community_post("p9"), "GET", "/community/posts/p9"),
        (lambda api: api.create_parking_location({}), "POST", "/parking/locations"),
        (lambda api: api.add_parking_review("l1", {}), "POST", "/parking/locations/l1"),
    ],
)
async def test_endpoint_paths(
    remote_api: RemoteApiGateway, fake_remote: FakeRemoteApi, call, method: str, path: str
) -> None:
    await call(remote_api)
    assert (fake_remote.last.method, fake_remote.last.path) == (method, path)
