"""Client for the secondary REST backend (profiles, wellness, fatigue, community, parking).

Every request carries the x-api-key header. The key is read once from the
secure store on first use; set_api_key() stores a new one. Errors surface as
RemoteApiException (non-2xx) or RemoteUnavailableException (transport).
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx

from roadwell.application.interfaces.storage import ISecureStore
from roadwell.domain.exceptions import (
    RemoteApiException,
    RemoteUnavailableException,
    UnconfiguredException,
)
from roadwell.infrastructure.storage.keys import API_KEY_STORAGE_KEY
from roadwell.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)

_SERVICE = "Remote API"


def _query(**options: Any) -> dict[str, Any]:
    """Keep only options that are set; None is never sent."""
    return {key: value for key, value in options.items() if value is not None}


class RemoteApiGateway:
    """Authenticated request helper plus one method per backend endpoint."""

    def __init__(
        self,
        base_url: str,
        secure_store: ISecureStore,
        *,
        http_client: httpx.AsyncClient | None = None,
        prefix: str = "/api/mobile",
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
        self._store = secure_store
        self._timeout = timeout
        self._shared_http = http_client
        self._api_key: str | None = None

    @asynccontextmanager
    async def _http_cm(self):
        """Yield shared HTTP client or a short-lived one (connection reuse when shared)."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    def initialize(self) -> str:
        """Load the API key from the secure store.

        Raises:
            UnconfiguredException: If no key is stored.
        """
        try:
            self._api_key = self._store.get_item(API_KEY_STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.error("Failed to read API key from secure store: %s", e)
            self._api_key = None
        if not self._api_key:
            raise UnconfiguredException("API key")
        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist and use a new API key."""
        self._store.set_item(API_KEY_STORAGE_KEY, api_key)
        self._api_key = api_key

    def url_for(self, endpoint: str) -> str:
        return f"{self._base_url}{self._prefix}{endpoint}"

    @traced("remote_api.request")
    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Send an authenticated request and return the decoded JSON body."""
        api_key = self._api_key or self.initialize()
        headers = {"Content-Type": "application/json", "x-api-key": api_key}
        url = self.url_for(endpoint)
        try:
            async with self._http_cm() as client:
                resp = await client.request(
                    method, url, headers=headers, params=params or None, json=json_body
                )
        except httpx.TransportError as e:
            logger.error("Remote API request failed for %s: %s", endpoint, e)
            raise RemoteUnavailableException(_SERVICE) from e
        if not resp.is_success:
            try:
                error_data = resp.json()
            except (json.JSONDecodeError, ValueError):
                error_data = {}
            message = (
                error_data.get("error") if isinstance(error_data, dict) else None
            ) or f"HTTP {resp.status_code}: {resp.reason_phrase}"
            logger.error("Remote API request failed for %s: %s", endpoint, message)
            raise RemoteApiException(resp.status_code, message, endpoint)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error("Remote API returned a non-JSON body for %s", endpoint)
            raise RemoteApiException(
                resp.status_code, "Invalid response from remote API", endpoint
            ) from e

    # User profile
    async def get_user_profile(self, user_id: str) -> Any:
        return await self.request(f"/profile/{user_id}")

    async def create_user_profile(self, profile: dict[str, Any]) -> Any:
        return await self.request("/profile", method="POST", json_body=profile)

    async def update_user_profile(self, user_id: str, updates: dict[str, Any]) -> Any:
        return await self.request(f"/profile/{user_id}", method="PATCH", json_body=updates)

    # Fatigue checks
    async def submit_fatigue_check(self, check: dict[str, Any]) -> Any:
        return await self.request("/fatigue-check", method="POST", json_body=check)

    async def get_fatigue_check_history(
        self, user_id: str, *, limit: int | None = None, offset: int | None = None
    ) -> Any:
        return await self.request(
            f"/fatigue-check/history/{user_id}", params=_query(limit=limit, offset=offset)
        )

    # Wellness
    async def get_wellness_activities(self, category: str | None = None) -> Any:
        return await self.request("/wellness/activities", params=_query(category=category))

    async def complete_wellness_activity(self, completion: dict[str, Any]) -> Any:
        return await self.request("/wellness/complete", method="POST", json_body=completion)

    async def get_wellness_stats(self, user_id: str, period: str = "all") -> Any:
        return await self.request(f"/wellness/stats/{user_id}", params={"period": period})

    # Community
    async def get_community_posts(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
        category: str | None = None,
        search: str | None = None,
    ) -> Any:
        return await self.request(
            "/community/posts",
            params=_query(limit=limit, offset=offset, category=category, search=search),
        )

    async def create_community_post(self, post: dict[str, Any]) -> Any:
        return await self.request("/community/posts", method="POST", json_body=post)

    async def get_community_post(self, post_id: str) -> Any:
        return await self.request(f"/community/posts/{post_id}")

    async def add_community_comment(self, post_id: str, comment: dict[str, Any]) -> Any:
        return await self.request(
            f"/community/posts/{post_id}", method="POST", json_body=comment
        )

    # Parking
    async def search_parking_locations(
        self,
        *,
        lat: float | None = None,
        lng: float | None = None,
        radius: float | None = None,
        limit: int | None = None,
        search: str | None = None,
    ) -> Any:
        return await self.request(
            "/parking/locations",
            params=_query(lat=lat, lng=lng, radius=radius, limit=limit, search=search),
        )

    async def create_parking_location(self, location: dict[str, Any]) -> Any:
        return await self.request("/parking/locations", method="POST", json_body=location)

    async def get_parking_location(self, location_id: str) -> Any:
        return await self.request(f"/parking/locations/{location_id}")

    async def add_parking_review(self, location_id: str, review: dict[str, Any]) -> Any:
        return await self.request(
            f"/parking/locations/{location_id}", method="POST", json_body=review
        )
