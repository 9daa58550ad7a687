"""Firebase Auth via the Identity Toolkit REST API (email/password accounts).

Provider error codes (REST "EMAIL_EXISTS", "WEAK_PASSWORD : ..." and SDK
"auth/email-already-in-use" styles) are mapped to AuthErrorCode.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from roadwell.domain.enums import AuthErrorCode
from roadwell.domain.exceptions import AuthException

logger = logging.getLogger(__name__)

_PROVIDER_CODES: dict[str, AuthErrorCode] = {
    "EMAIL_EXISTS": AuthErrorCode.EMAIL_IN_USE,
    "INVALID_EMAIL": AuthErrorCode.INVALID_EMAIL,
    "MISSING_EMAIL": AuthErrorCode.INVALID_EMAIL,
    "WEAK_PASSWORD": AuthErrorCode.WEAK_PASSWORD,
    "MISSING_PASSWORD": AuthErrorCode.WEAK_PASSWORD,
    "USER_DISABLED": AuthErrorCode.USER_DISABLED,
    "EMAIL_NOT_FOUND": AuthErrorCode.USER_NOT_FOUND,
    "USER_NOT_FOUND": AuthErrorCode.USER_NOT_FOUND,
    "INVALID_PASSWORD": AuthErrorCode.WRONG_PASSWORD,
    "INVALID_LOGIN_CREDENTIALS": AuthErrorCode.INVALID_CREDENTIAL,
    "INVALID_ID_TOKEN": AuthErrorCode.INVALID_CREDENTIAL,
    "TOKEN_EXPIRED": AuthErrorCode.INVALID_CREDENTIAL,
    "INVALID_REFRESH_TOKEN": AuthErrorCode.INVALID_CREDENTIAL,
    "MISSING_REFRESH_TOKEN": AuthErrorCode.INVALID_CREDENTIAL,
    "TOO_MANY_ATTEMPTS_TRY_LATER": AuthErrorCode.RATE_LIMITED,
    "OPERATION_NOT_ALLOWED": AuthErrorCode.OPERATION_NOT_ALLOWED,
    "PASSWORD_LOGIN_DISABLED": AuthErrorCode.OPERATION_NOT_ALLOWED,
    "auth/email-already-in-use": AuthErrorCode.EMAIL_IN_USE,
    "auth/invalid-email": AuthErrorCode.INVALID_EMAIL,
    "auth/weak-password": AuthErrorCode.WEAK_PASSWORD,
    "auth/user-disabled": AuthErrorCode.USER_DISABLED,
    "auth/user-not-found": AuthErrorCode.USER_NOT_FOUND,
    "auth/wrong-password": AuthErrorCode.WRONG_PASSWORD,
    "auth/invalid-credential": AuthErrorCode.INVALID_CREDENTIAL,
    "auth/too-many-requests": AuthErrorCode.RATE_LIMITED,
    "auth/network-request-failed": AuthErrorCode.NETWORK_ERROR,
    "auth/operation-not-allowed": AuthErrorCode.OPERATION_NOT_ALLOWED,
}


def map_provider_error(raw: str | None) -> AuthErrorCode:
    """Map a raw provider error code to AuthErrorCode (UNKNOWN when unmapped).

    REST messages may carry a detail suffix ("WEAK_PASSWORD : Password should be ...").
    """
    if not raw:
        return AuthErrorCode.UNKNOWN
    key = raw.split(" : ", 1)[0].strip()
    return _PROVIDER_CODES.get(key, AuthErrorCode.UNKNOWN)


class IdentityToolkitClient:
    """Minimal async Identity Toolkit client (accounts:* endpoints plus token refresh)."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
        secure_token_base_url: str = "https://securetoken.googleapis.com/v1",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._secure_token_base_url = secure_token_base_url.rstrip("/")
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _post(self, method: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._send(method, f"{self._base_url}/accounts:{method}", json=body)

    async def _send(self, method: str, url: str, **body: Any) -> dict[str, Any]:
        try:
            resp = await self._http.post(url, params={"key": self._api_key}, **body)
        except httpx.TransportError as e:
            logger.warning("Identity Toolkit %s failed: %s", method, e)
            raise AuthException(AuthErrorCode.NETWORK_ERROR) from e
        try:
            payload = resp.json() if resp.content else {}
        except (json.JSONDecodeError, ValueError):
            payload = {}
        if resp.is_success:
            return payload
        raw = (payload.get("error") or {}).get("message") if isinstance(payload, dict) else None
        code = map_provider_error(raw)
        if code is AuthErrorCode.UNKNOWN:
            logger.error(
                "Identity Toolkit %s returned %s: %s", method, resp.status_code, raw
            )
        raise AuthException(code)

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        """Create an email/password account. Returns idToken, localId, refreshToken."""
        return await self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        return await self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )

    async def update_profile(self, id_token: str, display_name: str) -> dict[str, Any]:
        """Set the account display name."""
        return await self._post(
            "update",
            {"idToken": id_token, "displayName": display_name, "returnSecureToken": False},
        )

    async def lookup(self, id_token: str) -> dict[str, Any] | None:
        """Return the account record for id_token, or None."""
        payload = await self._post("lookup", {"idToken": id_token})
        users = payload.get("users") or []
        return users[0] if users else None

    async def refresh_id_token(self, refresh_token: str) -> dict[str, Any]:
        """Exchange a refresh token for a new ID token (securetoken token endpoint).

        The response uses snake_case keys; they are returned in the accounts:*
        shape (idToken, refreshToken, expiresIn, localId).
        """
        payload = await self._send(
            "token",
            f"{self._secure_token_base_url}/token",
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        return {
            "idToken": payload.get("id_token"),
            "refreshToken": payload.get("refresh_token") or refresh_token,
            "expiresIn": payload.get("expires_in"),
            "localId": payload.get("user_id"),
        }
