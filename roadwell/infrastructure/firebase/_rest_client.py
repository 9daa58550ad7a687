"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1; an ID
token provider (signed-in user) or the local emulator work as well.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import Any

import httpx

from roadwell.infrastructure.firebase._rest_encoding import (
    _encode_value,
    decode_fields,
    encode_fields,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"
# The emulator accepts this bearer token as an admin bypass of security rules.
_EMULATOR_TOKEN = "owner"

TokenProvider = Callable[[], Awaitable[str | None]]


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class FirestoreRequestError(Exception):
    """Non-success Firestore response (status is the google.rpc code name)."""

    def __init__(self, status_code: int, status: str, message: str) -> None:
        self.status_code = status_code
        self.status = status
        self.message = message
        super().__init__(f"{status_code} {status}: {message}")


class DocumentExistsError(FirestoreRequestError):
    """Raised when a create (or exists=false precondition) hits an existing document."""


class DocumentMissingError(FirestoreRequestError):
    """Raised when a write with an exists=true precondition targets a missing document."""


def _parse_error(resp: httpx.Response) -> FirestoreRequestError:
    status = ""
    message = resp.reason_phrase or ""
    try:
        body = resp.json()
    except (json.JSONDecodeError, ValueError):
        body = None
    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        status = body["error"].get("status") or ""
        message = body["error"].get("message") or message
    if resp.status_code == 409:
        return DocumentExistsError(resp.status_code, status or "ALREADY_EXISTS", message)
    if resp.status_code == 404:
        return DocumentMissingError(resp.status_code, status or "NOT_FOUND", message)
    return FirestoreRequestError(resp.status_code, status, message)


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    *,
    missing_ok: bool = True,
) -> Any:
    """Perform async HTTP request to Firestore REST API.

    404 returns None when missing_ok, otherwise raises DocumentMissingError.
    Other non-2xx responses raise FirestoreRequestError (409 as DocumentExistsError).
    Transport errors (httpx.TransportError) propagate to the caller.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method not in ("GET", "PATCH", "POST", "DELETE"):
        raise ValueError(f"Unsupported method: {method!r}")
    resp = await client.request(method, url, headers=headers, json=body)
    if resp.status_code == 404 and missing_ok:
        return None
    if resp.status_code not in (200, 204):
        raise _parse_error(resp)
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data + server metadata)."""

    def __init__(
        self,
        id_: str,
        data: dict,
        *,
        create_time: str | None = None,
        update_time: str | None = None,
    ):
        self.id = id_
        self._data = data
        self.create_time = create_time
        self.update_time = update_time

    @classmethod
    def from_rest(cls, doc: dict) -> DocumentSnapshot:
        name = doc.get("name", "")
        return cls(
            name.split("/")[-1] if name else "",
            decode_fields(doc.get("fields")),
            create_time=doc.get("createTime"),
            update_time=doc.get("updateTime"),
        )

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        url = f"{self._client.base_url}/{self._path}"
        out = await _request_async(
            self._client._http, url, access_token=await self._client.get_token()
        )
        if not out:
            return None
        return DocumentSnapshot.from_rest(out)

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        url = f"{self._client.base_url}/{self._path}"
        await _request_async(
            self._client._http,
            url,
            method="DELETE",
            access_token=await self._client.get_token(),
        )


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array_contains": "ARRAY_CONTAINS",
    "array-contains": "ARRAY_CONTAINS",
    "array_contains_any": "ARRAY_CONTAINS_ANY",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}

_DIRECTIONS = {"ASCENDING", "DESCENDING"}


def _field_path(name: str) -> str:
    """Quote a field name for a field path when it is not a simple identifier."""
    if name.replace("_", "a").isalnum() and not name[:1].isdigit():
        return name
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


class _Query:
    """Fluent query builder for collection; runs via runQuery (filter/order/limit on server).

    Multiple where() clauses are combined with AND.
    """

    def __init__(
        self,
        client: FirestoreRESTClient,
        parent: str,
        collection_id: str,
    ):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[dict[str, Any]] = []
        self._order_by: list[dict[str, Any]] = []
        self._limit: int | None = None

    def where(self, field: str, op: str, value: Any) -> _Query:
        self._filters.append(
            {
                "fieldFilter": {
                    "field": {"fieldPath": _field_path(field)},
                    "op": _OP_MAP.get(op, op),
                    "value": _encode_value(value),
                }
            }
        )
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> _Query:
        direction = direction.upper()
        if direction not in _DIRECTIONS:
            raise ValueError(f"Unsupported order direction: {direction!r}")
        self._order_by.append(
            {"field": {"fieldPath": _field_path(field)}, "direction": direction}
        )
        return self

    def limit(self, n: int | None) -> _Query:
        self._limit = n
        return self

    def to_structured_query(self) -> dict[str, Any]:
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        if len(self._filters) == 1:
            structured["where"] = self._filters[0]
        elif self._filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": list(self._filters)}
            }
        if self._order_by:
            structured["orderBy"] = list(self._order_by)
        if self._limit:
            structured["limit"] = self._limit
        return structured

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        url = f"{self._client.base_url}/{self._parent}:runQuery"
        body = {"structuredQuery": self.to_structured_query()}
        resp = await _request_async(
            self._client._http,
            url,
            method="POST",
            body=body,
            access_token=await self._client.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            yield DocumentSnapshot.from_rest(item["document"])


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    def query(self) -> _Query:
        """Start an unfiltered query. Use .where(), .order_by(), .limit(), then .stream()."""
        parent, collection_id = self._path.rsplit("/", 1)
        return _Query(self._client, parent, collection_id)


class WriteBatch:
    """Writes committed atomically through documents:commit.

    Paths are relative to the database root (e.g. "posts/abc/likes/u1").
    server_timestamps names fields set to the commit time by the server.
    """

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._writes: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._writes)

    def _update_write(
        self,
        path: str,
        data: dict[str, Any],
        *,
        mask: Iterable[str] | None,
        exists: bool | None,
        server_timestamps: Iterable[str],
    ) -> dict[str, Any]:
        write: dict[str, Any] = {
            "update": {
                "name": self._client.document_name(path),
                "fields": encode_fields(data),
            }
        }
        if mask is not None:
            write["updateMask"] = {"fieldPaths": [_field_path(k) for k in mask]}
        if exists is not None:
            write["currentDocument"] = {"exists": exists}
        transforms = [
            {"fieldPath": _field_path(f), "setToServerValue": "REQUEST_TIME"}
            for f in server_timestamps
        ]
        if transforms:
            write["updateTransforms"] = transforms
        return write

    def create(
        self,
        path: str,
        data: dict[str, Any],
        *,
        server_timestamps: Iterable[str] = (),
    ) -> WriteBatch:
        """Create a document; the commit fails if it already exists."""
        self._writes.append(
            self._update_write(
                path, data, mask=None, exists=False, server_timestamps=server_timestamps
            )
        )
        return self

    def set(
        self,
        path: str,
        data: dict[str, Any],
        *,
        merge: bool = False,
        server_timestamps: Iterable[str] = (),
    ) -> WriteBatch:
        """Upsert a document; with merge only the given fields are replaced."""
        self._writes.append(
            self._update_write(
                path,
                data,
                mask=list(data) if merge else None,
                exists=None,
                server_timestamps=server_timestamps,
            )
        )
        return self

    def update(
        self,
        path: str,
        data: dict[str, Any],
        *,
        server_timestamps: Iterable[str] = (),
    ) -> WriteBatch:
        """Merge fields into an existing document; fails if it is missing."""
        self._writes.append(
            self._update_write(
                path,
                data,
                mask=list(data),
                exists=True,
                server_timestamps=server_timestamps,
            )
        )
        return self

    def delete(self, path: str, *, must_exist: bool = False) -> WriteBatch:
        write: dict[str, Any] = {"delete": self._client.document_name(path)}
        if must_exist:
            write["currentDocument"] = {"exists": True}
        self._writes.append(write)
        return self

    def increment(self, path: str, field: str, delta: int | float) -> WriteBatch:
        """Server-side atomic increment of a numeric field."""
        self._writes.append(
            {
                "transform": {
                    "document": self._client.document_name(path),
                    "fieldTransforms": [
                        {"fieldPath": _field_path(field), "increment": _encode_value(delta)}
                    ],
                }
            }
        )
        return self

    async def commit(self) -> dict[str, Any]:
        """Apply all writes atomically. Returns the commit response."""
        if not self._writes:
            return {}
        url = f"{self._client.base_url}/{self._client.database_path}/documents:commit"
        out = await _request_async(
            self._client._http,
            url,
            method="POST",
            body={"writes": self._writes},
            access_token=await self._client.get_token(),
            missing_ok=False,
        )
        self._writes = []
        return out or {}


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin).

    Auth, in order of precedence: token_provider (e.g. the signed-in user's
    ID token), service account credentials, emulator bypass token.
    """

    def __init__(
        self,
        project_id: str,
        credentials=None,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = _BASE,
        token_provider: TokenProvider | None = None,
        emulator: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self._credentials = credentials
        self._token_provider = token_provider
        self._emulator = emulator
        self.base_url = base_url.rstrip("/")
        self.database_path = f"projects/{project_id}/databases/(default)"
        self._prefix = f"{self.database_path}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        """Return a bearer token; service account refresh runs in a thread."""
        if self._token_provider is not None:
            token = await self._token_provider()
            if token:
                return token
        if self._credentials is not None:
            return await asyncio.to_thread(_get_access_token, self._credentials)
        if self._emulator:
            return _EMULATOR_TOKEN
        return None

    def document_name(self, path: str) -> str:
        """Full resource name for a document path relative to the database root."""
        return f"{self._prefix}/{path.strip('/')}"

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id.strip('/')}")

    def document(self, path: str) -> DocumentReference:
        return DocumentReference(self, self.document_name(path))

    def batch(self) -> WriteBatch:
        return WriteBatch(self)
