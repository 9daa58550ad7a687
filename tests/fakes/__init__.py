"""In-memory FastAPI stand-ins for the remote services, served over ASGITransport."""

import httpx
from fastapi import FastAPI

from tests.fakes.firestore import FakeFirestore
from tests.fakes.identity_toolkit import FakeIdentityToolkit
from tests.fakes.remote_api import FakeRemoteApi, RecordedRequest

FIRESTORE_BASE = "http://firestore.test/v1"
IDENTITY_BASE = "http://identity.test/v1"
REMOTE_BASE = "http://remote.test"


def asgi_client(app: FastAPI) -> httpx.AsyncClient:
    """Async HTTP client that routes every request to app."""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app))


__all__ = [
    "FIRESTORE_BASE",
    "IDENTITY_BASE",
    "REMOTE_BASE",
    "FakeFirestore",
    "FakeIdentityToolkit",
    "FakeRemoteApi",
    "RecordedRequest",
    "asgi_client",
]
