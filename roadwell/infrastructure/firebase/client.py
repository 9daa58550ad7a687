"""Firestore client factory (REST-based, no firebase-admin).

Credentials come from FIREBASE_SERVICE_ACCOUNT_KEY (JSON string) or
FIREBASE_SERVICE_ACCOUNT_PATH (file path). With FIRESTORE_EMULATOR_HOST set
the client talks to the local emulator and needs no credentials. Without
either, requests carry the signed-in user's ID token via token_provider.
"""

import json
import logging
from pathlib import Path

import httpx

from roadwell.core.config import Settings
from roadwell.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    TokenProvider,
    _get_credentials,
)

logger = logging.getLogger(__name__)


def _load_key_dict(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path."""
    key_json = (
        settings.firebase_service_account_key.get_secret_value()
        if settings.firebase_service_account_key
        else None
    )
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            logger.warning(
                "FIREBASE_SERVICE_ACCOUNT_PATH set but file not found: %s (resolved: %s)",
                path,
                resolved,
            )
            return None
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def create_firestore_client(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    token_provider: TokenProvider | None = None,
) -> FirestoreRESTClient | None:
    """Build the Firestore client, or return None when Firestore is not configured.

    Project id comes from the service account JSON when present, else from
    FIREBASE_PROJECT_ID. Invalid service account JSON raises ValueError.
    """
    key_dict = _load_key_dict(settings)
    project_id = (key_dict or {}).get("project_id") or settings.firebase_project_id
    if not project_id:
        logger.warning("Firestore disabled: no project id configured")
        return None

    timeout = settings.firebase_timeout_seconds
    if settings.firestore_emulator_host:
        host = settings.firestore_emulator_host.removeprefix("http://")
        logger.info("Using Firestore emulator at %s", host)
        return FirestoreRESTClient(
            project_id,
            http_client=http_client,
            base_url=f"http://{host}/v1",
            token_provider=token_provider,
            emulator=True,
            timeout=timeout,
        )

    credentials = _get_credentials(key_dict) if key_dict else None
    if credentials is None and token_provider is None:
        logger.warning(
            "Firestore has neither service account credentials nor a token provider; "
            "requests will be unauthenticated"
        )
    return FirestoreRESTClient(
        project_id,
        credentials,
        http_client=http_client,
        token_provider=token_provider,
        timeout=timeout,
    )
