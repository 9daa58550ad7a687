"""Secure key/value stores.

EncryptedFileSecureStore keeps a single Fernet-encrypted JSON file; the key
is derived from SECRET_KEY and ENCRYPTION_SALT with PBKDF2-HMAC-SHA256.
InMemorySecureStore is used when no store path is configured and in tests.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import threading
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from roadwell.core.config import Settings

logger = logging.getLogger(__name__)

DECRYPTION_ERROR_MSG = "Failed to decrypt secure store - invalid key or corrupted data"


def derive_store_key(secret: str, salt: str) -> bytes:
    """Derive a Fernet key from secret + salt via PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt.encode("utf-8"),
        iterations=100_000,
    )
    return base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))


class InMemorySecureStore:
    """Process-local store; nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete_item(self, key: str) -> None:
        self._items.pop(key, None)


class EncryptedFileSecureStore:
    """Fernet-encrypted JSON file. Writes go to a temp file then os.replace."""

    def __init__(self, path: str | os.PathLike[str], key: bytes) -> None:
        self._path = Path(path).expanduser()
        self._fernet = Fernet(key)
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, str]:
        if not self._path.is_file():
            return {}
        raw = self._path.read_bytes()
        if not raw.strip():
            return {}
        try:
            decrypted = self._fernet.decrypt(raw)
        except InvalidToken as e:
            raise ValueError(DECRYPTION_ERROR_MSG) from e
        try:
            data = json.loads(decrypted.decode("utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError("Secure store content is not valid JSON") from e
        if not isinstance(data, dict):
            raise ValueError("Secure store content must be a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        token = self._fernet.encrypt(json.dumps(items).encode("utf-8"))
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_bytes(token)
        os.chmod(tmp, 0o600)
        os.replace(tmp, self._path)

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read_all()
            items[key] = value
            self._write_all(items)

    def delete_item(self, key: str) -> None:
        with self._lock:
            items = self._read_all()
            if key in items:
                del items[key]
                self._write_all(items)


def create_secure_store(settings: Settings) -> EncryptedFileSecureStore | InMemorySecureStore:
    """Build the store selected by SECURE_STORE_PATH (in-memory when unset)."""
    if not settings.secure_store_path:
        logger.warning(
            "SECURE_STORE_PATH not set: sessions and API keys are kept in memory only"
        )
        return InMemorySecureStore()
    key = derive_store_key(
        settings.secret_key.get_secret_value(),
        settings.encryption_salt.get_secret_value(),
    )
    return EncryptedFileSecureStore(settings.secure_store_path, key)
