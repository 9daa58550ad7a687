"""Durable secure storage for session tokens and credentials."""

from roadwell.infrastructure.storage.keys import (
    API_KEY_STORAGE_KEY,
    AUTH_SESSION_KEY,
    DIRECT_CONNECTION_STRING_KEY,
    DIRECT_EMAIL_KEY,
    DIRECT_USER_ID_KEY,
)
from roadwell.infrastructure.storage.secure_store import (
    EncryptedFileSecureStore,
    InMemorySecureStore,
    create_secure_store,
)

__all__ = [
    "API_KEY_STORAGE_KEY",
    "AUTH_SESSION_KEY",
    "DIRECT_CONNECTION_STRING_KEY",
    "DIRECT_EMAIL_KEY",
    "DIRECT_USER_ID_KEY",
    "EncryptedFileSecureStore",
    "InMemorySecureStore",
    "create_secure_store",
]
