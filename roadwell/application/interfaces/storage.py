"""Secure key/value storage port."""

from typing import Protocol


class ISecureStore(Protocol):
    """Platform-scoped durable storage for small secrets (tokens, keys).

    Implementations raise OSError/ValueError on I/O or decryption failure;
    callers decide whether a failure is fatal.
    """

    def get_item(self, key: str) -> str | None:
        """Return the stored value or None."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store value under key (overwrites)."""
        ...

    def delete_item(self, key: str) -> None:
        """Remove key; no-op if missing."""
        ...
