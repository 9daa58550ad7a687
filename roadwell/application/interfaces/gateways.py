"""Document store gateway port used by community, advocacy and like services."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from roadwell.infrastructure.firebase.document_gateway import QueryFilters
    from roadwell.infrastructure.firebase._rest_client import WriteBatch

SnapshotCallback = Callable[[list[dict[str, Any]]], Awaitable[None] | None]


class ISubscription(Protocol):
    """Handle for a live query; must be torn down by its owner."""

    def unsubscribe(self) -> None:
        """Stop delivering snapshots."""
        ...

    @property
    def active(self) -> bool:
        """True until unsubscribed."""
        ...


class IDocumentGateway(Protocol):
    """CRUD + live subscription over a schemaless document store."""

    async def create(
        self, collection: str, fields: dict[str, Any], document_id: str | None = None
    ) -> str:
        """Create a document with server timestamps; return its id."""
        ...

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        """Return document fields plus 'id'; raise ResourceNotFoundException."""
        ...

    async def exists(self, collection: str, document_id: str) -> bool:
        """Return True if the document exists."""
        ...

    async def list(
        self, collection: str, filters: QueryFilters | None = None
    ) -> list[dict[str, Any]]:
        """Return matching documents (most recent first by default)."""
        ...

    async def update(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        """Merge fields into an existing document and refresh updatedAt."""
        ...

    async def set(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        *,
        merge: bool = True,
    ) -> None:
        """Upsert a document with a known id."""
        ...

    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document (idempotent)."""
        ...

    async def increment_counter(
        self, collection: str, document_id: str, field: str, delta: int
    ) -> None:
        """Atomically add delta to a derived counter."""
        ...

    def batch(self) -> WriteBatch:
        """Return a write batch committed atomically with commit_batch."""
        ...

    async def commit_batch(self, batch: WriteBatch) -> None:
        """Commit all writes in batch atomically."""
        ...

    def subscribe(
        self,
        collection: str,
        filters: QueryFilters | None,
        on_change: SnapshotCallback,
    ) -> ISubscription:
        """Start a live query pushing full result sets to on_change."""
        ...
