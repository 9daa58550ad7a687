"""Document store gateway over the Firestore REST client.

Collection paths may be nested (e.g. "posts/{post_id}/likes"). Documents are
returned as plain dicts of decoded fields plus "id". Transport and API errors
are translated into domain exceptions; no httpx exception escapes.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError

from roadwell.application.interfaces.gateways import SnapshotCallback
from roadwell.domain.exceptions import (
    PreconditionFailedException,
    QueryIndexMissingException,
    RemoteApiException,
    RemoteUnavailableException,
    ResourceNotFoundException,
    RoadwellException,
    UnconfiguredException,
    UnknownException,
)
from roadwell.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentMissingError,
    DocumentSnapshot,
    FirestoreRESTClient,
    FirestoreRequestError,
    WriteBatch,
)
from roadwell.infrastructure.firebase.collections import FIELD_CREATED_AT, FIELD_UPDATED_AT
from roadwell.infrastructure.firebase.subscriptions import Subscription
from roadwell.shared.telemetry.tracing import add_span_attributes, traced
from roadwell.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

_SERVICE = "Firestore"


@dataclass(frozen=True)
class QueryFilters:
    """Conjunctive query over one collection.

    equals: field -> value equality clauses (AND).
    array_contains_any: optional (field, values) clause.
    order_by: field to sort on (None for no ordering); newest first by default.
    """

    equals: dict[str, Any] = field(default_factory=dict)
    array_contains_any: tuple[str, list[Any]] | None = None
    order_by: str | None = FIELD_CREATED_AT
    descending: bool = True
    limit: int | None = None


def _to_document(snapshot: DocumentSnapshot) -> dict[str, Any]:
    return {**snapshot.to_dict(), "id": snapshot.id}


def _is_index_error(err: FirestoreRequestError) -> bool:
    return err.status == "FAILED_PRECONDITION" and "index" in err.message.lower()


@asynccontextmanager
async def _translate_errors(collection: str) -> AsyncIterator[None]:
    """Map transport and Firestore errors onto the domain exception taxonomy."""
    try:
        yield
    except RoadwellException:
        raise
    except httpx.TransportError as e:
        logger.warning("Firestore request failed for %s: %s", collection, e)
        raise RemoteUnavailableException(_SERVICE) from e
    except GoogleAuthError as e:
        logger.error("Firestore credentials rejected: %s", e)
        raise UnconfiguredException("Firestore credentials") from e
    except (DocumentExistsError, DocumentMissingError) as e:
        raise PreconditionFailedException(e.message or str(e)) from e
    except FirestoreRequestError as e:
        if _is_index_error(e):
            logger.error("Missing Firestore index for %s: %s", collection, e.message)
            raise QueryIndexMissingException(collection, e.message) from e
        if e.status == "FAILED_PRECONDITION":
            raise PreconditionFailedException(e.message) from e
        if e.status_code == 401:
            raise UnconfiguredException("Firestore credentials") from e
        raise RemoteApiException(e.status_code, e.message or e.status, collection) from e
    except Exception as e:
        logger.exception("Unexpected Firestore error for %s", collection)
        raise UnknownException() from e


class DocumentStoreGateway:
    """CRUD, atomic batches and polled live queries over Firestore."""

    def __init__(
        self,
        client: FirestoreRESTClient,
        *,
        poll_interval: float = 5.0,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._subscriptions: set[Subscription] = set()

    @staticmethod
    def _path(collection: str, document_id: str) -> str:
        return f"{collection.strip('/')}/{document_id}"

    @traced("firestore.create")
    async def create(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Create a document with server-set createdAt/updatedAt; return its id."""
        document_id = document_id or generate_cuid()
        batch = self._client.batch().create(
            self._path(collection, document_id),
            fields,
            server_timestamps=(FIELD_CREATED_AT, FIELD_UPDATED_AT),
        )
        async with _translate_errors(collection):
            await batch.commit()
        return document_id

    @traced("firestore.get")
    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        async with _translate_errors(collection):
            snapshot = await self._client.document(
                self._path(collection, document_id)
            ).get()
        if snapshot is None:
            raise ResourceNotFoundException(collection, document_id)
        return _to_document(snapshot)

    @traced("firestore.exists")
    async def exists(self, collection: str, document_id: str) -> bool:
        async with _translate_errors(collection):
            snapshot = await self._client.document(
                self._path(collection, document_id)
            ).get()
        return snapshot is not None

    @traced("firestore.list")
    async def list(
        self, collection: str, filters: QueryFilters | None = None
    ) -> list[dict[str, Any]]:
        """Run a structured query; results ordered by filters.order_by."""
        filters = filters or QueryFilters()
        query = self._client.collection(collection).query()
        for name, value in filters.equals.items():
            query = query.where(name, "==", value)
        if filters.array_contains_any is not None:
            name, values = filters.array_contains_any
            query = query.where(name, "array_contains_any", list(values))
        if filters.order_by:
            query = query.order_by(
                filters.order_by, "DESCENDING" if filters.descending else "ASCENDING"
            )
        if filters.limit:
            query = query.limit(filters.limit)
        async with _translate_errors(collection):
            documents = [_to_document(s) async for s in query.stream()]
        add_span_attributes(collection=collection, result_count=len(documents))
        return documents

    @traced("firestore.update")
    async def update(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        """Merge fields into an existing document and refresh updatedAt."""
        batch = self._client.batch().update(
            self._path(collection, document_id),
            fields,
            server_timestamps=(FIELD_UPDATED_AT,),
        )
        try:
            async with _translate_errors(collection):
                await batch.commit()
        except PreconditionFailedException as e:
            if isinstance(e.__cause__, DocumentMissingError):
                raise ResourceNotFoundException(collection, document_id) from e
            raise

    @traced("firestore.set")
    async def set(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        *,
        merge: bool = True,
    ) -> None:
        """Upsert a document with a known id; updatedAt is refreshed."""
        batch = self._client.batch().set(
            self._path(collection, document_id),
            fields,
            merge=merge,
            server_timestamps=(FIELD_UPDATED_AT,),
        )
        async with _translate_errors(collection):
            await batch.commit()

    @traced("firestore.delete")
    async def delete(self, collection: str, document_id: str) -> None:
        async with _translate_errors(collection):
            await self._client.document(self._path(collection, document_id)).delete()

    @traced("firestore.increment_counter")
    async def increment_counter(
        self, collection: str, document_id: str, field: str, delta: int
    ) -> None:
        """Atomically add delta to a numeric field on the server."""
        batch = self._client.batch().increment(
            self._path(collection, document_id), field, delta
        )
        async with _translate_errors(collection):
            await batch.commit()

    def batch(self) -> WriteBatch:
        return self._client.batch()

    @traced("firestore.commit_batch")
    async def commit_batch(self, batch: WriteBatch) -> None:
        """Commit all writes atomically; a failed precondition raises PreconditionFailedException."""
        async with _translate_errors("batch"):
            await batch.commit()

    def subscribe(
        self,
        collection: str,
        filters: QueryFilters | None,
        on_change: SnapshotCallback,
    ) -> Subscription:
        """Start a polled live query. The caller owns the returned subscription."""
        subscription = Subscription(
            lambda: self.list(collection, filters),
            on_change,
            interval=self._poll_interval,
            name=collection,
            on_close=self._subscriptions.discard,
        )
        self._subscriptions.add(subscription)
        subscription.start()
        return subscription

    async def aclose(self) -> None:
        """Cancel live subscriptions and close the underlying client."""
        for subscription in list(self._subscriptions):
            await subscription.aclose()
        await self._client.aclose()
