"""Driver advocacy messages: tag selection, submission and the driver's own history."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from roadwell.application.dtos.advocacy import AdvocacyMessage
from roadwell.application.dtos.results import OperationResult
from roadwell.application.interfaces.gateways import IDocumentGateway
from roadwell.application.services.session_store import SessionStore
from roadwell.domain.enums import AdvocacyStatus, AdvocacyTag
from roadwell.domain.exceptions import RoadwellException, ValidationException
from roadwell.infrastructure.firebase.collections import COLLECTION_ADVOCACIES
from roadwell.infrastructure.firebase.document_gateway import QueryFilters

logger = logging.getLogger(__name__)

MAX_TAGS = 3


class TagSelection:
    """Ordered selection of at most MAX_TAGS known advocacy tags."""

    def __init__(self, tags: Iterable[str] = ()) -> None:
        self._tags: list[str] = []
        for tag in tags:
            self.add(tag)

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def add(self, tag: str | AdvocacyTag) -> None:
        """Select tag. Raises ValidationException for unknown tags or a fourth tag."""
        value = tag.value if isinstance(tag, AdvocacyTag) else tag
        if value not in AdvocacyTag.values():
            raise ValidationException(f"Unknown tag: {value}", field="tags")
        if value in self._tags:
            return
        if len(self._tags) >= MAX_TAGS:
            raise ValidationException(
                f"You can select up to {MAX_TAGS} tags", field="tags"
            )
        self._tags.append(value)

    def remove(self, tag: str | AdvocacyTag) -> None:
        value = tag.value if isinstance(tag, AdvocacyTag) else tag
        if value in self._tags:
            self._tags.remove(value)

    def toggle(self, tag: str | AdvocacyTag) -> None:
        value = tag.value if isinstance(tag, AdvocacyTag) else tag
        if value in self._tags:
            self.remove(value)
        else:
            self.add(value)

    def clear(self) -> None:
        self._tags.clear()


class AdvocacyService:
    """Submit and review advocacy messages for the signed-in driver."""

    def __init__(self, gateway: IDocumentGateway, session_store: SessionStore) -> None:
        self.gateway = gateway
        self.session_store = session_store

    async def submit(
        self,
        message: str,
        tags: TagSelection | Iterable[str],
        *,
        is_voice_recording: bool = False,
    ) -> OperationResult[AdvocacyMessage]:
        """Validate, then create a pending advocacy record."""
        session = self.session_store.get_session()
        try:
            if not message or not message.strip():
                raise ValidationException("Please enter your message", field="message")
            selection = tags if isinstance(tags, TagSelection) else TagSelection(tags)
            if not len(selection):
                raise ValidationException("Please select at least one tag", field="tags")
        except ValidationException as e:
            return OperationResult.from_exception(e)
        if session is None:
            return OperationResult.fail(
                "Please sign in to submit a message", "NOT_AUTHENTICATED"
            )
        user = session.user
        fields = {
            "userId": user.id,
            "userName": user.name or "Anonymous",
            "userEmail": user.email,
            "message": message.strip(),
            "tags": list(selection.tags),
            "status": AdvocacyStatus.PENDING.value,
            "isVoiceRecording": is_voice_recording,
        }
        try:
            advocacy_id = await self.gateway.create(COLLECTION_ADVOCACIES, fields)
        except RoadwellException as e:
            logger.error("Failed to submit advocacy message: %s", e.message)
            return OperationResult.from_exception(e)
        logger.info("Advocacy message %s submitted", advocacy_id)
        return OperationResult.ok(AdvocacyMessage.from_document({**fields, "id": advocacy_id}))

    async def _list(self, filters: QueryFilters) -> OperationResult[list[AdvocacyMessage]]:
        try:
            documents = await self.gateway.list(COLLECTION_ADVOCACIES, filters)
        except RoadwellException as e:
            logger.error("Failed to load advocacy messages: %s", e.message)
            return OperationResult(success=False, data=[], error=e.message, error_code=e.error_code)
        return OperationResult.ok([AdvocacyMessage.from_document(doc) for doc in documents])

    async def list_mine(self) -> OperationResult[list[AdvocacyMessage]]:
        """Signed-in driver's messages, newest first; empty on failure."""
        session = self.session_store.get_session()
        if session is None:
            return OperationResult(
                success=False, data=[], error="Not authenticated", error_code="NOT_AUTHENTICATED"
            )
        return await self._list(QueryFilters(equals={"userId": session.user.id}))

    async def list_all(
        self,
        *,
        status: AdvocacyStatus | None = None,
        tags: Iterable[str] | None = None,
        limit: int | None = None,
    ) -> OperationResult[list[AdvocacyMessage]]:
        """Review queue across all drivers."""
        tag_list = list(tags or ())
        return await self._list(
            QueryFilters(
                equals={"status": status.value} if status else {},
                array_contains_any=("tags", tag_list) if tag_list else None,
                limit=limit,
            )
        )

    async def delete(
        self, advocacy_id: str, messages: Iterable[AdvocacyMessage]
    ) -> OperationResult[list[AdvocacyMessage]]:
        """Delete remotely, then return messages without advocacy_id.

        On failure the local list is returned unchanged.
        """
        current = list(messages)
        try:
            await self.gateway.delete(COLLECTION_ADVOCACIES, advocacy_id)
        except RoadwellException as e:
            logger.error("Failed to delete advocacy message %s: %s", advocacy_id, e.message)
            return OperationResult(
                success=False, data=current, error="Failed to delete message",
                error_code=e.error_code,
            )
        return OperationResult.ok([m for m in current if m.id != advocacy_id])
