"""Optimistic like toggles.

The local liked state flips before any await, then the like record and the
post's like counter are written in one atomic batch. On failure the flip is
reverted and a failed LikeToggleResult carries the message for the UI.
Concurrent toggles of the same post are not serialized.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from roadwell.application.dtos.community import Like
from roadwell.application.dtos.results import LikeToggleResult
from roadwell.application.interfaces.gateways import IDocumentGateway
from roadwell.domain.enums import LikePhase
from roadwell.domain.exceptions import PreconditionFailedException, RoadwellException
from roadwell.infrastructure.firebase.collections import (
    COLLECTION_POSTS,
    FIELD_CREATED_AT,
    FIELD_LIKE_COUNT,
    likes_path,
)

logger = logging.getLogger(__name__)

LIKE_FAILED_MSG = "Failed to update like"


class LikeController:
    """Per-user liked set with optimistic writes and rollback."""

    def __init__(self, gateway: IDocumentGateway, user_id: str) -> None:
        if not user_id:
            raise ValueError("LikeController requires a signed-in user id")
        self._gateway = gateway
        self._user_id = user_id
        self._liked: set[str] = set()
        self._phases: dict[str, LikePhase] = {}

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def liked_set(self) -> frozenset[str]:
        return frozenset(self._liked)

    def is_liked(self, post_id: str) -> bool:
        return post_id in self._liked

    def phase(self, post_id: str) -> LikePhase:
        return self._phases.get(post_id, LikePhase.IDLE)

    def _set_liked(self, post_id: str, liked: bool) -> None:
        if liked:
            self._liked.add(post_id)
        else:
            self._liked.discard(post_id)

    async def _commit(self, post_id: str, liked: bool) -> None:
        like_doc = f"{likes_path(post_id)}/{self._user_id}"
        post_doc = f"{COLLECTION_POSTS}/{post_id}"
        batch = self._gateway.batch()
        if liked:
            batch.create(
                like_doc,
                Like(post_id, self._user_id).to_document(),
                server_timestamps=(FIELD_CREATED_AT,),
            )
            batch.increment(post_doc, FIELD_LIKE_COUNT, 1)
        else:
            batch.delete(like_doc, must_exist=True)
            batch.increment(post_doc, FIELD_LIKE_COUNT, -1)
        await self._gateway.commit_batch(batch)

    async def toggle(self, post_id: str) -> LikeToggleResult:
        """Flip the like state for post_id and persist it."""
        was_liked = post_id in self._liked
        target = not was_liked
        self._set_liked(post_id, target)
        self._phases[post_id] = LikePhase.OPTIMISTIC
        try:
            await self._commit(post_id, target)
        except PreconditionFailedException:
            # Remote already holds the target state; no counter change was applied.
            logger.info("Like on %s already %s remotely", post_id, "set" if target else "cleared")
        except RoadwellException as e:
            logger.warning("Like toggle on %s failed, rolling back: %s", post_id, e.message)
            self._set_liked(post_id, was_liked)
            self._phases[post_id] = LikePhase.ROLLED_BACK
            return LikeToggleResult(post_id, was_liked, success=False, error=LIKE_FAILED_MSG)
        self._phases[post_id] = LikePhase.CONFIRMED
        return LikeToggleResult(post_id, target, success=True)

    async def hydrate(self, post_ids: Iterable[str]) -> frozenset[str]:
        """Load liked state for post_ids from the like records (concurrently).

        Posts whose lookup fails keep their current local state.
        """
        ids = list(dict.fromkeys(post_ids))
        results = await asyncio.gather(
            *(self._gateway.exists(likes_path(pid), self._user_id) for pid in ids),
            return_exceptions=True,
        )
        for post_id, result in zip(ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("Could not load like state for %s: %s", post_id, result)
                continue
            self._set_liked(post_id, bool(result))
        return self.liked_set
