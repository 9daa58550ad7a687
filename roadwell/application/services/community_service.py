"""Community posts and comments over the document store.

Reads degrade to an empty list on failure (the failure is logged and
reported in the result). Edits and deletes are limited to the post author.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from roadwell.application.dtos.community import Comment, Post
from roadwell.application.dtos.results import OperationResult
from roadwell.application.dtos.session import SessionUser
from roadwell.application.interfaces.gateways import IDocumentGateway, ISubscription
from roadwell.application.services.session_store import SessionStore
from roadwell.domain.exceptions import (
    ResourceNotFoundException,
    RoadwellException,
    ValidationException,
)
from roadwell.infrastructure.firebase.collections import (
    COLLECTION_POSTS,
    FIELD_COMMENT_COUNT,
    FIELD_CREATED_AT,
    FIELD_LIKE_COUNT,
    comments_path,
)
from roadwell.infrastructure.firebase.document_gateway import QueryFilters
from roadwell.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
FORBIDDEN = "FORBIDDEN"

PostsCallback = Callable[[list[Post]], Awaitable[None] | None]


def _posts(documents: Iterable[dict[str, Any]]) -> list[Post]:
    return [Post.from_document(doc) for doc in documents]


def search_posts(posts: Iterable[Post], term: str) -> list[Post]:
    """Case-insensitive client-side match on content, author and tags."""
    needle = term.strip().lower()
    if not needle:
        return list(posts)
    return [
        post
        for post in posts
        if needle in post.content.lower()
        or needle in post.author.lower()
        or any(needle in tag.lower() for tag in post.tags)
    ]


class CommunityService:
    """Create, list, watch, edit and comment on community posts."""

    def __init__(self, gateway: IDocumentGateway, session_store: SessionStore) -> None:
        self.gateway = gateway
        self.session_store = session_store

    def _user(self) -> SessionUser | None:
        session = self.session_store.get_session()
        return session.user if session else None

    async def create_post(
        self, content: str, tags: Iterable[str] = (), avatar: str = ""
    ) -> OperationResult[str]:
        """Create a post attributed to the signed-in user; returns the new id."""
        user = self._user()
        if user is None:
            return OperationResult.fail("Please sign in to post", NOT_AUTHENTICATED)
        if not content or not content.strip():
            exc = ValidationException("Post content is required", field="content")
            return OperationResult.from_exception(exc)
        fields = {
            "author": user.display_name,
            "authorId": user.id,
            "avatar": avatar,
            "content": content.strip(),
            "tags": list(dict.fromkeys(tags)),
            FIELD_LIKE_COUNT: 0,
            FIELD_COMMENT_COUNT: 0,
        }
        try:
            post_id = await self.gateway.create(COLLECTION_POSTS, fields)
        except RoadwellException as e:
            logger.error("Failed to create post: %s", e.message)
            return OperationResult.from_exception(e)
        return OperationResult.ok(post_id)

    @staticmethod
    def _filters(
        author_id: str | None, tags: Iterable[str] | None, limit: int | None
    ) -> QueryFilters:
        tag_list = list(tags or ())
        return QueryFilters(
            equals={"authorId": author_id} if author_id else {},
            array_contains_any=("tags", tag_list) if tag_list else None,
            limit=limit,
        )

    async def list_posts(
        self,
        *,
        author_id: str | None = None,
        tags: Iterable[str] | None = None,
        limit: int | None = None,
    ) -> OperationResult[list[Post]]:
        """Most recent posts first. On failure data is an empty list."""
        try:
            documents = await self.gateway.list(
                COLLECTION_POSTS, self._filters(author_id, tags, limit)
            )
        except RoadwellException as e:
            logger.error("Failed to list posts: %s", e.message)
            return OperationResult(success=False, data=[], error=e.message, error_code=e.error_code)
        return OperationResult.ok(_posts(documents))

    def subscribe_posts(
        self,
        on_change: PostsCallback,
        *,
        author_id: str | None = None,
        limit: int | None = None,
    ) -> ISubscription:
        """Live post list; on_change gets the full list (empty on query failure)."""

        async def deliver(documents: list[dict[str, Any]]) -> None:
            result = on_change(_posts(documents))
            if inspect.isawaitable(result):
                await result

        return self.gateway.subscribe(
            COLLECTION_POSTS, self._filters(author_id, None, limit), deliver
        )

    async def _check_author(self, post_id: str) -> OperationResult[Any] | None:
        """Return a failed result unless the signed-in user wrote post_id."""
        user = self._user()
        if user is None:
            return OperationResult.fail("Please sign in first", NOT_AUTHENTICATED)
        try:
            doc = await self.gateway.get(COLLECTION_POSTS, post_id)
        except RoadwellException as e:
            return OperationResult.from_exception(e)
        if Post.from_document(doc).author_id != user.id:
            return OperationResult.fail("Only the author can change this post", FORBIDDEN)
        return None

    async def update_post(
        self,
        post_id: str,
        *,
        content: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> OperationResult[None]:
        fields: dict[str, Any] = {}
        if content is not None:
            if not content.strip():
                exc = ValidationException("Post content is required", field="content")
                return OperationResult.from_exception(exc)
            fields["content"] = content.strip()
        if tags is not None:
            fields["tags"] = list(dict.fromkeys(tags))
        if not fields:
            return OperationResult.ok()
        failure = await self._check_author(post_id)
        if failure is not None:
            return failure
        try:
            await self.gateway.update(COLLECTION_POSTS, post_id, fields)
        except RoadwellException as e:
            logger.error("Failed to update post %s: %s", post_id, e.message)
            return OperationResult.from_exception(e)
        return OperationResult.ok()

    async def delete_post(self, post_id: str) -> OperationResult[None]:
        failure = await self._check_author(post_id)
        if failure is not None:
            return failure
        try:
            await self.gateway.delete(COLLECTION_POSTS, post_id)
        except RoadwellException as e:
            logger.error("Failed to delete post %s: %s", post_id, e.message)
            return OperationResult.from_exception(e)
        return OperationResult.ok()

    async def add_comment(self, post_id: str, content: str) -> OperationResult[str]:
        """Add a comment and bump the post's comment counter atomically."""
        user = self._user()
        if user is None:
            return OperationResult.fail("Please sign in to comment", NOT_AUTHENTICATED)
        if not content or not content.strip():
            exc = ValidationException("Comment is required", field="content")
            return OperationResult.from_exception(exc)
        comment_id = generate_cuid()
        batch = self.gateway.batch()
        batch.create(
            f"{comments_path(post_id)}/{comment_id}",
            {"author": user.display_name, "authorId": user.id, "content": content.strip()},
            server_timestamps=(FIELD_CREATED_AT,),
        )
        batch.increment(f"{COLLECTION_POSTS}/{post_id}", FIELD_COMMENT_COUNT, 1)
        try:
            await self.gateway.commit_batch(batch)
        except RoadwellException as e:
            logger.error("Failed to add comment to %s: %s", post_id, e.message)
            return OperationResult.from_exception(e)
        return OperationResult.ok(comment_id)

    async def list_comments(self, post_id: str) -> OperationResult[list[Comment]]:
        """Newest first. On failure data is an empty list."""
        try:
            documents = await self.gateway.list(comments_path(post_id), QueryFilters())
        except RoadwellException as e:
            logger.error("Failed to list comments for %s: %s", post_id, e.message)
            return OperationResult(success=False, data=[], error=e.message, error_code=e.error_code)
        return OperationResult.ok([Comment.from_document(post_id, doc) for doc in documents])

    async def get_post(self, post_id: str) -> OperationResult[Post]:
        try:
            doc = await self.gateway.get(COLLECTION_POSTS, post_id)
        except ResourceNotFoundException:
            return OperationResult.fail("Post not found", "RESOURCE_NOT_FOUND")
        except RoadwellException as e:
            return OperationResult.from_exception(e)
        return OperationResult.ok(Post.from_document(doc))

    def search_posts(self, posts: Iterable[Post], term: str) -> list[Post]:
        return search_posts(posts, term)
