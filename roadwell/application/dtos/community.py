"""DTOs for community posts, comments and likes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from roadwell.shared.utils.datetime import parse_timestamp


def _count(data: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


@dataclass(frozen=True)
class Post:
    """Community post. like_count and comment_count are derived counters."""

    id: str
    author: str
    author_id: str
    content: str
    avatar: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)
    like_count: int = 0
    comment_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Post:
        """Build from a gateway document (fields plus 'id')."""
        return cls(
            id=doc["id"],
            author=doc.get("author") or "",
            author_id=doc.get("authorId") or doc.get("userId") or "",
            content=doc.get("content") or "",
            avatar=doc.get("avatar") or "",
            tags=frozenset(doc.get("tags") or ()),
            like_count=_count(doc, "likes", "likeCount"),
            comment_count=_count(doc, "comments", "commentCount"),
            created_at=parse_timestamp(doc.get("createdAt")),
            updated_at=parse_timestamp(doc.get("updatedAt")),
        )


@dataclass(frozen=True)
class Comment:
    """Comment on a post (stored under posts/{post_id}/comments)."""

    id: str
    post_id: str
    author: str
    author_id: str
    content: str
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, post_id: str, doc: dict[str, Any]) -> Comment:
        return cls(
            id=doc["id"],
            post_id=post_id,
            author=doc.get("author") or "",
            author_id=doc.get("authorId") or "",
            content=doc.get("content") or "",
            created_at=parse_timestamp(doc.get("createdAt")),
        )


@dataclass(frozen=True)
class Like:
    """Like relation keyed by (post_id, user_id); existence means liked."""

    post_id: str
    user_id: str
    created_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        """Fields written to posts/{post_id}/likes/{user_id}; createdAt is set by the server."""
        return {"userId": self.user_id, "postId": self.post_id}
