"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when the first document is written. Use these constants so collection names
and counter fields stay consistent across services.

Example:
    from roadwell.infrastructure.firebase.collections import COLLECTION_POSTS, likes_path

    await gateway.exists(likes_path(post_id), user_id)
"""

COLLECTION_USERS = "users"
COLLECTION_POSTS = "posts"
COLLECTION_ADVOCACIES = "advocacies"

# Sub-collections under posts/{post_id}
SUBCOLLECTION_LIKES = "likes"
SUBCOLLECTION_COMMENTS = "comments"

# Derived counters on post documents
FIELD_LIKE_COUNT = "likes"
FIELD_COMMENT_COUNT = "comments"

# Server-managed timestamps
FIELD_CREATED_AT = "createdAt"
FIELD_UPDATED_AT = "updatedAt"


def likes_path(post_id: str) -> str:
    """Collection path of the like records for a post."""
    return f"{COLLECTION_POSTS}/{post_id}/{SUBCOLLECTION_LIKES}"


def comments_path(post_id: str) -> str:
    """Collection path of the comments for a post."""
    return f"{COLLECTION_POSTS}/{post_id}/{SUBCOLLECTION_COMMENTS}"
