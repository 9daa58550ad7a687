"""Application DTOs (frozen dataclasses, no dependency on transport or ORM)."""

from roadwell.application.dtos.advocacy import AdvocacyMessage
from roadwell.application.dtos.community import Comment, Like, Post
from roadwell.application.dtos.results import AuthResult, LikeToggleResult, OperationResult
from roadwell.application.dtos.session import AuthModalState, Session, SessionUser
from roadwell.application.dtos.wellness import (
    FatigueAssessment,
    UserProfile,
    WellnessCompletion,
    WellnessStats,
)

__all__ = [
    "AdvocacyMessage",
    "AuthModalState",
    "AuthResult",
    "Comment",
    "Like",
    "FatigueAssessment",
    "LikeToggleResult",
    "OperationResult",
    "Post",
    "Session",
    "SessionUser",
    "UserProfile",
    "WellnessCompletion",
    "WellnessStats",
]
