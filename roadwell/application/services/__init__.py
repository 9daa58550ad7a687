"""Application services: session, auth, likes, community, advocacy, wellness, fatigue."""

from roadwell.application.services.advocacy_service import AdvocacyService, TagSelection
from roadwell.application.services.auth_service import AuthService
from roadwell.application.services.community_service import CommunityService
from roadwell.application.services.fatigue_service import FatigueCheckService
from roadwell.application.services.like_controller import LikeController
from roadwell.application.services.session_store import (
    ReentrantSessionWriteError,
    SessionStore,
)
from roadwell.application.services.wellness_service import WellnessService

__all__ = [
    "AdvocacyService",
    "AuthService",
    "CommunityService",
    "FatigueCheckService",
    "LikeController",
    "ReentrantSessionWriteError",
    "SessionStore",
    "TagSelection",
    "WellnessService",
]
