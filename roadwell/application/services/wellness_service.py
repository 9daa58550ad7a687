"""Wellness activities, completions and stats from the secondary REST backend.

Points and streaks are computed by the server; WellnessStats is always the
server's projection and never recomputed locally.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from roadwell.application.dtos.results import OperationResult
from roadwell.application.dtos.wellness import UserProfile, WellnessCompletion, WellnessStats
from roadwell.application.services.session_store import SessionStore
from roadwell.domain.exceptions import RoadwellException, ValidationException
from roadwell.infrastructure.external.remote_api import RemoteApiGateway
from roadwell.shared.utils.datetime import parse_timestamp

logger = logging.getLogger(__name__)


def _unwrap(payload: Any, key: str) -> Any:
    """Accept both {key: {...}} and bare payloads."""
    if isinstance(payload, dict) and key in payload:
        return payload[key]
    return payload


class WellnessService:
    """Activities catalogue, completions and the authoritative stats projection."""

    def __init__(self, api: RemoteApiGateway, session_store: SessionStore) -> None:
        self.api = api
        self.session_store = session_store

    def _user_id(self) -> str | None:
        session = self.session_store.get_session()
        return session.user.id if session else None

    async def list_activities(self, category: str | None = None) -> OperationResult[list[dict[str, Any]]]:
        try:
            payload = await self.api.get_wellness_activities(category)
        except RoadwellException as e:
            logger.error("Failed to load wellness activities: %s", e.message)
            return OperationResult(success=False, data=[], error=e.message, error_code=e.error_code)
        activities = _unwrap(payload, "activities")
        return OperationResult.ok(list(activities) if isinstance(activities, list) else [])

    async def complete_activity(
        self, activity_id: str, notes: str | None = None
    ) -> OperationResult[WellnessCompletion]:
        """Record a completion; the server decides the points awarded."""
        if not activity_id:
            return OperationResult.from_exception(
                ValidationException("Activity is required", field="activity_id")
            )
        user_id = self._user_id()
        if user_id is None:
            return OperationResult.fail("Please sign in first", "NOT_AUTHENTICATED")
        try:
            payload = await self.api.complete_wellness_activity(
                {"userId": user_id, "activityId": activity_id, "notes": notes}
            )
        except RoadwellException as e:
            logger.error("Failed to complete activity %s: %s", activity_id, e.message)
            return OperationResult.from_exception(e)
        data = _unwrap(payload, "completion")
        data = data if isinstance(data, dict) else {}
        return OperationResult.ok(
            WellnessCompletion(
                activity_id=activity_id,
                user_id=user_id,
                completed_at=parse_timestamp(data.get("completedAt") or data.get("completed_at")),
                points_awarded=int(data.get("pointsAwarded") or data.get("points_awarded") or 0),
            )
        )

    async def get_stats(self, period: str = "all") -> OperationResult[WellnessStats]:
        user_id = self._user_id()
        if user_id is None:
            return OperationResult.fail("Please sign in first", "NOT_AUTHENTICATED")
        try:
            payload = await self.api.get_wellness_stats(user_id, period)
            stats = WellnessStats.model_validate(_unwrap(payload, "stats") or {})
        except RoadwellException as e:
            logger.error("Failed to load wellness stats: %s", e.message)
            return OperationResult.from_exception(e)
        except ValidationError as e:
            logger.error("Malformed wellness stats payload: %s", e)
            return OperationResult.fail("Malformed stats response", "UNKNOWN")
        return OperationResult.ok(stats)

    async def get_profile(self) -> OperationResult[UserProfile]:
        user_id = self._user_id()
        if user_id is None:
            return OperationResult.fail("Please sign in first", "NOT_AUTHENTICATED")
        try:
            payload = await self.api.get_user_profile(user_id)
            profile = UserProfile.from_payload(payload)
        except RoadwellException as e:
            logger.error("Failed to load profile: %s", e.message)
            return OperationResult.from_exception(e)
        except ValidationError as e:
            logger.error("Malformed profile payload: %s", e)
            return OperationResult.fail("Malformed profile response", "UNKNOWN")
        return OperationResult.ok(profile)
