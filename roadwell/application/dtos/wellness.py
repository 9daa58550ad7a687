"""DTOs for the secondary REST backend: profiles, wellness and fatigue checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roadwell.domain.enums import FatigueLevel


class UserProfile(BaseModel):
    """Profile stored by the secondary backend (camelCase or snake_case on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    name: str | None = None
    quick_dial_number: str | None = Field(default=None, alias="quickDialNumber")
    preferences: dict[str, Any] = Field(default_factory=dict)
    streak_count: int = Field(default=0, alias="streakCount")
    total_points: int = Field(default=0, alias="totalPoints")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> UserProfile:
        """Accept either the camelCase API shape or snake_case SQL rows."""
        data = dict(payload.get("profile", payload))
        for snake, camel in (
            ("user_id", "userId"),
            ("quick_dial_number", "quickDialNumber"),
            ("streak_count", "streakCount"),
            ("total_points", "totalPoints"),
        ):
            if snake in data and camel not in data:
                data[camel] = data.pop(snake)
        if data.get("preferences") is None:
            data["preferences"] = {}
        return cls.model_validate(data)


class WellnessStats(BaseModel):
    """Server-side aggregate of wellness completions; never recomputed locally."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total_points: int = Field(default=0, alias="totalPoints")
    streak_count: int = Field(default=0, alias="streakCount")


@dataclass(frozen=True)
class WellnessCompletion:
    """One completed wellness activity (append-only)."""

    activity_id: str
    user_id: str
    completed_at: datetime | None = None
    points_awarded: int = 0


@dataclass(frozen=True)
class FatigueAssessment:
    """Scored fatigue self-assessment."""

    alertness_score: int
    fatigue_level: FatigueLevel
    symptoms: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
