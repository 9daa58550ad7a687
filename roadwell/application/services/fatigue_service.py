"""Fatigue self-assessment: four questions answered 1 (alert) to 4 (drowsy).

The average answer decides the level: >= 3.5 high, >= 2.5 medium, else low.
The result is saved to the REST backend, but a failed save never hides the
assessment from the driver.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from roadwell.application.dtos.results import OperationResult
from roadwell.application.dtos.wellness import FatigueAssessment
from roadwell.application.services.session_store import SessionStore
from roadwell.domain.enums import FatigueLevel
from roadwell.domain.exceptions import RoadwellException, ValidationException
from roadwell.infrastructure.external.remote_api import RemoteApiGateway

logger = logging.getLogger(__name__)

MIN_ANSWER = 1
MAX_ANSWER = 4
HIGH_THRESHOLD = 3.5
MEDIUM_THRESHOLD = 2.5


@dataclass(frozen=True)
class FatigueQuestion:
    id: str
    text: str
    options: tuple[tuple[str, int], ...]


QUESTIONS: tuple[FatigueQuestion, ...] = (
    FatigueQuestion(
        "alertness",
        "How alert do you feel right now?",
        (("Very alert", 1), ("Somewhat alert", 2), ("Slightly drowsy", 3), ("Very drowsy", 4)),
    ),
    FatigueQuestion(
        "driving_hours",
        "How many hours have you driven today?",
        (("Less than 4 hours", 1), ("4-6 hours", 2), ("6-8 hours", 3), ("More than 8 hours", 4)),
    ),
    FatigueQuestion(
        "sleep",
        "How many hours of sleep did you get last night?",
        (("8+ hours", 1), ("6-8 hours", 2), ("4-6 hours", 3), ("Less than 4 hours", 4)),
    ),
    FatigueQuestion(
        "symptoms",
        "Do you feel any of these symptoms?",
        (
            ("None", 1),
            ("Heavy eyelids", 3),
            ("Difficulty focusing", 3),
            ("Multiple symptoms", 4),
        ),
    ),
)

RECOMMENDATIONS: dict[FatigueLevel, tuple[str, ...]] = {
    FatigueLevel.HIGH: (
        "Stop driving as soon as it is safe",
        "Take a 20-minute nap at a rest area",
        "Do not continue until you feel alert",
    ),
    FatigueLevel.MEDIUM: (
        "Take a break at the next opportunity",
        "Get some fresh air and stretch",
        "Drink water and avoid heavy meals",
    ),
    FatigueLevel.LOW: (
        "Keep taking regular breaks every 2 hours",
        "Stay hydrated",
    ),
}


def fatigue_level(average: float) -> FatigueLevel:
    if average >= HIGH_THRESHOLD:
        return FatigueLevel.HIGH
    if average >= MEDIUM_THRESHOLD:
        return FatigueLevel.MEDIUM
    return FatigueLevel.LOW


def assess(answers: Sequence[int], symptoms: Iterable[str] = ()) -> FatigueAssessment:
    """Score one answer per question.

    Alertness is 100 when every answer is 1 and 0 when every answer is 4.

    Raises:
        ValidationException: Wrong number of answers or an answer outside 1-4.
    """
    if len(answers) != len(QUESTIONS):
        raise ValidationException(
            f"Expected {len(QUESTIONS)} answers, got {len(answers)}", field="answers"
        )
    for value in answers:
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_ANSWER <= value <= MAX_ANSWER:
            raise ValidationException(
                f"Answers must be between {MIN_ANSWER} and {MAX_ANSWER}", field="answers"
            )
    average = sum(answers) / len(answers)
    level = fatigue_level(average)
    score = round((MAX_ANSWER - average) / (MAX_ANSWER - MIN_ANSWER) * 100)
    return FatigueAssessment(
        alertness_score=score,
        fatigue_level=level,
        symptoms=tuple(symptoms),
        recommendations=RECOMMENDATIONS[level],
    )


class FatigueCheckService:
    """Scores fatigue checks and records them for the signed-in driver."""

    def __init__(self, api: RemoteApiGateway, session_store: SessionStore) -> None:
        self.api = api
        self.session_store = session_store

    async def submit(
        self,
        answers: Sequence[int],
        symptoms: Iterable[str] = (),
        *,
        location: tuple[float, float] | None = None,
    ) -> OperationResult[FatigueAssessment]:
        """Assess and save. The assessment is returned even when saving fails."""
        try:
            assessment = assess(answers, symptoms)
        except ValidationException as e:
            return OperationResult.from_exception(e)
        session = self.session_store.get_session()
        if session is None:
            logger.info("Fatigue check not saved: no signed-in user")
            return OperationResult.ok(assessment)
        lat, lng = location if location else (None, None)
        payload: dict[str, Any] = {
            "userId": session.user.id,
            "alertnessScore": assessment.alertness_score,
            "fatigueLevel": assessment.fatigue_level.value,
            "symptoms": list(assessment.symptoms),
            "recommendations": list(assessment.recommendations),
            "locationLat": lat,
            "locationLng": lng,
        }
        try:
            await self.api.submit_fatigue_check(payload)
        except RoadwellException as e:
            logger.error("Failed to save fatigue check: %s", e.message)
        return OperationResult.ok(assessment)

    async def history(
        self, *, limit: int | None = None, offset: int | None = None
    ) -> OperationResult[list[dict[str, Any]]]:
        session = self.session_store.get_session()
        if session is None:
            return OperationResult(
                success=False, data=[], error="Not authenticated", error_code="NOT_AUTHENTICATED"
            )
        try:
            payload = await self.api.get_fatigue_check_history(
                session.user.id, limit=limit, offset=offset
            )
        except RoadwellException as e:
            logger.error("Failed to load fatigue history: %s", e.message)
            return OperationResult(success=False, data=[], error=e.message, error_code=e.error_code)
        checks = payload.get("checks", payload.get("history")) if isinstance(payload, dict) else payload
        return OperationResult.ok(list(checks) if isinstance(checks, list) else [])
