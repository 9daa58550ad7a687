"""Tests for fatigue scoring and the wellness service on the REST backend."""

import pytest

from roadwell.application.services import FatigueCheckService, SessionStore, WellnessService
from roadwell.application.services.fatigue_service import QUESTIONS, assess, fatigue_level
from roadwell.domain.enums import FatigueLevel
from roadwell.domain.exceptions import ValidationException
from roadwell.infrastructure.external.remote_api import RemoteApiGateway
from tests.fakes import FakeRemoteApi


@pytest.fixture
def fatigue(remote_api: RemoteApiGateway, session_store: SessionStore) -> FatigueCheckService:
    return FatigueCheckService(remote_api, session_store)


@pytest.fixture
def wellness(remote_api: RemoteApiGateway, session_store: SessionStore) -> WellnessService:
    return WellnessService(remote_api, session_store)


@pytest.mark.parametrize(
    ("answers", "level", "score"),
    [
        ([1, 1, 1, 1], FatigueLevel.LOW, 100),
        ([2, 2, 3, 2], FatigueLevel.LOW, 58),
        ([3, 3, 2, 2], FatigueLevel.MEDIUM, 50),
        ([4, 4, 3, 3], FatigueLevel.HIGH, 17),
        ([4, 4, 4, 4], FatigueLevel.HIGH, 0),
    ],
)
def test_assess_levels_and_scores(answers: list[int], level: FatigueLevel, score: int) -> None:
    result = assess(answers)
    assert result.fatigue_level is level
    assert result.alertness_score == score
    assert result.recommendations


def test_threshold_boundaries() -> None:
    assert fatigue_level(3.5) is FatigueLevel.HIGH
    assert fatigue_level(3.49) is FatigueLevel.MEDIUM
    assert fatigue_level(2.5) is FatigueLevel.MEDIUM
    assert fatigue_level(2.49) is FatigueLevel.LOW


@pytest.mark.parametrize("answers", [[1, 2, 3], [1, 2, 3, 5], [0, 1, 1, 1], [1, 1, 1, True]])
def test_assess_rejects_bad_answers(answers: list) -> None:
    with pytest.raises(ValidationException):
        assess(answers)


def test_every_question_offers_answers_in_range() -> None:
    for question in QUESTIONS:
        assert all(1 <= value <= 4 for _, value in question.options)


async def test_submit_saves_check_for_signed_in_driver(
    fatigue: FatigueCheckService, signed_in, fake_remote: FakeRemoteApi
) -> None:
    result = await fatigue.submit([4, 4, 4, 3], ["Heavy eyelids"], location=(41.5, -93.6))
    assert result.success is True
    assert result.data.fatigue_level is FatigueLevel.HIGH
    body = fake_remote.last.body
    assert fake_remote.last.path == "/fatigue-check"
    assert body["userId"] == "driver-1"
    assert body["fatigueLevel"] == "high"
    assert body["symptoms"] == ["Heavy eyelids"]
    assert (body["locationLat"], body["locationLng"]) == (41.5, -93.6)


async def test_submit_returns_assessment_when_save_fails(
    fatigue: FatigueCheckService, signed_in, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond("POST", "/fatigue-check", {"error": "Database error"}, status=500)
    result = await fatigue.submit([1, 1, 1, 1])
    assert result.success is True
    assert result.data.alertness_score == 100


async def test_submit_without_session_is_not_saved(
    fatigue: FatigueCheckService, fake_remote: FakeRemoteApi
) -> None:
    result = await fatigue.submit([2, 2, 2, 2])
    assert result.success is True
    assert fake_remote.requests == []


async def test_submit_invalid_answers(fatigue: FatigueCheckService, signed_in) -> None:
    result = await fatigue.submit([1, 1])
    assert result.success is False
    assert result.error_code == "VALIDATION_ERROR"


async def test_history(fatigue: FatigueCheckService, signed_in, fake_remote: FakeRemoteApi) -> None:
    fake_remote.respond(
        "GET", "/fatigue-check/history/driver-1", {"checks": [{"id": "c1"}, {"id": "c2"}]}
    )
    result = await fatigue.history(limit=2)
    assert [c["id"] for c in result.data] == ["c1", "c2"]
    assert fake_remote.last.params == {"limit": "2"}


async def test_history_requires_session(fatigue: FatigueCheckService) -> None:
    result = await fatigue.history()
    assert result.data == []
    assert result.error_code == "NOT_AUTHENTICATED"


async def test_list_activities(wellness: WellnessService, fake_remote: FakeRemoteApi) -> None:
    fake_remote.respond("GET", "/wellness/activities", {"activities": [{"id": "stretch"}]})
    result = await wellness.list_activities("movement")
    assert result.data == [{"id": "stretch"}]
    assert fake_remote.last.params == {"category": "movement"}


async def test_list_activities_failure_is_empty(
    wellness: WellnessService, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond("GET", "/wellness/activities", {"error": "down"}, status=503)
    result = await wellness.list_activities()
    assert result.success is False
    assert result.data == []


async def test_complete_activity_uses_server_points(
    wellness: WellnessService, signed_in, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond(
        "POST",
        "/wellness/complete",
        {"completion": {"completedAt": "2025-03-01T10:00:00Z", "pointsAwarded": 15}},
    )
    result = await wellness.complete_activity("stretch", notes="felt good")
    assert result.data.points_awarded == 15
    assert result.data.completed_at is not None
    assert fake_remote.last.body == {
        "userId": "driver-1",
        "activityId": "stretch",
        "notes": "felt good",
    }


async def test_complete_activity_validation_and_auth(wellness: WellnessService) -> None:
    assert (await wellness.complete_activity("")).error_code == "VALIDATION_ERROR"
    assert (await wellness.complete_activity("stretch")).error_code == "NOT_AUTHENTICATED"


async def test_stats_come_from_server(
    wellness: WellnessService, signed_in, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond(
        "GET", "/wellness/stats/driver-1", {"stats": {"totalPoints": 40, "streakCount": 3}}
    )
    result = await wellness.get_stats(period="week")
    assert (result.data.total_points, result.data.streak_count) == (40, 3)
    assert fake_remote.last.params == {"period": "week"}


async def test_profile_accepts_snake_case_rows(
    wellness: WellnessService, signed_in, fake_remote: FakeRemoteApi
) -> None:
    fake_remote.respond(
        "GET",
        "/profile/driver-1",
        {"profile": {"user_id": "driver-1", "name": "Dana", "total_points": 5, "preferences": None}},
    )
    result = await wellness.get_profile()
    assert result.data.user_id == "driver-1"
    assert result.data.total_points == 5
    assert result.data.preferences == {}
