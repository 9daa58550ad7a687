"""Tests for advocacy tag selection and message submission."""

from datetime import UTC, datetime

import pytest

from roadwell.application.dtos.advocacy import AdvocacyMessage
from roadwell.application.services import AdvocacyService, SessionStore, TagSelection
from roadwell.domain.enums import AdvocacyStatus, AdvocacyTag
from roadwell.domain.exceptions import ValidationException
from roadwell.infrastructure.firebase import DocumentStoreGateway
from tests.fakes import FakeFirestore


@pytest.fixture
def advocacy(documents: DocumentStoreGateway, session_store: SessionStore) -> AdvocacyService:
    return AdvocacyService(documents, session_store)


def test_tag_selection_allows_up_to_three() -> None:
    selection = TagSelection()
    assert len(selection) == 0
    for tag in ("safety", "parking", AdvocacyTag.WELLNESS):
        selection.add(tag)
    assert selection.tags == ("safety", "parking", "wellness")


def test_fourth_tag_is_rejected_and_selection_unchanged() -> None:
    selection = TagSelection(["safety", "parking", "wellness"])
    with pytest.raises(ValidationException):
        selection.add("employer")
    assert selection.tags == ("safety", "parking", "wellness")


def test_reselecting_a_tag_is_not_counted_twice() -> None:
    selection = TagSelection(["safety", "parking", "wellness"])
    selection.add("safety")
    assert len(selection) == 3


def test_unknown_tag_is_rejected() -> None:
    with pytest.raises(ValidationException):
        TagSelection(["potholes"])


def test_toggle_and_clear() -> None:
    selection = TagSelection(["safety"])
    selection.toggle("safety")
    assert "safety" not in selection
    selection.toggle("roadside")
    assert "roadside" in selection
    selection.clear()
    assert selection.tags == ()


@pytest.mark.parametrize(
    ("message", "tags", "error"),
    [
        ("", ["safety"], "Please enter your message"),
        ("   ", ["safety"], "Please enter your message"),
        ("Need more parking", [], "Please select at least one tag"),
    ],
)
async def test_submit_validation(
    advocacy: AdvocacyService, signed_in, message: str, tags: list[str], error: str
) -> None:
    result = await advocacy.submit(message, tags)
    assert result.success is False
    assert result.error == error
    assert result.error_code == "VALIDATION_ERROR"


async def test_submit_requires_sign_in(advocacy: AdvocacyService) -> None:
    result = await advocacy.submit("Need more parking", ["parking"])
    assert result.error_code == "NOT_AUTHENTICATED"


async def test_submit_creates_pending_message(
    advocacy: AdvocacyService, signed_in, fake_firestore: FakeFirestore
) -> None:
    result = await advocacy.submit(
        " Need more parking ", TagSelection(["parking", "safety"]), is_voice_recording=True
    )
    assert result.success is True
    message = result.data
    assert message.status is AdvocacyStatus.PENDING
    assert message.tags == ("parking", "safety")
    stored = fake_firestore.data(f"advocacies/{message.id}")
    assert stored["userId"] == "driver-1"
    assert stored["userName"] == "Dana Driver"
    assert stored["userEmail"] == "dana@example.com"
    assert stored["message"] == "Need more parking"
    assert stored["status"] == "pending"
    assert stored["isVoiceRecording"] is True


async def test_list_mine_only_returns_own_messages(
    advocacy: AdvocacyService, signed_in, fake_firestore: FakeFirestore
) -> None:
    fake_firestore.put(
        "advocacies/other",
        {
            "userId": "driver-2",
            "message": "x",
            "tags": ["safety"],
            "createdAt": datetime(2020, 1, 1, tzinfo=UTC),
        },
    )
    await advocacy.submit("first", ["safety"])
    await advocacy.submit("second", ["parking"])
    result = await advocacy.list_mine()
    assert [m.message for m in result.data] == ["second", "first"]


async def test_list_all_filters_by_status_and_tags(advocacy: AdvocacyService, signed_in) -> None:
    await advocacy.submit("about parking", ["parking"])
    await advocacy.submit("about safety", ["safety"])
    result = await advocacy.list_all(status=AdvocacyStatus.PENDING, tags=["parking"])
    assert [m.message for m in result.data] == ["about parking"]
    reviewed = await advocacy.list_all(status=AdvocacyStatus.REVIEWED)
    assert reviewed.data == []


async def test_delete_prunes_local_list(advocacy: AdvocacyService, signed_in) -> None:
    first = (await advocacy.submit("first", ["safety"])).data
    second = (await advocacy.submit("second", ["safety"])).data
    result = await advocacy.delete(first.id, [first, second])
    assert result.success is True
    assert result.data == [second]


async def test_delete_failure_keeps_local_list(
    advocacy: AdvocacyService, signed_in, fake_firestore: FakeFirestore
) -> None:
    message = AdvocacyMessage(
        id="a1", user_id="driver-1", user_name="Dana", user_email="d@example.com",
        message="m", tags=("safety",),
    )
    fake_firestore.unavailable = True
    result = await advocacy.delete("a1", [message])
    assert result.success is False
    assert result.error == "Failed to delete message"
    assert result.data == [message]

