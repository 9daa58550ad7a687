"""Tests for LikeController optimistic toggles against the Firestore fake."""

import pytest

from roadwell.application.services import LikeController
from roadwell.domain.enums import LikePhase
from roadwell.infrastructure.firebase import DocumentStoreGateway
from tests.fakes import FakeFirestore


@pytest.fixture
def controller(documents: DocumentStoreGateway, fake_firestore: FakeFirestore) -> LikeController:
    fake_firestore.put("posts/p1", {"content": "Hi", "likes": 0, "comments": 0})
    return LikeController(documents, "u1")


def test_requires_user_id(documents: DocumentStoreGateway) -> None:
    with pytest.raises(ValueError):
        LikeController(documents, "")


async def test_like_then_unlike_updates_record_and_counter(
    controller: LikeController, fake_firestore: FakeFirestore
) -> None:
    """The like record and the counter move together."""
    liked = await controller.toggle("p1")
    assert liked.success is True and liked.liked is True
    assert controller.is_liked("p1")
    assert controller.phase("p1") is LikePhase.CONFIRMED
    record = fake_firestore.data("posts/p1/likes/u1")
    assert (record["userId"], record["postId"]) == ("u1", "p1")
    assert fake_firestore.data("posts/p1")["likes"] == 1

    unliked = await controller.toggle("p1")
    assert unliked.liked is False
    assert controller.liked_set == frozenset()
    assert fake_firestore.data("posts/p1/likes/u1") is None
    assert fake_firestore.data("posts/p1")["likes"] == 0


async def test_failed_write_rolls_back(
    controller: LikeController, fake_firestore: FakeFirestore
) -> None:
    """Offline: the flip is reverted and the counter is untouched."""
    fake_firestore.unavailable = True
    result = await controller.toggle("p1")
    assert result.success is False
    assert result.liked is False
    assert result.error == "Failed to update like"
    assert not controller.is_liked("p1")
    assert controller.phase("p1") is LikePhase.ROLLED_BACK
    fake_firestore.unavailable = False
    assert fake_firestore.data("posts/p1")["likes"] == 0


async def test_state_flips_before_the_write_completes(
    documents: DocumentStoreGateway, fake_firestore: FakeFirestore, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_firestore.put("posts/p1", {"likes": 0})
    controller = LikeController(documents, "u1")
    observed: list[tuple[bool, LikePhase]] = []
    original = documents.commit_batch

    async def spy(batch) -> None:
        observed.append((controller.is_liked("p1"), controller.phase("p1")))
        await original(batch)

    monkeypatch.setattr(documents, "commit_batch", spy)
    await controller.toggle("p1")
    assert observed == [(True, LikePhase.OPTIMISTIC)]


async def test_already_liked_remotely_converges_without_double_count(
    controller: LikeController, fake_firestore: FakeFirestore
) -> None:
    """A like that already exists (e.g. from another device) is not counted twice."""
    fake_firestore.put("posts/p1/likes/u1", {"userId": "u1", "postId": "p1"})
    fake_firestore.put("posts/p1", {"likes": 1})
    result = await controller.toggle("p1")
    assert result.success is True
    assert controller.is_liked("p1")
    assert fake_firestore.data("posts/p1")["likes"] == 1


async def test_unlike_of_missing_record_converges(
    controller: LikeController, fake_firestore: FakeFirestore
) -> None:
    """A like removed elsewhere settles as not liked without touching the counter."""
    fake_firestore.put("posts/p1/likes/u1", {"userId": "u1", "postId": "p1"})
    await controller.hydrate(["p1"])
    del fake_firestore.documents[fake_firestore.name("posts/p1/likes/u1")]
    result = await controller.toggle("p1")
    assert result.success is True
    assert result.liked is False
    assert fake_firestore.data("posts/p1")["likes"] == 0


async def test_hydrate_loads_existing_likes(
    controller: LikeController, fake_firestore: FakeFirestore
) -> None:
    fake_firestore.put("posts/p2", {"likes": 1})
    fake_firestore.put("posts/p2/likes/u1", {"userId": "u1", "postId": "p2"})
    fake_firestore.put("posts/p3/likes/someone-else", {"userId": "x", "postId": "p3"})
    liked = await controller.hydrate(["p1", "p2", "p3", "p2"])
    assert liked == frozenset({"p2"})


async def test_hydrate_keeps_local_state_on_failure(
    controller: LikeController, fake_firestore: FakeFirestore
) -> None:
    await controller.toggle("p1")
    fake_firestore.unavailable = True
    assert await controller.hydrate(["p1"]) == frozenset({"p1"})
