from __future__ import annotations

import asyncio
import json
import threading

import pytest

from flex_reviews.services.exceptions import PersistenceError
from flex_reviews.services.normalize import normalize_one
from flex_reviews.services.store import ReviewRepository


def _review(review_id: int, **overrides):
    payload = {
        "id": review_id,
        "listingMapId": 100 + review_id,
        "type": "guest-to-host",
        "rating": 4,
        "submittedAt": "2024-01-01 10:00:00",
        "publicReview": f"Review {review_id}",
    }
    payload.update(overrides)
    return normalize_one(payload)


def test_update_approved_on_missing_record_returns_none() -> None:
    repository = ReviewRepository()

    assert asyncio.run(repository.update_approved("hostaway:404", True)) is None
    assert asyncio.run(repository.list()) == []


def test_upsert_approved_inserts_then_updates() -> None:
    repository = ReviewRepository()
    review = _review(1)

    inserted = asyncio.run(repository.upsert_approved(review, True))
    assert inserted.approved is True
    assert inserted.text == "Review 1"

    updated = asyncio.run(repository.update_approved(review.id, False))
    assert updated is not None and updated.approved is False
    assert asyncio.run(repository.get(review.id)).approved is False


def test_upsert_approved_keeps_stored_fields_for_existing_record() -> None:
    repository = ReviewRepository()
    asyncio.run(repository.upsert_approved(_review(1), False))

    changed = _review(1, publicReview="Edited upstream")
    result = asyncio.run(repository.upsert_approved(changed, True))

    assert result.approved is True
    assert result.text == "Review 1"


def test_returned_records_are_copies() -> None:
    repository = ReviewRepository()
    stored = asyncio.run(repository.upsert_approved(_review(1), True))
    stored.approved = False

    assert asyncio.run(repository.get(stored.id)).approved is True


def test_list_filters_by_approval() -> None:
    repository = ReviewRepository()
    asyncio.run(repository.upsert_approved(_review(1), True))
    asyncio.run(repository.upsert_approved(_review(2), False))

    assert [review.id for review in asyncio.run(repository.list(approved=True))] == ["hostaway:1"]
    assert len(asyncio.run(repository.list())) == 2


def test_upsert_many_refreshes_fields_but_keeps_approval() -> None:
    repository = ReviewRepository()
    asyncio.run(repository.upsert_approved(_review(1), True))

    count = asyncio.run(
        repository.upsert_many([_review(1, publicReview="Refreshed"), _review(2)])
    )

    assert count == 2
    first = asyncio.run(repository.get("hostaway:1"))
    second = asyncio.run(repository.get("hostaway:2"))
    assert first.text == "Refreshed"
    assert first.approved is True
    assert second.approved is False


def test_concurrent_updates_to_same_id_are_serialized() -> None:
    repository = ReviewRepository()
    review = _review(1)

    async def flip_many() -> None:
        await asyncio.gather(
            *(repository.upsert_approved(review, index % 2 == 0) for index in range(20))
        )

    asyncio.run(flip_many())

    stored = asyncio.run(repository.list())
    assert len(stored) == 1
    # Last scheduled write (index 19) wins.
    assert stored[0].approved is False


def test_snapshot_file_survives_restart(tmp_path) -> None:
    path = tmp_path / "reviews.json"
    repository = ReviewRepository(path)
    asyncio.run(repository.upsert_approved(_review(1), True))

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk[0]["id"] == "hostaway:1"
    assert on_disk[0]["listingId"] == "101"

    reloaded = ReviewRepository(path)
    stored = asyncio.run(reloaded.get("hostaway:1"))
    assert stored is not None and stored.approved is True


def test_snapshot_write_runs_off_the_event_loop_thread(tmp_path, monkeypatch) -> None:
    repository = ReviewRepository(tmp_path / "reviews.json")
    original_flush = repository._flush
    flush_threads = []

    def recording_flush() -> None:
        flush_threads.append(threading.get_ident())
        original_flush()

    monkeypatch.setattr(repository, "_flush", recording_flush)

    async def approve() -> int:
        await repository.upsert_approved(_review(1), True)
        return threading.get_ident()

    loop_thread = asyncio.run(approve())

    assert flush_threads and loop_thread not in flush_threads
    assert (tmp_path / "reviews.json").exists()


def test_concurrent_file_backed_writes_leave_consistent_snapshot(tmp_path) -> None:
    path = tmp_path / "reviews.json"
    repository = ReviewRepository(path)

    async def write_many() -> None:
        await asyncio.gather(
            *(repository.upsert_approved(_review(index), True) for index in range(5))
        )

    asyncio.run(write_many())

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert sorted(item["id"] for item in on_disk) == [f"hostaway:{index}" for index in range(5)]


def test_corrupt_snapshot_raises_persistence_error(tmp_path) -> None:
    path = tmp_path / "reviews.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        ReviewRepository(path)


def test_failed_write_rolls_back_memory(tmp_path, monkeypatch) -> None:
    repository = ReviewRepository(tmp_path / "reviews.json")

    def broken_flush() -> None:
        raise PersistenceError("disk full")

    monkeypatch.setattr(repository, "_flush", broken_flush)

    with pytest.raises(PersistenceError):
        asyncio.run(repository.upsert_approved(_review(1), True))
    assert asyncio.run(repository.get("hostaway:1")) is None
