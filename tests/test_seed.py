import asyncio
import json
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from flex_reviews.services.store import ReviewRepository
from scripts.seed import main


def test_seed_from_source_file_writes_store(tmp_path, capsys) -> None:
    source = tmp_path / "reviews.json"
    source.write_text(
        json.dumps({"result": [{"id": 1, "listingMapId": 10}, {"id": 2, "rating": 42}]}),
        encoding="utf-8",
    )
    store = tmp_path / "store.json"

    assert main(["--source", str(source), "--store", str(store)]) == 0

    assert "Seeded 1 reviews." in capsys.readouterr().out
    stored = asyncio.run(ReviewRepository(store).list())
    assert [review.id for review in stored] == ["hostaway:1"]


def test_seed_twice_keeps_approval(tmp_path) -> None:
    source = tmp_path / "reviews.json"
    source.write_text(json.dumps([{"id": 1, "publicReview": "First"}]), encoding="utf-8")
    store = tmp_path / "store.json"
    main(["--source", str(source), "--store", str(store)])
    asyncio.run(ReviewRepository(store).update_approved("hostaway:1", True))

    source.write_text(json.dumps([{"id": 1, "publicReview": "Edited"}]), encoding="utf-8")
    assert main(["--source", str(source), "--store", str(store)]) == 0

    stored = asyncio.run(ReviewRepository(store).get("hostaway:1"))
    assert stored.approved is True
    assert stored.text == "Edited"


def test_seed_without_store_path_fails(monkeypatch, capsys) -> None:
    monkeypatch.delenv("FLEX_STORE_PATH", raising=False)

    assert main([]) == 2
    assert "--store" in capsys.readouterr().err


def test_seed_twice_keeps_single_copy_of_review_without_id(tmp_path) -> None:
    source = tmp_path / "reviews.json"
    source.write_text(
        json.dumps([{"listingMapId": 10, "guestName": "No Id", "publicReview": "Fine"}]),
        encoding="utf-8",
    )
    store = tmp_path / "store.json"

    assert main(["--source", str(source), "--store", str(store)]) == 0
    assert main(["--source", str(source), "--store", str(store)]) == 0

    stored = asyncio.run(ReviewRepository(store).list())
    assert len(stored) == 1
    assert stored[0].id.startswith("hostaway:local_")
