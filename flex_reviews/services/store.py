from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from flex_reviews.config import get_settings
from flex_reviews.schemas.review import Review
from flex_reviews.services.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class ReviewRepository:
    """Persisted review records keyed by canonical id.

    Records live in memory. When ``path`` is given the whole collection is
    loaded from that JSON file on start and rewritten after every change.
    All read-modify-write operations run under a single lock.
    """

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self._path = Path(path) if path else None
        self._reviews: Dict[str, Review] = {}
        self._lock = asyncio.Lock()
        if self._path is not None:
            self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            records = [Review.model_validate(item) for item in raw]
        except (OSError, ValueError, ValidationError) as exc:
            logger.exception("Unable to load review store from %s", self._path)
            raise PersistenceError(f"Unable to load review store from {self._path}", cause=exc) from exc
        self._reviews = {record.id: record for record in records}
        logger.info("Loaded %s persisted reviews from %s", len(self._reviews), self._path)

    def _flush(self) -> None:
        if self._path is None:
            return
        payload = [
            record.model_dump(by_alias=True, mode="json")
            for record in self._reviews.values()
        ]
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.exception("Unable to write review store to %s", self._path)
            raise PersistenceError(f"Unable to write review store to {self._path}", cause=exc) from exc

    async def get(self, review_id: str) -> Optional[Review]:
        review = self._reviews.get(review_id)
        return review.model_copy() if review is not None else None

    async def list(self, *, approved: Optional[bool] = None) -> List[Review]:
        return [
            review.model_copy()
            for review in self._reviews.values()
            if approved is None or review.approved is approved
        ]

    async def _commit(self, changes: Dict[str, Review]) -> None:
        # Caller holds the lock. In-memory state is rolled back if the write fails.
        previous = dict(self._reviews)
        self._reviews.update(changes)
        if self._path is None:
            return
        try:
            await asyncio.to_thread(self._flush)
        except PersistenceError:
            self._reviews = previous
            raise

    async def update_approved(self, review_id: str, approved: bool) -> Optional[Review]:
        async with self._lock:
            current = self._reviews.get(review_id)
            if current is None:
                return None
            updated = current.model_copy(update={"approved": approved})
            await self._commit({review_id: updated})
        return updated.model_copy()

    async def upsert_approved(self, review: Review, approved: bool) -> Review:
        """Set ``approved`` on the stored record, inserting ``review`` if absent."""
        async with self._lock:
            current = self._reviews.get(review.id) or review
            updated = current.model_copy(update={"approved": approved})
            await self._commit({review.id: updated})
        return updated.model_copy()

    async def upsert_many(self, reviews: Iterable[Review]) -> int:
        """Insert new reviews and refresh existing ones, keeping their approval."""
        async with self._lock:
            changes: Dict[str, Review] = {}
            for review in reviews:
                current = self._reviews.get(review.id)
                approved = current.approved if current is not None else review.approved
                changes[review.id] = review.model_copy(update={"approved": approved})
            await self._commit(changes)
        return len(changes)


_review_store: Optional[ReviewRepository] = None


def get_review_store() -> ReviewRepository:
    global _review_store
    if _review_store is None:
        _review_store = ReviewRepository(get_settings().store_path)
    return _review_store


def reset_review_store() -> None:
    global _review_store
    _review_store = None
