"""Hostaway -> canonical Review normalization.

Two-stage validation: the raw payload is first read through the permissive
``HostawayReviewPayload`` intake model, mapped field by field, and the
assembled candidate is then validated against the strict ``Review`` schema.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from datetime import datetime
from numbers import Real
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from flex_reviews.schemas.review import (
    REVIEW_STATUSES,
    HostawayCategoryRating,
    HostawayReviewPayload,
    Review,
    ReviewChannel,
    ReviewStatus,
    ReviewType,
)
from flex_reviews.services.channels import DEFAULT_CHANNEL_MAP, map_channel_id
from flex_reviews.services.dates import to_iso_date
from flex_reviews.services.exceptions import ReviewValidationError

logger = logging.getLogger(__name__)

SOURCE = "hostaway"


IdFactory = Callable[[HostawayReviewPayload], str]


def random_token(payload: HostawayReviewPayload) -> str:
    return uuid.uuid4().hex[:12]


def content_token(payload: HostawayReviewPayload) -> str:
    """Token derived from the review's content, stable across fetches.

    Records that agree on every hashed field share a token.
    """
    listing = payload.listing_map_id if payload.listing_map_id is not None else payload.listing_id
    submitted = payload.submitted_at if payload.submitted_at is not None else payload.departure_date
    fingerprint = json.dumps(
        [
            str(listing) if listing is not None else None,
            submitted,
            payload.guest_name,
            payload.public_review,
            payload.type,
            str(payload.reservation_id) if payload.reservation_id is not None else None,
        ]
    )
    return hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()[:12]


def map_review_type(value: Optional[str]) -> ReviewType:
    # Anything other than guest-to-host, including a missing value, is
    # reported as host_to_guest. This can hide malformed upstream data.
    return "guest_to_host" if (value or "").lower() == "guest-to-host" else "host_to_guest"


def map_review_status(value: Optional[str]) -> Optional[ReviewStatus]:
    if not value:
        return None
    lowered = value.lower()
    return lowered if lowered in REVIEW_STATUSES else None


def build_categories(items: Iterable[HostawayCategoryRating]) -> Dict[str, float]:
    categories: Dict[str, float] = {}
    for item in items:
        key = item.category.strip() if isinstance(item.category, str) else ""
        value = item.rating
        if not key or isinstance(value, bool) or not isinstance(value, Real):
            continue
        categories[key] = value
    return categories


class ReviewNormalizer:
    """Turns raw Hostaway review payloads into canonical ``Review`` objects."""

    def __init__(
        self,
        *,
        channel_map: Mapping[str, ReviewChannel] = DEFAULT_CHANNEL_MAP,
        id_factory: IdFactory = random_token,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._channel_map = channel_map
        self._id_factory = id_factory
        self._clock = clock

    def canonical_id(self, payload: HostawayReviewPayload) -> str:
        if payload.id is not None:
            return f"{SOURCE}:{payload.id}"
        return f"{SOURCE}:local_{self._id_factory(payload)}"

    def normalize_one(self, raw: Any) -> Review:
        if not isinstance(raw, Mapping):
            raise ReviewValidationError(
                "Review payload must be an object",
                [{"field": "", "message": f"got {type(raw).__name__}", "type": "type_error"}],
            )
        try:
            payload = HostawayReviewPayload.model_validate(dict(raw))
        except ValidationError as exc:
            raise ReviewValidationError.from_pydantic("Malformed review payload", exc) from exc

        listing_id = next(
            (
                str(value).strip()
                for value in (payload.listing_map_id, payload.listing_id)
                if value is not None and str(value).strip()
            ),
            "unknown",
        )
        submitted_at = payload.submitted_at
        if submitted_at is None:
            submitted_at = payload.departure_date

        candidate = {
            "id": self.canonical_id(payload),
            "source": SOURCE,
            "listingId": listing_id,
            "listingName": payload.listing_name,
            "type": map_review_type(payload.type),
            "channel": map_channel_id(payload.channel_id, self._channel_map),
            "status": map_review_status(payload.status),
            "rating": payload.rating,
            "categories": build_categories(payload.review_category or []),
            "text": payload.public_review,
            "privateFeedback": payload.private_feedback,
            "submittedAt": to_iso_date(submitted_at, now=self._clock),
            "author": {"name": payload.guest_name} if payload.guest_name else None,
            "approved": False,
            "externalIds": {
                "reviewId": str(payload.id) if payload.id is not None else None,
                "reservationId": (
                    str(payload.reservation_id) if payload.reservation_id is not None else None
                ),
            },
        }

        try:
            return Review.model_validate(candidate)
        except ValidationError as exc:
            raise ReviewValidationError.from_pydantic(
                f"Review {candidate['id']} failed validation", exc
            ) from exc

    def normalize_many(self, raws: Iterable[Any]) -> List[Review]:
        reviews: List[Review] = []
        for index, raw in enumerate(raws):
            try:
                reviews.append(self.normalize_one(raw))
            except ReviewValidationError as exc:
                logger.warning("Dropping upstream review at index %s: %s %s", index, exc, exc.errors)
        return reviews


_default_normalizer = ReviewNormalizer()


def normalize_one(raw: Any) -> Review:
    return _default_normalizer.normalize_one(raw)


def normalize_many(raws: Iterable[Any]) -> List[Review]:
    return _default_normalizer.normalize_many(raws)
