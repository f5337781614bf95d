"""Filter, sort and paginate canonical reviews."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from flex_reviews.schemas.review import (
    Review,
    ReviewListMeta,
    ReviewListParams,
    ReviewListResponse,
)
from flex_reviews.services.dates import parse_iso_timestamp, utc_now_iso

DEFAULT_LIMIT = 50


def _matches_text(review: Review, needle: str) -> bool:
    haystack = (
        review.id,
        review.listing_id,
        review.listing_name,
        review.text,
        review.author.name if review.author else None,
    )
    return any(needle in value.lower() for value in haystack if value)


def _matches(
    review: Review,
    params: ReviewListParams,
    from_ts: Optional[datetime],
    to_ts: Optional[datetime],
) -> bool:
    if params.id and review.id != params.id:
        return False
    if params.listing_id and review.listing_id != params.listing_id:
        return False
    if params.q and not _matches_text(review, params.q.lower()):
        return False
    if params.type and review.type != params.type:
        return False
    if params.status and review.status != params.status:
        return False
    if params.channel and review.channel != params.channel:
        return False

    # Unrated reviews count as 0 against minRating and 5 against maxRating.
    if params.min_rating is not None:
        if (review.rating if review.rating is not None else 0) < params.min_rating:
            return False
    if params.max_rating is not None:
        if (review.rating if review.rating is not None else 5) > params.max_rating:
            return False

    submitted = parse_iso_timestamp(review.submitted_at)
    if submitted is not None:
        if from_ts is not None and submitted < from_ts:
            return False
        if to_ts is not None and submitted > to_ts:
            return False
    return True


def filter_reviews(reviews: Iterable[Review], params: ReviewListParams) -> List[Review]:
    from_ts = parse_iso_timestamp(params.from_)
    to_ts = parse_iso_timestamp(params.to)
    return [review for review in reviews if _matches(review, params, from_ts, to_ts)]


def _time_key(review: Review, descending: bool) -> Tuple[bool, float]:
    submitted = parse_iso_timestamp(review.submitted_at)
    if submitted is None:
        return (True, 0.0)
    ts = submitted.timestamp()
    return (False, -ts if descending else ts)


def _rating_key(review: Review, descending: bool) -> Tuple[bool, float]:
    if review.rating is None:
        return (True, 0.0)
    return (False, -review.rating if descending else review.rating)


def _sort_key(sort: str) -> Callable[[Review], tuple]:
    if sort == "oldest":
        return lambda review: (_time_key(review, False), review.id)
    if sort in ("rating_desc", "rating_asc"):
        descending = sort == "rating_desc"
        return lambda review: (
            _rating_key(review, descending),
            _time_key(review, True),
            review.id,
        )
    return lambda review: (_time_key(review, True), review.id)


def sort_reviews(reviews: Iterable[Review], sort: str = "newest") -> List[Review]:
    """Return a totally ordered copy of ``reviews``.

    Ties on the primary field fall back to newest first (rating sorts) and
    finally to ascending id, so pagination is reproducible. Null ratings and
    unparseable dates sort last.
    """
    return sorted(reviews, key=_sort_key(sort))


def query_reviews(
    reviews: Iterable[Review],
    params: ReviewListParams,
    *,
    approved_only: bool = False,
    default_limit: int = DEFAULT_LIMIT,
    now: Optional[Callable[[], datetime]] = None,
) -> ReviewListResponse:
    pool = [review for review in reviews if review.approved] if approved_only else list(reviews)
    filtered = filter_reviews(pool, params)
    ordered = sort_reviews(filtered, params.sort)

    limit = params.limit if params.limit is not None else default_limit
    page = ordered[params.offset : params.offset + limit]
    return ReviewListResponse(
        meta=ReviewListMeta(
            count=len(filtered),
            limit=limit,
            offset=params.offset,
            generated_at=utc_now_iso(now),
        ),
        reviews=page,
    )
