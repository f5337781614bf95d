from __future__ import annotations

import logging
from typing import Any, Iterable, List

from flex_reviews.clients.hostaway import HostawayClient
from flex_reviews.schemas.review import (
    PublicReview,
    PublicReviewListResponse,
    Review,
    ReviewListParams,
    ReviewListResponse,
)
from flex_reviews.services.exceptions import ReviewNotFoundError, ServiceError
from flex_reviews.services.normalize import ReviewNormalizer, content_token
from flex_reviews.services.query import query_reviews
from flex_reviews.services.store import ReviewRepository, get_review_store

logger = logging.getLogger(__name__)


class ReviewService:
    """Merges the upstream review pool with persisted approvals."""

    def __init__(
        self,
        client: HostawayClient,
        *,
        repository: ReviewRepository | None = None,
        normalizer: ReviewNormalizer | None = None,
        admin_page_size: int = 50,
        public_page_size: int = 12,
    ) -> None:
        self._client = client
        self._repository = repository or get_review_store()
        # Local ids stay stable across fetches.
        self._normalizer = normalizer or ReviewNormalizer(id_factory=content_token)
        self._admin_page_size = admin_page_size
        self._public_page_size = public_page_size

    async def upstream_pool(self) -> List[Review]:
        raws = await self._client.fetch_reviews()
        reviews = self._normalizer.normalize_many(raws)
        logger.info("Normalized %s of %s upstream reviews", len(reviews), len(raws))
        return reviews

    async def merged_pool(self) -> List[Review]:
        """Upstream reviews with persisted approval applied, plus persisted-only reviews."""
        upstream = await self.upstream_pool()
        persisted = {review.id: review for review in await self._repository.list()}

        merged: List[Review] = []
        for review in upstream:
            stored = persisted.pop(review.id, None)
            if stored is not None:
                review = review.model_copy(update={"approved": stored.approved})
            merged.append(review)
        merged.extend(persisted.values())
        return merged

    async def list_reviews(self, params: ReviewListParams) -> ReviewListResponse:
        logger.info("Listing reviews with %s", params.model_dump(exclude_none=True))
        try:
            pool = await self.merged_pool()
            return query_reviews(pool, params, default_limit=self._admin_page_size)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover
            logger.exception("Unexpected error while listing reviews")
            raise ServiceError("Failed to list reviews", cause=exc)

    async def list_public(self, params: ReviewListParams) -> PublicReviewListResponse:
        try:
            pool = await self._repository.list(approved=True)
            result = query_reviews(
                pool,
                params,
                approved_only=True,
                default_limit=self._public_page_size,
            )
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover
            logger.exception("Unexpected error while listing public reviews")
            raise ServiceError("Failed to list public reviews", cause=exc)
        return PublicReviewListResponse(
            meta=result.meta,
            reviews=[PublicReview.from_review(review) for review in result.reviews],
        )

    async def get_review(self, review_id: str) -> Review:
        stored = await self._repository.get(review_id)
        for review in await self.upstream_pool():
            if review.id == review_id:
                if stored is not None:
                    return review.model_copy(update={"approved": stored.approved})
                return review
        if stored is not None:
            return stored
        raise ReviewNotFoundError(review_id)

    async def set_approved(self, review_id: str, approved: bool) -> Review:
        logger.info("Setting approved=%s on %s", approved, review_id)
        updated = await self._repository.update_approved(review_id, approved)
        if updated is not None:
            return updated

        for review in await self.upstream_pool():
            if review.id == review_id:
                return await self._repository.upsert_approved(review, approved)
        raise ReviewNotFoundError(review_id)

    async def seed(self, raws: Iterable[Any] | None = None) -> int:
        """Normalize and persist reviews; existing records keep their approval."""
        if raws is None:
            reviews = await self.upstream_pool()
        else:
            reviews = self._normalizer.normalize_many(raws)
        count = await self._repository.upsert_many(reviews)
        logger.info("Seeded %s reviews", count)
        return count
