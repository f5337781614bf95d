from fastapi import APIRouter, Depends

from flex_reviews.dependencies.services import get_list_params, get_review_service
from flex_reviews.schemas.review import PublicReviewListResponse, ReviewListParams
from flex_reviews.services import ReviewService

router = APIRouter()


@router.get("/reviews", response_model=PublicReviewListResponse)
async def list_public_reviews(
    params: ReviewListParams = Depends(get_list_params),
    service: ReviewService = Depends(get_review_service),
):
    """Approved reviews only; the approval filter cannot be overridden."""
    return await service.list_public(params)
