from fastapi import APIRouter, Depends, HTTPException

from flex_reviews.dependencies.services import (
    get_list_params,
    get_review_service,
    require_admin,
)
from flex_reviews.schemas.review import (
    ApprovalRequest,
    Review,
    ReviewListParams,
    ReviewListResponse,
)
from flex_reviews.services import ReviewService
from flex_reviews.services.exceptions import DownstreamServiceError, ReviewNotFoundError

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/hostaway", response_model=ReviewListResponse)
async def list_hostaway_reviews(
    params: ReviewListParams = Depends(get_list_params),
    service: ReviewService = Depends(get_review_service),
):
    try:
        return await service.list_reviews(params)
    except DownstreamServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/{review_id}", response_model=Review)
async def get_review(
    review_id: str,
    service: ReviewService = Depends(get_review_service),
):
    try:
        return await service.get_review(review_id)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Review not found") from exc
    except DownstreamServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.patch("/{review_id}/approve", response_model=Review)
async def approve_review(
    review_id: str,
    req: ApprovalRequest,
    service: ReviewService = Depends(get_review_service),
):
    try:
        return await service.set_approved(review_id, req.approved)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Review not found") from exc
    except DownstreamServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
