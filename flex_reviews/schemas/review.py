"""Canonical review schema shared by the normalizer, the store and the API."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flex_reviews.services.dates import parse_iso_timestamp

ReviewSource = Literal["hostaway", "google"]
ReviewType = Literal["guest_to_host", "host_to_guest"]
ReviewChannel = Literal["airbnb", "booking", "vrbo", "direct", "unknown"]
ReviewStatus = Literal["awaiting", "published", "pending", "scheduled", "expired"]
ReviewSort = Literal["newest", "oldest", "rating_desc", "rating_asc"]

REVIEW_STATUSES = get_args(ReviewStatus)


class ReviewAuthor(BaseModel):
    """Author metadata that is safe to display."""

    name: Optional[str] = Field(default=None, min_length=1)
    url: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("url must be an http(s) URL")
        return value


class ExternalIds(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    review_id: Optional[str] = Field(default=None, alias="reviewId")
    reservation_id: Optional[str] = Field(default=None, alias="reservationId")
    place_id: Optional[str] = Field(default=None, alias="placeId")


class Review(BaseModel):
    """Source-agnostic review record every component operates on."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    source: ReviewSource
    listing_id: str = Field(..., min_length=1, alias="listingId")
    listing_name: Optional[str] = Field(default=None, alias="listingName")
    type: ReviewType
    channel: ReviewChannel
    status: Optional[ReviewStatus] = None
    rating: Optional[float] = Field(..., ge=0, le=5, strict=True)
    categories: Dict[str, float] = Field(default_factory=dict)
    text: Optional[str]
    private_feedback: Optional[str] = Field(default=None, alias="privateFeedback")
    submitted_at: str = Field(..., alias="submittedAt")
    author: Optional[ReviewAuthor] = None
    approved: bool = Field(default=False, strict=True)
    external_ids: Optional[ExternalIds] = Field(default=None, alias="externalIds")

    @field_validator("submitted_at")
    @classmethod
    def _check_submitted_at(cls, value: str) -> str:
        if parse_iso_timestamp(value) is None:
            raise ValueError("submittedAt must be ISO date string")
        return value


class PublicReview(BaseModel):
    """Projection of an approved review for the public listing page."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: ReviewSource
    listing_id: str = Field(alias="listingId")
    listing_name: Optional[str] = Field(default=None, alias="listingName")
    type: ReviewType
    channel: ReviewChannel
    status: Optional[ReviewStatus] = None
    rating: Optional[float] = None
    categories: Dict[str, float] = Field(default_factory=dict)
    text: Optional[str] = None
    submitted_at: str = Field(alias="submittedAt")
    author: Optional[ReviewAuthor] = None
    approved: bool

    @classmethod
    def from_review(cls, review: Review) -> "PublicReview":
        return cls.model_validate(
            review.model_dump(exclude={"private_feedback", "external_ids"})
        )


class HostawayCategoryRating(BaseModel):
    model_config = ConfigDict(extra="allow")

    category: Any = None
    rating: Any = None


class HostawayReviewPayload(BaseModel):
    """Permissive intake shape for a single Hostaway review.

    Every field is optional and unknown keys are kept but ignored. Only
    fundamentally wrong shapes (non-object input, a string where a number
    belongs) fail here.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[Union[int, str]] = None
    listing_map_id: Optional[Union[int, str]] = Field(default=None, alias="listingMapId")
    listing_id: Optional[Union[int, str]] = Field(default=None, alias="listingId")
    listing_name: Optional[str] = Field(default=None, alias="listingName")
    type: Optional[str] = None
    channel_id: Optional[Union[int, str]] = Field(default=None, alias="channelId")
    status: Optional[str] = None
    rating: Optional[float] = Field(default=None, strict=True)
    public_review: Optional[str] = Field(default=None, alias="publicReview")
    private_feedback: Optional[str] = Field(default=None, alias="privateFeedback")
    submitted_at: Optional[str] = Field(default=None, alias="submittedAt")
    departure_date: Optional[str] = Field(default=None, alias="departureDate")
    guest_name: Optional[str] = Field(default=None, alias="guestName")
    reservation_id: Optional[Union[int, str]] = Field(default=None, alias="reservationId")
    review_category: Optional[List[HostawayCategoryRating]] = Field(
        default=None, alias="reviewCategory"
    )


class ReviewListParams(BaseModel):
    """Listing query parameters, coerced from their string-encoded form."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    listing_id: Optional[str] = Field(default=None, alias="listingId")
    q: Optional[str] = None
    type: Optional[ReviewType] = None
    status: Optional[ReviewStatus] = None
    channel: Optional[ReviewChannel] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5, alias="minRating")
    max_rating: Optional[float] = Field(default=None, ge=0, le=5, alias="maxRating")
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    sort: ReviewSort = "newest"
    limit: Optional[int] = Field(default=None, ge=1, le=200)
    offset: int = Field(default=0, ge=0)

    @field_validator("id", "listing_id", "q", "from_", "to", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("from_", "to")
    @classmethod
    def _check_bound(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and parse_iso_timestamp(value) is None:
            raise ValueError("must be an ISO date")
        return value

    @model_validator(mode="after")
    def _check_rating_range(self) -> "ReviewListParams":
        if (
            self.min_rating is not None
            and self.max_rating is not None
            and self.min_rating > self.max_rating
        ):
            raise ValueError("minRating must not exceed maxRating")
        return self


class ReviewListMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int
    limit: int
    offset: int
    generated_at: str = Field(alias="generatedAt")


class ReviewListResponse(BaseModel):
    meta: ReviewListMeta
    reviews: List[Review]


class PublicReviewListResponse(BaseModel):
    meta: ReviewListMeta
    reviews: List[PublicReview]


class ApprovalRequest(BaseModel):
    approved: bool = Field(..., strict=True)
