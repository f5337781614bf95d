from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError

from flex_reviews.clients.hostaway import HostawayClient
from flex_reviews.config import Settings, get_settings
from flex_reviews.schemas.review import ReviewListParams
from flex_reviews.services import ReviewService
from flex_reviews.services.exceptions import ReviewValidationError
from flex_reviews.services.store import ReviewRepository, get_review_store


@lru_cache(maxsize=1)
def get_hostaway_client_cached() -> HostawayClient:
    settings = get_settings()
    return HostawayClient(
        settings.hostaway_base_url,
        account_id=settings.hostaway_account_id,
        api_key=settings.hostaway_api_key,
        timeout=settings.hostaway_timeout,
        use_mock_data=settings.use_mock_data,
        mock_data_path=settings.mock_data_path,
    )


def get_hostaway_client(settings: Settings = Depends(get_settings)) -> HostawayClient:
    return get_hostaway_client_cached()


def get_review_repository() -> ReviewRepository:
    return get_review_store()


def get_review_service(
    client: HostawayClient = Depends(get_hostaway_client),
    repository: ReviewRepository = Depends(get_review_repository),
    settings: Settings = Depends(get_settings),
) -> ReviewService:
    return ReviewService(
        client,
        repository=repository,
        admin_page_size=settings.admin_page_size,
        public_page_size=settings.public_page_size,
    )


def get_list_params(request: Request) -> ReviewListParams:
    try:
        return ReviewListParams.model_validate(dict(request.query_params))
    except ValidationError as exc:
        raise ReviewValidationError.from_pydantic("Invalid query", exc) from exc


def require_admin(
    request: Request, settings: Settings = Depends(get_settings)
) -> str:
    """Gate for manager endpoints; expects the session set by /api/auth/login."""
    user = request.session.get("user")
    if not user or user != settings.admin_user or request.session.get("role") != "admin":
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
