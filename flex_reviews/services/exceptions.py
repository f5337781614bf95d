from __future__ import annotations

from typing import Any, Dict, List


class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ReviewValidationError(ServiceError):
    """Raised when input (an upstream record, query or body) is malformed."""

    def __init__(
        self,
        message: str,
        errors: List[Dict[str, Any]] | None = None,
        *,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, message: str, exc: Exception) -> "ReviewValidationError":
        raw_errors = exc.errors() if hasattr(exc, "errors") else []
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in raw_errors
        ]
        return cls(message, errors, cause=exc)


class ReviewNotFoundError(ServiceError):
    """Raised when a review id is neither persisted nor in the upstream pool."""

    def __init__(self, review_id: str):
        super().__init__(f"Review {review_id} not found")
        self.review_id = review_id


class DownstreamServiceError(ServiceError):
    """Raised when an external service returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class UpstreamFetchError(DownstreamServiceError):
    """Raised when the upstream review payload cannot be retrieved."""


class PersistenceError(ServiceError):
    """Raised when the review store fails for a reason other than a missing id."""
