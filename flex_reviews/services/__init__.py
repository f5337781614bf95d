"""Service package public API definitions.

Service implementations import ``flex_reviews.clients.hostaway``, which in
turn imports ``flex_reviews.services.exceptions``. Importing them eagerly
here would create a circular import, so they are resolved lazily on first
attribute access.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "ReviewNormalizer",
    "ReviewRepository",
    "ReviewService",
]

_SERVICE_MODULES = {
    "ReviewNormalizer": "normalize",
    "ReviewRepository": "store",
    "ReviewService": "reviews",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .normalize import ReviewNormalizer as ReviewNormalizer
    from .reviews import ReviewService as ReviewService
    from .store import ReviewRepository as ReviewRepository
