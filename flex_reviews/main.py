from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from flex_reviews.config import Settings, get_settings
from flex_reviews.dependencies.services import get_hostaway_client_cached
from flex_reviews.health import router as health_router
from flex_reviews.services.exceptions import (
    PersistenceError,
    ReviewValidationError,
    ServiceError,
)
from flex_reviews.tools.auth import router as auth_router
from flex_reviews.tools.public import router as public_router
from flex_reviews.tools.reviews import router as reviews_router

STATE_CHANGING_METHODS = {"POST", "PATCH", "PUT", "DELETE"}


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)

# Configure logging as soon as the module is loaded
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    settings = get_settings()

    settings_snapshot = settings.model_dump(
        exclude={"hostaway_api_key", "session_secret", "admin_pass_hash"},
    )
    logger.info("Application settings on startup: %s", settings_snapshot)

    client = get_hostaway_client_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing Hostaway client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


def _error_response(status_code: int, message: str, details=None) -> JSONResponse:
    body = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReviewValidationError)
    async def _review_validation_error(request: Request, exc: ReviewValidationError):
        return _error_response(400, str(exc), exc.errors)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        wrapped = ReviewValidationError.from_pydantic("Invalid request", exc)
        fields = ", ".join(error["field"] for error in wrapped.errors if error["field"])
        message = f"Invalid request: {fields}" if fields else "Invalid request"
        return _error_response(400, message, wrapped.errors)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(PersistenceError)
    async def _persistence_error(request: Request, exc: PersistenceError):
        logger.error(
            "Persistence failure on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.cause or exc,
        )
        return _error_response(500, "Internal Server Error")

    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError):
        logger.error(
            "Service failure on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.cause or exc,
        )
        return _error_response(500, "Internal Server Error")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    @app.middleware("http")
    async def csrf_guard(request: Request, call_next):
        if (
            settings.require_csrf_header
            and request.method in STATE_CHANGING_METHODS
            and request.headers.get("X-Requested-With") != "fetch"
        ):
            return _error_response(400, "Bad request")
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.cookie_name,
        max_age=settings.session_max_age,
        same_site="none" if settings.cookie_secure else "lax",
        https_only=settings.cookie_secure,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(public_router, prefix="/api/public")
    app.include_router(reviews_router, prefix="/api/reviews")
    app.include_router(health_router)
    return app


app = create_app()
