"""FastAPI application for the Pet Story backend."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import Settings
from ..core.errors import PetStoryError, RateLimitError
from .dependencies import ServiceContainer
from .logging import configure_logging
from .routes import health, pets, stories
from .security import (
    CORS_HEADERS,
    CORS_METHODS,
    GeneralRateLimitMiddleware,
    OriginGuardMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    cors_origin_regex,
    cors_response_headers,
    create_general_limiter,
    create_generation_limiter,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - build upstream clients once, close them on shutdown."""
    settings: Settings = app.state.settings
    owns_services = getattr(app.state, "services", None) is None
    if owns_services:
        app.state.services = ServiceContainer.from_settings(settings)

    logger.info(f"PIMS URL: {settings.pims_base_url}")
    logger.info(f"Xano configured: {settings.xano_configured}")
    if settings.is_development:
        logger.info(
            "Available endpoints: GET /api/health, GET /api/pets, "
            "GET /api/pets/{id}, POST /api/generate-story"
        )

    yield

    if owns_services:
        await app.state.services.aclose()


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    expose_detail = not settings.is_production

    @app.exception_handler(PetStoryError)
    async def pet_story_error_handler(request: Request, exc: PetStoryError):
        if exc.status_code >= 500:
            logger.error(
                f"{request.method} {request.url.path} failed: {exc.detail or exc}",
                extra={"error_type": type(exc).__name__, "path": request.url.path},
            )
        headers = None
        if isinstance(exc, RateLimitError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(expose_detail=expose_detail),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = exc.detail
        elif exc.status_code == 404:
            content = {
                "error": "Endpoint not found",
                "message": f"{request.method} {request.url.path} is not a valid endpoint",
            }
        else:
            content = {"error": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Validation error", "details": details})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
            extra={"error_type": type(exc).__name__, "path": request.url.path},
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if expose_detail else "Something went wrong",
            },
            headers=cors_response_headers(request, settings),
        )


def create_app(
    settings: Settings,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Immutable configuration
        services: Prebuilt services (tests). When omitted, the lifespan
            builds them from settings and closes them on shutdown.
    """
    app = FastAPI(
        title="Pet Story Generator API",
        description="""
Generate heartwarming stories about pets and look up pet records.

## Features
- **Story Generation**: LLM-written stories tailored to a pet and its owner
- **Moderation**: Optional content-policy check on every generated story
- **Pet Records**: Read-through proxy to the veterinary practice system (PIMS)
- **Persistence**: Optionally save generated stories to Xano
        """,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services
    app.state.generation_limiter = create_generation_limiter(settings)

    # Outermost middleware is added last
    app.add_middleware(
        GeneralRateLimitMiddleware,
        limiter=create_general_limiter(settings),
        trust_proxy_headers=settings.trust_proxy_headers,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_origin_regex=cors_origin_regex(settings),
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )
    app.add_middleware(OriginGuardMiddleware, settings=settings)
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    if settings.is_development:
        app.add_middleware(RequestLoggingMiddleware)

    _register_exception_handlers(app, settings)

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(pets.router, prefix="/api/pets", tags=["Pets"])
    app.include_router(stories.router, prefix="/api", tags=["Stories"])

    return app


def create_app_from_env() -> FastAPI:
    """Load settings from the environment, configure logging and build the app.

    Raises:
        ConfigurationError: if required configuration is missing
    """
    settings = Settings.from_env()
    configure_logging(
        json_format=settings.is_production,
        level=logging.DEBUG if settings.is_development else logging.INFO,
    )
    return create_app(settings)


app = create_app_from_env()
