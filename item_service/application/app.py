#!/usr/bin/env python3
"""
FastAPI Application Factory

Builds the Item Service application: components on ``app.state``, lifespan
wired to the lifecycle controller, middleware, exception handlers and routes.

Run with ``python -m item_service.main`` (signal-aware server) or
``uvicorn item_service.application.app:create_app --factory``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from item_service.application.api.middleware import setup_middleware
from item_service.application.api.routes.health import router as health_router
from item_service.application.api.routes.items import router as items_router
from item_service.application.api.routes.metrics import router as metrics_router
from item_service.application.container import ServiceComponents, build_components
from item_service.core.config.settings import Settings, get_settings
from item_service.core.exceptions import (
    ItemServiceError,
    RecordNotFoundError,
    TransientStoreError,
    ValidationError,
)
from item_service.core.logging.logger import get_logger, setup_logging

logger = get_logger(__name__)

API_PREFIX = "/api"


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect dependencies on startup, release them on shutdown."""
    settings: Settings = app.state.settings
    components: ServiceComponents = app.state.components

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)
    logger.info(
        "Starting Item Service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    await components.lifecycle.startup()
    try:
        yield
    finally:
        logger.info("Shutting down application")
        await components.lifecycle.shutdown()
        logger.info("Application shutdown complete")


# ============================================================================
# Exception Handlers
# ============================================================================


def _validation_message(error: dict) -> str:
    message = error.get("msg", "Invalid request")
    return message.removeprefix("Value error, ")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Translate framework validation failures into ValidationError."""
    errors = exc.errors()

    if any(error["loc"][:1] == ("path",) for error in errors):
        return await validation_error_handler(request, ValidationError("Invalid item ID"))

    fields = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]),
            "message": _validation_message(error),
        }
        for error in errors
    ]
    error = ValidationError(
        fields[0]["message"] if fields else "Invalid request",
        details={"fields": fields},
    )
    return await validation_error_handler(request, error)


async def validation_error_handler(request: Request, exc: ValidationError):
    """400 with ``{error}``, plus ``details`` listing offending fields when known."""
    content: dict = {"error": exc.message}
    if "fields" in exc.details:
        content["details"] = exc.details["fields"]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": exc.message})


async def store_error_handler(request: Request, exc: TransientStoreError):
    """A single primary-store query failed; not retried."""
    request.app.state.components.metrics.record_error(type(exc).__name__)
    logger.error(exc.message, error_type=type(exc).__name__, **exc.details)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": exc.message, "message": exc.details.get("original_message", exc.message)},
    )


async def service_error_handler(request: Request, exc: ItemServiceError):
    request.app.state.components.metrics.record_error(type(exc).__name__)
    logger.error(f"Service error: {exc.message}", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error", "message": exc.message},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and methods: ``Cannot <METHOD> <path>``."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        error = "Not Found" if exc.status_code == status.HTTP_404_NOT_FOUND else "Method Not Allowed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": error, "message": f"Cannot {request.method} {request.url.path}"},
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    components: ServiceComponents | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        components: Pre-built components (defaults to ``build_components(settings)``)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    components = components or build_components(settings)

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Item CRUD service with cache-aside reads over a relational store",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.components = components
    app.state.lifecycle = components.lifecycle

    setup_middleware(app, settings)

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RecordNotFoundError, not_found_handler)
    app.add_exception_handler(TransientStoreError, store_error_handler)
    app.add_exception_handler(ItemServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(items_router, prefix=API_PREFIX)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": "/health",
        }

    return app
