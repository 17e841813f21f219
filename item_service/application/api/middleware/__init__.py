"""
Middleware Package
==================

Request flow:  Client -> RequestID -> ErrorHandling -> RequestLogging -> CORS -> Handler

Starlette runs middleware in reverse order of registration, so
``setup_middleware`` adds them innermost first.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from item_service.core.config.constants import HEADER_REQUEST_ID
from item_service.core.config.settings import Settings
from item_service.core.logging.logger import get_logger

from .error_handler import ErrorHandlingMiddleware
from .request_id import RequestIDMiddleware
from .request_logging import RequestLoggingMiddleware

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        ErrorHandlingMiddleware,
        include_traceback=(settings.app.ENVIRONMENT == "development"),
    )
    app.add_middleware(RequestIDMiddleware)

    logger.debug("Middleware registered")


__all__ = [
    "ErrorHandlingMiddleware",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "setup_middleware",
]
