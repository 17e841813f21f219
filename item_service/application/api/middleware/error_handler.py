"""
Error Handling Middleware
=========================

Last line of defence for exceptions that no exception handler claimed.
Registered handlers (see ``application/app.py``) map the service's own
errors to 400/404/500 bodies; anything else lands here, is logged with its
stack trace, counted, and turned into a generic 500.

Stack traces are only included in the response body in development.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from item_service.application.api.dependencies import get_metrics
from item_service.core.logging.logger import get_logger

logger = get_logger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into ``{"error", "message"}`` 500 responses."""

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            method = request.method
            path = request.url.path
            error_type = type(e).__name__

            logger.error(
                f"Unhandled exception in request: {method} {path}",
                method=method,
                path=path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )
            get_metrics(request).record_error(error_type)

            body = {
                "error": "Internal Server Error",
                "message": "An unexpected error occurred while processing your request",
            }
            if self.include_traceback:
                body["error_type"] = error_type
                body["detail"] = str(e)
                body["traceback"] = traceback.format_exc()

            return JSONResponse(status_code=500, content=body)
