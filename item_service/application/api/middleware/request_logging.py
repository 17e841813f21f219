"""
Request Logging Middleware
==========================

Logs one line per completed request (method, path, status, duration) and
feeds the HTTP request metrics. Request and response bodies are never
logged; sensitive headers are redacted.
"""

import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from item_service.application.api.dependencies import get_metrics
from item_service.core.logging.logger import get_logger

logger = get_logger(__name__)

SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
}

# Probe endpoints are polled constantly; log them at debug level
QUIET_PATHS = {"/health", "/ready", "/live", "/metrics"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured access log plus request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        metrics = get_metrics(request)

        logger.debug(
            f"Incoming request: {method} {path}",
            method=method,
            path=path,
            headers=self._sanitize_headers(dict(request.headers)),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            metrics.record_request(method, 500, duration)
            logger.error(
                f"Request failed: {method} {path}",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
            )
            raise

        duration = time.perf_counter() - start_time
        metrics.record_request(method, response.status_code, duration)

        log = logger.debug if path in QUIET_PATHS else logger.info
        log(
            f"{method} {path}",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        return response

    @staticmethod
    def _sanitize_headers(headers: dict) -> dict:
        return {
            key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }
