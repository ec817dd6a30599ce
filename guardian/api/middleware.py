"""
Guardian AI - API Middleware

Provides:
- Correlation ID tracking for request tracing
- Request/response logging for the /api surface
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from guardian.monitoring import bind_context, unbind_context

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Attach a correlation ID to every request.

    Taken from the X-Correlation-ID header when the caller sends one,
    otherwise generated. Echoed back on the response and bound to the
    structlog context for the duration of the request.
    """

    HEADER_NAME = "X-Correlation-ID"

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        bind_context(correlation_id=correlation_id)
        try:
            response = await call_next(request)
        finally:
            unbind_context("correlation_id")

        response.headers[self.HEADER_NAME] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log API requests with status and duration.

    Only paths under /api are logged; the dashboard, static assets and
    health probes would otherwise drown the log every few seconds.
    """

    LOGGED_PREFIX = "/api"

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        if not path.startswith(self.LOGGED_PREFIX):
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:  # Logged here, re-raised to the exception handlers
            logger.exception(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(e),
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code
        log_level = "info" if status_code < 400 else "warning" if status_code < 500 else "error"
        getattr(logger, log_level)(
            "request_completed",
            method=request.method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
