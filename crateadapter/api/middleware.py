"""Request ID and request logging middleware."""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

# Polled by Prometheus and orchestrators; logged at debug only.
QUIET_PATHS = frozenset({"/metrics", "/health", "/health/live", "/health/ready"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID.

    An incoming ``X-Request-ID`` is reused, otherwise a UUID is generated.
    The ID is kept in ``request.state.request_id``, bound to the structlog
    context while the request runs and echoed in the response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        response.headers["X-Request-ID"] = request_id

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        path = request.url.path
        log = logger.debug if path in QUIET_PATHS else logger.info
        log(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_seconds=round(duration, 6),
            client=request.client.host if request.client else "unknown",
            user_agent=request.headers.get("user-agent"),
        )

        return response
