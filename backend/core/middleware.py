"""Validation-Aware Request Middleware

Each request gets a correlation ID bound into the structlog context. When the
response is ready, one ``request_completed`` event reports the status, the
timing and, for routes guarded by ``use_validator``, which validator ran and
how it ended. The dependency leaves that outcome on ``request.state``.
"""
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from core.logging import (
    generate_correlation_id,
    bind_context,
    clear_context,
    api_logger,
)

log = api_logger()

CORRELATION_HEADER = "X-Correlation-ID"
VALIDATION_STATE_KEYS = ("validator", "validation", "error_count")


def validation_summary(request: Request) -> dict:
    """Validator name, final state and error count recorded on the request, if any."""
    state = request.state
    return {key: getattr(state, key) for key in VALIDATION_STATE_KEYS if hasattr(state, key)}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Correlation context plus one summary event per request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        clear_context()
        bind_context(correlation_id=correlation_id, method=request.method, path=request.url.path)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception(
                "request_failed",
                error_type=type(exc).__name__,
                duration_ms=_elapsed_ms(start),
                **validation_summary(request),
            )
            clear_context()
            raise

        response.headers[CORRELATION_HEADER] = correlation_id
        # Parameter rejections (4xx) log at info
        emit = log.error if response.status_code >= 500 else log.info
        emit(
            "request_completed",
            status=response.status_code,
            duration_ms=_elapsed_ms(start),
            **validation_summary(request),
        )
        clear_context()
        return response
