"""FastAPI Exception Handlers

Converts AppErrors, parameter validation failures and unexpected exceptions
into structured JSON responses.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging import get_logger

from .builders import internal_error, validation_error
from .types import AppError, ErrorCode, ErrorContext

log = get_logger("errors.handlers")


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Use this when you need to raise an AppError in code that
    doesn't return a Result (e.g., FastAPI dependencies).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def result_to_response(error: AppError) -> JSONResponse:
    """Convert AppError to FastAPI JSONResponse."""
    status_code = error.code.http_status

    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.name,
        error_code_num=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        metadata=error.metadata,
    )

    return JSONResponse(
        status_code=status_code,
        content=error.to_dict(),
    )


def _request_context(request: Request) -> dict:
    return {
        "correlation_id": request.headers.get("X-Correlation-ID", ""),
        "request_id": request.headers.get("X-Request-ID"),
    }


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    """Handle AppErrorException raised in route handlers."""
    return result_to_response(exc.error.with_context(**_request_context(request)))


async def parameter_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle aggregated parameter validation failures."""
    from core.validation.errors import ParameterException

    if not isinstance(exc, ParameterException):
        raise exc

    error = exc.to_app_error().with_context(
        origin=f"{request.method} {request.url.path}",
        **_request_context(request),
    )
    return result_to_response(error)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle standard HTTP exceptions with structured error response."""
    code = ErrorCode.E2000_VALIDATION_GENERIC if exc.status_code < 500 else ErrorCode.E9001_UNEXPECTED_ERROR
    error = AppError(
        code=code,
        message=str(exc.detail) if exc.detail else f"HTTP {exc.status_code}",
        context=ErrorContext(origin="http"),
    ).with_context(**_request_context(request))

    response = result_to_response(error)
    response.status_code = exc.status_code
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI's own request model validation errors."""
    messages = [
        f"{'.'.join(str(loc) for loc in err.get('loc', ()))}: {err.get('msg', 'Validation failed')}"
        for err in exc.errors()
    ]
    error = validation_error(
        messages[0] if len(messages) == 1 else f"Request validation failed: {len(messages)} errors",
        origin="request_validation",
        messages=messages,
    ).unwrap_err()
    return result_to_response(error.with_context(**_request_context(request)))


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions.

    Validator definition errors arrive here too: they are server bugs and
    render as internal errors, never as parameter messages.
    """
    from core.validation.errors import ParameterException, ValidatorDefinitionError

    if isinstance(exc, ParameterException):
        return await parameter_exception_handler(request, exc)

    if isinstance(exc, ValidatorDefinitionError):
        error = exc.to_app_error()
    else:
        error = internal_error(
            "An unexpected error occurred",
            origin="unhandled",
            cause=exc,
        ).unwrap_err()
    error = error.with_context(**_request_context(request))

    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )

    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on FastAPI app."""
    from core.validation.errors import ParameterException

    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(ParameterException, parameter_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_error(error: AppError) -> None:
    """Raise AppError as exception."""
    raise AppErrorException(error)
