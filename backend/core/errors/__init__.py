"""Error Handling System

Key components:
- Result[T, E]: Ok / Err container for failures returned as values
- AppError: Base error type with full context
- ErrorCode: Hierarchical error code taxonomy
- Builder functions and FastAPI handlers

Usage:
    from core.errors import Ok, Err, AppError, validation_error

    async def validate_nickname(self, params):
        if await nickname_taken(params["body"]["nickname"]):
            return validation_error("nickname already taken")
        return Ok()
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
)

from .builders import (
    validation_error,
    invalid_json,
    internal_error,
)

from .handlers import (
    AppErrorException,
    register_error_handlers,
    result_to_response,
    raise_error,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "validation_error",
    "invalid_json",
    "internal_error",
    "AppErrorException",
    "register_error_handlers",
    "result_to_response",
    "raise_error",
]
