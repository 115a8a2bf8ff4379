"""Error Builders

Ergonomic constructors for the typed errors the validation layer produces.
Each builder returns an Err wrapping an AppError with the right code.
"""
from .types import AppError, ErrorCode, ErrorContext, Err


def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    """Create validation error.

    Custom checks may return this instead of raising:

        async def validate_nickname(self, params):
            if await nickname_taken(params["body"]["nickname"]):
                return validation_error("nickname already taken", field="nickname")
    """
    meta = {"field": field, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def invalid_json(message: str, origin: str = "") -> Err[AppError]:
    return validation_error(
        f"Invalid JSON: {message}",
        code=ErrorCode.E2021_INVALID_JSON,
        origin=origin,
    )


def internal_error(
    message: str,
    *,
    origin: str = "",
    cause: Exception | None = None,
) -> Err[AppError]:
    return Err(AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message=message,
        context=ErrorContext(origin=origin),
        cause=cause,
    ))
