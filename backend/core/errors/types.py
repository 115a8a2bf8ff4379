"""Error Handling Types

Error codes for the validation service, the immutable AppError rendered in
every error response, and the Ok/Err pair used where a failure is a value:
coercion results, custom check returns and ingress parsing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
E = TypeVar("E", bound="AppError")


class ErrorCode(Enum):
    """E2xxx: rejected client input (400). E9xxx: server-side faults (500)."""
    E2000_VALIDATION_GENERIC = 2000
    E2004_INVALID_TYPE = 2004
    E2021_INVALID_JSON = 2021
    E2030_PARAMETER_INVALID = 2030

    E9001_UNEXPECTED_ERROR = 9001
    E9010_VALIDATOR_DEFINITION = 9010

    @property
    def http_status(self) -> int:
        return 400 if self.value < 9000 else 500

    @property
    def category(self) -> str:
        return "validation" if self.value < 9000 else "internal"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Where an error was raised and which request it belongs to."""
    correlation_id: str = field(default_factory=lambda: str(uuid4())[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class AppError:
    """Typed error with message, metadata, context and optional cause."""
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict = field(default_factory=dict)
    cause: Exception | None = None

    def with_context(self, **kwargs) -> AppError:
        """Copy with request context filled in. An empty correlation_id keeps the current one."""
        context = ErrorContext(
            correlation_id=kwargs.get("correlation_id") or self.context.correlation_id,
            timestamp=self.context.timestamp,
            origin=kwargs.get("origin", self.context.origin),
            request_id=kwargs.get("request_id", self.context.request_id),
        )
        metadata = {**self.metadata, **kwargs.get("metadata", {})}
        return AppError(self.code, self.message, context, metadata, self.cause)

    def to_dict(self) -> dict:
        """Response envelope."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "correlation_id": self.context.correlation_id,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T = None

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def is_err(self) -> bool:
        return True

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]
