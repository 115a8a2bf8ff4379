"""Validation Error Types

Two kinds of failure leave the validation engine:

- ParameterException: the request is invalid. Carries a fixed numeric code and
  the ordered list of messages collected across every field and custom check.
  Rendered as a 400 response.
- ValidatorDefinitionError: the validator class itself is malformed (a rule set
  holding something other than Rule, an optional field without a default, an
  unknown predicate name). Never converted into a user-facing message.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from core.config import settings
from core.errors import AppError, ErrorCode


@dataclass(eq=False)
class ParameterException(Exception):
    """Aggregated parameter validation failure."""
    messages: list[str] = field(default_factory=list)
    code: int = field(default_factory=lambda: settings.VALIDATION_ERROR_CODE)
    status_code: int = 400

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if len(self.messages) == 1:
            return self.messages[0]
        return f"Parameter validation failed: {len(self.messages)} errors"

    def __str__(self) -> str:
        return self.message

    def to_app_error(self) -> AppError:
        """Convert to AppError for the error handling system."""
        return AppError(
            code=ErrorCode.E2030_PARAMETER_INVALID,
            message=self.message,
            metadata={"error_code": self.code, "messages": list(self.messages)},
        )

    def to_dict(self) -> dict[str, Any]:
        return {"error_code": self.code, "messages": list(self.messages)}


class ValidatorDefinitionError(Exception):
    """A validator subclass is declared incorrectly."""

    def __init__(self, message: str, *, validator: str | None = None, field: str | None = None):
        self.validator = validator
        self.field = field
        super().__init__(message)

    def to_app_error(self) -> AppError:
        return AppError(
            code=ErrorCode.E9010_VALIDATOR_DEFINITION,
            message="Validator definition error",
            metadata={"validator": self.validator, "field": self.field},
            cause=self,
        )


class UnknownPredicateError(ValidatorDefinitionError):
    """A Rule names a predicate missing from the catalog."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        super().__init__(
            f"Unknown validation rule '{name}'. Available: {', '.join(available) or 'none'}"
        )
