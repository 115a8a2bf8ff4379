"""Type Coercion for Validated Fields

A field whose rule set carries a type-bearing predicate (``isInt``,
``isFloat``, ``isBoolean``) has its value converted once every rule passed.
Coercion never runs on unvalidated input.

Precedence is fixed: int, then float, then boolean. The first coercion whose
predicate appears anywhere in the rule set wins.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable

from core.errors import AppError, Err, ErrorCode, Ok, Result


@dataclass(frozen=True, slots=True)
class CoercionRule(ABC):
    """Converts a validated raw value to the type its predicate promises."""

    @property
    @abstractmethod
    def predicate_name(self) -> str:
        """Predicate that requests this coercion."""

    @property
    @abstractmethod
    def target_type(self) -> type:
        """Type this rule coerces to."""

    @abstractmethod
    def coerce(self, value: Any) -> Result[Any, AppError]:
        """Coerce value to target type."""

    def _failure(self, value: Any, exc: Exception | None = None) -> Err[AppError]:
        return Err(AppError(
            code=ErrorCode.E2004_INVALID_TYPE,
            message=f"Cannot coerce '{value}' to {self.target_type.__name__}",
            metadata={"value": repr(value), "target": self.target_type.__name__},
            cause=exc,
        ))

    def __call__(self, value: Any) -> Result[Any, AppError]:
        return self.coerce(value)


@dataclass(frozen=True, slots=True)
class ToInt(CoercionRule):

    @property
    def predicate_name(self) -> str:
        return "isInt"

    @property
    def target_type(self) -> type:
        return int

    def coerce(self, value: Any) -> Result[int, AppError]:
        if isinstance(value, bool):
            return self._failure(value)
        if isinstance(value, int):
            return Ok(value)
        try:
            return Ok(int(str(value).strip()))
        except ValueError as e:
            return self._failure(value, e)


@dataclass(frozen=True, slots=True)
class ToFloat(CoercionRule):

    @property
    def predicate_name(self) -> str:
        return "isFloat"

    @property
    def target_type(self) -> type:
        return float

    def coerce(self, value: Any) -> Result[float, AppError]:
        if isinstance(value, bool):
            return self._failure(value)
        try:
            return Ok(float(str(value).strip()))
        except ValueError as e:
            return self._failure(value, e)


@dataclass(frozen=True, slots=True)
class ToBool(CoercionRule):
    """Truthy: "true", "1", "yes". Falsy: "false", "0", "no"."""
    true_values: frozenset[str] = frozenset({"true", "1", "yes"})
    false_values: frozenset[str] = frozenset({"false", "0", "no"})

    @property
    def predicate_name(self) -> str:
        return "isBoolean"

    @property
    def target_type(self) -> type:
        return bool

    def coerce(self, value: Any) -> Result[bool, AppError]:
        if isinstance(value, bool):
            return Ok(value)
        normalized = str(value).strip().lower()
        if normalized in self.true_values:
            return Ok(True)
        if normalized in self.false_values:
            return Ok(False)
        return self._failure(value)


COERCIONS: tuple[CoercionRule, ...] = (ToInt(), ToFloat(), ToBool())


def coercion_for(rule_names: Iterable[str]) -> CoercionRule | None:
    """Pick the coercion for a rule set by precedence, or None for passthrough."""
    names = set(rule_names)
    for rule in COERCIONS:
        if rule.predicate_name in names:
            return rule
    return None
