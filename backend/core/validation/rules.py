"""Rules and Field Validation

A Rule applies one named predicate to a value. A RuleField applies an ordered
rule set to one request field and decides what the field's legal value is:

- absent and optional: the declared default
- absent and required: failure
- present: every rule runs (no short-circuit), then type coercion
"""
from __future__ import annotations

import inspect
import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from core.config import settings

from .coercion import coercion_for
from .errors import ValidatorDefinitionError
from .predicates import OPTIONAL, Predicate, get_predicate


def thaw(value: Any) -> Any:
    """Plain dicts and lists from a frozen parameter value."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


def stringify(value: Any) -> str:
    """String form handed to predicates. Containers render as the JSON the client sent."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(thaw(value), ensure_ascii=False)
    return str(value)


@dataclass(frozen=True, slots=True)
class RuleResult:
    """Outcome of a single rule."""
    is_valid: bool
    message: str = ""

    @classmethod
    def valid(cls) -> RuleResult:
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, message: str) -> RuleResult:
        return cls(is_valid=False, message=message)


@dataclass(frozen=True, slots=True)
class FieldResult:
    """Outcome of a field's whole rule set."""
    is_valid: bool
    messages: tuple[str, ...] = ()
    legal_value: Any = None

    @property
    def message(self) -> str:
        return "; ".join(self.messages)


@dataclass(frozen=True, slots=True)
class Rule:
    """One named predicate with its failure message and options.

    ``Rule("isOptional", "", default)`` is a marker rather than a predicate:
    it makes the field optional and supplies its default.

        email = [Rule("isEmail", "invalid email address")]
        age = [Rule("isInt", "age must be an integer", {"min": 0}),
               Rule("isOptional", "", 18)]
    """
    name: str
    message: str
    options: tuple[Any, ...]
    predicate: Predicate | None = field(default=None, repr=False, compare=False)

    def __init__(self, name: str, message: str = "", *options: Any):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "options", tuple(options))
        resolved = None if name == OPTIONAL else get_predicate(name)
        if resolved is not None:
            _check_options(name, resolved, options)
        object.__setattr__(self, "predicate", resolved)

    @property
    def is_optional(self) -> bool:
        return self.name == OPTIONAL

    def validate(self, value: Any) -> RuleResult:
        if self.predicate is None:
            return RuleResult.valid()
        if not self.predicate(stringify(value), *self.options):
            return RuleResult.invalid(self.message or settings.VALIDATION_FALLBACK_MESSAGE)
        return RuleResult.valid()


def _check_options(name: str, fn: Predicate, options: tuple) -> None:
    """Options must fit the predicate signature, so a rule missing its pattern fails when declared."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return
    try:
        signature.bind("", *options)
    except TypeError as e:
        raise ValidatorDefinitionError(f"Rule '{name}' does not accept options {options!r}: {e}") from e


class RuleField:
    """Applies a rule set to a single field value."""

    __slots__ = ("rules", "validator_name", "field")

    def __init__(self, rules: Sequence[Rule], validator_name: str, field: str):
        self.rules, self.validator_name, self.field = tuple(rules), validator_name, field

    def validate(self, value: Any) -> FieldResult:
        if value is None:
            return self._validate_absent()

        messages = tuple(
            result.message for rule in self.rules
            if not (result := rule.validate(value)).is_valid
        )
        if messages:
            return FieldResult(is_valid=False, messages=messages)

        return self._convert(value)

    def _validate_absent(self) -> FieldResult:
        if not self._allow_empty():
            return FieldResult(is_valid=False, messages=(settings.VALIDATION_REQUIRED_MESSAGE,))

        default = self._default()
        if default is None:
            raise ValidatorDefinitionError(
                f"{self.validator_name}: optional field '{self.field}' has no default value",
                validator=self.validator_name,
                field=self.field,
            )
        return FieldResult(is_valid=True, legal_value=default)

    def _allow_empty(self) -> bool:
        return any(rule.is_optional for rule in self.rules)

    def _default(self) -> Any:
        for rule in self.rules:
            if rule.is_optional:
                return rule.options[0] if rule.options else None
        return None

    def _convert(self, value: Any) -> FieldResult:
        coercion = coercion_for(rule.name for rule in self.rules)
        if coercion is None:
            return FieldResult(is_valid=True, legal_value=value)

        converted = coercion(value)
        if converted.is_err():
            return FieldResult(is_valid=False, messages=(converted.unwrap_err().message,))
        return FieldResult(is_valid=True, legal_value=converted.unwrap())
