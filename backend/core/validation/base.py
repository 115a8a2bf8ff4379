"""Parameter Validator Base

Concrete validators subclass BaseValidator and declare two kinds of member:

1. Rule sets: a list (or tuple) whose every element is a Rule. The member
   name is the request field to validate.

       email = [Rule("isEmail", "invalid email address")]

2. Custom checks: methods named ``validate_<something>`` (or decorated with
   ``@check``), sync or async, receiving the raw parameter bag. A check fails
   by raising, or by returning False, an Err or a failing RuleResult.

       async def validate_password(self, params):
           if params["body"].get("password1") != params["body"].get("password2"):
               raise ValueError("passwords do not match")

Rule sets may also be assigned as instance attributes in ``__init__``.

``params`` is the read-only snapshot of what the client sent. ``params_checked``
starts as an independent copy and converges to the validated values, with
defaults for absent optional fields stored under ``default``.
"""
from __future__ import annotations

import copy
import inspect
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Self, Sequence

from core.config import settings
from core.errors import Err, Ok
from core.logging import validation_logger

from .context import RequestContext
from .discovery import discover, member_filter
from .errors import ParameterException, ValidatorDefinitionError
from .rules import RuleField, RuleResult, thaw

log = validation_logger()

SOURCES = ("query", "body", "path", "header")
DEFAULT_BUCKET = "default"

Path = str | Sequence[str | int]


class ValidatorState(str, Enum):
    CONSTRUCTED = "constructed"
    INGESTED = "ingested"
    VALIDATING = "validating"
    VALIDATED = "validated"
    REJECTED = "rejected"
    ERRORED = "errored"


class BaseValidator:
    """Validates one request's parameters against the declared members."""

    _declared_members: tuple[str, ...] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Malformed class-level rule sets fail here, when the class is defined
        cls._declared_members = tuple(discover(cls))

    def __init__(self, ctx: RequestContext | Mapping[str, Any]):
        self.state = ValidatorState.CONSTRUCTED
        self._member_keys: tuple[str, ...] = ()
        self._init_params(ctx)

    def _init_params(self, ctx: RequestContext | Mapping[str, Any]) -> None:
        params = self._assemble_all_params(ctx)
        self.params: Mapping[str, Any] = _freeze(copy.deepcopy(params))
        self.params_checked: dict[str, Any] = copy.deepcopy(params)
        self.state = ValidatorState.INGESTED

    @staticmethod
    def _assemble_all_params(ctx: RequestContext | Mapping[str, Any]) -> dict[str, Any]:
        if isinstance(ctx, RequestContext):
            sources = ctx.as_dict()
        elif isinstance(ctx, Mapping):
            sources = ctx
        else:
            raise TypeError(f"Expected RequestContext or mapping, got {type(ctx).__name__}")
        return {source: sources.get(source) or {} for source in SOURCES}

    @property
    def member_keys(self) -> tuple[str, ...]:
        return self._member_keys

    def get(self, path: Path, resolved: bool = True) -> Any:
        """Effective value of a field.

        Args:
            path: Dotted path ("query.age") or key sequence. A bare field name
                ("age") also resolves defaults and validated values found in any
                source.
            resolved: Read the checked bag (default) or the raw parameters.
        """
        keys = _split(path)
        if not resolved:
            return _get_path(self.params, keys)

        value = _get_path(self.params_checked, keys)
        if value or not keys:
            return value

        field = keys[-1]
        defaults = self.params_checked.get(DEFAULT_BUCKET)
        if isinstance(defaults, Mapping) and field in defaults:
            return defaults[field]
        if len(keys) == 1:
            _, found = self._find_param(field)
            if found:
                return _get_path(self.params_checked, found)
        return value

    async def validate(self) -> Self:
        """Check every declared member. Raises ParameterException listing all failures."""
        self.state = ValidatorState.VALIDATING
        validator = type(self).__name__
        error_messages: list[str] = []

        try:
            self._member_keys = self._discover_members()
            log.debug("validation_started", validator=validator, members=list(self._member_keys))

            for key in self._member_keys:
                message = await self._check(key)
                if message is not None:
                    error_messages.append(message)
        except ValidatorDefinitionError as e:
            self.state = ValidatorState.ERRORED
            log.error("validator_definition_error", validator=validator, field=e.field, error=str(e))
            raise

        if error_messages:
            self.state = ValidatorState.REJECTED
            log.info("validation_rejected", validator=validator, error_count=len(error_messages))
            raise ParameterException(messages=error_messages)

        self.state = ValidatorState.VALIDATED
        log.debug("validation_passed", validator=validator)
        return self

    def _discover_members(self) -> tuple[str, ...]:
        """Instance attributes first, then the class registry built at definition time."""
        own = vars(self)
        keep = member_filter(self)
        own_members = [name for name in own if keep(name)]
        inherited = [name for name in type(self)._declared_members if name not in own]
        return tuple(own_members + inherited)

    async def _check(self, key: str) -> str | None:
        """Validate one member. Returns the failure message, or None."""
        member = getattr(self, key)
        if isinstance(member, (list, tuple)):
            return self._check_field(key, member)
        return await self._check_custom(key, member)

    def _check_field(self, key: str, rules: Sequence) -> str | None:
        value, path = self._find_param(key)
        result = RuleField(rules, type(self).__name__, key).validate(value)
        if not result.is_valid:
            return f"{key}: {result.message}"

        _set_path(self.params_checked, path or (DEFAULT_BUCKET, key), thaw(result.legal_value))
        return None

    async def _check_custom(self, key: str, check) -> str | None:
        fallback = settings.VALIDATION_FALLBACK_MESSAGE
        try:
            outcome = check(self.params)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except ValidatorDefinitionError:
            raise
        except Exception as e:
            log.debug("custom_check_failed", check=key, error=str(e), error_type=type(e).__name__)
            return str(e) or fallback

        match outcome:
            case None | True | Ok():
                return None
            case False:
                return fallback
            case Err(error=error):
                return getattr(error, "message", None) or str(error) or fallback
            case RuleResult(is_valid=False, message=message):
                return message or fallback
        return None

    def _find_param(self, key: str) -> tuple[Any, tuple[str, ...]]:
        """First source holding a non-empty value for ``key``: query, body, path, header."""
        for source in SOURCES:
            bucket = self.params.get(source)
            if not isinstance(bucket, Mapping):
                continue
            value = bucket.get(key)
            if value is not None and value != "":
                return value, (source, key)
        return None, ()


def _split(path: Path) -> list[str | int]:
    if isinstance(path, str):
        return [segment for segment in path.split(".") if segment]
    return list(path)


def _get_path(data: Any, keys: Sequence[str | int]) -> Any:
    current = data
    for key in keys:
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple)) and str(key).isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
    return current


def _set_path(data: dict, keys: Sequence[str], value: Any) -> None:
    current = data
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value
