"""Predicate Catalog

Named boolean predicates over stringified request values. Rules reference
predicates by name; the catalog is the only place names are resolved.

Every predicate has the signature ``fn(value: str, *options) -> bool``. Options
use the usual validator-library conventions: ``isLength`` takes ``{"min": 6, "max": 32}``,
``matches`` takes a pattern (and optional flags), ``isIn`` takes a list.

Register additional predicates with the decorator:

    @predicate("isSlug")
    def is_slug(value: str) -> bool:
        return bool(SLUG.match(value))
"""
from __future__ import annotations

import json
import re
from datetime import datetime
from functools import lru_cache
from ipaddress import IPv4Address, IPv6Address
from typing import Any, Callable, Mapping, Sequence
from urllib.parse import urlparse
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from .errors import UnknownPredicateError

Predicate = Callable[..., bool]

# Reserved marker handled by RuleField, never looked up here
OPTIONAL = "isOptional"

_PREDICATES: dict[str, Predicate] = {}


def predicate(name: str) -> Callable[[Predicate], Predicate]:
    """Decorator registering a predicate under ``name``."""
    if name == OPTIONAL:
        raise ValueError(f"'{OPTIONAL}' is reserved and cannot be registered")

    def decorator(fn: Predicate) -> Predicate:
        _PREDICATES[name] = fn
        return fn
    return decorator


def get_predicate(name: str) -> Predicate:
    """Resolve a predicate by name."""
    if name not in _PREDICATES:
        raise UnknownPredicateError(name, sorted(_PREDICATES))
    return _PREDICATES[name]


def list_predicates() -> list[str]:
    return sorted(_PREDICATES)


def _option(options: tuple, key: str, default: Any = None) -> Any:
    if options and isinstance(options[0], Mapping):
        return options[0].get(key, default)
    return default


@lru_cache(maxsize=256)
def _compile(pattern: str, flags: str = "") -> re.Pattern:
    value = 0
    for flag in flags:
        value |= {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}.get(flag, 0)
    return re.compile(pattern, value)


# ============================================================================
# Strings
# ============================================================================

@predicate("isEmail")
def is_email(value: str, *options) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


@predicate("isLength")
def is_length(value: str, *options) -> bool:
    """Length bounds, as ``{"min": n, "max": m}`` or positional ``min, max``."""
    if options and not isinstance(options[0], Mapping):
        minimum = options[0]
        maximum = options[1] if len(options) > 1 else None
    else:
        minimum = _option(options, "min", 0)
        maximum = _option(options, "max")
    length = len(value)
    return length >= (minimum or 0) and (maximum is None or length <= maximum)


@predicate("matches")
def matches(value: str, pattern: str | re.Pattern, flags: str = "") -> bool:
    compiled = pattern if isinstance(pattern, re.Pattern) else _compile(pattern, flags)
    return compiled.search(value) is not None


@predicate("isEmpty")
def is_empty(value: str, *options) -> bool:
    check = value.strip() if _option(options, "ignore_whitespace", False) else value
    return len(check) == 0


@predicate("equals")
def equals(value: str, comparison: Any) -> bool:
    return value == str(comparison)


@predicate("contains")
def contains(value: str, seed: Any, *options) -> bool:
    if _option(options, "ignoreCase", False):
        return str(seed).lower() in value.lower()
    return str(seed) in value


@predicate("isIn")
def is_in(value: str, values: Sequence[Any]) -> bool:
    return value in {str(v) for v in values}


_ALPHA = re.compile(r"^[A-Za-z]+$")
_ALPHANUMERIC = re.compile(r"^[A-Za-z0-9]+$")
_HEXADECIMAL = re.compile(r"^(0x|0h)?[0-9A-Fa-f]+$")


@predicate("isAlpha")
def is_alpha(value: str, *options) -> bool:
    return bool(_ALPHA.match(value))


@predicate("isAlphanumeric")
def is_alphanumeric(value: str, *options) -> bool:
    return bool(_ALPHANUMERIC.match(value))


@predicate("isAscii")
def is_ascii(value: str) -> bool:
    return value.isascii()


@predicate("isLowercase")
def is_lowercase(value: str) -> bool:
    return value == value.lower()


@predicate("isUppercase")
def is_uppercase(value: str) -> bool:
    return value == value.upper()


@predicate("isHexadecimal")
def is_hexadecimal(value: str) -> bool:
    return bool(_HEXADECIMAL.match(value))


# ============================================================================
# Numbers
# ============================================================================

_INT = re.compile(r"^[-+]?(?:0|[1-9][0-9]*)$")
_INT_LEADING_ZEROES = re.compile(r"^[-+]?[0-9]+$")
_FLOAT = re.compile(r"^[-+]?(?:[0-9]+)?(?:\.[0-9]*)?(?:[eE][-+]?[0-9]+)?$")
_NUMERIC = re.compile(r"^[-+]?[0-9]+$")
_DECIMAL = re.compile(r"^[-+]?(?:[0-9]+)?(?:\.[0-9]+)?$")


def _in_bounds(number: float, options: tuple) -> bool:
    checks = (
        ("min", lambda bound: number >= bound),
        ("max", lambda bound: number <= bound),
        ("gt", lambda bound: number > bound),
        ("lt", lambda bound: number < bound),
    )
    return all(
        check(bound) for key, check in checks
        if (bound := _option(options, key)) is not None
    )


@predicate("isInt")
def is_int(value: str, *options) -> bool:
    """Integer with optional ``min``/``max``/``gt``/``lt`` bounds."""
    pattern = _INT_LEADING_ZEROES if _option(options, "allow_leading_zeroes", True) else _INT
    if not pattern.match(value):
        return False
    try:
        number = int(value)
    except ValueError:
        # Digit strings past the interpreter's int conversion limit
        return False
    return _in_bounds(number, options)


@predicate("isFloat")
def is_float(value: str, *options) -> bool:
    """Floating point number with optional bounds."""
    if value in ("", ".", "-", "+") or not _FLOAT.match(value):
        return False
    try:
        number = float(value)
    except ValueError:
        return False
    return _in_bounds(number, options)


@predicate("isNumeric")
def is_numeric(value: str, *options) -> bool:
    return bool(_NUMERIC.match(value))


@predicate("isDecimal")
def is_decimal(value: str, *options) -> bool:
    return value not in ("", "-", "+") and bool(_DECIMAL.match(value))


# ============================================================================
# Formats
# ============================================================================

BOOLEAN_VALUES = frozenset({"true", "false", "1", "0"})
LOOSE_BOOLEAN_VALUES = frozenset({"yes", "no"})


@predicate("isBoolean")
def is_boolean(value: str, *options) -> bool:
    if _option(options, "loose", False):
        return value.lower() in BOOLEAN_VALUES | LOOSE_BOOLEAN_VALUES
    return value in BOOLEAN_VALUES


@predicate("isUUID")
def is_uuid(value: str, version: int | str | None = None) -> bool:
    try:
        parsed = UUID(value)
    except ValueError:
        return False
    if version in (None, "all"):
        return True
    return parsed.version == int(version)


@predicate("isURL")
def is_url(value: str, *options) -> bool:
    schemes = _option(options, "protocols", ("http", "https", "ftp"))
    require_tld = _option(options, "require_tld", True)
    parsed = urlparse(value)
    if parsed.scheme not in schemes or not parsed.hostname:
        return False
    return not require_tld or "." in parsed.hostname


@predicate("isIP")
def is_ip(value: str, version: int | str | None = None) -> bool:
    kinds = {4: (IPv4Address,), 6: (IPv6Address,)}.get(
        int(version) if version else 0, (IPv4Address, IPv6Address)
    )
    for kind in kinds:
        try:
            kind(value)
        except ValueError:
            continue
        return True
    return False


@predicate("isJSON")
def is_json(value: str, *options) -> bool:
    try:
        parsed = json.loads(value)
    except ValueError:
        return False
    return isinstance(parsed, (dict, list)) or bool(_option(options, "allow_primitives", False))


@predicate("isISO8601")
def is_iso8601(value: str, *options) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True
