"""Member Discovery

Finds which members of a validator are rule sets and which are custom
checks. Members are collected from the instance's own attributes first, then
from each class of its MRO (``object`` excluded), keeping the occurrence
nearest the instance and declaration order within each level.
"""
from __future__ import annotations

import re
from inspect import getattr_static
from typing import Any, Callable, Iterator

from .errors import ValidatorDefinitionError
from .rules import Rule

CUSTOM_CHECK_PATTERN = re.compile(r"^validate_\w+$")
CHECK_MARKER = "__validation_check__"


def check(fn: Callable) -> Callable:
    """Mark a method as a custom check regardless of its name."""
    setattr(fn, CHECK_MARKER, True)
    return fn


def _levels(obj: Any) -> Iterator[dict]:
    if not isinstance(obj, type):
        yield vars(obj) if hasattr(obj, "__dict__") else {}
        obj = type(obj)
    for klass in obj.__mro__:
        if klass is object:
            continue
        yield vars(klass)


def find_members(
    obj: Any,
    *,
    filter: Callable[[str], bool] | None = None,
    prefix: str | None = None,
    specified_type: type | None = None,
) -> list[str]:
    """Names of members on ``obj`` and its ancestors satisfying any criterion.

    Args:
        obj: Instance or class to scan
        filter: Predicate on the member name
        prefix: Keep names starting with this prefix
        specified_type: Keep members whose value is an instance of this type
    """
    if not filter and not prefix and not specified_type:
        return []

    def should_keep(name: str) -> bool:
        if filter and filter(name):
            return True
        if prefix and name.startswith(prefix):
            return True
        if specified_type and isinstance(getattr_static(obj, name, None), specified_type):
            return True
        return False

    seen: set[str] = set()
    found: list[str] = []
    for members in _levels(obj):
        for name in members:
            if name in seen:
                continue
            seen.add(name)
            if should_keep(name):
                found.append(name)
    return found


def is_custom_check(name: str, value: Any) -> bool:
    if CUSTOM_CHECK_PATTERN.match(name):
        return True
    return callable(value) and getattr(value, CHECK_MARKER, False)


def is_rule_set(owner: str, name: str, value: Any) -> bool:
    """True for a list/tuple of Rule. Raises if such a sequence holds anything else."""
    if not isinstance(value, (list, tuple)):
        return False
    for item in value:
        if not isinstance(item, Rule):
            raise ValidatorDefinitionError(
                f"{owner}: every element of rule set '{name}' must be a Rule, got {type(item).__name__}",
                validator=owner,
                field=name,
            )
    return True


def member_filter(obj: Any) -> Callable[[str], bool]:
    """Filter keeping rule sets and custom checks of a validator instance or class."""
    owner = obj.__name__ if isinstance(obj, type) else type(obj).__name__

    def keep(name: str) -> bool:
        if name.startswith("_"):
            return False
        value = getattr_static(obj, name, None)
        if is_rule_set(owner, name, value):
            return True
        if is_custom_check(name, value):
            if not callable(value):
                raise ValidatorDefinitionError(
                    f"{owner}: '{name}' uses the custom check prefix but is neither callable nor a rule set",
                    validator=owner,
                    field=name,
                )
            return True
        return False
    return keep


def discover(obj: Any) -> list[str]:
    """Ordered rule-set and custom-check member names of a validator."""
    return find_members(obj, filter=member_filter(obj))
