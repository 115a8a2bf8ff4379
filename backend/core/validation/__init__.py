"""Declarative Request Validation

Validators declare per-field rule sets and custom checks; a single
``validate()`` call checks every member, collects every failure, and either
raises one ParameterException or leaves a queryable bag of validated,
coerced, default-filled parameters.

Usage:
    from core.validation import BaseValidator, Rule

    class SignupValidator(BaseValidator):
        email = [Rule("isEmail", "invalid email address")]
        age = [Rule("isInt", "age must be an integer"), Rule("isOptional", "", 18)]

        async def validate_email_unique(self, params):
            if await email_taken(params["body"].get("email")):
                raise ValueError("email already registered")

    validator = await SignupValidator(ctx).validate()
    validator.get("body.email")
    validator.get("age")  # 18 when the client omitted it
"""
from .base import BaseValidator, ValidatorState
from .boundaries import use_validator
from .coercion import COERCIONS, CoercionRule, coercion_for
from .context import RequestContext
from .discovery import check, discover, find_members
from .errors import ParameterException, UnknownPredicateError, ValidatorDefinitionError
from .predicates import get_predicate, list_predicates, predicate
from .rules import FieldResult, Rule, RuleField, RuleResult

__all__ = [
    "BaseValidator",
    "ValidatorState",
    "use_validator",
    "COERCIONS",
    "CoercionRule",
    "coercion_for",
    "RequestContext",
    "check",
    "discover",
    "find_members",
    "ParameterException",
    "UnknownPredicateError",
    "ValidatorDefinitionError",
    "get_predicate",
    "list_predicates",
    "predicate",
    "FieldResult",
    "Rule",
    "RuleField",
    "RuleResult",
]
