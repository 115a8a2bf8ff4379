"""Tests for BaseValidator: ingestion, validation, aggregation and retrieval."""

import asyncio
import copy
from types import MappingProxyType

import pytest

from core.errors import AppError, Err, ErrorCode, Ok
from core.validation import (
    BaseValidator,
    ParameterException,
    RequestContext,
    Rule,
    RuleResult,
    ValidatorDefinitionError,
    ValidatorState,
    check,
)
from validator import RegisterValidator

UUID = "550e8400-e29b-41d4-a716-446655440000"


class SignupValidator(BaseValidator):
    email = [Rule("isEmail", "invalid email address")]
    age = [
        Rule("isInt", "age must be an integer", {"min": 0, "max": 150}),
        Rule("isOptional", "", 18),
    ]


class ProfileValidator(BaseValidator):
    nickname = [
        Rule("isLength", "nickname must be at least 4 characters", {"min": 4}),
        Rule("isAlpha", "nickname must be letters only"),
    ]
    token = [Rule("isUUID", "bad token")]


class TestIngestion:
    """Construction snapshots the request sources."""

    def test_state_after_construction(self, make_context):
        validator = SignupValidator(make_context(body={"email": "a@b.com"}))
        assert validator.state is ValidatorState.INGESTED
        assert validator.member_keys == ()

    def test_raw_params_are_read_only(self, make_context):
        validator = SignupValidator(make_context(body={"email": "a@b.com", "tags": ["x"]}))
        assert isinstance(validator.params, MappingProxyType)
        with pytest.raises(TypeError):
            validator.params["body"]["email"] = "other@b.com"
        assert validator.params["body"]["tags"] == ("x",)

    def test_checked_bag_is_independent_copy(self, make_context):
        body = {"email": "a@b.com"}
        validator = SignupValidator(make_context(body=body))
        validator.params_checked["body"]["email"] = "changed@b.com"
        assert validator.params["body"]["email"] == "a@b.com"
        assert body["email"] == "a@b.com"

    def test_missing_sources_become_empty(self):
        validator = SignupValidator({"body": {"email": "a@b.com"}, "query": None})
        assert set(validator.params) == {"query", "body", "path", "header"}
        assert validator.params["query"] == {}
        assert validator.params["header"] == {}

    def test_rejects_unknown_context_type(self):
        with pytest.raises(TypeError):
            SignupValidator(["body"])


class TestValidationSuccess:
    """Passing validation returns the validator with a populated checked bag."""

    @pytest.mark.asyncio
    async def test_default_applied_for_absent_optional(self, make_context):
        validator = await SignupValidator(make_context(body={"email": "a@b.com"})).validate()
        assert validator is not None
        assert validator.state is ValidatorState.VALIDATED
        assert validator.get("email") == "a@b.com"
        assert validator.get("body.email") == "a@b.com"
        assert validator.get("age") == 18
        assert validator.get("default.age") == 18
        assert validator.params_checked["default"] == {"age": 18}

    @pytest.mark.asyncio
    async def test_coerced_value_written_back(self, make_context):
        validator = await SignupValidator(
            make_context(body={"email": "a@b.com", "age": "30"})
        ).validate()
        assert validator.get("body.age") == 30
        assert validator.get("age") == 30
        assert validator.get("body.age", resolved=False) == "30"
        assert validator.get("age", resolved=False) is None

    @pytest.mark.asyncio
    async def test_member_keys_recorded(self, make_context):
        validator = await SignupValidator(make_context(body={"email": "a@b.com"})).validate()
        assert validator.member_keys == ("email", "age")

    @pytest.mark.asyncio
    async def test_present_zero_is_not_absent(self, make_context):
        """A JSON 0 is a present value, not a trigger for the default."""
        validator = await SignupValidator(
            make_context(body={"email": "a@b.com", "age": 0})
        ).validate()
        assert validator.get("age") == 0
        assert validator.get("body.age") == 0
        assert "default" not in validator.params_checked

    @pytest.mark.asyncio
    async def test_empty_string_counts_as_absent(self, make_context):
        validator = await SignupValidator(
            make_context(query={"age": ""}, body={"email": "a@b.com", "age": "25"})
        ).validate()
        assert validator.get("age") == 25
        assert validator.get("body.age") == 25

        validator = await SignupValidator(
            make_context(query={"age": ""}, body={"email": "a@b.com"})
        ).validate()
        assert validator.get("age") == 18

    @pytest.mark.asyncio
    async def test_query_wins_over_body(self, make_context):
        """Same field in several sources: the first in query, body, path, header order is used."""
        validator = await SignupValidator(
            make_context(query={"age": "20"}, body={"email": "a@b.com", "age": "30"})
        ).validate()
        assert validator.get("age") == 20
        assert validator.get("query.age") == 20
        assert validator.get("body.age") == "30"

    @pytest.mark.asyncio
    async def test_header_source(self, make_context):
        validator = await ProfileValidator(
            make_context(query={"nickname": "neon"}, header={"token": UUID})
        ).validate()
        assert validator.get("token") == UUID
        assert validator.get("header.token") == UUID

    @pytest.mark.asyncio
    async def test_path_source(self, make_context):
        validator = await ProfileValidator(
            make_context(path={"nickname": "neon", "token": UUID})
        ).validate()
        assert validator.get("path.nickname") == "neon"

    @pytest.mark.asyncio
    async def test_validate_is_idempotent(self, make_context):
        validator = SignupValidator(make_context(body={"email": "a@b.com", "age": "30"}))
        await validator.validate()
        first = copy.deepcopy(validator.params_checked)
        await validator.validate()
        assert validator.params_checked == first
        assert validator.get("age") == 30

    @pytest.mark.asyncio
    async def test_list_value_checked_as_client_json(self, make_context):
        """A JSON list reaches predicates as the JSON text, and is stored back as a list."""

        class TagsValidator(BaseValidator):
            tags = [Rule("isJSON", "tags must be a JSON array"), Rule("contains", "", '"python"')]

        validator = await TagsValidator(make_context(body={"tags": ["python", "fastapi"]})).validate()
        assert validator.get("body.tags") == ["python", "fastapi"]
        assert validator.get("body.tags", resolved=False) == ("python", "fastapi")

    @pytest.mark.asyncio
    async def test_mapping_context(self):
        validator = await SignupValidator({"body": {"email": "a@b.com"}}).validate()
        assert validator.get("email") == "a@b.com"

    @pytest.mark.asyncio
    async def test_missing_path_returns_none(self, make_context):
        validator = await SignupValidator(make_context(body={"email": "a@b.com"})).validate()
        assert validator.get("body.unknown") is None
        assert validator.get("unknown") is None
        assert validator.get(["body", "email"]) == "a@b.com"


class TestValidationFailure:
    """Every failure is collected into one ParameterException."""

    @pytest.mark.asyncio
    async def test_all_failures_aggregated(self, make_context):
        validator = SignupValidator(make_context(body={"email": "nope", "age": "x"}))
        with pytest.raises(ParameterException) as exc_info:
            await validator.validate()

        exc = exc_info.value
        assert exc.messages == ["email: invalid email address", "age: age must be an integer"]
        assert exc.code == 10001
        assert exc.status_code == 400
        assert exc.message == "Parameter validation failed: 2 errors"
        assert validator.state is ValidatorState.REJECTED

    @pytest.mark.asyncio
    async def test_single_failure_message(self, make_context):
        with pytest.raises(ParameterException) as exc_info:
            await SignupValidator(make_context(body={})).validate()
        assert exc_info.value.messages == ["email: field is required"]
        assert str(exc_info.value) == "email: field is required"

    @pytest.mark.asyncio
    async def test_multiple_rule_failures_in_one_field(self, make_context):
        with pytest.raises(ParameterException) as exc_info:
            await ProfileValidator(make_context(body={"nickname": "a1", "token": UUID})).validate()
        assert exc_info.value.messages == [
            "nickname: nickname must be at least 4 characters; nickname must be letters only"
        ]

    @pytest.mark.asyncio
    async def test_out_of_range_value(self, make_context):
        with pytest.raises(ParameterException) as exc_info:
            await SignupValidator(make_context(body={"email": "a@b.com", "age": "200"})).validate()
        assert exc_info.value.messages == ["age: age must be an integer"]

    @pytest.mark.asyncio
    async def test_over_long_integer_is_a_field_failure(self):
        """Digit strings too long to convert fail the rule instead of crashing."""
        validator = SignupValidator({"query": {"age": "9" * 5000}, "body": {"email": "a@b.com"}})
        with pytest.raises(ParameterException) as exc_info:
            await validator.validate()
        assert exc_info.value.messages == ["age: age must be an integer"]

    def test_to_app_error(self):
        error = ParameterException(messages=["a: bad", "b: bad"]).to_app_error()
        assert error.code is ErrorCode.E2030_PARAMETER_INVALID
        assert error.metadata == {"error_code": 10001, "messages": ["a: bad", "b: bad"]}


class OutcomeValidator(BaseValidator):
    """One custom check per outcome kind."""

    def validate_raises(self, params):
        raise ValueError("raised message")

    def validate_raises_empty(self, params):
        raise ValueError()

    def validate_false(self, params):
        return False

    def validate_err(self, params):
        return Err(AppError(code=ErrorCode.E2000_VALIDATION_GENERIC, message="err message"))

    def validate_rule_result(self, params):
        return RuleResult.invalid("rule result message")

    def validate_passes_none(self, params):
        return None

    def validate_passes_true(self, params):
        return True

    def validate_passes_ok(self, params):
        return Ok()

    def validate_passes_rule_result(self, params):
        return RuleResult.valid()

    async def validate_async(self, params):
        await asyncio.sleep(0)
        raise ValueError("async message")

    @check
    def limits(self, params):
        return False


class TestCustomChecks:
    """Custom check outcomes and inputs."""

    @pytest.mark.asyncio
    async def test_outcome_kinds(self):
        with pytest.raises(ParameterException) as exc_info:
            await OutcomeValidator(RequestContext()).validate()
        assert exc_info.value.messages == [
            "raised message",
            "invalid parameter",
            "invalid parameter",
            "err message",
            "rule result message",
            "async message",
            "invalid parameter",
        ]

    @pytest.mark.asyncio
    async def test_check_sees_raw_parameters(self, make_context):
        seen = {}

        class AgeValidator(SignupValidator):
            def validate_snapshot(self, params):
                seen["params"] = params
                seen["age"] = params["body"]["age"]

        await AgeValidator(make_context(body={"email": "a@b.com", "age": "30"})).validate()
        assert seen["age"] == "30"
        assert isinstance(seen["params"], MappingProxyType)

    @pytest.mark.asyncio
    async def test_field_and_check_failures_combined(self, make_context):
        class StrictValidator(SignupValidator):
            def validate_domain(self, params):
                if not str(params["body"].get("email", "")).endswith("@corp.com"):
                    raise ValueError("corporate email required")

        with pytest.raises(ParameterException) as exc_info:
            await StrictValidator(make_context(body={"email": "nope"})).validate()
        # Members declared on the subclass run before inherited ones
        assert exc_info.value.messages == [
            "corporate email required",
            "email: invalid email address",
        ]

    @pytest.mark.asyncio
    async def test_inherited_check_runs_once(self, make_context):
        calls = []

        class ParentValidator(BaseValidator):
            def validate_count(self, params):
                calls.append(type(self).__name__)

        class ChildValidator(ParentValidator):
            pass

        await ChildValidator(make_context()).validate()
        assert calls == ["ChildValidator"]


class TestDefinitionErrors:
    """Malformed validators surface as ValidatorDefinitionError, never as messages."""

    @pytest.mark.asyncio
    async def test_optional_without_default(self, make_context):
        class PagingValidator(BaseValidator):
            page = [Rule("isInt"), Rule("isOptional")]

        validator = PagingValidator(make_context())
        with pytest.raises(ValidatorDefinitionError) as exc_info:
            await validator.validate()
        assert exc_info.value.field == "page"
        assert validator.state is ValidatorState.ERRORED

    @pytest.mark.asyncio
    async def test_instance_rule_set_with_non_rule(self, make_context):
        class DynamicValidator(BaseValidator):
            def __init__(self, ctx):
                super().__init__(ctx)
                self.email = ["isEmail"]

        with pytest.raises(ValidatorDefinitionError):
            await DynamicValidator(make_context(body={"email": "a@b.com"})).validate()

    @pytest.mark.asyncio
    async def test_check_raising_definition_error_propagates(self, make_context):
        class MisconfiguredValidator(BaseValidator):
            def validate_setup(self, params):
                raise ValidatorDefinitionError("lookup table missing")

        with pytest.raises(ValidatorDefinitionError):
            await MisconfiguredValidator(make_context()).validate()


class TestInstanceRuleSets:
    """Rule sets assigned in __init__."""

    @pytest.mark.asyncio
    async def test_instance_rule_set_validated(self, make_context):
        class InviteValidator(BaseValidator):
            def __init__(self, ctx, required_length):
                super().__init__(ctx)
                self.code = [Rule("isLength", "bad invite code", {"min": required_length, "max": required_length})]

        validator = await InviteValidator(make_context(query={"code": "abcd"}), 4).validate()
        assert validator.member_keys == ("code",)
        assert validator.get("code") == "abcd"

        with pytest.raises(ParameterException) as exc_info:
            await InviteValidator(make_context(query={"code": "abc"}), 4).validate()
        assert exc_info.value.messages == ["code: bad invite code"]


class TestRegisterValidator:
    """Registration parameters."""

    @pytest.mark.asyncio
    async def test_valid_registration(self, make_context):
        body = {
            "email": "neo@matrix.io",
            "password1": "secret123",
            "password2": "secret123",
            "nickname": "neoone",
        }
        validator = await RegisterValidator(make_context(body=body)).validate()
        assert validator.get("email") == "neo@matrix.io"
        assert validator.get("like") == "none"

    @pytest.mark.asyncio
    async def test_password_mismatch(self, make_context):
        body = {
            "email": "neo@matrix.io",
            "password1": "secret123",
            "password2": "secret124",
            "nickname": "neoone",
            "like": "chess",
        }
        with pytest.raises(ParameterException) as exc_info:
            await RegisterValidator(make_context(body=body)).validate()
        assert exc_info.value.messages == ["passwords do not match"]

    @pytest.mark.asyncio
    async def test_weak_password(self, make_context):
        body = {
            "email": "neo@matrix.io",
            "password1": "123456",
            "password2": "123456",
            "nickname": "neoone",
        }
        with pytest.raises(ParameterException) as exc_info:
            await RegisterValidator(make_context(body=body)).validate()
        assert exc_info.value.messages == [
            "password1: password must mix letters, digits or symbols",
            "password2: password must mix letters, digits or symbols",
        ]
