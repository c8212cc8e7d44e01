"""Tests for asynchronous validation."""

from __future__ import annotations

import asyncio

import pytest

from chainschema import SchemaUsageError, ValidationErrorDetail, schema
from chainschema.errors import ErrorCode
from chainschema.validation import AsyncRule


class TestAsyncFields:
    """Tests for custom_async on field schemas."""

    def test_sync_validate_rejected(self, is_available) -> None:
        username = schema.string().custom_async(is_available)
        with pytest.raises(SchemaUsageError) as exc_info:
            username.validate("jane")
        assert exc_info.value.code is ErrorCode.E9004_SCHEMA_MISUSE

    @pytest.mark.asyncio
    async def test_passing_predicate(self, is_available) -> None:
        value, error = await schema.string().trim().custom_async(is_available).validate_async(" jane ")
        assert error is None
        assert value == "jane"

    @pytest.mark.asyncio
    async def test_failing_predicate(self, is_available) -> None:
        outcome = await schema.string().custom_async(is_available).validate_async("admin")
        assert outcome.error.details == [ValidationErrorDetail(None, "failed async validation")]
        assert outcome.value == "admin"

    @pytest.mark.asyncio
    async def test_custom_message(self, is_available) -> None:
        outcome = await schema.string().custom_async(is_available, "is taken").validate_async("root")
        assert outcome.error.message == "is taken"

    @pytest.mark.asyncio
    async def test_sync_rules_run_first_in_order(self) -> None:
        calls = []

        async def record(value):
            calls.append(value)
            return True

        outcome = await schema.string().min(3).custom_async(record).validate_async("ab")
        assert outcome.error.message == "must be at least 3"
        assert calls == []

    @pytest.mark.asyncio
    async def test_sync_schema_validates_async(self) -> None:
        assert (await schema.number().positive().validate_async(1)).ok

    @pytest.mark.asyncio
    async def test_absent_optional_skips_async_rule(self, is_available) -> None:
        assert (await schema.string().custom_async(is_available).validate_async()).ok

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        async def slow(value):
            await asyncio.sleep(1)
            return True

        outcome = await schema.string().custom_async(slow, timeout=0.01).validate_async("x")
        assert outcome.error.message == "timed out after 0.01s"

    @pytest.mark.asyncio
    async def test_raising_predicate(self) -> None:
        async def broken(value):
            raise RuntimeError("lookup service unavailable")

        outcome = await schema.string().custom_async(broken).validate_async("x")
        assert outcome.error.message == "lookup service unavailable"

    def test_timeout_defaults_from_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("CHAINSCHEMA_ASYNC_RULE_TIMEOUT", "2.5")
        field = schema.string().custom_async(lambda value: asyncio.sleep(0, True))
        rule = field.rules[-1]
        assert isinstance(rule, AsyncRule)
        assert rule.timeout == 2.5

    def test_timeout_unset_by_default(self) -> None:
        assert schema.string().custom_async(lambda value: asyncio.sleep(0, True)).rules[-1].timeout is None


class TestAsyncPropagation:
    """Tests for has_async propagation through composition."""

    def test_concat_propagates(self, is_available) -> None:
        assert schema.string().concat(schema.string().custom_async(is_available)).has_async

    def test_items_propagates(self, is_available) -> None:
        tags = schema.array().items(schema.string().custom_async(is_available))
        assert tags.has_async
        with pytest.raises(SchemaUsageError):
            tags.validate(["a"])

    def test_has_propagates(self, is_available) -> None:
        assert schema.array().has(schema.string().custom_async(is_available)).has_async

    def test_keys_propagates(self, is_available) -> None:
        assert schema.any().keys({"name": schema.string().custom_async(is_available)}).has_async

    def test_object_propagates(self, is_available) -> None:
        record = schema.object({"name": schema.string().custom_async(is_available)})
        assert record.has_async
        with pytest.raises(SchemaUsageError):
            record.validate({"name": "jane"})

    def test_assert_propagates(self, is_available) -> None:
        record = schema.object({}).assert_("name", schema.string().custom_async(is_available))
        assert record.has_async

    def test_async_function_in_sync_custom_rejected(self, is_available) -> None:
        username = schema.string().custom(is_available)
        with pytest.raises(SchemaUsageError):
            username.validate("admin")

    @pytest.mark.asyncio
    async def test_async_function_in_sync_custom_awaited_by_validate_async(self, is_available) -> None:
        outcome = await schema.string().custom(is_available).validate_async("admin")
        assert outcome.error.message == "failed custom validation"

    def test_item_schema_made_async_after_attach_rejected(self, is_available) -> None:
        item = schema.string()
        tags = schema.array().items(item)
        item.custom_async(is_available)
        assert not tags.has_async
        with pytest.raises(SchemaUsageError):
            tags.validate(["admin"])

    def test_has_schema_made_async_after_attach_rejected(self, is_available) -> None:
        item = schema.string()
        roles = schema.array().has(item)
        item.custom_async(is_available)
        with pytest.raises(SchemaUsageError):
            roles.validate(["admin"])

    def test_nested_keys_made_async_after_attach_rejected(self, is_available) -> None:
        name = schema.string()
        record = schema.object({"owner": schema.any().keys({"name": name})})
        name.custom_async(is_available)
        with pytest.raises(SchemaUsageError):
            record.validate({"owner": {"name": "admin"}})

    def test_plain_schemas_are_sync(self) -> None:
        assert not schema.object({"a": schema.string().min(1)}).has_async


class TestAsyncRecords:
    """Tests for validate_async on record schemas."""

    @pytest.mark.asyncio
    async def test_record_passes(self, is_available) -> None:
        signup = schema.object({
            "username": schema.string().trim().required().custom_async(is_available, "is taken"),
            "age": schema.number().min(13),
        })
        value, error = await signup.validate_async({"username": " jane ", "age": 20})
        assert error is None
        assert value == {"username": "jane", "age": 20}

    @pytest.mark.asyncio
    async def test_record_collects_all(self, is_available) -> None:
        signup = schema.object({
            "username": schema.string().custom_async(is_available, "is taken"),
            "age": schema.number().min(13),
        }, abort_early=False)
        outcome = await signup.validate_async({"username": "admin", "age": 5})
        assert [(d.field, d.message) for d in outcome.error.details] == [
            ("username", "is taken"),
            ("age", "must be at least 13"),
        ]

    @pytest.mark.asyncio
    async def test_async_predicate_receives_siblings(self) -> None:
        async def matches_password(value, siblings):
            return value == siblings.get("password")

        signup = schema.object({
            "password": schema.string(),
            "confirm": schema.string().custom_async(matches_password, "must match password"),
        })
        assert (await signup.validate_async({"password": "pw", "confirm": "pw"})).ok
        assert not (await signup.validate_async({"password": "pw", "confirm": "other"})).ok

    @pytest.mark.asyncio
    async def test_async_items(self, is_available) -> None:
        names = schema.array().items(schema.string().custom_async(is_available))
        assert (await names.validate_async(["jane", "joe"])).value == ["jane", "joe"]
        outcome = await names.validate_async(["jane", "root"])
        assert outcome.error.message == "[at index 1] failed async validation"

    @pytest.mark.asyncio
    async def test_async_has(self, is_available) -> None:
        names = schema.array().has(schema.string().custom_async(is_available))
        assert (await names.validate_async(["root", "jane"])).ok
        assert not (await names.validate_async(["root", "admin"])).ok

    @pytest.mark.asyncio
    async def test_async_nested_keys(self, is_available) -> None:
        record = schema.object({
            "owner": schema.any().keys({"name": schema.string().custom_async(is_available)}),
        })
        outcome = await record.validate_async({"owner": {"name": "admin"}})
        assert outcome.error.details == [ValidationErrorDetail("owner", "name: failed async validation")]

    @pytest.mark.asyncio
    async def test_async_assert(self, is_available) -> None:
        record = schema.object({}).assert_("owner.name", schema.string().custom_async(is_available))
        assert (await record.validate_async({"owner": {"name": "jane"}})).ok
        outcome = await record.validate_async({"owner": {"name": "root"}})
        assert outcome.error.message == "path 'owner.name' failed validation: failed async validation"

    @pytest.mark.asyncio
    async def test_async_cross_field_rules(self) -> None:
        record = schema.object({"a": schema.number(), "b": schema.number()}).xor("a", "b")
        outcome = await record.validate_async({"a": 1, "b": 2})
        assert outcome.error.details[0].kind == "xor"

    @pytest.mark.asyncio
    async def test_non_mapping_raises_usage_error(self) -> None:
        with pytest.raises(SchemaUsageError):
            await schema.object({}).validate_async("not a record")
