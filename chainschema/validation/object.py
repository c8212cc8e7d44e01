"""Record-Level Validation Engine

An ObjectValidator validates a whole record: every declared field through its
FieldValidator, unknown keys copied through (or dropped with strip_unknown),
then cross-field rules against the validated output.

Features:
- Fail-fast (abort_early=True, default) or collect-all error accumulation
- Cross-field relations: or_, and_, xor, with_, without
- Path assertions into the validated record with assert_
- Original input returned untouched whenever validation fails

Usage:
    login = schema.object({
        "email": schema.string().email(),
        "phone": schema.string(),
        "password": schema.string().required().min(8),
    }, abort_early=False).or_("email", "phone")

    value, error = login.validate(payload)
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from chainschema.errors import SchemaUsageError
from chainschema.logging import engine_logger, schema_logger

from .errors import (
    ValidationErrorAccumulator,
    ValidationErrorDetail,
    ValidationMode,
    ValidationOutcome,
    create_accumulator,
)
from .field import FieldValidator
from .rules import ObjectRule, ObjectRuleKind
from .values import MISSING, is_present, resolve_path

if TYPE_CHECKING:
    from .rules import SubSchema


class ObjectOptions(BaseModel):
    """Per-schema options. camelCase aliases are accepted."""
    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True, extra="forbid")

    abort_early: bool = Field(default=True, alias="abortEarly")
    strip_unknown: bool = Field(default=False, alias="stripUnknown")

    @property
    def mode(self) -> ValidationMode:
        return ValidationMode.FAIL_FAST if self.abort_early else ValidationMode.COLLECT_ALL


def _build_options(options: ObjectOptions | Mapping[str, Any] | None, overrides: dict[str, Any]) -> ObjectOptions:
    if isinstance(options, ObjectOptions) and not overrides:
        return options
    base = options.model_dump() if isinstance(options, ObjectOptions) else dict(options or {})
    try:
        return ObjectOptions.model_validate({**base, **overrides})
    except PydanticValidationError as e:
        problems = "; ".join(f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors())
        raise SchemaUsageError(f"Invalid object schema options: {problems}", origin="ObjectValidator") from e


def _peer_list(peers: Sequence[Any]) -> tuple[str, ...]:
    """Accept peers as varargs or as a single list/tuple."""
    if len(peers) == 1 and isinstance(peers[0], (list, tuple)):
        return tuple(peers[0])
    return tuple(peers)


def _relation_failure(rule: ObjectRule, record: Mapping[str, Any]) -> str | None:
    """Message for a violated or/and/xor/with/without rule, None if satisfied."""
    names = ", ".join(rule.peers)
    present = sum(is_present(record.get(peer, MISSING)) for peer in rule.peers)
    key_present = rule.key is not None and is_present(record.get(rule.key, MISSING))
    match rule.kind:
        case ObjectRuleKind.OR if present == 0:
            return f"At least one of [{names}] is required."
        case ObjectRuleKind.AND if 0 < present < len(rule.peers):
            return f"All of [{names}] are required when one is present."
        case ObjectRuleKind.XOR if present != 1:
            return f"Exactly one of [{names}] is required."
        case ObjectRuleKind.WITH if key_present and present != len(rule.peers):
            return f"'{rule.key}' requires all of [{names}]."
        case ObjectRuleKind.WITHOUT if key_present and present > 0:
            return f"'{rule.key}' forbids any of [{names}]."
    return None


def _assert_failure(rule: ObjectRule, outcome: ValidationOutcome) -> str | None:
    if outcome.ok:
        return None
    return rule.message or f"path '{rule.path}' failed validation: {outcome.error.details[0].message}"


class ObjectValidator:
    """Field map plus cross-field rules for one record."""

    def __init__(
        self,
        fields: Mapping[str, FieldValidator],
        options: ObjectOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ):
        for name, field_schema in fields.items():
            if not isinstance(field_schema, FieldValidator):
                raise SchemaUsageError(
                    f"Field '{name}' must be a FieldValidator, got {type(field_schema).__name__}; "
                    "use schema.any().keys({...}) for nested records",
                    origin="ObjectValidator",
                )
        self.fields: dict[str, FieldValidator] = dict(fields)
        self.options = _build_options(options, overrides)
        self.object_rules: list[ObjectRule] = []
        self.has_async = any(field_schema.has_async for field_schema in self.fields.values())

    def __repr__(self) -> str:
        return f"ObjectValidator(fields={list(self.fields)}, rules={[r.kind.value for r in self.object_rules]})"

    @property
    def strips(self) -> bool: return False

    # ========================================================================
    # Cross-field rules
    # ========================================================================

    def _add_object_rule(self, rule: ObjectRule) -> ObjectValidator:
        self.object_rules.append(rule)
        return self

    def or_(self, *peers: str) -> ObjectValidator:
        """At least one peer must be present."""
        return self._add_object_rule(ObjectRule(ObjectRuleKind.OR, _peer_list(peers)))

    def and_(self, *peers: str) -> ObjectValidator:
        """If any peer is present, all must be."""
        return self._add_object_rule(ObjectRule(ObjectRuleKind.AND, _peer_list(peers)))

    def xor(self, *peers: str) -> ObjectValidator:
        """Exactly one peer must be present."""
        return self._add_object_rule(ObjectRule(ObjectRuleKind.XOR, _peer_list(peers)))

    def with_(self, key: str, *peers: str) -> ObjectValidator:
        """If key is present, every peer must be present."""
        return self._add_object_rule(ObjectRule(ObjectRuleKind.WITH, _peer_list(peers), key=key))

    def without(self, key: str, *peers: str) -> ObjectValidator:
        """If key is present, no peer may be present."""
        return self._add_object_rule(ObjectRule(ObjectRuleKind.WITHOUT, _peer_list(peers), key=key))

    def assert_(self, path: str, sub_schema: SubSchema, message: str | None = None) -> ObjectValidator:
        """Validate the value at a dotted path of the validated record against sub_schema."""
        if not hasattr(sub_schema, "_outcome"):
            raise SchemaUsageError(f"assert_() expects a schema, got {type(sub_schema).__name__}",
                origin="ObjectValidator.assert_")
        self.has_async = self.has_async or sub_schema.has_async
        return self._add_object_rule(ObjectRule(ObjectRuleKind.ASSERT, path=path, schema=sub_schema, message=message))

    # ========================================================================
    # Engine: shared steps
    # ========================================================================

    def _working_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        if self.options.strip_unknown:
            return {key: value for key, value in record.items() if key in self.fields}
        return dict(record)

    def _keys(self, working: Mapping[str, Any]) -> list[str]:
        return list(dict.fromkeys([*working, *self.fields]))

    def _record_failure(self, record: Any) -> ValidationOutcome | None:
        if not isinstance(record, Mapping):
            return ValidationOutcome.failure(record, [ValidationErrorDetail(None, "must be an object")])
        return None

    def _store(self, output: dict[str, Any], key: str, field_schema: FieldValidator, value: Any) -> None:
        if not field_schema.flags.strip and value is not MISSING:
            output[key] = value

    def _field_failed(self, accumulator: ValidationErrorAccumulator, key: str, outcome: ValidationOutcome) -> bool:
        """Record a field failure. Returns True if evaluation must stop."""
        return not accumulator.add_error(ValidationErrorDetail(key, outcome.error.details[0].message))

    def _rule_failed(self, accumulator: ValidationErrorAccumulator, rule: ObjectRule, message: str | None) -> bool:
        """Record a cross-field failure. Returns True if evaluation must stop."""
        return message is not None and not accumulator.add_error(
            ValidationErrorDetail(rule.field, message, rule.kind.value))

    @staticmethod
    def _finish(record: Any, output: dict[str, Any], accumulator: ValidationErrorAccumulator) -> ValidationOutcome:
        if (error := accumulator.to_validation_error()) is not None:
            return ValidationOutcome(record, error)
        return ValidationOutcome(output)

    def _check_usage(self, record: Any, origin: str) -> None:
        if record is not None and record is not MISSING and not isinstance(record, Mapping):
            schema_logger().warning("non_record_input", origin=origin, input_type=type(record).__name__)
            raise SchemaUsageError(f"Object schema expects a mapping, got {type(record).__name__}", origin=origin)

    # ========================================================================
    # Engine: synchronous
    # ========================================================================

    def _outcome(self, record: Any, siblings: Mapping[str, Any] | None = None) -> ValidationOutcome:
        source = {} if record is None or record is MISSING else record
        if (failure := self._record_failure(source)) is not None:
            return failure
        working = self._working_record(source)
        accumulator = create_accumulator(self.options.mode)
        output: dict[str, Any] = {}

        for key in self._keys(working):
            value = working.get(key, MISSING)
            if (field_schema := self.fields.get(key)) is None:
                output[key] = value
                continue
            outcome = field_schema._outcome(value, working)
            if outcome.error:
                if self._field_failed(accumulator, key, outcome):
                    return self._finish(record, output, accumulator)
                continue
            self._store(output, key, field_schema, outcome.value)

        for rule in self.object_rules:
            if rule.kind is ObjectRuleKind.ASSERT:
                message = _assert_failure(rule, rule.schema._outcome(resolve_path(output, rule.path)))
            else:
                message = _relation_failure(rule, output)
            if self._rule_failed(accumulator, rule, message):
                break

        return self._finish(record, output, accumulator)

    def validate(self, record: Any) -> ValidationOutcome:
        """Validate synchronously. Raises SchemaUsageError for async schemas or non-mapping input."""
        if self.has_async:
            schema_logger().warning("sync_validate_on_async_schema", fields=list(self.fields))
            raise SchemaUsageError("Schema has async rules, use validate_async() instead.",
                origin="ObjectValidator.validate")
        self._check_usage(record, "ObjectValidator.validate")
        outcome = self._outcome(record)
        if outcome.error:
            engine_logger().debug("record_validation_failed", details=[d.to_dict() for d in outcome.error.details])
        return outcome

    # ========================================================================
    # Engine: asynchronous
    # ========================================================================

    async def _outcome_async(self, record: Any, siblings: Mapping[str, Any] | None = None) -> ValidationOutcome:
        source = {} if record is None or record is MISSING else record
        if (failure := self._record_failure(source)) is not None:
            return failure
        working = self._working_record(source)
        accumulator = create_accumulator(self.options.mode)
        output: dict[str, Any] = {}

        for key in self._keys(working):
            value = working.get(key, MISSING)
            if (field_schema := self.fields.get(key)) is None:
                output[key] = value
                continue
            outcome = await field_schema._outcome_async(value, working)
            if outcome.error:
                if self._field_failed(accumulator, key, outcome):
                    return self._finish(record, output, accumulator)
                continue
            self._store(output, key, field_schema, outcome.value)

        for rule in self.object_rules:
            if rule.kind is ObjectRuleKind.ASSERT:
                message = _assert_failure(rule, await rule.schema._outcome_async(resolve_path(output, rule.path)))
            else:
                message = _relation_failure(rule, output)
            if self._rule_failed(accumulator, rule, message):
                break

        return self._finish(record, output, accumulator)

    async def validate_async(self, record: Any) -> ValidationOutcome:
        """Validate, awaiting fields and rules strictly in declared order."""
        self._check_usage(record, "ObjectValidator.validate_async")
        outcome = await self._outcome_async(record)
        if outcome.error:
            engine_logger().debug("record_validation_failed", details=[d.to_dict() for d in outcome.error.details])
        return outcome
