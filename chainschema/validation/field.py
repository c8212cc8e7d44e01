"""Field-Level Validation Engine

A FieldValidator accumulates transformers, rules and presence flags through
chained calls, then validates values against them. Building and running are
separate phases: once built, a schema holds no per-call state and can be
shared across any number of concurrent validations.

Evaluation order for one value:
    transformers -> strip -> presence gate -> nullable gate -> rules -> shape recursion

Usage:
    username = schema.string().trim().lowercase().min(3).token()
    value, error = username.validate("  Jane_Doe ")
"""
from __future__ import annotations

import asyncio
import inspect
import operator
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from chainschema.config import get_settings
from chainschema.errors import ErrorCode, SchemaUsageError
from chainschema.logging import engine_logger, schema_logger

from . import predicates as p
from .errors import RuleViolation, ValidationError, ValidationErrorDetail, ValidationOutcome
from .rules import (
    ArrayShape,
    AsyncRule,
    RecordShape,
    Rule,
    RuleKind,
    ScalarShape,
    SchemaType,
    Shape,
    Transformer,
    marker_rule,
)
from .values import MISSING, as_limit, describe_limit, is_present, resolve_limit

if TYPE_CHECKING:
    from .object import ObjectValidator
    from .rules import SubSchema

_NO_SIBLINGS: Mapping[str, Any] = {}


@dataclass(slots=True)
class FieldFlags:
    optional: bool = True
    nullable: bool = False
    strip: bool = False


def _accepts_siblings(fn: Callable) -> bool:
    """True if fn can be called as fn(value, siblings)."""
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return False
    if any(param.kind is inspect.Parameter.VAR_POSITIONAL for param in params):
        return True
    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    # parameters with defaults are options, not the siblings slot
    return sum(param.kind in positional and param.default is param.empty for param in params) >= 2


def _as_predicate(fn: Callable) -> Callable[[Any, Mapping[str, Any]], Any]:
    return fn if _accepts_siblings(fn) else (lambda value, siblings: fn(value))


def _format_values(values: tuple) -> str: return ", ".join(str(v) for v in values)


def _nested_message(error: ValidationError) -> str:
    return ", ".join(f"{d.field}: {d.message}" for d in error.details)


class FieldValidator:
    """Constraint chain for a single value."""

    def __init__(self, schema_type: SchemaType | str = SchemaType.ANY):
        self.type = SchemaType(schema_type)
        self.rules: list[Rule] = []
        self.transformers: list[Transformer] = []
        self.flags = FieldFlags()
        self.metadata: dict[str, Any] = {}
        self.has_async = False
        self._fields: ObjectValidator | None = None

    def __repr__(self) -> str:
        return f"FieldValidator(type={self.type.value!r}, rules={[r.kind.value for r in self.rules]})"

    # ========================================================================
    # Internal builders
    # ========================================================================

    def _add_rule(self, kind: RuleKind, predicate: Callable[[Any, Mapping[str, Any]], Any], message: str) -> FieldValidator:
        self.rules.append(Rule(kind, predicate, message))
        return self

    def _add_transformer(self, transformer: Transformer) -> FieldValidator:
        self.transformers.append(transformer)
        return self

    def _add_sub_schema_rule(self, kind: RuleKind, message: str, sub_schema: SubSchema) -> FieldValidator:
        if not hasattr(sub_schema, "_outcome"):
            raise SchemaUsageError(f"{kind.value}() expects a schema, got {type(sub_schema).__name__}",
                origin=f"FieldValidator.{kind.value}")
        self.rules.append(marker_rule(kind, message, sub_schema))
        self.has_async = self.has_async or sub_schema.has_async
        return self

    def _add_limit_rule(self, kind: RuleKind, check: Callable[[Any, Any], bool], template: str, limit: Any) -> FieldValidator:
        limit = as_limit(limit)
        return self._add_rule(kind, lambda value, siblings: check(value, resolve_limit(limit, siblings)),
            template.format(describe_limit(limit)))

    # ========================================================================
    # Presence, values and metadata
    # ========================================================================

    def required(self) -> FieldValidator:
        self.flags.optional = False
        return self

    def optional(self) -> FieldValidator:
        self.flags.optional = True
        return self

    def nullable(self) -> FieldValidator:
        self.flags.nullable = True
        return self

    def strip(self) -> FieldValidator:
        """Accept silently and drop from validated output."""
        self.flags.strip = True
        return self

    def forbidden(self) -> FieldValidator:
        return self._add_rule(RuleKind.FORBIDDEN, lambda value, siblings: not is_present(value), "is forbidden")

    def valid(self, *values: Any) -> FieldValidator:
        return self._add_rule(RuleKind.VALID, lambda value, siblings: p.is_one_of(value, values),
            f"must be one of [{_format_values(values)}]")

    def invalid(self, *values: Any) -> FieldValidator:
        return self._add_rule(RuleKind.INVALID, lambda value, siblings: not p.is_one_of(value, values),
            f"must not be one of [{_format_values(values)}]")

    def one_of(self, values: Any) -> FieldValidator: return self.valid(*values)

    def not_one_of(self, values: Any) -> FieldValidator: return self.invalid(*values)

    def custom(self, fn: Callable, message: str | None = None) -> FieldValidator:
        """Attach a predicate called as fn(value) or fn(value, siblings)."""
        return self._add_rule(RuleKind.CUSTOM, _as_predicate(fn), message or "failed custom validation")

    def custom_async(self, fn: Callable, message: str | None = None, timeout: float | None = None) -> FieldValidator:
        """Attach an awaitable predicate. The schema then requires validate_async()."""
        timeout = get_settings().ASYNC_RULE_TIMEOUT if timeout is None else timeout
        self.rules.append(AsyncRule(RuleKind.CUSTOM_ASYNC, _as_predicate(fn), message or "failed async validation",
            timeout=timeout))
        self.has_async = True
        return self

    def message(self, custom_message: str) -> FieldValidator:
        """Override the message of the most recently added rule."""
        if self.rules:
            self.rules[-1] = self.rules[-1].with_message(custom_message)
        return self

    def meta(self, info: Mapping[str, Any] | None = None, **kwargs: Any) -> FieldValidator:
        """Attach inert metadata for introspection."""
        self.metadata = {**self.metadata, **(info or {}), **kwargs}
        return self

    def concat(self, other: FieldValidator) -> FieldValidator:
        """Append another schema's rules and transformers, in order."""
        if not isinstance(other, FieldValidator):
            raise SchemaUsageError(f"concat() expects a FieldValidator, got {type(other).__name__}",
                origin="FieldValidator.concat")
        self.rules.extend(other.rules)
        self.transformers.extend(other.transformers)
        self.has_async = self.has_async or other.has_async
        return self

    # ========================================================================
    # Transformers
    # ========================================================================

    def default(self, value: Any) -> FieldValidator:
        """Substitute `value` for an absent input. Runs before the presence gate."""
        return self._add_transformer(lambda current: current if is_present(current) else value)

    def transform(self, fn: Transformer) -> FieldValidator:
        """Custom transformer. Receives MISSING for absent inputs."""
        return self._add_transformer(fn)

    def trim(self) -> FieldValidator:
        return self._add_transformer(lambda v: v.strip() if isinstance(v, str) else v)

    def lowercase(self) -> FieldValidator:
        return self._add_transformer(lambda v: v.lower() if isinstance(v, str) else v)

    def uppercase(self) -> FieldValidator:
        return self._add_transformer(lambda v: v.upper() if isinstance(v, str) else v)

    def single(self) -> FieldValidator:
        """Wrap a present non-array value into a one-element list."""
        return self._add_transformer(lambda v: v if isinstance(v, (list, tuple)) or not is_present(v) else [v])

    # ========================================================================
    # String and number limits
    # ========================================================================

    def min(self, limit: Any) -> FieldValidator:
        return self._add_limit_rule(RuleKind.MIN, p.at_least, "must be at least {}", limit)

    def max(self, limit: Any) -> FieldValidator:
        return self._add_limit_rule(RuleKind.MAX, p.at_most, "must be at most {}", limit)

    def length(self, limit: Any) -> FieldValidator:
        return self._add_limit_rule(RuleKind.LENGTH, p.exact_length, "length must be exactly {}", limit)

    # ========================================================================
    # String formats
    # ========================================================================

    def pattern(self, regex: str | re.Pattern, message: str | None = None) -> FieldValidator:
        compiled = re.compile(regex) if isinstance(regex, str) else regex
        return self._add_rule(RuleKind.PATTERN, lambda value, siblings: p.matches(compiled, value),
            message or "fails to match pattern")

    def credit_card(self) -> FieldValidator:
        return self._add_rule(RuleKind.CREDIT_CARD, lambda v, s: p.luhn_check(v), "must be a valid credit card number")

    def ip(self) -> FieldValidator:
        return self._add_rule(RuleKind.IP, lambda v, s: p.is_ip(v), "must be a valid IP address")

    def ip4(self) -> FieldValidator:
        return self._add_rule(RuleKind.IP4, lambda v, s: p.is_ipv4(v), "must be a valid IPv4 address")

    def ip6(self) -> FieldValidator:
        return self._add_rule(RuleKind.IP6, lambda v, s: p.is_ipv6(v), "must be a valid IPv6 address")

    def email(self) -> FieldValidator:
        return self._add_rule(RuleKind.EMAIL, lambda v, s: p.is_email(v), "must be a valid email.")

    def uuid(self) -> FieldValidator:
        return self._add_rule(RuleKind.UUID, lambda v, s: p.is_uuid(v), "must be a valid UUID")

    def hex(self) -> FieldValidator:
        return self._add_rule(RuleKind.HEX, lambda v, s: p.is_hex(v), "must be a hexadecimal string")

    def token(self) -> FieldValidator:
        return self._add_rule(RuleKind.TOKEN, lambda v, s: p.is_token(v), "must be a valid token")

    def iso_date(self) -> FieldValidator:
        return self._add_rule(RuleKind.ISO_DATE, lambda v, s: p.is_iso_date(v), "must be a valid ISO date")

    def alphanum(self) -> FieldValidator:
        return self._add_rule(RuleKind.ALPHANUM, lambda v, s: p.is_alphanum(v),
            "must only contain alphanumeric characters.")

    # ========================================================================
    # Numbers
    # ========================================================================

    def greater(self, limit: Any) -> FieldValidator:
        return self._add_limit_rule(RuleKind.GREATER, lambda v, lim: p.compare(operator.gt, v, lim),
            "must be greater than {}", limit)

    def less(self, limit: Any) -> FieldValidator:
        return self._add_limit_rule(RuleKind.LESS, lambda v, lim: p.compare(operator.lt, v, lim),
            "must be less than {}", limit)

    def integer(self) -> FieldValidator:
        return self._add_rule(RuleKind.INTEGER, lambda v, s: p.is_integer(v), "must be an integer")

    def positive(self) -> FieldValidator:
        return self._add_rule(RuleKind.POSITIVE, lambda v, s: p.compare(operator.gt, v, 0), "must be positive")

    def negative(self) -> FieldValidator:
        return self._add_rule(RuleKind.NEGATIVE, lambda v, s: p.compare(operator.lt, v, 0), "must be negative")

    def port(self) -> FieldValidator:
        return self._add_rule(RuleKind.PORT, lambda v, s: p.is_port(v), "must be a valid port")

    # ========================================================================
    # Arrays and records
    # ========================================================================

    def items(self, item_schema: SubSchema) -> FieldValidator:
        """Validate every element of an array against item_schema."""
        return self._add_sub_schema_rule(RuleKind.ITEMS, "", item_schema)

    def unique(self) -> FieldValidator:
        return self._add_rule(RuleKind.UNIQUE, lambda v, s: p.all_unique(v), "must contain unique values")

    def has(self, item_schema: SubSchema) -> FieldValidator:
        """Require at least one element that validates against item_schema."""
        return self._add_sub_schema_rule(RuleKind.HAS, "must contain at least one required item", item_schema)

    def keys(self, fields: Mapping[str, FieldValidator]) -> FieldValidator:
        """Validate the value as a nested record (object and any types)."""
        from .object import ObjectValidator

        self._fields = ObjectValidator(fields)
        self.has_async = self.has_async or self._fields.has_async
        return self

    @property
    def strips(self) -> bool: return self.flags.strip

    @property
    def shape(self) -> Shape:
        """Structural recursion implied by the declared type and configuration."""
        items_rule = next((rule for rule in self.rules if rule.kind is RuleKind.ITEMS), None)
        if self.type is SchemaType.ARRAY and items_rule is not None:
            return ArrayShape(items_rule.schema)
        if self.type in (SchemaType.OBJECT, SchemaType.ANY) and self._fields is not None:
            return RecordShape(self._fields)
        return ScalarShape()

    # ========================================================================
    # Engine: shared steps
    # ========================================================================

    def _transform(self, value: Any) -> Any:
        for transformer in self.transformers:
            try:
                value = transformer(value)
            except Exception as e:
                engine_logger().warning("transformer_raised", schema_type=self.type.value, error=str(e))
                raise RuleViolation(str(e) or type(e).__name__) from e
        return value

    def _gate(self, value: Any) -> bool:
        """Presence and nullability gate. Returns True when rules must be skipped."""
        if not is_present(value):
            if not self.flags.optional:
                raise RuleViolation("is required", ErrorCode.E2001_REQUIRED_FIELD_MISSING)
            return True
        return self.flags.nullable and value is None

    def _call(self, rule: Rule, value: Any, siblings: Mapping[str, Any]) -> Any:
        try:
            return rule.predicate(value, siblings)
        except Exception as e:
            raise self._predicate_raised(rule, e) from e

    def _predicate_raised(self, rule: Rule, error: Exception) -> RuleViolation:
        engine_logger().warning("rule_raised", rule=rule.kind.value, error=str(error))
        return RuleViolation(str(error) or rule.failure_message)

    @staticmethod
    def _array_value(value: Any) -> list | tuple:
        if not isinstance(value, (list, tuple)):
            raise RuleViolation("must be an array", ErrorCode.E2004_INVALID_TYPE)
        return value

    @staticmethod
    def _record_value(value: Any) -> Mapping:
        if not isinstance(value, Mapping):
            raise RuleViolation("must be an object", ErrorCode.E2004_INVALID_TYPE)
        return value

    @staticmethod
    def _item_failure(index: int, outcome: ValidationOutcome) -> RuleViolation:
        return RuleViolation(f"[at index {index}] {outcome.error.details[0].message}")

    @staticmethod
    def _keeps(item_schema: SubSchema, outcome: ValidationOutcome) -> bool:
        return not item_schema.strips and outcome.value is not MISSING

    # ========================================================================
    # Engine: synchronous
    # ========================================================================

    def _run(self, value: Any, siblings: Mapping[str, Any]) -> Any:
        current = self._transform(value)
        if self.flags.strip:
            return MISSING
        if self._gate(current):
            return current
        for rule in self.rules:
            if not self._passes(rule, current, siblings):
                raise RuleViolation(rule.failure_message)
        return self._recurse(current)

    def _passes(self, rule: Rule, value: Any, siblings: Mapping[str, Any]) -> bool:
        if rule.kind is RuleKind.HAS:
            return isinstance(value, (list, tuple)) and any(rule.schema._outcome(item).ok for item in value)
        if isinstance(rule, AsyncRule):
            raise self._async_misuse(rule)
        result = self._call(rule, value, siblings)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise self._async_misuse(rule)
        return bool(result)

    def _async_misuse(self, rule: Rule) -> SchemaUsageError:
        schema_logger().warning("async_rule_in_sync_validate", rule=rule.kind.value, schema_type=self.type.value)
        return SchemaUsageError("Schema has async rules, use validate_async() instead.",
            origin="FieldValidator.validate")

    def _recurse(self, value: Any) -> Any:
        match self.shape:
            case ArrayShape(items=item_schema):
                validated = []
                for index, item in enumerate(self._array_value(value)):
                    outcome = item_schema._outcome(item)
                    if outcome.error:
                        raise self._item_failure(index, outcome)
                    if self._keeps(item_schema, outcome):
                        validated.append(outcome.value)
                return validated
            case RecordShape(fields=record_schema):
                outcome = record_schema._outcome(self._record_value(value))
                if outcome.error:
                    raise RuleViolation(_nested_message(outcome.error))
                return outcome.value
            case ScalarShape():
                return value

    def _outcome(self, value: Any, siblings: Mapping[str, Any] | None = None) -> ValidationOutcome:
        try:
            return ValidationOutcome(self._run(value, _NO_SIBLINGS if siblings is None else siblings))
        except RuleViolation as violation:
            return ValidationOutcome.failure(value, [ValidationErrorDetail(None, violation.message)])

    def validate(self, value: Any = MISSING) -> ValidationOutcome:
        """Validate synchronously. Raises SchemaUsageError if the schema holds async rules."""
        if self.has_async:
            schema_logger().warning("sync_validate_on_async_schema", schema_type=self.type.value)
            raise SchemaUsageError("Schema has async rules, use validate_async() instead.",
                origin="FieldValidator.validate")
        outcome = self._outcome(value)
        if outcome.error:
            engine_logger().debug("field_validation_failed", schema_type=self.type.value, message=outcome.error.message)
        return outcome

    # ========================================================================
    # Engine: asynchronous
    # ========================================================================

    async def _run_async(self, value: Any, siblings: Mapping[str, Any]) -> Any:
        current = self._transform(value)
        if self.flags.strip:
            return MISSING
        if self._gate(current):
            return current
        for rule in self.rules:
            if not await self._passes_async(rule, current, siblings):
                raise RuleViolation(rule.failure_message)
        return await self._recurse_async(current)

    async def _passes_async(self, rule: Rule, value: Any, siblings: Mapping[str, Any]) -> bool:
        if rule.kind is RuleKind.HAS:
            if not isinstance(value, (list, tuple)):
                return False
            for item in value:
                if (await rule.schema._outcome_async(item)).ok:
                    return True
            return False
        result = self._call(rule, value, siblings)
        if not inspect.isawaitable(result):
            return bool(result)
        timeout = rule.timeout if isinstance(rule, AsyncRule) else None
        try:
            return bool(await asyncio.wait_for(result, timeout) if timeout else await result)
        except asyncio.TimeoutError as e:
            engine_logger().warning("async_rule_timeout", rule=rule.kind.value, timeout=timeout)
            raise RuleViolation(f"timed out after {timeout}s", ErrorCode.E2007_ASYNC_RULE_TIMEOUT) from e
        except Exception as e:
            raise self._predicate_raised(rule, e) from e

    async def _recurse_async(self, value: Any) -> Any:
        match self.shape:
            case ArrayShape(items=item_schema):
                validated = []
                for index, item in enumerate(self._array_value(value)):
                    outcome = await item_schema._outcome_async(item)
                    if outcome.error:
                        raise self._item_failure(index, outcome)
                    if self._keeps(item_schema, outcome):
                        validated.append(outcome.value)
                return validated
            case RecordShape(fields=record_schema):
                outcome = await record_schema._outcome_async(self._record_value(value))
                if outcome.error:
                    raise RuleViolation(_nested_message(outcome.error))
                return outcome.value
            case ScalarShape():
                return value

    async def _outcome_async(self, value: Any, siblings: Mapping[str, Any] | None = None) -> ValidationOutcome:
        try:
            return ValidationOutcome(await self._run_async(value, _NO_SIBLINGS if siblings is None else siblings))
        except RuleViolation as violation:
            return ValidationOutcome.failure(value, [ValidationErrorDetail(None, violation.message)])

    async def validate_async(self, value: Any = MISSING) -> ValidationOutcome:
        """Validate, awaiting any asynchronous rules in declared order."""
        outcome = await self._outcome_async(value)
        if outcome.error:
            engine_logger().debug("field_validation_failed", schema_type=self.type.value, message=outcome.error.message)
        return outcome
