"""Rule, Transformer and Shape Records

Plain immutable data consumed by the engines. A Rule is an opaque predicate
over (value, siblings) with a default message; the order of a schema's rule
list is its evaluation order. AsyncRule is the asynchronous variant, picked
when the rule is built rather than detected at call time.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Union

if TYPE_CHECKING:
    from .field import FieldValidator
    from .object import ObjectValidator

    SubSchema = Union[FieldValidator, ObjectValidator]

Predicate = Callable[[Any, Mapping[str, Any]], Any]
AsyncPredicate = Callable[[Any, Mapping[str, Any]], Awaitable[Any]]
Transformer = Callable[[Any], Any]


class SchemaType(str, Enum):
    """Advisory type tag of a field schema."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    DATE = "date"
    ANY = "any"


class RuleKind(str, Enum):
    FORBIDDEN = "forbidden"
    VALID = "valid"
    INVALID = "invalid"
    CUSTOM = "custom"
    CUSTOM_ASYNC = "customAsync"
    PATTERN = "pattern"
    MIN = "min"
    MAX = "max"
    LENGTH = "length"
    CREDIT_CARD = "creditCard"
    IP = "ip"
    IP4 = "ip4"
    IP6 = "ip6"
    EMAIL = "email"
    UUID = "uuid"
    HEX = "hex"
    TOKEN = "token"
    ISO_DATE = "isoDate"
    ALPHANUM = "alphanum"
    GREATER = "greater"
    LESS = "less"
    INTEGER = "integer"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    PORT = "port"
    ITEMS = "items"
    UNIQUE = "unique"
    HAS = "has"


class ObjectRuleKind(str, Enum):
    OR = "or"
    AND = "and"
    XOR = "xor"
    WITH = "with"
    WITHOUT = "without"
    ASSERT = "assert"


def _always(value: Any, siblings: Mapping[str, Any]) -> bool: return True


@dataclass(frozen=True, slots=True)
class Rule:
    """One synchronous constraint.

    `schema` is set for items/has rules; the engine handles those kinds
    itself since they recurse into another schema.
    """
    kind: RuleKind
    predicate: Predicate
    message: str
    custom_message: str | None = None
    schema: SubSchema | None = None

    @property
    def failure_message(self) -> str: return self.custom_message or self.message

    def with_message(self, custom_message: str) -> Rule: return replace(self, custom_message=custom_message)


@dataclass(frozen=True, slots=True)
class AsyncRule(Rule):
    """Constraint whose predicate must be awaited. Forces validate_async()."""
    timeout: float | None = None


def marker_rule(kind: RuleKind, message: str, schema: SubSchema) -> Rule:
    """Rule that always passes on its own and only carries a sub-schema."""
    return Rule(kind, _always, message, schema=schema)


@dataclass(frozen=True, slots=True)
class ObjectRule:
    """Cross-field constraint on a record."""
    kind: ObjectRuleKind
    peers: tuple[str, ...] = ()
    key: str | None = None
    path: str | None = None
    schema: SubSchema | None = None
    message: str | None = None

    @property
    def field(self) -> str:
        """Identifier reported in error details."""
        return self.path if self.kind is ObjectRuleKind.ASSERT else "|".join(self.peers)


# ============================================================================
# Shapes
# ============================================================================

@dataclass(frozen=True, slots=True)
class ScalarShape:
    """No structural recursion."""


@dataclass(frozen=True, slots=True)
class ArrayShape:
    """Validate every element against `items`."""
    items: SubSchema


@dataclass(frozen=True, slots=True)
class RecordShape:
    """Validate the value as a record against `fields`."""
    fields: ObjectValidator


Shape = Union[ScalarShape, ArrayShape, RecordShape]
