"""Declarative Validation System

Chainable schemas for single values and records. A schema is built once
through chained calls, then validated any number of times; every call
returns a ValidationOutcome instead of raising.

Key Features:
- Transform pipeline (trim, case folding, defaults, custom transforms)
- Presence flags (required, optional, forbidden, strip)
- String, number and array rule families with overridable messages
- Cross-field references (ref) and cross-field rules (or/and/xor/with/without/assert)
- Asynchronous predicates with optional timeouts
- Structured error accumulation (fail-fast or collect-all)

Usage:
    from chainschema.validation import schema, ref

    order = schema.object({
        "quantity": schema.number().integer().positive().required(),
        "max_quantity": schema.number().min(ref("quantity")),
        "coupon": schema.string().uppercase().alphanum(),
    })

    value, error = order.validate({"quantity": 2, "coupon": "save10"})
    if error:
        return error.to_dict()
"""

from .errors import (
    CollectAllAccumulator,
    FailFastAccumulator,
    ValidationError,
    ValidationErrorAccumulator,
    ValidationErrorDetail,
    ValidationMode,
    ValidationOutcome,
    create_accumulator,
)
from .field import FieldValidator
from .object import ObjectOptions, ObjectValidator
from .rules import (
    ArrayShape,
    AsyncRule,
    ObjectRule,
    ObjectRuleKind,
    RecordShape,
    Rule,
    RuleKind,
    ScalarShape,
    SchemaType,
    Shape,
)
from .schema import SchemaFactory, schema
from .values import MISSING, Const, Ref, describe_limit, ref, resolve_limit

__all__ = [
    # Factory
    "schema",
    "SchemaFactory",
    "FieldValidator",
    "ObjectValidator",
    "ObjectOptions",
    "SchemaType",
    # References
    "ref",
    "Ref",
    "Const",
    "MISSING",
    "resolve_limit",
    "describe_limit",
    # Rules
    "Rule",
    "AsyncRule",
    "RuleKind",
    "ObjectRule",
    "ObjectRuleKind",
    "Shape",
    "ScalarShape",
    "ArrayShape",
    "RecordShape",
    # Errors
    "ValidationError",
    "ValidationErrorDetail",
    "ValidationOutcome",
    "ValidationMode",
    "ValidationErrorAccumulator",
    "FailFastAccumulator",
    "CollectAllAccumulator",
    "create_accumulator",
]
