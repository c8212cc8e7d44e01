"""chainschema: chainable validation schemas for values and records."""

from chainschema.errors import SchemaUsageError
from chainschema.validation import (
    MISSING,
    FieldValidator,
    ObjectOptions,
    ObjectValidator,
    Ref,
    ValidationError,
    ValidationErrorDetail,
    ValidationOutcome,
    ref,
    schema,
)

__version__ = "0.1.0"

__all__ = [
    "schema",
    "ref",
    "Ref",
    "MISSING",
    "FieldValidator",
    "ObjectValidator",
    "ObjectOptions",
    "ValidationError",
    "ValidationErrorDetail",
    "ValidationOutcome",
    "SchemaUsageError",
]
