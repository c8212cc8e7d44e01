"""Error Handling Primitives

Key components:
- ErrorCode: Hierarchical error code taxonomy
- AppError: Error record with full context
- Result[T, E]: Ok/Err container returned by ValidationOutcome.to_result()
- SchemaUsageError: Raised on API misuse, never on invalid input

Usage:
    from chainschema.errors import Ok, Err, SchemaUsageError

    match outcome.to_result():
        case Ok(value):
            save(value)
        case Err(error):
            log.info("rejected", details=error.to_dict())
"""
from .types import (
    AppError,
    Err,
    ErrorCode,
    ErrorContext,
    Ok,
    Result,
    SchemaUsageError,
)

__all__ = [
    "AppError",
    "Err",
    "ErrorCode",
    "ErrorContext",
    "Ok",
    "Result",
    "SchemaUsageError",
]
