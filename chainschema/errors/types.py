"""Error Taxonomy and Result Types

Typed error codes, immutable error records and a small Result monad used at
the edges of the validation engine. Validation failures themselves are
values (see chainschema.validation.errors); only API misuse raises.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Generic, Iterator, NoReturn, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class ErrorCode(Enum):
    """Hierarchical error code taxonomy.

    E2xxx: Validation errors
    E9xxx: Usage errors
    """
    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2001_REQUIRED_FIELD_MISSING = 2001
    E2004_INVALID_TYPE = 2004
    E2007_ASYNC_RULE_TIMEOUT = 2007

    # Usage (E9xxx)
    E9004_SCHEMA_MISUSE = 9004

    @property
    def http_status(self) -> int:
        """Map error code to appropriate HTTP status."""
        return 400 if 2000 <= self.value < 3000 else 500

    @property
    def category(self) -> str:
        """Human-readable error category."""
        return "validation" if 2000 <= self.value < 3000 else "usage"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Immutable context for error tracing and debugging."""
    correlation_id: str = field(default_factory=lambda: str(uuid4())[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""


@dataclass(frozen=True, slots=True)
class AppError:
    """Application error with code, message, metadata and tracing context."""
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict = field(default_factory=dict)

    @property
    def error_id(self) -> str: return f"{self.code.name}:{self.context.correlation_id}"

    def with_metadata(self, **kwargs) -> AppError:
        """Create new error with additional metadata."""
        return AppError(code=self.code, message=self.message, context=self.context,
            metadata={**self.metadata, **kwargs})

    def to_dict(self) -> dict:
        """Serialize error for API responses."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "correlation_id": self.context.correlation_id,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


class SchemaUsageError(Exception):
    """Raised when the validation API is used incorrectly.

    Distinct from ValidationError: an invalid *input* is reported as a value,
    an invalid *call* (e.g. synchronous validation of a schema holding
    asynchronous rules) raises this.
    """

    def __init__(self, message: str, *, origin: str = "", **metadata):
        super().__init__(message)
        self.error = AppError(code=ErrorCode.E9004_SCHEMA_MISUSE, message=message,
            context=ErrorContext(origin=origin), metadata=metadata)

    @property
    def code(self) -> ErrorCode: return self.error.code


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool: return True

    def is_err(self) -> bool: return False

    def unwrap(self) -> T: return self.value

    def unwrap_or(self, default: T) -> T: return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]: return Ok(f(self.value))

    def match(self, ok: Callable[[T], U], err: Callable[[object], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return ok(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result."""
    error: E

    def is_ok(self) -> bool: return False

    def is_err(self) -> bool: return True

    def unwrap(self) -> NoReturn:
        """Raises because Err has no value to unwrap."""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T: return default

    def unwrap_err(self) -> E: return self.error

    def map(self, f: Callable[[T], U]) -> Err[E]: return self

    def match(self, ok: Callable[[object], U], err: Callable[[E], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return err(self.error)

    def __iter__(self) -> Iterator:
        return iter([])


Result = Union[Ok[T], Err[E]]
