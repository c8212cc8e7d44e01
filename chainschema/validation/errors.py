"""Validation Error System

Validation failures are returned, not raised: every validate() call yields a
ValidationOutcome whose `error` is either None or a ValidationError holding
ordered detail records. Supports both fail-fast and collect-all accumulation.

Error Format:
{
    "error": {
        "type": "validation_error",
        "message": "is required. must be a valid email.",
        "status_code": 400,
        "errors": [
            {"field": "name", "message": "is required", "type": "field"},
            {"field": "email", "message": "must be a valid email.", "type": "field"}
        ]
    }
}
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from chainschema.errors import AppError, Err, ErrorCode, Ok, Result


class ValidationMode(str, Enum):
    """Validation accumulation strategy."""
    FAIL_FAST = "fail_fast"
    COLLECT_ALL = "collect_all"


@dataclass(frozen=True, slots=True)
class ValidationErrorDetail:
    """A single failure.

    - field: record key, joined peer names for cross-field rules, assert path,
      or None for a standalone field validation
    - message: human-readable message
    - kind: "field" or the cross-field rule kind ("or", "xor", "assert", ...)
    """
    field: str | None
    message: str
    kind: str = "field"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API responses."""
        return {"field": self.field, "message": self.message, "type": self.kind}


@dataclass
class ValidationError(Exception):
    """Aggregate validation failure with ordered details.

    The message joins every detail message with ". ". status_code is advisory
    metadata for HTTP-adjacent callers.
    """
    details: list[ValidationErrorDetail]
    status_code: int = 400

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str: return ". ".join(d.message for d in self.details)

    def __str__(self) -> str: return self.message

    @property
    def first_error(self) -> ValidationErrorDetail | None: return self.details[0] if self.details else None

    @property
    def field_errors(self) -> dict[str | None, list[ValidationErrorDetail]]:
        """Group errors by field."""
        result: dict[str | None, list[ValidationErrorDetail]] = {}
        for detail in self.details: result.setdefault(detail.field, []).append(detail)
        return result

    def get_errors_for_field(self, field_name: str | None) -> list[ValidationErrorDetail]:
        return [d for d in self.details if d.field == field_name]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API responses."""
        return {"error": {"type": "validation_error", "message": self.message, "status_code": self.status_code,
            "error_count": len(self.details), "errors": [d.to_dict() for d in self.details]}}

    def to_app_error(self) -> AppError:
        """Convert to AppError for error handling systems."""
        code = ErrorCode.E2000_VALIDATION_GENERIC
        if len(self.details) == 1:
            d = self.details[0]
            return AppError(code=code, message=d.message, metadata={"field": d.field, "type": d.kind})
        return AppError(code=code, message=f"Validation failed: {len(self.details)} errors",
            metadata={"error_count": len(self.details), "errors": [d.to_dict() for d in self.details]})


class RuleViolation(Exception):
    """Internal signal for a failed rule; converted to ValidationError at the boundary."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC):
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of one validate() call.

    On failure `value` is the original input, untouched; callers must not
    treat it as normalized. Unpacks as `value, error = outcome`.
    """
    value: Any
    error: ValidationError | None = None

    @property
    def ok(self) -> bool: return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.value
        yield self.error

    def to_result(self) -> Result[Any, ValidationError]:
        return Ok(self.value) if self.error is None else Err(self.error)

    @classmethod
    def failure(cls, value: Any, details: list[ValidationErrorDetail]) -> ValidationOutcome:
        return cls(value, ValidationError(details))


class ValidationErrorAccumulator(ABC):
    """Abstract base for error accumulation strategies."""

    @abstractmethod
    def add_error(self, detail: ValidationErrorDetail) -> bool:
        """Add error detail. Returns True if should continue, False if should stop."""

    @abstractmethod
    def get_errors(self) -> list[ValidationErrorDetail]:
        """Get accumulated errors."""

    @abstractmethod
    def has_errors(self) -> bool:
        """Check if any errors accumulated."""

    @property
    @abstractmethod
    def mode(self) -> ValidationMode:
        """Get the accumulation mode."""

    def to_validation_error(self) -> ValidationError | None:
        """Convert to ValidationError if errors exist."""
        if not self.has_errors(): return None
        return ValidationError(details=self.get_errors())


@dataclass
class FailFastAccumulator(ValidationErrorAccumulator):
    """Fail-fast accumulator: stops on first error."""
    _error: ValidationErrorDetail | None = None

    @property
    def mode(self) -> ValidationMode: return ValidationMode.FAIL_FAST

    def add_error(self, detail: ValidationErrorDetail) -> bool:
        if self._error is None: self._error = detail
        return False

    def get_errors(self) -> list[ValidationErrorDetail]: return [self._error] if self._error else []

    def has_errors(self) -> bool: return self._error is not None


@dataclass
class CollectAllAccumulator(ValidationErrorAccumulator):
    """Collect-all accumulator: gathers every error found in one pass."""
    _errors: list[ValidationErrorDetail] = field(default_factory=list)

    @property
    def mode(self) -> ValidationMode: return ValidationMode.COLLECT_ALL

    def add_error(self, detail: ValidationErrorDetail) -> bool:
        self._errors.append(detail)
        return True

    def get_errors(self) -> list[ValidationErrorDetail]: return self._errors.copy()

    def has_errors(self) -> bool: return len(self._errors) > 0


def create_accumulator(mode: ValidationMode) -> ValidationErrorAccumulator:
    """Factory for creating accumulators based on mode."""
    return FailFastAccumulator() if mode == ValidationMode.FAIL_FAST else CollectAllAccumulator()
