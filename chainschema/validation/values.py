"""Value Markers and Cross-Field References

MISSING marks an absent value (a key not present in the input record), as
opposed to an explicit None. Limits given to rules such as min() or greater()
are either constants or references to a sibling field, resolved when the rule
runs:

    schema.object({
        "low": schema.number(),
        "high": schema.number().greater(ref("low")),
    })
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class _MissingType(Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str: return "<MISSING>"

    def __bool__(self) -> bool: return False


MISSING = _MissingType.MISSING


def is_present(value: Any) -> bool:
    """Absence is MISSING or None."""
    return value is not MISSING and value is not None


@dataclass(frozen=True, slots=True)
class Ref:
    """Reference to another field of the record being validated."""
    key: str


@dataclass(frozen=True, slots=True)
class Const:
    """Literal limit value."""
    value: Any


Limit = Union[Const, Ref]


def ref(key: str) -> Ref:
    """Create a cross-field reference token."""
    return Ref(key)


def as_limit(limit: Any) -> Limit:
    return limit if isinstance(limit, (Ref, Const)) else Const(limit)


def resolve_limit(limit: Limit, siblings: Mapping[str, Any]) -> Any:
    """Resolve a limit against the sibling record. Absent references resolve to MISSING."""
    match limit:
        case Ref(key):
            return siblings.get(key, MISSING)
        case Const(value):
            return value


def describe_limit(limit: Limit) -> str:
    """Render a limit for default messages: `{key}` for references."""
    match limit:
        case Ref(key):
            return f"{{{key}}}"
        case Const(value):
            return str(value)


def resolve_path(record: Any, path: str) -> Any:
    """Dot-separated lookup; any missing segment resolves to MISSING."""
    current = record
    for segment in path.split("."):
        if not isinstance(current, Mapping) or (current := current.get(segment, MISSING)) is MISSING:
            return MISSING
    return current
