"""Leaf Predicates

Pure pass/fail checks behind the built-in rules. Every predicate is total:
a value of the wrong type fails the check instead of raising.

Features:
- Compiled regex caching at module level
- stdlib ipaddress parsing for IP formats
- Luhn checksum for card numbers
"""
from __future__ import annotations

import operator
import re
from datetime import date, datetime
from decimal import Decimal
from ipaddress import IPv4Address, IPv6Address
from typing import Any, Callable

# ============================================================================
# Patterns
# ============================================================================

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
UUID_PATTERN = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}")
HEX_PATTERN = re.compile(r"[a-fA-F0-9]+")
TOKEN_PATTERN = re.compile(r"[a-zA-Z0-9_]+")
ALPHANUM_PATTERN = re.compile(r"[a-zA-Z0-9]+")
CARD_CHARS_PATTERN = re.compile(r"[0-9\-\s]*")


def _fullmatch(pattern: re.Pattern, value: Any) -> bool:
    return isinstance(value, str) and pattern.fullmatch(value) is not None


# ============================================================================
# Numeric / size helpers
# ============================================================================

def is_number(value: Any) -> bool:
    """int, float or Decimal; bool is not a number here."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    if isinstance(value, float): return value.is_integer()
    if isinstance(value, Decimal): return value.is_finite() and value == value.to_integral_value()
    return is_number(value)


def size_of(value: Any) -> int | None:
    """len() of sized values, None otherwise."""
    try: return len(value)
    except TypeError: return None


def compare(op: Callable[[Any, Any], bool], left: Any, right: Any) -> bool:
    """Apply a comparison operator, treating incomparable operands as failure."""
    try: return bool(op(left, right))
    except TypeError: return False


def measure(value: Any) -> Any:
    """Numbers compare by value, everything else by length."""
    return value if is_number(value) else size_of(value)


def at_least(value: Any, limit: Any) -> bool: return compare(operator.ge, measure(value), limit)


def at_most(value: Any, limit: Any) -> bool: return compare(operator.le, measure(value), limit)


def exact_length(value: Any, limit: Any) -> bool:
    return (size := size_of(value)) is not None and size == limit


def is_port(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 65535


# ============================================================================
# Format predicates
# ============================================================================

def luhn_check(value: Any) -> bool:
    """Credit card checksum.

    Rejects anything but digits, dashes and whitespace, then runs the Luhn
    algorithm over the digits.
    """
    if not isinstance(value, str) or not CARD_CHARS_PATTERN.fullmatch(value):
        return False
    total, double = 0, False
    for char in reversed(re.sub(r"\D", "", value)):
        digit = int(char)
        if double and (digit := digit * 2) > 9:
            digit -= 9
        total += digit
        double = not double
    return total % 10 == 0


def is_ipv4(value: Any) -> bool:
    if not isinstance(value, str): return False
    try: IPv4Address(value)
    except ValueError: return False
    return True


def is_ipv6(value: Any) -> bool:
    if not isinstance(value, str): return False
    try: IPv6Address(value)
    except ValueError: return False
    return True


def is_ip(value: Any) -> bool: return is_ipv4(value) or is_ipv6(value)


def is_email(value: Any) -> bool: return _fullmatch(EMAIL_PATTERN, value)


def is_uuid(value: Any) -> bool: return _fullmatch(UUID_PATTERN, value)


def is_hex(value: Any) -> bool: return _fullmatch(HEX_PATTERN, value)


def is_token(value: Any) -> bool: return _fullmatch(TOKEN_PATTERN, value)


def is_alphanum(value: Any) -> bool: return _fullmatch(ALPHANUM_PATTERN, value)


def matches(pattern: re.Pattern, value: Any) -> bool:
    """Unanchored search, like a JavaScript RegExp.test()."""
    return isinstance(value, str) and pattern.search(value) is not None


def is_iso_date(value: Any) -> bool:
    """datetime/date instances, or ISO8601 strings (a trailing Z is accepted)."""
    if isinstance(value, (datetime, date)): return True
    if not isinstance(value, str): return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


# ============================================================================
# Collection predicates
# ============================================================================

def is_one_of(value: Any, allowed: tuple) -> bool:
    """Membership where booleans never equal numbers (True is not 1)."""
    return any(isinstance(value, bool) is isinstance(candidate, bool) and value == candidate
        for candidate in allowed)


def all_unique(value: Any) -> bool:
    """True when no item repeats. Unhashable items are compared by type and repr."""
    if not isinstance(value, (list, tuple)): return False
    seen: set = set()
    for item in value:
        try:
            key = (type(item), item)
            hash(key)
        except TypeError:
            key = (type(item), repr(item))
        if key in seen: return False
        seen.add(key)
    return True
