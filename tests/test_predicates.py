"""Tests for validation/predicates.py and validation/values.py."""

from __future__ import annotations

import operator
from decimal import Decimal

import pytest

from chainschema import MISSING, ref
from chainschema.validation import predicates as p
from chainschema.validation.values import Const, as_limit, describe_limit, is_present, resolve_limit, resolve_path


class TestPredicates:
    """Tests for leaf predicates."""

    @pytest.mark.parametrize("value", [1, 1.5, Decimal("2")])
    def test_is_number(self, value) -> None:
        assert p.is_number(value)

    def test_bool_is_not_a_number(self) -> None:
        assert not p.is_number(True)

    def test_compare_incomparable(self) -> None:
        assert p.compare(operator.gt, 2, 1)
        assert not p.compare(operator.gt, "2", 1)
        assert not p.compare(operator.gt, None, 1)

    def test_size_of(self) -> None:
        assert p.size_of("abc") == 3
        assert p.size_of(5) is None

    def test_luhn(self) -> None:
        assert p.luhn_check("49927398716")
        assert not p.luhn_check("49927398717")
        assert not p.luhn_check(49927398716)

    def test_is_integer_decimal(self) -> None:
        assert p.is_integer(Decimal("3.0"))
        assert not p.is_integer(Decimal("3.5"))

    def test_all_unique_requires_sequence(self) -> None:
        assert not p.all_unique("abc")
        assert p.all_unique([])


class TestValues:
    """Tests for MISSING, refs and path lookup."""

    def test_missing_is_falsy_and_absent(self) -> None:
        assert not MISSING
        assert repr(MISSING) == "<MISSING>"
        assert not is_present(MISSING)
        assert not is_present(None)
        assert is_present(0)
        assert is_present("")

    def test_resolve_limit(self) -> None:
        assert resolve_limit(ref("low"), {"low": 3}) == 3
        assert resolve_limit(ref("low"), {}) is MISSING
        assert resolve_limit(as_limit(7), {"low": 3}) == 7

    def test_as_limit_wraps_constants(self) -> None:
        assert as_limit(5) == Const(5)
        assert as_limit(ref("a")) == ref("a")

    def test_describe_limit(self) -> None:
        assert describe_limit(ref("low")) == "{low}"
        assert describe_limit(Const(10)) == "10"

    def test_resolve_path(self) -> None:
        record = {"user": {"profile": {"age": 30}}}
        assert resolve_path(record, "user.profile.age") == 30
        assert resolve_path(record, "user.missing.age") is MISSING
        assert resolve_path(record, "user.profile.age.value") is MISSING
        assert resolve_path({"a": None}, "a") is None
