from __future__ import annotations

from decimal import Decimal

import pytest

from tabrecon.domain.reconciliation import make_key, normalize_amount, normalize_scalar


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        ("  INV-1  ", "INV-1"),
        (True, "true"),
        (False, "false"),
        (12, "12"),
        (12.0, "12"),
        (12.5, "12.5"),
        (Decimal("100.00"), "100.00"),
    ],
)
def test_normalize_scalar(value: object, expected: str) -> None:
    assert normalize_scalar(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("$1,234.50", Decimal("1234.50")),
        ("₹ 99", Decimal("99")),
        ("  -5.25 ", Decimal("-5.25")),
        (100, Decimal(100)),
        (Decimal("7.10"), Decimal("7.10")),
        ("1e2", Decimal("100")),
    ],
)
def test_normalize_amount_parses_numbers(value: object, expected: Decimal) -> None:
    assert normalize_amount(value) == expected


@pytest.mark.parametrize(
    "value", [None, "", "   ", "$", "abc", "NaN", "Infinity", "1_000", True]
)
def test_normalize_amount_rejects_unusable_values(value: object) -> None:
    assert normalize_amount(value) is None


def test_float_amount_is_parsed_through_its_text_form() -> None:
    assert normalize_amount(0.1) == Decimal("0.1")


def test_make_key_is_case_and_whitespace_insensitive() -> None:
    key_a = make_key({"id": " ABC ", "date": "2024-01-01"}, ["id", "date"])
    key_b = make_key({"id": "abc", "date": "2024-01-01 "}, ["id", "date"])

    assert key_a == key_b == "abc | 2024-01-01"


def test_make_key_treats_missing_fields_as_empty() -> None:
    assert make_key({"id": "1"}, ["id", "branch"]) == "1 | "


def test_make_key_returns_empty_when_every_part_is_empty() -> None:
    assert make_key({"id": "  ", "branch": None}, ["id", "branch"]) == ""
    assert make_key({}, ["id"]) == ""


def test_make_key_escapes_separator_inside_values() -> None:
    joined = make_key({"a": "x | y", "b": "z"}, ["a", "b"])
    split = make_key({"a": "x", "b": "y | z"}, ["a", "b"])

    assert joined != split
    assert joined == "x \\| y | z"


def test_make_key_depends_on_field_order() -> None:
    record = {"a": "1", "b": "2"}

    assert make_key(record, ["a", "b"]) == "1 | 2"
    assert make_key(record, ["b", "a"]) == "2 | 1"


def test_make_key_normalizes_numeric_values() -> None:
    assert make_key({"id": 7.0}, ["id"]) == make_key({"id": "7"}, ["id"])
