"""Tests for amount parsing and rounding."""

from decimal import Decimal

import pytest

from qbopulse.utils.amount_parser import format_thousands, parse_amount, parse_amount_or_zero, round2


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123.45", Decimal("123.45")),
        ("$12,345.67", Decimal("12345.67")),
        ("-$50.00", Decimal("-50.00")),
        ("(500.00)", Decimal("-500.00")),
        ("($1,200.10)", Decimal("-1200.10")),
        ("€9.99", Decimal("9.99")),
    ],
)
def test_parse_amount_formats(raw, expected):
    assert parse_amount(raw) == expected


def test_parse_amount_rejects_garbage():
    with pytest.raises(ValueError):
        parse_amount("twelve dollars")

    with pytest.raises(ValueError):
        parse_amount("   ")


def test_parse_amount_rejects_non_finite():
    with pytest.raises(ValueError):
        parse_amount("NaN")


def test_parse_amount_or_zero_swallows_bad_values():
    assert parse_amount_or_zero(None) == Decimal("0")
    assert parse_amount_or_zero("") == Decimal("0")
    assert parse_amount_or_zero("n/a") == Decimal("0")
    assert parse_amount_or_zero("12.5") == Decimal("12.5")


def test_round2_rounds_halves_up():
    assert round2(Decimal("1.005")) == Decimal("1.01")
    assert round2(Decimal("2.675")) == Decimal("2.68")
    assert round2(Decimal("-1.005")) == Decimal("-1.00")
    assert round2(Decimal("-0.125")) == Decimal("-0.12")
    assert round2(Decimal("-0.126")) == Decimal("-0.13")
    assert round2(-2.675) == Decimal("-2.67")
    assert round2(1.005) == Decimal("1.01")
    assert round2(7) == Decimal("7.00")


@pytest.mark.parametrize("value", [Decimal("0.125"), Decimal("1234.5678"), Decimal("-9.999"), 0.1 + 0.2])
def test_round2_is_idempotent(value):
    once = round2(value)
    assert round2(once) == once
    assert once.as_tuple().exponent == -2


def test_format_thousands():
    assert format_thousands(12345) == "$12K"
    assert format_thousands(950) == "$950"
    assert format_thousands(-4200) == "$-4K"
