"""Exact amount parsing, comparison and formatting."""

from fractions import Fraction

import pytest

from paysim.common.amount import Amount, format_amount
from paysim.common.errors import InvalidAmount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("100", "100.0"),
        ("10.50", "10.5"),
        ("0.01", "0.01"),
        ("1500.00", "1500.0"),
        ("+5", "5.0"),
        ("1e3", "1000.0"),
        ("3/4", "0.75"),
        ("1/3", "0.3333333333"),
    ],
)
def test_parse_and_format(text, expected):
    assert Amount.parse(text).format() == expected


@pytest.mark.parametrize("text", ["0", "0.00", "-10.00", "abc", "", "1/0", "10.0.0", " 10", "1_000"])
def test_parse_rejects(text):
    with pytest.raises(InvalidAmount):
        Amount.parse(text)


def test_rejection_reason_mentions_positive():
    with pytest.raises(InvalidAmount) as exc_info:
        Amount.parse("-1")
    assert "positive" in str(exc_info.value)
    assert exc_info.value.raw == "-1"


def test_equality_is_exact_rational():
    assert Amount.parse("10.50") == Amount.parse("10.5")
    assert Amount.parse("0.1") != Amount.parse("0.10000000001")
    assert Amount.parse("0.1").value == Fraction(1, 10)


def test_compare():
    small, large = Amount.parse("999.99"), Amount.parse("1000")
    assert small.compare(large) == -1
    assert large.compare(small) == 1
    assert large.compare(Amount.parse("1000.000")) == 0
    assert small < large
    assert large >= Amount.parse("1000")


def test_format_absent_amount():
    assert format_amount(None) == "0"
    assert format_amount(Amount.parse("2.50")) == "2.5"


def test_amount_is_immutable():
    amount = Amount.parse("1")
    with pytest.raises(Exception):
        amount.value = Fraction(2)


@pytest.mark.parametrize("text", ["1e999999999", "1e-999999999", "1e1001", "2E+" + "9" * 5000])
def test_parse_rejects_out_of_range_exponent(text):
    """Huge exponents are rejected up front instead of building enormous integers."""

    with pytest.raises(InvalidAmount) as exc_info:
        Amount.parse(text)
    assert "exponent" in str(exc_info.value)


@pytest.mark.parametrize("text", ["9" * 1001, "0." + "1" * 1000, "1" * 1001 + "/3"])
def test_parse_rejects_too_many_digits(text):
    with pytest.raises(InvalidAmount):
        Amount.parse(text)


def test_exponent_at_limit_still_formats():
    assert Amount.parse("1e1000").format() == "1" + "0" * 1000 + ".0"
    assert Amount.parse("1e-1000").format() == "0." + "0" * 999 + "1"
