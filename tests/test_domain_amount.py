"""Tests for scale-4 amount arithmetic, parsing and formatting."""

from __future__ import annotations

from decimal import Decimal

import pytest

from lotledger.domain import Amount, AmountParseError, LocaleUnit, domain_amount_format, domain_amount_parse


@pytest.mark.parametrize(
    ("text", "locale", "expected_mantissa"),
    [
        ("100.10", LocaleUnit.US, 1001000),
        ("234,1200", LocaleUnit.SE, 2341200),
        ("1010.0001", LocaleUnit.US, 10100001),
        ("0.0001", LocaleUnit.US, 1),
        ("1 234,5", LocaleUnit.SE, 12345000),
        ("1,234.5", LocaleUnit.US, 12345000),
        ("-12,345,678.25", LocaleUnit.US, -123456782500),
        ("-12,34567", LocaleUnit.SE, -123456),
        ("7", "US", 70000),
        (",5", LocaleUnit.SE, 5000),
    ],
)
def test_domain_amount_parse_accepts_locale_literals(text: str, locale, expected_mantissa: int) -> None:
    """Parse locale literals, padding or truncating the fraction to four digits."""

    assert domain_amount_parse(text, locale) == Amount(expected_mantissa)


@pytest.mark.parametrize(
    ("text", "locale"),
    [
        ("1010.0001", LocaleUnit.SE),
        ("", LocaleUnit.US),
        ("   ", LocaleUnit.SE),
        ("abc", LocaleUnit.US),
        ("1.2.3", LocaleUnit.US),
        ("1,2,3.4", LocaleUnit.US),
        (",123", LocaleUnit.US),
        ("1234,567.0", LocaleUnit.US),
        ("1,234.5,6", LocaleUnit.US),
        ("-", LocaleUnit.US),
        ("1010.0001", "DK"),
    ],
)
def test_domain_amount_parse_rejects_invalid_input(text: str, locale) -> None:
    """Reject malformed literals, blank text and unsupported locales."""

    with pytest.raises(AmountParseError):
        domain_amount_parse(text, locale)


def test_domain_amount_parse_error_is_value_error() -> None:
    """Parse failures stay catchable as ValueError."""

    with pytest.raises(ValueError):
        domain_amount_parse("x", LocaleUnit.US)


@pytest.mark.parametrize("mantissa", [0, 1, -1, 12345678, -5000, 10**15 + 7])
def test_domain_amount_format_parse_round_trip(mantissa: int) -> None:
    """Formatting then parsing returns the same amount in both locales."""

    amount = Amount(mantissa)
    assert domain_amount_parse(domain_amount_format(amount, LocaleUnit.US), LocaleUnit.US) == amount
    assert domain_amount_parse(domain_amount_format(amount, LocaleUnit.SE), LocaleUnit.SE) == amount


def test_domain_amount_format_uses_four_fraction_digits() -> None:
    """Format with exactly four fractional digits and the locale separator."""

    assert domain_amount_format(Amount(4800000)) == "480.0000"
    assert domain_amount_format(Amount(-1), LocaleUnit.SE) == "-0,0001"
    assert str(Amount.from_int(5)) == "5.0000"


def test_domain_amount_multiplication_rounds_half_away_from_zero() -> None:
    """Products are re-quantized to scale 4 rounding half away from zero."""

    assert Amount(5) * Amount(5000) == Amount(3)
    assert Amount(-5) * Amount(5000) == Amount(-3)
    assert Amount.from_int(120) * Amount.from_int(4) == Amount.from_int(480)


def test_domain_amount_division_quantizes_and_rejects_zero() -> None:
    """Quotients are quantized to scale 4 and division by zero raises."""

    assert Amount.from_int(1) / Amount.from_int(3) == Amount(3333)
    assert Amount.from_int(2) / Amount.from_int(3) == Amount(6667)
    assert Amount.from_int(-2) / Amount.from_int(3) == Amount(-6667)
    with pytest.raises(ZeroDivisionError):
        _ = Amount.from_int(1) / Amount.zero()


def test_domain_amount_ordering_and_helpers() -> None:
    """Amounts compare by value and expose sign helpers."""

    small = Amount.from_int(3)
    large = Amount.from_int(5)

    assert small < large
    assert max(small, large) == large
    assert small.compare(large) == -1
    assert large.compare(small) == 1
    assert small.compare(Amount(30000)) == 0
    assert (-small).is_negative()
    assert abs(-small) == small
    assert Amount.zero().is_zero()


def test_domain_amount_decimal_conversion() -> None:
    """Decimal conversion is exact and quantizes half-up on input."""

    assert Amount.from_decimal(Decimal("1.23456")) == Amount(12346)
    assert Amount.from_decimal("-1.23455") == Amount(-12346)
    assert Amount(12345).to_decimal() == Decimal("1.2345")
    with pytest.raises(AmountParseError):
        Amount.from_decimal("NaN")


def test_domain_amount_rejects_non_integer_mantissa() -> None:
    """The mantissa must be a plain int."""

    with pytest.raises(TypeError):
        Amount(1.5)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Amount(True)  # type: ignore[arg-type]
