"""Scale-4 fixed-point amount type and locale-aware amount parsing.

Every share quantity and monetary value in the ledger is an `Amount`: an
integer mantissa with an implied scale of four fractional digits. Arithmetic
stays in integers and re-quantizes with round-half-away-from-zero.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import total_ordering

AMOUNT_SCALE = 4
_AMOUNT_FACTOR = 10**AMOUNT_SCALE


class AmountParseError(ValueError):
    """Raised when text cannot be converted to a scale-4 amount."""


class LocaleUnit(str, Enum):
    """Supported number-formatting locales."""

    SE = "SE"
    US = "US"


_DOMAIN_AMOUNT_DECIMAL_SEPARATORS = {
    LocaleUnit.SE: ",",
    LocaleUnit.US: ".",
}

_DOMAIN_AMOUNT_GROUPING_CHARACTERS = {
    LocaleUnit.SE: (" ", "\u00a0", "\u202f"),
    LocaleUnit.US: (" ", "\u00a0", "\u202f"),
}

_DOMAIN_AMOUNT_US_THOUSANDS_PATTERN = re.compile(r"[+-]?[0-9]{1,3}(?:,[0-9]{3})+(?:\.[0-9]*)?")


def _amount_divide_half_away(numerator: int, denominator: int) -> int:
    """Divide two integers rounding half away from zero.

    Args:
        numerator: Integer dividend.
        denominator: Integer divisor.

    Returns:
        int: Rounded integer quotient.

    Raises:
        ZeroDivisionError: Raised when denominator is zero.
    """

    if denominator == 0:
        raise ZeroDivisionError("amount division by zero")

    quotient, remainder = divmod(abs(numerator), abs(denominator))
    if remainder * 2 >= abs(denominator):
        quotient += 1
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


@total_ordering
@dataclass(frozen=True)
class Amount:
    """Immutable fixed-point value with four fractional digits.

    Attributes:
        mantissa: Integer value scaled by 10^4.
    """

    mantissa: int

    def __post_init__(self) -> None:
        if isinstance(self.mantissa, bool) or not isinstance(self.mantissa, int):
            raise TypeError("mantissa must be an int")

    @classmethod
    def zero(cls) -> Amount:
        """Return the zero amount."""

        return cls(0)

    @classmethod
    def from_int(cls, value: int) -> Amount:
        """Build an amount from a whole number."""

        return cls(value * _AMOUNT_FACTOR)

    @classmethod
    def from_decimal(cls, value: Decimal | str) -> Amount:
        """Build an amount from a decimal value, quantizing to scale 4.

        Args:
            value: Decimal value or canonical decimal string (period separator).

        Returns:
            Amount: Quantized amount.

        Raises:
            AmountParseError: Raised when value is not a finite decimal.
        """

        try:
            decimal_value = Decimal(value)
        except ArithmeticError as error:
            raise AmountParseError(f"invalid decimal value={value!r}") from error
        if not decimal_value.is_finite():
            raise AmountParseError(f"invalid decimal value={value!r}")

        quantized = decimal_value.quantize(Decimal(1).scaleb(-AMOUNT_SCALE), rounding=ROUND_HALF_UP)
        return cls(int(quantized.scaleb(AMOUNT_SCALE)))

    def to_decimal(self) -> Decimal:
        """Return the exact decimal value of this amount."""

        return Decimal(self.mantissa).scaleb(-AMOUNT_SCALE)

    def is_zero(self) -> bool:
        return self.mantissa == 0

    def is_negative(self) -> bool:
        return self.mantissa < 0

    def compare(self, other: Amount) -> int:
        """Return -1, 0 or 1 comparing this amount with another."""

        return (self.mantissa > other.mantissa) - (self.mantissa < other.mantissa)

    def __add__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.mantissa + other.mantissa)

    def __sub__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.mantissa - other.mantissa)

    def __mul__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(_amount_divide_half_away(self.mantissa * other.mantissa, _AMOUNT_FACTOR))

    def __truediv__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        if other.mantissa == 0:
            raise ZeroDivisionError("amount division by zero")
        return Amount(_amount_divide_half_away(self.mantissa * _AMOUNT_FACTOR, other.mantissa))

    def __neg__(self) -> Amount:
        return Amount(-self.mantissa)

    def __abs__(self) -> Amount:
        return Amount(abs(self.mantissa))

    def __lt__(self, other: Amount) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.mantissa < other.mantissa

    def __str__(self) -> str:
        return domain_amount_format(self, LocaleUnit.US)


AMOUNT_ZERO = Amount.zero()


def domain_amount_resolve_locale(locale: LocaleUnit | str) -> LocaleUnit:
    """Resolve a locale label to a supported locale.

    Args:
        locale: Locale enum member or label (`SE`, `US`).

    Returns:
        LocaleUnit: Supported locale.

    Raises:
        AmountParseError: Raised when the locale is not supported.
    """

    try:
        return LocaleUnit(locale)
    except ValueError as error:
        raise AmountParseError(f"invalid locale={locale!r}") from error


def domain_amount_parse(text: str, locale: LocaleUnit | str) -> Amount:
    """Parse a locale-formatted number into a scale-4 amount.

    The fractional part is right-padded or truncated to four digits. Grouping
    spaces are ignored; US amounts may also group the integer part in
    thousands with commas. Blank text is an error; callers choose their own default.

    Args:
        text: Locale-formatted number text.
        locale: Locale that defines the decimal separator.

    Returns:
        Amount: Parsed amount.

    Raises:
        AmountParseError: Raised when locale or numeric literal is invalid.
    """

    resolved_locale = domain_amount_resolve_locale(locale)
    if not isinstance(text, str):
        raise AmountParseError(f"amount text must be a string, got {type(text).__name__}")

    normalized_text = text.strip()
    for grouping_character in _DOMAIN_AMOUNT_GROUPING_CHARACTERS[resolved_locale]:
        normalized_text = normalized_text.replace(grouping_character, "")
    if resolved_locale is LocaleUnit.US and "," in normalized_text:
        # commas are only accepted as thousands separators in the integer part
        if _DOMAIN_AMOUNT_US_THOUSANDS_PATTERN.fullmatch(normalized_text) is None:
            raise AmountParseError(f"invalid amount={text!r} for locale={resolved_locale.value}")
        normalized_text = normalized_text.replace(",", "")

    separator = re.escape(_DOMAIN_AMOUNT_DECIMAL_SEPARATORS[resolved_locale])
    match = re.fullmatch(rf"([+-]?)([0-9]*)(?:{separator}([0-9]*))?", normalized_text)
    if match is None:
        raise AmountParseError(f"invalid amount={text!r} for locale={resolved_locale.value}")

    sign, integer_digits, fraction_digits = match.group(1), match.group(2), match.group(3) or ""
    if not integer_digits and not fraction_digits:
        raise AmountParseError(f"invalid amount={text!r} for locale={resolved_locale.value}")

    mantissa = int(integer_digits or "0") * _AMOUNT_FACTOR + int((fraction_digits + "0000")[:AMOUNT_SCALE])
    return Amount(-mantissa if sign == "-" else mantissa)


def domain_amount_format(amount: Amount, locale: LocaleUnit | str = LocaleUnit.US) -> str:
    """Format an amount with exactly four fractional digits.

    Args:
        amount: Amount to format.
        locale: Locale that defines the decimal separator.

    Returns:
        str: Formatted amount without grouping characters.

    Raises:
        AmountParseError: Raised when locale is not supported.
    """

    resolved_locale = domain_amount_resolve_locale(locale)
    integer_part, fraction_part = divmod(abs(amount.mantissa), _AMOUNT_FACTOR)
    sign = "-" if amount.mantissa < 0 else ""
    separator = _DOMAIN_AMOUNT_DECIMAL_SEPARATORS[resolved_locale]
    return f"{sign}{integer_part}{separator}{fraction_part:04d}"
