"""Exact monetary amounts.

Amounts are rationals, never floats: `10.10` is stored as 101/10 and compared
exactly, so idempotency checks and threshold routing cannot drift.
"""

import re
from fractions import Fraction
from functools import total_ordering

from pydantic import BaseModel, ConfigDict

from paysim.common.errors import InvalidAmount

# Decimal/integer literals with optional exponent, or an `a/b` ratio.
_DECIMAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE](?P<exponent>[+-]?\d+))?$")
_RATIO = re.compile(r"^[+-]?\d+/\d+$")

# Bounds keep exact values renderable as decimal strings.
MAX_EXPONENT = 1000
MAX_DIGITS = 1000

# Non-terminating decimals (e.g. 1/3) are rounded to this many places on display.
DISPLAY_PLACES = 10


def parse_fraction(text: str) -> Fraction:
    """Parse a numeric literal without any sign checks."""

    if not text:
        raise InvalidAmount(text, "invalid amount format")
    decimal = _DECIMAL.match(text)
    if decimal is not None:
        exponent = decimal.group("exponent")
        mantissa = text[: decimal.start("exponent") - 1] if exponent is not None else text
        if exponent is not None and (len(exponent) > 8 or abs(int(exponent)) > MAX_EXPONENT):
            raise InvalidAmount(text, "amount exponent out of range")
        if len(mantissa) > MAX_DIGITS:
            raise InvalidAmount(text, "amount has too many digits")
    elif _RATIO.match(text):
        if any(len(part) > MAX_DIGITS for part in text.split("/")):
            raise InvalidAmount(text, "amount has too many digits")
    else:
        raise InvalidAmount(text, "invalid amount format")
    try:
        return Fraction(text)
    except (ValueError, ZeroDivisionError) as exc:
        raise InvalidAmount(text, "invalid amount format") from exc


@total_ordering
class Amount(BaseModel):
    """Immutable, strictly positive (when parsed) rational amount."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Fraction

    @classmethod
    def parse(cls, text: str) -> "Amount":
        value = parse_fraction(text)
        if value <= 0:
            raise InvalidAmount(text, "amount must be positive")
        return cls(value=value)

    def compare(self, other: "Amount") -> int:
        if self.value < other.value:
            return -1
        if self.value > other.value:
            return 1
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: "Amount") -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self.value)

    def format(self) -> str:
        """Render as a decimal string: trailing zeros trimmed, one fractional digit kept."""

        numerator, denominator = self.value.numerator, self.value.denominator
        twos = fives = 0
        rest = denominator
        while rest % 2 == 0:
            rest //= 2
            twos += 1
        while rest % 5 == 0:
            rest //= 5
            fives += 1

        if rest == 1:
            places = max(twos, fives)
            digits = abs(numerator) * 10**places // denominator
        else:
            places = DISPLAY_PLACES
            digits = round(Fraction(abs(numerator) * 10**places, denominator))

        whole, fraction = divmod(digits, 10**places)
        fractional = str(fraction).zfill(places).rstrip("0") if places else ""
        sign = "-" if numerator < 0 else ""
        return f"{sign}{whole}.{fractional or '0'}"

    def __str__(self) -> str:
        return self.format()


def format_amount(amount: Amount | None) -> str:
    """Format an optional amount; a missing amount renders as "0"."""

    if amount is None:
        return "0"
    return amount.format()
