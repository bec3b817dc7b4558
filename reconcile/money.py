from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

MINOR_PER_MAJOR = 100
ONE = Decimal("1")

Amount = Union[str, int, Decimal]


def parse_decimal(value: Amount) -> Decimal:
    """Parse user input without going through binary floats.

    Raises ``InvalidOperation`` for text that is not a finite decimal number.
    """
    if isinstance(value, float):
        value = repr(value)
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    d = Decimal(value)
    if not d.is_finite():
        raise InvalidOperation(f"Not a finite amount: {value!r}")
    return d


def round_half_up(d: Decimal) -> int:
    return int(d.quantize(ONE, rounding=ROUND_HALF_UP))


def to_minor(value: Amount) -> int:
    """Convert a major-unit amount ("12.345") into minor units, half-up."""
    return round_half_up(parse_decimal(value) * MINOR_PER_MAJOR)


def from_minor(minor: int) -> Decimal:
    return (Decimal(minor) / MINOR_PER_MAJOR).quantize(Decimal("0.01"))


def format_minor(minor: int, currency: str) -> str:
    sign = "-" if minor < 0 else ""
    return f"{sign}{currency} {from_minor(abs(minor)):,.2f}"
