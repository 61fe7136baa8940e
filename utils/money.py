"""
Money helpers.

Prices are Decimal at every public boundary and integer minor units (cents)
wherever they are summed or sent to the payment gateway.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")


def to_minor_units(amount: Decimal | int | str) -> int:
    """
    Convert a decimal amount to integer minor units.

    Floats are rejected: their binary representation is the drift we avoid.

    Example:
        >>> to_minor_units(Decimal("4.00"))
        400
    """
    if isinstance(amount, float):
        raise TypeError("Monetary amounts must be Decimal, int or str, not float")
    quantized = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(quantized * 100)


def from_minor_units(minor_units: int) -> Decimal:
    return (Decimal(minor_units) / 100).quantize(CENT)


def line_total_minor_units(unit_price: Decimal, quantity: int) -> int:
    return to_minor_units(unit_price) * quantity


def sum_lines(lines: Iterable[tuple[Decimal, int]]) -> Decimal:
    """Sum (unit_price, quantity) pairs without floating point drift."""
    return from_minor_units(sum(line_total_minor_units(price, quantity) for price, quantity in lines))
