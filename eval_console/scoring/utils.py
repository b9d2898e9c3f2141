"""
Decimal Utilities
eval_console/scoring/utils.py

Precision-safe helpers for turning API floats into displayed integer scores.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional


def to_decimal(value: Optional[float], places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision (None -> 0)."""
    if value is None:
        value = 0
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero (47.5 -> 48)."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean(values: Iterable[Optional[float]]) -> Decimal:
    """
    Unweighted arithmetic mean.

    Missing values count as 0. Returns Decimal("0") for an empty input.
    """
    decimals = [to_decimal(v) for v in values]
    if not decimals:
        return Decimal("0")
    return sum(decimals) / len(decimals)
