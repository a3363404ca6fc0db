"""
Period-over-period comparison and the shared rounding rule.

All displayed numbers are rounded to two decimals, half away from zero
(2.345 -> 2.35, -2.345 -> -2.35), not Python's banker's rounding.
"""
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


def round_half_away(value: float, places: int = 2) -> float:
    """Round ``value`` to ``places`` decimals, ties away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percent_change(current: float, prior: Optional[float]) -> float:
    """
    Percentage change from ``prior`` to ``current``, rounded to two decimals.

    Returns exactly 0.0 when there is nothing meaningful to compare against:
    prior missing, zero, NaN or infinite. The result is always finite.
    """
    if prior is None or current is None:
        return 0.0
    if math.isnan(prior) or math.isinf(prior) or prior == 0:
        return 0.0
    if math.isnan(current) or math.isinf(current):
        return 0.0
    return round_half_away((current - prior) / prior * 100)
