"""Small numeric helpers."""

import math


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, unlike round()'s banker's rounding."""
    return math.floor(value + 0.5)
