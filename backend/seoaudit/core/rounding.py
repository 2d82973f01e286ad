"""
Rounding helpers.
"""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (built-in round() goes to even)."""
    return int(math.floor(value + 0.5))
