"""
common/utils.py

🧮 Numeric helpers shared by the engine rules.

Sensor readings may be absent (``None``) or not numeric at all; none of the
comparisons below raise in that case, they simply do not match.
"""

import math
from numbers import Real
from typing import Any


def as_number(value: Any):
    """
    Returns the value as a float, or None when it is absent or not a real number.
    NaN is treated as absent.
    """
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    if math.isnan(number):
        return None
    return number


def above(value: Any, threshold: float) -> bool:
    """Strict ``value > threshold``; False for absent readings."""
    number = as_number(value)
    return number is not None and number > threshold


def below(value: Any, threshold: float) -> bool:
    """Strict ``value < threshold``; False for absent readings."""
    number = as_number(value)
    return number is not None and number < threshold


def between(value: Any, lo: float, hi: float) -> bool:
    """Inclusive ``lo <= value <= hi``; False for absent readings."""
    number = as_number(value)
    return number is not None and lo <= number <= hi


def clamp_percent(value: float, lo: int = 0, hi: int = 100) -> int:
    """
    Rounds to an integer and clamps it into [lo, hi].

    Args:
        value (float): raw setting or score.
        lo (int): lower bound (inclusive).
        hi (int): upper bound (inclusive).

    Returns:
        int: the bounded percentage.
    """
    return int(max(lo, min(hi, round(value))))
