"""
IEEE-754 arithmetic for the calculators.

Python raises ZeroDivisionError on float division by zero and
OverflowError / ValueError from math.pow. The calculators must never
raise for out-of-domain numbers; they return inf or nan instead, the
same values a browser would show. Every division and power that can
fail goes through these helpers.
"""

import math


def ieee_div(numerator: float, denominator: float) -> float:
    """numerator / denominator, with x/0 -> +-inf and 0/0 -> nan."""
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def ieee_pow(base: float, exponent: float) -> float:
    """base ** exponent, with overflow -> +-inf and undefined -> nan."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf
    except ValueError:
        # 0 ** negative is a pole; negative ** fractional is undefined
        if base == 0:
            return math.inf
        return math.nan


def floor_at_zero(value: float) -> float:
    """Clamp negatives to 0 for display. nan passes through unchanged."""
    return 0.0 if value < 0 else value


def _is_odd_integer(value: float) -> bool:
    return float(value).is_integer() and int(value) % 2 == 1
