"""Small numeric helpers shared by the scorers and the trend engine."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up.

    Python's round() uses banker's rounding; stored scores must round the
    same way on every audit so that they stay comparable.
    """
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    """Round a score half-up and keep it within [low, high]."""
    return max(low, min(high, round_half_up(value)))


def round_to(value: float, digits: int = 2) -> float:
    """Half-up rounding to a fixed number of decimal places."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
