"""
Numeric helpers shared by the health scorers.
"""
import math


SCORE_MIN = 0
SCORE_MAX = 100


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero for positives.

    Python's built-in ``round`` uses banker's rounding (``round(66.5) == 66``);
    agronomic scores are rounded the conventional way. The value is snapped to
    six decimals first so float noise such as ``72.49999999999999`` from a
    weighted sum still rounds to 73.

    Args:
        value: Raw score

    Returns:
        Rounded integer
    """
    return int(math.floor(round(value, 6) + 0.5))


def clamp_score(value: float) -> int:
    """
    Round a raw score and clamp it to [0, 100].

    Args:
        value: Raw score, possibly out of range

    Returns:
        Integer score within the valid range
    """
    return max(SCORE_MIN, min(SCORE_MAX, round_half_up(value)))
