"""Speed Policy — decides which production rate a time slice is charged at.

Invariants:
    - A rate change observed at tick T is never applied to the slice ending at T
    - units_for_slice floors (never rounds up) and never returns a negative count

Design Decisions:
    - Whole-slice attribution to the previously recorded rate instead of
      interpolating a switchover instant: there is no rate history table to
      interpolate from, and this keeps shift-boundary slices free of
      double/under counting
"""

import math


def rate_for_slice(
    previous_known_rate: float | None, current_rate: float,
) -> float:
    """Rate to charge the slice that ends now. Pure."""
    if previous_known_rate is None:
        return current_rate
    if previous_known_rate == current_rate:
        return current_rate
    return previous_known_rate


def units_for_slice(elapsed_minutes: int, rate: float) -> int:
    """Whole units produced over `elapsed_minutes` at `rate` units/minute."""
    if elapsed_minutes <= 0 or rate <= 0:
        return 0
    return max(0, math.floor(elapsed_minutes * rate))
