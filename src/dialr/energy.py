"""Hour-by-hour energy curve around a self-reported peak."""

from __future__ import annotations

import math

ENERGY_CURVE_LENGTH = 24
DEFAULT_PEAK_HOUR = 10
DEFAULT_BASE = 3
MIN_ENERGY = 1
MAX_ENERGY = 5

# Bonus at the peak and how much of it is lost per hour of distance.
PEAK_BONUS = 2.5
FALLOFF_PER_HOUR = 0.6


def build_energy_curve(peak_hour: int, base: int = DEFAULT_BASE) -> list[int]:
    """Return 24 values in [1, 5], one per hour, bumped around *peak_hour*.

    Distance to the peak is measured around the clock, so a peak at 23:00
    also lifts the first hours after midnight.
    """
    curve: list[int] = []
    for h in range(ENERGY_CURVE_LENGTH):
        dist = min(abs(h - peak_hour), ENERGY_CURVE_LENGTH - abs(h - peak_hour))
        bonus = max(0.0, PEAK_BONUS - dist * FALLOFF_PER_HOUR)
        value = math.floor(base + bonus + 0.5)
        curve.append(max(MIN_ENERGY, min(MAX_ENERGY, value)))
    return curve


def peak_hours(curve: list[int]) -> list[int]:
    """Hours at which the curve reaches its maximum."""
    if not curve:
        return []
    top = max(curve)
    return [h for h, v in enumerate(curve) if v == top]
