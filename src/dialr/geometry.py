"""Angle <-> minute mapping for the clock face.

Minute 0 sits at the top of the dial and minutes grow clockwise (screen
coordinates, y pointing down). *total* is the span of one full turn: 1440
for the 24h wheel, 720 for the 12h display.
"""

from __future__ import annotations

import math

from dialr.timemath import DAY_MINUTES, HALF_DAY_MINUTES, clamp, mod

FULL_DAY_MIN = DAY_MINUTES
HALF_DAY_MIN = HALF_DAY_MINUTES

TAU = 2 * math.pi


def minutes_to_angle(minutes: float, total: int = FULL_DAY_MIN) -> float:
    """Minutes -> radians, zero at the top (-pi/2)."""
    return (minutes / total) * TAU - math.pi / 2


def angle_to_minutes(angle: float, total: int = FULL_DAY_MIN) -> float:
    """Radians -> minutes in [0, total)."""
    a = mod(angle + math.pi / 2, TAU)
    return (a / TAU) * total


def minutes_to_degrees(minutes: float, total: int = FULL_DAY_MIN) -> float:
    return (minutes / total) * 360 - 90


def degrees_to_minutes(degrees: float, total: int = FULL_DAY_MIN) -> float:
    norm = mod(degrees + 90, 360)
    return (norm / 360) * total


def point_angle(cx: float, cy: float, x: float, y: float) -> float:
    """Angle of (x, y) around the dial centre (cx, cy)."""
    return math.atan2(y - cy, x - cx)


def within_half(minutes: float, half: str) -> bool:
    if half == "am":
        return mod(minutes, FULL_DAY_MIN) < HALF_DAY_MIN
    return mod(minutes, FULL_DAY_MIN) >= HALF_DAY_MIN


def clamp_to_half(minutes: float, half: str) -> float:
    if half == "am":
        return clamp(minutes, 0, HALF_DAY_MIN)
    return clamp(minutes, HALF_DAY_MIN, FULL_DAY_MIN)
