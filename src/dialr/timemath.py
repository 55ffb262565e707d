"""Minute-of-day arithmetic on the 24h wheel."""

from __future__ import annotations

import math

DAY_MINUTES = 24 * 60
HALF_DAY_MINUTES = 12 * 60


def mod(n: float, m: float) -> float:
    """Mathematical modulo: always in [0, m), also for negative *n*."""
    return ((n % m) + m) % m


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def snap(n: float, step: int = 5) -> int:
    """Round *n* to the nearest multiple of *step* (halves round up)."""
    return _round_half_up(n / step) * step


def wrap_minutes(minutes: float) -> int:
    """Round to a whole minute and wrap into [0, DAY_MINUTES)."""
    return int(mod(_round_half_up(minutes), DAY_MINUTES))


def end_minute(start_min: int, duration_min: int) -> int:
    return (start_min + duration_min) % DAY_MINUTES


def _span(start: int, duration: int) -> tuple[int, int]:
    end = start + duration
    if end <= start:
        end += DAY_MINUTES
    return start, end


def overlaps(a_start: int, a_dur: int, b_start: int, b_dur: int) -> bool:
    """Do two (start, duration) blocks share any interior minute?

    Each block is normalized so its end lies past its start, then *b* is
    also compared one day earlier and later, so a block running past
    midnight (1430 + 20) collides with one early in the morning (5 + 10).
    Blocks that only touch (one ends where the other starts) do not overlap.
    """
    a0, a1 = _span(a_start, a_dur)
    b0, b1 = _span(b_start, b_dur)
    for shift in (0, DAY_MINUTES, -DAY_MINUTES):
        if min(a1, b1 + shift) > max(a0, b0 + shift):
            return True
    return False


def within(now_min: int, start_min: int, duration_min: int) -> bool:
    """Is *now_min* inside the block, both ends included? Handles midnight."""
    s, e = _span(start_min, duration_min)
    if now_min < s:
        now_min += DAY_MINUTES
    return s <= now_min <= e


# ---------------------------------------------------------------------------
# Formatting / parsing
# ---------------------------------------------------------------------------


def fmt_time_24(minutes: int) -> str:
    m = int(mod(minutes, DAY_MINUTES))
    return f"{m // 60:02d}:{m % 60:02d}"


def fmt_time_12(minutes: int) -> str:
    m = int(mod(minutes, DAY_MINUTES))
    h, mm = divmod(m, 60)
    display_h = 12 if h % 12 == 0 else h % 12
    return f"{display_h}:{mm:02d} {'AM' if h < 12 else 'PM'}"


def fmt_duration(minutes: int) -> str:
    h, m = divmod(int(minutes), 60)
    if h and m:
        return f"{h}h{m}m"
    if h:
        return f"{h}h"
    return f"{m}m"


def parse_hhmm(text: str) -> int:
    """Parse ``HH:MM`` into minutes after midnight. Raises ValueError."""
    try:
        h_str, m_str = text.strip().split(":")
        h, m = int(h_str), int(m_str)
    except ValueError:
        raise ValueError(f"Invalid time '{text}'. Use HH:MM.") from None
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Invalid time '{text}'. Use HH:MM.")
    return h * 60 + m
