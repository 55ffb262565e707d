"""Greedy auto-arrange of backlog tasks onto the 24h wheel."""

from __future__ import annotations

import logging
from datetime import date, datetime

from dialr.models import Placement, Task
from dialr.timemath import DAY_MINUTES, clamp, overlaps, wrap_minutes

logger = logging.getLogger(__name__)

SOFT_ZONE_MIN = 12 * 60
HOURS_PER_DAY = 24
SLOT_STEP_MIN = 5
FALLBACK_ENERGY = 3


# ---------------------------------------------------------------------------
# Deadline tension
# ---------------------------------------------------------------------------


def _start_of_day(day: date | datetime) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime(day.year, day.month, day.day)


def deadline_tension(task: Task, day: date | datetime) -> float:
    """Urgency in [0, 1] of *task* as seen from the start of *day*.

    0 without a deadline. 1 once the deadline is at or before the day start,
    or once the task no longer fits before it. In between, a linear ramp
    over a 12h soft zone of slack.
    """
    if not task.deadline_iso:
        return 0.0
    deadline = datetime.fromisoformat(task.deadline_iso)
    day_start = _start_of_day(day)
    if deadline.tzinfo is not None:
        day_start = day_start.replace(tzinfo=deadline.tzinfo)
    until = int((deadline - day_start).total_seconds() / 60)
    if until <= 0:
        return 1.0
    slack = until - task.duration_min
    if slack <= 0:
        return 1.0
    return clamp(1 - slack / SOFT_ZONE_MIN, 0.0, 1.0)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


def can_place(task: Task, start_min: int) -> bool:
    """May *task* start at *start_min* given its constraints?"""
    c = task.constraints
    if c is None:
        return True
    end = (start_min + task.duration_min) % DAY_MINUTES
    if c.not_before_min is not None and start_min < c.not_before_min:
        return False
    if c.must_end_by_min is not None:
        # crossing midnight never satisfies a must-end-by bound
        if end <= start_min:
            return False
        if end > c.must_end_by_min:
            return False
    if c.window_start_min is not None and c.window_end_min is not None:
        if not (start_min >= c.window_start_min and end <= c.window_end_min and end > start_min):
            return False
    return True


# ---------------------------------------------------------------------------
# Auto-arrange
# ---------------------------------------------------------------------------


def rank_unplaced(unplaced: list[Task], day: date | datetime) -> list[Task]:
    """Order backlog tasks for placement.

    Descending on (priority, tension, energy cost, duration). Priority is the
    raw number, so a P4 task is placed before a P1 task. Ties keep input order.
    """
    return sorted(
        unplaced,
        key=lambda t: (t.priority, deadline_tension(t, day), t.energy_cost, t.duration_min),
        reverse=True,
    )


def hour_preference(energy_curve: list[int]) -> list[int]:
    """Hours 0..23, highest energy first; equal energy keeps clock order."""

    def energy(h: int) -> int:
        return energy_curve[h] if h < len(energy_curve) else FALLBACK_ENERGY

    return sorted(range(HOURS_PER_DAY), key=energy, reverse=True)


def _find_start(
    task: Task,
    hours: list[int],
    placed: list[tuple[str, int, int]],
) -> int | None:
    for hour in hours:
        for offset in range(0, 60, SLOT_STEP_MIN):
            start = wrap_minutes(hour * 60 + offset)
            if not can_place(task, start):
                continue
            if any(overlaps(p_start, p_dur, start, task.duration_min) for _, p_start, p_dur in placed):
                continue
            return start
    return None


def auto_arrange(
    *,
    day: date | datetime,
    scheduled: list[Task],
    unplaced: list[Task],
    energy_curve: list[int],
) -> list[Placement]:
    """Place backlog tasks first-fit in energy order around existing blocks.

    Tasks are taken in ``rank_unplaced`` order; each gets the first 5-minute
    start, scanning hours from most to least energetic, that satisfies its
    constraints and does not overlap anything already on the wheel. Tasks
    with no such start are left out of the result. Scheduled tasks are never
    moved and no input is mutated.
    """
    placed = [(t.id, t.start_min, t.duration_min) for t in scheduled if t.start_min is not None]
    hours = hour_preference(energy_curve)
    result: list[Placement] = []

    for task in rank_unplaced(unplaced, day):
        start = _find_start(task, hours, placed)
        if start is None:
            logger.debug("No free slot for %s (%s, %d min); left in backlog", task.id, task.title, task.duration_min)
            continue
        placed.append((task.id, start, task.duration_min))
        result.append(Placement(id=task.id, start_min=start))
        logger.debug("Placed %s at minute %d", task.id, start)

    logger.info("Auto-arrange placed %d of %d backlog tasks", len(result), len(unplaced))
    return result
