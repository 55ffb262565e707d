"""Edits on a day's task list: schedule, move, resize, split, delete.

Every function takes the current list and returns a new one; tasks that
change are copied with ``dataclasses.replace`` so callers can keep the old
list around (e.g. for an undo or a dry run).
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import replace

from dialr.models import Category, Mode, Placement, Task
from dialr.timemath import DAY_MINUTES, end_minute, snap, within, wrap_minutes

MIN_DURATION = 5


def _new_id() -> str:
    return str(uuid.uuid4())


def find_task(tasks: list[Task], task_id: str) -> Task:
    for t in tasks:
        if t.id == task_id:
            return t
    raise ValueError(f"Task {task_id} not found.")


def partition(tasks: list[Task]) -> tuple[list[Task], list[Task]]:
    """Split into (scheduled sorted by start, backlog in list order)."""
    scheduled = sorted((t for t in tasks if t.start_min is not None), key=lambda t: t.start_min)
    unplaced = [t for t in tasks if t.start_min is None]
    return scheduled, unplaced


def _update(tasks: list[Task], task_id: str, **changes) -> list[Task]:
    find_task(tasks, task_id)
    return [replace(t, **changes) if t.id == task_id else t for t in tasks]


def schedule_task(tasks: list[Task], task_id: str, start_min: int) -> list[Task]:
    return _update(tasks, task_id, start_min=wrap_minutes(start_min))


def unschedule_task(tasks: list[Task], task_id: str) -> list[Task]:
    return _update(tasks, task_id, start_min=None)


def move_task(tasks: list[Task], task_id: str, start_min: int) -> list[Task]:
    """Move a block, keeping its duration."""
    return _update(tasks, task_id, start_min=wrap_minutes(start_min))


def resize_task(
    tasks: list[Task],
    task_id: str,
    start_min: int | None,
    duration_min: int,
    *,
    step: int = 5,
) -> list[Task]:
    """Set start and duration; duration is snapped to *step* and at least 5 minutes."""
    duration = max(MIN_DURATION, snap(duration_min, step))
    start = wrap_minutes(start_min) if start_min is not None else None
    return _update(tasks, task_id, start_min=start, duration_min=duration)


def split_task(
    tasks: list[Task],
    task_id: str,
    split_at_min: int,
    *,
    new_id: Callable[[], str] = _new_id,
    step: int = 5,
) -> list[Task]:
    """Cut a scheduled block in two at *split_at_min*.

    The split point is taken on the block's own timeline (so it may fall
    after midnight) and clamped to the block end. The first half is snapped
    to *step*, both halves are at least 5 minutes long and get fresh ids,
    and the cut block is replaced in place.
    """
    t = find_task(tasks, task_id)
    if t.start_min is None:
        raise ValueError(f"Task {task_id} is not scheduled; only placed blocks can be split.")

    s = t.start_min
    e = s + t.duration_min
    if e <= s:
        e += DAY_MINUTES
    split = split_at_min
    if split < s:
        split += DAY_MINUTES
    split = min(split, e)

    dur_a = max(MIN_DURATION, snap(split - s, step))
    dur_b = max(MIN_DURATION, t.duration_min - dur_a)
    a = replace(t, id=new_id(), duration_min=dur_a)
    b = replace(t, id=new_id(), start_min=end_minute(s, dur_a), duration_min=dur_b)

    out: list[Task] = []
    for x in tasks:
        out.extend([a, b] if x.id == task_id else [x])
    return out


def filter_by_modes(tasks: list[Task], modes: list[Mode] | None) -> list[Task]:
    """Tasks whose mode is one of *modes*; no modes means no filtering."""
    if not modes:
        return list(tasks)
    wanted = set(modes)
    return [t for t in tasks if t.mode in wanted]


def delete_task(tasks: list[Task], task_id: str) -> list[Task]:
    find_task(tasks, task_id)
    return [t for t in tasks if t.id != task_id]


def apply_placements(tasks: list[Task], placements: list[Placement]) -> list[Task]:
    """Write auto-arrange results back onto the task list."""
    starts = {p.id: p.start_min for p in placements}
    return [replace(t, start_min=starts[t.id]) if t.id in starts else t for t in tasks]


# ---------------------------------------------------------------------------
# Day summaries
# ---------------------------------------------------------------------------


def total_scheduled_minutes(tasks: list[Task]) -> int:
    return sum(t.duration_min for t in tasks if t.start_min is not None)


def minutes_by_category(tasks: list[Task]) -> dict[Category, int]:
    totals = {c: 0 for c in Category}
    for t in tasks:
        if t.start_min is not None:
            totals[t.category] += t.duration_min
    return totals


def active_task(tasks: list[Task], now_min: int) -> Task | None:
    """The scheduled block covering *now_min*, earliest start first."""
    scheduled, _ = partition(tasks)
    for t in scheduled:
        if within(now_min, t.start_min, t.duration_min):
            return t
    return None


def remaining_seconds(task: Task, now_min: int, now_sec: int = 0) -> int:
    """Seconds until *task* ends, counting forward around the clock."""
    if task.start_min is None:
        return 0
    left = (task.start_min + task.duration_min - now_min) % DAY_MINUTES
    return left * 60 - now_sec
