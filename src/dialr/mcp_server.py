"""MCP server for dialr: exposes day-planning tools to AI assistants."""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import date, datetime

from mcp.server.fastmcp import FastMCP

from dialr import ops
from dialr.energy import build_energy_curve
from dialr.models import Category, Placement, Task, TaskConstraints
from dialr.persistence import DEFAULT_DB_FILE, Store
from dialr.rituals import stamp_ritual
from dialr.scheduler import auto_arrange, deadline_tension
from dialr.timemath import DAY_MINUTES, end_minute, fmt_time_24

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "dialr",
    instructions="""\
dialr is a single-person day planner built around a 24-hour clock face. Each day \
has a list of tasks. A task is either *scheduled* (it has a start minute on the \
wheel) or sits in the *backlog*. Times are minutes after midnight (0-1439); a \
block may run past midnight.

Key concepts:
- **Energy peak**: the hour of the day the user feels sharpest. The energy curve \
(24 values, 1-5) is a bump around that hour.
- **Auto-arrange**: places backlog tasks greedily. Tasks are taken by raw priority \
number (higher first), then deadline tension, energy cost and duration, and each \
gets the first free 5-minute slot in the most energetic hour that satisfies its \
constraints. Scheduled tasks are never moved. Tasks that fit nowhere stay in the \
backlog; that is not an error.
- **Constraints**: not_before, must_end_by (never across midnight) and a window.
- **Tension**: 0-1 urgency from the deadline and the task duration.
- **Rituals**: saved bundles of blocks that can be stamped onto a day.

Dates are YYYY-MM-DD; omit them to mean today.\
""",
)


def _get_store() -> Store:
    return Store(os.environ.get("DIALR_DB", DEFAULT_DB_FILE))


def _day(date_iso: str | None) -> date:
    return date.fromisoformat(date_iso) if date_iso else date.today()


def _task_to_dict(t: Task, day: date) -> dict:
    d = t.to_dict()
    if t.start_min is not None:
        d["start"] = fmt_time_24(t.start_min)
        d["end"] = fmt_time_24(end_minute(t.start_min, t.duration_min))
    d["tension"] = round(deadline_tension(t, day), 2)
    return d


def _arrange(store: Store, day: date, tasks: list[Task]) -> tuple[list[Task], list[Placement], list[Task]]:
    """Run auto-arrange on *tasks*; returns (updated tasks, placements, backlog before)."""
    scheduled, unplaced = ops.partition(tasks)
    curve = build_energy_curve(store.energy_peak(day), store.load_config().energy_base)
    placements = auto_arrange(day=day, scheduled=scheduled, unplaced=unplaced, energy_curve=curve)
    return ops.apply_placements(tasks, placements), placements, unplaced


def _check_minutes(**fields: int | None) -> str | None:
    """First out-of-range minute field as an error message, else None."""
    for name, value in fields.items():
        if value is None:
            continue
        hi = DAY_MINUTES - 1 if name == "start_min" else DAY_MINUTES
        if not 0 <= value <= hi:
            return f"Error: {name} must be between 0 and {hi}."
    return None


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


@mcp.tool()
def list_day(date_iso: str | None = None) -> str:
    """List a day's scheduled blocks (by start time) and backlog.

    Args:
        date_iso: Day in YYYY-MM-DD format, default today
    """
    try:
        day = _day(date_iso)
    except ValueError:
        return "Error: date_iso must be in YYYY-MM-DD format."
    store = _get_store()
    scheduled, unplaced = ops.partition(store.load_day(day))
    return json.dumps(
        {
            "date": day.isoformat(),
            "energy_peak": store.energy_peak(day),
            "scheduled": [_task_to_dict(t, day) for t in scheduled],
            "backlog": [_task_to_dict(t, day) for t in unplaced],
        },
        indent=2,
    )


@mcp.tool()
def get_energy_curve(date_iso: str | None = None) -> str:
    """Return the 24-hour energy curve for a day.

    Args:
        date_iso: Day in YYYY-MM-DD format, default today
    """
    try:
        day = _day(date_iso)
    except ValueError:
        return "Error: date_iso must be in YYYY-MM-DD format."
    store = _get_store()
    peak = store.energy_peak(day)
    curve = build_energy_curve(peak, store.load_config().energy_base)
    return json.dumps({"date": day.isoformat(), "peak_hour": peak, "curve": curve})


@mcp.tool()
def list_rituals() -> str:
    """List saved rituals and their blocks."""
    return json.dumps([r.to_dict() for r in _get_store().load_rituals()], indent=2)


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


@mcp.tool()
def add_task(
    title: str,
    duration_min: int,
    date_iso: str | None = None,
    category: str = "Focus",
    priority: int = 3,
    energy_cost: int | None = None,
    deadline_iso: str | None = None,
    start_min: int | None = None,
    not_before_min: int | None = None,
    must_end_by_min: int | None = None,
    window_start_min: int | None = None,
    window_end_min: int | None = None,
) -> str:
    """Add a task to a day. Without start_min it goes to the backlog.

    Args:
        title: Task title
        duration_min: Duration in minutes (at least 5)
        date_iso: Day in YYYY-MM-DD format, default today
        category: One of Focus, Admin, Creative, Break
        priority: 1 (highest) to 4
        energy_cost: 1-5; defaults to 4 for deep work, else 3
        deadline_iso: Deadline date or datetime (ISO 8601)
        start_min: Minute of day to schedule at right away
        not_before_min: Earliest allowed start (minute of day)
        must_end_by_min: Latest allowed end (minute of day)
        window_start_min: Start of the allowed window (minute of day)
        window_end_min: End of the allowed window (minute of day)
    """
    try:
        day = _day(date_iso)
        cat = Category(category)
    except ValueError as e:
        return f"Error: {e}"
    if duration_min < 5:
        return "Error: duration_min must be at least 5."
    if not 1 <= priority <= 4:
        return "Error: priority must be between 1 and 4."
    if energy_cost is not None and not 1 <= energy_cost <= 5:
        return "Error: energy_cost must be between 1 and 5."
    if deadline_iso is not None:
        try:
            datetime.fromisoformat(deadline_iso)
        except ValueError:
            return f"Error: deadline_iso '{deadline_iso}' is not an ISO 8601 date or datetime."
    error = _check_minutes(
        start_min=start_min,
        not_before_min=not_before_min,
        must_end_by_min=must_end_by_min,
        window_start_min=window_start_min,
        window_end_min=window_end_min,
    )
    if error:
        return error

    constraints = TaskConstraints(
        not_before_min=not_before_min,
        must_end_by_min=must_end_by_min,
        window_start_min=window_start_min,
        window_end_min=window_end_min,
    )
    task = Task(
        id=uuid.uuid4().hex[:8],
        title=title,
        duration_min=duration_min,
        category=cat,
        start_min=start_min,
        energy_cost=energy_cost,
        deadline_iso=deadline_iso,
        priority=priority,
        constraints=None if constraints.is_empty else constraints,
    )
    store = _get_store()
    tasks = store.load_day(day)
    tasks.append(task)
    store.save_day(day, tasks)
    return f"Added '{title}' as {task.id}."


@mcp.tool()
def schedule_task(task_id: str, start_min: int, date_iso: str | None = None) -> str:
    """Place a task on the wheel at a minute of day (0-1439).

    Args:
        task_id: Task id
        start_min: Start minute after midnight
        date_iso: Day in YYYY-MM-DD format, default today
    """
    error = _check_minutes(start_min=start_min)
    if error:
        return error
    try:
        day = _day(date_iso)
        store = _get_store()
        store.save_day(day, ops.schedule_task(store.load_day(day), task_id, start_min))
    except ValueError as e:
        return f"Error: {e}"
    return f"Scheduled {task_id} at {fmt_time_24(start_min)}."


@mcp.tool()
def unschedule_task(task_id: str, date_iso: str | None = None) -> str:
    """Move a scheduled task back to the backlog.

    Args:
        task_id: Task id
        date_iso: Day in YYYY-MM-DD format, default today
    """
    try:
        day = _day(date_iso)
        store = _get_store()
        store.save_day(day, ops.unschedule_task(store.load_day(day), task_id))
    except ValueError as e:
        return f"Error: {e}"
    return f"Moved {task_id} to the backlog."


@mcp.tool()
def set_energy_peak(hour: int, date_iso: str | None = None) -> str:
    """Set the hour (0-23) at which the user's energy peaks on a day.

    Args:
        hour: Peak hour, 0-23
        date_iso: Day in YYYY-MM-DD format, default today
    """
    try:
        day = _day(date_iso)
        _get_store().set_energy_peak(day, hour)
    except ValueError as e:
        return f"Error: {e}"
    return f"Energy peak for {day.isoformat()} set to {hour}:00."


@mcp.tool()
def auto_arrange_day(date_iso: str | None = None, dry_run: bool = False) -> str:
    """Auto-arrange the day's backlog around the energy peak.

    Args:
        date_iso: Day in YYYY-MM-DD format, default today
        dry_run: If true, report placements without saving them
    """
    try:
        day = _day(date_iso)
    except ValueError:
        return "Error: date_iso must be in YYYY-MM-DD format."
    store = _get_store()
    arranged, placements, unplaced = _arrange(store, day, store.load_day(day))
    if not dry_run:
        store.save_day(day, arranged)
    placed_ids = {p.id for p in placements}
    return json.dumps(
        {
            "placed": [{**p.to_dict(), "start": fmt_time_24(p.start_min)} for p in placements],
            "still_unplaced": [t.id for t in unplaced if t.id not in placed_ids],
            "saved": not dry_run,
        },
        indent=2,
    )


@mcp.tool()
def stamp_ritual_into_day(ritual_id: str, date_iso: str | None = None, arrange: bool = False) -> str:
    """Add a saved ritual's blocks to a day, optionally auto-arranging after.

    Args:
        ritual_id: Ritual id (see list_rituals)
        date_iso: Day in YYYY-MM-DD format, default today
        arrange: Run auto-arrange after stamping
    """
    try:
        day = _day(date_iso)
    except ValueError:
        return "Error: date_iso must be in YYYY-MM-DD format."
    store = _get_store()
    ritual = next((r for r in store.load_rituals() if r.id == ritual_id), None)
    if ritual is None:
        return f"Error: Ritual {ritual_id} not found."
    if not ritual.blocks:
        return "Error: Ritual is empty."

    stamped = stamp_ritual(ritual, day)
    tasks = store.load_day(day) + stamped
    msg = f"Added {len(stamped)} block(s) from '{ritual.name}'."
    if arrange:
        tasks, placements, _ = _arrange(store, day, tasks)
        msg += f" Placed {len(placements)} block(s)."
    store.save_day(day, tasks)
    logger.info("Stamped ritual %s into %s", ritual_id, day)
    return msg


def main():
    """Entry point for the MCP server."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
