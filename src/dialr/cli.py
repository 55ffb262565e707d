"""Typer CLI for dialr."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dialr import ops
from dialr.energy import build_energy_curve, peak_hours
from dialr.models import (
    Category,
    Color,
    Mode,
    PlannerConfig,
    Recurrence,
    Ritual,
    Task,
    TaskConstraints,
)
from dialr.persistence import DEFAULT_DB_FILE, Store
from dialr.rituals import ritual_from_backlog, stamp_ritual
from dialr.scheduler import auto_arrange, deadline_tension
from dialr.timemath import end_minute, fmt_duration, fmt_time_12, fmt_time_24, parse_hhmm

app = typer.Typer(
    name="dialr",
    help="Radial day planner with energy-aware auto-arrange.",
    no_args_is_help=True,
)
ritual_app = typer.Typer(help="Reusable task bundles stamped onto a day.", no_args_is_help=True)
app.add_typer(ritual_app, name="ritual")

console = Console()

_state: dict[str, str] = {"db": DEFAULT_DB_FILE}

URGENT_TENSION = 0.75

DateOpt = Annotated[Optional[str], typer.Option("--date", help="Day to work on (YYYY-MM-DD), default today")]


@app.callback()
def main(
    db: Annotated[str, typer.Option("--db", envvar="DIALR_DB", help="Path of the planner JSON file")] = DEFAULT_DB_FILE,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Plan a day on a 24h wheel."""
    _state["db"] = db
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _get_store() -> Store:
    return Store(_state["db"])


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _parse_day(date_str: str | None) -> date:
    if date_str is None:
        return date.today()
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        _fail(f"Invalid date format '{date_str}'. Use YYYY-MM-DD.")


def _parse_time(text: str) -> int:
    try:
        return parse_hhmm(text)
    except ValueError as e:
        _fail(str(e))


def _fmt(minutes: int | None, config: PlannerConfig) -> str:
    if minutes is None:
        return "-"
    return fmt_time_12(minutes) if config.time_mode == "12h" else fmt_time_24(minutes)


def _complete_task_id(incomplete: str) -> list[str]:
    """Shell completion for today's task ids. Matches id and title."""
    try:
        tasks = _get_store().load_day(date.today())
    except ValueError:
        return []
    q = incomplete.lower()
    return [f"{t.title} ({t.id})" for t in tasks if q in t.id.lower() or q in t.title.lower()]


def _parse_task_id(task_id_arg: str) -> str:
    """Accept either a bare id or the completed 'Title (id)' form."""
    if "(" in task_id_arg and task_id_arg.endswith(")"):
        return task_id_arg.split("(")[-1].strip(")")
    return task_id_arg.strip()


TaskIdArg = Annotated[str, typer.Argument(autocompletion=_complete_task_id)]


def _edit(date_str: str | None, task_id: str, edit, message: str) -> None:
    """Load the day, apply ``edit(tasks, task_id)``, save and report."""
    day = _parse_day(date_str)
    store = _get_store()
    tasks = store.load_day(day)
    try:
        tasks = edit(tasks, _parse_task_id(task_id))
    except ValueError as e:
        _fail(str(e))
    store.save_day(day, tasks)
    console.print(f"[green]{message}[/green]")


def _run_arrange(store: Store, day: date, tasks: list[Task]):
    config = store.load_config()
    curve = build_energy_curve(store.energy_peak(day), config.energy_base)
    scheduled, unplaced = ops.partition(tasks)
    placements = auto_arrange(day=day, scheduled=scheduled, unplaced=unplaced, energy_curve=curve)
    return placements, unplaced


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    peak: Annotated[int, typer.Option(min=0, max=23, help="Default energy peak hour")] = 10,
    base: Annotated[int, typer.Option(min=1, max=5, help="Baseline energy level")] = 3,
    step: Annotated[int, typer.Option(min=1, help="Snap step in minutes")] = 5,
    time_mode: Annotated[str, typer.Option(help="Clock display: 24h or 12h")] = "24h",
) -> None:
    """Initialize (or reinitialize) planner configuration."""
    if time_mode not in ("24h", "12h"):
        _fail(f"Invalid time mode '{time_mode}'. Use 24h or 12h.")
    store = _get_store()
    store.save_config(PlannerConfig(default_energy_peak=peak, energy_base=base, snap_step=step, time_mode=time_mode))
    console.print(f"[green]Planner initialized at {store.db_path}. Energy peak {peak}:00.[/green]")


@app.command()
def add(
    title: str,
    duration: Annotated[int, typer.Option("--duration", "-d", min=1, help="Duration in minutes")],
    category: Annotated[Category, typer.Option("--category", "-c", help="Task category")] = Category.FOCUS,
    mode: Annotated[Optional[Mode], typer.Option(help="Work mode (default from category)")] = None,
    color: Annotated[Color, typer.Option(help="Dial color")] = Color.BLUE,
    icon: Annotated[str, typer.Option(help="Emoji or short glyph")] = "",
    energy: Annotated[Optional[int], typer.Option(min=1, max=5, help="Energy cost 1-5 (default from mode)")] = None,
    priority: Annotated[int, typer.Option("--priority", "-p", min=1, max=4, help="1 (highest) to 4")] = 3,
    deadline: Annotated[Optional[str], typer.Option(help="Deadline (YYYY-MM-DD or ISO datetime)")] = None,
    at: Annotated[Optional[str], typer.Option("--at", help="Schedule right away at HH:MM")] = None,
    not_before: Annotated[Optional[str], typer.Option(help="Earliest start (HH:MM)")] = None,
    must_end_by: Annotated[Optional[str], typer.Option(help="Latest end (HH:MM)")] = None,
    window: Annotated[Optional[str], typer.Option(help="Allowed window (HH:MM-HH:MM)")] = None,
    recurrence: Annotated[Recurrence, typer.Option(help="Recurrence tag")] = Recurrence.NONE,
    date_str: DateOpt = None,
) -> None:
    """Add a task to the day's backlog (or straight onto the wheel with --at)."""
    day = _parse_day(date_str)
    if deadline is not None:
        try:
            datetime.fromisoformat(deadline)
        except ValueError:
            _fail(f"Invalid deadline '{deadline}'. Use YYYY-MM-DD.")

    constraints = TaskConstraints(
        not_before_min=_parse_time(not_before) if not_before else None,
        must_end_by_min=_parse_time(must_end_by) if must_end_by else None,
    )
    if window:
        if "-" not in window:
            _fail(f"Invalid window '{window}'. Use HH:MM-HH:MM.")
        ws, we = window.split("-", 1)
        constraints.window_start_min = _parse_time(ws)
        constraints.window_end_min = _parse_time(we)

    store = _get_store()
    tasks = store.load_day(day)
    task = Task(
        id=uuid.uuid4().hex[:8],
        title=title,
        duration_min=duration,
        icon=icon,
        category=category,
        color=color,
        start_min=_parse_time(at) if at else None,
        mode=mode,
        energy_cost=energy,
        deadline_iso=deadline,
        priority=priority,
        constraints=None if constraints.is_empty else constraints,
        recurrence=recurrence,
    )
    tasks.append(task)
    store.save_day(day, tasks)
    where = f"at {fmt_time_24(task.start_min)}" if task.is_scheduled else "to backlog"
    console.print(f"[green]Added '{title}' as {task.id} {where}[/green]")


@app.command("list")
def list_tasks(
    date_str: DateOpt = None,
    backlog: Annotated[bool, typer.Option("--backlog", "-b", help="Only unplaced tasks")] = False,
    modes: Annotated[Optional[list[Mode]], typer.Option("--mode", "-m", help="Only tasks in this mode (repeatable)")] = None,
) -> None:
    """List the day's tasks: scheduled blocks by start time, then the backlog."""
    day = _parse_day(date_str)
    store = _get_store()
    config = store.load_config()
    tasks = store.load_day(day)
    if not tasks:
        console.print("No tasks found.")
        return

    scheduled, unplaced = ops.partition(tasks)
    rows = ops.filter_by_modes(unplaced if backlog else scheduled + unplaced, modes)
    now = datetime.now()
    active = ops.active_task(tasks, now.hour * 60 + now.minute) if day == now.date() else None

    table = Table(title=f"Tasks {day.isoformat()}")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Dur")
    table.add_column("Category")
    table.add_column("Mode")
    table.add_column("P")
    table.add_column("Energy")
    table.add_column("Tension")
    table.add_column("Deadline")
    table.add_column("Flags")

    for t in rows:
        tension = deadline_tension(t, day)
        flags = []
        style = None
        if active is not None and t.id == active.id:
            flags.append("NOW")
            style = "bold green"
        if not t.is_scheduled:
            flags.append("BACKLOG")
            style = style or "dim"
        if t.constraints is not None:
            flags.append("CONSTRAINED")
        if tension >= URGENT_TENSION:
            flags.append("URGENT")
            style = "bold red"

        table.add_row(
            t.id,
            f"{t.icon} {t.title}".strip(),
            _fmt(t.start_min, config),
            _fmt(end_minute(t.start_min, t.duration_min), config) if t.is_scheduled else "-",
            fmt_duration(t.duration_min),
            t.category.value,
            t.mode.value,
            f"P{t.priority}",
            str(t.energy_cost),
            f"{tension:.2f}",
            t.deadline_iso or "-",
            " | ".join(flags) or "-",
            style=style,
        )

    console.print(table)
    console.print(
        f"[dim]{len(scheduled)} scheduled ({fmt_duration(ops.total_scheduled_minutes(tasks))}), "
        f"{len(unplaced)} in backlog[/dim]"
    )
    if backlog or modes:
        console.print(f"[dim]Showing {len(rows)} of {len(tasks)} tasks[/dim]")


@app.command()
def show(task_id: TaskIdArg, date_str: DateOpt = None) -> None:
    """Show all details for a single task."""
    day = _parse_day(date_str)
    store = _get_store()
    config = store.load_config()
    try:
        t = ops.find_task(store.load_day(day), _parse_task_id(task_id))
    except ValueError as e:
        _fail(str(e))

    console.print(f"\n[bold]{t.id}[/bold]  {t.icon} {t.title}")
    if t.is_scheduled:
        console.print(f"  Slot:       {_fmt(t.start_min, config)} - {_fmt(end_minute(t.start_min, t.duration_min), config)}")
    else:
        console.print("  Slot:       backlog")
    console.print(f"  Duration:   {fmt_duration(t.duration_min)}")
    console.print(f"  Category:   {t.category.value} ({t.mode.value})")
    console.print(f"  Priority:   P{t.priority}")
    console.print(f"  Energy:     cost {t.energy_cost}, gain {t.energy_gain}")
    console.print(f"  Color:      {t.color.value}")
    console.print(f"  Recurrence: {t.recurrence.value}")
    if t.deadline_iso:
        console.print(f"  Deadline:   {t.deadline_iso} (tension {deadline_tension(t, day):.2f})")
    c = t.constraints
    if c is not None:
        console.print("\n  [dim]-- Constraints --[/dim]")
        if c.not_before_min is not None:
            console.print(f"  Not before:  {_fmt(c.not_before_min, config)}")
        if c.must_end_by_min is not None:
            console.print(f"  Must end by: {_fmt(c.must_end_by_min, config)}")
        if c.window_start_min is not None and c.window_end_min is not None:
            console.print(f"  Window:      {_fmt(c.window_start_min, config)} - {_fmt(c.window_end_min, config)}")
    console.print()


@app.command()
def place(task_id: TaskIdArg, at: Annotated[str, typer.Argument(help="Start time HH:MM")], date_str: DateOpt = None) -> None:
    """Put a backlog task on the wheel."""
    start = _parse_time(at)
    _edit(date_str, task_id, lambda ts, tid: ops.schedule_task(ts, tid, start), f"Placed {task_id} at {at}.")


@app.command()
def unplace(task_id: TaskIdArg, date_str: DateOpt = None) -> None:
    """Send a scheduled block back to the backlog."""
    _edit(date_str, task_id, ops.unschedule_task, f"Moved {task_id} to backlog.")


@app.command()
def move(task_id: TaskIdArg, at: Annotated[str, typer.Argument(help="New start time HH:MM")], date_str: DateOpt = None) -> None:
    """Move a block to a new start time, keeping its duration."""
    start = _parse_time(at)
    _edit(date_str, task_id, lambda ts, tid: ops.move_task(ts, tid, start), f"Moved {task_id} to {at}.")


@app.command()
def resize(
    task_id: TaskIdArg,
    duration: Annotated[int, typer.Option("--duration", "-d", min=1, help="New duration in minutes")],
    start: Annotated[Optional[str], typer.Option(help="New start time HH:MM (default: keep)")] = None,
    date_str: DateOpt = None,
) -> None:
    """Change a task's duration (snapped to the configured step) and optionally its start."""
    step = _get_store().load_config().snap_step
    new_start = _parse_time(start) if start else None

    def edit(ts: list[Task], tid: str) -> list[Task]:
        current = ops.find_task(ts, tid).start_min
        return ops.resize_task(ts, tid, new_start if new_start is not None else current, duration, step=step)

    _edit(date_str, task_id, edit, f"Resized {task_id}.")


@app.command()
def split(task_id: TaskIdArg, at: Annotated[str, typer.Argument(help="Split point HH:MM")], date_str: DateOpt = None) -> None:
    """Cut a scheduled block in two at a time of day."""
    split_at = _parse_time(at)
    step = _get_store().load_config().snap_step
    _edit(date_str, task_id, lambda ts, tid: ops.split_task(ts, tid, split_at, step=step), f"Split {task_id} at {at}.")


@app.command()
def delete(task_id: TaskIdArg, date_str: DateOpt = None) -> None:
    """Delete a task from the day."""
    _edit(date_str, task_id, ops.delete_task, f"Deleted {task_id}.")


@app.command()
def peak(
    hour: Annotated[Optional[int], typer.Argument(min=0, max=23, help="New peak hour (0-23)")] = None,
    date_str: DateOpt = None,
) -> None:
    """Show or set the day's energy peak hour."""
    day = _parse_day(date_str)
    store = _get_store()
    if hour is None:
        console.print(f"Energy peak for {day.isoformat()}: [bold]{store.energy_peak(day)}:00[/bold]")
        return
    store.set_energy_peak(day, hour)
    console.print(f"[green]Energy peak for {day.isoformat()} set to {hour}:00.[/green]")


@app.command()
def curve(date_str: DateOpt = None) -> None:
    """Print the day's energy curve, one bar per hour."""
    day = _parse_day(date_str)
    store = _get_store()
    config = store.load_config()
    values = build_energy_curve(store.energy_peak(day), config.energy_base)
    top = set(peak_hours(values))
    console.print(f"\n[bold underline]Energy curve {day.isoformat()}[/bold underline]\n")
    for h, v in enumerate(values):
        bar = "█" * (v * 4)
        colour = "green" if h in top else ("yellow" if v > config.energy_base else "dim")
        console.print(f"  {h:02d}:00  [{colour}]{bar}[/{colour}] {v}")
    console.print()


@app.command()
def arrange(
    date_str: DateOpt = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", "-n", help="Show placements without saving")] = False,
) -> None:
    """Auto-arrange backlog tasks around the energy peak."""
    day = _parse_day(date_str)
    store = _get_store()
    config = store.load_config()
    tasks = store.load_day(day)
    placements, unplaced = _run_arrange(store, day, tasks)

    if not placements:
        if unplaced:
            console.print(f"[yellow]None of the {len(unplaced)} backlog task(s) fit anywhere; they stay in the backlog.[/yellow]")
        else:
            console.print("[dim]Nothing to arrange.[/dim]")
        return

    by_id = {t.id: t for t in tasks}
    table = Table(title="Dry run" if dry_run else "Arranged")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Start")
    table.add_column("End")
    for p in placements:
        t = by_id[p.id]
        table.add_row(p.id, t.title, _fmt(p.start_min, config), _fmt(end_minute(p.start_min, t.duration_min), config))
    console.print(table)

    left = len(unplaced) - len(placements)
    if left:
        console.print(f"[yellow]{left} task(s) could not be placed and stay in the backlog.[/yellow]")
    if dry_run:
        return
    store.save_day(day, ops.apply_placements(tasks, placements))
    console.print(f"[green]Placed {len(placements)} block(s) near your peak hours.[/green]")


@app.command()
def summary(date_str: DateOpt = None) -> None:
    """Totals by category and the block running now."""
    day = _parse_day(date_str)
    store = _get_store()
    config = store.load_config()
    tasks = store.load_day(day)
    total = ops.total_scheduled_minutes(tasks)

    console.print(f"\n[bold underline]{day.strftime('%a %b %d, %Y')}[/bold underline]\n")
    console.print(f"  Scheduled: [bold]{fmt_duration(total)}[/bold]")
    for cat, minutes in ops.minutes_by_category(tasks).items():
        console.print(f"    {cat.value:<9} {fmt_duration(minutes)}")
    _, unplaced = ops.partition(tasks)
    console.print(f"  Backlog:   {len(unplaced)} task(s)")
    console.print(f"  Peak:      {store.energy_peak(day)}:00")

    now = datetime.now()
    if day == now.date():
        now_min = now.hour * 60 + now.minute
        active = ops.active_task(tasks, now_min)
        if active is not None:
            left = ops.remaining_seconds(active, now_min, now.second)
            console.print(f"\n  [bold green]Now:[/bold green] {active.title} ({left // 60}m left)")
        else:
            console.print(f"\n  [dim]Nothing scheduled at {_fmt(now_min, config)}.[/dim]")
    console.print()


@app.command()
def export(
    date_str: DateOpt = None,
    out: Annotated[Optional[str], typer.Option("--out", "-o", help="Output file (default planner-<date>.json)")] = None,
) -> None:
    """Export the day's tasks as JSON."""
    day = _parse_day(date_str)
    tasks = _get_store().load_day(day)
    path = Path(out or f"planner-{day.isoformat()}.json")
    payload = {"date": day.isoformat(), "tasks": [t.to_dict() for t in tasks]}
    path.write_text(json.dumps(payload, indent=2))
    console.print(f"[green]Exported {len(tasks)} tasks to {path}[/green]")


# ---------------------------------------------------------------------------
# Rituals
# ---------------------------------------------------------------------------


@ritual_app.command("create")
def ritual_create(
    name: str,
    from_backlog: Annotated[bool, typer.Option("--from-backlog", help="Capture the day's backlog as blocks")] = False,
    date_str: DateOpt = None,
) -> None:
    """Save a new ritual, optionally built from the day's backlog."""
    day = _parse_day(date_str)
    store = _get_store()
    rituals = store.load_rituals()
    source = store.load_day(day) if from_backlog else []
    ritual = ritual_from_backlog(name, source, ritual_id=store.generate_ritual_id(rituals))
    store.save_rituals([*rituals, ritual])
    if ritual.blocks:
        console.print(f"[green]Ritual '{name}' saved as {ritual.id}. Captured {len(ritual.blocks)} backlog item(s).[/green]")
    else:
        console.print(f"[green]Ritual '{name}' saved as {ritual.id}.[/green] [dim]It is empty for now.[/dim]")


@ritual_app.command("list")
def ritual_list() -> None:
    """List saved rituals."""
    rituals = _get_store().load_rituals()
    if not rituals:
        console.print("No rituals found.")
        return
    table = Table(title="Rituals")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Blocks")
    table.add_column("Total")
    for r in rituals:
        table.add_row(
            r.id,
            r.name,
            ", ".join(b.title for b in r.blocks) or "-",
            fmt_duration(sum(b.duration_min for b in r.blocks)),
        )
    console.print(table)


def _find_ritual(rituals: list[Ritual], ritual_id: str) -> Ritual:
    for r in rituals:
        if r.id == ritual_id:
            return r
    _fail(f"Ritual {ritual_id} not found.")


@ritual_app.command("rename")
def ritual_rename(ritual_id: str, name: str) -> None:
    """Rename a ritual."""
    store = _get_store()
    rituals = store.load_rituals()
    _find_ritual(rituals, ritual_id).name = name
    store.save_rituals(rituals)
    console.print(f'[green]Ritual renamed to "{name}".[/green]')


@ritual_app.command("delete")
def ritual_delete(ritual_id: str) -> None:
    """Delete a ritual."""
    store = _get_store()
    rituals = store.load_rituals()
    removed = _find_ritual(rituals, ritual_id)
    store.save_rituals([r for r in rituals if r.id != ritual_id])
    console.print(f"[green]Deleted ritual {removed.name}.[/green]")


@ritual_app.command("stamp")
def ritual_stamp(
    ritual_id: str,
    date_str: DateOpt = None,
    arrange_after: Annotated[bool, typer.Option("--arrange", help="Auto-arrange the backlog afterwards")] = False,
) -> None:
    """Add a ritual's blocks to the day."""
    day = _parse_day(date_str)
    store = _get_store()
    ritual = _find_ritual(store.load_rituals(), ritual_id)
    if not ritual.blocks:
        _fail("Ritual is empty. Add items to the ritual before stamping.")

    stamped = stamp_ritual(ritual, day)
    tasks = store.load_day(day) + stamped
    console.print(f"[green]Added {len(stamped)} block(s) from '{ritual.name}' to {day.isoformat()}.[/green]")

    if arrange_after:
        placements, _ = _run_arrange(store, day, tasks)
        tasks = ops.apply_placements(tasks, placements)
        console.print(f"[green]Placed {len(placements)} block(s) near your peak hours.[/green]")
    store.save_day(day, tasks)


if __name__ == "__main__":
    app()
