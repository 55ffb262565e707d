"""Stamping ritual templates into concrete day tasks."""

from __future__ import annotations

import time
import uuid
from datetime import date

from dialr.models import Category, Recurrence, Ritual, RitualBlock, Task, TaskConstraints

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ALPHABET[r])
    return "".join(reversed(out))


def time_token() -> str:
    """Millisecond clock in base 36; short and unique enough for ids."""
    return _base36(int(time.time() * 1000))


def _stamp_token() -> str:
    return f"{time_token()}{uuid.uuid4().hex[:6]}"


def stamp_ritual(ritual: Ritual, day: date, *, token: str | None = None) -> list[Task]:
    """Expand *ritual* into fresh tasks, one per block, in block order.

    A block's preferred start becomes both the task start and a not-before
    constraint. Existing tasks on *day* are not consulted; collisions are
    left for auto-arrange to resolve.
    """
    token = token or _stamp_token()
    tasks: list[Task] = []
    for i, block in enumerate(ritual.blocks):
        preferred = block.preferred_start_min
        tasks.append(
            Task(
                id=f"rit-{ritual.id}-{i}-{token}",
                title=block.title,
                icon=block.icon,
                duration_min=block.duration_min,
                category=block.category or Category.FOCUS,
                color=block.color,
                start_min=preferred,
                mode=block.mode,
                energy_cost=3,
                energy_gain=0,
                deadline_iso=None,
                priority=3,
                constraints=TaskConstraints(not_before_min=preferred) if preferred is not None else None,
                recurrence=Recurrence.NONE,
            )
        )
    return tasks


def ritual_from_backlog(name: str, tasks: list[Task], *, ritual_id: str | None = None) -> Ritual:
    """Capture the unplaced tasks of a day as a new ritual."""
    blocks = [
        RitualBlock(
            title=t.title,
            icon=t.icon,
            duration_min=t.duration_min,
            color=t.color,
            category=t.category,
            mode=t.mode,
            preferred_start_min=None,
        )
        for t in tasks
        if t.start_min is None
    ]
    return Ritual(id=ritual_id or time_token(), name=name, blocks=blocks)
