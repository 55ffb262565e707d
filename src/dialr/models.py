"""Task, ritual and config models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class Category(enum.StrEnum):
    FOCUS = "Focus"
    ADMIN = "Admin"
    CREATIVE = "Creative"
    BREAK = "Break"


class Mode(enum.StrEnum):
    DEEP = "Deep"
    LIGHT = "Light"
    SOCIAL = "Social"
    ADMIN = "Admin"


class Color(enum.StrEnum):
    BLUE = "blue"
    TEAL = "teal"
    ORANGE = "orange"
    CYAN = "cyan"
    PINK = "pink"


class Recurrence(enum.StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"


DEFAULT_MODE_FOR_CATEGORY: dict[Category, Mode] = {
    Category.FOCUS: Mode.DEEP,
    Category.ADMIN: Mode.ADMIN,
    Category.CREATIVE: Mode.LIGHT,
    Category.BREAK: Mode.SOCIAL,
}

DEFAULT_PRIORITY = 3
DEFAULT_ENERGY_COST = 3
DEEP_ENERGY_COST = 4


def default_mode_for_category(category: Category) -> Mode:
    return DEFAULT_MODE_FOR_CATEGORY[Category(category)]


def default_energy_cost(mode: Mode) -> int:
    return DEEP_ENERGY_COST if mode == Mode.DEEP else DEFAULT_ENERGY_COST


@dataclass
class PlannerConfig:
    """Planner-level settings stored alongside the days."""

    default_energy_peak: int = 10
    energy_base: int = 3
    snap_step: int = 5
    time_mode: str = "24h"  # display only: "24h" or "12h"

    def to_dict(self) -> dict:
        return {
            "default_energy_peak": self.default_energy_peak,
            "energy_base": self.energy_base,
            "snap_step": self.snap_step,
            "time_mode": self.time_mode,
        }

    @classmethod
    def from_dict(cls, d: dict) -> PlannerConfig:
        return cls(
            default_energy_peak=d.get("default_energy_peak", 10),
            energy_base=d.get("energy_base", 3),
            snap_step=d.get("snap_step", 5),
            time_mode=d.get("time_mode", "24h"),
        )


@dataclass
class TaskConstraints:
    """Placement bounds, all in minutes after midnight. None means unset."""

    not_before_min: int | None = None
    must_end_by_min: int | None = None
    window_start_min: int | None = None
    window_end_min: int | None = None

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in self.to_dict().values())

    def to_dict(self) -> dict:
        return {
            "not_before_min": self.not_before_min,
            "must_end_by_min": self.must_end_by_min,
            "window_start_min": self.window_start_min,
            "window_end_min": self.window_end_min,
        }

    @classmethod
    def from_dict(cls, d: dict) -> TaskConstraints:
        return cls(
            not_before_min=d.get("not_before_min"),
            must_end_by_min=d.get("must_end_by_min"),
            window_start_min=d.get("window_start_min"),
            window_end_min=d.get("window_end_min"),
        )


@dataclass
class Task:
    """A block of work on the day wheel. ``start_min is None`` means backlog."""

    id: str
    title: str
    duration_min: int
    icon: str = ""
    category: Category = Category.FOCUS
    color: Color = Color.BLUE
    start_min: int | None = None
    mode: Mode | None = None  # derived from category when absent
    energy_cost: int | None = None  # 1-5, derived from mode when absent
    energy_gain: int = 0
    deadline_iso: str | None = None
    priority: int = DEFAULT_PRIORITY  # 1 (highest) .. 4
    constraints: TaskConstraints | None = None
    recurrence: Recurrence = Recurrence.NONE

    def __post_init__(self) -> None:
        self.category = Category(self.category)
        self.color = Color(self.color)
        self.recurrence = Recurrence(self.recurrence)
        self.mode = Mode(self.mode) if self.mode is not None else default_mode_for_category(self.category)
        if self.energy_cost is None:
            self.energy_cost = default_energy_cost(self.mode)

    @property
    def is_scheduled(self) -> bool:
        return self.start_min is not None

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "title": self.title,
            "icon": self.icon,
            "duration_min": self.duration_min,
            "category": self.category.value,
            "color": self.color.value,
            "start_min": self.start_min,
            "mode": self.mode.value,
            "energy_cost": self.energy_cost,
            "energy_gain": self.energy_gain,
            "deadline_iso": self.deadline_iso,
            "priority": self.priority,
            "recurrence": self.recurrence.value,
        }
        if self.constraints is not None and not self.constraints.is_empty:
            d["constraints"] = {k: v for k, v in self.constraints.to_dict().items() if v is not None}
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Task:
        """Build a fully populated task from a stored record.

        Older records may lack mode, energy, priority, recurrence and
        constraints; every missing field gets its default here so nothing
        downstream has to special-case it.
        """
        recurrence = d.get("recurrence") or Recurrence.NONE
        if isinstance(recurrence, dict):
            # {"pattern": "daily"} shape from early exports
            recurrence = recurrence.get("pattern", Recurrence.NONE)
        constraints = d.get("constraints")
        return cls(
            id=d["id"],
            title=d["title"],
            duration_min=d["duration_min"],
            icon=d.get("icon", ""),
            category=d.get("category", Category.FOCUS),
            color=d.get("color", Color.BLUE),
            start_min=d.get("start_min"),
            mode=d.get("mode"),
            energy_cost=d.get("energy_cost"),
            energy_gain=d.get("energy_gain") or 0,
            deadline_iso=d.get("deadline_iso"),
            priority=d.get("priority") or DEFAULT_PRIORITY,
            constraints=TaskConstraints.from_dict(constraints) if constraints else None,
            recurrence=recurrence,
        )


@dataclass
class RitualBlock:
    """Template entry of a ritual. Has no id and no state of its own."""

    title: str
    duration_min: int
    icon: str = ""
    color: Color = Color.BLUE
    category: Category | None = None
    mode: Mode | None = None
    preferred_start_min: int | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "icon": self.icon,
            "duration_min": self.duration_min,
            "color": Color(self.color).value,
            "category": Category(self.category).value if self.category else None,
            "mode": Mode(self.mode).value if self.mode else None,
            "preferred_start_min": self.preferred_start_min,
        }

    @classmethod
    def from_dict(cls, d: dict) -> RitualBlock:
        return cls(
            title=d["title"],
            duration_min=d["duration_min"],
            icon=d.get("icon", ""),
            color=Color(d.get("color", Color.BLUE)),
            category=Category(d["category"]) if d.get("category") else None,
            mode=Mode(d["mode"]) if d.get("mode") else None,
            preferred_start_min=d.get("preferred_start_min"),
        )


@dataclass
class Ritual:
    """A named, ordered bundle of blocks that can be stamped onto a day."""

    id: str
    name: str
    blocks: list[RitualBlock] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "blocks": [b.to_dict() for b in self.blocks],
        }

    @classmethod
    def from_dict(cls, d: dict) -> Ritual:
        return cls(
            id=d["id"],
            name=d["name"],
            blocks=[RitualBlock.from_dict(b) for b in d.get("blocks", [])],
        )


@dataclass(frozen=True)
class Placement:
    """One auto-arrange decision: put task *id* at *start_min*."""

    id: str
    start_min: int

    def to_dict(self) -> dict:
        return {"id": self.id, "start_min": self.start_min}
