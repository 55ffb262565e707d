"""JSON file persistence for day task lists, energy peaks and rituals."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

from dialr.models import PlannerConfig, Ritual, Task
from dialr.rituals import time_token

logger = logging.getLogger(__name__)

DEFAULT_DB_FILE = "planner.json"


def day_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


class Store:
    """Reads and writes the planner database (JSON file).

    Layout::

        {"config": {...},
         "days": {"2026-10-17": {"tasks": [...], "energy_peak": 10}},
         "rituals": [...]}
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_FILE):
        self.db_path = Path(db_path)

    def _read(self) -> dict:
        if not self.db_path.exists():
            return {}
        return json.loads(self.db_path.read_text())

    def _write(self, raw: dict) -> None:
        self.db_path.write_text(json.dumps(raw, indent=4))
        logger.debug("Wrote %s", self.db_path)

    # -- config -------------------------------------------------------------

    def load_config(self) -> PlannerConfig:
        return PlannerConfig.from_dict(self._read().get("config", {}))

    def save_config(self, config: PlannerConfig) -> None:
        raw = self._read()
        raw["config"] = config.to_dict()
        self._write(raw)

    # -- days ---------------------------------------------------------------

    def load_day(self, day: date) -> list[Task]:
        """Tasks stored for *day*, with missing fields filled in."""
        entry = self._read().get("days", {}).get(day_key(day), {})
        tasks = [Task.from_dict(d) for d in entry.get("tasks", [])]
        logger.debug("Loaded %d tasks for %s", len(tasks), day_key(day))
        return tasks

    def save_day(self, day: date, tasks: list[Task]) -> None:
        raw = self._read()
        entry = raw.setdefault("days", {}).setdefault(day_key(day), {})
        entry["tasks"] = [t.to_dict() for t in tasks]
        self._write(raw)

    def energy_peak(self, day: date) -> int:
        raw = self._read()
        entry = raw.get("days", {}).get(day_key(day), {})
        if "energy_peak" in entry:
            return int(entry["energy_peak"])
        return PlannerConfig.from_dict(raw.get("config", {})).default_energy_peak

    def set_energy_peak(self, day: date, hour: int) -> None:
        if not 0 <= hour <= 23:
            raise ValueError(f"Energy peak must be an hour between 0 and 23, got {hour}.")
        raw = self._read()
        raw.setdefault("days", {}).setdefault(day_key(day), {})["energy_peak"] = hour
        self._write(raw)

    # -- rituals ------------------------------------------------------------

    def load_rituals(self) -> list[Ritual]:
        return [Ritual.from_dict(r) for r in self._read().get("rituals", [])]

    def save_rituals(self, rituals: list[Ritual]) -> None:
        raw = self._read()
        raw["rituals"] = [r.to_dict() for r in rituals]
        self._write(raw)

    def generate_ritual_id(self, rituals: list[Ritual]) -> str:
        """Time-based id, bumped until it is unused."""
        existing = {r.id for r in rituals}
        rid = time_token()
        n = 1
        while rid in existing:
            rid = f"{time_token()}-{n}"
            n += 1
        return rid
