import json
from datetime import date

import pytest

from dialr import mcp_server
from dialr.models import Ritual, RitualBlock
from dialr.persistence import Store

DAY = "2026-10-17"


@pytest.fixture
def db(tmp_path, monkeypatch):
    path = tmp_path / "planner.json"
    monkeypatch.setenv("DIALR_DB", str(path))
    return path


def test_add_arrange_and_list(db):
    assert mcp_server.add_task("Write", 30, date_iso=DAY).startswith("Added")
    assert mcp_server.add_task("Never", 120, date_iso=DAY, must_end_by_min=60).startswith("Added")

    out = json.loads(mcp_server.auto_arrange_day(date_iso=DAY))
    assert [p["start"] for p in out["placed"]] == ["09:00"]
    assert len(out["still_unplaced"]) == 1
    assert out["saved"] is True

    listing = json.loads(mcp_server.list_day(DAY))
    assert [t["title"] for t in listing["scheduled"]] == ["Write"]
    assert [t["title"] for t in listing["backlog"]] == ["Never"]


def test_errors_are_returned_as_text(db):
    assert mcp_server.add_task("x", 2, date_iso=DAY).startswith("Error")
    assert mcp_server.add_task("x", 30, category="Chores").startswith("Error")
    assert mcp_server.schedule_task("missing", 600, date_iso=DAY).startswith("Error")
    assert mcp_server.set_energy_peak(30, date_iso=DAY).startswith("Error")
    assert mcp_server.list_day("not-a-date").startswith("Error")


def test_energy_curve_follows_peak(db):
    mcp_server.set_energy_peak(20, date_iso=DAY)
    out = json.loads(mcp_server.get_energy_curve(DAY))
    assert out["peak_hour"] == 20
    assert out["curve"][20] == 5


def test_stamp_ritual(db):
    Store(db).save_rituals([Ritual(id="r1", name="Morning", blocks=[RitualBlock(title="Stretch", duration_min=10, preferred_start_min=420)])])
    assert "Added 1 block(s)" in mcp_server.stamp_ritual_into_day("r1", date_iso=DAY)
    (task,) = Store(db).load_day(date.fromisoformat(DAY))
    assert task.start_min == 420
    assert mcp_server.stamp_ritual_into_day("nope", date_iso=DAY).startswith("Error")


def test_add_task_rejects_malformed_deadline(db):
    out = mcp_server.add_task("x", 30, date_iso=DAY, deadline_iso="next tuesday")
    assert out.startswith("Error")
    assert "deadline_iso" in out
    # Nothing was stored, so reading the day still works.
    listing = json.loads(mcp_server.list_day(DAY))
    assert listing["backlog"] == []


def test_add_task_accepts_date_and_datetime_deadlines(db):
    assert mcp_server.add_task("a", 30, date_iso=DAY, deadline_iso="2026-10-18").startswith("Added")
    assert mcp_server.add_task("b", 30, date_iso=DAY, deadline_iso="2026-10-18T12:00").startswith("Added")
    assert len(json.loads(mcp_server.list_day(DAY))["backlog"]) == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_min": 1440},
        {"start_min": -5},
        {"not_before_min": -1},
        {"must_end_by_min": 1441},
        {"window_start_min": 2000, "window_end_min": 2100},
        {"energy_cost": 0},
        {"energy_cost": 6},
    ],
)
def test_add_task_rejects_out_of_range_fields(db, kwargs):
    assert mcp_server.add_task("x", 30, date_iso=DAY, **kwargs).startswith("Error")
    assert json.loads(mcp_server.list_day(DAY))["backlog"] == []


def test_add_task_allows_end_of_day_bound(db):
    assert mcp_server.add_task("x", 30, date_iso=DAY, must_end_by_min=1440).startswith("Added")


def test_schedule_task_rejects_minute_outside_day(db):
    mcp_server.add_task("x", 30, date_iso=DAY)
    (task,) = Store(db).load_day(date.fromisoformat(DAY))
    assert mcp_server.schedule_task(task.id, 1500, date_iso=DAY).startswith("Error")
    assert Store(db).load_day(date.fromisoformat(DAY))[0].start_min is None


def test_stamp_and_arrange_places_blocks(db):
    Store(db).save_rituals([Ritual(id="r1", name="Plan", blocks=[RitualBlock(title="Plan", duration_min=30)])])
    out = mcp_server.stamp_ritual_into_day("r1", date_iso=DAY, arrange=True)
    assert "Placed 1 block(s)" in out
    (task,) = Store(db).load_day(date.fromisoformat(DAY))
    assert task.start_min is not None
