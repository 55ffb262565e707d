import random
from datetime import date, datetime

import pytest

from dialr.energy import build_energy_curve
from dialr.models import Placement, Task, TaskConstraints
from dialr.scheduler import auto_arrange, can_place, deadline_tension, hour_preference, rank_unplaced
from dialr.timemath import overlaps

DAY = date(2026, 10, 17)


def _task(tid, duration=30, **kw):
    return Task(id=tid, title=tid.upper(), duration_min=duration, **kw)


# ---------------------------------------------------------------------------
# Deadline tension
# ---------------------------------------------------------------------------


def test_tension_without_deadline_is_zero():
    assert deadline_tension(_task("a"), DAY) == 0.0


def test_tension_deadline_at_day_start_is_one():
    assert deadline_tension(_task("a", deadline_iso="2026-10-17"), DAY) == 1.0
    assert deadline_tension(_task("a", deadline_iso="2026-10-10"), DAY) == 1.0


def test_tension_no_slack_is_one():
    t = _task("a", duration=90, deadline_iso="2026-10-17T01:00")
    assert deadline_tension(t, DAY) == 1.0


def test_tension_thirteen_hours_of_slack_is_zero():
    t = _task("a", duration=60, deadline_iso="2026-10-17T14:00")
    assert deadline_tension(t, DAY) == 0.0


def test_tension_ramps_linearly():
    t = _task("a", duration=60, deadline_iso="2026-10-17T07:00")
    assert deadline_tension(t, DAY) == pytest.approx(0.5)
    # a datetime day is reduced to its date
    assert deadline_tension(t, datetime(2026, 10, 17, 15, 30)) == pytest.approx(0.5)


def test_tension_with_timezone_deadline():
    t = _task("a", duration=60, deadline_iso="2026-10-17T06:00:00+00:00")
    assert deadline_tension(t, DAY) == pytest.approx(1 - 300 / 720)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


def test_no_constraints_accepts_everything():
    t = _task("a")
    assert all(can_place(t, m) for m in range(0, 1440, 5))
    t.constraints = TaskConstraints()
    assert all(can_place(t, m) for m in range(0, 1440, 5))


def test_not_before():
    t = _task("a", constraints=TaskConstraints(not_before_min=600))
    assert not can_place(t, 595)
    assert can_place(t, 600)


def test_must_end_by_rejects_midnight_crossing():
    t = _task("a", duration=30, constraints=TaskConstraints(must_end_by_min=60))
    assert can_place(t, 30)
    assert not can_place(t, 35)
    assert not can_place(t, 1430)  # ends at 00:20 but crosses midnight


def test_window_must_contain_whole_block():
    t = _task("a", duration=60, constraints=TaskConstraints(window_start_min=480, window_end_min=720))
    assert can_place(t, 480)
    assert can_place(t, 660)
    assert not can_place(t, 665)
    assert not can_place(t, 470)


def test_half_open_window_is_ignored():
    t = _task("a", duration=60, constraints=TaskConstraints(window_start_min=480))
    assert can_place(t, 0)


def test_zero_is_a_real_bound():
    t = _task("a", duration=30, constraints=TaskConstraints(must_end_by_min=0))
    assert not can_place(t, 0)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def test_hour_preference_is_stable():
    hours = hour_preference(build_energy_curve(10))
    assert hours[:7] == [9, 10, 11, 7, 8, 12, 13]
    assert hours[7:10] == [0, 1, 2]
    assert sorted(hours) == list(range(24))


def test_ranking_uses_raw_priority_number_descending():
    # P4 sorts ahead of P1: the numeric value is the key, not its meaning.
    a = _task("a", priority=4)
    b = _task("b", priority=1)
    assert [t.id for t in rank_unplaced([b, a], DAY)] == ["a", "b"]


def test_ranking_tie_breaks():
    urgent = _task("urgent", deadline_iso="2026-10-17")
    heavy = _task("heavy", energy_cost=5)
    long = _task("long", duration=120)
    plain = _task("plain")
    ranked = rank_unplaced([plain, long, heavy, urgent], DAY)
    assert [t.id for t in ranked] == ["urgent", "heavy", "long", "plain"]


def test_ranking_is_stable_on_full_ties():
    tasks = [_task(f"t{i}") for i in range(5)]
    assert [t.id for t in rank_unplaced(tasks, DAY)] == ["t0", "t1", "t2", "t3", "t4"]


# ---------------------------------------------------------------------------
# Auto-arrange
# ---------------------------------------------------------------------------


def test_single_task_lands_near_peak():
    t1 = _task("t1", priority=1)
    result = auto_arrange(day=DAY, scheduled=[], unplaced=[t1], energy_curve=build_energy_curve(10))
    assert len(result) == 1
    assert result[0].id == "t1"
    assert 540 <= result[0].start_min < 720
    assert result[0].start_min % 5 == 0


def test_higher_priority_number_wins_the_only_slot():
    window = dict(window_start_min=540, window_end_min=600)
    a = _task("a", duration=60, priority=4, deadline_iso="2026-10-17T10:00", constraints=TaskConstraints(**window))
    b = _task("b", duration=60, priority=1, constraints=TaskConstraints(**window))
    result = auto_arrange(day=DAY, scheduled=[], unplaced=[b, a], energy_curve=build_energy_curve(10))
    assert result == [Placement("a", 540)]


def test_equal_tasks_are_packed_in_input_order():
    result = auto_arrange(
        day=DAY,
        scheduled=[],
        unplaced=[_task("t1"), _task("t2")],
        energy_curve=build_energy_curve(10),
    )
    assert result == [Placement("t1", 540), Placement("t2", 570)]


def test_scheduled_tasks_are_avoided_and_not_moved():
    fixed = _task("fixed", duration=60, start_min=540)
    result = auto_arrange(
        day=DAY,
        scheduled=[fixed],
        unplaced=[_task("t1")],
        energy_curve=build_energy_curve(10),
    )
    assert result == [Placement("t1", 600)]
    assert all(p.id != "fixed" for p in result)


def test_unsatisfiable_task_is_left_out():
    impossible = _task("x", duration=120, constraints=TaskConstraints(must_end_by_min=60))
    ok = _task("ok")
    result = auto_arrange(day=DAY, scheduled=[], unplaced=[impossible, ok], energy_curve=build_energy_curve(10))
    assert [p.id for p in result] == ["ok"]


def test_impossible_must_end_by_gives_empty_result():
    t = _task("x", duration=120, constraints=TaskConstraints(must_end_by_min=60))
    assert auto_arrange(day=DAY, scheduled=[], unplaced=[t], energy_curve=build_energy_curve(10)) == []


def test_full_day_leaves_backlog_unplaced():
    wall = _task("wall", duration=1440, start_min=0)
    result = auto_arrange(day=DAY, scheduled=[wall], unplaced=[_task("t1")], energy_curve=build_energy_curve(10))
    assert result == []


def _random_day(seed):
    rng = random.Random(seed)
    scheduled = [
        _task("s1", duration=30, start_min=10),
        _task("s2", duration=60, start_min=360),
        _task("s3", duration=45, start_min=720),
        _task("s4", duration=50, start_min=1380),
    ]
    unplaced = []
    for i in range(12):
        c = None
        roll = rng.random()
        if roll < 0.25:
            c = TaskConstraints(not_before_min=rng.randrange(0, 1200, 5))
        elif roll < 0.5:
            c = TaskConstraints(must_end_by_min=rng.randrange(120, 1440, 5))
        elif roll < 0.75:
            ws = rng.randrange(0, 1200, 5)
            c = TaskConstraints(window_start_min=ws, window_end_min=ws + rng.randrange(30, 240, 5))
        unplaced.append(
            _task(
                f"u{i}",
                duration=rng.randrange(5, 180, 5),
                priority=rng.randint(1, 4),
                energy_cost=rng.randint(1, 5),
                constraints=c,
            )
        )
    return scheduled, unplaced, build_energy_curve(rng.randrange(24))


@pytest.mark.parametrize("seed", range(8))
def test_placements_respect_constraints_and_never_overlap(seed):
    scheduled, unplaced, curve = _random_day(seed)
    result = auto_arrange(day=DAY, scheduled=scheduled, unplaced=unplaced, energy_curve=curve)
    by_id = {t.id: t for t in unplaced}

    for p in result:
        assert can_place(by_id[p.id], p.start_min)
        assert p.start_min % 5 == 0

    blocks = [(t.start_min, t.duration_min) for t in scheduled]
    blocks += [(p.start_min, by_id[p.id].duration_min) for p in result]
    for i, a in enumerate(blocks):
        for b in blocks[i + 1:]:
            assert not overlaps(*a, *b)


@pytest.mark.parametrize("seed", range(3))
def test_auto_arrange_is_deterministic_and_pure(seed):
    scheduled, unplaced, curve = _random_day(seed)
    before = [t.to_dict() for t in scheduled + unplaced]
    first = auto_arrange(day=DAY, scheduled=scheduled, unplaced=unplaced, energy_curve=curve)
    second = auto_arrange(day=DAY, scheduled=scheduled, unplaced=unplaced, energy_curve=curve)
    assert first == second
    assert [t.to_dict() for t in scheduled + unplaced] == before
