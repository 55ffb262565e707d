from dialr.models import (
    DEFAULT_MODE_FOR_CATEGORY,
    Category,
    Color,
    Mode,
    PlannerConfig,
    Recurrence,
    Ritual,
    RitualBlock,
    Task,
    TaskConstraints,
    default_mode_for_category,
)


def test_every_category_has_a_default_mode():
    assert set(DEFAULT_MODE_FOR_CATEGORY) == set(Category)
    assert default_mode_for_category(Category.FOCUS) == Mode.DEEP
    assert default_mode_for_category(Category.ADMIN) == Mode.ADMIN
    assert default_mode_for_category(Category.CREATIVE) == Mode.LIGHT
    assert default_mode_for_category("Break") == Mode.SOCIAL


def test_task_defaults_follow_category():
    deep = Task(id="a", title="Write", duration_min=60)
    assert deep.mode == Mode.DEEP
    assert deep.energy_cost == 4
    admin = Task(id="b", title="Inbox", duration_min=15, category=Category.ADMIN)
    assert admin.mode == Mode.ADMIN
    assert admin.energy_cost == 3
    assert admin.priority == 3
    assert admin.recurrence == Recurrence.NONE
    assert not admin.is_scheduled


def test_explicit_values_win_over_defaults():
    t = Task(id="a", title="Pair", duration_min=30, category="Focus", mode="Social", energy_cost=2)
    assert t.mode == Mode.SOCIAL
    assert t.energy_cost == 2


def test_task_serialization():
    t = Task(
        id="T-1",
        title="Deep work",
        duration_min=90,
        icon="*",
        color=Color.PINK,
        start_min=540,
        deadline_iso="2026-10-20",
        priority=1,
        constraints=TaskConstraints(not_before_min=480),
        recurrence=Recurrence.WEEKDAYS,
    )
    d = t.to_dict()
    assert d["color"] == "pink"
    assert d["constraints"] == {"not_before_min": 480}
    assert Task.from_dict(d) == t


def test_empty_constraints_are_not_written():
    t = Task(id="a", title="x", duration_min=5, constraints=TaskConstraints())
    assert "constraints" not in t.to_dict()


def test_from_dict_fills_old_records():
    t = Task.from_dict({"id": "old", "title": "Legacy", "duration_min": 25, "category": "Creative", "color": "teal"})
    assert t.mode == Mode.LIGHT
    assert t.energy_cost == 3
    assert t.energy_gain == 0
    assert t.priority == 3
    assert t.deadline_iso is None
    assert t.constraints is None
    assert t.start_min is None
    assert t.recurrence == Recurrence.NONE


def test_from_dict_accepts_recurrence_objects():
    t = Task.from_dict({"id": "r", "title": "Standup", "duration_min": 15, "recurrence": {"pattern": "daily"}})
    assert t.recurrence == Recurrence.DAILY


def test_ritual_serialization():
    r = Ritual(
        id="r1",
        name="Morning",
        blocks=[
            RitualBlock(title="Stretch", duration_min=10, category=Category.BREAK, preferred_start_min=420),
            RitualBlock(title="Plan", duration_min=15),
        ],
    )
    assert Ritual.from_dict(r.to_dict()) == r


def test_config_defaults():
    c = PlannerConfig.from_dict({})
    assert c.default_energy_peak == 10
    assert c.energy_base == 3
    assert PlannerConfig.from_dict(PlannerConfig(default_energy_peak=7).to_dict()).default_energy_peak == 7
