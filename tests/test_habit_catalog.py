from morningproof.schemas.habit import ALL_DAYS, HabitConfig, HabitType, VerificationTier
from morningproof.services.habit_catalog import (
    DEFAULT_ENABLED,
    HABIT_CATALOG,
    default_habit_configs,
    get_definition,
    merge_with_defaults,
)


def test_catalog_covers_every_habit_type():
    assert set(HABIT_CATALOG) == set(HabitType)


def test_measured_habits():
    steps = get_definition(HabitType.MORNING_STEPS)
    assert steps.is_measured
    assert steps.default_goal == 500
    assert steps.minimum_goal == 100
    assert get_definition(HabitType.SLEEP_DURATION).tier == VerificationTier.AUTO_TRACKED
    assert not get_definition(HabitType.DRANK_WATER).is_measured


def test_goal_is_clamped_to_minimum():
    assert HabitConfig(habit_type=HabitType.MORNING_STEPS, goal=50).goal == 100
    assert HabitConfig(habit_type=HabitType.MORNING_STEPS, goal=-3).goal == 100
    assert HabitConfig(habit_type=HabitType.SLEEP_DURATION, goal=0).goal == 1
    assert HabitConfig(habit_type=HabitType.MORNING_STEPS).goal == 500

    config = HabitConfig(habit_type=HabitType.MORNING_STEPS, goal=800)
    assert config.set_goal(10) == 100
    assert config.goal == 100


def test_missing_active_days_default_to_every_day():
    config = HabitConfig.model_validate({"habit_type": "made_bed", "active_days": None})
    assert config.active_days == set(ALL_DAYS)
    assert config.is_enabled


def test_default_configs():
    configs = default_habit_configs()
    assert [c.habit_type for c in configs] == list(HABIT_CATALOG)
    assert {c.habit_type for c in configs if c.is_enabled} == DEFAULT_ENABLED
    assert [c.display_order for c in configs] == list(range(len(configs)))


def test_merge_adds_missing_habits_disabled():
    stored = [
        HabitConfig(habit_type=HabitType.MEDITATION, is_enabled=True, display_order=0),
        HabitConfig(habit_type=HabitType.MADE_BED, is_enabled=False, display_order=1),
    ]
    merged = merge_with_defaults(stored)
    assert len(merged) == len(HabitType)
    by_type = {c.habit_type: c for c in merged}
    assert by_type[HabitType.MEDITATION].is_enabled
    assert not by_type[HabitType.MADE_BED].is_enabled
    assert not by_type[HabitType.MORNING_STEPS].is_enabled
    assert sorted(c.display_order for c in merged) == list(range(len(HabitType)))


def test_merge_of_nothing_gives_defaults():
    assert [c.habit_type for c in merge_with_defaults([])] == list(HABIT_CATALOG)
