import asyncio
from datetime import date, datetime, timedelta

import pytest

from morningproof.schemas.habit import (
    HabitConfig,
    HabitType,
    VerificationData,
    VerificationOutcome,
    Weekday,
)
from morningproof.schemas.streak import StreakState
from morningproof.services.routine_service import RoutineService

OK = VerificationOutcome(success=True)


def _two_habit_store(store):
    store.habit_configs = [
        HabitConfig(habit_type=HabitType.DRANK_WATER, display_order=0),
        HabitConfig(habit_type=HabitType.NO_SNOOZE, display_order=1),
    ]
    return store


@pytest.mark.asyncio
async def test_first_load_persists_defaults(memory_store, clock):
    service = await RoutineService.open(memory_store, profile_id=1, clock=clock)

    assert service.total_enabled == 4
    assert service.completed_count == 0
    assert len(memory_store.habit_configs) == len(HabitType)
    assert date(2024, 3, 6) in memory_store.logs


@pytest.mark.asyncio
async def test_two_habit_morning_locks_in(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    assert service.total_enabled == 2

    clock.set(2024, 3, 6, 6, 30)
    await service.complete_habit(HabitType.DRANK_WATER, OK)
    clock.set(2024, 3, 6, 6, 45)
    await service.complete_habit(HabitType.NO_SNOOZE, OK)

    assert service.morning_score == 100
    assert service.all_completed_before_cutoff
    assert service.can_lock_in

    clock.set(2024, 3, 6, 7, 0)
    result = await service.lock_in()

    assert result["locked_in"]
    assert service.current_streak == 1
    assert not service.can_lock_in
    assert service.is_day_locked_in
    assert [a["id"] for a in result["new_achievements"]] == ["first_bed", "early_bird_1"]
    assert memory_store.streak.current_streak == 1
    assert memory_store.logs[date(2024, 3, 6)].is_day_locked_in
    assert memory_store.stats.early_completions == {7: 1}


@pytest.mark.asyncio
async def test_second_lock_in_same_day_is_skipped(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    await service.complete_habit(HabitType.DRANK_WATER, OK)
    await service.complete_habit(HabitType.NO_SNOOZE, OK)
    await service.lock_in()

    result = await service.lock_in()

    assert result["skipped"] == "already_locked_in"
    assert memory_store.stats.total_completions == 1
    assert memory_store.streak.total_perfect_mornings == 1


@pytest.mark.asyncio
async def test_lock_in_refused_until_everything_is_done(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    await service.complete_habit(HabitType.DRANK_WATER, OK)

    result = await service.lock_in()

    assert result == {"skipped": "habits_incomplete", "completed_count": 1, "total_enabled": 2}
    assert service.current_streak == 0


@pytest.mark.asyncio
async def test_failed_verification_changes_nothing(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    result = await service.complete_habit(HabitType.DRANK_WATER, VerificationOutcome(success=False))
    assert result == {"skipped": "verification_failed"}
    assert service.completed_count == 0


@pytest.mark.asyncio
async def test_broken_streak_decays_on_load(memory_store, clock):
    memory_store.streak = StreakState(
        current_streak=10,
        longest_streak=10,
        last_perfect_morning_date=date(2024, 3, 3),
    )

    service = await RoutineService.open(memory_store, clock=clock)

    assert service.current_streak == 0
    assert service.streak_needs_recovery
    assert service.recoverable_streak == 10
    assert service.longest_streak == 10
    assert memory_store.streak.recoverable_streak == 10


@pytest.mark.asyncio
async def test_recover_streak(memory_store, clock):
    memory_store.streak = StreakState(
        current_streak=10,
        longest_streak=10,
        last_perfect_morning_date=date(2024, 3, 3),
    )
    service = await RoutineService.open(memory_store, clock=clock)

    result = await service.recover_streak()

    assert result["recovered"]
    assert service.current_streak == 10
    assert not service.streak_needs_recovery
    assert memory_store.streak.last_perfect_morning_date == date(2024, 3, 5)
    assert (await service.recover_streak()) == {"skipped": "nothing_to_recover"}


@pytest.mark.asyncio
async def test_recovery_can_be_disabled(memory_store, clock):
    memory_store.streak = StreakState(current_streak=5, last_perfect_morning_date=date(2024, 3, 1))
    service = await RoutineService.open(memory_store, clock=clock)
    await service.update_settings(allow_streak_recovery=False)

    assert (await service.recover_streak()) == {"skipped": "recovery_disabled"}
    assert service.current_streak == 0


@pytest.mark.asyncio
async def test_steps_measurement(memory_store, clock):
    service = await RoutineService.open(memory_store, clock=clock)

    half = await service.record_measurement(HabitType.MORNING_STEPS, 250)
    assert half["score"] == 50
    assert not half["is_completed"]

    full = await service.record_measurement(HabitType.MORNING_STEPS, 500)
    assert full["score"] == 100
    assert full["is_completed"]

    completion = service.log.get_completion(HabitType.MORNING_STEPS)
    assert completion.verification.step_count == 500
    assert completion.verification.externally_sourced


@pytest.mark.asyncio
async def test_measurement_uses_configured_goal(memory_store, clock):
    service = await RoutineService.open(memory_store, clock=clock)
    await service.update_habit_config(HabitType.MORNING_STEPS, goal=1000)

    result = await service.record_measurement(HabitType.MORNING_STEPS, 500)
    assert result["score"] == 50
    assert not result["is_completed"]


@pytest.mark.asyncio
async def test_enabling_habit_mid_day_adds_completion(memory_store, clock):
    service = await RoutineService.open(memory_store, clock=clock)
    assert service.log.get_completion(HabitType.MEDITATION) is None

    result = await service.update_habit_config(HabitType.MEDITATION, is_enabled=True)

    assert result["config"]["is_enabled"]
    assert service.log.get_completion(HabitType.MEDITATION) is not None
    assert service.total_enabled == 5


@pytest.mark.asyncio
async def test_habit_not_scheduled_today_is_not_counted(memory_store, clock):
    service = await RoutineService.open(memory_store, clock=clock)
    await service.update_habit_config(HabitType.MEDITATION, is_enabled=True, active_days=[Weekday.SATURDAY])

    assert service.log.get_completion(HabitType.MEDITATION) is None
    assert service.total_enabled == 4
    result = await service.complete_habit(HabitType.MEDITATION, OK)
    assert result == {"skipped": "not_applicable"}


@pytest.mark.asyncio
async def test_journal_entry(memory_store, clock):
    service = await RoutineService.open(memory_store, clock=clock)
    await service.update_habit_config(HabitType.JOURNALING, is_enabled=True)

    assert (await service.complete_journal("meh")) == {"skipped": "entry_too_short"}
    result = await service.complete_journal("Slept well and woke up early")
    assert result["completed_count"] == 1


@pytest.mark.asyncio
async def test_custom_habit_lifecycle(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)

    added = await service.add_custom_habit("Cold shower", verification_type="ai_verified", ai_prompt="Shower visible")
    habit_id = added["custom_habit"]["id"]
    assert service.total_enabled == 3
    assert habit_id in memory_store.custom_habits

    await service.complete_custom_habit(habit_id, VerificationOutcome(success=True, verification=VerificationData(photo_feedback="Brrr")))
    assert service.completed_count == 1

    deleted = await service.delete_custom_habit(habit_id)
    assert deleted["deleted"]
    assert service.total_enabled == 2
    assert habit_id not in memory_store.custom_habits
    assert (await service.delete_custom_habit(habit_id)) == {"skipped": "unknown_habit"}


@pytest.mark.asyncio
async def test_day_rollover_starts_a_fresh_log(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    await service.complete_habit(HabitType.DRANK_WATER, OK)
    await service.complete_habit(HabitType.NO_SNOOZE, OK)
    await service.lock_in()

    clock.set(2024, 3, 7, 6, 0)
    await service.complete_habit(HabitType.DRANK_WATER, OK)

    assert service.log.log_date == date(2024, 3, 7)
    assert service.completed_count == 1
    assert not service.is_day_locked_in
    assert memory_store.logs[date(2024, 3, 6)].is_day_locked_in

    await service.complete_habit(HabitType.NO_SNOOZE, OK)
    result = await service.lock_in()
    assert result["current_streak"] == 2


@pytest.mark.asyncio
async def test_cutoff_helpers(memory_store, clock):
    service = await RoutineService.open(memory_store, clock=clock)
    clock.set(2024, 3, 6, 8, 30)
    assert not service.is_past_cutoff
    assert service.time_until_cutoff == timedelta(minutes=30)

    clock.set(2024, 3, 6, 9, 30)
    assert service.is_past_cutoff
    assert service.time_until_cutoff == timedelta(0)


@pytest.mark.asyncio
async def test_concurrent_completions_are_not_lost(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)

    await asyncio.gather(
        service.complete_habit(HabitType.DRANK_WATER, OK),
        service.complete_habit(HabitType.NO_SNOOZE, OK),
    )

    saved = memory_store.logs[date(2024, 3, 6)]
    assert all(c.is_completed for c in saved.completions)
    assert service.can_lock_in


@pytest.mark.asyncio
async def test_history(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    await service.complete_habit(HabitType.DRANK_WATER, OK)
    clock.set(2024, 3, 8, 6, 0)
    await service.complete_habit(HabitType.DRANK_WATER, OK)
    await service.complete_habit(HabitType.NO_SNOOZE, OK)

    days = await service.history(7)

    assert [d["date"] for d in days] == ["2024-03-06", "2024-03-08"]
    assert days[0]["morning_score"] == 50
    assert days[1]["completed"] == 2


@pytest.mark.asyncio
async def test_reset_all_data(memory_store, clock):
    service = await RoutineService.open(_two_habit_store(memory_store), clock=clock)
    await service.complete_habit(HabitType.DRANK_WATER, OK)
    await service.complete_habit(HabitType.NO_SNOOZE, OK)
    await service.lock_in()

    await service.reset_all_data()

    assert memory_store.reset_calls == 1
    assert service.current_streak == 0
    assert service.achievements.unlocked_count == 0
    assert service.total_enabled == 4
    assert not service.is_day_locked_in
    assert datetime(2024, 3, 6).date() in memory_store.logs
