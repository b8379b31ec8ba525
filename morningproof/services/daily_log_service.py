"""Per-day completion records: materialization, scoring and counts.

Every function here works on plain schema objects and never raises for
caller misuse; a request that cannot apply (unknown habit, habit not
scheduled today, too-short journal entry) returns False and leaves the log
untouched.
"""
import logging
from datetime import date, datetime, time

from morningproof.schemas.daily_log import DailyLog
from morningproof.schemas.habit import (
    CustomHabit,
    CustomHabitCompletion,
    CustomHabitConfig,
    HabitCompletion,
    HabitConfig,
    HabitType,
    VerificationData,
    VerificationTier,
)
from morningproof.services.habit_catalog import get_definition
from morningproof.services.schedule import is_active_on
from morningproof.utils.datetime_utils import at_time

logger = logging.getLogger(__name__)


def enabled_habit_types(log_date: date, configs: list[HabitConfig]) -> set[HabitType]:
    return {
        c.habit_type
        for c in configs
        if c.is_enabled and is_active_on(log_date, c.active_days)
    }


def enabled_custom_ids(
    log_date: date,
    custom_habits: list[CustomHabit],
    custom_configs: list[CustomHabitConfig],
) -> set[str]:
    active = {h.id for h in custom_habits if h.is_active}
    return {
        c.custom_habit_id
        for c in custom_configs
        if c.custom_habit_id in active
        and c.is_enabled
        and is_active_on(log_date, c.active_days)
    }


def create_daily_log(
    log_date: date,
    configs: list[HabitConfig],
    custom_habits: list[CustomHabit] | None = None,
    custom_configs: list[CustomHabitConfig] | None = None,
) -> DailyLog:
    log = DailyLog(log_date=log_date)
    habit_types = enabled_habit_types(log_date, configs)
    for config in sorted(configs, key=lambda c: c.display_order):
        if config.habit_type in habit_types:
            log.completions.append(HabitCompletion(habit_type=config.habit_type, log_date=log_date))

    custom_ids = enabled_custom_ids(log_date, custom_habits or [], custom_configs or [])
    for config in sorted(custom_configs or [], key=lambda c: c.display_order):
        if config.custom_habit_id in custom_ids:
            log.custom_completions.append(
                CustomHabitCompletion(custom_habit_id=config.custom_habit_id, log_date=log_date)
            )
    return log


def ensure_completion(log: DailyLog, habit_type: HabitType) -> bool:
    if log.get_completion(habit_type):
        return False
    log.completions.append(HabitCompletion(habit_type=habit_type, log_date=log.log_date))
    return True


def ensure_custom_completion(log: DailyLog, custom_habit_id: str) -> bool:
    if log.get_custom_completion(custom_habit_id):
        return False
    log.custom_completions.append(
        CustomHabitCompletion(custom_habit_id=custom_habit_id, log_date=log.log_date)
    )
    return True


def measured_score(measured: float, goal: int) -> int:
    if goal <= 0:
        return 0
    return max(0, min(100, int(measured * 100 / goal)))


def complete_habit(
    log: DailyLog,
    habit_type: HabitType,
    now: datetime,
    verification: VerificationData | None = None,
) -> bool:
    """Mark a binary habit completed with score 100.

    Measured habits (steps, sleep) only complete through
    :func:`record_measurement`; journal habits need an entry of at least the
    definition's minimum length.
    """
    completion = log.get_completion(habit_type)
    if completion is None:
        logger.debug("No %s completion in log for %s", habit_type, log.log_date)
        return False

    definition = get_definition(habit_type)
    if definition.is_measured:
        logger.debug("%s is measured; completion needs a measurement", habit_type)
        return False
    if definition.tier == VerificationTier.JOURNAL:
        text = (verification.text_entry if verification else None) or ""
        if len(text.strip()) < definition.minimum_text_length:
            return False

    completion.mark_completed(now)
    if verification is not None:
        completion.verification = verification
    return True


def complete_journal(log: DailyLog, text: str, now: datetime) -> bool:
    return complete_habit(
        log, HabitType.JOURNALING, now, VerificationData(text_entry=text.strip())
    )


def record_measurement(
    log: DailyLog,
    habit_type: HabitType,
    measured: float,
    goal: int,
    now: datetime,
    verification: VerificationData | None = None,
) -> bool:
    completion = log.get_completion(habit_type)
    if completion is None or not get_definition(habit_type).is_measured:
        return False

    score = measured_score(measured, goal)
    if verification is not None:
        completion.verification = verification

    if completion.is_completed:
        completion.score = max(completion.score, score)
    elif measured >= goal:
        completion.mark_completed(now, score=score)
    else:
        completion.score = score
    return True


def complete_custom_habit(
    log: DailyLog,
    custom_habit_id: str,
    now: datetime,
    verification: VerificationData | None = None,
) -> bool:
    completion = log.get_custom_completion(custom_habit_id)
    if completion is None:
        return False
    completion.mark_completed(now)
    if verification is not None:
        completion.verification = verification
    return True


def relevant_completions(
    log: DailyLog,
    configs: list[HabitConfig],
    custom_habits: list[CustomHabit],
    custom_configs: list[CustomHabitConfig],
) -> list[HabitCompletion | CustomHabitCompletion]:
    habit_types = enabled_habit_types(log.log_date, configs)
    custom_ids = enabled_custom_ids(log.log_date, custom_habits, custom_configs)
    items: list[HabitCompletion | CustomHabitCompletion] = [
        c for c in log.completions if c.habit_type in habit_types
    ]
    items.extend(c for c in log.custom_completions if c.custom_habit_id in custom_ids)
    return items


def recalculate(
    log: DailyLog,
    configs: list[HabitConfig],
    custom_habits: list[CustomHabit],
    custom_configs: list[CustomHabitConfig],
    cutoff: time,
) -> DailyLog:
    relevant = relevant_completions(log, configs, custom_habits, custom_configs)
    log.morning_score = sum(c.score for c in relevant) // len(relevant) if relevant else 0

    deadline = at_time(log.log_date, cutoff)
    log.all_completed_before_cutoff = all(
        c.is_completed and c.completed_at is not None and c.completed_at <= deadline
        for c in relevant
    )
    return log


def total_enabled(
    log_date: date,
    configs: list[HabitConfig],
    custom_habits: list[CustomHabit],
    custom_configs: list[CustomHabitConfig],
) -> int:
    return len(enabled_habit_types(log_date, configs)) + len(
        enabled_custom_ids(log_date, custom_habits, custom_configs)
    )


def completed_count(
    log: DailyLog,
    configs: list[HabitConfig],
    custom_habits: list[CustomHabit],
    custom_configs: list[CustomHabitConfig],
) -> int:
    return sum(
        1
        for c in relevant_completions(log, configs, custom_habits, custom_configs)
        if c.is_completed
    )


def latest_completion_time(
    log: DailyLog,
    configs: list[HabitConfig],
    custom_habits: list[CustomHabit],
    custom_configs: list[CustomHabitConfig],
) -> datetime | None:
    times = [
        c.completed_at
        for c in relevant_completions(log, configs, custom_habits, custom_configs)
        if c.completed_at is not None
    ]
    return max(times, default=None)
