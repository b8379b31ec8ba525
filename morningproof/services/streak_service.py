"""Lock-in gated streak state machine.

Finishing every habit does not move the streak. Only :func:`lock_in` does,
and only while :func:`can_lock_in` holds for the day's log.
"""
import logging
from datetime import date, datetime, timedelta

from morningproof.schemas.daily_log import DailyLog
from morningproof.schemas.streak import LockInOutcome, StreakState
from morningproof.utils.datetime_utils import days_between

logger = logging.getLogger(__name__)


STREAK_MILESTONES = (7, 14, 21, 30, 60, 90, 180, 365)


def can_lock_in(log: DailyLog, completed_count: int, total_enabled: int) -> bool:
    return (
        total_enabled > 0
        and completed_count == total_enabled
        and not log.is_day_locked_in
    )


def lock_in(
    state: StreakState,
    log: DailyLog,
    now: datetime,
    completed_count: int,
    total_enabled: int,
) -> LockInOutcome | None:
    if not can_lock_in(log, completed_count, total_enabled):
        logger.debug(
            "Lock-in declined for %s (%s/%s, locked=%s)",
            log.log_date, completed_count, total_enabled, log.is_day_locked_in,
        )
        return None

    today = now.date()
    previous = state.current_streak
    last = state.last_perfect_morning_date
    lost_streak = 0
    was_reset = False
    counted_new_day = True

    if last is None:
        state.current_streak = 1
    elif last >= today:
        # a later date means the local clock moved back (timezone change)
        counted_new_day = False
    elif last == today - timedelta(days=1):
        state.current_streak += 1
    else:
        lost_streak = state.current_streak or state.recoverable_streak
        was_reset = True
        state.current_streak = 1

    state.longest_streak = max(state.longest_streak, state.current_streak)
    state.recoverable_streak = 0
    if counted_new_day:
        state.last_perfect_morning_date = today
        state.total_perfect_mornings += 1

    log.is_day_locked_in = True
    log.locked_in_at = now

    if was_reset:
        logger.info("Streak reset after gap: lost %s, now %s", lost_streak, state.current_streak)
    else:
        logger.info("Locked in %s: streak %s -> %s", today, previous, state.current_streak)

    return LockInOutcome(
        previous_streak=previous,
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        lost_streak=lost_streak,
        was_reset=was_reset,
        counted_new_day=counted_new_day,
    )


def gap_days(state: StreakState, today: date) -> int | None:
    if state.last_perfect_morning_date is None:
        return None
    return days_between(state.last_perfect_morning_date, today)


def check_decay(state: StreakState, today: date) -> bool:
    """Zero a streak whose last perfect morning is more than a day old.

    Runs at load time so a streak that broke while the app was closed is
    reported as broken. The lost length is kept in ``recoverable_streak``.
    """
    gap = gap_days(state, today)
    if gap is None or gap <= 1 or state.current_streak == 0:
        return False

    logger.info("Streak of %s decayed (%s days since last perfect morning)", state.current_streak, gap)
    state.recoverable_streak = state.current_streak
    state.current_streak = 0
    return True


def streak_needs_recovery(state: StreakState, today: date) -> bool:
    gap = gap_days(state, today)
    return gap is not None and gap > 1 and state.recoverable_streak > 0


def recover(state: StreakState, today: date) -> bool:
    """Undo a single broken day: restore the lost streak as of yesterday."""
    if not streak_needs_recovery(state, today):
        return False

    restored = state.recoverable_streak
    state.last_perfect_morning_date = today - timedelta(days=1)
    state.current_streak = restored
    state.recoverable_streak = 0
    state.longest_streak = max(state.longest_streak, restored)
    logger.info("Streak of %s recovered", restored)
    return True


def next_milestone(current_streak: int) -> int | None:
    for milestone in STREAK_MILESTONES:
        if milestone > current_streak:
            return milestone
    return None
