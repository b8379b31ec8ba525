import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from morningproof.repositories.data_store import DataStore
from morningproof.schemas.achievement import AchievementStats, UserAchievements
from morningproof.schemas.daily_log import DailyLog
from morningproof.schemas.habit import (
    CustomHabit,
    CustomHabitConfig,
    CustomVerificationType,
    HabitConfig,
    HabitType,
    VerificationData,
    VerificationOutcome,
)
from morningproof.schemas.settings import MorningSettings
from morningproof.schemas.streak import StreakState
from morningproof.services import achievement_service, daily_log_service, streak_service
from morningproof.services.habit_catalog import default_habit_configs, merge_with_defaults
from morningproof.services.schedule import display_string, is_active_on
from morningproof.utils.datetime_utils import at_time, get_range, local_now

logger = logging.getLogger(__name__)


class RoutineService:
    """Owns one profile's morning routine: today's log, streak and achievements.

    Every mutation runs under a single lock and is written through the store
    before the lock is released. Nothing is committed here; the caller owns
    the session.
    """

    def __init__(
        self,
        store: DataStore,
        profile_id: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.profile_id = profile_id
        self._clock = clock
        self._lock = asyncio.Lock()

        self.settings = MorningSettings()
        self.habit_configs: list[HabitConfig] = default_habit_configs()
        self.custom_habits: list[CustomHabit] = []
        self.custom_configs: list[CustomHabitConfig] = []
        self.today_log: DailyLog | None = None
        self.streak = StreakState()
        self.stats = AchievementStats()
        self.achievements = UserAchievements()

    @classmethod
    async def open(cls, store: DataStore, profile_id: int | None = None, clock=None) -> "RoutineService":
        service = cls(store, profile_id=profile_id, clock=clock)
        await service.load()
        return service

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return local_now(self.settings.timezone)

    async def load(self) -> dict:
        async with self._lock:
            self.settings = await self.store.load_settings() or MorningSettings()
            self.habit_configs = merge_with_defaults(await self.store.load_habit_configs() or [])
            self.custom_habits = await self.store.load_custom_habits()
            self.custom_configs = await self.store.load_custom_habit_configs()
            self.streak = await self.store.load_streak_state()
            self.stats = await self.store.load_achievement_stats()
            self.achievements = await self.store.load_achievements()

            self.today_log = None
            decayed = await self._ensure_today()
            await self.store.save_habit_configs(self.habit_configs)
            return {"log_date": self.log.log_date.isoformat(), "decayed": decayed}

    @property
    def log(self) -> DailyLog:
        if self.today_log is None:
            raise RuntimeError("RoutineService.load() must run before reading the daily log")
        return self.today_log

    async def _ensure_today(self) -> bool:
        """Load or materialize the log for the clock's current day.

        Returns whether the streak decayed while switching days.
        """
        today = self.now().date()
        if self.today_log is not None and self.today_log.log_date == today:
            return False

        log = await self.store.load_daily_log(today)
        if log is None:
            log = daily_log_service.create_daily_log(
                today, self.habit_configs, self.custom_habits, self.custom_configs
            )
            logger.debug("Created daily log for %s with %s habits", today, len(log.completions))
        self.today_log = log

        decayed = streak_service.check_decay(self.streak, today)
        if decayed:
            await self.store.save_streak_state(self.streak)
        await self._save_log()
        return decayed

    def _recalculate(self) -> None:
        daily_log_service.recalculate(
            self.log,
            self.habit_configs,
            self.custom_habits,
            self.custom_configs,
            self.settings.cutoff_time,
        )

    async def _save_log(self) -> None:
        self._recalculate()
        await self.store.save_daily_log(self.log)

    def _config(self, habit_type: HabitType) -> HabitConfig | None:
        for config in self.habit_configs:
            if config.habit_type == habit_type:
                return config
        return None

    def _custom_config(self, custom_habit_id: str) -> CustomHabitConfig | None:
        for config in self.custom_configs:
            if config.custom_habit_id == custom_habit_id:
                return config
        return None

    def _progress(self) -> dict:
        return {
            "completed_count": self.completed_count,
            "total_enabled": self.total_enabled,
            "morning_score": self.morning_score,
            "all_completed_before_cutoff": self.all_completed_before_cutoff,
            "can_lock_in": self.can_lock_in,
        }

    # --- completions ---

    async def complete_habit(self, habit_type: HabitType, outcome: VerificationOutcome) -> dict:
        async with self._lock:
            await self._ensure_today()
            if not outcome.success:
                logger.debug("Verification failed for %s; nothing recorded", habit_type)
                return {"skipped": "verification_failed"}

            config = self._config(habit_type)
            if config is None or not config.is_enabled:
                return {"skipped": "habit_not_enabled"}

            if not daily_log_service.complete_habit(
                self.log, habit_type, self.now(), outcome.verification
            ):
                return {"skipped": "not_applicable"}

            await self._save_log()
            return {"habit_type": habit_type.value, **self._progress()}

    async def record_measurement(
        self,
        habit_type: HabitType,
        measured: float,
        verification: VerificationData | None = None,
    ) -> dict:
        async with self._lock:
            await self._ensure_today()
            config = self._config(habit_type)
            if config is None or not config.is_enabled:
                return {"skipped": "habit_not_enabled"}

            if verification is None:
                if habit_type == HabitType.MORNING_STEPS:
                    verification = VerificationData(step_count=int(measured), externally_sourced=True)
                elif habit_type == HabitType.SLEEP_DURATION:
                    verification = VerificationData(sleep_hours=measured, externally_sourced=True)

            if not daily_log_service.record_measurement(
                self.log, habit_type, measured, config.goal, self.now(), verification
            ):
                return {"skipped": "not_applicable"}

            await self._save_log()
            completion = self.log.get_completion(habit_type)
            return {
                "habit_type": habit_type.value,
                "score": completion.score,
                "is_completed": completion.is_completed,
                **self._progress(),
            }

    async def complete_journal(self, text: str) -> dict:
        async with self._lock:
            await self._ensure_today()
            config = self._config(HabitType.JOURNALING)
            if config is None or not config.is_enabled:
                return {"skipped": "habit_not_enabled"}
            if not daily_log_service.complete_journal(self.log, text, self.now()):
                return {"skipped": "entry_too_short"}
            await self._save_log()
            return {"habit_type": HabitType.JOURNALING.value, **self._progress()}

    async def complete_custom_habit(
        self,
        custom_habit_id: str,
        outcome: VerificationOutcome | None = None,
    ) -> dict:
        async with self._lock:
            await self._ensure_today()
            if outcome is not None and not outcome.success:
                return {"skipped": "verification_failed"}
            config = self._custom_config(custom_habit_id)
            if config is None or not config.is_enabled:
                return {"skipped": "habit_not_enabled"}

            verification = outcome.verification if outcome else None
            if not daily_log_service.complete_custom_habit(
                self.log, custom_habit_id, self.now(), verification
            ):
                return {"skipped": "not_applicable"}

            await self._save_log()
            return {"custom_habit_id": custom_habit_id, **self._progress()}

    # --- configuration ---

    async def update_habit_config(
        self,
        habit_type: HabitType,
        is_enabled: bool | None = None,
        goal: int | None = None,
        active_days=None,
    ) -> dict:
        async with self._lock:
            await self._ensure_today()
            config = self._config(habit_type)
            if config is None:
                return {"skipped": "unknown_habit"}

            if is_enabled is not None:
                config.is_enabled = is_enabled
            if goal is not None:
                config.set_goal(goal)
            if active_days is not None:
                config.active_days = set(active_days)

            if config.is_enabled and is_active_on(self.log.log_date, config.active_days):
                daily_log_service.ensure_completion(self.log, habit_type)

            await self.store.save_habit_configs(self.habit_configs)
            await self._save_log()
            logger.debug("Updated %s config: enabled=%s goal=%s", habit_type, config.is_enabled, config.goal)
            return {"config": self._serialize_config(config), **self._progress()}

    async def add_custom_habit(
        self,
        name: str,
        icon: str = "star.fill",
        verification_type: CustomVerificationType = CustomVerificationType.HONOR_SYSTEM,
        ai_prompt: str | None = None,
        active_days=None,
    ) -> dict:
        async with self._lock:
            await self._ensure_today()
            habit = CustomHabit(
                name=name,
                icon=icon,
                verification_type=verification_type,
                ai_prompt=ai_prompt,
                created_at=self.now(),
            )
            config = CustomHabitConfig(
                custom_habit_id=habit.id,
                display_order=len(self.custom_configs),
                active_days=active_days,
            )
            self.custom_habits.append(habit)
            self.custom_configs.append(config)

            await self.store.save_custom_habit(habit)
            await self.store.save_custom_habit_configs([config])

            if is_active_on(self.log.log_date, config.active_days):
                daily_log_service.ensure_custom_completion(self.log, habit.id)
            await self._save_log()
            logger.info("Custom habit %s added", habit.id)
            return {"custom_habit": habit.model_dump(mode="json"), **self._progress()}

    async def delete_custom_habit(self, custom_habit_id: str) -> dict:
        async with self._lock:
            await self._ensure_today()
            if not any(h.id == custom_habit_id for h in self.custom_habits):
                return {"skipped": "unknown_habit"}

            self.custom_habits = [h for h in self.custom_habits if h.id != custom_habit_id]
            self.custom_configs = [c for c in self.custom_configs if c.custom_habit_id != custom_habit_id]
            deleted = await self.store.delete_custom_habit(custom_habit_id)
            await self._save_log()
            logger.info("Custom habit %s deleted", custom_habit_id)
            return {"deleted": deleted, **self._progress()}

    async def update_settings(self, **updates) -> dict:
        async with self._lock:
            changes = {k: v for k, v in updates.items() if v is not None}
            self.settings = MorningSettings.model_validate({**self.settings.model_dump(), **changes})
            await self.store.save_settings(self.settings)
            await self._ensure_today()
            await self._save_log()
            return {"settings": self.settings.model_dump()}

    # --- streak and achievements ---

    async def lock_in(self) -> dict:
        async with self._lock:
            await self._ensure_today()
            completed = self.completed_count
            total = self.total_enabled
            now = self.now()

            outcome = streak_service.lock_in(self.streak, self.log, now, completed, total)
            if outcome is None:
                return {
                    "skipped": "already_locked_in" if self.log.is_day_locked_in else "habits_incomplete",
                    "completed_count": completed,
                    "total_enabled": total,
                }

            if outcome.counted_new_day:
                completed_at = daily_log_service.latest_completion_time(
                    self.log, self.habit_configs, self.custom_habits, self.custom_configs
                )
                achievement_service.record_day(
                    self.stats, self.log.log_date, completed_at or now, outcome.lost_streak
                )

            achievement_service.sync_streak(self.stats, self.streak)
            unlocked = achievement_service.evaluate(self.achievements, self.stats, now)

            await self._save_log()
            await self.store.save_streak_state(self.streak)
            await self.store.save_achievement_stats(self.stats)
            await self.store.save_achievements(self.achievements)

            return {
                "locked_in": True,
                **outcome.model_dump(),
                "next_milestone": streak_service.next_milestone(self.streak.current_streak),
                "new_achievements": [a.model_dump(mode="json") for a in unlocked],
            }

    async def recover_streak(self) -> dict:
        async with self._lock:
            await self._ensure_today()
            if not self.settings.allow_streak_recovery:
                return {"skipped": "recovery_disabled"}

            if not streak_service.recover(self.streak, self.now().date()):
                logger.debug("Nothing to recover for profile %s", self.profile_id)
                return {"skipped": "nothing_to_recover"}

            achievement_service.sync_streak(self.stats, self.streak)
            unlocked = achievement_service.evaluate(self.achievements, self.stats, self.now())
            await self.store.save_streak_state(self.streak)
            await self.store.save_achievements(self.achievements)
            return {
                "recovered": True,
                "current_streak": self.streak.current_streak,
                "longest_streak": self.streak.longest_streak,
                "new_achievements": [a.model_dump(mode="json") for a in unlocked],
            }

    async def reset_all_data(self) -> dict:
        async with self._lock:
            await self.store.reset_all_data()
            self.settings = MorningSettings()
            self.habit_configs = default_habit_configs()
            self.custom_habits = []
            self.custom_configs = []
            self.streak = StreakState()
            self.stats = AchievementStats()
            self.achievements = UserAchievements()
            self.today_log = None

            await self.store.save_settings(self.settings)
            await self.store.save_habit_configs(self.habit_configs)
            await self._ensure_today()
            logger.info("All data reset for profile %s", self.profile_id)
            return {"reset": True}

    async def history(self, days: int = 30) -> list[dict]:
        start, end = get_range(self.now().date(), days)
        logs = await self.store.load_daily_logs(start, end)
        return [
            {
                "date": log.log_date.isoformat(),
                "morning_score": log.morning_score,
                "is_day_locked_in": log.is_day_locked_in,
                "all_completed_before_cutoff": log.all_completed_before_cutoff,
                "completed": sum(1 for c in log.completions if c.is_completed)
                + sum(1 for c in log.custom_completions if c.is_completed),
            }
            for log in logs
        ]

    # --- read-only state ---

    @property
    def completed_count(self) -> int:
        return daily_log_service.completed_count(
            self.log, self.habit_configs, self.custom_habits, self.custom_configs
        )

    @property
    def total_enabled(self) -> int:
        return daily_log_service.total_enabled(
            self.log.log_date, self.habit_configs, self.custom_habits, self.custom_configs
        )

    @property
    def morning_score(self) -> int:
        return self.log.morning_score

    @property
    def can_lock_in(self) -> bool:
        return streak_service.can_lock_in(self.log, self.completed_count, self.total_enabled)

    @property
    def is_day_locked_in(self) -> bool:
        return self.log.is_day_locked_in

    @property
    def all_completed_before_cutoff(self) -> bool:
        return self.log.all_completed_before_cutoff

    @property
    def is_past_cutoff(self) -> bool:
        now = self.now()
        return now > at_time(now.date(), self.settings.cutoff_time)

    @property
    def time_until_cutoff(self) -> timedelta:
        now = self.now()
        remaining = at_time(now.date(), self.settings.cutoff_time) - now
        return max(remaining, timedelta(0))

    @property
    def current_streak(self) -> int:
        return self.streak.current_streak

    @property
    def longest_streak(self) -> int:
        return self.streak.longest_streak

    @property
    def streak_needs_recovery(self) -> bool:
        return streak_service.streak_needs_recovery(self.streak, self.now().date())

    @property
    def recoverable_streak(self) -> int:
        return self.streak.recoverable_streak

    @staticmethod
    def _serialize_config(config: HabitConfig) -> dict:
        definition = config.definition
        return {
            "habit_type": config.habit_type.value,
            "display_name": definition.display_name,
            "icon": definition.icon,
            "tier": definition.tier.value,
            "requires_hold_to_confirm": definition.requires_hold_to_confirm,
            "is_enabled": config.is_enabled,
            "goal": config.goal,
            "unit": definition.unit,
            "display_order": config.display_order,
            "active_days": sorted(int(d) for d in config.active_days),
            "schedule": display_string(config.active_days),
        }

    def snapshot(self) -> dict:
        habits = []
        for config in sorted(self.habit_configs, key=lambda c: c.display_order):
            completion = self.log.get_completion(config.habit_type)
            habits.append({
                **self._serialize_config(config),
                "is_completed": bool(completion and completion.is_completed),
                "score": completion.score if completion else 0,
                "completed_at": completion.completed_at.isoformat()
                if completion and completion.completed_at else None,
            })

        custom = []
        configs_by_id = {c.custom_habit_id: c for c in self.custom_configs}
        for habit in self.custom_habits:
            config = configs_by_id.get(habit.id)
            completion = self.log.get_custom_completion(habit.id)
            custom.append({
                "id": habit.id,
                "name": habit.name,
                "icon": habit.icon,
                "verification_type": habit.verification_type.value,
                "is_enabled": bool(config and config.is_enabled),
                "schedule": display_string(config.active_days) if config else None,
                "is_completed": bool(completion and completion.is_completed),
            })

        return {
            "profile_id": self.profile_id,
            "date": self.log.log_date.isoformat(),
            "settings": self.settings.model_dump(),
            "habits": habits,
            "custom_habits": custom,
            **self._progress(),
            "is_day_locked_in": self.is_day_locked_in,
            "is_past_cutoff": self.is_past_cutoff,
            "seconds_until_cutoff": int(self.time_until_cutoff.total_seconds()),
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_perfect_mornings": self.streak.total_perfect_mornings,
            "next_milestone": streak_service.next_milestone(self.current_streak),
            "streak_needs_recovery": self.streak_needs_recovery,
            "recoverable_streak": self.recoverable_streak,
            "unlocked_achievements": self.achievements.unlocked_count,
        }
