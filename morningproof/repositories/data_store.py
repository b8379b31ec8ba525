import logging
from abc import ABC, abstractmethod
from datetime import date

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from morningproof.models.profile import Profile
from morningproof.repositories.achievement_repo import AchievementRepository
from morningproof.repositories.daily_log_repo import DailyLogRepository
from morningproof.repositories.habit_repo import (
    CustomHabitConfigRepository,
    CustomHabitRepository,
    HabitConfigRepository,
)
from morningproof.repositories.profile_repo import ProfileRepository
from morningproof.schemas.achievement import AchievementStats, UserAchievements
from morningproof.schemas.daily_log import DailyLog
from morningproof.schemas.habit import (
    CustomHabit,
    CustomHabitConfig,
    HabitConfig,
    HabitType,
    VerificationData,
)
from morningproof.schemas.settings import MorningSettings
from morningproof.schemas.streak import StreakState
from morningproof.services.schedule import from_mask, to_mask

logger = logging.getLogger(__name__)

_KNOWN_HABIT_TYPES = {habit_type.value for habit_type in HabitType}


class DataStore(ABC):
    """Storage for one profile's engine state.

    Loads return None or an empty/default value when nothing was saved yet;
    saves are write-through.
    """

    @abstractmethod
    async def load_settings(self) -> MorningSettings | None:
        pass

    @abstractmethod
    async def save_settings(self, morning_settings: MorningSettings) -> None:
        pass

    @abstractmethod
    async def load_habit_configs(self) -> list[HabitConfig] | None:
        pass

    @abstractmethod
    async def save_habit_configs(self, configs: list[HabitConfig]) -> None:
        pass

    @abstractmethod
    async def load_custom_habits(self) -> list[CustomHabit]:
        pass

    @abstractmethod
    async def save_custom_habit(self, habit: CustomHabit) -> None:
        pass

    @abstractmethod
    async def delete_custom_habit(self, habit_id: str) -> bool:
        pass

    @abstractmethod
    async def load_custom_habit_configs(self) -> list[CustomHabitConfig]:
        pass

    @abstractmethod
    async def save_custom_habit_configs(self, configs: list[CustomHabitConfig]) -> None:
        pass

    @abstractmethod
    async def load_daily_log(self, log_date: date) -> DailyLog | None:
        pass

    @abstractmethod
    async def save_daily_log(self, log: DailyLog) -> None:
        pass

    @abstractmethod
    async def load_daily_logs(self, start_date: date, end_date: date) -> list[DailyLog]:
        pass

    @abstractmethod
    async def load_streak_state(self) -> StreakState:
        pass

    @abstractmethod
    async def save_streak_state(self, state: StreakState) -> None:
        pass

    @abstractmethod
    async def load_achievement_stats(self) -> AchievementStats:
        pass

    @abstractmethod
    async def save_achievement_stats(self, stats: AchievementStats) -> None:
        pass

    @abstractmethod
    async def load_achievements(self) -> UserAchievements:
        pass

    @abstractmethod
    async def save_achievements(self, achievements: UserAchievements) -> None:
        pass

    @abstractmethod
    async def reset_all_data(self) -> None:
        pass


def _verification_from_record(record) -> VerificationData | None:
    if not record.has_verification:
        return None
    return VerificationData(
        photo_feedback=record.photo_feedback,
        step_count=record.step_count,
        sleep_hours=record.sleep_hours,
        text_entry=record.text_entry,
        externally_sourced=bool(record.externally_sourced),
    )


def _apply_verification(record, verification: VerificationData | None) -> None:
    record.has_verification = verification is not None
    data = verification or VerificationData()
    record.photo_feedback = data.photo_feedback
    record.step_count = data.step_count
    record.sleep_hours = data.sleep_hours
    record.text_entry = data.text_entry
    record.externally_sourced = data.externally_sourced


class SqlDataStore(DataStore):
    """SQLAlchemy-backed store; the caller owns the session and commits it."""

    def __init__(self, session: AsyncSession, profile_id: int):
        self.session = session
        self.profile_id = profile_id
        self.profile_repo = ProfileRepository(session)
        self.config_repo = HabitConfigRepository(session)
        self.custom_repo = CustomHabitRepository(session)
        self.custom_config_repo = CustomHabitConfigRepository(session)
        self.log_repo = DailyLogRepository(session)
        self.achievement_repo = AchievementRepository(session)

    async def _profile(self) -> Profile | None:
        profile = await self.profile_repo.get_by_id(self.profile_id)
        if profile is None:
            logger.warning("Profile %s not found", self.profile_id)
        return profile

    async def load_settings(self) -> MorningSettings | None:
        profile = await self._profile()
        if profile is None:
            return None
        payload = {
            "user_name": profile.user_name,
            "timezone": profile.timezone,
            "morning_cutoff_minutes": profile.morning_cutoff_minutes,
            "allow_streak_recovery": profile.allow_streak_recovery,
        }
        return MorningSettings.model_validate({k: v for k, v in payload.items() if v is not None})

    async def save_settings(self, morning_settings: MorningSettings) -> None:
        await self.profile_repo.update(self.profile_id, **morning_settings.model_dump())

    async def load_habit_configs(self) -> list[HabitConfig] | None:
        records = await self.config_repo.get_configs(self.profile_id)
        if not records:
            return None
        configs = []
        for rec in records:
            try:
                configs.append(
                    HabitConfig(
                        habit_type=rec.habit_type,
                        is_enabled=rec.is_enabled,
                        goal=rec.goal,
                        display_order=rec.display_order,
                        active_days=from_mask(rec.schedule_mask),
                    )
                )
            except ValidationError:
                logger.warning("Skipping stored config for unknown habit %r", rec.habit_type)
        return configs

    async def save_habit_configs(self, configs: list[HabitConfig]) -> None:
        for config in configs:
            await self.config_repo.upsert(
                self.profile_id,
                config.habit_type.value,
                is_enabled=config.is_enabled,
                goal=config.goal,
                display_order=config.display_order,
                schedule_mask=to_mask(config.active_days),
            )

    async def load_custom_habits(self) -> list[CustomHabit]:
        records = await self.custom_repo.get_custom_habits(self.profile_id)
        return [
            CustomHabit(
                id=rec.id,
                name=rec.name,
                icon=rec.icon,
                verification_type=rec.verification_type,
                ai_prompt=rec.ai_prompt,
                created_at=rec.created_at,
                is_active=rec.is_active,
            )
            for rec in records
        ]

    async def save_custom_habit(self, habit: CustomHabit) -> None:
        await self.custom_repo.upsert(
            self.profile_id,
            habit.id,
            name=habit.name,
            icon=habit.icon,
            verification_type=habit.verification_type.value,
            ai_prompt=habit.ai_prompt,
            created_at=habit.created_at,
            is_active=habit.is_active,
        )

    async def delete_custom_habit(self, habit_id: str) -> bool:
        return await self.custom_repo.delete_with_config(self.profile_id, habit_id)

    async def load_custom_habit_configs(self) -> list[CustomHabitConfig]:
        records = await self.custom_config_repo.get_configs(self.profile_id)
        return [
            CustomHabitConfig(
                custom_habit_id=rec.custom_habit_id,
                is_enabled=rec.is_enabled,
                display_order=rec.display_order,
                active_days=from_mask(rec.schedule_mask),
            )
            for rec in records
        ]

    async def save_custom_habit_configs(self, configs: list[CustomHabitConfig]) -> None:
        for config in configs:
            await self.custom_config_repo.upsert(
                self.profile_id,
                config.custom_habit_id,
                is_enabled=config.is_enabled,
                display_order=config.display_order,
                schedule_mask=to_mask(config.active_days),
            )

    @staticmethod
    def _to_daily_log(record) -> DailyLog:
        completions = []
        for rec in record.completions:
            if rec.habit_type not in _KNOWN_HABIT_TYPES:
                logger.warning(
                    "Skipping completion for unknown habit %r in log %s", rec.habit_type, record.log_date
                )
                continue
            completions.append(
                {
                    "habit_type": rec.habit_type,
                    "log_date": rec.log_date,
                    "is_completed": rec.is_completed,
                    "score": rec.score,
                    "completed_at": rec.completed_at,
                    "verification": _verification_from_record(rec),
                }
            )

        payload = {
            "log_date": record.log_date,
            "completions": completions,
            "custom_completions": [
                {
                    "custom_habit_id": rec.custom_habit_id,
                    "log_date": rec.log_date,
                    "is_completed": rec.is_completed,
                    "score": rec.score,
                    "completed_at": rec.completed_at,
                    "verification": _verification_from_record(rec),
                }
                for rec in record.custom_completions
            ],
            "morning_score": record.morning_score,
            "all_completed_before_cutoff": record.all_completed_before_cutoff,
            "is_day_locked_in": bool(record.is_day_locked_in),
            "locked_in_at": record.locked_in_at,
        }
        return DailyLog.model_validate(payload)

    async def load_daily_log(self, log_date: date) -> DailyLog | None:
        record = await self.log_repo.get_log(self.profile_id, log_date)
        if record is None:
            return None
        return self._to_daily_log(record)

    async def save_daily_log(self, log: DailyLog) -> None:
        record = await self.log_repo.get_log(self.profile_id, log.log_date)
        if record is None:
            record = await self.log_repo.create_log(self.profile_id, log.log_date)

        record.morning_score = log.morning_score
        record.all_completed_before_cutoff = log.all_completed_before_cutoff
        record.is_day_locked_in = log.is_day_locked_in
        record.locked_in_at = log.locked_in_at

        by_type = {c.habit_type: c for c in record.completions}
        for completion in log.completions:
            rec = by_type.get(completion.habit_type.value)
            if rec is None:
                rec = DailyLogRepository.new_completion(record, completion.habit_type.value)
            rec.is_completed = completion.is_completed
            rec.score = completion.score
            rec.completed_at = completion.completed_at
            _apply_verification(rec, completion.verification)

        by_custom = {c.custom_habit_id: c for c in record.custom_completions}
        for completion in log.custom_completions:
            rec = by_custom.get(completion.custom_habit_id)
            if rec is None:
                rec = DailyLogRepository.new_custom_completion(record, completion.custom_habit_id)
            rec.is_completed = completion.is_completed
            rec.score = completion.score
            rec.completed_at = completion.completed_at
            _apply_verification(rec, completion.verification)

        await self.session.flush()

    async def load_daily_logs(self, start_date: date, end_date: date) -> list[DailyLog]:
        records = await self.log_repo.get_logs_range(self.profile_id, start_date, end_date)
        return [self._to_daily_log(rec) for rec in records]

    async def load_streak_state(self) -> StreakState:
        profile = await self._profile()
        if profile is None:
            return StreakState()
        return StreakState(
            current_streak=profile.current_streak or 0,
            longest_streak=profile.longest_streak or 0,
            last_perfect_morning_date=profile.last_perfect_morning_date,
            recoverable_streak=profile.recoverable_streak or 0,
            total_perfect_mornings=profile.total_perfect_mornings or 0,
        )

    async def save_streak_state(self, state: StreakState) -> None:
        await self.profile_repo.update(self.profile_id, **state.model_dump())

    async def load_achievement_stats(self) -> AchievementStats:
        profile = await self._profile()
        if profile is None:
            return AchievementStats()
        return AchievementStats.model_validate(profile.get_stats())

    async def save_achievement_stats(self, stats: AchievementStats) -> None:
        payload = stats.model_dump(mode="json", exclude={"current_streak", "longest_streak"})
        await self.profile_repo.update(self.profile_id, stats_json=Profile.dump_stats(payload))

    async def load_achievements(self) -> UserAchievements:
        rows = await self.achievement_repo.list_unlocked(self.profile_id)
        return UserAchievements(unlocked={row.achievement_id: row.unlocked_at for row in rows})

    async def save_achievements(self, achievements: UserAchievements) -> None:
        stored = {row.achievement_id for row in await self.achievement_repo.list_unlocked(self.profile_id)}
        for achievement_id, unlocked_at in achievements.unlocked.items():
            if achievement_id not in stored:
                await self.achievement_repo.unlock(self.profile_id, achievement_id, unlocked_at)

    async def reset_all_data(self) -> None:
        await self.log_repo.delete_for_profile(self.profile_id)
        await self.custom_config_repo.delete_for_profile(self.profile_id)
        await self.custom_repo.delete_for_profile(self.profile_id)
        await self.config_repo.delete_for_profile(self.profile_id)
        await self.achievement_repo.delete_for_profile(self.profile_id)
        await self.profile_repo.update(
            self.profile_id,
            stats_json=None,
            **StreakState().model_dump(),
        )
        await self.session.flush()
