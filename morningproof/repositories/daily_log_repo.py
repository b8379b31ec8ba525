from datetime import date
from sqlalchemy import select, and_

from morningproof.models.daily_log import DailyLogRecord, HabitCompletionRecord, CustomHabitCompletionRecord
from morningproof.repositories.base import BaseRepository


class DailyLogRepository(BaseRepository):
    model = DailyLogRecord

    async def get_log(self, profile_id: int, log_date: date) -> DailyLogRecord | None:
        stmt = select(DailyLogRecord).where(
            and_(
                DailyLogRecord.profile_id == profile_id,
                DailyLogRecord.log_date == log_date,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_log(self, profile_id: int, log_date: date) -> DailyLogRecord:
        log = DailyLogRecord(
            profile_id=profile_id,
            log_date=log_date,
            completions=[],
            custom_completions=[],
        )
        self.session.add(log)
        await self.session.flush()
        return log

    async def get_logs_range(
        self,
        profile_id: int,
        start_date: date,
        end_date: date,
    ) -> list[DailyLogRecord]:
        stmt = (
            select(DailyLogRecord)
            .where(
                and_(
                    DailyLogRecord.profile_id == profile_id,
                    DailyLogRecord.log_date >= start_date,
                    DailyLogRecord.log_date <= end_date,
                )
            )
            .order_by(DailyLogRecord.log_date)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_profile(self, profile_id: int) -> int:
        logs = await self.list_for_profile(profile_id)
        for log in logs:
            await self.session.delete(log)
        await self.session.flush()
        return len(logs)

    @staticmethod
    def new_completion(log: DailyLogRecord, habit_type: str) -> HabitCompletionRecord:
        record = HabitCompletionRecord(habit_type=habit_type, log_date=log.log_date)
        log.completions.append(record)
        return record

    @staticmethod
    def new_custom_completion(log: DailyLogRecord, custom_habit_id: str) -> CustomHabitCompletionRecord:
        record = CustomHabitCompletionRecord(custom_habit_id=custom_habit_id, log_date=log.log_date)
        log.custom_completions.append(record)
        return record
