from sqlalchemy import select, delete, and_

from morningproof.models.habit import HabitConfigRecord, CustomHabitRecord, CustomHabitConfigRecord
from morningproof.repositories.base import BaseRepository


class HabitConfigRepository(BaseRepository):
    model = HabitConfigRecord

    async def get_configs(self, profile_id: int) -> list[HabitConfigRecord]:
        stmt = (
            select(HabitConfigRecord)
            .where(HabitConfigRecord.profile_id == profile_id)
            .order_by(HabitConfigRecord.display_order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_config(self, profile_id: int, habit_type: str) -> HabitConfigRecord | None:
        stmt = select(HabitConfigRecord).where(
            and_(
                HabitConfigRecord.profile_id == profile_id,
                HabitConfigRecord.habit_type == habit_type,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, profile_id: int, habit_type: str, **fields) -> HabitConfigRecord:
        record = await self.get_config(profile_id, habit_type)
        if record is None:
            record = HabitConfigRecord(profile_id=profile_id, habit_type=habit_type)
            self.session.add(record)
        for key, value in fields.items():
            setattr(record, key, value)
        await self.session.flush()
        return record


class CustomHabitRepository(BaseRepository):
    model = CustomHabitRecord

    async def get_custom_habits(self, profile_id: int) -> list[CustomHabitRecord]:
        stmt = (
            select(CustomHabitRecord)
            .where(CustomHabitRecord.profile_id == profile_id)
            .order_by(CustomHabitRecord.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, profile_id: int, habit_id: str, **fields) -> CustomHabitRecord:
        record = await self.get_by_id(habit_id)
        if record is None:
            record = CustomHabitRecord(id=habit_id, profile_id=profile_id)
            self.session.add(record)
        for key, value in fields.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    async def delete_with_config(self, profile_id: int, habit_id: str) -> bool:
        record = await self.get_by_id(habit_id)
        if record is None or record.profile_id != profile_id:
            return False
        await self.session.execute(
            delete(CustomHabitConfigRecord).where(CustomHabitConfigRecord.custom_habit_id == habit_id)
        )
        await self.session.delete(record)
        await self.session.flush()
        return True


class CustomHabitConfigRepository(BaseRepository):
    model = CustomHabitConfigRecord

    async def get_configs(self, profile_id: int) -> list[CustomHabitConfigRecord]:
        stmt = (
            select(CustomHabitConfigRecord)
            .where(CustomHabitConfigRecord.profile_id == profile_id)
            .order_by(CustomHabitConfigRecord.display_order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, profile_id: int, custom_habit_id: str, **fields) -> CustomHabitConfigRecord:
        stmt = select(CustomHabitConfigRecord).where(
            CustomHabitConfigRecord.custom_habit_id == custom_habit_id
        )
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        if record is None:
            record = CustomHabitConfigRecord(profile_id=profile_id, custom_habit_id=custom_habit_id)
            self.session.add(record)
        for key, value in fields.items():
            setattr(record, key, value)
        await self.session.flush()
        return record
