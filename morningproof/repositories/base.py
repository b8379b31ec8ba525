from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    model = None

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, record_id):
        return await self.session.get(self.model, record_id)

    async def create(self, **kwargs):
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def update(self, record_id, **kwargs):
        instance = await self.get_by_id(record_id)
        if not instance:
            return None
        for key, value in kwargs.items():
            setattr(instance, key, value)
        await self.session.flush()
        return instance

    async def list_for_profile(self, profile_id: int) -> list:
        stmt = select(self.model).where(self.model.profile_id == profile_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_profile(self, profile_id: int) -> int:
        stmt = delete(self.model).where(self.model.profile_id == profile_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
