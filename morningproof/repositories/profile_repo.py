from sqlalchemy import select

from morningproof.models.profile import Profile
from morningproof.repositories.base import BaseRepository


class ProfileRepository(BaseRepository):
    model = Profile

    async def get_active_profiles(self) -> list[Profile]:
        stmt = select(Profile).where(Profile.is_active == True).order_by(Profile.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_profile(
        self,
        user_name: str = "",
        timezone: str = "UTC",
        morning_cutoff_minutes: int = 540,
        allow_streak_recovery: bool = True,
    ) -> Profile:
        return await self.create(
            user_name=user_name,
            timezone=timezone,
            morning_cutoff_minutes=morning_cutoff_minutes,
            allow_streak_recovery=allow_streak_recovery,
        )
