from datetime import datetime
from sqlalchemy import select

from morningproof.models.gamification import UnlockedAchievement
from morningproof.repositories.base import BaseRepository


class AchievementRepository(BaseRepository):
    model = UnlockedAchievement

    async def list_unlocked(self, profile_id: int) -> list[UnlockedAchievement]:
        stmt = (
            select(UnlockedAchievement)
            .where(UnlockedAchievement.profile_id == profile_id)
            .order_by(UnlockedAchievement.unlocked_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def unlock(self, profile_id: int, achievement_id: str, unlocked_at: datetime) -> UnlockedAchievement:
        rec = UnlockedAchievement(
            profile_id=profile_id,
            achievement_id=achievement_id,
            unlocked_at=unlocked_at,
        )
        self.session.add(rec)
        await self.session.flush()
        return rec
