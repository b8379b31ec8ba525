import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.exc import SQLAlchemyError

from morningproof.config import settings
from morningproof.core.database import async_session_factory
from morningproof.repositories.data_store import SqlDataStore
from morningproof.repositories.profile_repo import ProfileRepository
from morningproof.services.routine_service import RoutineService

logger = logging.getLogger(__name__)


class StreakDecayScheduler:
    """Periodically loads every active profile so broken streaks decay
    even when nobody opens the app."""

    def __init__(self):
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    def start(self):
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self.decay_tick,
            "interval",
            minutes=settings.DECAY_CHECK_MINUTES,
            id="streak_decay",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def decay_tick(self) -> int:
        try:
            async with async_session_factory() as session:
                profiles = await ProfileRepository(session).get_active_profiles()
                profile_ids = [p.id for p in profiles]
        except SQLAlchemyError as e:
            logger.warning("Streak decay tick skipped (db): %s", e)
            return 0

        decayed = 0
        for profile_id in profile_ids:
            try:
                async with async_session_factory() as session:
                    service = RoutineService(SqlDataStore(session, profile_id), profile_id=profile_id)
                    result = await service.load()
                    await session.commit()
            except SQLAlchemyError as e:
                logger.warning("Decay check failed for profile %s: %s", profile_id, e)
                continue
            if result["decayed"]:
                decayed += 1

        if decayed:
            logger.info("Decay tick: %s of %s streaks decayed", decayed, len(profile_ids))
        return decayed


decay_scheduler = StreakDecayScheduler()
