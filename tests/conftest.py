import os
import tempfile
from datetime import datetime

_DB_DIR = tempfile.mkdtemp(prefix="morningproof-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/api.db"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["TIMEZONE"] = "UTC"
os.environ["MORNING_CUTOFF_MINUTES"] = "540"
os.environ["ALLOW_STREAK_RECOVERY"] = "true"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from morningproof.core.database import build_engine, init_models
from morningproof.repositories.data_store import DataStore
from morningproof.schemas.achievement import AchievementStats, UserAchievements
from morningproof.schemas.streak import StreakState


class FakeClock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def set(self, *args):
        self.current = datetime(*args)


class MemoryStore(DataStore):
    """Keeps everything in dicts; loads hand out copies like a real store would."""

    def __init__(self):
        self.settings = None
        self.habit_configs = None
        self.custom_habits = {}
        self.custom_configs = {}
        self.logs = {}
        self.streak = StreakState()
        self.stats = AchievementStats()
        self.achievements = UserAchievements()
        self.reset_calls = 0

    async def load_settings(self):
        return self.settings.model_copy(deep=True) if self.settings else None

    async def save_settings(self, morning_settings):
        self.settings = morning_settings.model_copy(deep=True)

    async def load_habit_configs(self):
        if self.habit_configs is None:
            return None
        return [c.model_copy(deep=True) for c in self.habit_configs]

    async def save_habit_configs(self, configs):
        self.habit_configs = [c.model_copy(deep=True) for c in configs]

    async def load_custom_habits(self):
        return [h.model_copy(deep=True) for h in self.custom_habits.values()]

    async def save_custom_habit(self, habit):
        self.custom_habits[habit.id] = habit.model_copy(deep=True)

    async def delete_custom_habit(self, habit_id):
        self.custom_configs.pop(habit_id, None)
        return self.custom_habits.pop(habit_id, None) is not None

    async def load_custom_habit_configs(self):
        return [c.model_copy(deep=True) for c in self.custom_configs.values()]

    async def save_custom_habit_configs(self, configs):
        for config in configs:
            self.custom_configs[config.custom_habit_id] = config.model_copy(deep=True)

    async def load_daily_log(self, log_date):
        log = self.logs.get(log_date)
        return log.model_copy(deep=True) if log else None

    async def save_daily_log(self, log):
        self.logs[log.log_date] = log.model_copy(deep=True)

    async def load_daily_logs(self, start_date, end_date):
        return [
            self.logs[d].model_copy(deep=True)
            for d in sorted(self.logs)
            if start_date <= d <= end_date
        ]

    async def load_streak_state(self):
        return self.streak.model_copy(deep=True)

    async def save_streak_state(self, state):
        self.streak = state.model_copy(deep=True)

    async def load_achievement_stats(self):
        return self.stats.model_copy(deep=True)

    async def save_achievement_stats(self, stats):
        self.stats = stats.model_copy(deep=True)

    async def load_achievements(self):
        return self.achievements.model_copy(deep=True)

    async def save_achievements(self, achievements):
        self.achievements = achievements.model_copy(deep=True)

    async def reset_all_data(self):
        calls = self.reset_calls + 1
        self.__init__()
        self.reset_calls = calls


@pytest.fixture
def clock():
    # Wednesday
    return FakeClock(datetime(2024, 3, 6, 6, 0))


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_models(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
