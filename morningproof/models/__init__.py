from morningproof.models.base import Base
from morningproof.models.profile import Profile
from morningproof.models.habit import HabitConfigRecord, CustomHabitRecord, CustomHabitConfigRecord
from morningproof.models.daily_log import DailyLogRecord, HabitCompletionRecord, CustomHabitCompletionRecord
from morningproof.models.gamification import UnlockedAchievement
