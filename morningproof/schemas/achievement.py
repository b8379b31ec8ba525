from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AchievementCategory(str, Enum):
    STREAK = "streak"
    CUMULATIVE = "cumulative"
    TIMING = "timing"
    COMEBACK = "comeback"
    SPECIAL = "special"

    @property
    def display_name(self) -> str:
        return {
            "streak": "Streak Milestones",
            "cumulative": "Total Completions",
            "timing": "Early Bird",
            "comeback": "Resilience",
            "special": "Special",
        }[self.value]


class AchievementType(str, Enum):
    STREAK = "streak"
    TOTAL_COMPLETIONS = "total_completions"
    EARLY_COMPLETION = "early_completion"
    COMEBACK = "comeback"
    PERFECT_WEEK = "perfect_week"
    WEEKEND_WARRIOR = "weekend_warrior"
    MONDAY_MOTIVATION = "monday_motivation"
    SPECIAL = "special"


class AchievementDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    type: AchievementType
    requirement: int
    secondary_requirement: int | None = None
    is_hidden: bool = False


class AchievementStats(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    total_completions: int = 0
    # hour threshold -> number of days completed before that hour
    early_completions: dict[int, int] = Field(default_factory=dict)
    comeback_count: int = 0
    last_lost_streak: int = 0
    completed_weekends: int = 0
    monday_completions: int = 0
    completed_on_new_year: bool = False

    last_saturday: date | None = None
    last_recorded_date: date | None = None


class UserAchievements(BaseModel):
    unlocked: dict[str, datetime] = Field(default_factory=dict)

    def is_unlocked(self, achievement_id: str) -> bool:
        return achievement_id in self.unlocked

    def unlocked_date(self, achievement_id: str) -> datetime | None:
        return self.unlocked.get(achievement_id)

    @property
    def unlocked_ids(self) -> set[str]:
        return set(self.unlocked)

    @property
    def unlocked_count(self) -> int:
        return len(self.unlocked)

    def unlock(self, achievement_id: str, when: datetime) -> bool:
        if achievement_id in self.unlocked:
            return False
        self.unlocked[achievement_id] = when
        return True
