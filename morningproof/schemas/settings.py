from datetime import time

from pydantic import BaseModel, Field

from morningproof.config import settings


class MorningSettings(BaseModel):
    user_name: str = ""
    timezone: str = Field(default_factory=lambda: settings.TIMEZONE)
    morning_cutoff_minutes: int = Field(
        default_factory=lambda: settings.MORNING_CUTOFF_MINUTES, ge=0, le=24 * 60 - 1
    )
    allow_streak_recovery: bool = Field(default_factory=lambda: settings.ALLOW_STREAK_RECOVERY)

    @property
    def cutoff_time(self) -> time:
        return time(self.morning_cutoff_minutes // 60, self.morning_cutoff_minutes % 60)
