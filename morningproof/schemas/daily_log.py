from datetime import date, datetime

from pydantic import BaseModel, Field

from morningproof.schemas.habit import CustomHabitCompletion, HabitCompletion, HabitType


class DailyLog(BaseModel):
    """All habit completions for one calendar day.

    ``is_day_locked_in`` only ever moves from False to True, through
    :func:`morningproof.services.streak_service.lock_in`.
    """

    log_date: date
    completions: list[HabitCompletion] = Field(default_factory=list)
    custom_completions: list[CustomHabitCompletion] = Field(default_factory=list)
    morning_score: int = Field(default=0, ge=0, le=100)
    all_completed_before_cutoff: bool = False
    is_day_locked_in: bool = False
    locked_in_at: datetime | None = None

    def get_completion(self, habit_type: HabitType) -> HabitCompletion | None:
        for completion in self.completions:
            if completion.habit_type == habit_type:
                return completion
        return None

    def get_custom_completion(self, custom_habit_id: str) -> CustomHabitCompletion | None:
        for completion in self.custom_completions:
            if completion.custom_habit_id == custom_habit_id:
                return completion
        return None
