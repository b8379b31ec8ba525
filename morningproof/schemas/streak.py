from datetime import date

from pydantic import BaseModel, Field


class StreakState(BaseModel):
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_perfect_morning_date: date | None = None
    # streak length lost to the last decay, 0 when nothing can be recovered
    recoverable_streak: int = Field(default=0, ge=0)
    total_perfect_mornings: int = Field(default=0, ge=0)


class LockInOutcome(BaseModel):
    previous_streak: int
    current_streak: int
    longest_streak: int
    lost_streak: int = 0
    was_reset: bool = False
    counted_new_day: bool = True
