from datetime import date, datetime
from enum import Enum, IntEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Weekday(IntEnum):
    """Calendar weekday, Sunday first (Sunday=1 ... Saturday=7)."""

    SUNDAY = 1
    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7


ALL_DAYS: frozenset[Weekday] = frozenset(Weekday)
WEEKDAYS: frozenset[Weekday] = frozenset(
    {Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY}
)
WEEKENDS: frozenset[Weekday] = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})


def _active_days_or_all(value):
    if value is None:
        return set(ALL_DAYS)
    return value


class VerificationTier(str, Enum):
    AI_PHOTO = "ai_photo"
    AUTO_TRACKED = "auto_tracked"
    JOURNAL = "journal"
    MANUAL = "manual"


class HabitType(str, Enum):
    MADE_BED = "made_bed"
    SUNLIGHT_EXPOSURE = "sunlight_exposure"
    MORNING_STEPS = "morning_steps"
    SLEEP_DURATION = "sleep_duration"
    DRANK_WATER = "drank_water"
    MORNING_STRETCH = "morning_stretch"
    NO_SNOOZE = "no_snooze"
    JOURNALING = "journaling"
    MEDITATION = "meditation"
    BREAKFAST = "breakfast"


class HabitDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    habit_type: HabitType
    display_name: str
    icon: str
    tier: VerificationTier
    category: str
    default_goal: int = 1
    minimum_goal: int = 1
    unit: str | None = None
    default_active_days: frozenset[Weekday] = ALL_DAYS
    requires_hold_to_confirm: bool = False
    minimum_text_length: int = 0

    @property
    def is_measured(self) -> bool:
        return self.tier == VerificationTier.AUTO_TRACKED

    def clamp_goal(self, goal: int | None) -> int:
        if goal is None:
            goal = self.default_goal
        return max(goal, self.minimum_goal)


class HabitConfig(BaseModel):
    """Per-user settings for one predefined habit.

    ``goal`` is always at least the habit's minimum goal: lower values,
    including zero and negatives, are raised to the minimum on construction,
    on load and through :meth:`set_goal`.
    """

    habit_type: HabitType
    is_enabled: bool = True
    goal: int | None = None
    display_order: int = 0
    active_days: set[Weekday] = Field(default_factory=lambda: set(ALL_DAYS))

    @field_validator("active_days", mode="before")
    @classmethod
    def _default_active_days(cls, value):
        return _active_days_or_all(value)

    @model_validator(mode="after")
    def _clamp_goal(self):
        from morningproof.services.habit_catalog import get_definition

        self.goal = get_definition(self.habit_type).clamp_goal(self.goal)
        return self

    @property
    def definition(self) -> HabitDefinition:
        from morningproof.services.habit_catalog import get_definition

        return get_definition(self.habit_type)

    def set_goal(self, goal: int) -> int:
        self.goal = self.definition.clamp_goal(goal)
        return self.goal


class CustomVerificationType(str, Enum):
    AI_VERIFIED = "ai_verified"
    HONOR_SYSTEM = "honor_system"


class CustomHabit(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    icon: str = "star.fill"
    verification_type: CustomVerificationType = CustomVerificationType.HONOR_SYSTEM
    ai_prompt: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    is_active: bool = True


class CustomHabitConfig(BaseModel):
    custom_habit_id: str
    is_enabled: bool = True
    display_order: int = 0
    active_days: set[Weekday] = Field(default_factory=lambda: set(ALL_DAYS))

    @field_validator("active_days", mode="before")
    @classmethod
    def _default_active_days(cls, value):
        return _active_days_or_all(value)


class VerificationData(BaseModel):
    photo_feedback: str | None = None
    step_count: int | None = None
    sleep_hours: float | None = None
    text_entry: str | None = None
    externally_sourced: bool = False


class HabitCompletion(BaseModel):
    """One habit's record for one day.

    ``is_completed`` and ``completed_at is not None`` always agree:
    :meth:`mark_completed` is the only way to complete, and it stamps
    ``completed_at`` the first time only.
    """

    habit_type: HabitType
    log_date: date
    is_completed: bool = False
    score: int = Field(default=0, ge=0, le=100)
    completed_at: datetime | None = None
    verification: VerificationData | None = None

    def mark_completed(self, now: datetime, score: int = 100) -> bool:
        first = not self.is_completed
        self.is_completed = True
        self.score = score
        if self.completed_at is None:
            self.completed_at = now
        return first


class CustomHabitCompletion(BaseModel):
    custom_habit_id: str
    log_date: date
    is_completed: bool = False
    score: int = Field(default=0, ge=0, le=100)
    completed_at: datetime | None = None
    verification: VerificationData | None = None

    def mark_completed(self, now: datetime, score: int = 100) -> bool:
        first = not self.is_completed
        self.is_completed = True
        self.score = score
        if self.completed_at is None:
            self.completed_at = now
        return first


class VerificationOutcome(BaseModel):
    """Result reported by a verification collaborator (AI photo check, etc.)."""

    success: bool
    verification: VerificationData | None = None
