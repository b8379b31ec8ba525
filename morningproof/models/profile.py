import json
import logging
from datetime import date

from sqlalchemy import String, Integer, Boolean, Date, Text
from sqlalchemy.orm import Mapped, mapped_column

from morningproof.models.base import Base, TimestampMixin

logger = logging.getLogger(__name__)


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(255), default="")
    timezone: Mapped[str] = mapped_column(String(50), default="UTC")

    morning_cutoff_minutes: Mapped[int] = mapped_column(Integer, default=540)
    allow_streak_recovery: Mapped[bool] = mapped_column(Boolean, default=True)

    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_perfect_morning_date: Mapped[date | None] = mapped_column(Date)
    recoverable_streak: Mapped[int | None] = mapped_column(Integer, default=0)
    total_perfect_mornings: Mapped[int | None] = mapped_column(Integer, default=0)

    stats_json: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def get_stats(self) -> dict:
        defaults = {
            "total_completions": 0,
            "early_completions": {},
            "comeback_count": 0,
            "last_lost_streak": 0,
            "completed_weekends": 0,
            "monday_completions": 0,
            "completed_on_new_year": False,
            "last_saturday": None,
            "last_recorded_date": None,
        }
        if self.stats_json:
            try:
                saved = json.loads(self.stats_json)
                for k, v in saved.items():
                    if v is not None:
                        defaults[k] = v
            except (TypeError, ValueError) as e:
                logger.warning("Unreadable stats for profile %s: %s", self.id, e)
        return defaults

    @staticmethod
    def dump_stats(stats: dict) -> str:
        return json.dumps(stats, ensure_ascii=False, default=str)
