from datetime import date, datetime
from sqlalchemy import Integer, String, Boolean, Float, ForeignKey, Date, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from morningproof.models.base import Base


class DailyLogRecord(Base):
    __tablename__ = "daily_logs"
    __table_args__ = (
        Index("ix_daily_logs_profile_date", "profile_id", "log_date", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE")
    )

    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    morning_score: Mapped[int] = mapped_column(Integer, default=0)
    all_completed_before_cutoff: Mapped[bool] = mapped_column(Boolean, default=False)
    is_day_locked_in: Mapped[bool | None] = mapped_column(Boolean, default=False)
    locked_in_at: Mapped[datetime | None] = mapped_column()

    completions = relationship(
        "HabitCompletionRecord",
        back_populates="daily_log",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    custom_completions = relationship(
        "CustomHabitCompletionRecord",
        back_populates="daily_log",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class VerificationColumns:
    photo_feedback: Mapped[str | None] = mapped_column(Text)
    step_count: Mapped[int | None] = mapped_column(Integer)
    sleep_hours: Mapped[float | None] = mapped_column(Float)
    text_entry: Mapped[str | None] = mapped_column(Text)
    externally_sourced: Mapped[bool | None] = mapped_column(Boolean, default=False)
    has_verification: Mapped[bool] = mapped_column(Boolean, default=False)


class HabitCompletionRecord(Base, VerificationColumns):
    __tablename__ = "habit_completions"
    __table_args__ = (
        Index("ix_habit_completions_log_type", "daily_log_id", "habit_type", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    daily_log_id: Mapped[int] = mapped_column(
        ForeignKey("daily_logs.id", ondelete="CASCADE")
    )

    habit_type: Mapped[str] = mapped_column(String(50), nullable=False)
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    completed_at: Mapped[datetime | None] = mapped_column()

    daily_log = relationship("DailyLogRecord", back_populates="completions")


class CustomHabitCompletionRecord(Base, VerificationColumns):
    __tablename__ = "custom_habit_completions"
    __table_args__ = (
        Index("ix_custom_completions_log_habit", "daily_log_id", "custom_habit_id", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    daily_log_id: Mapped[int] = mapped_column(
        ForeignKey("daily_logs.id", ondelete="CASCADE")
    )

    custom_habit_id: Mapped[str] = mapped_column(String(36), nullable=False)
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    completed_at: Mapped[datetime | None] = mapped_column()

    daily_log = relationship("DailyLogRecord", back_populates="custom_completions")
