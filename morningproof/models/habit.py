from datetime import datetime
from sqlalchemy import Integer, String, Boolean, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import func

from morningproof.models.base import Base, TimestampMixin


class HabitConfigRecord(Base, TimestampMixin):
    __tablename__ = "habit_configs"
    __table_args__ = (
        Index("ix_habit_configs_profile_type", "profile_id", "habit_type", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE")
    )

    habit_type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    goal: Mapped[int | None] = mapped_column(Integer)
    display_order: Mapped[int] = mapped_column(Integer, default=0)

    schedule_mask: Mapped[int | None] = mapped_column(Integer, default=127)


class CustomHabitRecord(Base):
    __tablename__ = "custom_habits"
    __table_args__ = (
        Index("ix_custom_habits_profile_active", "profile_id", "is_active"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE")
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="star.fill")
    verification_type: Mapped[str] = mapped_column(String(30), default="honor_system")
    ai_prompt: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())


class CustomHabitConfigRecord(Base):
    __tablename__ = "custom_habit_configs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE")
    )
    custom_habit_id: Mapped[str] = mapped_column(
        ForeignKey("custom_habits.id", ondelete="CASCADE"), unique=True
    )

    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    schedule_mask: Mapped[int | None] = mapped_column(Integer, default=127)
