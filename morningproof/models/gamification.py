from datetime import datetime
from sqlalchemy import String, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import func

from morningproof.models.base import Base


class UnlockedAchievement(Base):
    __tablename__ = "unlocked_achievements"
    __table_args__ = (
        Index("ix_unlocked_achievements_profile_code", "profile_id", "achievement_id", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    achievement_id: Mapped[str] = mapped_column(String(100))

    unlocked_at: Mapped[datetime] = mapped_column(server_default=func.now())
