"""ORM model for user_profiles (wellness streaks, points, preferences)."""

from typing import Any

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from roadwell.infrastructure.persistence.database import Base


class UserProfileRecord(Base):
    """Profile row created alongside the auth user, keyed by user_id. Table: user_profiles."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    quick_dial_number: Mapped[str | None] = mapped_column(String, nullable=True)
    preferences: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
