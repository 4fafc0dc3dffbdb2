# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for the skill store."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from aves_engine.utils.datetime import utc_now


class Base(DeclarativeBase):
    """Declarative base for skill store tables."""


class SkillRecord(Base):
    """Per-user, per-skill mastery row.

    Rows are upserted on every practice and never deleted.
    """

    __tablename__ = "learner_skills"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    skill_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_practiced: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    exercises_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    def __repr__(self) -> str:
        return (
            f"SkillRecord(user_id={self.user_id!r}, skill_name={self.skill_name!r}, "
            f"level={self.level})"
        )
