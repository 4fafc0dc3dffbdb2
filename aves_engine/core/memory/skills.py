# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Skill tracker for per-user skill mastery.

Skills are structured records, not text, so they live in PostgreSQL
only (no embeddings). One row per (user_id, skill_name); every practice
upserts the row and stamps last_practiced.

Session Injection Pattern:
    All methods accept an optional `session` parameter. When provided,
    operations use the given session (sharing transaction context).
    When not provided, a new session is created for the operation.

Example:
    tracker = SkillTracker(db_manager=db)

    entry = await tracker.update_skill(
        user_id="u-1",
        skill_name="beak-id",
        level=3,
        exercises_completed=12,
        success_rate=0.85,
    )

    skills = await tracker.get_user_skills("u-1")
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aves_engine.core.errors import StorageError
from aves_engine.infrastructure.database import DatabaseError, DatabaseManager, SkillRecord
from aves_engine.models.learning import SkillEntry
from aves_engine.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class SkillTracker:
    """Service layer for skill mastery records.

    Attributes:
        db_manager: Manager for skill store connections.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        """Initialize the skill tracker.

        Args:
            db_manager: Manager for skill store connections.
        """
        self._db = db_manager

    async def update_skill(
        self,
        user_id: str,
        skill_name: str,
        level: int,
        exercises_completed: int,
        success_rate: float,
        session: AsyncSession | None = None,
    ) -> SkillEntry:
        """Insert or replace the skill record of a user.

        Args:
            user_id: Learner identifier.
            skill_name: Skill (topic) name.
            level: Current mastery level.
            exercises_completed: Total exercises completed for this skill.
            success_rate: Success rate in [0, 1].
            session: Optional database session for transaction sharing.

        Returns:
            The stored SkillEntry.

        Raises:
            StorageError: If the upsert fails.
        """
        entry = SkillEntry(
            user_id=user_id,
            skill_name=skill_name,
            level=level,
            last_practiced=utc_now(),
            exercises_completed=exercises_completed,
            success_rate=success_rate,
        )

        values = entry.model_dump()
        stmt = insert(SkillRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SkillRecord.user_id, SkillRecord.skill_name],
            set_={
                "level": stmt.excluded.level,
                "last_practiced": stmt.excluded.last_practiced,
                "exercises_completed": stmt.excluded.exercises_completed,
                "success_rate": stmt.excluded.success_rate,
            },
        )

        async def _execute(db: AsyncSession) -> None:
            await db.execute(stmt)

        try:
            if session:
                await _execute(session)
            else:
                async with self._db.get_session() as db:
                    await _execute(db)
        except (DatabaseError, SQLAlchemyError, OSError, TimeoutError) as e:
            logger.error(
                "Failed to update skill %s for user %s: %s", skill_name, user_id, str(e)
            )
            raise StorageError(f"Failed to update skill {skill_name}", e) from e

        logger.debug(
            "Updated skill %s for user %s: level=%d, rate=%.2f",
            skill_name,
            user_id,
            level,
            success_rate,
        )
        return entry

    async def get_user_skills(
        self,
        user_id: str,
        session: AsyncSession | None = None,
    ) -> list[SkillEntry]:
        """Get every skill record of a user.

        Raises:
            StorageError: If the query fails.
        """

        async def _execute(db: AsyncSession) -> list[SkillEntry]:
            result = await db.execute(
                select(SkillRecord).where(SkillRecord.user_id == user_id)
            )
            return [self._to_entry(record) for record in result.scalars().all()]

        try:
            if session:
                return await _execute(session)
            async with self._db.get_session() as db:
                return await _execute(db)
        except (DatabaseError, SQLAlchemyError, OSError, TimeoutError) as e:
            raise StorageError(f"Failed to load skills for user {user_id}", e) from e

    async def update_skill_level(
        self,
        user_id: str,
        skill_name: str,
        new_level: int,
        session: AsyncSession | None = None,
    ) -> SkillEntry | None:
        """Change only the level of an existing skill.

        Args:
            user_id: Learner identifier.
            skill_name: Skill name.
            new_level: New mastery level.
            session: Optional database session for transaction sharing.

        Returns:
            The updated SkillEntry, or None if the user has no such skill.

        Raises:
            StorageError: If the update fails.
        """
        stmt = (
            update(SkillRecord)
            .where(
                SkillRecord.user_id == user_id,
                SkillRecord.skill_name == skill_name,
            )
            .values(level=new_level, last_practiced=utc_now())
            .returning(SkillRecord)
        )

        async def _execute(db: AsyncSession) -> SkillEntry | None:
            result = await db.execute(stmt)
            record = result.scalar_one_or_none()
            return self._to_entry(record) if record is not None else None

        try:
            if session:
                entry = await _execute(session)
            else:
                async with self._db.get_session() as db:
                    entry = await _execute(db)
        except (DatabaseError, SQLAlchemyError, OSError, TimeoutError) as e:
            raise StorageError(f"Failed to update level of skill {skill_name}", e) from e

        if entry is None:
            logger.debug("No skill %s for user %s to update", skill_name, user_id)
        return entry

    @staticmethod
    def _to_entry(record: SkillRecord) -> SkillEntry:
        return SkillEntry(
            user_id=record.user_id,
            skill_name=record.skill_name,
            level=record.level,
            last_practiced=ensure_utc(record.last_practiced),
            exercises_completed=record.exercises_completed,
            success_rate=record.success_rate,
        )
