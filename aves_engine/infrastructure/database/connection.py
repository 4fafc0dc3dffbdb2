# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Skill store connection management using SQLAlchemy async.

Uses SQLAlchemy 2.0 async API with the asyncpg driver.

Example:
    db = DatabaseManager(settings)
    await db.connect()

    async with db.get_session() as session:
        result = await session.execute(select(SkillRecord))
        skills = result.scalars().all()

    await db.close()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from aves_engine.infrastructure.database.models import Base

if TYPE_CHECKING:
    from aves_engine.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class DatabaseManager:
    """Owns the async engine and session factory of the skill store."""

    def __init__(self, settings: "Settings") -> None:
        """Initialize the manager without connecting.

        Args:
            settings: Settings containing database configuration.
        """
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    async def connect(self, create_tables: bool = False) -> None:
        """Create the connection pool.

        Args:
            create_tables: Create missing tables (development convenience).

        Raises:
            DatabaseError: If connection pool creation fails.
        """
        db_settings = self._settings.database

        try:
            self._engine = create_async_engine(
                db_settings.url,
                pool_size=db_settings.pool_size,
                max_overflow=db_settings.max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
                echo=self._settings.debug and self._settings.log_level == "DEBUG",
            )

            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            if create_tables:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize skill store connection", e) from e

    async def close(self) -> None:
        """Dispose of the connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session, committed on success and rolled back on error.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If not connected or if a database operation fails.
        """
        if self._sessionmaker is None:
            raise DatabaseError("Skill store not connected. Call connect() first.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Check if the database is reachable."""
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
