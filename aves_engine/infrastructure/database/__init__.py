# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the PostgreSQL skill store.

Example:
    from aves_engine.infrastructure.database import DatabaseManager

    db = DatabaseManager(settings)
    await db.connect()
    async with db.get_session() as session:
        ...
"""

from aves_engine.infrastructure.database.connection import DatabaseError, DatabaseManager
from aves_engine.infrastructure.database.models import Base, SkillRecord

__all__ = [
    "Base",
    "DatabaseError",
    "DatabaseManager",
    "SkillRecord",
]
