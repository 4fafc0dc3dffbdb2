# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Provides mocked adapters (embedding service, Qdrant client, skill store)
and small factories for domain records used across the unit tests.
"""

from datetime import timedelta
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from aves_engine.core.config.settings import RecommendationSettings
from aves_engine.models.learning import (
    EnhancedUserContext,
    ExercisePattern,
    LearningEpisode,
    LearningPerformance,
    SkillEntry,
)
from aves_engine.utils.datetime import utc_now


# =============================================================================
# Adapter mocks
# =============================================================================


@pytest.fixture
def mock_embedding_service() -> MagicMock:
    """Create a mock EmbeddingService."""
    service = MagicMock()
    service.dimension = 768
    service.embed_text = AsyncMock(return_value=[0.1] * 768)
    service.embed_batch = AsyncMock(
        side_effect=lambda texts, content_type="text": [[0.1] * 768 for _ in texts]
    )
    return service


@pytest.fixture
def mock_qdrant_client() -> MagicMock:
    """Create a mock QdrantVectorClient."""
    client = MagicMock()
    client.collection_exists = AsyncMock(return_value=True)
    client.ensure_collection = AsyncMock(return_value=False)
    client.upsert = AsyncMock()
    client.search = AsyncMock(return_value=[])
    return client


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock AsyncSession."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_db_manager(mock_session: AsyncMock) -> MagicMock:
    """Create a mock DatabaseManager whose get_session yields mock_session."""
    manager = MagicMock()
    manager.get_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
    manager.get_session.return_value.__aexit__ = AsyncMock(return_value=False)
    return manager


@pytest.fixture
def recommendation_settings() -> RecommendationSettings:
    """Recommendation settings with defaults."""
    return RecommendationSettings()


# =============================================================================
# Record factories
# =============================================================================


@pytest.fixture
def make_skill() -> Callable[..., SkillEntry]:
    """Factory for SkillEntry records practiced `days_ago` days ago."""

    def _make(
        name: str,
        success_rate: float,
        level: int = 1,
        exercises_completed: int = 5,
        days_ago: float = 1,
        user_id: str = "user-1",
    ) -> SkillEntry:
        return SkillEntry(
            user_id=user_id,
            skill_name=name,
            level=level,
            last_practiced=utc_now() - timedelta(days=days_ago),
            exercises_completed=exercises_completed,
            success_rate=success_rate,
        )

    return _make


@pytest.fixture
def make_episode() -> Callable[..., LearningEpisode]:
    """Factory for LearningEpisode records."""

    def _make(
        score: float = 80,
        time_spent: float = 60,
        attempts_used: int = 1,
        hints_used: int = 0,
        **overrides: Any,
    ) -> LearningEpisode:
        fields: dict[str, Any] = {
            "user_id": "user-1",
            "session_id": "session-1",
            "topic": "beak-id",
            "activity": "multiple-choice",
            "performance": LearningPerformance(
                score=score,
                time_spent=time_spent,
                attempts_used=attempts_used,
                hints_used=hints_used,
            ),
        }
        fields.update(overrides)
        return LearningEpisode(**fields)

    return _make


@pytest.fixture
def make_pattern() -> Callable[..., ExercisePattern]:
    """Factory for ExercisePattern records."""

    def _make(exercise_id: str, **overrides: Any) -> ExercisePattern:
        fields: dict[str, Any] = {
            "exercise_id": exercise_id,
            "exercise_type": "multiple-choice",
            "topic": "beak-id",
            "difficulty": 5,
            "question": "Which bird has a hooked beak?",
            "correct_answer": "Peregrine falcon",
        }
        fields.update(overrides)
        return ExercisePattern(**fields)

    return _make


@pytest.fixture
def make_context() -> Callable[..., EnhancedUserContext]:
    """Factory for EnhancedUserContext snapshots."""

    def _make(**overrides: Any) -> EnhancedUserContext:
        fields: dict[str, Any] = {"user_id": "user-1", "current_level": 3}
        fields.update(overrides)
        return EnhancedUserContext(**fields)

    return _make
