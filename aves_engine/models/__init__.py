# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain models shared across engine components."""

from aves_engine.models.learning import (
    EmotionalState,
    EnhancedUserContext,
    ExercisePattern,
    ExerciseRecommendation,
    LearningEpisode,
    LearningPerformance,
    PerformanceMetrics,
    ReflexionEpisode,
    SkillEntry,
    SpacedRepetitionState,
    UserProgressAnalysis,
)

__all__ = [
    "EmotionalState",
    "EnhancedUserContext",
    "ExercisePattern",
    "ExerciseRecommendation",
    "LearningEpisode",
    "LearningPerformance",
    "PerformanceMetrics",
    "ReflexionEpisode",
    "SkillEntry",
    "SpacedRepetitionState",
    "UserProgressAnalysis",
]
