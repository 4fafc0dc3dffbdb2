# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic models for learner activity, context and recommendations.

Record lifecycles:
- SkillEntry: one per (user, skill), upserted on every practice, never deleted.
- LearningEpisode / ReflexionEpisode: immutable once recorded.
- EnhancedUserContext: recomputed per request, never persisted.
- PerformanceMetrics / SpacedRepetitionState: in-process arena records.
- ExerciseRecommendation: output-only value.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from aves_engine.utils.datetime import utc_now


class EmotionalState(str, Enum):
    """Learner emotional state reported with an episode."""

    FRUSTRATED = "frustrated"
    CONFIDENT = "confident"
    NEUTRAL = "neutral"
    ENGAGED = "engaged"


class SkillEntry(BaseModel):
    """Mastery record for one skill of one user."""

    user_id: str
    skill_name: str
    level: int
    last_practiced: datetime = Field(default_factory=utc_now)
    exercises_completed: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class LearningPerformance(BaseModel):
    """Performance sub-record of a learning episode."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=100.0)
    time_spent: float = Field(default=0.0, ge=0.0)
    attempts_used: int = Field(default=1, ge=1)
    hints_used: int = Field(default=0, ge=0)


class LearningEpisode(BaseModel):
    """One completed learning activity."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    session_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    topic: str
    activity: str
    performance: LearningPerformance
    struggled_with: list[str] | None = None
    mastered_concepts: list[str] | None = None
    emotional_state: EmotionalState | None = None
    species_involved: list[str] | None = None
    vocabulary_used: list[str] | None = None


class ReflexionEpisode(BaseModel):
    """Situation / action / outcome / reflection record of an episode."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    session_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    situation: str
    action: str
    outcome: str
    reflection: str
    success: bool
    exercise_type: str | None = None
    species_id: str | None = None
    difficulty: int | None = Field(default=None, ge=1, le=10)


class UserProgressAnalysis(BaseModel):
    """Strengths, weaknesses and suggested focus derived from skills."""

    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggested_focus: list[str] = Field(default_factory=list)


class EnhancedUserContext(BaseModel):
    """Per-request snapshot of a learner used to drive recommendations."""

    user_id: str
    current_level: int = 1
    total_exercises: int = 0
    overall_accuracy: float = 0.0
    recent_strengths: list[str] = Field(default_factory=list)
    recent_weaknesses: list[str] = Field(default_factory=list)
    relevant_experiences: list[LearningEpisode] = Field(default_factory=list)
    suggested_focus: list[str] = Field(default_factory=list)
    learning_velocity: float = Field(default=0.0, ge=0.0, le=10.0)


class ExercisePattern(BaseModel):
    """Canonical catalog record of an exercise."""

    exercise_id: str
    exercise_type: str = "unknown"
    topic: str = "unknown"
    difficulty: float = Field(default=5.0, ge=1.0, le=10.0)
    question: str = ""
    correct_answer: str = ""
    distractors: list[str] | None = None
    avg_completion_time: float = 0.0
    avg_accuracy: float = Field(default=0.0, ge=0.0, le=1.0)
    times_attempted: int = Field(default=0, ge=0)
    species_involved: list[str] = Field(default_factory=list)
    vocabulary_used: list[str] = Field(default_factory=list)
    common_mistakes: list[str] | None = None
    approved: bool = True

    def embedding_text(self) -> str:
        """Text embedded for similarity search over exercises."""
        return f"Topic: {self.topic} | Question: {self.question} | Answer: {self.correct_answer}"


class PerformanceMetrics(BaseModel):
    """Rolling performance statistics for one exercise."""

    total_attempts: int = 0
    successful_attempts: int = 0
    avg_time_spent: float = 0.0
    avg_hints_used: float = 0.0
    calculated_difficulty: float = Field(default=5.0, ge=1.0, le=10.0)

    @property
    def success_rate(self) -> float:
        """Share of successful attempts, 0 before the first attempt."""
        if self.total_attempts == 0:
            return 0.0
        return self.successful_attempts / self.total_attempts


class SpacedRepetitionState(BaseModel):
    """Review timing state for one (user, exercise) pair."""

    last_attempt: datetime = Field(default_factory=utc_now)
    consecutive_successes: int = Field(default=0, ge=0)
    next_review: datetime = Field(default_factory=utc_now)
    interval_multiplier: float = Field(default=1.0, ge=1.0)


class ExerciseRecommendation(BaseModel):
    """A scored next-exercise suggestion.

    relevance_score is within [0, 1] except for scheduled reviews, whose
    boosted score may exceed 1.
    """

    exercise_id: str
    relevance_score: float
    reasoning: str
    predicted_difficulty: int = Field(ge=1, le=10)
    estimated_success_rate: float = Field(ge=0.0, le=1.0)
