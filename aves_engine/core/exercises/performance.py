# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exercise performance tracking and difficulty prediction.

Per-exercise metrics are rolling statistics over all learners:

- avg_time_spent and avg_hints_used are exponential moving averages
  (new = old * (1 - alpha) + sample * alpha, alpha 0.2 by default)
- calculated_difficulty drops by 0.5 while the success rate is above
  0.9 and rises by 0.5 while it is below 0.5, bounded to [1, 10]

Every recorded attempt also advances the learner's review schedule.

Difficulty prediction personalizes an exercise's base difficulty:

    predicted = base + (base - level) * 0.5
                - topic_familiarity * 2
                - species_knowledge * 1.5   (only if species are involved)

clamped to [1, 10] and rounded half up.
"""

import logging
import math
from typing import Protocol

from aves_engine.core.exercises.arena import KeyedArena
from aves_engine.core.exercises.catalog import ExerciseCatalog
from aves_engine.core.exercises.spaced_repetition import SpacedRepetitionScheduler
from aves_engine.core.memory.context import UserContextAggregator
from aves_engine.models.learning import (
    EnhancedUserContext,
    ExercisePattern,
    PerformanceMetrics,
)
from aves_engine.utils.numbers import clamp, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = 5.0
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
DIFFICULTY_STEP = 0.5

EASY_SUCCESS_RATE = 0.9
HARD_SUCCESS_RATE = 0.5

STRENGTH_FAMILIARITY = 0.8
WEAKNESS_FAMILIARITY = 0.2
NEUTRAL_FAMILIARITY = 0.5


class SpeciesKnowledgeProvider(Protocol):
    """How well a learner knows a set of species, from 0 to 1."""

    async def species_knowledge(self, species_ids: list[str], user_id: str) -> float: ...


class StaticSpeciesKnowledge:
    """Species knowledge provider returning the same value for everyone."""

    def __init__(self, value: float = 0.5) -> None:
        self._value = value

    async def species_knowledge(self, species_ids: list[str], user_id: str) -> float:
        return self._value


def topic_familiarity(topic: str | None, context: EnhancedUserContext) -> float:
    """Familiarity of a learner with a topic from their strengths and weaknesses."""
    if topic in context.recent_strengths:
        return STRENGTH_FAMILIARITY
    if topic in context.recent_weaknesses:
        return WEAKNESS_FAMILIARITY
    return NEUTRAL_FAMILIARITY


class PerformanceTracker:
    """Records exercise attempts and predicts per-learner difficulty.

    Attributes:
        catalog: Source of canonical exercise patterns.
        scheduler: Review scheduler advanced on every attempt.
        aggregator: Builds learner context for predictions.
        species_knowledge: Species familiarity collaborator.
        ema_alpha: Smoothing factor of the rolling averages.
    """

    def __init__(
        self,
        catalog: ExerciseCatalog,
        scheduler: SpacedRepetitionScheduler,
        aggregator: UserContextAggregator,
        species_knowledge: SpeciesKnowledgeProvider | None = None,
        ema_alpha: float = 0.2,
    ) -> None:
        self._catalog = catalog
        self._scheduler = scheduler
        self._aggregator = aggregator
        self._species = species_knowledge or StaticSpeciesKnowledge()
        self._alpha = ema_alpha
        self._metrics: KeyedArena[str, PerformanceMetrics] = KeyedArena(PerformanceMetrics)

    def get_metrics(self, exercise_id: str) -> PerformanceMetrics | None:
        """Rolling metrics of an exercise, if it was ever attempted or seeded."""
        return self._metrics.get(exercise_id)

    async def seed_metrics(self, pattern: ExercisePattern) -> PerformanceMetrics:
        """Initialize metrics from an indexed pattern's recorded statistics."""
        metrics = PerformanceMetrics(
            total_attempts=pattern.times_attempted,
            successful_attempts=round_half_up(pattern.avg_accuracy * pattern.times_attempted),
            avg_time_spent=pattern.avg_completion_time,
            avg_hints_used=0.0,
            calculated_difficulty=pattern.difficulty,
        )
        return await self._metrics.put(pattern.exercise_id, metrics)

    async def record_attempt(
        self,
        exercise_id: str,
        user_id: str,
        success: bool,
        time_spent: float,
        hints_used: int,
    ) -> PerformanceMetrics:
        """Fold an attempt into the exercise metrics and reschedule its review.

        Args:
            exercise_id: Attempted exercise.
            user_id: Learner who attempted it.
            success: Whether the attempt succeeded.
            time_spent: Seconds spent.
            hints_used: Hints requested.

        Returns:
            The updated PerformanceMetrics.
        """
        alpha = self._alpha

        def _apply(metrics: PerformanceMetrics) -> PerformanceMetrics:
            total = metrics.total_attempts + 1
            successful = metrics.successful_attempts + (1 if success else 0)
            success_rate = successful / total

            difficulty = metrics.calculated_difficulty
            if success_rate > EASY_SUCCESS_RATE:
                difficulty = max(MIN_DIFFICULTY, difficulty - DIFFICULTY_STEP)
            elif success_rate < HARD_SUCCESS_RATE:
                difficulty = min(MAX_DIFFICULTY, difficulty + DIFFICULTY_STEP)

            return PerformanceMetrics(
                total_attempts=total,
                successful_attempts=successful,
                avg_time_spent=metrics.avg_time_spent * (1 - alpha) + time_spent * alpha,
                avg_hints_used=metrics.avg_hints_used * (1 - alpha) + hints_used * alpha,
                calculated_difficulty=difficulty,
            )

        metrics = await self._metrics.mutate(exercise_id, _apply)
        await self._scheduler.update(user_id, exercise_id, success)

        logger.debug(
            "Attempt recorded for exercise %s by user %s: success_rate=%.2f, difficulty=%.1f",
            exercise_id,
            user_id,
            metrics.success_rate,
            metrics.calculated_difficulty,
        )
        return metrics

    def minimal_pattern(self, exercise_id: str) -> ExercisePattern | None:
        """Stand-in pattern built from metrics for exercises outside the catalog."""
        metrics = self._metrics.get(exercise_id)
        if metrics is None:
            return None

        return ExercisePattern(
            exercise_id=exercise_id,
            difficulty=metrics.calculated_difficulty,
            avg_completion_time=metrics.avg_time_spent,
            avg_accuracy=metrics.success_rate,
            times_attempted=metrics.total_attempts,
        )

    def resolve_pattern(self, exercise_id: str) -> ExercisePattern | None:
        """Catalog pattern of an exercise, else its metrics-based stand-in."""
        return self._catalog.get(exercise_id) or self.minimal_pattern(exercise_id)

    async def predict_difficulty(
        self,
        exercise_id: str,
        user_id: str,
        context: EnhancedUserContext | None = None,
        pattern: ExercisePattern | None = None,
    ) -> int:
        """Predict how difficult an exercise will be for a learner.

        Args:
            exercise_id: Exercise to rate.
            user_id: Learner to rate it for.
            context: Learner context; built when omitted.
            pattern: Exercise pattern; looked up in the catalog when omitted.

        Returns:
            Integer difficulty in [1, 10].
        """
        if context is None:
            context = await self._aggregator.build_enhanced_context(user_id)

        pattern = pattern or self._catalog.get(exercise_id)

        topic: str | None = None
        species: list[str] = []
        if pattern is not None:
            base = pattern.difficulty
            topic = pattern.topic
            species = pattern.species_involved
        else:
            metrics = self._metrics.get(exercise_id)
            base = metrics.calculated_difficulty if metrics else DEFAULT_DIFFICULTY

        predicted = base + (base - context.current_level) * 0.5
        predicted -= topic_familiarity(topic, context) * 2

        if species:
            knowledge = await self._species.species_knowledge(species, user_id)
            predicted -= clamp(knowledge, 0.0, 1.0) * 1.5

        if not math.isfinite(predicted):
            logger.warning(
                "Non-finite difficulty for exercise %s, using default", exercise_id
            )
            predicted = DEFAULT_DIFFICULTY

        return int(clamp(round_half_up(predicted), MIN_DIFFICULTY, MAX_DIFFICULTY))
