# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Multi-strategy exercise recommendation scoring.

Three strategies produce candidates from one learner context:

1. Weakness targeting: up to 3 exercises for each of the first 2 weaknesses.
2. Progressive challenge: up to 2 exercises for the first strength, kept
   only when their predicted difficulty exceeds current_level + 1.
3. Spaced review: up to 2 exercises due for review. Their clamped
   relevance is multiplied by 1.2 afterwards and may exceed 1.

Relevance of a candidate:

    0.5 + (3 - |predicted - level|) * 0.15  (+ 0.2 if its topic is a weakness)

clamped to [0, 1]. Estimated success rate is 1 - (predicted - level) * 0.1
clamped to [0.2, 0.95].

Strategies run concurrently, each bounded by a timeout. A strategy that
times out or fails contributes nothing; its partial results are dropped.
Results are merged in strategy-then-candidate order and stably sorted by
relevance, so equal scores keep that order.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable

from aves_engine.core.errors import ValidationSkip
from aves_engine.core.exercises.catalog import ExerciseCatalog
from aves_engine.core.exercises.performance import PerformanceTracker
from aves_engine.core.exercises.spaced_repetition import SpacedRepetitionScheduler
from aves_engine.core.memory.context import UserContextAggregator
from aves_engine.models.learning import (
    EnhancedUserContext,
    ExercisePattern,
    ExerciseRecommendation,
)
from aves_engine.utils.numbers import clamp

logger = logging.getLogger(__name__)

WEAKNESS_TOPICS = 2
WEAKNESS_CANDIDATES = 3
STRENGTH_TOPICS = 1
STRENGTH_CANDIDATES = 2
REVIEW_CANDIDATES = 2
REVIEW_BOOST = 1.2

BASE_RELEVANCE = 0.5
DIFFICULTY_MATCH_WEIGHT = 0.15
WEAKNESS_BONUS = 0.2

OPTIMAL_POOL_SIZE = 10


@dataclass
class ScoredCandidate:
    """A recommendation together with the pattern it was scored from."""

    recommendation: ExerciseRecommendation
    pattern: ExercisePattern


def score_relevance(predicted: int, context: EnhancedUserContext, topic: str) -> float:
    """Clamped relevance of an exercise for a learner."""
    relevance = BASE_RELEVANCE
    relevance += (3 - abs(predicted - context.current_level)) * DIFFICULTY_MATCH_WEIGHT
    if topic in context.recent_weaknesses:
        relevance += WEAKNESS_BONUS
    return clamp(relevance, 0.0, 1.0)


def estimate_success_rate(predicted: int, context: EnhancedUserContext) -> float:
    """Expected chance of success on an exercise of the predicted difficulty."""
    return clamp(1 - (predicted - context.current_level) * 0.1, 0.2, 0.95)


class RecommendationScorer:
    """Generates ranked exercise recommendations for a learner.

    Attributes:
        aggregator: Builds the learner context.
        catalog: Finds candidate exercises by topic.
        tracker: Predicts per-learner difficulty.
        scheduler: Supplies exercises due for review.
        strategy_timeout: Seconds a strategy may take before it is dropped.
    """

    def __init__(
        self,
        aggregator: UserContextAggregator,
        catalog: ExerciseCatalog,
        tracker: PerformanceTracker,
        scheduler: SpacedRepetitionScheduler,
        strategy_timeout: float = 5.0,
    ) -> None:
        self._aggregator = aggregator
        self._catalog = catalog
        self._tracker = tracker
        self._scheduler = scheduler
        self._timeout = strategy_timeout

    async def get_recommendations(
        self,
        user_id: str,
        limit: int = 5,
    ) -> list[ExerciseRecommendation]:
        """Ranked recommendations for a learner.

        Never raises; a learner without history, or with every retrieval
        degraded, gets an empty list.

        Args:
            user_id: Learner identifier.
            limit: Maximum number of recommendations.

        Returns:
            Recommendations sorted by relevance descending.
        """
        scored = await self._recommend(user_id, limit)
        return [candidate.recommendation for candidate in scored]

    async def get_optimal_next_exercise(
        self,
        user_id: str,
        topic: str | None = None,
    ) -> ExerciseRecommendation | None:
        """Single best next exercise, optionally restricted to a topic.

        Args:
            user_id: Learner identifier.
            topic: Only consider exercises on this topic.

        Returns:
            The highest scoring recommendation, or None.
        """
        scored = await self._recommend(user_id, OPTIMAL_POOL_SIZE)
        if topic is not None:
            scored = [c for c in scored if c.pattern.topic == topic]

        if not scored:
            logger.debug("No next exercise for user %s (topic=%s)", user_id, topic)
            return None
        return scored[0].recommendation

    async def _recommend(self, user_id: str, limit: int) -> list[ScoredCandidate]:
        try:
            context = await self._aggregator.build_enhanced_context(user_id)
        except Exception as e:
            logger.warning("Context build failed for user %s: %s", user_id, str(e))
            return []

        strategies = [
            ("weakness", self._weakness_targeting(context)),
            ("challenge", self._progressive_challenge(context)),
            ("review", self._spaced_review(context)),
        ]
        results = await asyncio.gather(
            *(self._bounded(name, user_id, coro) for name, coro in strategies)
        )

        merged = [candidate for result in results for candidate in result]
        # sorted() is stable: ties keep strategy-then-candidate order
        ranked = sorted(
            merged,
            key=lambda c: c.recommendation.relevance_score,
            reverse=True,
        )

        logger.info(
            "Generated %d recommendations for user %s (%d candidates)",
            min(len(ranked), limit),
            user_id,
            len(merged),
        )
        return ranked[:max(limit, 0)]

    async def _bounded(
        self,
        name: str,
        user_id: str,
        strategy: Awaitable[list[ScoredCandidate]],
    ) -> list[ScoredCandidate]:
        try:
            return await asyncio.wait_for(strategy, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Strategy %s timed out after %.1fs for user %s", name, self._timeout, user_id
            )
        except Exception as e:
            logger.warning("Strategy %s failed for user %s: %s", name, user_id, str(e))
        return []

    # ========== Strategies ==========

    async def _weakness_targeting(
        self,
        context: EnhancedUserContext,
    ) -> list[ScoredCandidate]:
        weaknesses = context.recent_weaknesses[:WEAKNESS_TOPICS]
        candidate_lists = await asyncio.gather(
            *(self._catalog.find_by_topic(w, WEAKNESS_CANDIDATES) for w in weaknesses)
        )

        scored = []
        for weakness, candidates in zip(weaknesses, candidate_lists):
            for pattern in candidates:
                candidate = await self._score(
                    pattern,
                    context,
                    f"Recommended to improve understanding of {weakness}",
                )
                if candidate is not None:
                    scored.append(candidate)
        return scored

    async def _progressive_challenge(
        self,
        context: EnhancedUserContext,
    ) -> list[ScoredCandidate]:
        strengths = context.recent_strengths[:STRENGTH_TOPICS]
        candidate_lists = await asyncio.gather(
            *(self._catalog.find_by_topic(s, STRENGTH_CANDIDATES) for s in strengths)
        )

        scored = []
        for strength, candidates in zip(strengths, candidate_lists):
            for pattern in candidates:
                candidate = await self._score(
                    pattern,
                    context,
                    f"Challenge exercise to advance beyond current level in {strength}",
                )
                if candidate is None:
                    continue
                if candidate.recommendation.predicted_difficulty > context.current_level + 1:
                    scored.append(candidate)
        return scored

    async def _spaced_review(self, context: EnhancedUserContext) -> list[ScoredCandidate]:
        due = self._scheduler.get_due_for_review(context.user_id, REVIEW_CANDIDATES)

        scored = []
        for exercise_id in due:
            try:
                pattern = self._review_pattern(exercise_id)
            except ValidationSkip as e:
                logger.debug("Skipping review candidate %s: %s", e.exercise_id, e.message)
                continue

            candidate = await self._score(
                pattern,
                context,
                "Scheduled review to reinforce learning",
            )
            if candidate is None:
                continue

            # Applied after the clamp; may exceed 1
            recommendation = candidate.recommendation
            candidate.recommendation = recommendation.model_copy(
                update={"relevance_score": recommendation.relevance_score * REVIEW_BOOST}
            )
            scored.append(candidate)
        return scored

    def _review_pattern(self, exercise_id: str) -> ExercisePattern:
        pattern = self._tracker.resolve_pattern(exercise_id)
        if pattern is None:
            raise ValidationSkip("No record for due exercise", exercise_id=exercise_id)
        return pattern

    async def _score(
        self,
        pattern: ExercisePattern,
        context: EnhancedUserContext,
        reasoning: str,
    ) -> ScoredCandidate | None:
        try:
            predicted = await self._tracker.predict_difficulty(
                pattern.exercise_id,
                context.user_id,
                context=context,
                pattern=pattern,
            )
            recommendation = ExerciseRecommendation(
                exercise_id=pattern.exercise_id,
                relevance_score=score_relevance(predicted, context, pattern.topic),
                reasoning=reasoning,
                predicted_difficulty=predicted,
                estimated_success_rate=estimate_success_rate(predicted, context),
            )
        except (ValueError, ValidationSkip) as e:
            logger.debug("Dropping candidate %s: %s", pattern.exercise_id, str(e))
            return None

        return ScoredCandidate(recommendation=recommendation, pattern=pattern)
