# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for RecommendationScorer.

Collaborators are mocked so each strategy can be driven independently:
the catalog returns candidates per topic, the tracker predicts a fixed
difficulty per exercise and the scheduler reports due reviews.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from aves_engine.core.errors import RetrievalDegraded
from aves_engine.core.recommendations.scorer import (
    RecommendationScorer,
    estimate_success_rate,
    score_relevance,
)


@pytest.fixture
def aggregator(make_context) -> MagicMock:
    """Create a mock aggregator returning an empty level 3 context."""
    aggregator = MagicMock()
    aggregator.build_enhanced_context = AsyncMock(return_value=make_context())
    return aggregator


@pytest.fixture
def catalog() -> MagicMock:
    """Create a mock catalog with no candidates."""
    catalog = MagicMock()
    catalog.find_by_topic = AsyncMock(return_value=[])
    return catalog


@pytest.fixture
def predictions() -> dict[str, int]:
    """Predicted difficulty per exercise id; 3 when absent."""
    return {}


@pytest.fixture
def tracker(predictions) -> MagicMock:
    """Create a mock tracker predicting from the predictions table."""

    async def _predict(exercise_id, user_id, context=None, pattern=None):
        return predictions.get(exercise_id, 3)

    tracker = MagicMock()
    tracker.predict_difficulty = AsyncMock(side_effect=_predict)
    tracker.resolve_pattern.return_value = None
    return tracker


@pytest.fixture
def scheduler() -> MagicMock:
    """Create a mock scheduler with nothing due."""
    scheduler = MagicMock()
    scheduler.get_due_for_review.return_value = []
    return scheduler


@pytest.fixture
def scorer(aggregator, catalog, tracker, scheduler) -> RecommendationScorer:
    """Create a scorer with a short strategy timeout."""
    return RecommendationScorer(aggregator, catalog, tracker, scheduler, strategy_timeout=0.5)


def _by_topic(**candidates):
    async def _find(topic, limit):
        return candidates.get(topic, [])[:limit]

    return _find


@pytest.mark.unit
class TestScoringRules:
    """Tests for the relevance and success-rate formulas."""

    def test_matched_difficulty(self, make_context) -> None:
        """Test 0.5 + 3 * 0.15 for a perfect match."""
        assert score_relevance(3, make_context(), "song") == pytest.approx(0.95)

    def test_distance_lowers_relevance(self, make_context) -> None:
        """Test each level of distance costs 0.15."""
        assert score_relevance(5, make_context(), "song") == pytest.approx(0.65)
        assert score_relevance(10, make_context(), "song") == 0.0

    def test_weakness_bonus_is_clamped(self, make_context) -> None:
        """Test weak topics get +0.2 but never exceed 1."""
        context = make_context(recent_weaknesses=["molt"])

        assert score_relevance(4, context, "molt") == pytest.approx(1.0)
        assert score_relevance(3, context, "molt") == 1.0

    def test_success_rate_bounds(self, make_context) -> None:
        """Test success estimates stay in [0.2, 0.95]."""
        context = make_context()

        assert estimate_success_rate(1, context) == 0.95
        assert estimate_success_rate(5, context) == pytest.approx(0.8)
        assert estimate_success_rate(10, context) == pytest.approx(0.3)

        beginner = make_context(current_level=1)
        assert estimate_success_rate(10, beginner) == 0.2


@pytest.mark.unit
class TestGetRecommendations:
    """Tests for the combined strategies."""

    @pytest.mark.asyncio
    async def test_new_learner_gets_nothing(self, scorer, catalog) -> None:
        """Test a learner without skills or reviews gets an empty list."""
        assert await scorer.get_recommendations("user-1") == []
        catalog.find_by_topic.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_context_failure_returns_empty(self, scorer, aggregator) -> None:
        """Test recommendation never raises when the context cannot be built."""
        aggregator.build_enhanced_context.side_effect = RuntimeError("boom")

        assert await scorer.get_recommendations("user-1") == []

    @pytest.mark.asyncio
    async def test_weakness_targeting(
        self, scorer, aggregator, catalog, make_context, make_pattern
    ) -> None:
        """Test the first two weaknesses are searched for three candidates each."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt", "song", "flight"]
        )
        catalog.find_by_topic.side_effect = _by_topic(
            molt=[make_pattern("m1", topic="molt")],
            flight=[make_pattern("f1", topic="flight")],
        )

        recommendations = await scorer.get_recommendations("user-1")

        searched = [c.args for c in catalog.find_by_topic.await_args_list]
        assert searched == [("molt", 3), ("song", 3)]
        assert [r.exercise_id for r in recommendations] == ["m1"]
        assert recommendations[0].reasoning == "Recommended to improve understanding of molt"
        assert recommendations[0].relevance_score == 1.0

    @pytest.mark.asyncio
    async def test_progressive_challenge_filters_on_prediction(
        self, scorer, aggregator, catalog, predictions, make_context, make_pattern
    ) -> None:
        """Test only candidates predicted above level + 1 are kept."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_strengths=["beak-id", "song"]
        )
        catalog.find_by_topic.side_effect = _by_topic(
            **{"beak-id": [make_pattern("easy"), make_pattern("hard"), make_pattern("extra")]}
        )
        predictions.update({"easy": 4, "hard": 5})

        recommendations = await scorer.get_recommendations("user-1")

        assert catalog.find_by_topic.await_args.args == ("beak-id", 2)
        assert [r.exercise_id for r in recommendations] == ["hard"]
        assert recommendations[0].reasoning == (
            "Challenge exercise to advance beyond current level in beak-id"
        )
        assert recommendations[0].predicted_difficulty == 5

    @pytest.mark.asyncio
    async def test_review_boost_may_exceed_one(
        self, scorer, scheduler, tracker, make_pattern
    ) -> None:
        """Test due reviews get their clamped relevance multiplied by 1.2."""
        scheduler.get_due_for_review.return_value = ["ex-r"]
        tracker.resolve_pattern.return_value = make_pattern("ex-r", topic="song")

        recommendations = await scorer.get_recommendations("user-1")

        scheduler.get_due_for_review.assert_called_once_with("user-1", 2)
        assert len(recommendations) == 1
        assert recommendations[0].relevance_score == pytest.approx(0.95 * 1.2)
        assert recommendations[0].reasoning == "Scheduled review to reinforce learning"

    @pytest.mark.asyncio
    async def test_review_without_record_is_skipped(
        self, scorer, scheduler, tracker
    ) -> None:
        """Test due exercises with no pattern or metrics are dropped."""
        scheduler.get_due_for_review.return_value = ["ghost"]

        assert await scorer.get_recommendations("user-1") == []
        tracker.predict_difficulty.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sorted_with_stable_ties_and_limit(
        self, scorer, aggregator, catalog, predictions, make_context, make_pattern
    ) -> None:
        """Test ranking by relevance with ties kept in strategy order."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt"]
        )
        catalog.find_by_topic.side_effect = _by_topic(
            molt=[
                make_pattern("far", topic="molt"),
                make_pattern("tie-1", topic="molt"),
                make_pattern("tie-2", topic="molt"),
            ]
        )
        predictions.update({"far": 7})

        recommendations = await scorer.get_recommendations("user-1", limit=2)

        assert [r.exercise_id for r in recommendations] == ["tie-1", "tie-2"]

    @pytest.mark.asyncio
    async def test_timed_out_strategy_is_dropped(
        self, aggregator, catalog, tracker, scheduler, make_context, make_pattern
    ) -> None:
        """Test a slow strategy contributes nothing while others still do."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt"]
        )

        async def _slow(topic, limit):
            await asyncio.sleep(5)
            return [make_pattern("late", topic=topic)]

        catalog.find_by_topic.side_effect = _slow
        scheduler.get_due_for_review.return_value = ["ex-r"]
        tracker.resolve_pattern.return_value = make_pattern("ex-r")
        scorer = RecommendationScorer(
            aggregator, catalog, tracker, scheduler, strategy_timeout=0.05
        )

        recommendations = await scorer.get_recommendations("user-1")

        assert [r.exercise_id for r in recommendations] == ["ex-r"]

    @pytest.mark.asyncio
    async def test_degraded_strategy_is_dropped(
        self, scorer, aggregator, catalog, scheduler, tracker, make_context, make_pattern
    ) -> None:
        """Test a strategy whose retrieval fails contributes nothing."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt"]
        )
        catalog.find_by_topic.side_effect = RetrievalDegraded("unreachable")
        scheduler.get_due_for_review.return_value = ["ex-r"]
        tracker.resolve_pattern.return_value = make_pattern("ex-r")

        recommendations = await scorer.get_recommendations("user-1")

        assert [r.exercise_id for r in recommendations] == ["ex-r"]

    @pytest.mark.asyncio
    async def test_unscorable_candidate_is_dropped(
        self, scorer, aggregator, catalog, tracker, make_context, make_pattern
    ) -> None:
        """Test a candidate whose prediction fails is skipped."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt"]
        )
        catalog.find_by_topic.side_effect = _by_topic(
            molt=[make_pattern("bad", topic="molt"), make_pattern("good", topic="molt")]
        )

        async def _predict(exercise_id, user_id, context=None, pattern=None):
            if exercise_id == "bad":
                raise ValueError("no prediction")
            return 3

        tracker.predict_difficulty.side_effect = _predict

        recommendations = await scorer.get_recommendations("user-1")

        assert [r.exercise_id for r in recommendations] == ["good"]


@pytest.mark.unit
class TestGetOptimalNextExercise:
    """Tests for single best exercise selection."""

    @pytest.mark.asyncio
    async def test_returns_top_candidate(
        self, scorer, aggregator, catalog, predictions, make_context, make_pattern
    ) -> None:
        """Test the highest scoring recommendation is returned."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt"]
        )
        catalog.find_by_topic.side_effect = _by_topic(
            molt=[make_pattern("far", topic="molt"), make_pattern("near", topic="molt")]
        )
        predictions.update({"far": 8})

        best = await scorer.get_optimal_next_exercise("user-1")

        assert best.exercise_id == "near"

    @pytest.mark.asyncio
    async def test_topic_filter(
        self, scorer, aggregator, catalog, scheduler, tracker, make_context, make_pattern
    ) -> None:
        """Test only candidates on the requested topic are considered."""
        aggregator.build_enhanced_context.return_value = make_context(
            recent_weaknesses=["molt"]
        )
        catalog.find_by_topic.side_effect = _by_topic(
            molt=[make_pattern("m1", topic="molt")]
        )
        scheduler.get_due_for_review.return_value = ["s1"]
        tracker.resolve_pattern.return_value = make_pattern("s1", topic="song")

        best = await scorer.get_optimal_next_exercise("user-1", topic="song")

        assert best.exercise_id == "s1"
        assert await scorer.get_optimal_next_exercise("user-1", topic="flight") is None

    @pytest.mark.asyncio
    async def test_no_candidates(self, scorer) -> None:
        """Test None is returned when nothing can be recommended."""
        assert await scorer.get_optimal_next_exercise("user-1") is None
