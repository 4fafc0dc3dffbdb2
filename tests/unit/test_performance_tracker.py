# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for PerformanceTracker.

Covers rolling metrics, review rescheduling and personalized difficulty
prediction.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from aves_engine.core.exercises.performance import (
    PerformanceTracker,
    StaticSpeciesKnowledge,
    topic_familiarity,
)
from aves_engine.core.exercises.spaced_repetition import SpacedRepetitionScheduler


@pytest.fixture
def catalog() -> MagicMock:
    """Create a mock catalog that knows no exercises."""
    catalog = MagicMock()
    catalog.get.return_value = None
    return catalog


@pytest.fixture
def aggregator(make_context) -> MagicMock:
    """Create a mock aggregator returning a level 3 context."""
    aggregator = MagicMock()
    aggregator.build_enhanced_context = AsyncMock(return_value=make_context())
    return aggregator


@pytest.fixture
def scheduler() -> SpacedRepetitionScheduler:
    """Create a real scheduler."""
    return SpacedRepetitionScheduler()


@pytest.fixture
def tracker(catalog, scheduler, aggregator) -> PerformanceTracker:
    """Create a tracker with default species knowledge."""
    return PerformanceTracker(catalog, scheduler, aggregator)


@pytest.mark.unit
class TestRecordAttempt:
    """Tests for rolling metrics."""

    @pytest.mark.asyncio
    async def test_first_attempt_averages(self, tracker) -> None:
        """Test the first sample enters the EMA at weight 0.2."""
        metrics = await tracker.record_attempt("ex-1", "user-1", True, 100, 2)

        assert metrics.total_attempts == 1
        assert metrics.successful_attempts == 1
        assert metrics.avg_time_spent == pytest.approx(20.0)
        assert metrics.avg_hints_used == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_average_approaches_but_never_reaches_sample(self, tracker) -> None:
        """Test repeated identical samples converge from below."""
        for _ in range(20):
            metrics = await tracker.record_attempt("ex-1", "user-1", True, 100, 0)

        assert 95 < metrics.avg_time_spent < 100

    @pytest.mark.asyncio
    async def test_success_lowers_difficulty(self, tracker) -> None:
        """Test a success rate above 0.9 lowers difficulty by 0.5."""
        metrics = await tracker.record_attempt("ex-1", "user-1", True, 30, 0)

        assert metrics.calculated_difficulty == 4.5

    @pytest.mark.asyncio
    async def test_failure_raises_difficulty(self, tracker) -> None:
        """Test a success rate below 0.5 raises difficulty by 0.5."""
        metrics = await tracker.record_attempt("ex-1", "user-1", False, 30, 0)

        assert metrics.calculated_difficulty == 5.5

    @pytest.mark.asyncio
    async def test_middle_success_rate_keeps_difficulty(self, tracker) -> None:
        """Test a success rate within [0.5, 0.9] leaves difficulty alone."""
        await tracker.record_attempt("ex-1", "user-1", False, 30, 0)
        metrics = await tracker.record_attempt("ex-1", "user-1", True, 30, 0)

        assert metrics.success_rate == 0.5
        assert metrics.calculated_difficulty == 5.5

    @pytest.mark.asyncio
    async def test_difficulty_is_bounded(self, tracker) -> None:
        """Test difficulty never leaves [1, 10]."""
        for _ in range(15):
            metrics = await tracker.record_attempt("ex-1", "user-1", True, 30, 0)

        assert metrics.calculated_difficulty == 1.0

    @pytest.mark.asyncio
    async def test_attempt_reschedules_review(self, tracker, scheduler) -> None:
        """Test the learner's review schedule advances with the attempt."""
        await tracker.record_attempt("ex-1", "user-1", True, 30, 0)

        state = scheduler.get_state("user-1", "ex-1")
        assert state is not None
        assert state.interval_multiplier == 2.0


@pytest.mark.unit
class TestSeedMetrics:
    """Tests for seeding metrics from indexed patterns."""

    @pytest.mark.asyncio
    async def test_seed_from_pattern(self, tracker, make_pattern) -> None:
        """Test pattern statistics become the initial metrics."""
        pattern = make_pattern(
            "ex-1", difficulty=7, times_attempted=10, avg_accuracy=0.75, avg_completion_time=40
        )

        await tracker.seed_metrics(pattern)

        metrics = tracker.get_metrics("ex-1")
        assert metrics.total_attempts == 10
        assert metrics.successful_attempts == 8
        assert metrics.avg_time_spent == 40
        assert metrics.calculated_difficulty == 7

    @pytest.mark.asyncio
    async def test_minimal_pattern_from_metrics(self, tracker) -> None:
        """Test exercises outside the catalog resolve to a metrics stand-in."""
        await tracker.record_attempt("ex-9", "user-1", False, 30, 0)

        pattern = tracker.resolve_pattern("ex-9")

        assert pattern.exercise_id == "ex-9"
        assert pattern.difficulty == 5.5
        assert pattern.topic == "unknown"
        assert tracker.resolve_pattern("never-seen") is None


@pytest.mark.unit
class TestPredictDifficulty:
    """Tests for personalized difficulty prediction."""

    def test_topic_familiarity(self, make_context) -> None:
        """Test familiarity from strengths and weaknesses."""
        context = make_context(recent_strengths=["beak-id"], recent_weaknesses=["molt"])

        assert topic_familiarity("beak-id", context) == 0.8
        assert topic_familiarity("molt", context) == 0.2
        assert topic_familiarity("song", context) == 0.5
        assert topic_familiarity(None, context) == 0.5

    @pytest.mark.asyncio
    async def test_neutral_topic(self, tracker, make_pattern, make_context) -> None:
        """Test 5 + (5 - 3) * 0.5 - 0.5 * 2 = 5."""
        predicted = await tracker.predict_difficulty(
            "ex-1", "user-1", context=make_context(), pattern=make_pattern("ex-1")
        )

        assert predicted == 5

    @pytest.mark.asyncio
    async def test_strength_and_weakness(self, tracker, make_pattern, make_context) -> None:
        """Test familiar topics predict easier and weak topics harder."""
        pattern = make_pattern("ex-1")

        strong = await tracker.predict_difficulty(
            "ex-1", "user-1", make_context(recent_strengths=["beak-id"]), pattern
        )
        weak = await tracker.predict_difficulty(
            "ex-1", "user-1", make_context(recent_weaknesses=["beak-id"]), pattern
        )

        assert strong == 4
        assert weak == 6

    @pytest.mark.asyncio
    async def test_species_knowledge_lowers_prediction(
        self, tracker, make_pattern, make_context
    ) -> None:
        """Test 5 + 1 - 1 - 0.5 * 1.5 = 4.25 rounds to 4."""
        pattern = make_pattern("ex-1", species_involved=["barn-owl"])

        predicted = await tracker.predict_difficulty("ex-1", "user-1", make_context(), pattern)

        assert predicted == 4

    @pytest.mark.asyncio
    async def test_clamped_to_ten(self, tracker, make_pattern, make_context) -> None:
        """Test very hard exercises for beginners clamp to 10."""
        predicted = await tracker.predict_difficulty(
            "ex-1", "user-1", make_context(current_level=1), make_pattern("ex-1", difficulty=10)
        )

        assert predicted == 10

    @pytest.mark.asyncio
    async def test_unknown_exercise_uses_default_base(
        self, tracker, aggregator, make_context
    ) -> None:
        """Test an unknown exercise is rated from base 5 and a built context."""
        predicted = await tracker.predict_difficulty("missing", "user-1")

        assert predicted == 5
        aggregator.build_enhanced_context.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio
    async def test_uses_catalog_pattern(self, tracker, catalog, make_pattern, make_context) -> None:
        """Test the catalog pattern is used when none is passed."""
        catalog.get.return_value = make_pattern("ex-1", difficulty=9)

        predicted = await tracker.predict_difficulty("ex-1", "user-1", make_context())

        # 9 + 3 - 1 = 11, clamped
        assert predicted == 10
        catalog.get.assert_called_with("ex-1")

    @pytest.mark.parametrize("knowledge", [float("nan"), float("inf"), float("-inf"), 7.0])
    @pytest.mark.asyncio
    async def test_prediction_always_in_range(
        self, catalog, scheduler, aggregator, make_pattern, make_context, knowledge
    ) -> None:
        """Test odd species knowledge values still yield an int in [1, 10]."""
        tracker = PerformanceTracker(
            catalog, scheduler, aggregator, species_knowledge=StaticSpeciesKnowledge(knowledge)
        )
        pattern = make_pattern("ex-1", species_involved=["kestrel"])

        predicted = await tracker.predict_difficulty("ex-1", "user-1", make_context(), pattern)

        assert isinstance(predicted, int)
        assert 1 <= predicted <= 10
