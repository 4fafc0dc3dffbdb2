# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reflexion construction rules for learning episodes.

A LearningEpisode is turned into three independent natural-language
strings (situation, action, outcome), a reflection chosen from a fixed
score-band table, a success flag and a 1-10 difficulty estimate. All
functions here are pure and deterministic so generated text is stable
across runs.

Reflection bands:
    score >= 90, no hints, first attempt  -> excellent
    70 <= score < 90                      -> good progress (hint-dependent)
    50 <= score < 70                      -> moderate, review struggled concepts
    anything else                         -> challenging, focus on fundamentals

A score of 90 or more that needed hints or retries lands in the last band.
"""

from aves_engine.models.learning import (
    LearningEpisode,
    LearningPerformance,
    ReflexionEpisode,
)
from aves_engine.utils.numbers import clamp, format_number, round_half_up

# Scores assigned when rebuilding episodes from stored reflexions
RECONSTRUCTED_SUCCESS_SCORE = 85
RECONSTRUCTED_FAILURE_SCORE = 45


def build_situation(episode: LearningEpisode) -> str:
    """Describe what the learner was working on."""
    parts = [
        f"Learning {episode.topic}",
        f"Activity: {episode.activity}",
    ]

    if episode.species_involved:
        parts.append(f"Species: {', '.join(episode.species_involved)}")

    if episode.vocabulary_used:
        parts.append(f"Vocabulary: {', '.join(episode.vocabulary_used)}")

    return " | ".join(parts)


def build_action(episode: LearningEpisode) -> str:
    """Describe how the learner went about it."""
    performance = episode.performance

    return ", ".join(
        [
            f"Completed in {round_half_up(performance.time_spent)} seconds",
            f"{performance.attempts_used} attempts",
            f"{performance.hints_used} hints used",
        ]
    )


def build_outcome(episode: LearningEpisode) -> str:
    """Describe the result of the activity."""
    parts = [f"Score: {format_number(episode.performance.score)}%"]

    if episode.mastered_concepts:
        parts.append(f"Mastered: {', '.join(episode.mastered_concepts)}")

    if episode.struggled_with:
        parts.append(f"Struggled: {', '.join(episode.struggled_with)}")

    if episode.emotional_state:
        parts.append(f"Emotion: {episode.emotional_state.value}")

    return " | ".join(parts)


def generate_reflection(episode: LearningEpisode) -> str:
    """Pick the reflection text for an episode from the score-band table."""
    score = episode.performance.score
    hints = episode.performance.hints_used
    attempts = episode.performance.attempts_used
    topic = episode.topic

    if score >= 90 and hints == 0 and attempts == 1:
        return (
            f"Excellent performance! User demonstrated strong understanding of "
            f"{topic} with immediate success."
        )

    if 70 <= score < 90:
        advice = (
            "Consider reviewing concepts before attempting exercises."
            if hints > 0
            else "Keep practicing to achieve mastery."
        )
        return f"Good progress on {topic}. {advice}"

    if 50 <= score < 70:
        review = ", ".join(episode.struggled_with or []) or "core concepts"
        return f"Moderate understanding of {topic}. Recommend additional review of {review}."

    reflection = (
        f"Challenging topic requiring more practice. Focus on fundamentals of {topic}."
    )
    if episode.struggled_with:
        reflection += f" Specifically review: {', '.join(episode.struggled_with)}."
    return reflection


def generate_simple_reflection(
    situation: str,
    action: str,
    outcome: str,
    success: bool,
) -> str:
    """Two-branch reflection for directly recorded situation/action/outcome."""
    if success:
        return (
            f"Successfully handled similar situation. Strategy: {action} "
            f"led to positive outcome: {outcome}"
        )
    return (
        f"Learning opportunity identified. Situation: {situation}. Action taken: "
        f"{action} did not achieve desired outcome: {outcome}. "
        f"Consider alternative approaches."
    )


def evaluate_success(performance: LearningPerformance) -> bool:
    """A score of 70, or 50 with at most one hint and two attempts."""
    score = performance.score
    return score >= 70 or (
        score >= 50 and performance.hints_used <= 1 and performance.attempts_used <= 2
    )


def estimate_difficulty(performance: LearningPerformance) -> int:
    """Estimate how hard an activity was for the learner on a 1-10 scale.

    Inverse score, plus a time term capped at 2 (300 seconds per point),
    plus a help term (extra attempts and hints) capped at 3.
    """
    difficulty = 10 - performance.score / 10
    difficulty += min(performance.time_spent / 300, 2)
    difficulty += min((performance.attempts_used - 1) + performance.hints_used, 3)

    return int(clamp(round_half_up(difficulty), 1, 10))


def to_reflexion(episode: LearningEpisode) -> ReflexionEpisode:
    """Derive the storable reflexion record of a learning episode."""
    return ReflexionEpisode(
        user_id=episode.user_id,
        session_id=episode.session_id,
        timestamp=episode.timestamp,
        situation=build_situation(episode),
        action=build_action(episode),
        outcome=build_outcome(episode),
        reflection=generate_reflection(episode),
        success=evaluate_success(episode.performance),
        exercise_type=episode.activity,
        species_id=episode.species_involved[0] if episode.species_involved else None,
        difficulty=estimate_difficulty(episode.performance),
    )


def to_learning_episodes(reflexions: list[ReflexionEpisode]) -> list[LearningEpisode]:
    """Rebuild display episodes from stored reflexions.

    Reflexions do not keep numeric performance, so scores are stand-ins
    (85 for a success, 45 otherwise) and the remaining performance fields
    take their neutral values.
    """
    episodes = []
    for reflexion in reflexions:
        episodes.append(
            LearningEpisode(
                user_id=reflexion.user_id,
                session_id=reflexion.session_id,
                timestamp=reflexion.timestamp,
                topic=reflexion.exercise_type or "General Learning",
                activity=reflexion.exercise_type or "Exercise",
                performance=LearningPerformance(
                    score=(
                        RECONSTRUCTED_SUCCESS_SCORE
                        if reflexion.success
                        else RECONSTRUCTED_FAILURE_SCORE
                    ),
                    time_spent=0,
                    attempts_used=1,
                    hints_used=0,
                ),
                struggled_with=None if reflexion.success else [reflexion.situation],
                mastered_concepts=[reflexion.situation] if reflexion.success else None,
                species_involved=[reflexion.species_id] if reflexion.species_id else None,
            )
        )
    return episodes
