# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User context aggregator.

Combines skill records and recent reflexion episodes into an
EnhancedUserContext, the per-request snapshot the recommendation scorer
works from. Nothing here is persisted.

Read-path policy: a failing skill store or episodic store degrades to an
empty history, so a learner without data (or with an unreachable store)
still gets a "start with basics" context instead of an error.
"""

import logging
import math

from aves_engine.core.errors import StorageError
from aves_engine.core.memory.episodic import EpisodicMemoryStore
from aves_engine.core.memory.reflexion import to_learning_episodes
from aves_engine.core.memory.skills import SkillTracker
from aves_engine.models.learning import (
    EnhancedUserContext,
    SkillEntry,
    UserProgressAnalysis,
)
from aves_engine.utils.datetime import days_ago, days_since, ensure_utc, utc_now
from aves_engine.utils.numbers import clamp, round_half_up

logger = logging.getLogger(__name__)

STRENGTH_THRESHOLD = 0.7
WEAKNESS_THRESHOLD = 0.6
STALE_AFTER_DAYS = 7
VELOCITY_DECAY_DAYS = 7
MAX_VELOCITY = 10.0

RECENT_EXPERIENCES_QUERY = "Recent learning activities"

FOCUS_NEW_LEARNER = "Start with basic ornithology concepts"
FOCUS_CONTINUE = "Continue practicing current skills"
FOCUS_DEGRADED = "Continue learning at your own pace"


def calculate_learning_velocity(skills: list[SkillEntry]) -> float:
    """Decay-weighted practice velocity on a 0-10 scale.

    Each skill contributes exercises_completed * success_rate * level,
    weighted by exp(-days_since_practice / 7) so recent practice dominates.
    The weighted mean is divided by 10 and clamped.
    """
    if not skills:
        return 0.0

    now = utc_now()
    total_velocity = 0.0
    total_weight = 0.0

    for skill in skills:
        # Clock skew can put last_practiced in the future
        elapsed = max(days_since(skill.last_practiced, now), 0.0)
        weight = math.exp(-elapsed / VELOCITY_DECAY_DAYS)
        velocity = skill.exercises_completed * skill.success_rate * skill.level

        total_velocity += velocity * weight
        total_weight += weight

    raw_velocity = total_velocity / total_weight if total_weight > 0 else 0.0
    return clamp(raw_velocity / 10, 0.0, MAX_VELOCITY)


def analyze_skills(skills: list[SkillEntry]) -> UserProgressAnalysis:
    """Split skills into strengths, weaknesses and suggested focus.

    Strengths are taken from the first three entries of the success-rate
    ranking and weaknesses from the last three, so with six or fewer
    skills one skill can appear in both lists.
    """
    if not skills:
        return UserProgressAnalysis(suggested_focus=[FOCUS_NEW_LEARNER])

    ranked = sorted(skills, key=lambda s: s.success_rate, reverse=True)

    strengths = [
        s.skill_name for s in ranked[:3] if s.success_rate > STRENGTH_THRESHOLD
    ]
    weaknesses = [
        s.skill_name for s in ranked[-3:] if s.success_rate < WEAKNESS_THRESHOLD
    ]

    stale_cutoff = days_ago(STALE_AFTER_DAYS)
    stale = [s.skill_name for s in skills if ensure_utc(s.last_practiced) < stale_cutoff]

    # dict keeps first-seen order
    focus = list(dict.fromkeys(weaknesses + stale[:2]))

    return UserProgressAnalysis(
        strengths=strengths,
        weaknesses=weaknesses,
        suggested_focus=focus or [FOCUS_CONTINUE],
    )


class UserContextAggregator:
    """Builds learner context from skills and episodic memory.

    Attributes:
        skill_tracker: Source of skill records.
        episodic_store: Source of recent reflexion episodes.
    """

    def __init__(
        self,
        skill_tracker: SkillTracker,
        episodic_store: EpisodicMemoryStore,
        recent_experiences_limit: int = 10,
    ) -> None:
        self._skills = skill_tracker
        self._episodic = episodic_store
        self._recent_limit = recent_experiences_limit

    async def _load_skills(self, user_id: str) -> list[SkillEntry] | None:
        """Fetch skills, returning None when the store is unavailable."""
        try:
            return await self._skills.get_user_skills(user_id)
        except StorageError as e:
            logger.warning("Skill lookup degraded for user %s: %s", user_id, str(e))
            return None

    async def build_enhanced_context(self, user_id: str) -> EnhancedUserContext:
        """Build the recommendation context of a user.

        Never raises on missing or unreachable history; an unknown user gets
        level 1, zero accuracy and the new-learner focus.

        Args:
            user_id: Learner identifier.

        Returns:
            EnhancedUserContext snapshot.
        """
        skills = await self._load_skills(user_id) or []

        total_exercises = sum(s.exercises_completed for s in skills)
        overall_accuracy = (
            sum(s.success_rate for s in skills) / len(skills) if skills else 0.0
        )
        current_level = (
            round_half_up(sum(s.level for s in skills) / len(skills)) if skills else 1
        )

        analysis = analyze_skills(skills)

        experiences = await self._episodic.query_experiences(
            user_id,
            RECENT_EXPERIENCES_QUERY,
            limit=self._recent_limit,
        )

        context = EnhancedUserContext(
            user_id=user_id,
            current_level=current_level,
            total_exercises=total_exercises,
            overall_accuracy=overall_accuracy,
            recent_strengths=analysis.strengths,
            recent_weaknesses=analysis.weaknesses,
            relevant_experiences=to_learning_episodes(experiences),
            suggested_focus=analysis.suggested_focus,
            learning_velocity=calculate_learning_velocity(skills),
        )

        logger.info(
            "Enhanced context built for user %s: level=%d, exercises=%d, accuracy=%.2f",
            user_id,
            current_level,
            total_exercises,
            overall_accuracy,
        )
        return context

    async def analyze_user_progress(
        self,
        user_id: str,
        skills: list[SkillEntry] | None = None,
    ) -> UserProgressAnalysis:
        """Identify strengths, weaknesses and suggested focus of a user.

        Args:
            user_id: Learner identifier.
            skills: Already loaded skills; fetched when omitted.

        Returns:
            UserProgressAnalysis. A generic focus is returned when the skill
            store is unavailable.
        """
        if skills is None:
            skills = await self._load_skills(user_id)
            if skills is None:
                return UserProgressAnalysis(suggested_focus=[FOCUS_DEGRADED])

        analysis = analyze_skills(skills)
        logger.debug(
            "Progress analyzed for user %s: %d strengths, %d weaknesses",
            user_id,
            len(analysis.strengths),
            len(analysis.weaknesses),
        )
        return analysis
