# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Spaced repetition scheduling for exercise reviews.

A deliberately simple exponential backoff, not SM-2 or FSRS:

- success: consecutive_successes += 1, interval_multiplier *= 2
- failure: consecutive_successes = 0, interval_multiplier = 1
- next_review = now + base_days * interval_multiplier

Due checks are pull-based: nothing ticks in the background, an exercise is
due when its next_review is not in the future at query time.

Example:
    scheduler = SpacedRepetitionScheduler()
    state = await scheduler.update("u-1", "ex-7", success=True)
    due = scheduler.get_due_for_review("u-1", limit=2)
"""

import logging
from datetime import timedelta
from typing import Literal

from aves_engine.core.exercises.arena import KeyedArena
from aves_engine.models.learning import SpacedRepetitionState
from aves_engine.utils.datetime import utc_now

logger = logging.getLogger(__name__)

DueReviewOrder = Literal["storage", "overdue"]


class SpacedRepetitionScheduler:
    """Per (user, exercise) review schedule.

    Attributes:
        base_days: Review interval for a multiplier of 1.
        due_order: "storage" returns due exercises in first-scheduled order,
            "overdue" returns the longest overdue first.
    """

    def __init__(
        self,
        base_days: float = 1.0,
        due_order: DueReviewOrder = "storage",
    ) -> None:
        self._base_days = base_days
        self._due_order = due_order
        self._states: KeyedArena[tuple[str, str], SpacedRepetitionState] = KeyedArena(
            SpacedRepetitionState
        )

    async def update(
        self,
        user_id: str,
        exercise_id: str,
        success: bool,
    ) -> SpacedRepetitionState:
        """Advance or reset the schedule after an attempt.

        Args:
            user_id: Learner identifier.
            exercise_id: Attempted exercise.
            success: Whether the attempt succeeded.

        Returns:
            The new schedule state.
        """

        def _apply(state: SpacedRepetitionState) -> SpacedRepetitionState:
            now = utc_now()
            if success:
                consecutive = state.consecutive_successes + 1
                multiplier = state.interval_multiplier * 2
            else:
                consecutive = 0
                multiplier = 1.0

            return SpacedRepetitionState(
                last_attempt=now,
                consecutive_successes=consecutive,
                next_review=now + timedelta(days=self._base_days * multiplier),
                interval_multiplier=multiplier,
            )

        state = await self._states.mutate((user_id, exercise_id), _apply)

        logger.debug(
            "Review scheduled for user %s, exercise %s: multiplier=%s, next=%s",
            user_id,
            exercise_id,
            state.interval_multiplier,
            state.next_review.isoformat(),
        )
        return state

    def get_state(self, user_id: str, exercise_id: str) -> SpacedRepetitionState | None:
        """Current schedule of a (user, exercise) pair, if any."""
        return self._states.get((user_id, exercise_id))

    def get_due_for_review(self, user_id: str, limit: int) -> list[str]:
        """Exercise ids of a user whose review is due.

        Args:
            user_id: Learner identifier.
            limit: Maximum number of ids.

        Returns:
            Up to limit exercise ids with next_review <= now.
        """
        if limit <= 0:
            return []

        now = utc_now()
        due: list[tuple[str, SpacedRepetitionState]] = []

        for (owner, exercise_id), state in self._states.items():
            if owner != user_id or state.next_review > now:
                continue
            due.append((exercise_id, state))
            # Storage order may stop early; overdue order needs the full scan
            if self._due_order == "storage" and len(due) >= limit:
                break

        if self._due_order == "overdue":
            due.sort(key=lambda item: item[1].next_review)

        return [exercise_id for exercise_id, _ in due[:limit]]
