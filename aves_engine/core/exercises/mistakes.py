# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common mistakes per exercise type.

An append-only list of mistake descriptions for each exercise type, used
for feedback. Entries are de-duplicated on insert and never removed.
"""

import logging

from aves_engine.models.learning import ExercisePattern

logger = logging.getLogger(__name__)


class CommonMistakeRegistry:
    """In-process registry of frequently made errors by exercise type."""

    def __init__(self) -> None:
        self._mistakes: dict[str, list[str]] = {}

    def record_common_mistake(self, exercise_type: str, mistake: str) -> bool:
        """Append a mistake unless it is already known.

        Returns:
            True if the mistake was added.
        """
        mistakes = self._mistakes.setdefault(exercise_type, [])
        if mistake in mistakes:
            return False

        mistakes.append(mistake)
        logger.debug("Common mistake recorded for %s: %s", exercise_type, mistake)
        return True

    def get_common_mistakes(self, exercise_type: str) -> list[str]:
        """Mistakes recorded for an exercise type, oldest first."""
        return list(self._mistakes.get(exercise_type, []))

    def seed(self, exercise_type: str, mistakes: list[str]) -> None:
        """Merge known mistakes, keeping insertion order."""
        for mistake in mistakes:
            self.record_common_mistake(exercise_type, mistake)

    def seed_from_pattern(self, pattern: ExercisePattern) -> None:
        """Catalog listener: take over the mistakes of an indexed exercise."""
        if pattern.common_mistakes:
            self.seed(pattern.exercise_type, pattern.common_mistakes)
