# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exercise catalog, performance tracking and review scheduling."""

from aves_engine.core.exercises.arena import KeyedArena
from aves_engine.core.exercises.catalog import EXERCISE_COLLECTION, ExerciseCatalog
from aves_engine.core.exercises.mistakes import CommonMistakeRegistry
from aves_engine.core.exercises.performance import (
    PerformanceTracker,
    SpeciesKnowledgeProvider,
    StaticSpeciesKnowledge,
)
from aves_engine.core.exercises.spaced_repetition import SpacedRepetitionScheduler

__all__ = [
    "EXERCISE_COLLECTION",
    "CommonMistakeRegistry",
    "ExerciseCatalog",
    "KeyedArena",
    "PerformanceTracker",
    "SpacedRepetitionScheduler",
    "SpeciesKnowledgeProvider",
    "StaticSpeciesKnowledge",
]
