# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner memory: skills, reflexion episodes and aggregated context.

- SkillTracker: per-skill mastery rows in PostgreSQL
- EpisodicMemoryStore: reflexion episodes in Qdrant
- UserContextAggregator: per-request learner snapshot
"""

from aves_engine.core.memory.context import (
    UserContextAggregator,
    analyze_skills,
    calculate_learning_velocity,
)
from aves_engine.core.memory.episodic import REFLEXION_COLLECTION, EpisodicMemoryStore
from aves_engine.core.memory.skills import SkillTracker

__all__ = [
    "REFLEXION_COLLECTION",
    "EpisodicMemoryStore",
    "SkillTracker",
    "UserContextAggregator",
    "analyze_skills",
    "calculate_learning_velocity",
]
