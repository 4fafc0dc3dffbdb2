# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exercise recommendation scoring."""

from aves_engine.core.recommendations.scorer import (
    RecommendationScorer,
    estimate_success_rate,
    score_relevance,
)

__all__ = ["RecommendationScorer", "estimate_success_rate", "score_relevance"]
