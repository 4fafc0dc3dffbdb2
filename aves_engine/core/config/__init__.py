# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package.

Pydantic-based settings loaded from environment variables.

Example:
    >>> from aves_engine.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.environment
    'development'
"""

from aves_engine.core.config.settings import (
    DatabaseSettings,
    EmbeddingSettings,
    QdrantSettings,
    RecommendationSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "DatabaseSettings",
    "QdrantSettings",
    "EmbeddingSettings",
    "RecommendationSettings",
]
