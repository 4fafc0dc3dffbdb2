# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Embedding service module using LiteLLM.

Example:
    >>> from aves_engine.core.intelligence.embeddings import EmbeddingService
    >>> service = EmbeddingService(settings.embedding)
    >>> vector = await service.embed_text("Species: barn-owl", content_type="context")
"""

from aves_engine.core.intelligence.embeddings.service import (
    EmbeddingError,
    EmbeddingService,
)

__all__ = ["EmbeddingError", "EmbeddingService"]
