# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intelligence module for AI-powered operations.

Provides embedding generation via LiteLLM, the first half of every
semantic retrieval the engine performs.
"""

from aves_engine.core.intelligence.embeddings import EmbeddingService

__all__ = ["EmbeddingService"]
