# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Vector storage infrastructure using Qdrant.

Backs the semantic retrieval used for exercise lookup and episodic memory.
"""

from aves_engine.infrastructure.vectors.qdrant_client import (
    QdrantError,
    QdrantVectorClient,
    SearchResult,
    point_id_for,
)

__all__ = [
    "QdrantError",
    "QdrantVectorClient",
    "SearchResult",
    "point_id_for",
]
