# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exercise catalog backed by semantic retrieval.

Exercise patterns are embedded on "Topic: .. | Question: .. | Answer: .."
and stored in the exercise_patterns Qdrant collection. Every lookup embeds
text first and searches with exact-match payload filters:

- type = "exercise" always
- topic for topic lookups
- species_involved for species lookups
- approved = true when only approved exercises may be recommended

Indexed patterns are also kept in memory as the canonical record used
for difficulty prediction. Listeners registered with on_indexed() are
notified of every indexed pattern (metrics and common-mistake seeding).
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from pydantic import ValidationError

from aves_engine.core.config.settings import RecommendationSettings
from aves_engine.core.errors import PersistError, RetrievalDegraded
from aves_engine.core.intelligence.embeddings import EmbeddingService
from aves_engine.infrastructure.vectors import QdrantVectorClient, SearchResult, point_id_for
from aves_engine.models.learning import ExercisePattern

logger = logging.getLogger(__name__)

# Qdrant collection name for exercise patterns
EXERCISE_COLLECTION = "exercise_patterns"

# Payload type tag of exercise points
EXERCISE_TYPE = "exercise"

# Patterns embedded and upserted per round trip when indexing in bulk
INDEX_BATCH_SIZE = 10

IndexListener = Callable[[ExercisePattern], Union[Awaitable[None], None]]


class ExerciseCatalog:
    """Indexes exercise patterns and finds them by topic, species or similarity.

    Attributes:
        embedding_service: Service for generating text embeddings.
        qdrant_client: Client for vector similarity search.
        settings: Similarity thresholds and approval filter.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        qdrant_client: QdrantVectorClient,
        settings: RecommendationSettings | None = None,
    ) -> None:
        self._embedding = embedding_service
        self._qdrant = qdrant_client
        self._settings = settings or RecommendationSettings()
        self._patterns: dict[str, ExercisePattern] = {}
        self._listeners: list[IndexListener] = []

    def on_indexed(self, listener: IndexListener) -> None:
        """Register a callback run for every successfully indexed pattern."""
        self._listeners.append(listener)

    def get(self, exercise_id: str) -> ExercisePattern | None:
        """Canonical pattern of an exercise, if known."""
        return self._patterns.get(exercise_id)

    def __len__(self) -> int:
        return len(self._patterns)

    async def ensure_collection_exists(self) -> None:
        """Create the exercise collection if it doesn't exist."""
        created = await self._qdrant.ensure_collection(
            EXERCISE_COLLECTION,
            vector_size=self._embedding.dimension,
            distance="Cosine",
        )
        if created:
            logger.info("Created %s collection", EXERCISE_COLLECTION)

    # ========== Indexing ==========

    async def index_exercise_pattern(self, pattern: ExercisePattern) -> None:
        """Index a single exercise pattern.

        Raises:
            PersistError: If embedding or storage fails.
        """
        await self.index_exercise_patterns([pattern])

    async def index_exercise_patterns(self, patterns: list[ExercisePattern]) -> int:
        """Index exercise patterns in batches.

        Each batch of up to 10 patterns is embedded in one call and upserted
        in one call. Batches already stored stay stored if a later one fails.

        Args:
            patterns: Patterns to index.

        Returns:
            Number of patterns indexed.

        Raises:
            PersistError: If embedding or storage of a batch fails.
        """
        if not patterns:
            return 0

        try:
            await self.ensure_collection_exists()
        except Exception as e:
            raise PersistError("Failed to prepare exercise collection", e) from e

        indexed = 0
        for start in range(0, len(patterns), INDEX_BATCH_SIZE):
            batch = patterns[start : start + INDEX_BATCH_SIZE]
            await self._index_batch(batch)
            indexed += len(batch)

        logger.info("Indexed %d exercise patterns", indexed)
        return indexed

    async def _index_batch(self, batch: list[ExercisePattern]) -> None:
        try:
            embeddings = await self._embedding.embed_batch(
                [p.embedding_text() for p in batch],
                content_type="exercise",
            )
            await self._qdrant.upsert(
                EXERCISE_COLLECTION,
                points=[
                    {
                        "id": point_id_for(f"exercise-{pattern.exercise_id}"),
                        "vector": embedding,
                        "payload": self._to_payload(pattern),
                    }
                    for pattern, embedding in zip(batch, embeddings)
                ],
            )
        except Exception as e:
            logger.error(
                "Failed to index exercise batch starting at %s: %s",
                batch[0].exercise_id,
                str(e),
            )
            raise PersistError("Failed to index exercise patterns", e) from e

        for pattern in batch:
            self._patterns[pattern.exercise_id] = pattern
            await self._notify(pattern)
            logger.debug(
                "Exercise pattern indexed: %s (topic=%s, difficulty=%s)",
                pattern.exercise_id,
                pattern.topic,
                pattern.difficulty,
            )

    async def _notify(self, pattern: ExercisePattern) -> None:
        for listener in self._listeners:
            result = listener(pattern)
            if inspect.isawaitable(result):
                await result

    # ========== Lookups ==========

    async def find_by_topic(self, topic: str, limit: int) -> list[ExercisePattern]:
        """Candidate exercises for a topic.

        Args:
            topic: Topic (skill) name.
            limit: Maximum number of candidates.

        Returns:
            Matching patterns, most similar first. Empty when nothing
            clears the similarity threshold.

        Raises:
            RetrievalDegraded: If embedding or search fails.
        """
        filters: dict[str, Any] = {"type": EXERCISE_TYPE, "topic": topic}
        if self._settings.require_approved:
            filters["approved"] = True

        results = await self._search(
            f"Topic: {topic}",
            content_type="context",
            limit=limit,
            min_score=self._settings.min_similarity,
            filters=filters,
        )
        return self._to_patterns(results)

    async def find_similar(self, exercise_id: str, limit: int = 5) -> list[ExercisePattern]:
        """Exercises similar in content to a known exercise.

        Returns:
            Up to limit patterns, excluding the exercise itself. Empty for an
            unknown exercise or when retrieval is degraded.
        """
        pattern = self._patterns.get(exercise_id)
        if pattern is None:
            logger.warning("Exercise %s not in catalog", exercise_id)
            return []

        try:
            results = await self._search(
                pattern.embedding_text(),
                content_type="exercise",
                limit=limit + 1,
                min_score=self._settings.min_similarity,
                filters={"type": EXERCISE_TYPE},
            )
        except RetrievalDegraded as e:
            logger.warning("Similar exercise lookup degraded for %s: %s", exercise_id, str(e))
            return []

        similar = [p for p in self._to_patterns(results) if p.exercise_id != exercise_id]
        return similar[:limit]

    async def find_for_species(self, species_id: str, limit: int = 10) -> list[ExercisePattern]:
        """Exercises that involve a species.

        Returns:
            Up to limit patterns. Empty when retrieval is degraded.
        """
        try:
            results = await self._search(
                f"Species: {species_id}",
                content_type="context",
                limit=limit,
                min_score=self._settings.species_min_similarity,
                filters={"type": EXERCISE_TYPE, "species_involved": species_id},
            )
        except RetrievalDegraded as e:
            logger.warning("Species exercise lookup degraded for %s: %s", species_id, str(e))
            return []

        patterns = self._to_patterns(results)
        logger.debug("Found %d exercises for species %s", len(patterns), species_id)
        return patterns

    async def _search(
        self,
        text: str,
        content_type: str,
        limit: int,
        min_score: float,
        filters: dict[str, Any],
    ) -> list[SearchResult]:
        try:
            vector = await self._embedding.embed_text(text, content_type=content_type)
            return await self._qdrant.search(
                EXERCISE_COLLECTION,
                query_vector=vector,
                limit=limit,
                score_threshold=min_score,
                filter_conditions=filters,
            )
        except Exception as e:
            raise RetrievalDegraded("Exercise search failed", e) from e

    def _to_patterns(self, results: list[SearchResult]) -> list[ExercisePattern]:
        patterns = []
        for result in results:
            pattern = self._from_payload(result.payload)
            if pattern is None:
                continue
            # Search hits become the canonical record for later predictions
            self._patterns.setdefault(pattern.exercise_id, pattern)
            patterns.append(pattern)
        return patterns

    @staticmethod
    def _to_payload(pattern: ExercisePattern) -> dict[str, Any]:
        return {"type": EXERCISE_TYPE, **pattern.model_dump(mode="json")}

    @staticmethod
    def _from_payload(payload: dict[str, Any]) -> ExercisePattern | None:
        data = {k: v for k, v in payload.items() if k != "type" and v is not None}
        try:
            return ExercisePattern(**data)
        except (TypeError, ValidationError) as e:
            logger.warning("Skipping malformed exercise payload: %s", str(e))
            return None
