# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Episodic memory store for reflexion episodes.

Learning episodes are stored as reflexions (situation / action / outcome /
reflection) in Qdrant, embedded on their situation text, and retrieved by
semantic similarity scoped to a single user.

Writes fail loudly with PersistError. Reads degrade: an unreachable store,
a missing collection or an embedding failure yield an empty list and a
warning.

Example:
    store = EpisodicMemoryStore(
        embedding_service=embedding_service,
        qdrant_client=qdrant,
    )

    reflexion = await store.record_learning_episode(episode)

    experiences = await store.query_experiences(
        user_id="u-1",
        query_text="identifying raptors by silhouette",
        limit=5,
    )
"""

import logging
import uuid
from typing import Any

from pydantic import ValidationError

from aves_engine.core.errors import PersistError, RetrievalDegraded
from aves_engine.core.intelligence.embeddings import EmbeddingService
from aves_engine.core.memory.reflexion import generate_simple_reflection, to_reflexion
from aves_engine.infrastructure.vectors import QdrantVectorClient, SearchResult
from aves_engine.models.learning import LearningEpisode, ReflexionEpisode
from aves_engine.utils.datetime import format_iso, parse_iso, utc_now

logger = logging.getLogger(__name__)

# Qdrant collection name for reflexion episodes
REFLEXION_COLLECTION = "reflexion_episodes"

# Payload type tag of reflexion points
REFLEXION_TYPE = "reflexion_episode"


class EpisodicMemoryStore:
    """Records and retrieves reflexion episodes through semantic retrieval.

    Attributes:
        embedding_service: Service for generating text embeddings.
        qdrant_client: Client for vector similarity search.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        qdrant_client: QdrantVectorClient,
    ) -> None:
        """Initialize the episodic memory store.

        Args:
            embedding_service: Service for generating text embeddings.
            qdrant_client: Client for Qdrant vector database.
        """
        self._embedding = embedding_service
        self._qdrant = qdrant_client

    async def ensure_collection_exists(self) -> None:
        """Create the reflexion collection if it doesn't exist."""
        created = await self._qdrant.ensure_collection(
            REFLEXION_COLLECTION,
            vector_size=self._embedding.dimension,
            distance="Cosine",
        )
        if created:
            logger.info("Created %s collection", REFLEXION_COLLECTION)

    async def record_episode(self, episode: ReflexionEpisode) -> str:
        """Store a reflexion episode.

        Args:
            episode: Reflexion to store. Its situation text is embedded.

        Returns:
            Point id of the stored episode.

        Raises:
            PersistError: If embedding or the vector store write fails.
        """
        try:
            embedding = await self._embedding.embed_text(
                episode.situation, content_type="context"
            )
        except Exception as e:
            logger.error("Failed to generate reflexion embedding: %s", str(e))
            raise PersistError("Failed to generate reflexion embedding", e) from e

        point_id = str(uuid.uuid4())

        try:
            await self.ensure_collection_exists()
            await self._qdrant.upsert(
                REFLEXION_COLLECTION,
                points=[
                    {
                        "id": point_id,
                        "vector": embedding,
                        "payload": self._to_payload(episode),
                    }
                ],
            )
        except Exception as e:
            logger.error(
                "Failed to store reflexion episode for user %s: %s",
                episode.user_id,
                str(e),
            )
            raise PersistError("Failed to store reflexion episode", e) from e

        logger.debug(
            "Recorded reflexion episode %s for user %s (success=%s)",
            point_id,
            episode.user_id,
            episode.success,
        )
        return point_id

    async def record_learning_episode(self, episode: LearningEpisode) -> ReflexionEpisode:
        """Derive a reflexion from a learning episode and store it.

        Args:
            episode: Completed learning activity.

        Returns:
            The stored ReflexionEpisode.

        Raises:
            PersistError: If the write fails.
        """
        reflexion = to_reflexion(episode)
        await self.record_episode(reflexion)

        logger.info(
            "Learning episode recorded for user %s: topic=%s, success=%s, difficulty=%s",
            episode.user_id,
            episode.topic,
            reflexion.success,
            reflexion.difficulty,
        )
        return reflexion

    async def record_reflection(
        self,
        user_id: str,
        session_id: str,
        situation: str,
        action: str,
        outcome: str,
        success: bool,
    ) -> ReflexionEpisode:
        """Record a single situation/action/outcome with a generated reflection.

        Raises:
            PersistError: If the write fails.
        """
        reflexion = ReflexionEpisode(
            user_id=user_id,
            session_id=session_id,
            timestamp=utc_now(),
            situation=situation,
            action=action,
            outcome=outcome,
            reflection=generate_simple_reflection(situation, action, outcome, success),
            success=success,
        )
        await self.record_episode(reflexion)
        return reflexion

    async def query_experiences(
        self,
        user_id: str,
        query_text: str,
        limit: int = 10,
    ) -> list[ReflexionEpisode]:
        """Find a user's episodes most similar to a query.

        Args:
            user_id: Whose episodes to search.
            query_text: Natural language description of the situation.
            limit: Maximum number of episodes.

        Returns:
            Up to limit episodes ordered by similarity descending. Empty
            when retrieval is degraded.
        """
        try:
            results = await self._search(user_id, query_text, limit)
        except RetrievalDegraded as e:
            logger.warning(
                "Experience retrieval degraded for user %s: %s", user_id, str(e)
            )
            return []

        episodes = []
        for result in results:
            episode = self._from_payload(result.payload)
            if episode is not None:
                episodes.append(episode)

        logger.debug(
            "Retrieved %d experiences for user %s", len(episodes), user_id
        )
        return episodes

    async def _search(
        self,
        user_id: str,
        query_text: str,
        limit: int,
    ) -> list[SearchResult]:
        try:
            if not await self._qdrant.collection_exists(REFLEXION_COLLECTION):
                raise RetrievalDegraded(f"Collection {REFLEXION_COLLECTION} does not exist")

            query_embedding = await self._embedding.embed_text(
                query_text, content_type="query"
            )

            results = await self._qdrant.search(
                REFLEXION_COLLECTION,
                query_vector=query_embedding,
                limit=limit,
                filter_conditions={"type": REFLEXION_TYPE, "user_id": user_id},
            )
        except RetrievalDegraded:
            raise
        except Exception as e:
            raise RetrievalDegraded("Failed to search reflexion episodes", e) from e

        if not results:
            raise RetrievalDegraded("No matching reflexion episodes")

        return results

    @staticmethod
    def _to_payload(episode: ReflexionEpisode) -> dict[str, Any]:
        return {
            "type": REFLEXION_TYPE,
            "user_id": episode.user_id,
            "session_id": episode.session_id,
            "timestamp": format_iso(episode.timestamp),
            "situation": episode.situation,
            "action": episode.action,
            "outcome": episode.outcome,
            "reflection": episode.reflection,
            "success": episode.success,
            "exercise_type": episode.exercise_type,
            "species_id": episode.species_id,
            "difficulty": episode.difficulty,
        }

    @staticmethod
    def _from_payload(payload: dict[str, Any]) -> ReflexionEpisode | None:
        try:
            return ReflexionEpisode(
                user_id=payload["user_id"],
                session_id=payload["session_id"],
                timestamp=parse_iso(payload.get("timestamp")) or utc_now(),
                situation=payload.get("situation", ""),
                action=payload.get("action", ""),
                outcome=payload.get("outcome", ""),
                reflection=payload.get("reflection", ""),
                success=bool(payload.get("success", False)),
                exercise_type=payload.get("exercise_type"),
                species_id=payload.get("species_id"),
                difficulty=payload.get("difficulty"),
            )
        except (KeyError, ValueError, TypeError, AttributeError, ValidationError) as e:
            logger.warning("Skipping malformed reflexion payload: %s", str(e))
            return None
