# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Qdrant vector database client for similarity search.

Async wrapper around qdrant-client used as the engine's semantic
retrieval backend.

Collections:
- exercise_patterns: Exercise catalog (payload type="exercise")
- reflexion_episodes: Learner reflexion episodes (payload type="reflexion_episode")

Example:
    client = QdrantVectorClient(settings)
    await client.connect()

    results = await client.search(
        "exercise_patterns",
        query_vector=embedding,
        limit=3,
        score_threshold=0.6,
        filter_conditions={"type": "exercise", "topic": "beak-id"},
    )

    await client.close()
"""

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models
from qdrant_client.http.exceptions import UnexpectedResponse

if TYPE_CHECKING:
    from aves_engine.core.config.settings import Settings

# Namespace for deterministic point ids derived from domain keys
POINT_ID_NAMESPACE = uuid.UUID("6f1d3c2a-58b4-4e8f-9a0c-2d7e5b1f4a93")


class QdrantError(Exception):
    """Exception raised for Qdrant operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Qdrant error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the Qdrant error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


@dataclass
class SearchResult:
    """Result from a vector similarity search.

    Attributes:
        id: Point ID in Qdrant.
        score: Similarity score.
        payload: Associated metadata.
    """

    id: str
    score: float
    payload: dict[str, Any]


def point_id_for(key: str) -> str:
    """Derive a stable Qdrant point id from a domain key.

    Qdrant only accepts unsigned integers or UUIDs as point ids, so domain
    keys such as exercise ids are mapped through uuid5.

    Args:
        key: Domain key, e.g. "exercise-42".

    Returns:
        UUID string usable as a point id.
    """
    return str(uuid.uuid5(POINT_ID_NAMESPACE, key))


class QdrantVectorClient:
    """Async Qdrant client with a simplified search interface.

    Attributes:
        settings: Settings containing Qdrant configuration.
    """

    def __init__(self, settings: "Settings") -> None:
        """Initialize the Qdrant client.

        Args:
            settings: Settings containing Qdrant configuration.
        """
        self._settings = settings
        self._client: Optional[AsyncQdrantClient] = None

    async def connect(self) -> None:
        """Create the Qdrant client connection.

        Raises:
            QdrantError: If connection fails.
        """
        qdrant_settings = self._settings.qdrant
        api_key = (
            qdrant_settings.api_key.get_secret_value()
            if qdrant_settings.api_key
            else None
        )

        try:
            self._client = AsyncQdrantClient(
                host=qdrant_settings.host,
                port=qdrant_settings.http_port,
                grpc_port=qdrant_settings.grpc_port,
                api_key=api_key,
                prefer_grpc=qdrant_settings.prefer_grpc,
                timeout=qdrant_settings.timeout,
            )

            await self._client.get_collections()
        except Exception as e:
            raise QdrantError("Failed to connect to Qdrant", e) from e

    async def close(self) -> None:
        """Close the Qdrant client connection."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _ensure_connected(self) -> AsyncQdrantClient:
        """Ensure the client is connected.

        Returns:
            The Qdrant client instance.

        Raises:
            QdrantError: If not connected.
        """
        if self._client is None:
            raise QdrantError("Qdrant client not connected. Call connect() first.")
        return self._client

    # ========== Collection management ==========

    async def create_collection(
        self,
        collection_name: str,
        vector_size: int,
        distance: str = "Cosine",
    ) -> None:
        """Create a new collection.

        Args:
            collection_name: Name of the collection.
            vector_size: Dimension of the vectors.
            distance: Distance metric (Cosine, Euclid, Dot).

        Raises:
            QdrantError: If collection creation fails.
        """
        client = self._ensure_connected()

        distance_map = {
            "Cosine": models.Distance.COSINE,
            "Euclid": models.Distance.EUCLID,
            "Dot": models.Distance.DOT,
        }

        try:
            await client.create_collection(
                collection_name=collection_name,
                vectors_config=models.VectorParams(
                    size=vector_size,
                    distance=distance_map.get(distance, models.Distance.COSINE),
                    on_disk=self._settings.qdrant.on_disk,
                ),
            )
        except UnexpectedResponse as e:
            raise QdrantError(f"Failed to create collection: {collection_name}", e) from e

    async def collection_exists(self, collection_name: str) -> bool:
        """Check if a collection exists.

        Args:
            collection_name: Name of the collection.

        Returns:
            True if the collection exists, False otherwise.

        Raises:
            QdrantError: If the check fails.
        """
        client = self._ensure_connected()

        try:
            return await client.collection_exists(collection_name)
        except UnexpectedResponse as e:
            raise QdrantError(f"Failed to check collection: {collection_name}", e) from e

    async def ensure_collection(
        self,
        collection_name: str,
        vector_size: int,
        distance: str = "Cosine",
    ) -> bool:
        """Create a collection if it does not exist yet.

        Args:
            collection_name: Name of the collection.
            vector_size: Dimension of the vectors.
            distance: Distance metric.

        Returns:
            True if the collection was created by this call.
        """
        if await self.collection_exists(collection_name):
            return False
        await self.create_collection(collection_name, vector_size, distance)
        return True

    # ========== Vector operations ==========

    async def upsert(
        self,
        collection_name: str,
        points: list[dict[str, Any]],
    ) -> None:
        """Upsert points into a collection.

        Args:
            collection_name: Name of the collection.
            points: Points as {"id": str, "vector": list[float], "payload": dict}.

        Raises:
            QdrantError: If upsert fails.
        """
        client = self._ensure_connected()

        try:
            qdrant_points = [
                models.PointStruct(
                    id=p["id"],
                    vector=p["vector"],
                    payload=p.get("payload", {}),
                )
                for p in points
            ]

            await client.upsert(
                collection_name=collection_name,
                points=qdrant_points,
            )
        except UnexpectedResponse as e:
            raise QdrantError(f"Failed to upsert points to: {collection_name}", e) from e

    # ========== Search operations ==========

    async def search(
        self,
        collection_name: str,
        query_vector: list[float],
        limit: int = 5,
        score_threshold: Optional[float] = None,
        filter_conditions: Optional[dict[str, Any]] = None,
    ) -> list[SearchResult]:
        """Search for similar vectors in a collection.

        Every filter condition is an exact match; for list payload fields
        (e.g. species_involved) a point matches when any element equals
        the value.

        Args:
            collection_name: Name of the collection.
            query_vector: The query embedding vector.
            limit: Maximum number of results.
            score_threshold: Minimum similarity score.
            filter_conditions: Optional exact-match filter conditions.

        Returns:
            List of SearchResult objects, most similar first.

        Raises:
            QdrantError: If search fails.
        """
        client = self._ensure_connected()

        query_filter = None
        if filter_conditions:
            query_filter = models.Filter(
                must=[
                    models.FieldCondition(
                        key=key,
                        match=models.MatchValue(value=value),
                    )
                    for key, value in filter_conditions.items()
                ]
            )

        try:
            response = await client.query_points(
                collection_name=collection_name,
                query=query_vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=query_filter,
                with_payload=True,
            )

            return [
                SearchResult(
                    id=str(point.id),
                    score=point.score,
                    payload=point.payload or {},
                )
                for point in response.points
            ]
        except UnexpectedResponse as e:
            raise QdrantError(f"Failed to search in: {collection_name}", e) from e

    # ========== Health check ==========

    async def ping(self) -> bool:
        """Check if Qdrant is reachable.

        Returns:
            True if Qdrant responds, False otherwise.
        """
        try:
            client = self._ensure_connected()
            await client.get_collections()
            return True
        except Exception:
            return False
