# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Embedding service for API-based embedding generation.

Every semantic search in the engine embeds text first; raw strings are
never searched directly.

Supported providers:
- Ollama: nomic-embed-text (768d), mxbai-embed-large (1024d) - via direct httpx
- OpenAI: text-embedding-3-small (1536d), text-embedding-3-large (3072d) - via LiteLLM
- Cohere: embed-english-v3.0, embed-multilingual-v3.0 - via LiteLLM

Note: Ollama embeddings use direct httpx calls because LiteLLM doesn't
pass the Authorization header for authenticated Ollama endpoints.

Example:
    >>> service = EmbeddingService(settings.embedding)
    >>> vector = await service.embed_text("Topic: beak-id", content_type="context")
"""

import logging
from typing import Any, Literal, Optional

import httpx
import litellm
from litellm import aembedding

from aves_engine.core.config.settings import EmbeddingSettings

logger = logging.getLogger(__name__)

ContentType = Literal["text", "exercise", "context", "query"]

# Model dimension mapping for known embedding models
MODEL_DIMENSIONS: dict[str, int] = {
    "ollama/nomic-embed-text": 768,
    "ollama/mxbai-embed-large": 1024,
    "ollama/all-minilm": 384,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "embed-english-v3.0": 1024,
    "embed-multilingual-v3.0": 1024,
    "gemini/text-embedding-004": 768,
}


class EmbeddingError(Exception):
    """Exception raised when embedding generation fails.

    Attributes:
        message: Error description.
        model: Model that caused the error.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.model = model
        self.original_error = original_error
        super().__init__(self.message)


class EmbeddingService:
    """Service for generating text embeddings via LiteLLM.

    Attributes:
        model: The embedding model identifier in LiteLLM format.
        dimension: The output dimension of the embedding vectors.
        batch_size: Maximum number of texts to embed in a single batch.
    """

    def __init__(
        self,
        settings: EmbeddingSettings,
        model: Optional[str] = None,
        dimension: Optional[int] = None,
    ):
        """Initialize the embedding service.

        Args:
            settings: Embedding settings.
            model: Override for the configured model.
            dimension: Vector dimension. Auto-detected from model if not provided.
        """
        self._settings = settings
        self._model = model or settings.model
        self._batch_size = settings.batch_size

        if dimension is not None:
            self._dimension = dimension
        elif self._model in MODEL_DIMENSIONS:
            self._dimension = MODEL_DIMENSIONS[self._model]
        else:
            self._dimension = settings.dimension

        self._litellm_params = self._build_litellm_params()
        litellm.set_verbose = False

        logger.info(
            "EmbeddingService initialized with model=%s, dimension=%d, batch_size=%d",
            self._model,
            self._dimension,
            self._batch_size,
        )

    def _build_litellm_params(self) -> dict[str, Any]:
        """Build parameters for LiteLLM aembedding() calls.

        Returns:
            Dictionary with api_base and api_key if configured.
        """
        params: dict[str, Any] = {}

        if self._settings.api_base and not self._is_ollama_provider():
            params["api_base"] = self._settings.api_base

        if self._settings.api_key:
            params["api_key"] = self._settings.api_key.get_secret_value()

        return params

    def _is_ollama_provider(self) -> bool:
        return self._model.startswith("ollama/")

    async def _ollama_embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings using a direct Ollama API call.

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding vectors.

        Raises:
            EmbeddingError: If the API call fails.
        """
        model_name = self._model.removeprefix("ollama/")

        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key.get_secret_value()}"

        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                response = await client.post(
                    f"{self._settings.api_base}/api/embed",
                    headers=headers,
                    json={"model": model_name, "input": texts},
                )
                response.raise_for_status()
                data = response.json()
                return data.get("embeddings", [])

        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                message=f"Ollama API error: {e.response.status_code} - {e.response.text}",
                model=self._model,
                original_error=e,
            ) from e
        except Exception as e:
            raise EmbeddingError(
                message=f"Failed to call Ollama embedding API: {str(e)}",
                model=self._model,
                original_error=e,
            ) from e

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        if self._is_ollama_provider():
            return await self._ollama_embed(texts)

        response = await aembedding(
            model=self._model,
            input=texts,
            timeout=self._settings.timeout,
            **self._litellm_params,
        )
        return [item["embedding"] for item in response.data]

    @property
    def model(self) -> str:
        """Embedding model identifier in LiteLLM format."""
        return self._model

    @property
    def dimension(self) -> int:
        """Embedding vector dimension."""
        return self._dimension

    @property
    def batch_size(self) -> int:
        """Maximum number of texts per batch."""
        return self._batch_size

    async def embed_text(self, text: str, content_type: ContentType = "text") -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: Input text to embed.
            content_type: What the text describes; recorded in logs.

        Returns:
            Embedding vector as list of floats.

        Raises:
            EmbeddingError: If embedding generation fails.
            ValueError: If text is empty.
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        try:
            embeddings = await self._embed([text])
            embedding = embeddings[0] if embeddings else []

            logger.debug(
                "Generated %s embedding for text of length %d, dimension=%d",
                content_type,
                len(text),
                len(embedding),
            )

            return embedding

        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(
                "Failed to generate embedding: model=%s, text_length=%d, error=%s",
                self._model,
                len(text),
                str(e),
            )
            raise EmbeddingError(
                message=f"Failed to generate embedding: {str(e)}",
                model=self._model,
                original_error=e,
            ) from e

    async def embed_batch(
        self,
        texts: list[str],
        content_type: ContentType = "text",
    ) -> list[list[float]]:
        """Generate embedding vectors for multiple texts.

        Texts are sent in chunks of batch_size. Empty texts get a zero
        vector so the output stays aligned with the input.

        Args:
            texts: List of input texts to embed.
            content_type: What the texts describe; recorded in logs.

        Returns:
            List of embedding vectors, one per input text.

        Raises:
            EmbeddingError: If embedding generation fails.
            ValueError: If texts list is empty or all texts are empty.
        """
        if not texts:
            raise ValueError("Texts list cannot be empty")

        valid_indices: list[int] = []
        valid_texts: list[str] = []
        for i, text in enumerate(texts):
            if text and text.strip():
                valid_indices.append(i)
                valid_texts.append(text)

        if not valid_texts:
            raise ValueError("All provided texts are empty")

        all_embeddings: list[list[float]] = []

        try:
            for batch_idx in range(0, len(valid_texts), self._batch_size):
                batch = valid_texts[batch_idx : batch_idx + self._batch_size]
                all_embeddings.extend(await self._embed(batch))

            zero_vector = [0.0] * self._dimension
            result: list[list[float]] = [zero_vector for _ in range(len(texts))]
            for idx, embedding in zip(valid_indices, all_embeddings):
                result[idx] = embedding

            logger.debug(
                "Generated %d %s embeddings",
                len(all_embeddings),
                content_type,
            )

            return result

        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(
                "Failed to generate batch embeddings: model=%s, count=%d, error=%s",
                self._model,
                len(texts),
                str(e),
            )
            raise EmbeddingError(
                message=f"Failed to generate batch embeddings: {str(e)}",
                model=self._model,
                original_error=e,
            ) from e

    def __repr__(self) -> str:
        return (
            f"EmbeddingService(model={self._model!r}, "
            f"dimension={self._dimension}, batch_size={self._batch_size})"
        )
