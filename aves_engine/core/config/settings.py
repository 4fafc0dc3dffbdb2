# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Engine configuration settings using Pydantic Settings.

Settings are loaded from environment variables (and an optional .env file)
with defaults suitable for local development. The Settings class aggregates
all subsettings; a cached singleton is provided via get_settings().

Example:
    >>> from aves_engine.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.recommendation.strategy_timeout_seconds
    5.0
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Skill store database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "aves"
    password: SecretStr = SecretStr("aves_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "aves_learning"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration.

    Attributes:
        host: Qdrant server host.
        http_port: HTTP API port.
        grpc_port: gRPC API port.
        api_key: Optional API key for authentication.
        prefer_grpc: Whether to prefer gRPC over HTTP.
        timeout: Request timeout in seconds.
        on_disk: Store collection vectors on disk.
    """

    model_config = SettingsConfigDict(
        env_prefix="QDRANT_",
        extra="ignore",
    )

    host: str = "localhost"
    http_port: int = 6333
    grpc_port: int = 6334
    api_key: SecretStr | None = None
    prefer_grpc: bool = True
    timeout: float = 30.0
    on_disk: bool = True

    @property
    def url(self) -> str:
        """Build the Qdrant HTTP URL."""
        return f"http://{self.host}:{self.http_port}"


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration.

    Uses LiteLLM for API-based embedding generation. Ollama models are
    called directly over httpx.

    Attributes:
        model: Model name in LiteLLM format (e.g., 'ollama/nomic-embed-text').
        dimension: Vector dimension (must match model output).
        batch_size: Batch size for embedding generation.
        api_base: Provider base URL.
        api_key: Provider API key.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        extra="ignore",
    )

    model: str = "ollama/nomic-embed-text"
    dimension: int = 768
    batch_size: int = 32
    api_base: str | None = "http://localhost:11434"
    api_key: SecretStr | None = None
    timeout: float = 60.0


class RecommendationSettings(BaseSettings):
    """Recommendation and scheduling tuning.

    Attributes:
        strategy_timeout_seconds: Upper bound for a single strategy's
            retrieval work before it contributes no candidates.
        min_similarity: Minimum similarity for topic candidate lookups.
        species_min_similarity: Minimum similarity for species lookups.
        require_approved: Only recommend exercises flagged as approved.
        due_review_order: Order of due-for-review matches. "storage" keeps
            insertion order, "overdue" sorts by next review ascending.
        ema_alpha: Smoothing factor for rolling time and hint averages.
        review_base_days: Base review interval in days.
        recent_experiences_limit: Episodes retrieved for context building.
    """

    model_config = SettingsConfigDict(
        env_prefix="RECOMMENDATION_",
        extra="ignore",
    )

    strategy_timeout_seconds: float = Field(default=5.0, gt=0)
    min_similarity: float = Field(default=0.6, ge=0.0, le=1.0)
    species_min_similarity: float = Field(default=0.5, ge=0.0, le=1.0)
    require_approved: bool = False
    due_review_order: Literal["storage", "overdue"] = "storage"
    ema_alpha: float = Field(default=0.2, gt=0.0, le=1.0)
    review_base_days: float = Field(default=1.0, ge=0.0)
    recent_experiences_limit: int = Field(default=10, ge=1)


class Settings(BaseSettings):
    """Main engine settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Skill store settings.
        qdrant: Qdrant settings.
        embedding: Embedding model settings.
        recommendation: Recommendation tuning.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    recommendation: RecommendationSettings = Field(default_factory=RecommendationSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Call clear_settings_cache() to reload settings from the environment.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache."""
    get_settings.cache_clear()
