# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recommendation engine facade.

Wires the skill store, semantic retrieval, memory components, exercise
tracking and scoring together and exposes the operations callers use.
The engine owns its connections: call start() before use and close()
when done, or use it as an async context manager.

Example:
    from aves_engine.core.config import get_settings
    from aves_engine.engine import RecommendationEngine

    engine = RecommendationEngine.from_settings(get_settings())
    async with engine:
        await engine.index_exercise_patterns(patterns)
        await engine.record_attempt("ex-1", "u-1", success=True, time_spent=42, hints_used=0)
        recommendations = await engine.get_recommendations("u-1", limit=5)
"""

from typing import TYPE_CHECKING

from aves_engine.core.exercises import (
    CommonMistakeRegistry,
    ExerciseCatalog,
    PerformanceTracker,
    SpacedRepetitionScheduler,
    SpeciesKnowledgeProvider,
)
from aves_engine.core.intelligence.embeddings import EmbeddingService
from aves_engine.core.memory import EpisodicMemoryStore, SkillTracker, UserContextAggregator
from aves_engine.core.recommendations import RecommendationScorer
from aves_engine.infrastructure.database import DatabaseManager
from aves_engine.infrastructure.vectors import QdrantVectorClient
from aves_engine.models.learning import (
    EnhancedUserContext,
    ExercisePattern,
    ExerciseRecommendation,
    LearningEpisode,
    PerformanceMetrics,
    ReflexionEpisode,
    SkillEntry,
    UserProgressAnalysis,
)
from aves_engine.utils.logging import get_logger, log_context

if TYPE_CHECKING:
    from aves_engine.core.config.settings import Settings

logger = get_logger(__name__)


class RecommendationEngine:
    """Single entry point for learner tracking and recommendations.

    Attributes:
        skills: Skill tracker.
        episodic: Episodic memory store.
        aggregator: User context aggregator.
        catalog: Exercise catalog.
        tracker: Performance tracker.
        scheduler: Spaced repetition scheduler.
        mistakes: Common mistake registry.
        scorer: Recommendation scorer.
    """

    def __init__(
        self,
        settings: "Settings",
        db_manager: DatabaseManager,
        qdrant_client: QdrantVectorClient,
        embedding_service: EmbeddingService,
        species_knowledge: SpeciesKnowledgeProvider | None = None,
    ) -> None:
        """Wire all components on top of the given adapters.

        Args:
            settings: Engine settings.
            db_manager: Skill store connection manager.
            qdrant_client: Vector database client.
            embedding_service: Embedding service.
            species_knowledge: Species familiarity provider; a constant 0.5
                when omitted.
        """
        self._settings = settings
        self._db = db_manager
        self._qdrant = qdrant_client
        tuning = settings.recommendation

        self.skills = SkillTracker(db_manager)
        self.episodic = EpisodicMemoryStore(embedding_service, qdrant_client)
        self.aggregator = UserContextAggregator(
            self.skills,
            self.episodic,
            recent_experiences_limit=tuning.recent_experiences_limit,
        )
        self.catalog = ExerciseCatalog(embedding_service, qdrant_client, tuning)
        self.scheduler = SpacedRepetitionScheduler(
            base_days=tuning.review_base_days,
            due_order=tuning.due_review_order,
        )
        self.tracker = PerformanceTracker(
            self.catalog,
            self.scheduler,
            self.aggregator,
            species_knowledge=species_knowledge,
            ema_alpha=tuning.ema_alpha,
        )
        self.mistakes = CommonMistakeRegistry()
        self.scorer = RecommendationScorer(
            self.aggregator,
            self.catalog,
            self.tracker,
            self.scheduler,
            strategy_timeout=tuning.strategy_timeout_seconds,
        )

        self.catalog.on_indexed(self.tracker.seed_metrics)
        self.catalog.on_indexed(self.mistakes.seed_from_pattern)

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        species_knowledge: SpeciesKnowledgeProvider | None = None,
    ) -> "RecommendationEngine":
        """Build an engine with adapters created from settings."""
        return cls(
            settings,
            db_manager=DatabaseManager(settings),
            qdrant_client=QdrantVectorClient(settings),
            embedding_service=EmbeddingService(settings.embedding),
            species_knowledge=species_knowledge,
        )

    async def start(self, create_tables: bool = False) -> None:
        """Connect the skill store and vector database.

        Args:
            create_tables: Create the skill table if missing.
        """
        await self._db.connect(create_tables=create_tables)
        await self._qdrant.connect()
        await self.episodic.ensure_collection_exists()
        await self.catalog.ensure_collection_exists()
        logger.info("Recommendation engine started", environment=self._settings.environment)

    async def close(self) -> None:
        """Release all connections."""
        await self._qdrant.close()
        await self._db.close()
        logger.info("Recommendation engine stopped")

    async def __aenter__(self) -> "RecommendationEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ========== Learner state ==========

    async def update_skill(
        self,
        user_id: str,
        skill_name: str,
        level: int,
        exercises_completed: int,
        success_rate: float,
    ) -> SkillEntry:
        """Upsert a learner's skill record. Raises StorageError on failure."""
        with log_context(user_id=user_id):
            return await self.skills.update_skill(
                user_id, skill_name, level, exercises_completed, success_rate
            )

    async def update_skill_level(
        self, user_id: str, skill_name: str, new_level: int
    ) -> SkillEntry | None:
        with log_context(user_id=user_id):
            return await self.skills.update_skill_level(user_id, skill_name, new_level)

    async def record_learning_episode(self, episode: LearningEpisode) -> ReflexionEpisode:
        """Store a learning episode as a reflexion. Raises PersistError on failure."""
        with log_context(user_id=episode.user_id):
            return await self.episodic.record_learning_episode(episode)

    async def record_reflection(
        self,
        user_id: str,
        session_id: str,
        situation: str,
        action: str,
        outcome: str,
        success: bool,
    ) -> ReflexionEpisode:
        with log_context(user_id=user_id):
            return await self.episodic.record_reflection(
                user_id, session_id, situation, action, outcome, success
            )

    async def query_experiences(
        self, user_id: str, query_text: str, limit: int = 10
    ) -> list[ReflexionEpisode]:
        with log_context(user_id=user_id):
            return await self.episodic.query_experiences(user_id, query_text, limit)

    async def build_enhanced_context(self, user_id: str) -> EnhancedUserContext:
        with log_context(user_id=user_id):
            return await self.aggregator.build_enhanced_context(user_id)

    async def analyze_user_progress(self, user_id: str) -> UserProgressAnalysis:
        with log_context(user_id=user_id):
            return await self.aggregator.analyze_user_progress(user_id)

    # ========== Exercises ==========

    async def index_exercise_pattern(self, pattern: ExercisePattern) -> None:
        await self.catalog.index_exercise_pattern(pattern)

    async def index_exercise_patterns(self, patterns: list[ExercisePattern]) -> int:
        return await self.catalog.index_exercise_patterns(patterns)

    async def find_similar_exercises(
        self, exercise_id: str, limit: int = 5
    ) -> list[ExercisePattern]:
        return await self.catalog.find_similar(exercise_id, limit)

    async def get_exercises_for_species(
        self, species_id: str, limit: int = 10
    ) -> list[ExercisePattern]:
        return await self.catalog.find_for_species(species_id, limit)

    async def record_attempt(
        self,
        exercise_id: str,
        user_id: str,
        success: bool,
        time_spent: float,
        hints_used: int,
    ) -> PerformanceMetrics:
        """Record an exercise attempt and reschedule its review."""
        with log_context(user_id=user_id):
            return await self.tracker.record_attempt(
                exercise_id, user_id, success, time_spent, hints_used
            )

    async def predict_difficulty(self, exercise_id: str, user_id: str) -> int:
        with log_context(user_id=user_id):
            return await self.tracker.predict_difficulty(exercise_id, user_id)

    def record_common_mistake(self, exercise_type: str, mistake: str) -> bool:
        return self.mistakes.record_common_mistake(exercise_type, mistake)

    def get_common_mistakes(self, exercise_type: str) -> list[str]:
        return self.mistakes.get_common_mistakes(exercise_type)

    # ========== Recommendations ==========

    async def get_recommendations(
        self, user_id: str, limit: int = 5
    ) -> list[ExerciseRecommendation]:
        """Ranked recommendations for a learner. Never raises."""
        with log_context(user_id=user_id):
            recommendations = await self.scorer.get_recommendations(user_id, limit)
            logger.info("Recommendations served", count=len(recommendations), limit=limit)
            return recommendations

    async def get_optimal_next_exercise(
        self, user_id: str, topic: str | None = None
    ) -> ExerciseRecommendation | None:
        with log_context(user_id=user_id):
            return await self.scorer.get_optimal_next_exercise(user_id, topic)

    # ========== Health ==========

    async def health(self) -> dict[str, bool]:
        """Reachability of the skill store and vector database."""
        return {
            "database": await self._db.ping(),
            "qdrant": await self._qdrant.ping(),
        }
