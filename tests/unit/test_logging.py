# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for structured logging helpers."""

import json
import logging
from unittest.mock import AsyncMock

import pytest
import structlog

from aves_engine.core.config.settings import Settings
from aves_engine.engine import RecommendationEngine
from aves_engine.utils.logging import get_logger, log_context, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Restore root handlers and structlog defaults after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def _production_settings() -> Settings:
    return Settings(environment="production", debug=False, log_level="INFO")


def _json_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


@pytest.mark.unit
class TestSetupLogging:
    """Tests for logging configuration."""

    def test_sets_package_level(self) -> None:
        """Test the package logger follows the configured level."""
        setup_logging(Settings(log_level="WARNING", debug=False))

        assert logging.getLogger("aves_engine").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_get_logger_is_usable(self) -> None:
        """Test a bound logger accepts structured fields."""
        setup_logging(Settings())

        get_logger(__name__).info("Recommendations served", count=0)

    def test_structlog_records_are_rendered(self, capsys) -> None:
        """Test structlog events carry level, logger name and fields."""
        setup_logging(_production_settings())

        get_logger("aves_engine.tests").info("Recommendations served", count=2)

        records = _json_lines(capsys.readouterr().out)
        assert records[-1]["event"] == "Recommendations served"
        assert records[-1]["count"] == 2
        assert records[-1]["level"] == "info"
        assert records[-1]["logger"] == "aves_engine.tests"

    def test_stdlib_records_carry_bound_context(self, capsys) -> None:
        """Test component log records include fields bound by log_context."""
        setup_logging(_production_settings())
        structlog.contextvars.clear_contextvars()

        with log_context(user_id="user-1"):
            logging.getLogger("aves_engine.core.memory.context").warning(
                "Skill lookup degraded for user %s: %s", "user-1", "down"
            )

        records = _json_lines(capsys.readouterr().out)
        assert records[-1]["event"] == "Skill lookup degraded for user user-1: down"
        assert records[-1]["user_id"] == "user-1"
        assert records[-1]["level"] == "warning"

    @pytest.mark.asyncio
    async def test_engine_logs_after_setup(
        self, mock_db_manager, mock_qdrant_client, mock_embedding_service
    ) -> None:
        """Test recommendation requests still return a list once logging is configured."""
        setup_logging(_production_settings())
        engine = RecommendationEngine(
            _production_settings(),
            mock_db_manager,
            mock_qdrant_client,
            mock_embedding_service,
        )
        engine.skills.get_user_skills = AsyncMock(return_value=[])

        assert await engine.get_recommendations("user-1", 5) == []


@pytest.mark.unit
class TestLogContext:
    """Tests for request-scoped log context."""

    def test_binds_for_block_only(self) -> None:
        """Test fields are bound inside the block and removed after."""
        structlog.contextvars.clear_contextvars()

        with log_context(user_id="user-1"):
            assert structlog.contextvars.get_contextvars() == {"user_id": "user-1"}

        assert structlog.contextvars.get_contextvars() == {}

    def test_restores_outer_value(self) -> None:
        """Test nested blocks restore the outer binding."""
        structlog.contextvars.clear_contextvars()

        with log_context(user_id="outer"):
            with log_context(user_id="inner"):
                assert structlog.contextvars.get_contextvars()["user_id"] == "inner"
            assert structlog.contextvars.get_contextvars()["user_id"] == "outer"
