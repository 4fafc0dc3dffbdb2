# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from aves_engine.utils.datetime import (
    days_ago,
    days_since,
    ensure_utc,
    format_iso,
    parse_iso,
    utc_now,
)
from aves_engine.utils.logging import (
    get_logger,
    log_context,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "log_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "days_ago",
    "days_since",
    "format_iso",
    "parse_iso",
]
