# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the learning engine.

All timestamps are timezone-aware UTC. Skill practice times, review
schedules and episode timestamps all go through these helpers so that
naive and aware datetimes never mix.

Usage:
    from aves_engine.utils.datetime import utc_now

    now = utc_now()
    next_review = now + timedelta(days=2)
"""

from datetime import datetime, timedelta, timezone

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None. Naive values are assumed UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def days_ago(days: float) -> datetime:
    """Get a datetime N days ago from now."""
    return utc_now() - timedelta(days=days)


def days_since(start: datetime, now: datetime | None = None) -> float:
    """Fractional days elapsed since a start datetime.

    Args:
        start: The start datetime.
        now: Reference time, defaults to the current UTC time.

    Returns:
        Elapsed days (negative if start is in the future).
    """
    reference = now or utc_now()
    return (reference - ensure_utc(start)).total_seconds() / SECONDS_PER_DAY


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def parse_iso(iso_string: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string into aware UTC."""
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return ensure_utc(dt)
