# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

All timestamps are stored in UTC and all Python datetimes handled by the
services are timezone-aware. SQLite hands back naive values, so anything
read from the database goes through ensure_utc() before comparison.

Usage:
------
    from src.utils.datetime import utc_now

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def next_instant(previous: datetime | None) -> datetime:
    """Return the current time, forced strictly after ``previous``.

    Two writes inside the same clock tick would otherwise share a
    timestamp.

    Args:
        previous: Last recorded timestamp, if any.

    Returns:
        Timezone-aware UTC datetime greater than ``previous``.
    """
    current = utc_now()
    previous = ensure_utc(previous)
    if previous is not None and current <= previous:
        return previous + _TICK
    return current
