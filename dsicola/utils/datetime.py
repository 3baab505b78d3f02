# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for DSICOLA.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every
Python datetime handled by the application is timezone-aware. Calendar
dates (due dates, lesson dates, academic periods) use ``date``.

Usage:
------
    from dsicola.utils.datetime import utc_now, utc_today

    created_at = Column(DateTime(timezone=True), default=utc_now)
    overdue = mensalidade.data_vencimento < utc_today()
"""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current calendar date in UTC."""
    return utc_now().date()


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
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def minutes_from_now(minutes: int) -> datetime:
    """Get a datetime N minutes from now."""
    return utc_now() + timedelta(minutes=minutes)


def days_from_now(days: int) -> datetime:
    """Get a datetime N days from now."""
    return utc_now() + timedelta(days=days)


def is_expired(expires_at: datetime | None) -> bool:
    """Check whether a datetime lies in the past.

    Args:
        expires_at: Expiration datetime (naive values are treated as UTC).

    Returns:
        True if expires_at is set and already passed.
    """
    if expires_at is None:
        return False
    return ensure_utc(expires_at) <= utc_now()
