# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for DSICOLA.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- rounding: Half-up rounding for grades and money
"""

from dsicola.utils.datetime import (
    days_from_now,
    ensure_utc,
    is_expired,
    minutes_from_now,
    utc_now,
    utc_today,
)
from dsicola.utils.logging import bind_context, clear_context, get_logger, setup_logging
from dsicola.utils.rounding import round_half_up, to_money

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "utc_today",
    "ensure_utc",
    "minutes_from_now",
    "days_from_now",
    "is_expired",
    # Rounding
    "round_half_up",
    "to_money",
]
