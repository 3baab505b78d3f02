# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for DSICOLA.

Settings are Pydantic-based and loaded from environment variables.

Example:
    >>> from dsicola.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from dsicola.core.config.settings import (
    AcademicSettings,
    APISettings,
    CORSSettings,
    DatabaseSettings,
    FinanceSettings,
    JWTSettings,
    RateLimitSettings,
    RedisSettings,
    SecuritySettings,
    Settings,
    TenancySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "JWTSettings",
    "RateLimitSettings",
    "CORSSettings",
    "TenancySettings",
    "AcademicSettings",
    "FinanceSettings",
    "SecuritySettings",
    "APISettings",
]
