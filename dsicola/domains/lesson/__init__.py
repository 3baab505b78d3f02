# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Aula lançada domain package."""

from dsicola.domains.lesson.service import (
    AulaForbiddenError,
    AulaLancadaService,
    AulaNotFoundError,
    AulaServiceError,
    AulaValidationError,
)

__all__ = [
    "AulaForbiddenError",
    "AulaLancadaService",
    "AulaNotFoundError",
    "AulaServiceError",
    "AulaValidationError",
]
