# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class (turma) domain package."""

from dsicola.domains.class_.service import (
    TurmaNotFoundError,
    TurmaService,
    TurmaServiceError,
    TurmaValidationError,
)

__all__ = [
    "TurmaNotFoundError",
    "TurmaService",
    "TurmaServiceError",
    "TurmaValidationError",
]
