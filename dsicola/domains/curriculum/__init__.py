# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum domain package: cursos, classes and disciplinas."""

from dsicola.domains.curriculum.service import (
    CurriculumConflictError,
    CurriculumNotFoundError,
    CurriculumService,
    CurriculumServiceError,
    CurriculumValidationError,
)

__all__ = [
    "CurriculumConflictError",
    "CurriculumNotFoundError",
    "CurriculumService",
    "CurriculumServiceError",
    "CurriculumValidationError",
]
