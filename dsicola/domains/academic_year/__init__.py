# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic year domain package.

This package provides academic year management functionality including:
- Ano letivo CRUD and activation
- Overlap and uniqueness validation
- Trimesters and semesters
"""

from dsicola.domains.academic_year.service import (
    AcademicYearConflictError,
    AcademicYearNotFoundError,
    AcademicYearService,
    AcademicYearServiceError,
    AcademicYearValidationError,
)

__all__ = [
    "AcademicYearConflictError",
    "AcademicYearNotFoundError",
    "AcademicYearService",
    "AcademicYearServiceError",
    "AcademicYearValidationError",
]
