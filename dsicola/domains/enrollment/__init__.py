# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides:
- Annual enrollments (matrículas anuais)
- Turma enrollments with capacity control
"""

from dsicola.domains.enrollment.service import (
    AlreadyEnrolledError,
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentValidationError,
)

__all__ = [
    "AlreadyEnrolledError",
    "EnrollmentNotFoundError",
    "EnrollmentService",
    "EnrollmentServiceError",
    "EnrollmentValidationError",
]
