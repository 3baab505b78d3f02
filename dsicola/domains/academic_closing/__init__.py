# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic closing domain package."""

from dsicola.domains.academic_closing.service import (
    AcademicClosingService,
    ClosingNotFoundError,
    ClosingPrerequisitesError,
    ClosingServiceError,
    ClosingValidationError,
    PeriodoEncerradoError,
)

__all__ = [
    "AcademicClosingService",
    "ClosingNotFoundError",
    "ClosingPrerequisitesError",
    "ClosingServiceError",
    "ClosingValidationError",
    "PeriodoEncerradoError",
]
