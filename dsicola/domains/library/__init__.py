# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Library domain package."""

from dsicola.domains.library.service import (
    LibraryConflictError,
    LibraryNotFoundError,
    LibraryService,
    LibraryServiceError,
    LibraryValidationError,
)

__all__ = [
    "LibraryConflictError",
    "LibraryNotFoundError",
    "LibraryService",
    "LibraryServiceError",
    "LibraryValidationError",
]
