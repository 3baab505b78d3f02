# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Human resources domain package."""

from dsicola.domains.hr.service import (
    FuncionarioNotFoundError,
    HrService,
    HrServiceError,
    HrValidationError,
)

__all__ = [
    "FuncionarioNotFoundError",
    "HrService",
    "HrServiceError",
    "HrValidationError",
]
