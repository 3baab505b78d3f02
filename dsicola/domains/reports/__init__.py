# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Official reports domain package."""

from dsicola.domains.reports.service import (
    ReportsForbiddenError,
    ReportsNotFoundError,
    ReportsService,
    ReportsServiceError,
)

__all__ = [
    "ReportsForbiddenError",
    "ReportsNotFoundError",
    "ReportsService",
    "ReportsServiceError",
]
