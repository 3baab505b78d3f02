# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain package."""

from dsicola.domains.attendance.frequency import Frequencia, calcular_frequencia
from dsicola.domains.attendance.service import (
    AttendanceForbiddenError,
    AttendanceNotFoundError,
    AttendanceService,
    AttendanceServiceError,
    AttendanceValidationError,
)

__all__ = [
    "AttendanceForbiddenError",
    "AttendanceNotFoundError",
    "AttendanceService",
    "AttendanceServiceError",
    "AttendanceValidationError",
    "Frequencia",
    "calcular_frequencia",
]
