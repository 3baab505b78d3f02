# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grading domain package."""

from dsicola.domains.grading.calculator import (
    GradeCalculationError,
    NotaCalculo,
    ResultadoCalculo,
    calcular,
    calcular_secundario,
    calcular_superior,
    situacao_final,
)
from dsicola.domains.grading.service import (
    GradingNotFoundError,
    GradingService,
    GradingServiceError,
    GradingValidationError,
)

__all__ = [
    "GradeCalculationError",
    "GradingNotFoundError",
    "GradingService",
    "GradingServiceError",
    "GradingValidationError",
    "NotaCalculo",
    "ResultadoCalculo",
    "calcular",
    "calcular_secundario",
    "calcular_superior",
    "situacao_final",
]
