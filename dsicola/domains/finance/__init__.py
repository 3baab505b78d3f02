# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Finance domain package."""

from dsicola.domains.finance.penalties import (
    MultaCalculada,
    RegraMulta,
    calcular_multa,
    numero_recibo,
    resolver_regra,
    status_por_pagamentos,
)
from dsicola.domains.finance.service import (
    FinanceConflictError,
    FinanceNotFoundError,
    FinanceService,
    FinanceServiceError,
    FinanceValidationError,
)

__all__ = [
    "FinanceConflictError",
    "FinanceNotFoundError",
    "FinanceService",
    "FinanceServiceError",
    "FinanceValidationError",
    "MultaCalculada",
    "RegraMulta",
    "calcular_multa",
    "numero_recibo",
    "resolver_regra",
    "status_por_pagamentos",
]
