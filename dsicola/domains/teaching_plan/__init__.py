# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teaching plan domain package.

This package provides:
- Planos de ensino and planned lessons
- The approval workflow shared with avaliações
"""

from dsicola.domains.teaching_plan.service import (
    PlanoEnsinoConflictError,
    PlanoEnsinoForbiddenError,
    PlanoEnsinoNotFoundError,
    PlanoEnsinoService,
    PlanoEnsinoServiceError,
    PlanoEnsinoValidationError,
    WorkflowService,
)
from dsicola.domains.teaching_plan.workflow import (
    InvalidTransitionError,
    TransitionForbiddenError,
    WorkflowError,
    estado_para,
    next_statuses,
    validate_transition,
)

__all__ = [
    "InvalidTransitionError",
    "PlanoEnsinoConflictError",
    "PlanoEnsinoForbiddenError",
    "PlanoEnsinoNotFoundError",
    "PlanoEnsinoService",
    "PlanoEnsinoServiceError",
    "PlanoEnsinoValidationError",
    "TransitionForbiddenError",
    "WorkflowError",
    "WorkflowService",
    "estado_para",
    "next_statuses",
    "validate_transition",
]
