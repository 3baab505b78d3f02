# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Institution domain package."""

from dsicola.domains.instituicao.service import (
    InstituicaoConflictError,
    InstituicaoNotFoundError,
    InstituicaoService,
    InstituicaoServiceError,
    ParametrosService,
    default_parametros,
    load_parametros,
)

__all__ = [
    "InstituicaoConflictError",
    "InstituicaoNotFoundError",
    "InstituicaoService",
    "InstituicaoServiceError",
    "ParametrosService",
    "default_parametros",
    "load_parametros",
]
