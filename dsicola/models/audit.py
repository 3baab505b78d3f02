# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log API models."""

from datetime import datetime
from typing import Any

from dsicola.models.common import ORMModel


class LogAuditoriaResponse(ORMModel):
    """Audit log entry."""

    id: str
    instituicao_id: str | None
    usuario_id: str | None
    usuario_email: str | None
    modulo: str
    acao: str
    entidade: str
    entidade_id: str | None
    dados_anteriores: dict[str, Any] | None
    dados_novos: dict[str, Any] | None
    ip_origem: str | None
    user_agent: str | None
    observacao: str | None
    created_at: datetime


class LogAuditoriaListResponse(ORMModel):
    """Paginated audit log listing."""

    items: list[LogAuditoriaResponse]
    total: int
    page: int
    page_size: int
