# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic closing API models."""

from datetime import datetime

from pydantic import BaseModel, Field

from dsicola.core.enums import PeriodoEncerramento
from dsicola.models.common import ORMModel


class EncerramentoRequest(BaseModel):
    """Start or complete the closing of a period."""

    ano_letivo_id: str
    periodo: PeriodoEncerramento


class ReaberturaRequest(EncerramentoRequest):
    justificativa: str = Field(..., min_length=10)


class EncerramentoResponse(ORMModel):
    id: str
    ano_letivo_id: str
    periodo: str
    status: str
    iniciado_por: str | None
    iniciado_em: datetime | None
    encerrado_por: str | None
    encerrado_em: datetime | None
    reaberto_por: str | None
    reaberto_em: datetime | None
    justificativa_reabertura: str | None


class EncerramentoStatusResponse(BaseModel):
    ano_letivo_id: str
    encerramentos: list[EncerramentoResponse]
