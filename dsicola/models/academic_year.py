# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic year API models."""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from dsicola.core.enums import StatusAnoLetivo
from dsicola.models.common import ORMModel


class AnoLetivoCreateRequest(BaseModel):
    """Request to create an academic year."""

    ano: int = Field(..., ge=2000, le=2100)
    data_inicio: date
    data_fim: date
    descricao: str | None = None


class AnoLetivoUpdateRequest(BaseModel):
    ano: int | None = Field(default=None, ge=2000, le=2100)
    data_inicio: date | None = None
    data_fim: date | None = None
    descricao: str | None = None


class PeriodoCreateRequest(BaseModel):
    """Trimester or semester of an academic year."""

    numero: int = Field(..., ge=1)
    data_inicio: date
    data_fim: date
    status: StatusAnoLetivo = StatusAnoLetivo.PLANEJADO

    @model_validator(mode="after")
    def check_dates(self) -> "PeriodoCreateRequest":
        if self.data_inicio >= self.data_fim:
            raise ValueError("data_inicio must be before data_fim")
        return self


class PeriodoResponse(ORMModel):
    id: str
    ano_letivo_id: str
    numero: int
    data_inicio: date
    data_fim: date
    status: str


class AnoLetivoSummary(ORMModel):
    id: str
    ano: int
    data_inicio: date
    data_fim: date
    status: str


class AnoLetivoResponse(ORMModel):
    id: str
    instituicao_id: str
    ano: int
    data_inicio: date
    data_fim: date
    status: str
    descricao: str | None
    ativado_em: datetime | None
    ativado_por: str | None
    encerrado_em: datetime | None
    encerrado_por: str | None
    trimestres: list[PeriodoResponse] = []
    semestres: list[PeriodoResponse] = []
    created_at: datetime
    updated_at: datetime


class AnoLetivoListResponse(BaseModel):
    items: list[AnoLetivoSummary]
    total: int
