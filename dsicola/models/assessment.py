# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment API models: avaliações, notas and grade posting windows."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from dsicola.core.enums import TipoAvaliacao, TipoPeriodoLancamento
from dsicola.models.common import ORMModel


# =============================================================================
# Avaliações
# =============================================================================


class AvaliacaoCreateRequest(BaseModel):
    """Request to create an avaliação.

    Secondary institutions give ``trimestre``; higher education gives
    ``semestre``.
    """

    plano_ensino_id: str
    turma_id: str
    tipo: TipoAvaliacao
    nome: str = Field(..., min_length=1, max_length=200)
    data: date
    peso: Decimal = Field(default=Decimal("1"), gt=0, max_digits=5, decimal_places=2)
    trimestre: int | None = Field(default=None, ge=1, le=3)
    semestre: int | None = Field(default=None, ge=1)
    descricao: str | None = None


class AvaliacaoUpdateRequest(BaseModel):
    tipo: TipoAvaliacao | None = None
    nome: str | None = Field(default=None, min_length=1, max_length=200)
    data: date | None = None
    peso: Decimal | None = Field(default=None, gt=0, max_digits=5, decimal_places=2)
    trimestre: int | None = Field(default=None, ge=1, le=3)
    semestre: int | None = Field(default=None, ge=1)
    descricao: str | None = None


class AvaliacaoResponse(ORMModel):
    id: str
    plano_ensino_id: str
    turma_id: str
    tipo: str
    nome: str
    data: date
    peso: Decimal
    trimestre: int | None
    semestre: int | None
    descricao: str | None
    status: str
    fechada: bool
    fechada_por: str | None
    fechada_em: datetime | None
    created_by: str | None
    created_at: datetime


class AvaliacaoListResponse(BaseModel):
    items: list[AvaliacaoResponse]
    total: int


# =============================================================================
# Notas
# =============================================================================


class NotaLoteItem(BaseModel):
    """One grade of a batch. The 0-20 range is checked by the service."""

    aluno_id: str
    valor: Decimal
    observacoes: str | None = None


class NotaLoteRequest(BaseModel):
    avaliacao_id: str
    notas: list[NotaLoteItem] = Field(..., min_length=1)


class NotaCorrecaoRequest(BaseModel):
    valor: Decimal
    justificativa: str


class NotaResponse(ORMModel):
    id: str
    avaliacao_id: str
    aluno_id: str
    plano_ensino_id: str
    valor: Decimal
    observacoes: str | None
    lancado_por: str | None
    updated_at: datetime


class NotaHistoricoResponse(ORMModel):
    id: str
    nota_id: str
    valor_anterior: Decimal
    valor_novo: Decimal
    motivo: str | None
    alterado_por: str | None
    created_at: datetime


# =============================================================================
# Períodos de lançamento
# =============================================================================


class PeriodoLancamentoCreateRequest(BaseModel):
    ano_letivo_id: str
    tipo: TipoPeriodoLancamento
    numero: int
    data_inicio: date
    data_fim: date


class PeriodoLancamentoUpdateRequest(BaseModel):
    data_inicio: date | None = None
    data_fim: date | None = None


class PeriodoLancamentoReabrirRequest(BaseModel):
    motivo: str = Field(..., min_length=1)
    data_fim: date | None = None


class PeriodoLancamentoResponse(BaseModel):
    """Posting window; status is EXPIRADO once an open window has ended."""

    id: str
    ano_letivo_id: str
    tipo: str
    numero: int
    data_inicio: date
    data_fim: date
    status: str
    reaberto_por: str | None = None
    motivo_reabertura: str | None = None
