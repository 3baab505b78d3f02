# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance API models."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from dsicola.core.enums import OrigemPresenca, SituacaoFrequencia, StatusPresenca
from dsicola.models.common import ORMModel


class PresencaItem(BaseModel):
    aluno_id: str
    status: StatusPresenca
    origem: OrigemPresenca = OrigemPresenca.MANUAL
    observacoes: str | None = Field(default=None, max_length=1000)


class PresencaLoteRequest(BaseModel):
    """Batch of attendance records for one posted lesson."""

    aula_lancada_id: str
    presencas: list[PresencaItem] = Field(..., min_length=1)


class PresencaResponse(ORMModel):
    id: str
    aula_lancada_id: str
    aluno_id: str
    status: str
    origem: str
    observacoes: str | None
    registrado_por: str | None
    updated_at: datetime


class PresencaAlunoResponse(BaseModel):
    """Attendance line of an enrolled student; status is None when unrecorded."""

    aluno_id: str
    nome_completo: str
    presenca_id: str | None = None
    status: str | None = None
    origem: str | None = None
    observacoes: str | None = None


class PresencasAulaResponse(BaseModel):
    aula_lancada_id: str
    plano_ensino_id: str
    data: date
    alunos: list[PresencaAlunoResponse]


class FrequenciaResponse(BaseModel):
    aluno_id: str
    plano_ensino_id: str
    total_aulas: int
    presencas: int
    justificadas: int
    faltas: int
    percentual: float
    frequencia_minima: float
    situacao: SituacaoFrequencia
