# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Official report models: boletim and pauta."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from dsicola.core.enums import SituacaoFinal, SituacaoFrequencia, StatusNota
from dsicola.models.attendance import FrequenciaResponse
from dsicola.models.grading import ResultadoCalculoResponse


class NotaBoletim(BaseModel):
    avaliacao_id: str
    avaliacao: str
    tipo: str
    data: date
    trimestre: int | None = None
    semestre: int | None = None
    valor: Decimal


class DisciplinaBoletim(BaseModel):
    plano_ensino_id: str
    disciplina_id: str
    disciplina: str
    professor: str | None = None
    turma: str
    notas: list[NotaBoletim] = Field(default_factory=list)
    resultado: ResultadoCalculoResponse | None = None
    erro_calculo: str | None = None
    frequencia: FrequenciaResponse
    situacao_final: SituacaoFinal


class BoletimResponse(BaseModel):
    aluno_id: str
    aluno_nome: str
    ano_letivo_id: str
    ano: int
    disciplinas: list[DisciplinaBoletim]


class PautaLinha(BaseModel):
    aluno_id: str
    aluno_nome: str
    media_final: float | None = None
    status: StatusNota | None = None
    frequencia_percentual: float
    situacao_frequencia: SituacaoFrequencia
    situacao_final: SituacaoFinal
    observacao: str | None = None


class PautaResponse(BaseModel):
    plano_ensino_id: str
    disciplina: str
    turma: str
    professor: str | None = None
    ano_letivo_id: str
    linhas: list[PautaLinha]
