# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade calculation API models."""

from pydantic import BaseModel, Field

from dsicola.core.enums import StatusNota


class CalculoMediaRequest(BaseModel):
    aluno_id: str
    plano_ensino_id: str
    trimestre: int | None = Field(default=None, ge=1, le=3)


class CalculoLoteRequest(BaseModel):
    """Batch calculation; every actively enrolled student when aluno_ids is empty."""

    plano_ensino_id: str
    aluno_ids: list[str] = Field(default_factory=list)
    trimestre: int | None = Field(default=None, ge=1, le=3)


class NotaUtilizadaResponse(BaseModel):
    rotulo: str
    valor: float
    avaliacao_id: str | None = None


class ResultadoCalculoResponse(BaseModel):
    media_final: float
    status: StatusNota
    media_parcial: float | None = None
    medias_trimestrais: dict[int, float] = Field(default_factory=dict)
    media_anual: float | None = None
    notas_utilizadas: list[NotaUtilizadaResponse] = Field(default_factory=list)
    formula: str = ""
    observacoes: list[str] = Field(default_factory=list)


class MediaAlunoResponse(BaseModel):
    aluno_id: str
    plano_ensino_id: str
    resultado: ResultadoCalculoResponse


class MediaLoteItem(BaseModel):
    """Per-student outcome of a batch; exactly one of resultado or erro is set."""

    aluno_id: str
    resultado: ResultadoCalculoResponse | None = None
    erro: str | None = None
