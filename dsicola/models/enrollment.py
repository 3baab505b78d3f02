# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API models: matrículas anuais and matrículas em turma."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from dsicola.core.enums import StatusMatricula, StatusMatriculaAnual, TipoAcademico
from dsicola.models.common import ORMModel


class MatriculaAnualCreateRequest(BaseModel):
    """Annual enrollment of a student."""

    aluno_id: str
    ano_letivo_id: str
    nivel_ensino: TipoAcademico
    curso_id: str | None = None
    classe_id: str | None = None
    data_matricula: date | None = None
    observacoes: str | None = None


class MatriculaAnualStatusRequest(BaseModel):
    status: StatusMatriculaAnual
    observacoes: str | None = None


class MatriculaAnualResponse(ORMModel):
    id: str
    aluno_id: str
    ano_letivo_id: str
    nivel_ensino: str
    curso_id: str | None
    classe_id: str | None
    status: str
    data_matricula: date
    observacoes: str | None
    created_at: datetime


class MatriculaAnualListResponse(BaseModel):
    items: list[MatriculaAnualResponse]
    total: int


class MatriculaCreateRequest(BaseModel):
    """Enrollment of a student in a turma."""

    aluno_id: str
    turma_id: str
    data_matricula: date | None = None


class MatriculaStatusRequest(BaseModel):
    status: StatusMatricula


class MatriculaResponse(ORMModel):
    id: str
    aluno_id: str
    turma_id: str
    ano_letivo_id: str
    matricula_anual_id: str
    status: str
    data_matricula: date
    created_at: datetime


class MatriculaListResponse(BaseModel):
    items: list[MatriculaResponse]
    total: int = Field(ge=0)
