# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Turma API models."""

from datetime import datetime

from pydantic import BaseModel, Field

from dsicola.models.common import ORMModel


class TurmaCreateRequest(BaseModel):
    """Request to create a turma."""

    nome: str = Field(..., min_length=1, max_length=100)
    ano_letivo_id: str
    curso_id: str | None = None
    classe_id: str | None = None
    semestre: int | None = Field(default=None, ge=1)
    turno: str | None = Field(default=None, max_length=20)
    sala: str | None = Field(default=None, max_length=50)
    capacidade: int = Field(default=30, ge=1, le=500)


class TurmaUpdateRequest(BaseModel):
    nome: str | None = Field(default=None, min_length=1, max_length=100)
    curso_id: str | None = None
    classe_id: str | None = None
    semestre: int | None = Field(default=None, ge=1)
    turno: str | None = Field(default=None, max_length=20)
    sala: str | None = Field(default=None, max_length=50)
    capacidade: int | None = Field(default=None, ge=1, le=500)


class TurmaSummary(ORMModel):
    id: str
    nome: str
    ano_letivo_id: str
    curso_id: str | None
    classe_id: str | None
    semestre: int | None
    turno: str | None
    capacidade: int


class TurmaResponse(TurmaSummary):
    instituicao_id: str
    sala: str | None
    total_alunos: int = 0
    created_at: datetime
    updated_at: datetime


class TurmaListResponse(BaseModel):
    items: list[TurmaSummary]
    total: int
