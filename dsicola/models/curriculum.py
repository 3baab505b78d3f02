# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum API models: cursos, classes and disciplinas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from dsicola.models.common import ORMModel


class _CodigoMixin(BaseModel):
    @field_validator("codigo", mode="before", check_fields=False)
    @classmethod
    def normalize_codigo(cls, v: str | None) -> str | None:
        return v.strip().upper() if isinstance(v, str) else v


class CursoCreateRequest(_CodigoMixin):
    codigo: str = Field(..., min_length=1, max_length=30)
    nome: str = Field(..., min_length=2, max_length=200)
    descricao: str | None = None
    duracao_anos: int | None = Field(default=None, ge=1, le=10)
    valor_mensalidade: Decimal | None = Field(default=None, ge=0)
    valor_multa: Decimal | None = Field(default=None, ge=0, le=100)
    percentual_juros: Decimal | None = Field(default=None, ge=0, le=100)


class CursoUpdateRequest(_CodigoMixin):
    codigo: str | None = Field(default=None, min_length=1, max_length=30)
    nome: str | None = Field(default=None, min_length=2, max_length=200)
    descricao: str | None = None
    duracao_anos: int | None = Field(default=None, ge=1, le=10)
    valor_mensalidade: Decimal | None = Field(default=None, ge=0)
    valor_multa: Decimal | None = Field(default=None, ge=0, le=100)
    percentual_juros: Decimal | None = Field(default=None, ge=0, le=100)
    is_active: bool | None = None


class CursoResponse(ORMModel):
    id: str
    codigo: str
    nome: str
    descricao: str | None
    duracao_anos: int | None
    valor_mensalidade: Decimal | None
    valor_multa: Decimal | None
    percentual_juros: Decimal | None
    is_active: bool
    created_at: datetime


class ClasseCreateRequest(_CodigoMixin):
    """Secondary grade level, e.g. "10ª Classe"."""

    codigo: str = Field(..., min_length=1, max_length=30)
    nome: str = Field(..., min_length=1, max_length=100)
    nivel: int | None = Field(default=None, ge=1, le=13)
    valor_mensalidade: Decimal | None = Field(default=None, ge=0)


class ClasseUpdateRequest(_CodigoMixin):
    codigo: str | None = Field(default=None, min_length=1, max_length=30)
    nome: str | None = Field(default=None, min_length=1, max_length=100)
    nivel: int | None = Field(default=None, ge=1, le=13)
    valor_mensalidade: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ClasseResponse(ORMModel):
    id: str
    codigo: str
    nome: str
    nivel: int | None
    valor_mensalidade: Decimal | None
    is_active: bool
    created_at: datetime


class DisciplinaCreateRequest(_CodigoMixin):
    codigo: str = Field(..., min_length=1, max_length=30)
    nome: str = Field(..., min_length=2, max_length=200)
    curso_id: str | None = None
    carga_horaria: int | None = Field(default=None, ge=0)


class DisciplinaUpdateRequest(_CodigoMixin):
    codigo: str | None = Field(default=None, min_length=1, max_length=30)
    nome: str | None = Field(default=None, min_length=2, max_length=200)
    curso_id: str | None = None
    carga_horaria: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class DisciplinaResponse(ORMModel):
    id: str
    codigo: str
    nome: str
    curso_id: str | None
    carga_horaria: int | None
    is_active: bool
    created_at: datetime
