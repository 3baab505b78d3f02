# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Institution (tenant) and institutional configuration API models."""

import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator

from dsicola.core.enums import StatusInstituicao, TipoAcademico
from dsicola.models.common import ORMModel

SUBDOMINIO_PATTERN = r"^[a-z0-9-]+$"


class InstituicaoCreateRequest(BaseModel):
    """Request to register a new institution."""

    nome: str = Field(..., min_length=2, max_length=200)
    subdominio: str = Field(..., min_length=2, max_length=63)
    tipo_academico: TipoAcademico
    email: EmailStr | None = None
    telefone: str | None = Field(default=None, max_length=50)
    endereco: str | None = Field(default=None, max_length=500)

    @field_validator("subdominio", mode="before")
    @classmethod
    def normalize_subdominio(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("subdominio")
    @classmethod
    def validate_subdominio(cls, v: str) -> str:
        if not re.match(SUBDOMINIO_PATTERN, v):
            raise ValueError("subdominio must contain only a-z, 0-9 and '-'")
        return v


class InstituicaoUpdateRequest(BaseModel):
    nome: str | None = Field(default=None, min_length=2, max_length=200)
    tipo_academico: TipoAcademico | None = None
    status: StatusInstituicao | None = None
    email: EmailStr | None = None
    telefone: str | None = Field(default=None, max_length=50)
    endereco: str | None = Field(default=None, max_length=500)


class InstituicaoResponse(ORMModel):
    id: str
    nome: str
    subdominio: str
    tipo_academico: str
    status: str
    email: str | None
    telefone: str | None
    endereco: str | None
    created_at: datetime
    updated_at: datetime


class InstituicaoListResponse(BaseModel):
    items: list[InstituicaoResponse]
    total: int


class ParametrosSistemaResponse(ORMModel):
    """Academic parameters of an institution."""

    instituicao_id: str
    percentual_minimo_aprovacao: Decimal
    permitir_exame_recurso: bool
    frequencia_minima: Decimal
    quantidade_semestres_por_ano: int


class ParametrosSistemaUpdateRequest(BaseModel):
    percentual_minimo_aprovacao: Decimal | None = Field(default=None, ge=0, le=20)
    permitir_exame_recurso: bool | None = None
    frequencia_minima: Decimal | None = Field(default=None, ge=0, le=100)
    quantidade_semestres_por_ano: int | None = Field(default=None, ge=1, le=4)


class ConfiguracaoMultaRequest(BaseModel):
    """Late-fee configuration, as percentages."""

    multa_percentual: Decimal = Field(..., ge=0, le=100)
    juros_dia_percentual: Decimal = Field(..., ge=0, le=100)
    dias_tolerancia: int = Field(default=5, ge=0)


class ConfiguracaoMultaResponse(ORMModel):
    instituicao_id: str
    multa_percentual: Decimal
    juros_dia_percentual: Decimal
    dias_tolerancia: int
    configurado: bool = True
