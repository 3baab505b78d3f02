# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Human resources API models."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field

from dsicola.core.enums import StatusFuncionario, TipoAlteracaoRh
from dsicola.models.common import ORMModel


class FuncionarioCreateRequest(BaseModel):
    nome_completo: str = Field(..., min_length=1, max_length=200)
    email: EmailStr | None = None
    user_id: str | None = None
    numero_identificacao: str | None = Field(default=None, max_length=50)
    cargo: str = Field(..., min_length=1, max_length=100)
    departamento: str | None = Field(default=None, max_length=100)
    data_admissao: date
    salario_base: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class FuncionarioUpdateRequest(BaseModel):
    nome_completo: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    numero_identificacao: str | None = Field(default=None, max_length=50)
    cargo: str | None = Field(default=None, min_length=1, max_length=100)
    departamento: str | None = Field(default=None, max_length=100)
    salario_base: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: StatusFuncionario | None = None


class FuncionarioResponse(ORMModel):
    id: str
    user_id: str | None
    nome_completo: str
    email: str | None
    numero_identificacao: str | None
    cargo: str
    departamento: str | None
    data_admissao: date
    salario_base: Decimal
    status: str
    created_at: datetime


class FuncionarioListResponse(BaseModel):
    items: list[FuncionarioResponse]
    total: int


class HistoricoRhCreateRequest(BaseModel):
    funcionario_id: str
    tipo_alteracao: TipoAlteracaoRh
    valor_anterior: str | None = None
    valor_novo: str | None = None
    observacao: str | None = None
    data_alteracao: date | None = None


class HistoricoRhResponse(ORMModel):
    id: str
    funcionario_id: str
    tipo_alteracao: str
    valor_anterior: str | None
    valor_novo: str | None
    observacao: str | None
    data_alteracao: date
    registrado_por: str | None
    created_at: datetime
