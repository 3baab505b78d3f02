# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management API models."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from dsicola.core.enums import UserRole
from dsicola.models.common import ORMModel


class UserCreateRequest(BaseModel):
    """Request to create a user in the caller's institution."""

    email: EmailStr
    nome_completo: str = Field(..., min_length=2, max_length=200)
    password: str = Field(..., min_length=1)
    roles: list[UserRole] = Field(..., min_length=1)
    telefone: str | None = Field(default=None, max_length=50)
    numero_identificacao: str | None = Field(default=None, max_length=50)
    must_change_password: bool = True

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserUpdateRequest(BaseModel):
    """Profile fields a staff member may change."""

    nome_completo: str | None = Field(default=None, min_length=2, max_length=200)
    telefone: str | None = Field(default=None, max_length=50)
    numero_identificacao: str | None = Field(default=None, max_length=50)
    roles: list[UserRole] | None = Field(default=None, min_length=1)


class UserResponse(ORMModel):
    id: str
    instituicao_id: str | None
    email: str
    nome_completo: str
    telefone: str | None
    numero_identificacao: str | None
    roles: list[str]
    is_active: bool
    must_change_password: bool
    last_login_at: datetime | None
    created_at: datetime


class UserSummary(ORMModel):
    id: str
    email: str
    nome_completo: str
    roles: list[str]
    is_active: bool


class UserListResponse(BaseModel):
    items: list[UserSummary]
    total: int
    page: int
    page_size: int


class ResponsavelAlunoRequest(BaseModel):
    """Link a guardian to a student."""

    aluno_id: str
    parentesco: str | None = Field(default=None, max_length=50)


class ResponsavelAlunoResponse(ORMModel):
    id: str
    responsavel_id: str
    aluno_id: str
    parentesco: str | None
    created_at: datetime


class AlunoDoResponsavel(BaseModel):
    aluno_id: str
    nome_completo: str
    email: str
    numero_identificacao: str | None
    parentesco: str | None
