# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Library API models."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from dsicola.core.enums import TipoItemBiblioteca
from dsicola.models.common import ORMModel


class BibliotecaItemCreateRequest(BaseModel):
    titulo: str = Field(..., min_length=1, max_length=300)
    autor: str | None = Field(default=None, max_length=200)
    isbn: str | None = Field(default=None, max_length=20)
    editora: str | None = Field(default=None, max_length=200)
    ano_publicacao: int | None = Field(default=None, ge=0, le=9999)
    categoria: str | None = Field(default=None, max_length=100)
    tipo: TipoItemBiblioteca = TipoItemBiblioteca.FISICO
    quantidade: int = Field(default=1, ge=0)
    localizacao: str | None = Field(default=None, max_length=100)


class BibliotecaItemUpdateRequest(BaseModel):
    titulo: str | None = Field(default=None, min_length=1, max_length=300)
    autor: str | None = Field(default=None, max_length=200)
    isbn: str | None = Field(default=None, max_length=20)
    editora: str | None = Field(default=None, max_length=200)
    ano_publicacao: int | None = Field(default=None, ge=0, le=9999)
    categoria: str | None = Field(default=None, max_length=100)
    tipo: TipoItemBiblioteca | None = None
    quantidade: int | None = Field(default=None, ge=0)
    localizacao: str | None = Field(default=None, max_length=100)


class BibliotecaItemResponse(ORMModel):
    id: str
    titulo: str
    autor: str | None
    isbn: str | None
    editora: str | None
    ano_publicacao: int | None
    categoria: str | None
    tipo: str
    quantidade: int
    disponivel: int = 0
    localizacao: str | None
    created_at: datetime


class BibliotecaItemListResponse(BaseModel):
    items: list[BibliotecaItemResponse]
    total: int


class EmprestimoCreateRequest(BaseModel):
    item_id: str
    usuario_id: str
    data_emprestimo: date | None = None
    data_prevista_devolucao: date | None = None
    observacoes: str | None = None


class EmprestimoResponse(ORMModel):
    id: str
    item_id: str
    usuario_id: str
    data_emprestimo: date
    data_prevista_devolucao: date
    data_devolucao: date | None
    status: str
    observacoes: str | None
    registrado_por: str | None
