# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Plano de ensino and workflow API models."""

from datetime import datetime

from pydantic import BaseModel, Field

from dsicola.core.enums import StatusWorkflow
from dsicola.models.common import ORMModel


class PlanoEnsinoCreateRequest(BaseModel):
    """Request to create a plano de ensino."""

    disciplina_id: str
    professor_id: str
    turma_id: str
    ano_letivo_id: str
    ementa: str | None = None
    objetivos: str | None = None
    metodologia: str | None = None
    bibliografia: str | None = None
    carga_horaria_total: int | None = Field(default=None, ge=0)


class PlanoEnsinoUpdateRequest(BaseModel):
    professor_id: str | None = None
    ementa: str | None = None
    objetivos: str | None = None
    metodologia: str | None = None
    bibliografia: str | None = None
    carga_horaria_total: int | None = Field(default=None, ge=0)


class PlanoAulaCreateRequest(BaseModel):
    """Planned lesson block."""

    ordem: int = Field(..., ge=1)
    titulo: str = Field(..., min_length=1, max_length=200)
    descricao: str | None = None
    periodo: int = Field(..., ge=1, description="Trimestre or semestre number")
    quantidade_aulas: int = Field(default=1, ge=1)


class PlanoAulaUpdateRequest(BaseModel):
    ordem: int | None = Field(default=None, ge=1)
    titulo: str | None = Field(default=None, min_length=1, max_length=200)
    descricao: str | None = None
    periodo: int | None = Field(default=None, ge=1)
    quantidade_aulas: int | None = Field(default=None, ge=1)


class PlanoAulaResponse(ORMModel):
    id: str
    plano_ensino_id: str
    ordem: int
    titulo: str
    descricao: str | None
    periodo: int
    quantidade_aulas: int


class PlanoEnsinoSummary(ORMModel):
    id: str
    disciplina_id: str
    professor_id: str
    turma_id: str
    ano_letivo_id: str
    status: str
    estado: str
    bloqueado: bool


class PlanoEnsinoResponse(PlanoEnsinoSummary):
    ementa: str | None
    objetivos: str | None
    metodologia: str | None
    bibliografia: str | None
    carga_horaria_total: int | None
    bloqueado_por: str | None
    data_bloqueio: datetime | None
    aprovado_por: str | None
    data_aprovacao: datetime | None
    aulas: list[PlanoAulaResponse] = []
    created_at: datetime
    updated_at: datetime


class PlanoEnsinoListResponse(BaseModel):
    items: list[PlanoEnsinoSummary]
    total: int


class WorkflowTransitionRequest(BaseModel):
    """Move an entity to a new workflow status."""

    status: StatusWorkflow
    observacao: str | None = None


class WorkflowObservacaoRequest(BaseModel):
    observacao: str | None = None


class WorkflowLogResponse(ORMModel):
    id: str
    entidade: str
    entidade_id: str
    status_anterior: str
    status_novo: str
    usuario_id: str
    observacao: str | None
    created_at: datetime
