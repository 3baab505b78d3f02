# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Aula lançada API models."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from dsicola.models.common import ORMModel


class AulaLancadaCreateRequest(BaseModel):
    """Post a planned lesson as given on a date."""

    plano_aula_id: str
    data: date
    observacoes: str | None = Field(default=None, max_length=2000)


class AulaLancadaResponse(ORMModel):
    id: str
    plano_ensino_id: str
    plano_aula_id: str
    data: date
    periodo: int
    observacoes: str | None
    lancado_por: str | None
    created_at: datetime


class AulaLancadaListResponse(BaseModel):
    items: list[AulaLancadaResponse]
    total: int
