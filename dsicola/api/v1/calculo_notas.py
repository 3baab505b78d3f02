# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade calculation API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import ACADEMIC_ROLES, RequireRole, get_db, require_tenant
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.domains.grading.service import (
    GradingNotFoundError,
    GradingService,
    GradingServiceError,
)
from dsicola.models.grading import (
    CalculoLoteRequest,
    CalculoMediaRequest,
    MediaAlunoResponse,
    MediaLoteItem,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_academic = RequireRole(*ACADEMIC_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> GradingService:
    return GradingService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: GradingServiceError) -> HTTPException:
    if isinstance(e, GradingNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/media", response_model=MediaAlunoResponse, summary="Compute student average")
async def calcular_media(
    data: CalculoMediaRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MediaAlunoResponse:
    try:
        return await _get_service(db, tenant).calcular_media(
            data.aluno_id, data.plano_ensino_id, data.trimestre
        )
    except GradingServiceError as e:
        raise _to_http(e)


@router.post("/lote", response_model=list[MediaLoteItem], summary="Compute averages in batch")
async def calcular_lote(
    data: CalculoLoteRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[MediaLoteItem]:
    try:
        return await _get_service(db, tenant).calcular_lote(
            data.plano_ensino_id, data.aluno_ids, data.trimestre
        )
    except GradingServiceError as e:
        raise _to_http(e)
