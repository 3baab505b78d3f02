# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Posted lesson API endpoints.

- POST /aulas-lancadas - Post a lesson for a planned block
- GET /aulas-lancadas?plano_ensino_id= - List posted lessons of a plano
- DELETE /aulas-lancadas/{aula_id} - Delete a lesson without attendance
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import ACADEMIC_ROLES, RequireRole, get_db, require_tenant
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.domains.lesson.service import (
    AulaForbiddenError,
    AulaLancadaService,
    AulaNotFoundError,
    AulaServiceError,
)
from dsicola.models.lesson import (
    AulaLancadaCreateRequest,
    AulaLancadaListResponse,
    AulaLancadaResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_academic = RequireRole(*ACADEMIC_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> AulaLancadaService:
    return AulaLancadaService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: AulaServiceError) -> HTTPException:
    if isinstance(e, AulaNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AulaForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "",
    response_model=AulaLancadaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post lesson",
)
async def lancar_aula(
    data: AulaLancadaCreateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AulaLancadaResponse:
    try:
        return await _get_service(db, tenant).lancar_aula(
            data, current_user.id, current_user.roles
        )
    except AulaServiceError as e:
        raise _to_http(e)


@router.get("", response_model=AulaLancadaListResponse, summary="List posted lessons")
async def list_aulas(
    plano_ensino_id: Annotated[str, Query()],
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AulaLancadaListResponse:
    items = await _get_service(db, tenant).list_aulas(plano_ensino_id)
    return AulaLancadaListResponse(items=items, total=len(items))


@router.delete(
    "/{aula_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete posted lesson",
)
async def delete_aula(
    aula_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_aula(aula_id, current_user.id, current_user.roles)
    except AulaServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
