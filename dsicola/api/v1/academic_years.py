# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic year management API endpoints.

This module provides endpoints for academic year management:
- POST / - Create an academic year
- GET / - List academic years
- GET /ativo - Get the active academic year
- GET /{ano_letivo_id} - Get academic year details
- PUT /{ano_letivo_id} - Update academic year
- POST /{ano_letivo_id}/ativar - Activate academic year
- POST|GET /{ano_letivo_id}/trimestres - Trimesters (secondary)
- POST|GET /{ano_letivo_id}/semestres - Semesters (higher education)

Writes require ADMIN, DIRECAO or SUPER_ADMIN.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    GESTAO_ROLES,
    RequireRole,
    get_db,
    require_auth,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.enums import StatusAnoLetivo
from dsicola.domains.academic_year.service import (
    AcademicYearConflictError,
    AcademicYearNotFoundError,
    AcademicYearService,
    AcademicYearServiceError,
)
from dsicola.models.academic_year import (
    AnoLetivoCreateRequest,
    AnoLetivoListResponse,
    AnoLetivoResponse,
    AnoLetivoUpdateRequest,
    PeriodoCreateRequest,
    PeriodoResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_gestao = RequireRole(*GESTAO_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> AcademicYearService:
    """Get academic year service instance.

    Args:
        db: Database session.
        tenant: Resolved institution.

    Returns:
        Configured AcademicYearService instance.
    """
    return AcademicYearService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: AcademicYearServiceError) -> HTTPException:
    if isinstance(e, AcademicYearNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ano letivo não encontrado")
    if isinstance(e, AcademicYearConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "",
    response_model=AnoLetivoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create academic year",
    description="Create a new academic year in PLANEJADO status.",
)
async def create_ano_letivo(
    data: AnoLetivoCreateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AnoLetivoResponse:
    logger.info(
        "Creating academic year %s (%s to %s) by %s",
        data.ano,
        data.data_inicio,
        data.data_fim,
        current_user.id,
    )

    try:
        return await _get_service(db, tenant).create_ano_letivo(data, current_user.id)
    except AcademicYearServiceError as e:
        raise _to_http(e)


@router.get(
    "",
    response_model=AnoLetivoListResponse,
    summary="List academic years",
)
async def list_anos_letivos(
    status_filter: Annotated[
        StatusAnoLetivo | None, Query(alias="status", description="Filter by status")
    ] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AnoLetivoListResponse:
    items, total = await _get_service(db, tenant).list_anos_letivos(
        status=status_filter.value if status_filter else None
    )
    return AnoLetivoListResponse(items=items, total=total)


@router.get(
    "/ativo",
    response_model=AnoLetivoResponse | None,
    summary="Get active academic year",
)
async def get_ano_letivo_ativo(
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AnoLetivoResponse | None:
    return await _get_service(db, tenant).get_ano_letivo_ativo()


@router.get(
    "/{ano_letivo_id}",
    response_model=AnoLetivoResponse,
    summary="Get academic year",
)
async def get_ano_letivo(
    ano_letivo_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AnoLetivoResponse:
    try:
        return await _get_service(db, tenant).get_ano_letivo(ano_letivo_id)
    except AcademicYearServiceError as e:
        raise _to_http(e)


@router.put(
    "/{ano_letivo_id}",
    response_model=AnoLetivoResponse,
    summary="Update academic year",
    description="Only PLANEJADO years can be updated.",
)
async def update_ano_letivo(
    ano_letivo_id: str,
    data: AnoLetivoUpdateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AnoLetivoResponse:
    try:
        return await _get_service(db, tenant).update_ano_letivo(ano_letivo_id, data, current_user.id)
    except AcademicYearServiceError as e:
        raise _to_http(e)


@router.post(
    "/{ano_letivo_id}/ativar",
    response_model=AnoLetivoResponse,
    summary="Activate academic year",
)
async def activate_ano_letivo(
    ano_letivo_id: str,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AnoLetivoResponse:
    try:
        return await _get_service(db, tenant).activate_ano_letivo(ano_letivo_id, current_user.id)
    except AcademicYearServiceError as e:
        raise _to_http(e)


@router.post(
    "/{ano_letivo_id}/trimestres",
    response_model=PeriodoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create trimester",
)
async def create_trimestre(
    ano_letivo_id: str,
    data: PeriodoCreateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoResponse:
    try:
        return await _get_service(db, tenant).create_trimestre(ano_letivo_id, data, current_user.id)
    except AcademicYearServiceError as e:
        raise _to_http(e)


@router.get(
    "/{ano_letivo_id}/trimestres",
    response_model=list[PeriodoResponse],
    summary="List trimesters",
)
async def list_trimestres(
    ano_letivo_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[PeriodoResponse]:
    return await _get_service(db, tenant).list_trimestres(ano_letivo_id)


@router.post(
    "/{ano_letivo_id}/semestres",
    response_model=PeriodoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create semester",
)
async def create_semestre(
    ano_letivo_id: str,
    data: PeriodoCreateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoResponse:
    try:
        return await _get_service(db, tenant).create_semestre(ano_letivo_id, data, current_user.id)
    except AcademicYearServiceError as e:
        raise _to_http(e)


@router.get(
    "/{ano_letivo_id}/semestres",
    response_model=list[PeriodoResponse],
    summary="List semesters",
)
async def list_semestres(
    ano_letivo_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[PeriodoResponse]:
    return await _get_service(db, tenant).list_semestres(ano_letivo_id)
