# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade posting window API endpoints.

- POST /periodos-lancamento - Open a posting window
- GET /periodos-lancamento - List windows of the institution
- GET|PUT /periodos-lancamento/{periodo_id}
- POST /periodos-lancamento/{periodo_id}/fechar - Close a window
- POST /periodos-lancamento/{periodo_id}/reabrir - Reopen a window (ADMIN)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    ACADEMIC_ROLES,
    GESTAO_ROLES,
    RequireRole,
    get_db,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.domains.assessment.posting_window import (
    PostingWindowConflictError,
    PostingWindowError,
    PostingWindowForbiddenError,
    PostingWindowNotFoundError,
    PostingWindowService,
)
from dsicola.models.assessment import (
    PeriodoLancamentoCreateRequest,
    PeriodoLancamentoReabrirRequest,
    PeriodoLancamentoResponse,
    PeriodoLancamentoUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_gestao = RequireRole(*GESTAO_ROLES)
require_academic = RequireRole(*ACADEMIC_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> PostingWindowService:
    return PostingWindowService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: PostingWindowError) -> HTTPException:
    if isinstance(e, PostingWindowNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PostingWindowConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, PostingWindowForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "",
    response_model=PeriodoLancamentoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create posting window",
)
async def create_periodo(
    data: PeriodoLancamentoCreateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoLancamentoResponse:
    try:
        return await _get_service(db, tenant).create_periodo(data, current_user.id)
    except PostingWindowError as e:
        raise _to_http(e)


@router.get("", response_model=list[PeriodoLancamentoResponse], summary="List posting windows")
async def list_periodos(
    ano_letivo_id: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[PeriodoLancamentoResponse]:
    return await _get_service(db, tenant).list_periodos(ano_letivo_id)


@router.get(
    "/{periodo_id}", response_model=PeriodoLancamentoResponse, summary="Get posting window"
)
async def get_periodo(
    periodo_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoLancamentoResponse:
    try:
        return await _get_service(db, tenant).get_periodo(periodo_id)
    except PostingWindowError as e:
        raise _to_http(e)


@router.put(
    "/{periodo_id}", response_model=PeriodoLancamentoResponse, summary="Update posting window"
)
async def update_periodo(
    periodo_id: str,
    data: PeriodoLancamentoUpdateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoLancamentoResponse:
    try:
        return await _get_service(db, tenant).update_periodo(periodo_id, data, current_user.id)
    except PostingWindowError as e:
        raise _to_http(e)


@router.post(
    "/{periodo_id}/fechar",
    response_model=PeriodoLancamentoResponse,
    summary="Close posting window",
)
async def fechar_periodo(
    periodo_id: str,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoLancamentoResponse:
    try:
        return await _get_service(db, tenant).fechar_periodo(periodo_id, current_user.id)
    except PostingWindowError as e:
        raise _to_http(e)


@router.post(
    "/{periodo_id}/reabrir",
    response_model=PeriodoLancamentoResponse,
    summary="Reopen posting window",
)
async def reabrir_periodo(
    periodo_id: str,
    data: PeriodoLancamentoReabrirRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PeriodoLancamentoResponse:
    """Reopen a closed or expired window. Only ADMIN may reopen."""
    logger.info("Reopening posting window %s by %s", periodo_id, current_user.id)

    try:
        return await _get_service(db, tenant).reabrir_periodo(
            periodo_id,
            data.motivo,
            current_user.id,
            current_user.roles,
            data_fim=data.data_fim,
        )
    except PostingWindowError as e:
        raise _to_http(e)
