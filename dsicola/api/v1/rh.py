# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Human resources API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import GESTAO_ROLES, RequireRole, get_db, require_tenant
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.enums import StatusFuncionario
from dsicola.domains.hr.service import (
    FuncionarioNotFoundError,
    HrService,
    HrServiceError,
)
from dsicola.models.hr import (
    FuncionarioCreateRequest,
    FuncionarioListResponse,
    FuncionarioResponse,
    FuncionarioUpdateRequest,
    HistoricoRhCreateRequest,
    HistoricoRhResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_gestao = RequireRole(*GESTAO_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> HrService:
    return HrService(db, tenant.id)


def _to_http(e: HrServiceError) -> HTTPException:
    if isinstance(e, FuncionarioNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/funcionarios",
    response_model=FuncionarioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create funcionário",
)
async def create_funcionario(
    data: FuncionarioCreateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> FuncionarioResponse:
    try:
        return await _get_service(db, tenant).create_funcionario(data, current_user.id)
    except HrServiceError as e:
        raise _to_http(e)


@router.get("/funcionarios", response_model=FuncionarioListResponse, summary="List funcionários")
async def list_funcionarios(
    status_filter: Annotated[StatusFuncionario | None, Query(alias="status")] = None,
    departamento: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> FuncionarioListResponse:
    items, total = await _get_service(db, tenant).list_funcionarios(
        status=status_filter.value if status_filter else None,
        departamento=departamento,
        search=search,
    )
    return FuncionarioListResponse(items=items, total=total)


@router.get(
    "/funcionarios/{funcionario_id}",
    response_model=FuncionarioResponse,
    summary="Get funcionário",
)
async def get_funcionario(
    funcionario_id: str,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> FuncionarioResponse:
    try:
        return await _get_service(db, tenant).get_funcionario(funcionario_id)
    except HrServiceError as e:
        raise _to_http(e)


@router.put(
    "/funcionarios/{funcionario_id}",
    response_model=FuncionarioResponse,
    summary="Update funcionário",
)
async def update_funcionario(
    funcionario_id: str,
    data: FuncionarioUpdateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> FuncionarioResponse:
    try:
        return await _get_service(db, tenant).update_funcionario(
            funcionario_id, data, current_user.id
        )
    except HrServiceError as e:
        raise _to_http(e)


@router.get("/historico", response_model=list[HistoricoRhResponse], summary="HR history")
async def get_historico(
    funcionario_id: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[HistoricoRhResponse]:
    return await _get_service(db, tenant).get_historico(funcionario_id)


@router.post(
    "/historico",
    response_model=HistoricoRhResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record HR history entry",
)
async def create_historico(
    data: HistoricoRhCreateRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> HistoricoRhResponse:
    try:
        return await _get_service(db, tenant).create_historico(data, current_user.id)
    except HrServiceError as e:
        raise _to_http(e)
