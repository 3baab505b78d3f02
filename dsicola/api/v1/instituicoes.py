# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Institution management API endpoints.

Institutions (tenants) are managed by platform administrators:
- POST / - Create an institution
- GET / - List institutions
- GET /{instituicao_id} - Get an institution
- PUT /{instituicao_id} - Update an institution

Configuration of the caller's institution:
- GET /configuracao/parametros - Academic parameters
- PUT /configuracao/parametros - Update academic parameters
- GET /configuracao/multa - Late-fee configuration
- PUT /configuracao/multa - Create or update the late-fee configuration
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    ADMIN_ROLES,
    RequireRole,
    get_db,
    require_auth,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.enums import StatusInstituicao, UserRole
from dsicola.domains.instituicao.service import (
    InstituicaoConflictError,
    InstituicaoNotFoundError,
    InstituicaoService,
    ParametrosService,
)
from dsicola.models.instituicao import (
    ConfiguracaoMultaRequest,
    ConfiguracaoMultaResponse,
    InstituicaoCreateRequest,
    InstituicaoListResponse,
    InstituicaoResponse,
    InstituicaoUpdateRequest,
    ParametrosSistemaResponse,
    ParametrosSistemaUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_super_admin = RequireRole(UserRole.SUPER_ADMIN.value)


def _get_service(db: AsyncSession) -> InstituicaoService:
    return InstituicaoService(db)


def _get_parametros_service(db: AsyncSession, tenant: TenantContext) -> ParametrosService:
    return ParametrosService(db, tenant.id)


# =========================================================================
# Configuration of the current institution
# =========================================================================


@router.get(
    "/configuracao/parametros",
    response_model=ParametrosSistemaResponse,
    summary="Get academic parameters",
)
async def get_parametros(
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ParametrosSistemaResponse:
    return await _get_parametros_service(db, tenant).get_parametros()


@router.put(
    "/configuracao/parametros",
    response_model=ParametrosSistemaResponse,
    summary="Update academic parameters",
    description="Requires ADMIN access.",
)
async def update_parametros(
    data: ParametrosSistemaUpdateRequest,
    current_user: CurrentUser = Depends(RequireRole(*ADMIN_ROLES)),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ParametrosSistemaResponse:
    return await _get_parametros_service(db, tenant).update_parametros(data, current_user.id)


@router.get(
    "/configuracao/multa",
    response_model=ConfiguracaoMultaResponse,
    summary="Get late-fee configuration",
)
async def get_configuracao_multa(
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ConfiguracaoMultaResponse:
    return await _get_parametros_service(db, tenant).get_configuracao_multa()


@router.put(
    "/configuracao/multa",
    response_model=ConfiguracaoMultaResponse,
    summary="Upsert late-fee configuration",
    description="Requires ADMIN access.",
)
async def upsert_configuracao_multa(
    data: ConfiguracaoMultaRequest,
    current_user: CurrentUser = Depends(RequireRole(*ADMIN_ROLES)),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ConfiguracaoMultaResponse:
    return await _get_parametros_service(db, tenant).upsert_configuracao_multa(
        data, current_user.id
    )


# =========================================================================
# Institutions (SUPER_ADMIN)
# =========================================================================


@router.post(
    "",
    response_model=InstituicaoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create institution",
    description="Create a new institution. Requires SUPER_ADMIN access.",
)
async def create_instituicao(
    data: InstituicaoCreateRequest,
    current_user: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> InstituicaoResponse:
    logger.info("Creating institution %s by %s", data.subdominio, current_user.id)

    try:
        return await _get_service(db).create_instituicao(data)
    except InstituicaoConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get(
    "",
    response_model=InstituicaoListResponse,
    summary="List institutions",
)
async def list_instituicoes(
    status_filter: Annotated[
        StatusInstituicao | None, Query(alias="status", description="Filter by status")
    ] = None,
    current_user: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> InstituicaoListResponse:
    items, total = await _get_service(db).list_instituicoes(
        status=status_filter.value if status_filter else None
    )
    return InstituicaoListResponse(items=items, total=total)


@router.get(
    "/{instituicao_id}",
    response_model=InstituicaoResponse,
    summary="Get institution",
)
async def get_instituicao(
    instituicao_id: str,
    current_user: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> InstituicaoResponse:
    try:
        return await _get_service(db).get_instituicao(instituicao_id)
    except InstituicaoNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Instituição não encontrada",
        )


@router.put(
    "/{instituicao_id}",
    response_model=InstituicaoResponse,
    summary="Update institution",
)
async def update_instituicao(
    instituicao_id: str,
    data: InstituicaoUpdateRequest,
    current_user: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> InstituicaoResponse:
    try:
        return await _get_service(db).update_instituicao(instituicao_id, data)
    except InstituicaoNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Instituição não encontrada",
        )
