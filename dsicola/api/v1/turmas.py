# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class (turma) management API endpoints.

This module provides endpoints for turma management:
- POST / - Create a turma
- GET / - List turmas
- GET /{turma_id} - Get turma details with student count
- PUT /{turma_id} - Update turma
- DELETE /{turma_id} - Delete turma
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    SECRETARIA_ROLES,
    RequireRole,
    get_db,
    require_auth,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.domains.class_.service import (
    TurmaNotFoundError,
    TurmaService,
    TurmaServiceError,
)
from dsicola.models.class_ import (
    TurmaCreateRequest,
    TurmaListResponse,
    TurmaResponse,
    TurmaUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_secretaria = RequireRole(*SECRETARIA_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> TurmaService:
    return TurmaService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: TurmaServiceError) -> HTTPException:
    if isinstance(e, TurmaNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "",
    response_model=TurmaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create turma",
)
async def create_turma(
    data: TurmaCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> TurmaResponse:
    logger.info("Creating turma %s by %s", data.nome, current_user.id)

    try:
        return await _get_service(db, tenant).create_turma(data, current_user.id)
    except TurmaServiceError as e:
        raise _to_http(e)


@router.get("", response_model=TurmaListResponse, summary="List turmas")
async def list_turmas(
    ano_letivo_id: Annotated[str | None, Query()] = None,
    curso_id: Annotated[str | None, Query()] = None,
    classe_id: Annotated[str | None, Query()] = None,
    professor_id: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> TurmaListResponse:
    items, total = await _get_service(db, tenant).list_turmas(
        ano_letivo_id=ano_letivo_id,
        curso_id=curso_id,
        classe_id=classe_id,
        professor_id=professor_id,
    )
    return TurmaListResponse(items=items, total=total)


@router.get("/{turma_id}", response_model=TurmaResponse, summary="Get turma")
async def get_turma(
    turma_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> TurmaResponse:
    try:
        return await _get_service(db, tenant).get_turma(turma_id)
    except TurmaServiceError as e:
        raise _to_http(e)


@router.put("/{turma_id}", response_model=TurmaResponse, summary="Update turma")
async def update_turma(
    turma_id: str,
    data: TurmaUpdateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> TurmaResponse:
    try:
        return await _get_service(db, tenant).update_turma(turma_id, data, current_user.id)
    except TurmaServiceError as e:
        raise _to_http(e)


@router.delete("/{turma_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete turma")
async def delete_turma(
    turma_id: str,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_turma(turma_id, current_user.id)
    except TurmaServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
