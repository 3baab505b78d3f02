# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum API endpoints.

This module provides CRUD endpoints for:
- /cursos - Courses
- /classes - Grade levels (secondary education only)
- /disciplinas - Subjects

Reads are open to any authenticated user of the institution. Writes
require ADMIN, DIRECAO, SECRETARIA or SUPER_ADMIN.
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
from dsicola.domains.curriculum.service import (
    CurriculumConflictError,
    CurriculumNotFoundError,
    CurriculumService,
    CurriculumServiceError,
)
from dsicola.models.curriculum import (
    ClasseCreateRequest,
    ClasseResponse,
    ClasseUpdateRequest,
    CursoCreateRequest,
    CursoResponse,
    CursoUpdateRequest,
    DisciplinaCreateRequest,
    DisciplinaResponse,
    DisciplinaUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_secretaria = RequireRole(*SECRETARIA_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> CurriculumService:
    return CurriculumService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: CurriculumServiceError) -> HTTPException:
    if isinstance(e, CurriculumNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, CurriculumConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


OnlyActive = Annotated[bool, Query(description="Only active records")]


# =========================================================================
# Cursos
# =========================================================================


@router.post(
    "/cursos",
    response_model=CursoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_curso(
    data: CursoCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> CursoResponse:
    try:
        return await _get_service(db, tenant).create_curso(data, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.get("/cursos", response_model=list[CursoResponse], summary="List courses")
async def list_cursos(
    only_active: OnlyActive = False,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[CursoResponse]:
    return await _get_service(db, tenant).list_cursos(only_active=only_active)


@router.get("/cursos/{curso_id}", response_model=CursoResponse, summary="Get course")
async def get_curso(
    curso_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> CursoResponse:
    try:
        return await _get_service(db, tenant).get_curso(curso_id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.put("/cursos/{curso_id}", response_model=CursoResponse, summary="Update course")
async def update_curso(
    curso_id: str,
    data: CursoUpdateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> CursoResponse:
    try:
        return await _get_service(db, tenant).update_curso(curso_id, data, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.delete(
    "/cursos/{curso_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course",
)
async def delete_curso(
    curso_id: str,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_curso(curso_id, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# Classes
# =========================================================================


@router.post(
    "/classes",
    response_model=ClasseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create grade level",
    description="Secondary education institutions only.",
)
async def create_classe(
    data: ClasseCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ClasseResponse:
    try:
        return await _get_service(db, tenant).create_classe(data, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.get("/classes", response_model=list[ClasseResponse], summary="List grade levels")
async def list_classes(
    only_active: OnlyActive = False,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[ClasseResponse]:
    return await _get_service(db, tenant).list_classes(only_active=only_active)


@router.get("/classes/{classe_id}", response_model=ClasseResponse, summary="Get grade level")
async def get_classe(
    classe_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ClasseResponse:
    try:
        return await _get_service(db, tenant).get_classe(classe_id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.put("/classes/{classe_id}", response_model=ClasseResponse, summary="Update grade level")
async def update_classe(
    classe_id: str,
    data: ClasseUpdateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ClasseResponse:
    try:
        return await _get_service(db, tenant).update_classe(classe_id, data, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.delete(
    "/classes/{classe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete grade level",
)
async def delete_classe(
    classe_id: str,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_classe(classe_id, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# Disciplinas
# =========================================================================


@router.post(
    "/disciplinas",
    response_model=DisciplinaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
)
async def create_disciplina(
    data: DisciplinaCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> DisciplinaResponse:
    try:
        return await _get_service(db, tenant).create_disciplina(data, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.get("/disciplinas", response_model=list[DisciplinaResponse], summary="List subjects")
async def list_disciplinas(
    curso_id: Annotated[str | None, Query(description="Filter by course")] = None,
    only_active: OnlyActive = False,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[DisciplinaResponse]:
    return await _get_service(db, tenant).list_disciplinas(curso_id=curso_id, only_active=only_active)


@router.get(
    "/disciplinas/{disciplina_id}", response_model=DisciplinaResponse, summary="Get subject"
)
async def get_disciplina(
    disciplina_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> DisciplinaResponse:
    try:
        return await _get_service(db, tenant).get_disciplina(disciplina_id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.put(
    "/disciplinas/{disciplina_id}", response_model=DisciplinaResponse, summary="Update subject"
)
async def update_disciplina(
    disciplina_id: str,
    data: DisciplinaUpdateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> DisciplinaResponse:
    try:
        return await _get_service(db, tenant).update_disciplina(disciplina_id, data, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)


@router.delete(
    "/disciplinas/{disciplina_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete subject",
)
async def delete_disciplina(
    disciplina_id: str,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_disciplina(disciplina_id, current_user.id)
    except CurriculumServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
