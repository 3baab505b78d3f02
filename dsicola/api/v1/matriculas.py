# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API endpoints.

Annual enrollments:
- POST /matriculas-anuais - Enroll a student in an academic year
- GET /matriculas-anuais - List annual enrollments
- GET /matriculas-anuais/{matricula_id} - Get an annual enrollment
- PATCH /matriculas-anuais/{matricula_id}/status - Change its status

Class enrollments:
- POST /matriculas - Enroll a student in a turma
- GET /matriculas - List class enrollments
- PATCH /matriculas/{matricula_id}/status - Change its status
- POST /matriculas/{matricula_id}/cancelar - Cancel
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    ACADEMIC_ROLES,
    SECRETARIA_ROLES,
    RequireRole,
    get_db,
    require_auth,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.enums import StatusMatricula, StatusMatriculaAnual
from dsicola.domains.enrollment.service import (
    AlreadyEnrolledError,
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
)
from dsicola.models.enrollment import (
    MatriculaAnualCreateRequest,
    MatriculaAnualListResponse,
    MatriculaAnualResponse,
    MatriculaAnualStatusRequest,
    MatriculaCreateRequest,
    MatriculaListResponse,
    MatriculaResponse,
    MatriculaStatusRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_secretaria = RequireRole(*SECRETARIA_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> EnrollmentService:
    return EnrollmentService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: EnrollmentServiceError) -> HTTPException:
    if isinstance(e, EnrollmentNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AlreadyEnrolledError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _aluno_scope(current_user: CurrentUser, aluno_id: str | None) -> str | None:
    """Students only see their own enrollments."""
    if current_user.has_any_role(*ACADEMIC_ROLES):
        return aluno_id
    if aluno_id and aluno_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")
    return current_user.id


# =========================================================================
# Matrículas anuais
# =========================================================================


@router.post(
    "/matriculas-anuais",
    response_model=MatriculaAnualResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create annual enrollment",
)
async def create_matricula_anual(
    data: MatriculaAnualCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaAnualResponse:
    logger.info("Annual enrollment of %s in %s by %s", data.aluno_id, data.ano_letivo_id, current_user.id)

    try:
        return await _get_service(db, tenant).create_matricula_anual(data, current_user.id)
    except EnrollmentServiceError as e:
        raise _to_http(e)


@router.get(
    "/matriculas-anuais",
    response_model=MatriculaAnualListResponse,
    summary="List annual enrollments",
)
async def list_matriculas_anuais(
    ano_letivo_id: Annotated[str | None, Query()] = None,
    aluno_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[StatusMatriculaAnual | None, Query(alias="status")] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaAnualListResponse:
    items, total = await _get_service(db, tenant).list_matriculas_anuais(
        ano_letivo_id=ano_letivo_id,
        aluno_id=_aluno_scope(current_user, aluno_id),
        status=status_filter.value if status_filter else None,
    )
    return MatriculaAnualListResponse(items=items, total=total)


@router.get(
    "/matriculas-anuais/{matricula_id}",
    response_model=MatriculaAnualResponse,
    summary="Get annual enrollment",
)
async def get_matricula_anual(
    matricula_id: str,
    current_user: CurrentUser = Depends(RequireRole(*ACADEMIC_ROLES)),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaAnualResponse:
    try:
        return await _get_service(db, tenant).get_matricula_anual(matricula_id)
    except EnrollmentServiceError as e:
        raise _to_http(e)


@router.patch(
    "/matriculas-anuais/{matricula_id}/status",
    response_model=MatriculaAnualResponse,
    summary="Change annual enrollment status",
)
async def update_status_matricula_anual(
    matricula_id: str,
    data: MatriculaAnualStatusRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaAnualResponse:
    try:
        return await _get_service(db, tenant).update_status_matricula_anual(
            matricula_id, data.status, current_user.id, data.observacoes
        )
    except EnrollmentServiceError as e:
        raise _to_http(e)


# =========================================================================
# Matrículas em turma
# =========================================================================


@router.post(
    "/matriculas",
    response_model=MatriculaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student in turma",
)
async def enroll_student(
    data: MatriculaCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaResponse:
    try:
        return await _get_service(db, tenant).enroll_student(data, current_user.id)
    except EnrollmentServiceError as e:
        raise _to_http(e)


@router.get("/matriculas", response_model=MatriculaListResponse, summary="List class enrollments")
async def list_matriculas(
    turma_id: Annotated[str | None, Query()] = None,
    aluno_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[StatusMatricula | None, Query(alias="status")] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaListResponse:
    items, total = await _get_service(db, tenant).list_matriculas(
        turma_id=turma_id,
        aluno_id=_aluno_scope(current_user, aluno_id),
        status=status_filter.value if status_filter else None,
    )
    return MatriculaListResponse(items=items, total=total)


@router.patch(
    "/matriculas/{matricula_id}/status",
    response_model=MatriculaResponse,
    summary="Change class enrollment status",
)
async def update_status_matricula(
    matricula_id: str,
    data: MatriculaStatusRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaResponse:
    try:
        return await _get_service(db, tenant).update_status_matricula(
            matricula_id, data.status, current_user.id
        )
    except EnrollmentServiceError as e:
        raise _to_http(e)


@router.post(
    "/matriculas/{matricula_id}/cancelar",
    response_model=MatriculaResponse,
    summary="Cancel class enrollment",
)
async def cancel_matricula(
    matricula_id: str,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MatriculaResponse:
    try:
        return await _get_service(db, tenant).cancel_matricula(matricula_id, current_user.id)
    except EnrollmentServiceError as e:
        raise _to_http(e)
