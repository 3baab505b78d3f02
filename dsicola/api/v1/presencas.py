# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance API endpoints.

- POST /presencas - Record attendance for a posted lesson (upsert per student)
- GET /presencas/aula/{aula_id} - Attendance sheet of a posted lesson
- GET /presencas/frequencia - Attendance rate of a student in a plano
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    ACADEMIC_ROLES,
    RequireRole,
    get_db,
    require_auth,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.domains.attendance.service import (
    AttendanceForbiddenError,
    AttendanceNotFoundError,
    AttendanceService,
    AttendanceServiceError,
)
from dsicola.models.attendance import (
    FrequenciaResponse,
    PresencaLoteRequest,
    PresencaResponse,
    PresencasAulaResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_academic = RequireRole(*ACADEMIC_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> AttendanceService:
    return AttendanceService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: AttendanceServiceError) -> HTTPException:
    if isinstance(e, AttendanceNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AttendanceForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("", response_model=list[PresencaResponse], summary="Record attendance")
async def registrar_presencas(
    data: PresencaLoteRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[PresencaResponse]:
    logger.info(
        "Recording %d presencas for aula %s by %s",
        len(data.presencas),
        data.aula_lancada_id,
        current_user.id,
    )

    try:
        return await _get_service(db, tenant).registrar_presencas(
            data, current_user.id, current_user.roles
        )
    except AttendanceServiceError as e:
        raise _to_http(e)


@router.get(
    "/aula/{aula_id}",
    response_model=PresencasAulaResponse,
    summary="Attendance sheet of a lesson",
)
async def list_presencas_aula(
    aula_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PresencasAulaResponse:
    try:
        return await _get_service(db, tenant).list_presencas_aula(aula_id)
    except AttendanceServiceError as e:
        raise _to_http(e)


@router.get("/frequencia", response_model=FrequenciaResponse, summary="Student attendance rate")
async def get_frequencia(
    aluno_id: Annotated[str, Query()],
    plano_ensino_id: Annotated[str, Query()],
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> FrequenciaResponse:
    """Students may only query their own attendance."""
    if aluno_id != current_user.id and not current_user.has_any_role(*ACADEMIC_ROLES):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")

    try:
        return await _get_service(db, tenant).get_frequencia(aluno_id, plano_ensino_id)
    except AttendanceServiceError as e:
        raise _to_http(e)
