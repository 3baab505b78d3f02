# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic closing API endpoints.

- POST /encerramentos/iniciar - Start closing a period
- POST /encerramentos/encerrar - Close a period after the prerequisite checks
- POST /encerramentos/reabrir - Reopen a closed period with a justification
- GET /encerramentos/status/{ano_letivo_id} - Closing state of every period
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
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
from dsicola.domains.academic_closing.service import (
    AcademicClosingService,
    ClosingNotFoundError,
    ClosingPrerequisitesError,
    ClosingServiceError,
    PeriodoEncerradoError,
)
from dsicola.models.closing import (
    EncerramentoRequest,
    EncerramentoResponse,
    EncerramentoStatusResponse,
    ReaberturaRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_gestao = RequireRole(*GESTAO_ROLES)
require_academic = RequireRole(*ACADEMIC_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> AcademicClosingService:
    return AcademicClosingService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: ClosingServiceError) -> HTTPException:
    if isinstance(e, ClosingNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ClosingPrerequisitesError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "falhas": e.falhas},
        )
    if isinstance(e, PeriodoEncerradoError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/iniciar", response_model=EncerramentoResponse, summary="Start closing")
async def iniciar(
    data: EncerramentoRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> EncerramentoResponse:
    try:
        return await _get_service(db, tenant).iniciar(
            data.ano_letivo_id, data.periodo, current_user.id
        )
    except ClosingServiceError as e:
        raise _to_http(e)


@router.post("/encerrar", response_model=EncerramentoResponse, summary="Close period")
async def encerrar(
    data: EncerramentoRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> EncerramentoResponse:
    """Close a period.

    Fails with 400 and the list of unmet prerequisites in ``detail.falhas``
    when lessons, attendance or grades are missing.
    """
    logger.info(
        "Closing %s of ano letivo %s by %s",
        data.periodo.value,
        data.ano_letivo_id,
        current_user.id,
    )

    try:
        return await _get_service(db, tenant).encerrar(
            data.ano_letivo_id, data.periodo, current_user.id
        )
    except ClosingServiceError as e:
        raise _to_http(e)


@router.post("/reabrir", response_model=EncerramentoResponse, summary="Reopen period")
async def reabrir(
    data: ReaberturaRequest,
    current_user: CurrentUser = Depends(require_gestao),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> EncerramentoResponse:
    try:
        return await _get_service(db, tenant).reabrir(
            data.ano_letivo_id, data.periodo, data.justificativa, current_user.id
        )
    except ClosingServiceError as e:
        raise _to_http(e)


@router.get(
    "/status/{ano_letivo_id}",
    response_model=EncerramentoStatusResponse,
    summary="Closing status",
)
async def get_status(
    ano_letivo_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> EncerramentoStatusResponse:
    try:
        encerramentos = await _get_service(db, tenant).status(ano_letivo_id)
    except ClosingServiceError as e:
        raise _to_http(e)
    return EncerramentoStatusResponse(ano_letivo_id=ano_letivo_id, encerramentos=encerramentos)
