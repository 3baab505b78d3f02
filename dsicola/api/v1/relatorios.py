# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Official report API endpoints.

- GET /relatorios-oficiais/boletim/{aluno_id}?ano_letivo_id= - Report card
- GET /relatorios-oficiais/pauta/{plano_id} - Grade sheet of a plano
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
from dsicola.domains.reports.service import (
    ReportsForbiddenError,
    ReportsNotFoundError,
    ReportsService,
    ReportsServiceError,
)
from dsicola.models.reports import BoletimResponse, PautaResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession, tenant: TenantContext) -> ReportsService:
    return ReportsService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: ReportsServiceError) -> HTTPException:
    if isinstance(e, ReportsNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ReportsForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/boletim/{aluno_id}", response_model=BoletimResponse, summary="Report card")
async def boletim(
    aluno_id: str,
    ano_letivo_id: Annotated[str, Query()],
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> BoletimResponse:
    """Report card of a student.

    Students read their own, guardians read their linked students and staff
    read any student of the tenant.
    """
    try:
        return await _get_service(db, tenant).boletim(
            aluno_id, ano_letivo_id, current_user.id, current_user.roles
        )
    except ReportsServiceError as e:
        raise _to_http(e)


@router.get("/pauta/{plano_id}", response_model=PautaResponse, summary="Grade sheet")
async def pauta(
    plano_id: str,
    current_user: CurrentUser = Depends(RequireRole(*ACADEMIC_ROLES)),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PautaResponse:
    try:
        return await _get_service(db, tenant).pauta(plano_id)
    except ReportsServiceError as e:
        raise _to_http(e)
