# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log API endpoints."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import GESTAO_ROLES, RequireRole, get_db, require_tenant
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria
from dsicola.domains.audit.service import AuditService
from dsicola.models.audit import LogAuditoriaListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=LogAuditoriaListResponse, summary="List audit log")
async def list_logs(
    modulo: Annotated[ModuloAuditoria | None, Query()] = None,
    acao: Annotated[AcaoAuditoria | None, Query()] = None,
    entidade: Annotated[str | None, Query()] = None,
    usuario_id: Annotated[str | None, Query()] = None,
    data_inicio: Annotated[datetime | None, Query()] = None,
    data_fim: Annotated[datetime | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
    current_user: CurrentUser = Depends(RequireRole(*GESTAO_ROLES)),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> LogAuditoriaListResponse:
    """Audit entries of the tenant, newest first."""
    return await AuditService(db, tenant.id).list_logs(
        modulo=modulo.value if modulo else None,
        acao=acao.value if acao else None,
        entidade=entidade,
        usuario_id=usuario_id,
        data_inicio=data_inicio,
        data_fim=data_fim,
        page=page,
        page_size=page_size,
    )
