# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tuition billing API endpoints.

Mensalidades:
- POST /mensalidades - Create a mensalidade
- GET /mensalidades - List (students only see their own)
- GET|PUT|DELETE /mensalidades/{mensalidade_id}
- POST /mensalidades/gerar - Bulk generation for enrolled students
- POST /mensalidades/aplicar-multas - Apply late fees to overdue charges

Pagamentos:
- POST /mensalidades/{mensalidade_id}/pagamentos - Register a payment
- GET /mensalidades/{mensalidade_id}/pagamentos - Payments of a mensalidade
- POST /pagamentos/{pagamento_id}/estornar - Reverse a payment
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    ADMIN_ROLES,
    FINANCE_ROLES,
    RequireRole,
    get_db,
    require_auth,
    require_tenant,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.enums import StatusMensalidade
from dsicola.domains.finance.service import (
    FinanceConflictError,
    FinanceNotFoundError,
    FinanceService,
    FinanceServiceError,
)
from dsicola.models.finance import (
    AplicarMultasResponse,
    EstornoRequest,
    GerarMensalidadesRequest,
    GerarMensalidadesResponse,
    MensalidadeCreateRequest,
    MensalidadeListResponse,
    MensalidadeResponse,
    MensalidadeUpdateRequest,
    PagamentoCreateRequest,
    PagamentoResponse,
    PagamentoResultResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_finance = RequireRole(*FINANCE_ROLES)
require_admin = RequireRole(*ADMIN_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> FinanceService:
    return FinanceService(db, tenant.id)


def _to_http(e: FinanceServiceError) -> HTTPException:
    if isinstance(e, FinanceNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, FinanceConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =========================================================================
# Mensalidades
# =========================================================================


@router.post(
    "/mensalidades",
    response_model=MensalidadeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create mensalidade",
)
async def create_mensalidade(
    data: MensalidadeCreateRequest,
    current_user: CurrentUser = Depends(require_finance),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MensalidadeResponse:
    try:
        return await _get_service(db, tenant).create_mensalidade(data, current_user.id)
    except FinanceServiceError as e:
        raise _to_http(e)


@router.get("/mensalidades", response_model=MensalidadeListResponse, summary="List mensalidades")
async def list_mensalidades(
    aluno_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[StatusMensalidade | None, Query(alias="status")] = None,
    mes_referencia: Annotated[int | None, Query(ge=1, le=12)] = None,
    ano_referencia: Annotated[int | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MensalidadeListResponse:
    """List mensalidades. Users without a finance role only see their own."""
    if not current_user.has_any_role(*FINANCE_ROLES):
        aluno_id = current_user.id

    return await _get_service(db, tenant).list_mensalidades(
        aluno_id=aluno_id,
        status=status_filter,
        mes_referencia=mes_referencia,
        ano_referencia=ano_referencia,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/mensalidades/gerar",
    response_model=GerarMensalidadesResponse,
    summary="Generate mensalidades in bulk",
)
async def gerar_mensalidades(
    data: GerarMensalidadesRequest,
    current_user: CurrentUser = Depends(require_finance),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> GerarMensalidadesResponse:
    logger.info(
        "Generating mensalidades %02d/%d by %s",
        data.mes_referencia,
        data.ano_referencia,
        current_user.id,
    )

    try:
        return await _get_service(db, tenant).gerar_mensalidades(data, current_user.id)
    except FinanceServiceError as e:
        raise _to_http(e)


@router.post(
    "/mensalidades/aplicar-multas",
    response_model=AplicarMultasResponse,
    summary="Apply late fees",
)
async def aplicar_multas(
    current_user: CurrentUser = Depends(require_finance),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AplicarMultasResponse:
    atualizadas = await _get_service(db, tenant).aplicar_multas()
    return AplicarMultasResponse(atualizadas=atualizadas)


@router.get(
    "/mensalidades/{mensalidade_id}",
    response_model=MensalidadeResponse,
    summary="Get mensalidade",
)
async def get_mensalidade(
    mensalidade_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MensalidadeResponse:
    try:
        mensalidade = await _get_service(db, tenant).get_mensalidade(mensalidade_id)
    except FinanceServiceError as e:
        raise _to_http(e)

    if mensalidade.aluno_id != current_user.id and not current_user.has_any_role(*FINANCE_ROLES):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")
    return mensalidade


@router.put(
    "/mensalidades/{mensalidade_id}",
    response_model=MensalidadeResponse,
    summary="Update mensalidade",
)
async def update_mensalidade(
    mensalidade_id: str,
    data: MensalidadeUpdateRequest,
    current_user: CurrentUser = Depends(require_finance),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> MensalidadeResponse:
    try:
        return await _get_service(db, tenant).update_mensalidade(
            mensalidade_id, data, current_user.id
        )
    except FinanceServiceError as e:
        raise _to_http(e)


@router.delete(
    "/mensalidades/{mensalidade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete mensalidade",
)
async def delete_mensalidade(
    mensalidade_id: str,
    current_user: CurrentUser = Depends(require_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_mensalidade(mensalidade_id, current_user.id)
    except FinanceServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# Pagamentos
# =========================================================================


@router.post(
    "/mensalidades/{mensalidade_id}/pagamentos",
    response_model=PagamentoResultResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register payment",
)
async def registrar_pagamento(
    mensalidade_id: str,
    data: PagamentoCreateRequest,
    current_user: CurrentUser = Depends(require_finance),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PagamentoResultResponse:
    try:
        return await _get_service(db, tenant).registrar_pagamento(
            mensalidade_id, data, current_user.id
        )
    except FinanceServiceError as e:
        raise _to_http(e)


@router.get(
    "/mensalidades/{mensalidade_id}/pagamentos",
    response_model=list[PagamentoResponse],
    summary="List payments",
)
async def list_pagamentos(
    mensalidade_id: str,
    current_user: CurrentUser = Depends(require_finance),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[PagamentoResponse]:
    try:
        return await _get_service(db, tenant).list_pagamentos(mensalidade_id)
    except FinanceServiceError as e:
        raise _to_http(e)


@router.post(
    "/pagamentos/{pagamento_id}/estornar",
    response_model=PagamentoResultResponse,
    summary="Reverse payment",
)
async def estornar_pagamento(
    pagamento_id: str,
    data: EstornoRequest | None = None,
    current_user: CurrentUser = Depends(require_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PagamentoResultResponse:
    logger.info("Reversing pagamento %s by %s", pagamento_id, current_user.id)

    try:
        return await _get_service(db, tenant).estornar_pagamento(
            pagamento_id, current_user.id, observacoes=data.observacoes if data else None
        )
    except FinanceServiceError as e:
        raise _to_http(e)
