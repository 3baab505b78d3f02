# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Library API endpoints.

- POST|GET /biblioteca/itens - Catalogue
- GET|PUT|DELETE /biblioteca/itens/{item_id}
- POST /biblioteca/emprestimos - Lend an item
- GET /biblioteca/emprestimos - List loans (users only see their own)
- GET /biblioteca/emprestimos/atrasados - Overdue loans
- POST /biblioteca/emprestimos/{emprestimo_id}/devolver - Return an item
"""

import logging
from datetime import date
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
from dsicola.core.enums import StatusEmprestimo, TipoItemBiblioteca
from dsicola.domains.library.service import (
    LibraryConflictError,
    LibraryNotFoundError,
    LibraryService,
    LibraryServiceError,
)
from dsicola.models.library import (
    BibliotecaItemCreateRequest,
    BibliotecaItemListResponse,
    BibliotecaItemResponse,
    BibliotecaItemUpdateRequest,
    EmprestimoCreateRequest,
    EmprestimoResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_secretaria = RequireRole(*SECRETARIA_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> LibraryService:
    return LibraryService(db, tenant.id)


def _to_http(e: LibraryServiceError) -> HTTPException:
    if isinstance(e, LibraryNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, LibraryConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =========================================================================
# Itens
# =========================================================================


@router.post(
    "/itens",
    response_model=BibliotecaItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create library item",
)
async def create_item(
    data: BibliotecaItemCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> BibliotecaItemResponse:
    try:
        return await _get_service(db, tenant).create_item(data, current_user.id)
    except LibraryServiceError as e:
        raise _to_http(e)


@router.get("/itens", response_model=BibliotecaItemListResponse, summary="List library items")
async def list_items(
    search: Annotated[str | None, Query(max_length=100)] = None,
    tipo: Annotated[TipoItemBiblioteca | None, Query()] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> BibliotecaItemListResponse:
    items, total = await _get_service(db, tenant).list_items(
        search=search, tipo=tipo.value if tipo else None
    )
    return BibliotecaItemListResponse(items=items, total=total)


@router.get("/itens/{item_id}", response_model=BibliotecaItemResponse, summary="Get library item")
async def get_item(
    item_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> BibliotecaItemResponse:
    try:
        return await _get_service(db, tenant).get_item(item_id)
    except LibraryServiceError as e:
        raise _to_http(e)


@router.put(
    "/itens/{item_id}", response_model=BibliotecaItemResponse, summary="Update library item"
)
async def update_item(
    item_id: str,
    data: BibliotecaItemUpdateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> BibliotecaItemResponse:
    try:
        return await _get_service(db, tenant).update_item(item_id, data, current_user.id)
    except LibraryServiceError as e:
        raise _to_http(e)


@router.delete(
    "/itens/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete library item",
)
async def delete_item(
    item_id: str,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_item(item_id, current_user.id)
    except LibraryServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# Empréstimos
# =========================================================================


@router.post(
    "/emprestimos",
    response_model=EmprestimoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Lend item",
)
async def emprestar(
    data: EmprestimoCreateRequest,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> EmprestimoResponse:
    try:
        return await _get_service(db, tenant).emprestar(data, current_user.id)
    except LibraryServiceError as e:
        raise _to_http(e)


@router.get("/emprestimos", response_model=list[EmprestimoResponse], summary="List loans")
async def list_emprestimos(
    usuario_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[StatusEmprestimo | None, Query(alias="status")] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[EmprestimoResponse]:
    if not current_user.has_any_role(*SECRETARIA_ROLES):
        usuario_id = current_user.id

    return await _get_service(db, tenant).list_emprestimos(
        usuario_id=usuario_id,
        status=status_filter.value if status_filter else None,
    )


@router.get(
    "/emprestimos/atrasados",
    response_model=list[EmprestimoResponse],
    summary="Overdue loans",
)
async def list_atrasados(
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[EmprestimoResponse]:
    return await _get_service(db, tenant).list_atrasados()


@router.post(
    "/emprestimos/{emprestimo_id}/devolver",
    response_model=EmprestimoResponse,
    summary="Return item",
)
async def devolver(
    emprestimo_id: str,
    data_devolucao: Annotated[date | None, Query()] = None,
    current_user: CurrentUser = Depends(require_secretaria),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> EmprestimoResponse:
    try:
        return await _get_service(db, tenant).devolver(
            emprestimo_id, current_user.id, data_devolucao=data_devolucao
        )
    except LibraryServiceError as e:
        raise _to_http(e)
