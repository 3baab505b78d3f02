# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teaching plan API endpoints.

Planos de ensino:
- POST /plano-ensino - Create a plano (RASCUNHO)
- GET /plano-ensino - List planos
- GET /plano-ensino/{plano_id} - Get a plano with its planned lessons
- PUT /plano-ensino/{plano_id} - Update (RASCUNHO or REJEITADO only)
- DELETE /plano-ensino/{plano_id} - Delete (RASCUNHO only)
- POST|GET /plano-ensino/{plano_id}/aulas - Planned lessons
- PUT|DELETE /plano-ensino/{plano_id}/aulas/{aula_id}
- POST /plano-ensino/{plano_id}/{acao} - submeter, aprovar, rejeitar,
  bloquear, desbloquear, reabrir

Workflow shared with avaliações:
- POST /workflow/{entidade}/{entidade_id}/transicao
- GET /workflow/{entidade}/{entidade_id}/historico
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
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
from dsicola.core.enums import EntidadeWorkflow, StatusWorkflow, UserRole
from dsicola.domains.teaching_plan.service import (
    PlanoEnsinoConflictError,
    PlanoEnsinoForbiddenError,
    PlanoEnsinoNotFoundError,
    PlanoEnsinoService,
    PlanoEnsinoServiceError,
    WorkflowService,
)
from dsicola.models.teaching_plan import (
    PlanoAulaCreateRequest,
    PlanoAulaResponse,
    PlanoAulaUpdateRequest,
    PlanoEnsinoCreateRequest,
    PlanoEnsinoListResponse,
    PlanoEnsinoResponse,
    PlanoEnsinoUpdateRequest,
    WorkflowLogResponse,
    WorkflowObservacaoRequest,
    WorkflowTransitionRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_academic = RequireRole(*ACADEMIC_ROLES)

# Named shortcuts for plano transitions
ACOES_WORKFLOW = {
    "submeter": StatusWorkflow.SUBMETIDO,
    "aprovar": StatusWorkflow.APROVADO,
    "rejeitar": StatusWorkflow.REJEITADO,
    "bloquear": StatusWorkflow.BLOQUEADO,
    "desbloquear": StatusWorkflow.APROVADO,
    "reabrir": StatusWorkflow.RASCUNHO,
}


def _get_service(db: AsyncSession, tenant: TenantContext) -> PlanoEnsinoService:
    return PlanoEnsinoService(db, tenant.id, tenant.tipo_academico)


def _get_workflow(db: AsyncSession, tenant: TenantContext) -> WorkflowService:
    return WorkflowService(db, tenant.id)


def _to_http(e: PlanoEnsinoServiceError) -> HTTPException:
    if isinstance(e, PlanoEnsinoNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PlanoEnsinoConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, PlanoEnsinoForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =========================================================================
# Planos de ensino
# =========================================================================


@router.post(
    "/plano-ensino",
    response_model=PlanoEnsinoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create teaching plan",
)
async def create_plano(
    data: PlanoEnsinoCreateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PlanoEnsinoResponse:
    try:
        return await _get_service(db, tenant).create_plano(data, current_user.id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.get("/plano-ensino", response_model=PlanoEnsinoListResponse, summary="List teaching plans")
async def list_planos(
    ano_letivo_id: Annotated[str | None, Query()] = None,
    turma_id: Annotated[str | None, Query()] = None,
    disciplina_id: Annotated[str | None, Query()] = None,
    professor_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[StatusWorkflow | None, Query(alias="status")] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PlanoEnsinoListResponse:
    """List planos. A teacher without staff roles sees only their own."""
    if not current_user.has_any_role(*SECRETARIA_ROLES):
        if not current_user.has_role(UserRole.PROFESSOR.value):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")
        professor_id = current_user.id

    items, total = await _get_service(db, tenant).list_planos(
        ano_letivo_id=ano_letivo_id,
        turma_id=turma_id,
        disciplina_id=disciplina_id,
        professor_id=professor_id,
        status=status_filter.value if status_filter else None,
    )
    return PlanoEnsinoListResponse(items=items, total=total)


@router.get(
    "/plano-ensino/{plano_id}", response_model=PlanoEnsinoResponse, summary="Get teaching plan"
)
async def get_plano(
    plano_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PlanoEnsinoResponse:
    try:
        return await _get_service(db, tenant).get_plano(plano_id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.put(
    "/plano-ensino/{plano_id}", response_model=PlanoEnsinoResponse, summary="Update teaching plan"
)
async def update_plano(
    plano_id: str,
    data: PlanoEnsinoUpdateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PlanoEnsinoResponse:
    try:
        return await _get_service(db, tenant).update_plano(plano_id, data, current_user.id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.delete(
    "/plano-ensino/{plano_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete teaching plan",
)
async def delete_plano(
    plano_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_plano(plano_id, current_user.id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# Planned lessons
# =========================================================================


@router.post(
    "/plano-ensino/{plano_id}/aulas",
    response_model=PlanoAulaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add planned lesson",
)
async def add_aula(
    plano_id: str,
    data: PlanoAulaCreateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PlanoAulaResponse:
    try:
        return await _get_service(db, tenant).add_aula(plano_id, data, current_user.id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.get(
    "/plano-ensino/{plano_id}/aulas",
    response_model=list[PlanoAulaResponse],
    summary="List planned lessons",
)
async def list_aulas(
    plano_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[PlanoAulaResponse]:
    try:
        return await _get_service(db, tenant).list_aulas(plano_id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.put(
    "/plano-ensino/{plano_id}/aulas/{aula_id}",
    response_model=PlanoAulaResponse,
    summary="Update planned lesson",
)
async def update_aula(
    plano_id: str,
    aula_id: str,
    data: PlanoAulaUpdateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> PlanoAulaResponse:
    try:
        return await _get_service(db, tenant).update_aula(plano_id, aula_id, data, current_user.id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.delete(
    "/plano-ensino/{plano_id}/aulas/{aula_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete planned lesson",
)
async def delete_aula(
    plano_id: str,
    aula_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_aula(plano_id, aula_id, current_user.id)
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================================================================
# Workflow
# =========================================================================


@router.post(
    "/plano-ensino/{plano_id}/{acao}",
    response_model=WorkflowLogResponse,
    summary="Plano workflow action",
    description="One of: submeter, aprovar, rejeitar, bloquear, desbloquear, reabrir.",
)
async def plano_workflow_action(
    plano_id: str,
    acao: str,
    data: WorkflowObservacaoRequest | None = None,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> WorkflowLogResponse:
    novo_status = ACOES_WORKFLOW.get(acao)
    if novo_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Ação desconhecida: {acao}")

    try:
        return await _get_workflow(db, tenant).transition(
            EntidadeWorkflow.PLANO_ENSINO,
            plano_id,
            novo_status,
            current_user.id,
            current_user.roles,
            observacao=data.observacao if data else None,
        )
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.post(
    "/workflow/{entidade}/{entidade_id}/transicao",
    response_model=WorkflowLogResponse,
    summary="Workflow transition",
)
async def workflow_transition(
    entidade: EntidadeWorkflow,
    entidade_id: str,
    data: WorkflowTransitionRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> WorkflowLogResponse:
    try:
        return await _get_workflow(db, tenant).transition(
            entidade,
            entidade_id,
            data.status,
            current_user.id,
            current_user.roles,
            observacao=data.observacao,
        )
    except PlanoEnsinoServiceError as e:
        raise _to_http(e)


@router.get(
    "/workflow/{entidade}/{entidade_id}/historico",
    response_model=list[WorkflowLogResponse],
    summary="Workflow history",
)
async def workflow_historico(
    entidade: EntidadeWorkflow,
    entidade_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[WorkflowLogResponse]:
    return await _get_workflow(db, tenant).historico(entidade, entidade_id)
