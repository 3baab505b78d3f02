# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment and grade API endpoints.

Avaliações:
- POST /avaliacoes - Create an avaliação in an active plano
- GET /avaliacoes - List avaliações
- GET|PUT|DELETE /avaliacoes/{avaliacao_id}
- POST /avaliacoes/{avaliacao_id}/fechar - Close for grade posting

Notas:
- POST /notas/avaliacao/lote - Post grades in batch (upsert per student)
- GET /notas/avaliacao/{avaliacao_id} - Grades of an avaliação
- GET /notas/aluno/{aluno_id} - Grades of a student
- PUT /notas/{nota_id}/corrigir - Correct a grade with a justification
- GET /notas/{nota_id}/historico - Grade change history
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
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
from dsicola.domains.assessment.service import (
    AssessmentForbiddenError,
    AssessmentNotFoundError,
    AssessmentService,
    AssessmentServiceError,
)
from dsicola.models.assessment import (
    AvaliacaoCreateRequest,
    AvaliacaoListResponse,
    AvaliacaoResponse,
    AvaliacaoUpdateRequest,
    NotaCorrecaoRequest,
    NotaHistoricoResponse,
    NotaLoteRequest,
    NotaResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_academic = RequireRole(*ACADEMIC_ROLES)


def _get_service(db: AsyncSession, tenant: TenantContext) -> AssessmentService:
    return AssessmentService(db, tenant.id, tenant.tipo_academico)


def _to_http(e: AssessmentServiceError) -> HTTPException:
    if isinstance(e, AssessmentNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AssessmentForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =========================================================================
# Avaliações
# =========================================================================


@router.post(
    "/avaliacoes",
    response_model=AvaliacaoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create avaliação",
)
async def create_avaliacao(
    data: AvaliacaoCreateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AvaliacaoResponse:
    try:
        return await _get_service(db, tenant).create_avaliacao(
            data, current_user.id, current_user.roles
        )
    except AssessmentServiceError as e:
        raise _to_http(e)


@router.get("/avaliacoes", response_model=AvaliacaoListResponse, summary="List avaliações")
async def list_avaliacoes(
    plano_ensino_id: Annotated[str | None, Query()] = None,
    turma_id: Annotated[str | None, Query()] = None,
    trimestre: Annotated[int | None, Query(ge=1, le=3)] = None,
    semestre: Annotated[int | None, Query(ge=1, le=2)] = None,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AvaliacaoListResponse:
    items, total = await _get_service(db, tenant).list_avaliacoes(
        plano_ensino_id=plano_ensino_id,
        turma_id=turma_id,
        trimestre=trimestre,
        semestre=semestre,
    )
    return AvaliacaoListResponse(items=items, total=total)


@router.get(
    "/avaliacoes/{avaliacao_id}", response_model=AvaliacaoResponse, summary="Get avaliação"
)
async def get_avaliacao(
    avaliacao_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AvaliacaoResponse:
    try:
        return await _get_service(db, tenant).get_avaliacao(avaliacao_id)
    except AssessmentServiceError as e:
        raise _to_http(e)


@router.put(
    "/avaliacoes/{avaliacao_id}", response_model=AvaliacaoResponse, summary="Update avaliação"
)
async def update_avaliacao(
    avaliacao_id: str,
    data: AvaliacaoUpdateRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AvaliacaoResponse:
    try:
        return await _get_service(db, tenant).update_avaliacao(
            avaliacao_id, data, current_user.id, current_user.roles
        )
    except AssessmentServiceError as e:
        raise _to_http(e)


@router.delete(
    "/avaliacoes/{avaliacao_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete avaliação",
)
async def delete_avaliacao(
    avaliacao_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await _get_service(db, tenant).delete_avaliacao(
            avaliacao_id, current_user.id, current_user.roles
        )
    except AssessmentServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/avaliacoes/{avaliacao_id}/fechar",
    response_model=AvaliacaoResponse,
    summary="Close avaliação",
)
async def fechar_avaliacao(
    avaliacao_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AvaliacaoResponse:
    try:
        return await _get_service(db, tenant).fechar_avaliacao(avaliacao_id, current_user.id)
    except AssessmentServiceError as e:
        raise _to_http(e)


# =========================================================================
# Notas
# =========================================================================


@router.post("/notas/avaliacao/lote", response_model=list[NotaResponse], summary="Post grades")
async def lancar_notas_lote(
    data: NotaLoteRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[NotaResponse]:
    logger.info(
        "Posting %d notas for avaliacao %s by %s",
        len(data.notas),
        data.avaliacao_id,
        current_user.id,
    )

    try:
        return await _get_service(db, tenant).lancar_notas_lote(
            data, current_user.id, current_user.roles
        )
    except AssessmentServiceError as e:
        raise _to_http(e)


@router.get(
    "/notas/avaliacao/{avaliacao_id}",
    response_model=list[NotaResponse],
    summary="Grades of an avaliação",
)
async def list_notas_avaliacao(
    avaliacao_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[NotaResponse]:
    try:
        return await _get_service(db, tenant).list_notas_avaliacao(avaliacao_id)
    except AssessmentServiceError as e:
        raise _to_http(e)


@router.get(
    "/notas/aluno/{aluno_id}", response_model=list[NotaResponse], summary="Grades of a student"
)
async def list_notas_aluno(
    aluno_id: str,
    plano_ensino_id: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[NotaResponse]:
    if aluno_id != current_user.id and not current_user.has_any_role(*ACADEMIC_ROLES):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")

    return await _get_service(db, tenant).list_notas_aluno(aluno_id, plano_ensino_id)


@router.put("/notas/{nota_id}/corrigir", response_model=NotaResponse, summary="Correct grade")
async def corrigir_nota(
    nota_id: str,
    data: NotaCorrecaoRequest,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> NotaResponse:
    try:
        return await _get_service(db, tenant).corrigir_nota(
            nota_id, data.valor, data.justificativa, current_user.id
        )
    except AssessmentServiceError as e:
        raise _to_http(e)


@router.get(
    "/notas/{nota_id}/historico",
    response_model=list[NotaHistoricoResponse],
    summary="Grade history",
)
async def historico_nota(
    nota_id: str,
    current_user: CurrentUser = Depends(require_academic),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[NotaHistoricoResponse]:
    try:
        return await _get_service(db, tenant).historico_nota(nota_id)
    except AssessmentServiceError as e:
        raise _to_http(e)
