# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management API endpoints.

This module provides endpoints for user management within an institution:
- POST / - Create a user
- GET / - List users
- GET /{user_id} - Get user details
- PUT /{user_id} - Update user profile
- POST /{user_id}/activate - Activate user
- POST /{user_id}/deactivate - Deactivate user
- POST /{responsavel_id}/alunos - Link a guardian to a student
- GET /{responsavel_id}/alunos - Students of a guardian
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
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
from dsicola.core.enums import UserRole
from dsicola.domains.user.service import (
    UserAlreadyExistsError,
    UserForbiddenError,
    UserNotFoundError,
    UserService,
    UserServiceError,
    UserValidationError,
)
from dsicola.models.user import (
    AlunoDoResponsavel,
    ResponsavelAlunoRequest,
    ResponsavelAlunoResponse,
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_user_admin = RequireRole(
    UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value, UserRole.SECRETARIA.value
)


def _get_service(db: AsyncSession, tenant: TenantContext) -> UserService:
    return UserService(db, tenant.id)


def _to_http(e: UserServiceError) -> HTTPException:
    if isinstance(e, UserNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    if isinstance(e, UserAlreadyExistsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, UserForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user in the current institution. Only SUPER_ADMIN may grant ADMIN.",
)
async def create_user(
    data: UserCreateRequest,
    current_user: CurrentUser = Depends(require_user_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    logger.info("Creating user %s by %s", data.email, current_user.id)

    try:
        return await _get_service(db, tenant).create_user(data, current_user.id, current_user.roles)
    except UserServiceError as e:
        raise _to_http(e)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
)
async def list_users(
    role: Annotated[UserRole | None, Query(description="Filter by role")] = None,
    search: Annotated[str | None, Query(description="Search name or email")] = None,
    is_active: Annotated[bool | None, Query(description="Filter by active flag")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
    current_user: CurrentUser = Depends(RequireRole(*SECRETARIA_ROLES, UserRole.PROFESSOR.value)),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    return await _get_service(db, tenant).list_users(
        role=role.value if role else None,
        search=search,
        is_active=is_active,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user",
)
async def get_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Get a user. Staff may read anyone; other users only themselves."""
    if user_id != current_user.id and not current_user.has_any_role(
        *SECRETARIA_ROLES, UserRole.PROFESSOR.value
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")

    try:
        return await _get_service(db, tenant).get_user(user_id)
    except UserServiceError as e:
        raise _to_http(e)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
)
async def update_user(
    user_id: str,
    data: UserUpdateRequest,
    current_user: CurrentUser = Depends(require_user_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        return await _get_service(db, tenant).update_user(
            user_id, data, current_user.id, current_user.roles
        )
    except UserServiceError as e:
        raise _to_http(e)


@router.post(
    "/{user_id}/activate",
    response_model=UserResponse,
    summary="Activate user",
)
async def activate_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_user_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        return await _get_service(db, tenant).set_active(user_id, True, current_user.id)
    except UserServiceError as e:
        raise _to_http(e)


@router.post(
    "/{user_id}/deactivate",
    response_model=UserResponse,
    summary="Deactivate user",
)
async def deactivate_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_user_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        return await _get_service(db, tenant).set_active(user_id, False, current_user.id)
    except UserServiceError as e:
        raise _to_http(e)


@router.post(
    "/{responsavel_id}/alunos",
    response_model=ResponsavelAlunoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link guardian to student",
)
async def link_responsavel(
    responsavel_id: str,
    data: ResponsavelAlunoRequest,
    current_user: CurrentUser = Depends(require_user_admin),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> ResponsavelAlunoResponse:
    try:
        return await _get_service(db, tenant).link_responsavel(
            responsavel_id, data.aluno_id, data.parentesco, current_user.id
        )
    except UserServiceError as e:
        raise _to_http(e)


@router.get(
    "/{responsavel_id}/alunos",
    response_model=list[AlunoDoResponsavel],
    summary="Students of a guardian",
)
async def list_alunos_do_responsavel(
    responsavel_id: str,
    current_user: CurrentUser = Depends(require_auth),
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[AlunoDoResponsavel]:
    if responsavel_id != current_user.id and not current_user.has_any_role(*SECRETARIA_ROLES):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")
    return await _get_service(db, tenant).list_alunos_do_responsavel(responsavel_id)
