# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for user authentication:
- POST /login - Email and password login
- POST /refresh - Refresh access token
- POST /logout - Revoke refresh tokens
- GET /me - Current user claims
- POST /password - Change own password
- POST /password/change - Change password with credentials (forced change)
- POST /users/{user_id}/reset-password - Administrative reset
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.dependencies import (
    ADMIN_ROLES,
    RequireRole,
    client_ip,
    get_db,
    get_jwt_manager,
    get_tenant,
    require_auth,
)
from dsicola.api.middleware.auth import CurrentUser
from dsicola.api.middleware.rate_limit import RATE_LIMIT_LOGIN, get_ip_only, limiter
from dsicola.api.middleware.tenant import TenantContext
from dsicola.domains.auth.jwt import JWTManager, TokenPair
from dsicola.domains.auth.service import (
    AccountInactiveError,
    AccountLockedError,
    AmbiguousLoginError,
    AuthService,
    InvalidCredentialsError,
    NoInstitutionError,
    PasswordChangeRequiredError,
    PasswordPolicyError,
    TokenRefreshError,
    UserNotFoundError,
)
from dsicola.models.auth import (
    ChangePasswordRequest,
    CredentialsPasswordChangeRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    RefreshRequest,
    ResetPasswordRequest,
)
from dsicola.models.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession, jwt_manager: JWTManager) -> AuthService:
    return AuthService(db, jwt_manager)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Authenticate with email and password. Rate limited per IP.",
)
@limiter.limit(RATE_LIMIT_LOGIN, key_func=get_ip_only)
async def login(
    request: Request,
    data: LoginRequest,
    tenant: TenantContext | None = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> LoginResponse:
    """Authenticate a user.

    Raises:
        HTTPException: 401 invalid credentials, 403 inactive account,
            password change required or no institution, 409 email
            shared by institutions without a tenant, 423 locked account.
    """
    service = _get_service(db, jwt_manager)

    try:
        return await service.login(
            data.email,
            data.password,
            instituicao_id=tenant.id if tenant else None,
            ip=client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
    except AccountLockedError as e:
        raise HTTPException(status_code=status.HTTP_423_LOCKED, detail=str(e))
    except AmbiguousLoginError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (AccountInactiveError, PasswordChangeRequiredError, NoInstitutionError) as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh tokens",
    description="Exchange a refresh token for a new token pair. The old token is revoked.",
)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> TokenPair:
    service = _get_service(db, jwt_manager)

    try:
        return await service.refresh_tokens(data.refresh_token)
    except TokenRefreshError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Revoke the given refresh token, or every session when omitted.",
)
async def logout(
    data: LogoutRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> MessageResponse:
    service = _get_service(db, jwt_manager)
    await service.logout(current_user.id, data.refresh_token)
    return MessageResponse(message="Sessão terminada")


@router.get("/me", summary="Current user")
async def me(current_user: CurrentUser = Depends(require_auth)) -> dict:
    """Claims of the authenticated user."""
    return {
        "id": current_user.id,
        "email": current_user.email,
        "instituicao_id": current_user.instituicao_id,
        "roles": current_user.roles,
        "tipo_academico": current_user.tipo_academico,
    }


@router.post(
    "/password",
    response_model=MessageResponse,
    summary="Change password",
)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> MessageResponse:
    service = _get_service(db, jwt_manager)

    try:
        await service.change_password(current_user.id, data.current_password, data.new_password)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except PasswordPolicyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse(message="Senha alterada com sucesso")


@router.post(
    "/password/change",
    response_model=MessageResponse,
    summary="Change password with credentials",
    description="Used by accounts that must change their password before logging in.",
)
@limiter.limit(RATE_LIMIT_LOGIN, key_func=get_ip_only)
async def change_password_with_credentials(
    request: Request,
    data: CredentialsPasswordChangeRequest,
    tenant: TenantContext | None = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> MessageResponse:
    service = _get_service(db, jwt_manager)

    try:
        await service.change_password_with_credentials(
            data.email,
            data.current_password,
            data.new_password,
            instituicao_id=tenant.id if tenant else None,
        )
    except (InvalidCredentialsError, UserNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except AmbiguousLoginError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PasswordPolicyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse(message="Senha alterada com sucesso")


@router.post(
    "/users/{user_id}/reset-password",
    response_model=MessageResponse,
    summary="Reset user password",
    description="Set a new password for a user and force a change at next login.",
)
async def reset_user_password(
    user_id: str,
    data: ResetPasswordRequest,
    current_user: CurrentUser = Depends(RequireRole(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> MessageResponse:
    service = _get_service(db, jwt_manager)

    try:
        await service.reset_user_password(
            admin_id=current_user.id,
            admin_instituicao_id=current_user.instituicao_id,
            admin_is_super=current_user.is_super_admin,
            user_id=user_id,
            new_password=data.new_password,
        )
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PasswordPolicyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse(message="Senha redefinida")
