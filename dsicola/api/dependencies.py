# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users
- Get tenant context
- Check roles

Example:
    @router.get("/turmas")
    async def list_turmas(
        db: AsyncSession = Depends(get_db),
        current_user: CurrentUser = Depends(require_auth),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.api.middleware.auth import CurrentUser, get_current_user
from dsicola.api.middleware.tenant import TenantContext, get_tenant_from_request
from dsicola.core.config import get_settings
from dsicola.core.enums import UserRole
from dsicola.domains.auth.jwt import JWTManager
from dsicola.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)

R = UserRole

# Role groups used by the routers
ADMIN_ROLES = (R.ADMIN.value, R.SUPER_ADMIN.value)
GESTAO_ROLES = (*ADMIN_ROLES, R.DIRECAO.value)
SECRETARIA_ROLES = (*GESTAO_ROLES, R.SECRETARIA.value)
ACADEMIC_ROLES = (*SECRETARIA_ROLES, R.PROFESSOR.value)
FINANCE_ROLES = (*ADMIN_ROLES, R.SECRETARIA.value, R.FINANCEIRO.value, R.POS.value)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession, committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


class RequireRole:
    """Dependency for requiring specific roles.

    Example:
        @router.post("/anos-letivos")
        async def create(
            user: CurrentUser = Depends(RequireRole(*GESTAO_ROLES)),
        ):
            ...
    """

    def __init__(self, *roles: str) -> None:
        """Initialize role requirement.

        Args:
            roles: Required role codes (any of these).
        """
        self.roles = roles

    def __call__(self, request: Request) -> CurrentUser:
        """Check roles and return user.

        Raises:
            HTTPException: If missing required roles.
        """
        user = require_auth(request)

        if not user.has_any_role(*self.roles):
            logger.warning("User %s lacks roles %s", user.id, ", ".join(self.roles))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(self.roles)}",
            )

        return user


# =========================================================================
# Tenant Dependencies
# =========================================================================


def get_tenant(request: Request) -> TenantContext | None:
    return get_tenant_from_request(request)


def require_tenant(request: Request) -> TenantContext:
    """Require tenant context.

    Raises:
        HTTPException: If no tenant context or the institution is not active.
    """
    tenant = get_tenant_from_request(request)
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant context required. Provide X-Tenant-Code header.",
        )

    if not tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Instituição não está ativa",
        )

    return tenant


# =========================================================================
# Service Dependencies
# =========================================================================


def get_jwt_manager() -> JWTManager:
    return JWTManager(get_settings().jwt)


def client_ip(request: Request) -> str | None:
    """Client address, honouring X-Forwarded-For."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# =========================================================================
# Type Aliases for Cleaner Endpoint Signatures
# =========================================================================

DB = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
Tenant = Annotated[TenantContext, Depends(require_tenant)]
OptionalTenant = Annotated[TenantContext | None, Depends(get_tenant)]
AdminUser = Annotated[CurrentUser, Depends(RequireRole(*ADMIN_ROLES))]
GestaoUser = Annotated[CurrentUser, Depends(RequireRole(*GESTAO_ROLES))]
SecretariaUser = Annotated[CurrentUser, Depends(RequireRole(*SECRETARIA_ROLES))]
AcademicUser = Annotated[CurrentUser, Depends(RequireRole(*ACADEMIC_ROLES))]
FinanceUser = Annotated[CurrentUser, Depends(RequireRole(*FINANCE_ROLES))]
SuperAdminUser = Annotated[CurrentUser, Depends(RequireRole(R.SUPER_ADMIN.value))]
