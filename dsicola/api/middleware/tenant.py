# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant resolution middleware.

This middleware resolves the institution (tenant) of a request from:
1. X-Tenant-Code header
2. Subdomain (e.g., escola-abc.dsicola.com)

When neither is present, the institution carried by an authenticated
user's token is used instead (see AuthMiddleware).

The resolved tenant is stored in request.state for use by dependencies.

Example:
    # Request with header
    GET /api/v1/turmas
    X-Tenant-Code: escola-abc

    # Request with subdomain
    GET https://escola-abc.dsicola.com/api/v1/turmas
"""

import logging
from typing import Callable

from fastapi import Request, Response
from sqlalchemy import select
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from dsicola.core.config.settings import TenancySettings
from dsicola.core.enums import StatusInstituicao
from dsicola.infrastructure.database.connection import DatabaseError, get_session
from dsicola.infrastructure.database.models import Instituicao

logger = logging.getLogger(__name__)

# Paths that don't require tenant context
PUBLIC_PATHS = frozenset({
    "/",
    "/health",
    "/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
})

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0"})


class TenantContext:
    """Institution resolved for the current request.

    Attributes:
        id: Institution UUID.
        code: Institution subdomain.
        name: Institution display name.
        status: ativa, suspensa or inativa.
        tipo_academico: SECUNDARIO or SUPERIOR.
    """

    def __init__(
        self,
        tenant_id: str,
        code: str | None,
        name: str | None,
        status: str,
        tipo_academico: str | None,
    ) -> None:
        self.id = str(tenant_id)
        self.code = code
        self.name = name
        self.status = status
        self.tipo_academico = tipo_academico

    @classmethod
    def from_instituicao(cls, instituicao: Instituicao) -> "TenantContext":
        return cls(
            tenant_id=instituicao.id,
            code=instituicao.subdominio,
            name=instituicao.nome,
            status=instituicao.status,
            tipo_academico=instituicao.tipo_academico,
        )

    @property
    def is_active(self) -> bool:
        """Check if the institution is active."""
        return self.status == StatusInstituicao.ATIVA.value


class TenantMiddleware(BaseHTTPMiddleware):
    """Middleware for resolving the institution of a request.

    Resolves the tenant from:
    1. The tenant header (highest priority)
    2. Subdomain extraction from the Host header

    Central subdomains (www, app, admin, api) and local hosts never
    resolve to an institution. The resolved tenant is stored in
    request.state.tenant.

    Attributes:
        _settings: Tenancy settings (base domain, header name).
    """

    def __init__(self, app: ASGIApp, settings: TenancySettings) -> None:
        super().__init__(app)
        self._settings = settings
        self._base_domain = settings.base_domain.lower()
        self._central = frozenset(s.lower() for s in settings.central_subdomains)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Process the request and resolve the tenant.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler.

        Returns:
            HTTP response.
        """
        request.state.tenant = None

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        tenant_code = self.extract_tenant_code(
            request.headers.get(self._settings.header_name),
            request.headers.get("host", ""),
        )
        if tenant_code:
            try:
                tenant = await self._resolve_tenant(tenant_code)
            except DatabaseError as e:
                logger.warning("Tenant resolution error: %s", str(e))
                tenant = None

            if tenant:
                request.state.tenant = tenant
                logger.debug("Tenant resolved: %s", tenant.code)
            else:
                logger.warning("Tenant not found: %s", tenant_code)

        return await call_next(request)

    def extract_tenant_code(self, header_value: str | None, host: str) -> str | None:
        """Extract the tenant code from the header or the host.

        Examples:
            header "Escola-ABC" -> escola-abc
            escola-abc.dsicola.com -> escola-abc
            www.dsicola.com -> None
            localhost:8000 -> None
        """
        if header_value and header_value.strip():
            return header_value.strip().lower()
        return self._extract_subdomain(host)

    def _extract_subdomain(self, host: str) -> str | None:
        if not host:
            return None

        host = host.split(":")[0].lower()
        if host in _LOCAL_HOSTS:
            return None

        suffix = f".{self._base_domain}"
        if not host.endswith(suffix):
            return None

        subdomain = host[: -len(suffix)]
        if not subdomain or "." in subdomain or subdomain in self._central:
            return None
        return subdomain

    async def _resolve_tenant(self, tenant_code: str) -> TenantContext | None:
        async with get_session() as db:
            result = await db.execute(
                select(Instituicao).where(Instituicao.subdominio == tenant_code)
            )
            instituicao = result.scalar_one_or_none()

        if instituicao is None:
            return None
        return TenantContext.from_instituicao(instituicao)


def get_tenant_from_request(request: Request) -> TenantContext | None:
    """Get tenant context from request state.

    Args:
        request: HTTP request with state.

    Returns:
        TenantContext or None.
    """
    return getattr(request.state, "tenant", None)
