# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- TenantMiddleware: Resolves the institution from header or subdomain.
- AuthMiddleware: JWT authentication.
- limiter: slowapi rate limiter.
"""

from dsicola.api.middleware.auth import AuthMiddleware, CurrentUser
from dsicola.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from dsicola.api.middleware.tenant import TenantContext, TenantMiddleware

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "TenantContext",
    "TenantMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
]
