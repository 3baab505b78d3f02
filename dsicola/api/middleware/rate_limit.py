# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Rate limits are applied per client (IP address or user ID). Counters are
kept in process memory, or in Redis when RATE_LIMIT_USE_REDIS is set.

Example:
    # Limit login attempts per IP
    @limiter.limit(RATE_LIMIT_LOGIN, key_func=get_ip_only)
    async def login(request: Request, ...):
        ...
"""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from dsicola.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses user ID if authenticated, otherwise uses IP address. The
    institution is included so that tenants do not share counters.

    Args:
        request: HTTP request.

    Returns:
        Client identifier string.
    """
    user = getattr(request.state, "user", None)
    tenant = getattr(request.state, "tenant", None)

    parts = []
    if tenant:
        parts.append(f"tenant:{tenant.id}")
    if user:
        parts.append(f"user:{user.id}")
    else:
        parts.append(f"ip:{get_remote_address(request)}")

    return ":".join(parts)


def get_ip_only(request: Request) -> str:
    """Get client IP address only.

    Used for login endpoints where user is not yet authenticated.
    """
    return get_remote_address(request)


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit.enabled,
)

RATE_LIMIT_LOGIN = f"{settings.rate_limit.login_per_minute}/minute"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded errors.

    Returns a 429 Too Many Requests response with retry information.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )

    return JSONResponse(
        status_code=429,
        content={"detail": "Muitas requisições. Tente novamente mais tarde."},
        headers={"Retry-After": "60"},
    )
