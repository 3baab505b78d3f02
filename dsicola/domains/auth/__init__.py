# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain package.

This package provides:
- JWT token creation and validation
- Password hashing and password policy
- Login, token refresh, logout and password management
"""

from dsicola.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
    TokenPayload,
)
from dsicola.domains.auth.password import (
    PasswordHasher,
    PasswordStrength,
    WeakPasswordError,
    hash_password,
    password_strength,
    validate_password,
    verify_password,
)
from dsicola.domains.auth.service import (
    AccountInactiveError,
    AccountLockedError,
    AuthenticationError,
    AuthService,
    InvalidCredentialsError,
    NoInstitutionError,
    PasswordChangeRequiredError,
    PasswordPolicyError,
    TokenRefreshError,
    UserNotFoundError,
)

__all__ = [
    "AccountInactiveError",
    "AccountLockedError",
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "JWTError",
    "JWTManager",
    "NoInstitutionError",
    "PasswordChangeRequiredError",
    "PasswordHasher",
    "PasswordPolicyError",
    "PasswordStrength",
    "TokenExpiredError",
    "TokenPair",
    "TokenPayload",
    "TokenRefreshError",
    "UserNotFoundError",
    "WeakPasswordError",
    "hash_password",
    "password_strength",
    "validate_password",
    "verify_password",
]
