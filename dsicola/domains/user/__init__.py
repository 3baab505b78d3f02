# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package.

This package provides user management functionality including:
- User CRUD and activation
- Role assignment
- Guardian to student links
"""

from dsicola.domains.user.service import (
    UserAlreadyExistsError,
    UserForbiddenError,
    UserNotFoundError,
    UserService,
    UserServiceError,
    UserValidationError,
)

__all__ = [
    "UserAlreadyExistsError",
    "UserForbiddenError",
    "UserNotFoundError",
    "UserService",
    "UserServiceError",
    "UserValidationError",
]
