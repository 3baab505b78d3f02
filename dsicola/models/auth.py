# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API models."""

from pydantic import BaseModel, EmailStr, Field, field_validator


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    """Logout request. Without a token every session of the user ends."""

    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    """Administrative password reset."""

    new_password: str = Field(..., min_length=1)


class AuthenticatedUserInfo(BaseModel):
    """User summary returned with a token pair."""

    id: str
    email: str
    nome_completo: str
    instituicao_id: str | None
    tipo_academico: str | None
    roles: list[str]


class LoginResponse(BaseModel):
    """Tokens plus the authenticated user."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int
    user: AuthenticatedUserInfo


class CredentialsPasswordChangeRequest(BaseModel):
    """Password change for accounts flagged MUST_CHANGE_PASSWORD."""

    email: EmailStr
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)
