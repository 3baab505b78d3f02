# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User, role and authentication models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.utils.datetime import ensure_utc, utc_now


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A person with access to the platform.

    ``instituicao_id`` is null only for platform super administrators.
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("instituicao_id", "email", name="uq_users_instituicao_email"),)

    instituicao_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("instituicoes.id", ondelete="CASCADE"),
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str | None] = mapped_column(String(255))
    nome_completo: Mapped[str] = mapped_column(String(200), nullable=False)
    telefone: Mapped[str | None] = mapped_column(String(50))
    numero_identificacao: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    must_change_password: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    password_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    roles: Mapped[list["UserRoleAssignment"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def role_names(self) -> list[str]:
        return [r.role for r in self.roles]

    def has_role(self, *roles: str) -> bool:
        names = set(self.role_names)
        return any(role in names for role in roles)


class UserRoleAssignment(UUIDPrimaryKeyMixin, Base):
    """A role granted to a user."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False)

    user: Mapped[User] = relationship(back_populates="roles")


class LoginAttempt(Base):
    """Consecutive failed logins for an email address."""

    __tablename__ = "login_attempts"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ip_origem: Mapped[str | None] = mapped_column(String(64))

    @property
    def is_locked(self) -> bool:
        if self.locked_until is None:
            return False
        return ensure_utc(self.locked_until) > utc_now()


class RefreshToken(UUIDPrimaryKeyMixin, Base):
    """Issued refresh token, stored as a SHA-256 hash."""

    __tablename__ = "refresh_tokens"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    @property
    def is_valid(self) -> bool:
        return self.revoked_at is None and ensure_utc(self.expires_at) > utc_now()


class ResponsavelAluno(UUIDPrimaryKeyMixin, TenantMixin, Base):
    """Link between a guardian and a student."""

    __tablename__ = "responsaveis_alunos"
    __table_args__ = (
        UniqueConstraint("responsavel_id", "aluno_id", name="uq_responsavel_aluno"),
    )

    responsavel_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    aluno_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    parentesco: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
