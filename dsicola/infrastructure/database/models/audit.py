# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Immutable audit log model."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin
from dsicola.utils.datetime import utc_now


class LogAuditoria(UUIDPrimaryKeyMixin, Base):
    """Audit trail entry. Rows are only ever inserted."""

    __tablename__ = "logs_auditoria"

    instituicao_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("instituicoes.id", ondelete="CASCADE"),
        index=True,
    )
    usuario_id: Mapped[str | None] = mapped_column(UUID(as_uuid=False), index=True)
    usuario_email: Mapped[str | None] = mapped_column(String(255))
    modulo: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    acao: Mapped[str] = mapped_column(String(30), nullable=False)
    entidade: Mapped[str] = mapped_column(String(50), nullable=False)
    entidade_id: Mapped[str | None] = mapped_column(String(64))
    dados_anteriores: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    dados_novos: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    ip_origem: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))
    observacao: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )
