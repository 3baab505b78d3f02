# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Human resources models."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.core.enums import StatusFuncionario
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.utils.datetime import utc_now


class Funcionario(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Staff member of an institution."""

    __tablename__ = "funcionarios"

    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL")
    )
    nome_completo: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    numero_identificacao: Mapped[str | None] = mapped_column(String(50))
    cargo: Mapped[str] = mapped_column(String(100), nullable=False)
    departamento: Mapped[str | None] = mapped_column(String(100))
    data_admissao: Mapped[date] = mapped_column(Date, nullable=False)
    salario_base: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusFuncionario.ATIVO.value
    )


class HistoricoRh(UUIDPrimaryKeyMixin, TenantMixin, Base):
    """Entry in the employment history of a funcionário."""

    __tablename__ = "historico_rh"

    funcionario_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("funcionarios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tipo_alteracao: Mapped[str] = mapped_column(String(30), nullable=False)
    valor_anterior: Mapped[str | None] = mapped_column(Text)
    valor_novo: Mapped[str | None] = mapped_column(Text)
    observacao: Mapped[str | None] = mapped_column(Text)
    data_alteracao: Mapped[date] = mapped_column(Date, nullable=False)
    registrado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
