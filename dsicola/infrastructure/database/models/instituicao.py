# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Institution (tenant) models and per-institution configuration."""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.core.enums import StatusInstituicao
from dsicola.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Instituicao(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A school or university account."""

    __tablename__ = "instituicoes"

    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    subdominio: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    tipo_academico: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusInstituicao.ATIVA.value
    )
    email: Mapped[str | None] = mapped_column(String(255))
    telefone: Mapped[str | None] = mapped_column(String(50))
    endereco: Mapped[str | None] = mapped_column(String(500))

    @property
    def is_active(self) -> bool:
        return self.status == StatusInstituicao.ATIVA.value


class ParametrosSistema(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Academic parameters configured by an institution."""

    __tablename__ = "parametros_sistema"

    instituicao_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("instituicoes.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    percentual_minimo_aprovacao: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("10.00")
    )
    permitir_exame_recurso: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    frequencia_minima: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("75.00")
    )
    quantidade_semestres_por_ano: Mapped[int] = mapped_column(Integer, nullable=False, default=2)


class ConfiguracaoMulta(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Late-fee configuration of an institution."""

    __tablename__ = "configuracoes_multa"

    instituicao_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("instituicoes.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    multa_percentual: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    juros_dia_percentual: Mapped[Decimal] = mapped_column(Numeric(6, 3), nullable=False)
    dias_tolerancia: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
