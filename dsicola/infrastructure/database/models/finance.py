# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tuition billing models."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.core.enums import StatusMensalidade
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.utils.datetime import utc_now


class Mensalidade(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Monthly tuition charge of a student."""

    __tablename__ = "mensalidades"
    __table_args__ = (
        UniqueConstraint(
            "aluno_id", "mes_referencia", "ano_referencia", name="uq_mensalidades_referencia"
        ),
    )

    aluno_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    curso_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("cursos.id", ondelete="SET NULL")
    )
    mes_referencia: Mapped[int] = mapped_column(Integer, nullable=False)
    ano_referencia: Mapped[int] = mapped_column(Integer, nullable=False)
    valor: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    desconto: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    multa: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    juros: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    data_vencimento: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    data_pagamento: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusMensalidade.PENDENTE.value, index=True
    )
    forma_pagamento: Mapped[str | None] = mapped_column(String(30))
    observacoes: Mapped[str | None] = mapped_column(Text)

    @property
    def valor_total(self) -> Decimal:
        return (
            Decimal(self.valor)
            - Decimal(self.desconto or 0)
            + Decimal(self.multa or 0)
            + Decimal(self.juros or 0)
        )


class Pagamento(UUIDPrimaryKeyMixin, TenantMixin, Base):
    """Payment (or reversal, with a negative value) of a mensalidade."""

    __tablename__ = "pagamentos"
    __table_args__ = (
        UniqueConstraint("instituicao_id", "numero_recibo", name="uq_pagamentos_recibo"),
    )

    mensalidade_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("mensalidades.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    valor: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    metodo: Mapped[str] = mapped_column(String(40), nullable=False)
    data_pagamento: Mapped[date] = mapped_column(Date, nullable=False)
    numero_recibo: Mapped[str | None] = mapped_column(String(30))
    referencia: Mapped[str | None] = mapped_column(String(100))
    observacoes: Mapped[str | None] = mapped_column(Text)
    registrado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    estornado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    estorno_de_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("pagamentos.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
