# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment models: avaliações, notas, grade history and posting windows."""

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

from dsicola.core.enums import StatusPeriodoLancamento, StatusWorkflow
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.utils.datetime import utc_now


class Avaliacao(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """An assessment (exam, test, assignment...) within a plano de ensino."""

    __tablename__ = "avaliacoes"

    plano_ensino_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("planos_ensino.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    turma_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("turmas.id", ondelete="RESTRICT"), nullable=False
    )
    tipo: Mapped[str] = mapped_column(String(30), nullable=False)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    data: Mapped[date] = mapped_column(Date, nullable=False)
    peso: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("1"))
    trimestre: Mapped[int | None] = mapped_column(Integer)
    semestre: Mapped[int | None] = mapped_column(Integer)
    descricao: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusWorkflow.RASCUNHO.value
    )
    fechada: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fechada_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    fechada_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False))

    @property
    def periodo(self) -> int | None:
        """Trimester or semester number the avaliação belongs to."""
        return self.trimestre if self.trimestre is not None else self.semestre


class Nota(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Grade of a student in an avaliação (0-20 scale)."""

    __tablename__ = "notas"
    __table_args__ = (UniqueConstraint("aluno_id", "avaliacao_id", name="uq_notas_aluno_avaliacao"),)

    avaliacao_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("avaliacoes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    aluno_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plano_ensino_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("planos_ensino.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    valor: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    observacoes: Mapped[str | None] = mapped_column(Text)
    lancado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))


class NotaHistorico(UUIDPrimaryKeyMixin, Base):
    """Previous value of a grade that was changed."""

    __tablename__ = "notas_historico"

    nota_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("notas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    valor_anterior: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    valor_novo: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    motivo: Mapped[str | None] = mapped_column(Text)
    alterado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


class PeriodoLancamentoNotas(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Window during which grades of a period may be posted."""

    __tablename__ = "periodos_lancamento_notas"
    __table_args__ = (
        UniqueConstraint("ano_letivo_id", "tipo", "numero", name="uq_periodos_lancamento"),
    )

    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("anos_letivos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tipo: Mapped[str] = mapped_column(String(20), nullable=False)
    numero: Mapped[int] = mapped_column(Integer, nullable=False)
    data_inicio: Mapped[date] = mapped_column(Date, nullable=False)
    data_fim: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusPeriodoLancamento.ABERTO.value
    )
    reaberto_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    motivo_reabertura: Mapped[str | None] = mapped_column(Text)

    def effective_status(self, today: date) -> str:
        """Stored status, with an open window past its end reported as EXPIRADO."""
        if self.status == StatusPeriodoLancamento.ABERTO.value and today > self.data_fim:
            return StatusPeriodoLancamento.EXPIRADO.value
        return self.status

    def is_open_on(self, today: date) -> bool:
        return (
            self.status == StatusPeriodoLancamento.ABERTO.value
            and self.data_inicio <= today <= self.data_fim
        )
