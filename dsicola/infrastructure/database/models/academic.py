# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure models: years, periods, courses, subjects and classes."""

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
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dsicola.core.enums import StatusAnoLetivo
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class AnoLetivo(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Academic year of an institution."""

    __tablename__ = "anos_letivos"
    __table_args__ = (UniqueConstraint("instituicao_id", "ano", name="uq_anos_letivos_ano"),)

    ano: Mapped[int] = mapped_column(Integer, nullable=False)
    data_inicio: Mapped[date] = mapped_column(Date, nullable=False)
    data_fim: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusAnoLetivo.PLANEJADO.value
    )
    descricao: Mapped[str | None] = mapped_column(Text)
    ativado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ativado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    encerrado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    encerrado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))

    trimestres: Mapped[list["Trimestre"]] = relationship(
        back_populates="ano_letivo",
        cascade="all, delete-orphan",
        order_by="Trimestre.numero",
        lazy="selectin",
    )
    semestres: Mapped[list["Semestre"]] = relationship(
        back_populates="ano_letivo",
        cascade="all, delete-orphan",
        order_by="Semestre.numero",
        lazy="selectin",
    )

    def contains(self, day: date) -> bool:
        return self.data_inicio <= day <= self.data_fim


class _PeriodoMixin(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin):
    """Columns shared by trimesters and semesters."""

    numero: Mapped[int] = mapped_column(Integer, nullable=False)
    data_inicio: Mapped[date] = mapped_column(Date, nullable=False)
    data_fim: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusAnoLetivo.PLANEJADO.value
    )

    def contains(self, day: date) -> bool:
        return self.data_inicio <= day <= self.data_fim


class Trimestre(_PeriodoMixin, Base):
    """Trimester of a secondary-school academic year (1-3)."""

    __tablename__ = "trimestres"
    __table_args__ = (UniqueConstraint("ano_letivo_id", "numero", name="uq_trimestres_numero"),)

    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("anos_letivos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ano_letivo: Mapped[AnoLetivo] = relationship(back_populates="trimestres")


class Semestre(_PeriodoMixin, Base):
    """Semester of a higher-education academic year."""

    __tablename__ = "semestres"
    __table_args__ = (UniqueConstraint("ano_letivo_id", "numero", name="uq_semestres_numero"),)

    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("anos_letivos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ano_letivo: Mapped[AnoLetivo] = relationship(back_populates="semestres")


class Curso(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Degree programme (higher education) or optional secondary track."""

    __tablename__ = "cursos"
    __table_args__ = (UniqueConstraint("instituicao_id", "codigo", name="uq_cursos_codigo"),)

    codigo: Mapped[str] = mapped_column(String(30), nullable=False)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    descricao: Mapped[str | None] = mapped_column(Text)
    duracao_anos: Mapped[int | None] = mapped_column(Integer)
    valor_mensalidade: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    # Late-fee overrides, as percentages
    valor_multa: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    percentual_juros: Mapped[Decimal | None] = mapped_column(Numeric(6, 3))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Classe(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Secondary-school grade level, e.g. "10ª Classe"."""

    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("instituicao_id", "codigo", name="uq_classes_codigo"),)

    codigo: Mapped[str] = mapped_column(String(30), nullable=False)
    nome: Mapped[str] = mapped_column(String(100), nullable=False)
    nivel: Mapped[int | None] = mapped_column(Integer)
    valor_mensalidade: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Disciplina(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Subject taught at the institution."""

    __tablename__ = "disciplinas"
    __table_args__ = (UniqueConstraint("instituicao_id", "codigo", name="uq_disciplinas_codigo"),)

    curso_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("cursos.id", ondelete="SET NULL")
    )
    codigo: Mapped[str] = mapped_column(String(30), nullable=False)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    carga_horaria: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Turma(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Class group of students within an academic year."""

    __tablename__ = "turmas"

    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("anos_letivos.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    curso_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("cursos.id", ondelete="RESTRICT")
    )
    classe_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("classes.id", ondelete="RESTRICT")
    )
    nome: Mapped[str] = mapped_column(String(100), nullable=False)
    semestre: Mapped[int | None] = mapped_column(Integer)
    turno: Mapped[str | None] = mapped_column(String(20))
    sala: Mapped[str | None] = mapped_column(String(50))
    capacidade: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
