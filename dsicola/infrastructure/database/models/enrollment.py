# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment models: annual enrollment and class enrollment."""

from datetime import date

from sqlalchemy import Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.core.enums import StatusMatricula, StatusMatriculaAnual
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.utils.datetime import utc_today


class MatriculaAnual(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """A student's enrollment for an academic year."""

    __tablename__ = "matriculas_anuais"

    aluno_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("anos_letivos.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    nivel_ensino: Mapped[str] = mapped_column(String(20), nullable=False)
    curso_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("cursos.id", ondelete="RESTRICT")
    )
    classe_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("classes.id", ondelete="RESTRICT")
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusMatriculaAnual.ATIVA.value
    )
    data_matricula: Mapped[date] = mapped_column(Date, nullable=False, default=utc_today)
    observacoes: Mapped[str | None] = mapped_column(Text)


class Matricula(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """A student's enrollment in a turma."""

    __tablename__ = "matriculas"
    __table_args__ = (UniqueConstraint("aluno_id", "turma_id", name="uq_matriculas_aluno_turma"),)

    aluno_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    turma_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("turmas.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("anos_letivos.id", ondelete="RESTRICT"), nullable=False
    )
    matricula_anual_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("matriculas_anuais.id", ondelete="RESTRICT"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusMatricula.ATIVA.value
    )
    data_matricula: Mapped[date] = mapped_column(Date, nullable=False, default=utc_today)
