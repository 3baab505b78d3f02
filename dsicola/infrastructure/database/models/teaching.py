# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teaching models: planos de ensino, planned and posted lessons, attendance."""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dsicola.core.enums import EstadoPlano, OrigemPresenca, StatusWorkflow
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.utils.datetime import utc_now


class PlanoEnsino(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Syllabus of a subject for a turma, owned by a teacher."""

    __tablename__ = "planos_ensino"

    disciplina_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("disciplinas.id", ondelete="RESTRICT"), nullable=False
    )
    professor_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    turma_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("turmas.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("anos_letivos.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    ementa: Mapped[str | None] = mapped_column(Text)
    objetivos: Mapped[str | None] = mapped_column(Text)
    metodologia: Mapped[str | None] = mapped_column(Text)
    bibliografia: Mapped[str | None] = mapped_column(Text)
    carga_horaria_total: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusWorkflow.RASCUNHO.value
    )
    estado: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EstadoPlano.RASCUNHO.value
    )
    bloqueado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bloqueado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    data_bloqueio: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    aprovado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    data_aprovacao: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    aulas: Mapped[list["PlanoAula"]] = relationship(
        back_populates="plano_ensino",
        cascade="all, delete-orphan",
        order_by="PlanoAula.ordem",
        lazy="selectin",
    )

    @property
    def is_ativo(self) -> bool:
        """A plano gates academic actions only when approved and unblocked."""
        return self.status == StatusWorkflow.APROVADO.value and not self.bloqueado


class PlanoAula(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Planned lesson block of a plano de ensino."""

    __tablename__ = "planos_aula"

    plano_ensino_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("planos_ensino.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ordem: Mapped[int] = mapped_column(Integer, nullable=False)
    titulo: Mapped[str] = mapped_column(String(200), nullable=False)
    descricao: Mapped[str | None] = mapped_column(Text)
    # Trimester (secondary) or semester (higher education) number
    periodo: Mapped[int] = mapped_column(Integer, nullable=False)
    quantidade_aulas: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    plano_ensino: Mapped[PlanoEnsino] = relationship(back_populates="aulas")


class AulaLancada(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """A lesson actually given on a date."""

    __tablename__ = "aulas_lancadas"
    __table_args__ = (UniqueConstraint("plano_aula_id", "data", name="uq_aulas_lancadas_data"),)

    plano_ensino_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("planos_ensino.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plano_aula_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("planos_aula.id", ondelete="CASCADE"), nullable=False
    )
    data: Mapped[date] = mapped_column(Date, nullable=False)
    periodo: Mapped[int] = mapped_column(Integer, nullable=False)
    observacoes: Mapped[str | None] = mapped_column(Text)
    lancado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))


class Presenca(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Attendance of a student at a posted lesson."""

    __tablename__ = "presencas"
    __table_args__ = (UniqueConstraint("aula_lancada_id", "aluno_id", name="uq_presencas_aula_aluno"),)

    aula_lancada_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("aulas_lancadas.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    aluno_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    origem: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrigemPresenca.MANUAL.value
    )
    observacoes: Mapped[str | None] = mapped_column(Text)
    registrado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))


class WorkflowLog(UUIDPrimaryKeyMixin, TenantMixin, Base):
    """Record of a workflow status transition."""

    __tablename__ = "workflow_logs"

    entidade: Mapped[str] = mapped_column(String(30), nullable=False)
    entidade_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    status_anterior: Mapped[str] = mapped_column(String(20), nullable=False)
    status_novo: Mapped[str] = mapped_column(String(20), nullable=False)
    usuario_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    observacao: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
