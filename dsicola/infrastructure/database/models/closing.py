# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic period closing model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.core.enums import StatusEncerramento
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class EncerramentoAcademico(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Closing state of a trimester, semester or whole academic year."""

    __tablename__ = "encerramentos_academicos"
    __table_args__ = (
        UniqueConstraint(
            "instituicao_id", "ano_letivo_id", "periodo", name="uq_encerramentos_periodo"
        ),
    )

    ano_letivo_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("anos_letivos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    periodo: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusEncerramento.ABERTO.value
    )
    iniciado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    iniciado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    encerrado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    encerrado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reaberto_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    reaberto_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    justificativa_reabertura: Mapped[str | None] = mapped_column(Text)

    @property
    def is_encerrado(self) -> bool:
        return self.status == StatusEncerramento.ENCERRADO.value
