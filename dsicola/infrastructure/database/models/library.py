# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Library models."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dsicola.core.enums import StatusEmprestimo, TipoItemBiblioteca
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class BibliotecaItem(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Catalogued library item with a number of physical copies."""

    __tablename__ = "biblioteca_itens"

    titulo: Mapped[str] = mapped_column(String(300), nullable=False)
    autor: Mapped[str | None] = mapped_column(String(200))
    isbn: Mapped[str | None] = mapped_column(String(20))
    editora: Mapped[str | None] = mapped_column(String(200))
    ano_publicacao: Mapped[int | None] = mapped_column(Integer)
    categoria: Mapped[str | None] = mapped_column(String(100))
    tipo: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TipoItemBiblioteca.FISICO.value
    )
    quantidade: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    localizacao: Mapped[str | None] = mapped_column(String(100))


class EmprestimoBiblioteca(UUIDPrimaryKeyMixin, TenantMixin, TimestampMixin, Base):
    """Loan of a library item to a user."""

    __tablename__ = "emprestimos_biblioteca"

    item_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("biblioteca_itens.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    usuario_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    data_emprestimo: Mapped[date] = mapped_column(Date, nullable=False)
    data_prevista_devolucao: Mapped[date] = mapped_column(Date, nullable=False)
    data_devolucao: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatusEmprestimo.ATIVO.value
    )
    observacoes: Mapped[str | None] = mapped_column(Text)
    registrado_por: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
