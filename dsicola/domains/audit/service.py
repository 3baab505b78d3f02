# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail service.

Entries are added to the caller's session so they are committed (or rolled
back) together with the change they describe. Entries are never updated or
deleted.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria
from dsicola.infrastructure.database.models import LogAuditoria
from dsicola.models.audit import LogAuditoriaListResponse, LogAuditoriaResponse

logger = logging.getLogger(__name__)


def _jsonable(data: Any) -> dict[str, Any] | None:
    if data is None:
        return None
    value = to_jsonable_python(data)
    if not isinstance(value, dict):
        return {"value": value}
    return value


class AuditService:
    """Writes and queries the audit log of one institution.

    Attributes:
        db: Async database session.
        instituicao_id: Institution the entries belong to. None for
            platform-level events.
    """

    def __init__(self, db: AsyncSession, instituicao_id: str | None) -> None:
        self.db = db
        self.instituicao_id = instituicao_id

    def log(
        self,
        modulo: ModuloAuditoria,
        acao: AcaoAuditoria,
        entidade: str,
        entidade_id: str | None = None,
        *,
        usuario_id: str | None = None,
        usuario_email: str | None = None,
        dados_anteriores: Any = None,
        dados_novos: Any = None,
        ip_origem: str | None = None,
        user_agent: str | None = None,
        observacao: str | None = None,
    ) -> LogAuditoria:
        """Add an audit entry to the current unit of work.

        The entry is flushed with the caller's commit.

        Args:
            modulo: Functional module of the event.
            acao: Action performed.
            entidade: Entity name, e.g. ``"Mensalidade"``.
            entidade_id: Identifier of the affected row.
            usuario_id: Acting user.
            usuario_email: Acting user's email, kept for readability.
            dados_anteriores: State before the change (JSON serialisable or
                a pydantic model).
            dados_novos: State after the change.
            ip_origem: Client address.
            user_agent: Client user agent.
            observacao: Free-text note or justification.

        Returns:
            The pending LogAuditoria row.
        """
        entry = LogAuditoria(
            instituicao_id=self.instituicao_id,
            usuario_id=usuario_id,
            usuario_email=usuario_email,
            modulo=ModuloAuditoria(modulo).value,
            acao=AcaoAuditoria(acao).value,
            entidade=entidade,
            entidade_id=str(entidade_id) if entidade_id is not None else None,
            dados_anteriores=_jsonable(dados_anteriores),
            dados_novos=_jsonable(dados_novos),
            ip_origem=ip_origem,
            user_agent=user_agent[:500] if user_agent else None,
            observacao=observacao,
        )
        self.db.add(entry)
        logger.debug(
            "Audit %s/%s on %s %s by %s", entry.modulo, entry.acao, entidade, entidade_id, usuario_id
        )
        return entry

    async def list_logs(
        self,
        modulo: str | None = None,
        acao: str | None = None,
        entidade: str | None = None,
        usuario_id: str | None = None,
        data_inicio: datetime | None = None,
        data_fim: datetime | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> LogAuditoriaListResponse:
        """List audit entries, newest first.

        Args:
            modulo: Filter by module.
            acao: Filter by action.
            entidade: Filter by entity name.
            usuario_id: Filter by acting user.
            data_inicio: Inclusive lower bound on the timestamp.
            data_fim: Inclusive upper bound on the timestamp.
            page: 1-based page number.
            page_size: Entries per page.

        Returns:
            Paginated list of entries.
        """
        query = select(LogAuditoria).where(LogAuditoria.instituicao_id == self.instituicao_id)

        if modulo:
            query = query.where(LogAuditoria.modulo == modulo)
        if acao:
            query = query.where(LogAuditoria.acao == acao)
        if entidade:
            query = query.where(LogAuditoria.entidade == entidade)
        if usuario_id:
            query = query.where(LogAuditoria.usuario_id == usuario_id)
        if data_inicio:
            query = query.where(LogAuditoria.created_at >= data_inicio)
        if data_fim:
            query = query.where(LogAuditoria.created_at <= data_fim)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            query.order_by(LogAuditoria.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        items = [LogAuditoriaResponse.model_validate(row) for row in result.scalars().all()]

        return LogAuditoriaListResponse(items=items, total=total, page=page, page_size=page_size)
