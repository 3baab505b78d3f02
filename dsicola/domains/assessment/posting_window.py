# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade posting windows (períodos de lançamento de notas)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import (
    AcaoAuditoria,
    ModuloAuditoria,
    StatusPeriodoLancamento,
    TipoAcademico,
    TipoPeriodoLancamento,
    UserRole,
)
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import AnoLetivo, PeriodoLancamentoNotas
from dsicola.models.assessment import (
    PeriodoLancamentoCreateRequest,
    PeriodoLancamentoResponse,
    PeriodoLancamentoUpdateRequest,
)
from dsicola.utils.datetime import utc_today

logger = logging.getLogger(__name__)

MAX_NUMERO = {
    TipoPeriodoLancamento.TRIMESTRE.value: 3,
    TipoPeriodoLancamento.SEMESTRE.value: 2,
}


class PostingWindowError(Exception):
    """Base exception for grade posting window errors."""

    pass


class PostingWindowNotFoundError(PostingWindowError):
    pass


class PostingWindowConflictError(PostingWindowError):
    pass


class PostingWindowValidationError(PostingWindowError):
    pass


class PostingWindowForbiddenError(PostingWindowError):
    pass


class PostingWindowClosedError(PostingWindowValidationError):
    """Raised when grades are posted outside an open window."""

    pass


def to_response(periodo: PeriodoLancamentoNotas, today: date | None = None) -> PeriodoLancamentoResponse:
    return PeriodoLancamentoResponse(
        id=periodo.id,
        ano_letivo_id=periodo.ano_letivo_id,
        tipo=periodo.tipo,
        numero=periodo.numero,
        data_inicio=periodo.data_inicio,
        data_fim=periodo.data_fim,
        status=periodo.effective_status(today or utc_today()),
        reaberto_por=periodo.reaberto_por,
        motivo_reabertura=periodo.motivo_reabertura,
    )


class PostingWindowService:
    """Service for the grade posting windows of one institution."""

    def __init__(
        self,
        db: AsyncSession,
        instituicao_id: str,
        tipo_academico: str | None = None,
    ) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.tipo_academico = tipo_academico
        self.audit = AuditService(db, instituicao_id)

    async def create_periodo(
        self,
        request: PeriodoLancamentoCreateRequest,
        usuario_id: str,
    ) -> PeriodoLancamentoResponse:
        """Create an ABERTO posting window.

        Raises:
            PostingWindowNotFoundError: Ano letivo not found.
            PostingWindowValidationError: Invalid number or dates.
            PostingWindowConflictError: Window already exists for the period.
        """
        await self._get_ano_letivo(request.ano_letivo_id)
        tipo = request.tipo.value
        maximo = MAX_NUMERO[tipo]
        if not 1 <= request.numero <= maximo:
            raise PostingWindowValidationError(f"Número de {tipo.lower()} deve estar entre 1 e {maximo}")
        self._check_datas(request.data_inicio, request.data_fim)

        result = await self.db.execute(
            select(PeriodoLancamentoNotas.id).where(
                PeriodoLancamentoNotas.instituicao_id == self.instituicao_id,
                PeriodoLancamentoNotas.ano_letivo_id == request.ano_letivo_id,
                PeriodoLancamentoNotas.tipo == tipo,
                PeriodoLancamentoNotas.numero == request.numero,
            )
        )
        if result.scalar_one_or_none() is not None:
            raise PostingWindowConflictError(
                f"Já existe período de lançamento para {tipo} {request.numero}"
            )

        periodo = PeriodoLancamentoNotas(
            instituicao_id=self.instituicao_id,
            ano_letivo_id=request.ano_letivo_id,
            tipo=tipo,
            numero=request.numero,
            data_inicio=request.data_inicio,
            data_fim=request.data_fim,
            status=StatusPeriodoLancamento.ABERTO.value,
        )
        self.db.add(periodo)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.CREATE,
            "PeriodoLancamentoNotas",
            periodo.id,
            usuario_id=usuario_id,
            dados_novos=request.model_dump(mode="json"),
        )
        await self.db.commit()
        await self.db.refresh(periodo)

        logger.info("Created posting window %s %d (%s)", tipo, request.numero, periodo.id)

        return to_response(periodo)

    async def list_periodos(self, ano_letivo_id: str | None = None) -> list[PeriodoLancamentoResponse]:
        query = select(PeriodoLancamentoNotas).where(
            PeriodoLancamentoNotas.instituicao_id == self.instituicao_id
        )
        if ano_letivo_id:
            query = query.where(PeriodoLancamentoNotas.ano_letivo_id == ano_letivo_id)
        query = query.order_by(PeriodoLancamentoNotas.tipo, PeriodoLancamentoNotas.numero)

        result = await self.db.execute(query)
        today = utc_today()
        return [to_response(p, today) for p in result.scalars().all()]

    async def get_periodo(self, periodo_id: str) -> PeriodoLancamentoResponse:
        return to_response(await self._get(periodo_id))

    async def update_periodo(
        self,
        periodo_id: str,
        request: PeriodoLancamentoUpdateRequest,
        usuario_id: str,
    ) -> PeriodoLancamentoResponse:
        periodo = await self._get(periodo_id)
        data_inicio = request.data_inicio or periodo.data_inicio
        data_fim = request.data_fim or periodo.data_fim
        self._check_datas(data_inicio, data_fim)

        anterior = {"data_inicio": periodo.data_inicio, "data_fim": periodo.data_fim}
        periodo.data_inicio = data_inicio
        periodo.data_fim = data_fim

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.UPDATE,
            "PeriodoLancamentoNotas",
            periodo.id,
            usuario_id=usuario_id,
            dados_anteriores=anterior,
            dados_novos={"data_inicio": data_inicio, "data_fim": data_fim},
        )
        await self.db.commit()
        await self.db.refresh(periodo)

        logger.info("Updated posting window %s", periodo.id)

        return to_response(periodo)

    async def fechar_periodo(self, periodo_id: str, usuario_id: str) -> PeriodoLancamentoResponse:
        periodo = await self._get(periodo_id)
        if periodo.status == StatusPeriodoLancamento.FECHADO.value:
            raise PostingWindowValidationError("Período de lançamento já está fechado")

        periodo.status = StatusPeriodoLancamento.FECHADO.value
        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.CLOSE,
            "PeriodoLancamentoNotas",
            periodo.id,
            usuario_id=usuario_id,
        )
        await self.db.commit()
        await self.db.refresh(periodo)

        logger.info("Closed posting window %s", periodo.id)

        return to_response(periodo)

    async def reabrir_periodo(
        self,
        periodo_id: str,
        motivo: str,
        usuario_id: str,
        roles: Iterable[str],
        data_fim: date | None = None,
    ) -> PeriodoLancamentoResponse:
        """Reopen a closed or expired window. ADMIN only.

        Raises:
            PostingWindowForbiddenError: Caller is not ADMIN.
            PostingWindowValidationError: Window already open, or the new end
                date is not after the start.
        """
        roles = set(roles)
        if not roles & {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}:
            raise PostingWindowForbiddenError("Apenas ADMIN pode reabrir períodos de lançamento")

        periodo = await self._get(periodo_id)
        today = utc_today()
        if periodo.effective_status(today) == StatusPeriodoLancamento.ABERTO.value:
            raise PostingWindowValidationError("Período de lançamento já está aberto")

        if data_fim is not None:
            self._check_datas(periodo.data_inicio, data_fim)
            periodo.data_fim = data_fim
        anterior = periodo.status
        periodo.status = StatusPeriodoLancamento.ABERTO.value
        periodo.reaberto_por = usuario_id
        periodo.motivo_reabertura = motivo

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.REOPEN,
            "PeriodoLancamentoNotas",
            periodo.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior},
            dados_novos={"status": periodo.status, "data_fim": periodo.data_fim},
            observacao=motivo,
        )
        await self.db.commit()
        await self.db.refresh(periodo)

        logger.info("Reopened posting window %s", periodo.id)

        return to_response(periodo)

    async def verificar_lancamento_aberto(
        self,
        ano_letivo_id: str,
        numero: int | None,
        today: date | None = None,
    ) -> None:
        """Check that grades of a period may be posted today.

        Posting is allowed when no window is configured for the period.

        Raises:
            PostingWindowClosedError: A window exists and is not open today.
        """
        if numero is None:
            return
        tipo = (
            TipoPeriodoLancamento.TRIMESTRE
            if self.tipo_academico == TipoAcademico.SECUNDARIO.value
            else TipoPeriodoLancamento.SEMESTRE
        )
        result = await self.db.execute(
            select(PeriodoLancamentoNotas).where(
                PeriodoLancamentoNotas.instituicao_id == self.instituicao_id,
                PeriodoLancamentoNotas.ano_letivo_id == ano_letivo_id,
                PeriodoLancamentoNotas.tipo == tipo.value,
                PeriodoLancamentoNotas.numero == numero,
            )
        )
        periodo = result.scalar_one_or_none()
        if periodo is None:
            return

        today = today or utc_today()
        if not periodo.is_open_on(today):
            status = periodo.effective_status(today)
            raise PostingWindowClosedError(
                f"Período de lançamento de notas ({tipo.value} {numero}) não está aberto: {status}"
            )

    @staticmethod
    def _check_datas(data_inicio: date, data_fim: date) -> None:
        if data_fim <= data_inicio:
            raise PostingWindowValidationError("Data de fim deve ser posterior à data de início")

    async def _get(self, periodo_id: str) -> PeriodoLancamentoNotas:
        result = await self.db.execute(
            select(PeriodoLancamentoNotas).where(
                PeriodoLancamentoNotas.id == str(periodo_id),
                PeriodoLancamentoNotas.instituicao_id == self.instituicao_id,
            )
        )
        periodo = result.scalar_one_or_none()
        if periodo is None:
            raise PostingWindowNotFoundError(f"Período de lançamento {periodo_id} not found")
        return periodo

    async def _get_ano_letivo(self, ano_letivo_id: str) -> AnoLetivo:
        result = await self.db.execute(
            select(AnoLetivo).where(
                AnoLetivo.id == str(ano_letivo_id),
                AnoLetivo.instituicao_id == self.instituicao_id,
            )
        )
        ano_letivo = result.scalar_one_or_none()
        if ano_letivo is None:
            raise PostingWindowNotFoundError(f"Ano letivo {ano_letivo_id} not found")
        return ano_letivo
