# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Aula lançada service.

Records the lessons actually given for the planned blocks of an active
plano de ensino.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, TipoAcademico, UserRole
from dsicola.domains.academic_closing.service import (
    AcademicClosingService,
    PeriodoEncerradoError,
)
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    AulaLancada,
    PlanoAula,
    PlanoEnsino,
    Presenca,
)
from dsicola.models.lesson import AulaLancadaCreateRequest, AulaLancadaResponse

logger = logging.getLogger(__name__)


class AulaServiceError(Exception):
    """Base exception for aula lançada errors."""

    pass


class AulaNotFoundError(AulaServiceError):
    pass


class AulaValidationError(AulaServiceError):
    """Raised for an inactive plano, a date outside the periods or a duplicate posting."""

    pass


class AulaForbiddenError(AulaServiceError):
    """Raised when a professor posts on someone else's plano or the period is closed."""

    pass


class AulaLancadaService:
    """Service for posting lessons of one institution.

    Attributes:
        db: Async database session.
        instituicao_id: Tenant identifier.
        tipo_academico: SECUNDARIO or SUPERIOR.
    """

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
        self.closing = AcademicClosingService(db, instituicao_id, tipo_academico)

    async def lancar_aula(
        self,
        request: AulaLancadaCreateRequest,
        usuario_id: str,
        roles: Iterable[str],
    ) -> AulaLancadaResponse:
        """Post a lesson for a planned block on a date.

        The trimester or semester containing the date becomes the period of
        the posted lesson.

        Raises:
            AulaNotFoundError: Plano aula not found in the tenant.
            AulaValidationError: Plano not active, date outside every period
                of the year, duplicate date, or all planned lessons posted.
            AulaForbiddenError: Professor does not own the plano, or the
                period is closed.
        """
        plano_aula, plano = await self._get_plano_aula(request.plano_aula_id)

        if not plano.is_ativo:
            raise AulaValidationError("Plano de ensino não está ativo (aprovado e não bloqueado)")
        self._check_owner(plano, usuario_id, roles)

        periodo = await self._periodo_da_data(plano.ano_letivo_id, request.data)
        if periodo is None:
            raise AulaValidationError(
                f"Data {request.data.isoformat()} fora dos períodos do ano letivo"
            )
        try:
            await self.closing.verificar_periodo_aberto(plano.ano_letivo_id, periodo)
        except PeriodoEncerradoError as e:
            raise AulaForbiddenError(str(e)) from e

        result = await self.db.execute(
            select(AulaLancada.data).where(AulaLancada.plano_aula_id == plano_aula.id)
        )
        datas = list(result.scalars().all())
        if request.data in datas:
            raise AulaValidationError("Aula já lançada nesta data")
        if len(datas) >= plano_aula.quantidade_aulas:
            raise AulaValidationError(
                f"Todas as {plano_aula.quantidade_aulas} aulas planejadas já foram lançadas"
            )

        aula = AulaLancada(
            instituicao_id=self.instituicao_id,
            plano_ensino_id=plano.id,
            plano_aula_id=plano_aula.id,
            data=request.data,
            periodo=periodo,
            observacoes=request.observacoes,
            lancado_por=usuario_id,
        )
        self.db.add(aula)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.CREATE,
            "AulaLancada",
            aula.id,
            usuario_id=usuario_id,
            dados_novos={"plano_aula_id": plano_aula.id, "data": request.data, "periodo": periodo},
        )
        await self.db.commit()
        await self.db.refresh(aula)

        logger.info(
            "Posted aula %s for plano aula %s on %s", aula.id, plano_aula.id, request.data
        )

        return AulaLancadaResponse.model_validate(aula)

    async def list_aulas(self, plano_ensino_id: str) -> list[AulaLancadaResponse]:
        result = await self.db.execute(
            select(AulaLancada)
            .where(
                AulaLancada.instituicao_id == self.instituicao_id,
                AulaLancada.plano_ensino_id == str(plano_ensino_id),
            )
            .order_by(AulaLancada.data, AulaLancada.created_at)
        )
        return [AulaLancadaResponse.model_validate(a) for a in result.scalars().all()]

    async def get_model(self, aula_id: str) -> AulaLancada:
        result = await self.db.execute(
            select(AulaLancada).where(
                AulaLancada.id == str(aula_id),
                AulaLancada.instituicao_id == self.instituicao_id,
            )
        )
        aula = result.scalar_one_or_none()
        if aula is None:
            raise AulaNotFoundError(f"Aula lançada {aula_id} not found")
        return aula

    async def delete_aula(self, aula_id: str, usuario_id: str, roles: Iterable[str]) -> None:
        """Delete a posted lesson that has no attendance recorded.

        Raises:
            AulaNotFoundError: Aula not found.
            AulaValidationError: Attendance already recorded.
            AulaForbiddenError: Professor does not own the plano.
        """
        aula = await self.get_model(aula_id)
        plano = await self.db.get(PlanoEnsino, aula.plano_ensino_id)
        if plano is not None:
            self._check_owner(plano, usuario_id, roles)

        result = await self.db.execute(
            select(func.count()).select_from(Presenca).where(Presenca.aula_lancada_id == aula.id)
        )
        if (result.scalar() or 0) > 0:
            raise AulaValidationError("Não é possível excluir uma aula com presenças registradas")

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.DELETE,
            "AulaLancada",
            aula.id,
            usuario_id=usuario_id,
            dados_anteriores={"plano_aula_id": aula.plano_aula_id, "data": aula.data},
        )
        await self.db.delete(aula)
        await self.db.commit()

        logger.info("Deleted aula lançada %s", aula_id)

    async def _get_plano_aula(self, plano_aula_id: str) -> tuple[PlanoAula, PlanoEnsino]:
        result = await self.db.execute(
            select(PlanoAula, PlanoEnsino)
            .join(PlanoEnsino, PlanoEnsino.id == PlanoAula.plano_ensino_id)
            .where(
                PlanoAula.id == str(plano_aula_id),
                PlanoEnsino.instituicao_id == self.instituicao_id,
            )
        )
        row = result.first()
        if row is None:
            raise AulaNotFoundError(f"Plano aula {plano_aula_id} not found")
        return row[0], row[1]

    async def _periodo_da_data(self, ano_letivo_id: str, day: date) -> int | None:
        """Number of the trimester or semester of the year containing ``day``."""
        ano_letivo = await self.db.get(AnoLetivo, ano_letivo_id)
        if ano_letivo is None:
            return None
        if self.tipo_academico == TipoAcademico.SECUNDARIO.value:
            periodos = ano_letivo.trimestres
        else:
            periodos = ano_letivo.semestres
        for periodo in periodos:
            if periodo.contains(day):
                return periodo.numero
        return None

    @staticmethod
    def _check_owner(plano: PlanoEnsino, usuario_id: str, roles: Iterable[str]) -> None:
        roles = set(roles)
        staff = {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value, UserRole.DIRECAO.value}
        if roles & staff:
            return
        if plano.professor_id != usuario_id:
            raise AulaForbiddenError("Professor só pode lançar aulas nos seus próprios planos")
