# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic year service for managing academic year operations.

This module provides the AcademicYearService class for:
- Ano letivo CRUD operations
- Activating the academic year
- Trimesters (secondary) and semesters (higher education)
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, StatusAnoLetivo, TipoAcademico
from dsicola.domains.audit.service import AuditService
from dsicola.domains.instituicao.service import load_parametros
from dsicola.infrastructure.database.models import AnoLetivo, Semestre, Trimestre
from dsicola.models.academic_year import (
    AnoLetivoCreateRequest,
    AnoLetivoResponse,
    AnoLetivoSummary,
    AnoLetivoUpdateRequest,
    PeriodoCreateRequest,
    PeriodoResponse,
)
from dsicola.utils.datetime import utc_now

logger = logging.getLogger(__name__)

TRIMESTRES_POR_ANO = 3


class AcademicYearServiceError(Exception):
    """Base exception for academic year service errors."""

    pass


class AcademicYearNotFoundError(AcademicYearServiceError):
    """Raised when academic year is not found."""

    pass


class AcademicYearConflictError(AcademicYearServiceError):
    """Raised on duplicate years, overlapping dates or a second active year."""

    pass


class AcademicYearValidationError(AcademicYearServiceError):
    """Raised for invalid dates or a forbidden state change."""

    pass


class AcademicYearService:
    """Service for managing the academic years of one institution.

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

    async def create_ano_letivo(
        self,
        request: AnoLetivoCreateRequest,
        usuario_id: str,
    ) -> AnoLetivoResponse:
        """Create a new academic year in PLANEJADO status.

        Raises:
            AcademicYearValidationError: data_inicio not before data_fim.
            AcademicYearConflictError: Year exists or dates overlap.
        """
        self._validate_dates(request.data_inicio, request.data_fim)
        await self._check_unique_ano(request.ano)
        await self._check_overlap(request.data_inicio, request.data_fim)

        ano_letivo = AnoLetivo(
            instituicao_id=self.instituicao_id,
            ano=request.ano,
            data_inicio=request.data_inicio,
            data_fim=request.data_fim,
            descricao=request.descricao,
            status=StatusAnoLetivo.PLANEJADO.value,
        )
        self.db.add(ano_letivo)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.ANO_LETIVO,
            AcaoAuditoria.CREATE,
            "AnoLetivo",
            ano_letivo.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(ano_letivo)

        logger.info("Created ano letivo: %s (%s)", ano_letivo.ano, ano_letivo.id)

        return self._to_response(ano_letivo)

    async def list_anos_letivos(
        self,
        status: str | None = None,
    ) -> tuple[list[AnoLetivoSummary], int]:
        """List academic years, most recent first."""
        query = select(AnoLetivo).where(AnoLetivo.instituicao_id == self.instituicao_id)
        if status:
            query = query.where(AnoLetivo.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(query.order_by(AnoLetivo.ano.desc()))
        items = [AnoLetivoSummary.model_validate(a) for a in result.scalars().all()]

        return items, total

    async def get_ano_letivo(self, ano_letivo_id: str) -> AnoLetivoResponse:
        return self._to_response(await self.get_model(ano_letivo_id))

    async def get_ano_letivo_ativo(self) -> AnoLetivoResponse | None:
        """Get the ATIVO academic year, if any."""
        result = await self.db.execute(
            select(AnoLetivo).where(
                AnoLetivo.instituicao_id == self.instituicao_id,
                AnoLetivo.status == StatusAnoLetivo.ATIVO.value,
            )
        )
        ano_letivo = result.scalars().first()
        return self._to_response(ano_letivo) if ano_letivo else None

    async def update_ano_letivo(
        self,
        ano_letivo_id: str,
        request: AnoLetivoUpdateRequest,
        usuario_id: str,
    ) -> AnoLetivoResponse:
        """Update a PLANEJADO academic year.

        Raises:
            AcademicYearNotFoundError: If year not found.
            AcademicYearValidationError: Year ATIVO or ENCERRADO, or bad dates.
            AcademicYearConflictError: New year or dates clash with another year.
        """
        ano_letivo = await self.get_model(ano_letivo_id)

        if ano_letivo.status != StatusAnoLetivo.PLANEJADO.value:
            raise AcademicYearValidationError(
                f"Ano letivo {ano_letivo.status} não pode ser editado"
            )

        antes = AnoLetivoSummary.model_validate(ano_letivo)
        new_start = request.data_inicio or ano_letivo.data_inicio
        new_end = request.data_fim or ano_letivo.data_fim
        self._validate_dates(new_start, new_end)

        if request.ano is not None and request.ano != ano_letivo.ano:
            await self._check_unique_ano(request.ano)
            ano_letivo.ano = request.ano
        await self._check_overlap(new_start, new_end, exclude_id=ano_letivo.id)

        ano_letivo.data_inicio = new_start
        ano_letivo.data_fim = new_end
        if request.descricao is not None:
            ano_letivo.descricao = request.descricao

        self.audit.log(
            ModuloAuditoria.ANO_LETIVO,
            AcaoAuditoria.UPDATE,
            "AnoLetivo",
            ano_letivo.id,
            usuario_id=usuario_id,
            dados_anteriores=antes,
            dados_novos=AnoLetivoSummary.model_validate(ano_letivo),
        )
        await self.db.commit()
        await self.db.refresh(ano_letivo)

        logger.info("Updated ano letivo: %s", ano_letivo.id)

        return self._to_response(ano_letivo)

    async def activate_ano_letivo(self, ano_letivo_id: str, usuario_id: str) -> AnoLetivoResponse:
        """Mark an academic year as ATIVO.

        Activating the already active year is a no-op.

        Raises:
            AcademicYearValidationError: Year is ENCERRADO.
            AcademicYearConflictError: Another year is ATIVO.
        """
        ano_letivo = await self.get_model(ano_letivo_id)

        if ano_letivo.status == StatusAnoLetivo.ATIVO.value:
            return self._to_response(ano_letivo)
        if ano_letivo.status == StatusAnoLetivo.ENCERRADO.value:
            raise AcademicYearValidationError("Ano letivo encerrado não pode ser ativado")

        result = await self.db.execute(
            select(AnoLetivo.ano).where(
                AnoLetivo.instituicao_id == self.instituicao_id,
                AnoLetivo.status == StatusAnoLetivo.ATIVO.value,
                AnoLetivo.id != ano_letivo.id,
            )
        )
        other = result.scalars().first()
        if other is not None:
            raise AcademicYearConflictError(f"Já existe um ano letivo ativo ({other})")

        ano_letivo.status = StatusAnoLetivo.ATIVO.value
        ano_letivo.ativado_em = utc_now()
        ano_letivo.ativado_por = usuario_id

        self.audit.log(
            ModuloAuditoria.ANO_LETIVO,
            AcaoAuditoria.UPDATE,
            "AnoLetivo",
            ano_letivo.id,
            usuario_id=usuario_id,
            dados_novos={"status": ano_letivo.status},
            observacao="Ano letivo ativado",
        )
        await self.db.commit()

        logger.info("Activated ano letivo: %s (%s)", ano_letivo.ano, ano_letivo.id)

        return self._to_response(ano_letivo)

    async def create_trimestre(
        self,
        ano_letivo_id: str,
        request: PeriodoCreateRequest,
        usuario_id: str,
    ) -> PeriodoResponse:
        """Create a trimester (SECUNDARIO institutions, numero 1-3)."""
        if self.tipo_academico != TipoAcademico.SECUNDARIO.value:
            raise AcademicYearValidationError("Trimestres existem apenas no ensino secundário")
        if request.numero > TRIMESTRES_POR_ANO:
            raise AcademicYearValidationError("Número do trimestre deve estar entre 1 e 3")
        return await self._create_periodo(Trimestre, ano_letivo_id, request, usuario_id)

    async def create_semestre(
        self,
        ano_letivo_id: str,
        request: PeriodoCreateRequest,
        usuario_id: str,
    ) -> PeriodoResponse:
        """Create a semester (SUPERIOR institutions, numero 1-N)."""
        if self.tipo_academico != TipoAcademico.SUPERIOR.value:
            raise AcademicYearValidationError("Semestres existem apenas no ensino superior")
        parametros = await load_parametros(self.db, self.instituicao_id)
        maximo = parametros.quantidade_semestres_por_ano
        if request.numero > maximo:
            raise AcademicYearValidationError(f"Número do semestre deve estar entre 1 e {maximo}")
        return await self._create_periodo(Semestre, ano_letivo_id, request, usuario_id)

    async def list_trimestres(self, ano_letivo_id: str) -> list[PeriodoResponse]:
        ano_letivo = await self.get_model(ano_letivo_id)
        return [PeriodoResponse.model_validate(t) for t in ano_letivo.trimestres]

    async def list_semestres(self, ano_letivo_id: str) -> list[PeriodoResponse]:
        ano_letivo = await self.get_model(ano_letivo_id)
        return [PeriodoResponse.model_validate(s) for s in ano_letivo.semestres]

    async def get_model(self, ano_letivo_id: str) -> AnoLetivo:
        """Load an academic year of the institution.

        Raises:
            AcademicYearNotFoundError: If year not found.
        """
        result = await self.db.execute(
            select(AnoLetivo).where(
                AnoLetivo.id == str(ano_letivo_id),
                AnoLetivo.instituicao_id == self.instituicao_id,
            )
        )
        ano_letivo = result.scalar_one_or_none()
        if not ano_letivo:
            raise AcademicYearNotFoundError(f"Ano letivo {ano_letivo_id} not found")
        return ano_letivo

    async def _create_periodo(
        self,
        model: type[Trimestre] | type[Semestre],
        ano_letivo_id: str,
        request: PeriodoCreateRequest,
        usuario_id: str,
    ) -> PeriodoResponse:
        ano_letivo = await self.get_model(ano_letivo_id)

        if not (
            ano_letivo.contains(request.data_inicio) and ano_letivo.contains(request.data_fim)
        ):
            raise AcademicYearValidationError("Período fora das datas do ano letivo")

        result = await self.db.execute(
            select(model.id).where(
                model.ano_letivo_id == ano_letivo.id,
                model.numero == request.numero,
            )
        )
        if result.scalar_one_or_none():
            raise AcademicYearConflictError(
                f"{model.__name__} {request.numero} já existe neste ano letivo"
            )

        periodo = model(
            instituicao_id=self.instituicao_id,
            ano_letivo_id=ano_letivo.id,
            numero=request.numero,
            data_inicio=request.data_inicio,
            data_fim=request.data_fim,
            status=request.status.value,
        )
        self.db.add(periodo)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.ANO_LETIVO,
            AcaoAuditoria.CREATE,
            model.__name__,
            periodo.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(periodo)

        logger.info(
            "Created %s %d for ano letivo %s", model.__name__, periodo.numero, ano_letivo.id
        )

        return PeriodoResponse.model_validate(periodo)

    @staticmethod
    def _validate_dates(data_inicio, data_fim) -> None:
        if data_inicio >= data_fim:
            raise AcademicYearValidationError("Data de início deve ser anterior à data de fim")

    async def _check_unique_ano(self, ano: int) -> None:
        result = await self.db.execute(
            select(AnoLetivo.id).where(
                AnoLetivo.instituicao_id == self.instituicao_id,
                AnoLetivo.ano == ano,
            )
        )
        if result.scalar_one_or_none():
            raise AcademicYearConflictError(f"Ano letivo {ano} já existe")

    async def _check_overlap(self, data_inicio, data_fim, exclude_id: str | None = None) -> None:
        query = select(AnoLetivo.ano).where(
            AnoLetivo.instituicao_id == self.instituicao_id,
            AnoLetivo.data_inicio <= data_fim,
            AnoLetivo.data_fim >= data_inicio,
        )
        if exclude_id:
            query = query.where(AnoLetivo.id != exclude_id)
        other = (await self.db.execute(query)).scalars().first()
        if other is not None:
            raise AcademicYearConflictError(
                f"As datas sobrepõem-se ao ano letivo {other}"
            )

    def _to_response(self, ano_letivo: AnoLetivo) -> AnoLetivoResponse:
        return AnoLetivoResponse.model_validate(ano_letivo)
