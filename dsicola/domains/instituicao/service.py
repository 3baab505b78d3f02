# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Institution service.

This module provides:
- InstituicaoService: tenant registration and lookup (platform level)
- ParametrosService: per-institution academic parameters and late-fee
  configuration
- load_parametros: parameters of an institution with settings defaults
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.config import get_settings
from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import (
    ConfiguracaoMulta,
    Instituicao,
    ParametrosSistema,
)
from dsicola.models.instituicao import (
    ConfiguracaoMultaRequest,
    ConfiguracaoMultaResponse,
    InstituicaoCreateRequest,
    InstituicaoResponse,
    InstituicaoUpdateRequest,
    ParametrosSistemaResponse,
    ParametrosSistemaUpdateRequest,
)

logger = logging.getLogger(__name__)


class InstituicaoServiceError(Exception):
    """Base exception for institution service errors."""

    pass


class InstituicaoNotFoundError(InstituicaoServiceError):
    """Raised when institution is not found."""

    pass


class InstituicaoConflictError(InstituicaoServiceError):
    """Raised when the subdomain is already taken."""

    pass


def default_parametros(instituicao_id: str) -> ParametrosSistema:
    """Unsaved parameters populated from settings defaults."""
    academic = get_settings().academic
    return ParametrosSistema(
        instituicao_id=instituicao_id,
        percentual_minimo_aprovacao=Decimal(str(academic.minimum_passing_grade)),
        permitir_exame_recurso=False,
        frequencia_minima=Decimal(str(academic.minimum_attendance_percent)),
        quantidade_semestres_por_ano=academic.semesters_per_year,
    )


async def load_parametros(db: AsyncSession, instituicao_id: str) -> ParametrosSistema:
    """Stored parameters of an institution, or the defaults when none exist."""
    result = await db.execute(
        select(ParametrosSistema).where(ParametrosSistema.instituicao_id == instituicao_id)
    )
    parametros = result.scalar_one_or_none()
    if parametros is None:
        return default_parametros(instituicao_id)
    return parametros


class InstituicaoService:
    """Platform-level management of institutions.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_instituicao(self, request: InstituicaoCreateRequest) -> InstituicaoResponse:
        """Register an institution together with its default parameters.

        Raises:
            InstituicaoConflictError: If the subdomain is taken.
        """
        if await self.get_by_subdominio(request.subdominio) is not None:
            raise InstituicaoConflictError(f"Subdomínio '{request.subdominio}' já está em uso")

        instituicao = Instituicao(
            nome=request.nome,
            subdominio=request.subdominio,
            tipo_academico=request.tipo_academico.value,
            email=request.email,
            telefone=request.telefone,
            endereco=request.endereco,
        )
        self.db.add(instituicao)
        await self.db.flush()

        self.db.add(default_parametros(instituicao.id))
        await self.db.commit()
        await self.db.refresh(instituicao)

        logger.info("Created instituicao: %s (%s)", instituicao.subdominio, instituicao.id)

        return InstituicaoResponse.model_validate(instituicao)

    async def list_instituicoes(
        self, status: str | None = None
    ) -> tuple[list[InstituicaoResponse], int]:
        query = select(Instituicao)
        if status:
            query = query.where(Instituicao.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(query.order_by(Instituicao.nome))
        items = [InstituicaoResponse.model_validate(i) for i in result.scalars().all()]
        return items, total

    async def get_instituicao(self, instituicao_id: str) -> InstituicaoResponse:
        return InstituicaoResponse.model_validate(await self._get_by_id(instituicao_id))

    async def get_by_subdominio(self, subdominio: str) -> Instituicao | None:
        result = await self.db.execute(
            select(Instituicao).where(Instituicao.subdominio == subdominio.lower())
        )
        return result.scalar_one_or_none()

    async def update_instituicao(
        self,
        instituicao_id: str,
        request: InstituicaoUpdateRequest,
    ) -> InstituicaoResponse:
        instituicao = await self._get_by_id(instituicao_id)

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(instituicao, field, getattr(value, "value", value))

        await self.db.commit()
        await self.db.refresh(instituicao)

        logger.info("Updated instituicao: %s", instituicao.id)

        return InstituicaoResponse.model_validate(instituicao)

    async def _get_by_id(self, instituicao_id: str) -> Instituicao:
        instituicao = await self.db.get(Instituicao, str(instituicao_id))
        if instituicao is None:
            raise InstituicaoNotFoundError(f"Instituição {instituicao_id} not found")
        return instituicao


class ParametrosService:
    """Institutional configuration of one tenant.

    Attributes:
        db: Async database session.
        instituicao_id: Tenant identifier.
    """

    def __init__(self, db: AsyncSession, instituicao_id: str) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.audit = AuditService(db, instituicao_id)

    async def get_parametros(self) -> ParametrosSistemaResponse:
        parametros = await load_parametros(self.db, self.instituicao_id)
        return ParametrosSistemaResponse.model_validate(parametros)

    async def update_parametros(
        self,
        request: ParametrosSistemaUpdateRequest,
        usuario_id: str,
    ) -> ParametrosSistemaResponse:
        """Update the academic parameters, creating the row when needed."""
        parametros = await load_parametros(self.db, self.instituicao_id)
        antes = ParametrosSistemaResponse.model_validate(parametros)
        if parametros.id is None:
            self.db.add(parametros)

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(parametros, field, value)

        depois = ParametrosSistemaResponse.model_validate(parametros)
        self.audit.log(
            ModuloAuditoria.CONFIGURACAO,
            AcaoAuditoria.UPDATE,
            "ParametrosSistema",
            self.instituicao_id,
            usuario_id=usuario_id,
            dados_anteriores=antes,
            dados_novos=depois,
        )
        await self.db.commit()

        logger.info("Updated parametros for instituicao: %s", self.instituicao_id)

        return depois

    async def get_configuracao_multa(self) -> ConfiguracaoMultaResponse:
        """Late-fee configuration, falling back to settings defaults."""
        config = await self._get_configuracao_multa()
        if config is None:
            finance = get_settings().finance
            return ConfiguracaoMultaResponse(
                instituicao_id=self.instituicao_id,
                multa_percentual=finance.fine_percent,
                juros_dia_percentual=finance.daily_interest_percent,
                dias_tolerancia=finance.grace_days,
                configurado=False,
            )
        return ConfiguracaoMultaResponse.model_validate(config)

    async def upsert_configuracao_multa(
        self,
        request: ConfiguracaoMultaRequest,
        usuario_id: str,
    ) -> ConfiguracaoMultaResponse:
        config = await self._get_configuracao_multa()
        antes = ConfiguracaoMultaResponse.model_validate(config) if config else None
        if config is None:
            config = ConfiguracaoMulta(instituicao_id=self.instituicao_id)
            self.db.add(config)

        config.multa_percentual = request.multa_percentual
        config.juros_dia_percentual = request.juros_dia_percentual
        config.dias_tolerancia = request.dias_tolerancia

        depois = ConfiguracaoMultaResponse.model_validate(config)
        self.audit.log(
            ModuloAuditoria.CONFIGURACAO,
            AcaoAuditoria.UPDATE if antes else AcaoAuditoria.CREATE,
            "ConfiguracaoMulta",
            self.instituicao_id,
            usuario_id=usuario_id,
            dados_anteriores=antes,
            dados_novos=depois,
        )
        await self.db.commit()

        logger.info("Saved configuracao de multa for instituicao: %s", self.instituicao_id)

        return depois

    async def _get_configuracao_multa(self) -> ConfiguracaoMulta | None:
        result = await self.db.execute(
            select(ConfiguracaoMulta).where(ConfiguracaoMulta.instituicao_id == self.instituicao_id)
        )
        return result.scalar_one_or_none()
