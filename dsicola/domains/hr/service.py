# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Human resources service: funcionários and their employment history."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, StatusFuncionario, TipoAlteracaoRh
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import Funcionario, HistoricoRh
from dsicola.models.hr import (
    FuncionarioCreateRequest,
    FuncionarioResponse,
    FuncionarioUpdateRequest,
    HistoricoRhCreateRequest,
    HistoricoRhResponse,
)
from dsicola.utils.datetime import utc_today

logger = logging.getLogger(__name__)

# History entries that change the employment status
STATUS_POR_ALTERACAO = {
    TipoAlteracaoRh.DEMISSAO: StatusFuncionario.DEMITIDO,
    TipoAlteracaoRh.SUSPENSAO: StatusFuncionario.SUSPENSO,
}


class HrServiceError(Exception):
    """Base exception for HR errors."""

    pass


class FuncionarioNotFoundError(HrServiceError):
    pass


class HrValidationError(HrServiceError):
    pass


class HrService:
    """Service for staff records of one institution."""

    def __init__(self, db: AsyncSession, instituicao_id: str) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.audit = AuditService(db, instituicao_id)

    async def create_funcionario(
        self,
        request: FuncionarioCreateRequest,
        usuario_id: str,
    ) -> FuncionarioResponse:
        """Create a funcionário and its ADMISSAO history entry."""
        funcionario = Funcionario(
            instituicao_id=self.instituicao_id,
            status=StatusFuncionario.ATIVO.value,
            **request.model_dump(),
        )
        self.db.add(funcionario)
        await self.db.flush()

        self.db.add(
            HistoricoRh(
                instituicao_id=self.instituicao_id,
                funcionario_id=funcionario.id,
                tipo_alteracao=TipoAlteracaoRh.ADMISSAO.value,
                valor_novo=request.cargo,
                data_alteracao=request.data_admissao,
                registrado_por=usuario_id,
            )
        )
        self.audit.log(
            ModuloAuditoria.RH,
            AcaoAuditoria.CREATE,
            "Funcionario",
            funcionario.id,
            usuario_id=usuario_id,
            dados_novos=request.model_dump(mode="json"),
        )
        await self.db.commit()
        await self.db.refresh(funcionario)

        logger.info("Created funcionário %s (%s)", funcionario.id, funcionario.cargo)

        return FuncionarioResponse.model_validate(funcionario)

    async def list_funcionarios(
        self,
        status: str | None = None,
        departamento: str | None = None,
        search: str | None = None,
    ) -> tuple[list[FuncionarioResponse], int]:
        query = select(Funcionario).where(Funcionario.instituicao_id == self.instituicao_id)
        if status:
            query = query.where(Funcionario.status == status)
        if departamento:
            query = query.where(Funcionario.departamento == departamento)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Funcionario.nome_completo.ilike(pattern), Funcionario.cargo.ilike(pattern))
            )
        result = await self.db.execute(query.order_by(Funcionario.nome_completo))
        items = [FuncionarioResponse.model_validate(f) for f in result.scalars().all()]
        return items, len(items)

    async def get_funcionario(self, funcionario_id: str) -> FuncionarioResponse:
        return FuncionarioResponse.model_validate(await self._get(funcionario_id))

    async def update_funcionario(
        self,
        funcionario_id: str,
        request: FuncionarioUpdateRequest,
        usuario_id: str,
    ) -> FuncionarioResponse:
        funcionario = await self._get(funcionario_id)
        updates = request.model_dump(exclude_unset=True)
        if "status" in updates and updates["status"] is not None:
            updates["status"] = StatusFuncionario(updates["status"]).value

        anteriores = {key: getattr(funcionario, key) for key in updates}
        for key, value in updates.items():
            setattr(funcionario, key, value)

        self.audit.log(
            ModuloAuditoria.RH,
            AcaoAuditoria.UPDATE,
            "Funcionario",
            funcionario.id,
            usuario_id=usuario_id,
            dados_anteriores=anteriores,
            dados_novos=updates,
        )
        await self.db.commit()
        await self.db.refresh(funcionario)

        logger.info("Updated funcionário %s", funcionario.id)

        return FuncionarioResponse.model_validate(funcionario)

    async def get_historico(self, funcionario_id: str | None = None) -> list[HistoricoRhResponse]:
        """History entries, most recent first."""
        query = select(HistoricoRh).where(HistoricoRh.instituicao_id == self.instituicao_id)
        if funcionario_id:
            query = query.where(HistoricoRh.funcionario_id == funcionario_id)
        result = await self.db.execute(
            query.order_by(HistoricoRh.data_alteracao.desc(), HistoricoRh.created_at.desc())
        )
        return [HistoricoRhResponse.model_validate(h) for h in result.scalars().all()]

    async def create_historico(
        self,
        request: HistoricoRhCreateRequest,
        usuario_id: str,
    ) -> HistoricoRhResponse:
        """Record a history entry.

        DEMISSAO and SUSPENSAO entries also update the funcionário status.

        Raises:
            FuncionarioNotFoundError: Funcionário not found.
            HrValidationError: Funcionário already dismissed.
        """
        funcionario = await self._get(request.funcionario_id)
        if funcionario.status == StatusFuncionario.DEMITIDO.value and request.tipo_alteracao in (
            TipoAlteracaoRh.DEMISSAO,
            TipoAlteracaoRh.SUSPENSAO,
        ):
            raise HrValidationError("Funcionário já foi demitido")

        historico = HistoricoRh(
            instituicao_id=self.instituicao_id,
            funcionario_id=funcionario.id,
            tipo_alteracao=request.tipo_alteracao.value,
            valor_anterior=request.valor_anterior,
            valor_novo=request.valor_novo,
            observacao=request.observacao,
            data_alteracao=request.data_alteracao or utc_today(),
            registrado_por=usuario_id,
        )
        self.db.add(historico)

        novo_status = STATUS_POR_ALTERACAO.get(request.tipo_alteracao)
        anterior = funcionario.status
        if novo_status is not None:
            funcionario.status = novo_status.value
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.RH,
            AcaoAuditoria.CREATE,
            "HistoricoRh",
            historico.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior},
            dados_novos={**request.model_dump(mode="json"), "status": funcionario.status},
        )
        await self.db.commit()
        await self.db.refresh(historico)

        logger.info(
            "Recorded %s for funcionário %s", request.tipo_alteracao.value, funcionario.id
        )

        return HistoricoRhResponse.model_validate(historico)

    async def _get(self, funcionario_id: str) -> Funcionario:
        result = await self.db.execute(
            select(Funcionario).where(
                Funcionario.id == str(funcionario_id),
                Funcionario.instituicao_id == self.instituicao_id,
            )
        )
        funcionario = result.scalar_one_or_none()
        if funcionario is None:
            raise FuncionarioNotFoundError(f"Funcionário {funcionario_id} not found")
        return funcionario
