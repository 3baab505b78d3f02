# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Finance service.

This module provides the FinanceService class for:
- Mensalidade CRUD, listing and bulk generation
- Late fees (multa and juros) on overdue mensalidades
- Payments with receipt numbers, and payment reversals (estornos)
"""

from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.config import get_settings
from dsicola.core.enums import (
    AcaoAuditoria,
    ModuloAuditoria,
    StatusMatriculaAnual,
    StatusMensalidade,
)
from dsicola.domains.audit.service import AuditService
from dsicola.domains.finance.penalties import (
    STATUS_FINAIS,
    RegraMulta,
    calcular_multa,
    numero_recibo,
    resolver_regra,
    status_por_pagamentos,
)
from dsicola.infrastructure.database.models import (
    ConfiguracaoMulta,
    Curso,
    MatriculaAnual,
    Mensalidade,
    Pagamento,
    User,
)
from dsicola.models.finance import (
    GerarMensalidadesRequest,
    GerarMensalidadesResponse,
    MensalidadeCreateRequest,
    MensalidadeListResponse,
    MensalidadeResponse,
    MensalidadeUpdateRequest,
    PagamentoCreateRequest,
    PagamentoResponse,
    PagamentoResultResponse,
)
from dsicola.utils.datetime import utc_today
from dsicola.utils.rounding import to_money

logger = logging.getLogger(__name__)

ESTORNO_PREFIX = "ESTORNO_"


class FinanceServiceError(Exception):
    """Base exception for finance service errors."""

    pass


class FinanceNotFoundError(FinanceServiceError):
    pass


class FinanceConflictError(FinanceServiceError):
    """Raised when a mensalidade already exists for the student and month."""

    pass


class FinanceValidationError(FinanceServiceError):
    """Raised for invalid amounts or an operation not allowed in the current status."""

    pass


class FinanceService:
    """Service for tuition billing of one institution.

    Attributes:
        db: Async database session.
        instituicao_id: Tenant identifier.
    """

    def __init__(self, db: AsyncSession, instituicao_id: str) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.audit = AuditService(db, instituicao_id)
        self.settings = get_settings().finance

    # =========================================================================
    # Mensalidades
    # =========================================================================

    async def create_mensalidade(
        self,
        request: MensalidadeCreateRequest,
        usuario_id: str,
    ) -> MensalidadeResponse:
        """Create a mensalidade.

        Raises:
            FinanceNotFoundError: Student or curso not found.
            FinanceValidationError: Discount greater than the value.
            FinanceConflictError: Mensalidade already exists for the month.
        """
        await self._get_aluno(request.aluno_id)
        if request.curso_id:
            await self._get_curso(request.curso_id)
        if request.desconto > request.valor:
            raise FinanceValidationError("Desconto não pode ser maior que o valor")
        if await self._exists(request.aluno_id, request.mes_referencia, request.ano_referencia):
            raise FinanceConflictError(
                f"Já existe mensalidade para {request.mes_referencia:02d}/{request.ano_referencia}"
            )

        mensalidade = Mensalidade(
            instituicao_id=self.instituicao_id,
            aluno_id=request.aluno_id,
            curso_id=request.curso_id,
            mes_referencia=request.mes_referencia,
            ano_referencia=request.ano_referencia,
            valor=request.valor,
            desconto=request.desconto,
            multa=Decimal("0"),
            juros=Decimal("0"),
            data_vencimento=request.data_vencimento,
            status=StatusMensalidade.PENDENTE.value,
            observacoes=request.observacoes,
        )
        self.db.add(mensalidade)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.FINANCEIRO,
            AcaoAuditoria.CREATE,
            "Mensalidade",
            mensalidade.id,
            usuario_id=usuario_id,
            dados_novos=request.model_dump(mode="json"),
        )
        await self.db.commit()
        await self.db.refresh(mensalidade)

        logger.info(
            "Created mensalidade %s for aluno %s (%02d/%d)",
            mensalidade.id,
            request.aluno_id,
            request.mes_referencia,
            request.ano_referencia,
        )

        return await self._to_response(mensalidade)

    async def list_mensalidades(
        self,
        aluno_id: str | None = None,
        status: StatusMensalidade | str | None = None,
        mes_referencia: int | None = None,
        ano_referencia: int | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> MensalidadeListResponse:
        filters = [Mensalidade.instituicao_id == self.instituicao_id]
        if aluno_id:
            filters.append(Mensalidade.aluno_id == aluno_id)
        if status:
            filters.append(Mensalidade.status == getattr(status, "value", status))
        if mes_referencia:
            filters.append(Mensalidade.mes_referencia == mes_referencia)
        if ano_referencia:
            filters.append(Mensalidade.ano_referencia == ano_referencia)

        total = (
            await self.db.execute(select(func.count()).select_from(Mensalidade).where(*filters))
        ).scalar() or 0
        result = await self.db.execute(
            select(Mensalidade)
            .where(*filters)
            .order_by(Mensalidade.ano_referencia.desc(), Mensalidade.mes_referencia.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        mensalidades = list(result.scalars().all())
        pagos = await self._valores_pagos([m.id for m in mensalidades])

        return MensalidadeListResponse(
            items=[self._build_response(m, pagos.get(m.id, Decimal("0"))) for m in mensalidades],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def get_mensalidade(self, mensalidade_id: str) -> MensalidadeResponse:
        """Load a mensalidade, bringing its late fees up to date."""
        mensalidade = await self.get_model(mensalidade_id)
        regra = await self._regra(mensalidade)
        if self._aplicar_multa(mensalidade, regra, utc_today()):
            await self.db.commit()
            await self.db.refresh(mensalidade)
        return await self._to_response(mensalidade)

    async def update_mensalidade(
        self,
        mensalidade_id: str,
        request: MensalidadeUpdateRequest,
        usuario_id: str,
    ) -> MensalidadeResponse:
        mensalidade = await self.get_model(mensalidade_id)
        if mensalidade.status == StatusMensalidade.PAGO.value:
            raise FinanceValidationError("Mensalidade paga não pode ser alterada")

        updates = request.model_dump(exclude_unset=True, mode="json")
        valor = Decimal(str(updates.get("valor", mensalidade.valor)))
        desconto = Decimal(str(updates.get("desconto", mensalidade.desconto)))
        if desconto > valor:
            raise FinanceValidationError("Desconto não pode ser maior que o valor")

        anteriores = {key: getattr(mensalidade, key) for key in updates}
        for key, value in updates.items():
            if key in ("valor", "desconto"):
                value = Decimal(str(value))
            elif key == "data_vencimento":
                value = request.data_vencimento
            setattr(mensalidade, key, value)

        self.audit.log(
            ModuloAuditoria.FINANCEIRO,
            AcaoAuditoria.UPDATE,
            "Mensalidade",
            mensalidade.id,
            usuario_id=usuario_id,
            dados_anteriores=anteriores,
            dados_novos=updates,
        )
        await self.db.commit()
        await self.db.refresh(mensalidade)

        logger.info("Updated mensalidade %s", mensalidade.id)

        return await self._to_response(mensalidade)

    async def delete_mensalidade(self, mensalidade_id: str, usuario_id: str) -> None:
        mensalidade = await self.get_model(mensalidade_id)
        if await self._valor_pago(mensalidade.id) > 0:
            raise FinanceValidationError("Mensalidade com pagamentos não pode ser excluída")

        self.audit.log(
            ModuloAuditoria.FINANCEIRO,
            AcaoAuditoria.DELETE,
            "Mensalidade",
            mensalidade.id,
            usuario_id=usuario_id,
            dados_anteriores={
                "aluno_id": mensalidade.aluno_id,
                "mes_referencia": mensalidade.mes_referencia,
                "ano_referencia": mensalidade.ano_referencia,
            },
        )
        await self.db.delete(mensalidade)
        await self.db.commit()

        logger.info("Deleted mensalidade %s", mensalidade_id)

    async def gerar_mensalidades(
        self,
        request: GerarMensalidadesRequest,
        usuario_id: str,
    ) -> GerarMensalidadesResponse:
        """Create the month's mensalidade for every actively enrolled student.

        Students that already have one for the month are skipped.
        """
        ultimo_dia = calendar.monthrange(request.ano_referencia, request.mes_referencia)[1]
        vencimento = date(
            request.ano_referencia,
            request.mes_referencia,
            min(request.dia_vencimento, ultimo_dia),
        )

        query = select(MatriculaAnual.aluno_id, MatriculaAnual.curso_id).where(
            MatriculaAnual.instituicao_id == self.instituicao_id,
            MatriculaAnual.status == StatusMatriculaAnual.ATIVA.value,
        )
        if request.curso_id:
            query = query.where(MatriculaAnual.curso_id == request.curso_id)
        matriculas = {aluno_id: curso_id for aluno_id, curso_id in (await self.db.execute(query)).all()}

        result = await self.db.execute(
            select(Mensalidade.aluno_id).where(
                Mensalidade.instituicao_id == self.instituicao_id,
                Mensalidade.mes_referencia == request.mes_referencia,
                Mensalidade.ano_referencia == request.ano_referencia,
            )
        )
        existentes = set(result.scalars().all())

        criadas = 0
        for aluno_id, curso_id in matriculas.items():
            if aluno_id in existentes:
                continue
            self.db.add(
                Mensalidade(
                    instituicao_id=self.instituicao_id,
                    aluno_id=aluno_id,
                    curso_id=curso_id,
                    mes_referencia=request.mes_referencia,
                    ano_referencia=request.ano_referencia,
                    valor=request.valor,
                    desconto=Decimal("0"),
                    multa=Decimal("0"),
                    juros=Decimal("0"),
                    data_vencimento=vencimento,
                    status=StatusMensalidade.PENDENTE.value,
                )
            )
            criadas += 1
        ignoradas = len(matriculas) - criadas

        self.audit.log(
            ModuloAuditoria.FINANCEIRO,
            AcaoAuditoria.CREATE,
            "Mensalidade",
            usuario_id=usuario_id,
            dados_novos={**request.model_dump(mode="json"), "criadas": criadas},
            observacao="Geração em lote",
        )
        await self.db.commit()

        logger.info(
            "Generated %d mensalidade(s) for %02d/%d (%d skipped)",
            criadas,
            request.mes_referencia,
            request.ano_referencia,
            ignoradas,
        )

        return GerarMensalidadesResponse(criadas=criadas, ignoradas=ignoradas)

    async def aplicar_multas(self, hoje: date | None = None) -> int:
        """Apply late fees to every overdue mensalidade. Returns the number updated."""
        hoje = hoje or utc_today()
        result = await self.db.execute(
            select(Mensalidade).where(
                Mensalidade.instituicao_id == self.instituicao_id,
                Mensalidade.data_vencimento < hoje,
                Mensalidade.status.not_in(list(STATUS_FINAIS)),
                Mensalidade.data_pagamento.is_(None),
            )
        )
        mensalidades = list(result.scalars().all())

        configuracao = await self._configuracao_multa()
        cursos: dict[str | None, Curso | None] = {None: None}
        atualizadas = 0
        for mensalidade in mensalidades:
            if mensalidade.curso_id not in cursos:
                cursos[mensalidade.curso_id] = await self.db.get(Curso, mensalidade.curso_id)
            regra = resolver_regra(configuracao, cursos[mensalidade.curso_id], self.settings)
            if self._aplicar_multa(mensalidade, regra, hoje):
                atualizadas += 1

        await self.db.commit()

        logger.info("Applied late fees to %d of %d overdue mensalidade(s)", atualizadas, len(mensalidades))

        return atualizadas

    async def get_model(self, mensalidade_id: str) -> Mensalidade:
        result = await self.db.execute(
            select(Mensalidade).where(
                Mensalidade.id == str(mensalidade_id),
                Mensalidade.instituicao_id == self.instituicao_id,
            )
        )
        mensalidade = result.scalar_one_or_none()
        if mensalidade is None:
            raise FinanceNotFoundError(f"Mensalidade {mensalidade_id} not found")
        return mensalidade

    # =========================================================================
    # Pagamentos
    # =========================================================================

    async def registrar_pagamento(
        self,
        mensalidade_id: str,
        request: PagamentoCreateRequest,
        usuario_id: str,
    ) -> PagamentoResultResponse:
        """Register a payment and issue its receipt.

        Raises:
            FinanceNotFoundError: Mensalidade not found.
            FinanceValidationError: Mensalidade cancelled or settled, or an
                amount that is not positive or exceeds what is owed.
        """
        mensalidade = await self.get_model(mensalidade_id)
        if mensalidade.status == StatusMensalidade.CANCELADO.value:
            raise FinanceValidationError("Mensalidade cancelada não aceita pagamentos")

        hoje = utc_today()
        self._aplicar_multa(mensalidade, await self._regra(mensalidade), hoje)

        valor = to_money(request.valor)
        total = to_money(mensalidade.valor_total)
        pago = await self._valor_pago(mensalidade.id)
        restante = total - pago
        if valor <= 0:
            raise FinanceValidationError("Valor do pagamento deve ser maior que zero")
        if valor > restante:
            raise FinanceValidationError(
                f"Valor do pagamento ({valor}) excede o valor em aberto ({restante})"
            )

        data_pagamento = request.data_pagamento or hoje
        pagamento = Pagamento(
            instituicao_id=self.instituicao_id,
            mensalidade_id=mensalidade.id,
            valor=valor,
            metodo=request.metodo.value,
            data_pagamento=data_pagamento,
            numero_recibo=await self._proximo_recibo(data_pagamento.year),
            referencia=request.referencia,
            observacoes=request.observacoes,
            registrado_por=usuario_id,
        )
        self.db.add(pagamento)

        anterior = mensalidade.status
        pago += valor
        novo_status = status_por_pagamentos(total, pago, mensalidade.data_vencimento, hoje)
        if novo_status == StatusMensalidade.PAGO:
            mensalidade.data_pagamento = data_pagamento
            mensalidade.forma_pagamento = request.metodo.value
            mensalidade.status = novo_status.value
        elif novo_status == StatusMensalidade.PARCIAL:
            mensalidade.status = novo_status.value
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.FINANCEIRO,
            AcaoAuditoria.CREATE,
            "Pagamento",
            pagamento.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior},
            dados_novos={
                "mensalidade_id": mensalidade.id,
                "valor": valor,
                "metodo": pagamento.metodo,
                "numero_recibo": pagamento.numero_recibo,
                "status": mensalidade.status,
            },
        )
        await self.db.commit()
        await self.db.refresh(pagamento)
        await self.db.refresh(mensalidade)

        logger.info(
            "Registered pagamento %s of %s for mensalidade %s (receipt %s)",
            pagamento.id,
            valor,
            mensalidade.id,
            pagamento.numero_recibo,
        )

        return PagamentoResultResponse(
            pagamento=PagamentoResponse.model_validate(pagamento),
            mensalidade=self._build_response(mensalidade, pago),
        )

    async def list_pagamentos(self, mensalidade_id: str) -> list[PagamentoResponse]:
        mensalidade = await self.get_model(mensalidade_id)
        result = await self.db.execute(
            select(Pagamento)
            .where(Pagamento.mensalidade_id == mensalidade.id)
            .order_by(Pagamento.created_at)
        )
        return [PagamentoResponse.model_validate(p) for p in result.scalars().all()]

    async def estornar_pagamento(
        self,
        pagamento_id: str,
        usuario_id: str,
        observacoes: str | None = None,
    ) -> PagamentoResultResponse:
        """Reverse a payment with a negative counter-entry.

        Raises:
            FinanceNotFoundError: Pagamento not found.
            FinanceValidationError: Pagamento is itself a reversal or was
                already reversed.
        """
        result = await self.db.execute(
            select(Pagamento).where(
                Pagamento.id == str(pagamento_id),
                Pagamento.instituicao_id == self.instituicao_id,
            )
        )
        original = result.scalar_one_or_none()
        if original is None:
            raise FinanceNotFoundError(f"Pagamento {pagamento_id} not found")
        if original.valor <= 0 or original.estorno_de_id is not None:
            raise FinanceValidationError("Apenas pagamentos positivos podem ser estornados")
        if original.estornado:
            raise FinanceValidationError("Pagamento já foi estornado")

        mensalidade = await self.get_model(original.mensalidade_id)
        hoje = utc_today()

        estorno = Pagamento(
            instituicao_id=self.instituicao_id,
            mensalidade_id=mensalidade.id,
            valor=-Decimal(original.valor),
            metodo=f"{ESTORNO_PREFIX}{original.metodo}",
            data_pagamento=hoje,
            referencia=original.numero_recibo,
            observacoes=observacoes,
            registrado_por=usuario_id,
            estorno_de_id=original.id,
        )
        self.db.add(estorno)
        original.estornado = True

        anterior = mensalidade.status
        pago = await self._valor_pago(mensalidade.id) - Decimal(original.valor)
        novo_status = status_por_pagamentos(
            to_money(mensalidade.valor_total), pago, mensalidade.data_vencimento, hoje
        )
        mensalidade.status = novo_status.value
        if novo_status != StatusMensalidade.PAGO:
            mensalidade.data_pagamento = None
            mensalidade.forma_pagamento = None
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.FINANCEIRO,
            AcaoAuditoria.ESTORNAR,
            "Pagamento",
            original.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior, "valor": original.valor},
            dados_novos={"status": mensalidade.status, "estorno_id": estorno.id},
            observacao=observacoes,
        )
        await self.db.commit()
        await self.db.refresh(estorno)
        await self.db.refresh(mensalidade)

        logger.info("Reversed pagamento %s (mensalidade %s now %s)", original.id, mensalidade.id, mensalidade.status)

        return PagamentoResultResponse(
            pagamento=PagamentoResponse.model_validate(estorno),
            mensalidade=self._build_response(mensalidade, pago),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _aplicar_multa(self, mensalidade: Mensalidade, regra: RegraMulta, hoje: date) -> bool:
        """Update multa, juros and status in place. Returns True when changed."""
        calculo = calcular_multa(
            mensalidade.valor,
            mensalidade.desconto,
            mensalidade.data_vencimento,
            mensalidade.status,
            mensalidade.data_pagamento,
            regra,
            hoje,
        )
        if not calculo.aplicavel:
            return False

        changed = (
            to_money(mensalidade.multa) != calculo.multa
            or to_money(mensalidade.juros) != calculo.juros
            or mensalidade.status == StatusMensalidade.PENDENTE.value
        )
        mensalidade.multa = calculo.multa
        mensalidade.juros = calculo.juros
        if mensalidade.status == StatusMensalidade.PENDENTE.value:
            mensalidade.status = StatusMensalidade.ATRASADO.value
        return changed

    async def _regra(self, mensalidade: Mensalidade) -> RegraMulta:
        curso = await self.db.get(Curso, mensalidade.curso_id) if mensalidade.curso_id else None
        return resolver_regra(await self._configuracao_multa(), curso, self.settings)

    async def _configuracao_multa(self) -> ConfiguracaoMulta | None:
        result = await self.db.execute(
            select(ConfiguracaoMulta).where(ConfiguracaoMulta.instituicao_id == self.instituicao_id)
        )
        return result.scalar_one_or_none()

    async def _proximo_recibo(self, ano: int) -> str:
        prefixo = f"RC-{ano}-"
        result = await self.db.execute(
            select(func.max(Pagamento.numero_recibo)).where(
                Pagamento.instituicao_id == self.instituicao_id,
                Pagamento.numero_recibo.like(f"{prefixo}%"),
            )
        )
        ultimo = result.scalar()
        sequencia = int(ultimo.rsplit("-", 1)[1]) + 1 if ultimo else 1
        return numero_recibo(ano, sequencia)

    async def _valor_pago(self, mensalidade_id: str) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Pagamento.valor), 0)).where(
                Pagamento.mensalidade_id == mensalidade_id
            )
        )
        return to_money(result.scalar())

    async def _valores_pagos(self, mensalidade_ids: list[str]) -> dict[str, Decimal]:
        if not mensalidade_ids:
            return {}
        result = await self.db.execute(
            select(Pagamento.mensalidade_id, func.sum(Pagamento.valor))
            .where(Pagamento.mensalidade_id.in_(mensalidade_ids))
            .group_by(Pagamento.mensalidade_id)
        )
        return {mensalidade_id: to_money(total) for mensalidade_id, total in result.all()}

    async def _to_response(self, mensalidade: Mensalidade) -> MensalidadeResponse:
        return self._build_response(mensalidade, await self._valor_pago(mensalidade.id))

    @staticmethod
    def _build_response(mensalidade: Mensalidade, pago: Decimal) -> MensalidadeResponse:
        response = MensalidadeResponse.model_validate(mensalidade)
        total = to_money(mensalidade.valor_total)
        response.valor_total = total
        response.valor_pago = to_money(pago)
        response.valor_restante = max(total - to_money(pago), Decimal("0.00"))
        return response

    async def _exists(self, aluno_id: str, mes: int, ano: int) -> bool:
        result = await self.db.execute(
            select(Mensalidade.id).where(
                Mensalidade.aluno_id == aluno_id,
                Mensalidade.mes_referencia == mes,
                Mensalidade.ano_referencia == ano,
            )
        )
        return result.scalar_one_or_none() is not None

    async def _get_aluno(self, aluno_id: str) -> User:
        result = await self.db.execute(
            select(User).where(User.id == str(aluno_id), User.instituicao_id == self.instituicao_id)
        )
        aluno = result.scalar_one_or_none()
        if aluno is None:
            raise FinanceNotFoundError(f"Aluno {aluno_id} not found")
        return aluno

    async def _get_curso(self, curso_id: str) -> Curso:
        result = await self.db.execute(
            select(Curso).where(Curso.id == str(curso_id), Curso.instituicao_id == self.instituicao_id)
        )
        curso = result.scalar_one_or_none()
        if curso is None:
            raise FinanceNotFoundError(f"Curso {curso_id} not found")
        return curso
