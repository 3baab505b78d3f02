# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment service.

This module provides the AssessmentService class for:
- Avaliações of an active plano de ensino (create, update, delete, close)
- Batch grade entry with change history
- Grade corrections with a mandatory justification
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, TipoAcademico, UserRole
from dsicola.domains.academic_closing.service import (
    AcademicClosingService,
    PeriodoEncerradoError,
)
from dsicola.domains.assessment.posting_window import (
    PostingWindowClosedError,
    PostingWindowService,
)
from dsicola.domains.audit.service import AuditService
from dsicola.domains.instituicao.service import load_parametros
from dsicola.infrastructure.database.models import (
    Avaliacao,
    Nota,
    NotaHistorico,
    PlanoEnsino,
    User,
)
from dsicola.models.assessment import (
    AvaliacaoCreateRequest,
    AvaliacaoResponse,
    AvaliacaoUpdateRequest,
    NotaHistoricoResponse,
    NotaLoteRequest,
    NotaResponse,
)
from dsicola.utils.datetime import utc_now

logger = logging.getLogger(__name__)

NOTA_MINIMA = Decimal("0")
NOTA_MAXIMA = Decimal("20")
MIN_JUSTIFICATIVA = 10


class AssessmentServiceError(Exception):
    """Base exception for assessment service errors."""

    pass


class AssessmentNotFoundError(AssessmentServiceError):
    """Raised when an avaliação, nota or plano is not found."""

    pass


class AssessmentValidationError(AssessmentServiceError):
    """Raised for invalid data, a fechada avaliação or a closed posting window."""

    pass


class AssessmentForbiddenError(AssessmentServiceError):
    """Raised for a closed academic period or a plano owned by another professor."""

    pass


class AssessmentService:
    """Service for avaliações and notas of one institution.

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
        self.posting_windows = PostingWindowService(db, instituicao_id, tipo_academico)

    # =========================================================================
    # Avaliações
    # =========================================================================

    async def create_avaliacao(
        self,
        request: AvaliacaoCreateRequest,
        usuario_id: str,
        roles: Iterable[str] = (),
    ) -> AvaliacaoResponse:
        """Create an avaliação for an active plano.

        Raises:
            AssessmentNotFoundError: Plano not found.
            AssessmentValidationError: Plano not active, turma mismatch or a
                missing/invalid trimestre or semestre.
            AssessmentForbiddenError: Period closed or plano of another
                professor.
        """
        plano = await self._get_plano(request.plano_ensino_id)
        if request.turma_id != plano.turma_id:
            raise AssessmentValidationError("Turma não corresponde à turma do plano de ensino")
        self._check_plano_ativo(plano)
        self._check_owner(plano, usuario_id, roles)

        trimestre, semestre = await self._validate_periodo(request.trimestre, request.semestre)
        await self._check_periodo_aberto(plano.ano_letivo_id, trimestre or semestre)

        avaliacao = Avaliacao(
            instituicao_id=self.instituicao_id,
            plano_ensino_id=plano.id,
            turma_id=plano.turma_id,
            tipo=request.tipo.value,
            nome=request.nome,
            data=request.data,
            peso=request.peso,
            trimestre=trimestre,
            semestre=semestre,
            descricao=request.descricao,
            created_by=usuario_id,
        )
        self.db.add(avaliacao)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.CREATE,
            "Avaliacao",
            avaliacao.id,
            usuario_id=usuario_id,
            dados_novos=request.model_dump(mode="json"),
        )
        await self.db.commit()
        await self.db.refresh(avaliacao)

        logger.info("Created avaliação %s for plano %s", avaliacao.id, plano.id)

        return AvaliacaoResponse.model_validate(avaliacao)

    async def list_avaliacoes(
        self,
        plano_ensino_id: str | None = None,
        turma_id: str | None = None,
        trimestre: int | None = None,
        semestre: int | None = None,
    ) -> tuple[list[AvaliacaoResponse], int]:
        query = select(Avaliacao).where(Avaliacao.instituicao_id == self.instituicao_id)
        if plano_ensino_id:
            query = query.where(Avaliacao.plano_ensino_id == plano_ensino_id)
        if turma_id:
            query = query.where(Avaliacao.turma_id == turma_id)
        if trimestre is not None:
            query = query.where(Avaliacao.trimestre == trimestre)
        if semestre is not None:
            query = query.where(Avaliacao.semestre == semestre)
        query = query.order_by(Avaliacao.data, Avaliacao.created_at)

        result = await self.db.execute(query)
        items = [AvaliacaoResponse.model_validate(a) for a in result.scalars().all()]
        return items, len(items)

    async def get_avaliacao(self, avaliacao_id: str) -> AvaliacaoResponse:
        return AvaliacaoResponse.model_validate(await self.get_model(avaliacao_id))

    async def update_avaliacao(
        self,
        avaliacao_id: str,
        request: AvaliacaoUpdateRequest,
        usuario_id: str,
        roles: Iterable[str] = (),
    ) -> AvaliacaoResponse:
        avaliacao = await self.get_model(avaliacao_id)
        self._check_not_fechada(avaliacao)
        plano = await self._get_plano(avaliacao.plano_ensino_id)
        self._check_owner(plano, usuario_id, roles)
        await self._check_periodo_aberto(plano.ano_letivo_id, avaliacao.periodo)

        updates = request.model_dump(exclude_unset=True)
        if "trimestre" in updates or "semestre" in updates:
            trimestre, semestre = await self._validate_periodo(
                updates.get("trimestre", avaliacao.trimestre),
                updates.get("semestre", avaliacao.semestre),
            )
            await self._check_periodo_aberto(plano.ano_letivo_id, trimestre or semestre)
            updates["trimestre"], updates["semestre"] = trimestre, semestre

        anteriores = {key: getattr(avaliacao, key) for key in updates}
        for key, value in updates.items():
            if key == "tipo" and value is not None:
                value = value.value if hasattr(value, "value") else value
            setattr(avaliacao, key, value)

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.UPDATE,
            "Avaliacao",
            avaliacao.id,
            usuario_id=usuario_id,
            dados_anteriores=anteriores,
            dados_novos=updates,
        )
        await self.db.commit()
        await self.db.refresh(avaliacao)

        logger.info("Updated avaliação %s", avaliacao.id)

        return AvaliacaoResponse.model_validate(avaliacao)

    async def delete_avaliacao(
        self,
        avaliacao_id: str,
        usuario_id: str,
        roles: Iterable[str] = (),
    ) -> None:
        """Delete an avaliação without grades.

        Raises:
            AssessmentValidationError: Avaliação fechada or with grades.
            AssessmentForbiddenError: Period closed.
        """
        avaliacao = await self.get_model(avaliacao_id)
        self._check_not_fechada(avaliacao)
        plano = await self._get_plano(avaliacao.plano_ensino_id)
        self._check_owner(plano, usuario_id, roles)
        await self._check_periodo_aberto(plano.ano_letivo_id, avaliacao.periodo)

        result = await self.db.execute(
            select(func.count()).select_from(Nota).where(Nota.avaliacao_id == avaliacao.id)
        )
        if (result.scalar() or 0) > 0:
            raise AssessmentValidationError("Não é possível excluir uma avaliação com notas lançadas")

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.DELETE,
            "Avaliacao",
            avaliacao.id,
            usuario_id=usuario_id,
            dados_anteriores={"nome": avaliacao.nome, "tipo": avaliacao.tipo},
        )
        await self.db.delete(avaliacao)
        await self.db.commit()

        logger.info("Deleted avaliação %s", avaliacao_id)

    async def fechar_avaliacao(self, avaliacao_id: str, usuario_id: str) -> AvaliacaoResponse:
        """Close an avaliação; its grades become read-only."""
        avaliacao = await self.get_model(avaliacao_id)
        self._check_not_fechada(avaliacao)

        avaliacao.fechada = True
        avaliacao.fechada_por = usuario_id
        avaliacao.fechada_em = utc_now()

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.CLOSE,
            "Avaliacao",
            avaliacao.id,
            usuario_id=usuario_id,
            dados_anteriores={"fechada": False},
            dados_novos={"fechada": True},
        )
        await self.db.commit()
        await self.db.refresh(avaliacao)

        logger.info("Closed avaliação %s", avaliacao.id)

        return AvaliacaoResponse.model_validate(avaliacao)

    async def get_model(self, avaliacao_id: str) -> Avaliacao:
        result = await self.db.execute(
            select(Avaliacao).where(
                Avaliacao.id == str(avaliacao_id),
                Avaliacao.instituicao_id == self.instituicao_id,
            )
        )
        avaliacao = result.scalar_one_or_none()
        if avaliacao is None:
            raise AssessmentNotFoundError(f"Avaliação {avaliacao_id} not found")
        return avaliacao

    # =========================================================================
    # Notas
    # =========================================================================

    async def lancar_notas_lote(
        self,
        request: NotaLoteRequest,
        usuario_id: str,
        roles: Iterable[str] = (),
    ) -> list[NotaResponse]:
        """Create or update the grades of an avaliação.

        A changed grade keeps its previous value in the grade history.

        Raises:
            AssessmentNotFoundError: Avaliação not found.
            AssessmentValidationError: Avaliação fechada, plano not active,
                posting window not open, grade out of range, repeated or
                unknown student.
            AssessmentForbiddenError: Academic period closed or plano of
                another professor.
        """
        avaliacao = await self.get_model(request.avaliacao_id)
        self._check_not_fechada(avaliacao)
        plano = await self._get_plano(avaliacao.plano_ensino_id)
        self._check_plano_ativo(plano)
        self._check_owner(plano, usuario_id, roles)

        try:
            await self.posting_windows.verificar_lancamento_aberto(
                plano.ano_letivo_id, avaliacao.periodo
            )
        except PostingWindowClosedError as e:
            raise AssessmentValidationError(str(e)) from e
        await self._check_periodo_aberto(plano.ano_letivo_id, avaliacao.periodo)

        aluno_ids = []
        for item in request.notas:
            if not item.aluno_id:
                raise AssessmentValidationError("aluno_id é obrigatório em cada nota")
            self._check_valor(item.valor)
            aluno_ids.append(item.aluno_id)
        if len(set(aluno_ids)) != len(aluno_ids):
            raise AssessmentValidationError("Aluno repetido no lote de notas")
        await self._check_alunos(aluno_ids)

        result = await self.db.execute(
            select(Nota).where(Nota.avaliacao_id == avaliacao.id, Nota.aluno_id.in_(aluno_ids))
        )
        existentes = {n.aluno_id: n for n in result.scalars().all()}

        notas: list[Nota] = []
        alteradas = 0
        for item in request.notas:
            nota = existentes.get(item.aluno_id)
            if nota is None:
                nota = Nota(
                    instituicao_id=self.instituicao_id,
                    avaliacao_id=avaliacao.id,
                    aluno_id=item.aluno_id,
                    plano_ensino_id=plano.id,
                    valor=item.valor,
                )
                self.db.add(nota)
            elif Decimal(nota.valor) != item.valor:
                self.db.add(
                    NotaHistorico(
                        nota_id=nota.id,
                        valor_anterior=nota.valor,
                        valor_novo=item.valor,
                        alterado_por=usuario_id,
                    )
                )
                nota.valor = item.valor
                alteradas += 1
            nota.observacoes = item.observacoes
            nota.lancado_por = usuario_id
            notas.append(nota)

        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.UPDATE if existentes else AcaoAuditoria.CREATE,
            "Nota",
            avaliacao.id,
            usuario_id=usuario_id,
            dados_anteriores={a: n.valor for a, n in existentes.items()} or None,
            dados_novos={item.aluno_id: item.valor for item in request.notas},
        )
        await self.db.commit()
        for nota in notas:
            await self.db.refresh(nota)

        logger.info(
            "Posted %d nota(s) for avaliação %s (%d changed)",
            len(notas),
            avaliacao.id,
            alteradas,
        )

        return [NotaResponse.model_validate(n) for n in notas]

    async def corrigir_nota(
        self,
        nota_id: str,
        valor: Decimal,
        justificativa: str,
        usuario_id: str,
    ) -> NotaResponse:
        """Correct a posted grade.

        Raises:
            AssessmentNotFoundError: Nota not found.
            AssessmentValidationError: Short justification, value out of
                range, avaliação fechada or plano not active.
            AssessmentForbiddenError: Academic period closed.
        """
        if not justificativa or len(justificativa.strip()) < MIN_JUSTIFICATIVA:
            raise AssessmentValidationError(
                f"Justificativa deve ter pelo menos {MIN_JUSTIFICATIVA} caracteres"
            )
        self._check_valor(valor)

        nota = await self._get_nota(nota_id)
        avaliacao = await self.get_model(nota.avaliacao_id)
        self._check_not_fechada(avaliacao)
        plano = await self._get_plano(avaliacao.plano_ensino_id)
        self._check_plano_ativo(plano)
        await self._check_periodo_aberto(plano.ano_letivo_id, avaliacao.periodo)

        anterior = nota.valor
        self.db.add(
            NotaHistorico(
                nota_id=nota.id,
                valor_anterior=anterior,
                valor_novo=valor,
                motivo=justificativa.strip(),
                alterado_por=usuario_id,
            )
        )
        nota.valor = valor

        self.audit.log(
            ModuloAuditoria.AVALIACOES_NOTAS,
            AcaoAuditoria.UPDATE,
            "Nota",
            nota.id,
            usuario_id=usuario_id,
            dados_anteriores={"valor": anterior},
            dados_novos={"valor": valor},
            observacao=justificativa.strip(),
        )
        await self.db.commit()
        await self.db.refresh(nota)

        logger.info("Corrected nota %s: %s -> %s", nota.id, anterior, valor)

        return NotaResponse.model_validate(nota)

    async def list_notas_avaliacao(self, avaliacao_id: str) -> list[NotaResponse]:
        avaliacao = await self.get_model(avaliacao_id)
        result = await self.db.execute(
            select(Nota).where(Nota.avaliacao_id == avaliacao.id).order_by(Nota.created_at)
        )
        return [NotaResponse.model_validate(n) for n in result.scalars().all()]

    async def list_notas_aluno(
        self,
        aluno_id: str,
        plano_ensino_id: str | None = None,
    ) -> list[NotaResponse]:
        query = select(Nota).where(
            Nota.instituicao_id == self.instituicao_id,
            Nota.aluno_id == str(aluno_id),
        )
        if plano_ensino_id:
            query = query.where(Nota.plano_ensino_id == plano_ensino_id)
        result = await self.db.execute(query.order_by(Nota.created_at))
        return [NotaResponse.model_validate(n) for n in result.scalars().all()]

    async def historico_nota(self, nota_id: str) -> list[NotaHistoricoResponse]:
        nota = await self._get_nota(nota_id)
        result = await self.db.execute(
            select(NotaHistorico)
            .where(NotaHistorico.nota_id == nota.id)
            .order_by(NotaHistorico.created_at.desc())
        )
        return [NotaHistoricoResponse.model_validate(h) for h in result.scalars().all()]

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _validate_periodo(
        self,
        trimestre: int | None,
        semestre: int | None,
    ) -> tuple[int | None, int | None]:
        """Normalise the period of an avaliação for the institution type."""
        if self.tipo_academico == TipoAcademico.SECUNDARIO.value:
            if trimestre is None or not 1 <= trimestre <= 3:
                raise AssessmentValidationError(
                    "Ensino secundário requer trimestre entre 1 e 3"
                )
            return trimestre, None

        if semestre is None:
            raise AssessmentValidationError("Ensino superior requer semestre")
        parametros = await load_parametros(self.db, self.instituicao_id)
        maximo = parametros.quantidade_semestres_por_ano
        if not 1 <= semestre <= maximo:
            raise AssessmentValidationError(f"Semestre deve estar entre 1 e {maximo}")
        return None, semestre

    async def _check_periodo_aberto(self, ano_letivo_id: str, numero: int | None) -> None:
        try:
            await self.closing.verificar_periodo_aberto(ano_letivo_id, numero)
        except PeriodoEncerradoError as e:
            raise AssessmentForbiddenError(str(e)) from e

    async def _check_alunos(self, aluno_ids: list[str]) -> None:
        result = await self.db.execute(
            select(User.id).where(
                User.id.in_(aluno_ids),
                User.instituicao_id == self.instituicao_id,
            )
        )
        encontrados = set(result.scalars().all())
        desconhecidos = [a for a in aluno_ids if a not in encontrados]
        if desconhecidos:
            raise AssessmentValidationError(
                f"Alunos não pertencem à instituição: {', '.join(desconhecidos)}"
            )

    @staticmethod
    def _check_valor(valor: Decimal | None) -> None:
        if valor is None or not NOTA_MINIMA <= Decimal(valor) <= NOTA_MAXIMA:
            raise AssessmentValidationError(
                f"Nota inválida: {valor}. Valores devem estar entre 0 e 20."
            )

    @staticmethod
    def _check_not_fechada(avaliacao: Avaliacao) -> None:
        if avaliacao.fechada:
            raise AssessmentValidationError("Avaliação está fechada")

    @staticmethod
    def _check_plano_ativo(plano: PlanoEnsino) -> None:
        if not plano.is_ativo:
            raise AssessmentValidationError(
                "Plano de ensino não está ativo (aprovado e não bloqueado)"
            )

    @staticmethod
    def _check_owner(plano: PlanoEnsino, usuario_id: str, roles: Iterable[str]) -> None:
        roles = set(roles)
        if UserRole.PROFESSOR.value in roles and not roles & {
            UserRole.ADMIN.value,
            UserRole.SUPER_ADMIN.value,
            UserRole.DIRECAO.value,
            UserRole.SECRETARIA.value,
        }:
            if plano.professor_id != usuario_id:
                raise AssessmentForbiddenError(
                    "Professor só pode gerir avaliações dos seus próprios planos"
                )

    async def _get_plano(self, plano_id: str) -> PlanoEnsino:
        result = await self.db.execute(
            select(PlanoEnsino).where(
                PlanoEnsino.id == str(plano_id),
                PlanoEnsino.instituicao_id == self.instituicao_id,
            )
        )
        plano = result.scalar_one_or_none()
        if plano is None:
            raise AssessmentNotFoundError(f"Plano de ensino {plano_id} not found")
        return plano

    async def _get_nota(self, nota_id: str) -> Nota:
        result = await self.db.execute(
            select(Nota).where(Nota.id == str(nota_id), Nota.instituicao_id == self.instituicao_id)
        )
        nota = result.scalar_one_or_none()
        if nota is None:
            raise AssessmentNotFoundError(f"Nota {nota_id} not found")
        return nota
