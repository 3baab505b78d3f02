# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic closing service.

Closes trimesters, semesters and whole academic years once their
prerequisites hold, reopens them with a justification, and guards academic
writes against closed periods.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import (
    AcaoAuditoria,
    ModuloAuditoria,
    PeriodoEncerramento,
    StatusAnoLetivo,
    StatusEncerramento,
    StatusMatricula,
    StatusWorkflow,
    TipoAcademico,
)
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    AulaLancada,
    Avaliacao,
    EncerramentoAcademico,
    Matricula,
    PlanoAula,
    PlanoEnsino,
    Presenca,
    Semestre,
    Trimestre,
)
from dsicola.models.closing import EncerramentoResponse
from dsicola.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MIN_JUSTIFICATIVA = 10


class ClosingServiceError(Exception):
    """Base exception for academic closing errors."""

    pass


class ClosingNotFoundError(ClosingServiceError):
    pass


class ClosingValidationError(ClosingServiceError):
    """Raised for an invalid period or a state that forbids the operation."""

    pass


class ClosingPrerequisitesError(ClosingValidationError):
    """Raised when the period cannot be closed yet.

    Attributes:
        falhas: Human readable list of unmet prerequisites.
    """

    def __init__(self, falhas: list[str]) -> None:
        super().__init__("Pré-requisitos de encerramento não cumpridos")
        self.falhas = falhas


class PeriodoEncerradoError(ClosingServiceError):
    """Raised when writing into a closed period."""

    pass


class AcademicClosingService:
    """Service for closing academic periods of one institution.

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

    async def iniciar(
        self,
        ano_letivo_id: str,
        periodo: PeriodoEncerramento,
        usuario_id: str,
    ) -> EncerramentoResponse:
        """Mark a period as EM_ENCERRAMENTO.

        Raises:
            ClosingValidationError: Period already ENCERRADO or not valid for
                the institution.
        """
        periodo = PeriodoEncerramento(periodo)
        self._check_periodo(periodo)
        await self._get_ano_letivo(ano_letivo_id)

        encerramento = await self._get_or_create(ano_letivo_id, periodo)
        if encerramento.is_encerrado:
            raise ClosingValidationError(f"{periodo.value} já está encerrado")

        encerramento.status = StatusEncerramento.EM_ENCERRAMENTO.value
        encerramento.iniciado_por = usuario_id
        encerramento.iniciado_em = utc_now()
        await self.db.commit()
        await self.db.refresh(encerramento)

        logger.info("Started closing %s of ano letivo %s", periodo.value, ano_letivo_id)

        return EncerramentoResponse.model_validate(encerramento)

    async def encerrar(
        self,
        ano_letivo_id: str,
        periodo: PeriodoEncerramento,
        usuario_id: str,
    ) -> EncerramentoResponse:
        """Close a trimester, semester or the whole academic year.

        Raises:
            ClosingNotFoundError: Ano letivo not found.
            ClosingValidationError: Period invalid for the institution, or
                already ENCERRADO.
            ClosingPrerequisitesError: With the list of unmet prerequisites.
        """
        periodo = PeriodoEncerramento(periodo)
        self._check_periodo(periodo)
        ano_letivo = await self._get_ano_letivo(ano_letivo_id)

        encerramento = await self._get_or_create(ano_letivo.id, periodo)
        if encerramento.is_encerrado:
            raise ClosingValidationError(f"{periodo.value} já está encerrado")

        if periodo == PeriodoEncerramento.ANO:
            falhas = await self._prerequisitos_ano(ano_letivo)
        else:
            falhas = await self._prerequisitos_periodo(ano_letivo, periodo.numero)
        if falhas:
            logger.warning(
                "Closing %s of %s blocked: %d prerequisite(s) unmet",
                periodo.value,
                ano_letivo.id,
                len(falhas),
            )
            raise ClosingPrerequisitesError(falhas)

        agora = utc_now()
        anterior = encerramento.status
        encerramento.status = StatusEncerramento.ENCERRADO.value
        encerramento.encerrado_por = usuario_id
        encerramento.encerrado_em = agora
        if encerramento.iniciado_em is None:
            encerramento.iniciado_por = usuario_id
            encerramento.iniciado_em = agora

        if periodo == PeriodoEncerramento.ANO:
            for item in self._periodos_do_ano(ano_letivo):
                item.status = StatusAnoLetivo.ENCERRADO.value
            ano_letivo.status = StatusAnoLetivo.ENCERRADO.value
            ano_letivo.encerrado_por = usuario_id
            ano_letivo.encerrado_em = agora
        else:
            item = self._find_periodo(ano_letivo, periodo.numero)
            if item is not None:
                item.status = StatusAnoLetivo.ENCERRADO.value

        self.audit.log(
            ModuloAuditoria.ENCERRAMENTO,
            AcaoAuditoria.CLOSE,
            "EncerramentoAcademico",
            encerramento.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior},
            dados_novos={"status": encerramento.status, "periodo": periodo.value},
        )
        await self.db.commit()
        await self.db.refresh(encerramento)

        logger.info("Closed %s of ano letivo %s", periodo.value, ano_letivo.id)

        return EncerramentoResponse.model_validate(encerramento)

    async def reabrir(
        self,
        ano_letivo_id: str,
        periodo: PeriodoEncerramento,
        justificativa: str,
        usuario_id: str,
    ) -> EncerramentoResponse:
        """Reopen a closed period.

        Raises:
            ClosingValidationError: Short justification or period not
                ENCERRADO.
        """
        periodo = PeriodoEncerramento(periodo)
        if not justificativa or len(justificativa.strip()) < MIN_JUSTIFICATIVA:
            raise ClosingValidationError(
                f"Justificativa deve ter pelo menos {MIN_JUSTIFICATIVA} caracteres"
            )
        ano_letivo = await self._get_ano_letivo(ano_letivo_id)

        encerramento = await self._get(ano_letivo.id, periodo)
        if encerramento is None or not encerramento.is_encerrado:
            raise ClosingValidationError(f"{periodo.value} não está encerrado")

        encerramento.status = StatusEncerramento.REABERTO.value
        encerramento.reaberto_por = usuario_id
        encerramento.reaberto_em = utc_now()
        encerramento.justificativa_reabertura = justificativa.strip()

        if periodo == PeriodoEncerramento.ANO:
            ano_letivo.status = StatusAnoLetivo.ATIVO.value
            ano_letivo.encerrado_por = None
            ano_letivo.encerrado_em = None
        else:
            item = self._find_periodo(ano_letivo, periodo.numero)
            if item is not None:
                item.status = StatusAnoLetivo.ATIVO.value

        self.audit.log(
            ModuloAuditoria.ENCERRAMENTO,
            AcaoAuditoria.REOPEN,
            "EncerramentoAcademico",
            encerramento.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": StatusEncerramento.ENCERRADO.value},
            dados_novos={"status": encerramento.status, "periodo": periodo.value},
            observacao=encerramento.justificativa_reabertura,
        )
        await self.db.commit()
        await self.db.refresh(encerramento)

        logger.info("Reopened %s of ano letivo %s", periodo.value, ano_letivo.id)

        return EncerramentoResponse.model_validate(encerramento)

    async def status(self, ano_letivo_id: str) -> list[EncerramentoResponse]:
        await self._get_ano_letivo(ano_letivo_id)
        result = await self.db.execute(
            select(EncerramentoAcademico)
            .where(
                EncerramentoAcademico.instituicao_id == self.instituicao_id,
                EncerramentoAcademico.ano_letivo_id == str(ano_letivo_id),
            )
            .order_by(EncerramentoAcademico.periodo)
        )
        return [EncerramentoResponse.model_validate(e) for e in result.scalars().all()]

    async def verificar_periodo_aberto(self, ano_letivo_id: str, numero: int | None) -> None:
        """Guard academic writes against closed periods.

        Args:
            ano_letivo_id: Academic year of the write.
            numero: Trimester or semester number, or None when the write is
                not tied to a period.

        Raises:
            PeriodoEncerradoError: The period, or the whole year, is ENCERRADO.
        """
        chaves = [PeriodoEncerramento.ANO.value]
        if numero is not None and self.tipo_academico:
            chaves.append(
                PeriodoEncerramento.for_period(TipoAcademico(self.tipo_academico), numero).value
            )

        result = await self.db.execute(
            select(EncerramentoAcademico.periodo).where(
                EncerramentoAcademico.instituicao_id == self.instituicao_id,
                EncerramentoAcademico.ano_letivo_id == str(ano_letivo_id),
                EncerramentoAcademico.periodo.in_(chaves),
                EncerramentoAcademico.status == StatusEncerramento.ENCERRADO.value,
            )
        )
        encerrados = list(result.scalars().all())
        if encerrados:
            raise PeriodoEncerradoError(
                f"Período encerrado ({', '.join(sorted(encerrados))}). "
                "Reabra o período para efetuar alterações."
            )

    # =========================================================================
    # Prerequisites
    # =========================================================================

    async def _prerequisitos_periodo(self, ano_letivo: AnoLetivo, numero: int) -> list[str]:
        falhas: list[str] = []
        planos_ativos = and_(
            PlanoEnsino.instituicao_id == self.instituicao_id,
            PlanoEnsino.ano_letivo_id == ano_letivo.id,
            PlanoEnsino.status == StatusWorkflow.APROVADO.value,
            PlanoEnsino.bloqueado == False,  # noqa: E712
        )

        # Planned lessons fully posted
        lancadas = (
            select(AulaLancada.plano_aula_id, func.count().label("total"))
            .group_by(AulaLancada.plano_aula_id)
            .subquery()
        )
        result = await self.db.execute(
            select(
                PlanoEnsino.id,
                PlanoAula.titulo,
                PlanoAula.quantidade_aulas,
                func.coalesce(lancadas.c.total, 0),
            )
            .join(PlanoAula, PlanoAula.plano_ensino_id == PlanoEnsino.id)
            .outerjoin(lancadas, lancadas.c.plano_aula_id == PlanoAula.id)
            .where(planos_ativos, PlanoAula.periodo == numero)
        )
        for plano_id, titulo, previstas, dadas in result.all():
            if dadas < previstas:
                falhas.append(
                    f"Plano {plano_id}: aula '{titulo}' com {dadas}/{previstas} aulas lançadas"
                )

        # Attendance recorded for every enrolled student
        result = await self.db.execute(
            select(AulaLancada.id, AulaLancada.data, PlanoEnsino.turma_id)
            .join(PlanoEnsino, PlanoEnsino.id == AulaLancada.plano_ensino_id)
            .where(planos_ativos, AulaLancada.periodo == numero)
        )
        aulas = result.all()
        if aulas:
            turma_ids = {turma_id for _, _, turma_id in aulas}
            alunos_por_turma: dict[str, set[str]] = defaultdict(set)
            result = await self.db.execute(
                select(Matricula.turma_id, Matricula.aluno_id).where(
                    Matricula.turma_id.in_(turma_ids),
                    Matricula.status == StatusMatricula.ATIVA.value,
                )
            )
            for turma_id, aluno_id in result.all():
                alunos_por_turma[turma_id].add(aluno_id)

            presencas_por_aula: dict[str, set[str]] = defaultdict(set)
            result = await self.db.execute(
                select(Presenca.aula_lancada_id, Presenca.aluno_id).where(
                    Presenca.aula_lancada_id.in_([aula_id for aula_id, _, _ in aulas])
                )
            )
            for aula_id, aluno_id in result.all():
                presencas_por_aula[aula_id].add(aluno_id)

            for aula_id, data, turma_id in aulas:
                faltando = alunos_por_turma[turma_id] - presencas_por_aula[aula_id]
                if faltando:
                    falhas.append(
                        f"Aula {aula_id} ({data.isoformat()}): presenças em falta para "
                        f"{len(faltando)} aluno(s)"
                    )

        # Avaliações closed
        abertas = await self._avaliacoes_abertas(ano_letivo.id, numero)
        if abertas:
            falhas.append(f"{abertas} avaliação(ões) ainda não fechada(s) no período")

        return falhas

    async def _prerequisitos_ano(self, ano_letivo: AnoLetivo) -> list[str]:
        falhas: list[str] = []

        periodos = self._periodos_do_ano(ano_letivo)
        label = "trimestre" if self.tipo_academico == TipoAcademico.SECUNDARIO.value else "semestre"
        if not periodos:
            falhas.append(f"Nenhum {label} cadastrado no ano letivo")
        for item in periodos:
            if item.status != StatusAnoLetivo.ENCERRADO.value:
                falhas.append(f"{label.capitalize()} {item.numero} não está encerrado")

        result = await self.db.execute(
            select(func.count())
            .select_from(PlanoEnsino)
            .where(
                PlanoEnsino.instituicao_id == self.instituicao_id,
                PlanoEnsino.ano_letivo_id == ano_letivo.id,
                PlanoEnsino.status == StatusWorkflow.APROVADO.value,
                PlanoEnsino.bloqueado == False,  # noqa: E712
            )
        )
        desbloqueados = result.scalar() or 0
        if desbloqueados:
            falhas.append(f"{desbloqueados} plano(s) de ensino aprovado(s) não bloqueado(s)")

        abertas = await self._avaliacoes_abertas(ano_letivo.id, None)
        if abertas:
            falhas.append(f"{abertas} avaliação(ões) ainda não fechada(s) no ano letivo")

        return falhas

    async def _avaliacoes_abertas(self, ano_letivo_id: str, numero: int | None) -> int:
        query = (
            select(func.count())
            .select_from(Avaliacao)
            .join(PlanoEnsino, PlanoEnsino.id == Avaliacao.plano_ensino_id)
            .where(
                Avaliacao.instituicao_id == self.instituicao_id,
                PlanoEnsino.ano_letivo_id == ano_letivo_id,
                Avaliacao.fechada == False,  # noqa: E712
            )
        )
        if numero is not None:
            query = query.where(or_(Avaliacao.trimestre == numero, Avaliacao.semestre == numero))
        return (await self.db.execute(query)).scalar() or 0

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_periodo(self, periodo: PeriodoEncerramento) -> None:
        if self.tipo_academico == TipoAcademico.SUPERIOR.value and periodo.is_trimestre:
            raise ClosingValidationError("Ensino superior não possui trimestres")
        if self.tipo_academico == TipoAcademico.SECUNDARIO.value and periodo.is_semestre:
            raise ClosingValidationError("Ensino secundário não possui semestres")

    def _periodos_do_ano(self, ano_letivo: AnoLetivo) -> list[Trimestre] | list[Semestre]:
        if self.tipo_academico == TipoAcademico.SECUNDARIO.value:
            return list(ano_letivo.trimestres)
        return list(ano_letivo.semestres)

    def _find_periodo(self, ano_letivo: AnoLetivo, numero: int | None) -> Trimestre | Semestre | None:
        for item in self._periodos_do_ano(ano_letivo):
            if item.numero == numero:
                return item
        return None

    async def _get_ano_letivo(self, ano_letivo_id: str) -> AnoLetivo:
        result = await self.db.execute(
            select(AnoLetivo).where(
                AnoLetivo.id == str(ano_letivo_id),
                AnoLetivo.instituicao_id == self.instituicao_id,
            )
        )
        ano_letivo = result.scalar_one_or_none()
        if ano_letivo is None:
            raise ClosingNotFoundError(f"Ano letivo {ano_letivo_id} not found")
        return ano_letivo

    async def _get(
        self, ano_letivo_id: str, periodo: PeriodoEncerramento
    ) -> EncerramentoAcademico | None:
        result = await self.db.execute(
            select(EncerramentoAcademico).where(
                EncerramentoAcademico.instituicao_id == self.instituicao_id,
                EncerramentoAcademico.ano_letivo_id == ano_letivo_id,
                EncerramentoAcademico.periodo == periodo.value,
            )
        )
        return result.scalar_one_or_none()

    async def _get_or_create(
        self, ano_letivo_id: str, periodo: PeriodoEncerramento
    ) -> EncerramentoAcademico:
        encerramento = await self._get(ano_letivo_id, periodo)
        if encerramento is None:
            encerramento = EncerramentoAcademico(
                instituicao_id=self.instituicao_id,
                ano_letivo_id=ano_letivo_id,
                periodo=periodo.value,
                status=StatusEncerramento.ABERTO.value,
            )
            self.db.add(encerramento)
            await self.db.flush()
        return encerramento
