# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Official academic reports.

Builds the student report card (boletim) and the class grade sheet (pauta)
from grades, attendance and the institution's approval parameters.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import (
    STAFF_ROLES,
    StatusMatricula,
    StatusWorkflow,
    UserRole,
)
from dsicola.domains.attendance.service import AttendanceService
from dsicola.domains.grading.calculator import situacao_final
from dsicola.domains.grading.service import (
    GradingService,
    GradingValidationError,
    to_response,
)
from dsicola.domains.instituicao.service import load_parametros
from dsicola.domains.user.service import UserService
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    Avaliacao,
    Disciplina,
    Matricula,
    Nota,
    ParametrosSistema,
    PlanoEnsino,
    Turma,
    User,
)
from dsicola.models.reports import (
    BoletimResponse,
    DisciplinaBoletim,
    NotaBoletim,
    PautaLinha,
    PautaResponse,
)

logger = logging.getLogger(__name__)

# Planos that have been through approval appear in official reports
REPORTED_STATUSES = (StatusWorkflow.APROVADO.value, StatusWorkflow.BLOQUEADO.value)


class ReportsServiceError(Exception):
    """Base exception for report errors."""

    pass


class ReportsNotFoundError(ReportsServiceError):
    pass


class ReportsForbiddenError(ReportsServiceError):
    """Raised when the requester may not read the student's report."""

    pass


class ReportsService:
    """Service for official reports of one institution.

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
        self.grading = GradingService(db, instituicao_id, tipo_academico)
        self.attendance = AttendanceService(db, instituicao_id, tipo_academico)
        self.users = UserService(db, instituicao_id)

    async def boletim(
        self,
        aluno_id: str,
        ano_letivo_id: str,
        requester_id: str,
        requester_roles: Iterable[str],
    ) -> BoletimResponse:
        """Report card of a student for an academic year.

        Raises:
            ReportsForbiddenError: Requester may not read this student.
            ReportsNotFoundError: Student or ano letivo not found.
        """
        await self._check_access(aluno_id, requester_id, requester_roles)
        aluno = await self._get_aluno(aluno_id)
        ano_letivo = await self._get_ano_letivo(ano_letivo_id)
        parametros = await load_parametros(self.db, self.instituicao_id)
        minimo_frequencia = float(parametros.frequencia_minima)

        result = await self.db.execute(
            select(PlanoEnsino, Disciplina.nome, Turma.nome, User.nome_completo)
            .join(Matricula, Matricula.turma_id == PlanoEnsino.turma_id)
            .join(Disciplina, Disciplina.id == PlanoEnsino.disciplina_id)
            .join(Turma, Turma.id == PlanoEnsino.turma_id)
            .outerjoin(User, User.id == PlanoEnsino.professor_id)
            .where(
                PlanoEnsino.instituicao_id == self.instituicao_id,
                PlanoEnsino.ano_letivo_id == ano_letivo.id,
                PlanoEnsino.status.in_(REPORTED_STATUSES),
                Matricula.aluno_id == aluno.id,
                Matricula.status != StatusMatricula.CANCELADA.value,
            )
            .order_by(Disciplina.nome)
        )

        disciplinas = []
        for plano, disciplina_nome, turma_nome, professor_nome in result.all():
            notas = await self._notas_boletim(aluno.id, plano.id)
            resultado, erro = await self._resultado(aluno.id, plano.id, parametros)
            frequencia = await self.attendance.frequencia_aluno(
                aluno.id, plano.id, minimo_frequencia
            )
            disciplinas.append(
                DisciplinaBoletim(
                    plano_ensino_id=plano.id,
                    disciplina_id=plano.disciplina_id,
                    disciplina=disciplina_nome,
                    professor=professor_nome,
                    turma=turma_nome,
                    notas=notas,
                    resultado=to_response(resultado) if resultado else None,
                    erro_calculo=erro,
                    frequencia=self.attendance.to_response(
                        aluno.id, plano.id, frequencia, minimo_frequencia
                    ),
                    situacao_final=situacao_final(
                        resultado.status if resultado else None, frequencia.situacao
                    ),
                )
            )

        logger.info(
            "Built boletim of aluno %s for ano letivo %s (%d disciplina(s))",
            aluno.id,
            ano_letivo.id,
            len(disciplinas),
        )

        return BoletimResponse(
            aluno_id=aluno.id,
            aluno_nome=aluno.nome_completo,
            ano_letivo_id=ano_letivo.id,
            ano=ano_letivo.ano,
            disciplinas=disciplinas,
        )

    async def pauta(self, plano_ensino_id: str) -> PautaResponse:
        """Grade sheet of a plano: one line per actively enrolled student."""
        result = await self.db.execute(
            select(PlanoEnsino, Disciplina.nome, Turma.nome, User.nome_completo)
            .join(Disciplina, Disciplina.id == PlanoEnsino.disciplina_id)
            .join(Turma, Turma.id == PlanoEnsino.turma_id)
            .outerjoin(User, User.id == PlanoEnsino.professor_id)
            .where(
                PlanoEnsino.id == str(plano_ensino_id),
                PlanoEnsino.instituicao_id == self.instituicao_id,
            )
        )
        row = result.first()
        if row is None:
            raise ReportsNotFoundError(f"Plano de ensino {plano_ensino_id} not found")
        plano, disciplina_nome, turma_nome, professor_nome = row

        parametros = await load_parametros(self.db, self.instituicao_id)
        minimo_frequencia = float(parametros.frequencia_minima)

        result = await self.db.execute(
            select(User.id, User.nome_completo)
            .join(Matricula, Matricula.aluno_id == User.id)
            .where(
                Matricula.turma_id == plano.turma_id,
                Matricula.instituicao_id == self.instituicao_id,
                Matricula.status == StatusMatricula.ATIVA.value,
            )
            .order_by(User.nome_completo)
        )

        linhas = []
        for aluno_id, aluno_nome in result.all():
            resultado, erro = await self._resultado(aluno_id, plano.id, parametros)
            frequencia = await self.attendance.frequencia_aluno(aluno_id, plano.id, minimo_frequencia)
            linhas.append(
                PautaLinha(
                    aluno_id=aluno_id,
                    aluno_nome=aluno_nome,
                    media_final=resultado.media_final if resultado else None,
                    status=resultado.status if resultado else None,
                    frequencia_percentual=frequencia.percentual,
                    situacao_frequencia=frequencia.situacao,
                    situacao_final=situacao_final(
                        resultado.status if resultado else None, frequencia.situacao
                    ),
                    observacao=erro,
                )
            )

        logger.info("Built pauta of plano %s (%d aluno(s))", plano.id, len(linhas))

        return PautaResponse(
            plano_ensino_id=plano.id,
            disciplina=disciplina_nome,
            turma=turma_nome,
            professor=professor_nome,
            ano_letivo_id=plano.ano_letivo_id,
            linhas=linhas,
        )

    async def _resultado(self, aluno_id: str, plano_id: str, parametros: ParametrosSistema):
        try:
            return await self.grading.resultado_aluno(aluno_id, plano_id, parametros), None
        except GradingValidationError as e:
            logger.warning("Report calculation failed for aluno %s, plano %s: %s", aluno_id, plano_id, e)
            return None, str(e)

    async def _notas_boletim(self, aluno_id: str, plano_id: str) -> list[NotaBoletim]:
        result = await self.db.execute(
            select(Nota.valor, Avaliacao)
            .join(Avaliacao, Avaliacao.id == Nota.avaliacao_id)
            .where(Nota.aluno_id == aluno_id, Nota.plano_ensino_id == plano_id)
            .order_by(Avaliacao.data)
        )
        return [
            NotaBoletim(
                avaliacao_id=avaliacao.id,
                avaliacao=avaliacao.nome,
                tipo=avaliacao.tipo,
                data=avaliacao.data,
                trimestre=avaliacao.trimestre,
                semestre=avaliacao.semestre,
                valor=valor,
            )
            for valor, avaliacao in result.all()
        ]

    async def _check_access(
        self,
        aluno_id: str,
        requester_id: str,
        requester_roles: Iterable[str],
    ) -> None:
        roles = set(requester_roles)
        if roles & {role.value for role in STAFF_ROLES}:
            return
        if UserRole.ALUNO.value in roles and requester_id == aluno_id:
            return
        if UserRole.RESPONSAVEL.value in roles and await self.users.is_responsavel_de(
            requester_id, aluno_id
        ):
            return
        raise ReportsForbiddenError("Sem permissão para consultar o boletim deste aluno")

    async def _get_aluno(self, aluno_id: str) -> User:
        result = await self.db.execute(
            select(User).where(User.id == str(aluno_id), User.instituicao_id == self.instituicao_id)
        )
        aluno = result.scalar_one_or_none()
        if aluno is None:
            raise ReportsNotFoundError(f"Aluno {aluno_id} not found")
        return aluno

    async def _get_ano_letivo(self, ano_letivo_id: str) -> AnoLetivo:
        result = await self.db.execute(
            select(AnoLetivo).where(
                AnoLetivo.id == str(ano_letivo_id),
                AnoLetivo.instituicao_id == self.instituicao_id,
            )
        )
        ano_letivo = result.scalar_one_or_none()
        if ano_letivo is None:
            raise ReportsNotFoundError(f"Ano letivo {ano_letivo_id} not found")
        return ano_letivo
