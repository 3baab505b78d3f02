# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance service.

Batch recording of presenças for posted lessons and frequency of students
in a plano de ensino.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, StatusMatricula, UserRole
from dsicola.domains.academic_closing.service import (
    AcademicClosingService,
    PeriodoEncerradoError,
)
from dsicola.domains.attendance.frequency import Frequencia, calcular_frequencia
from dsicola.domains.audit.service import AuditService
from dsicola.domains.instituicao.service import load_parametros
from dsicola.infrastructure.database.models import (
    AulaLancada,
    Matricula,
    PlanoEnsino,
    Presenca,
    User,
)
from dsicola.models.attendance import (
    FrequenciaResponse,
    PresencaAlunoResponse,
    PresencaLoteRequest,
    PresencaResponse,
    PresencasAulaResponse,
)

logger = logging.getLogger(__name__)


class AttendanceServiceError(Exception):
    """Base exception for attendance errors."""

    pass


class AttendanceNotFoundError(AttendanceServiceError):
    pass


class AttendanceValidationError(AttendanceServiceError):
    pass


class AttendanceForbiddenError(AttendanceServiceError):
    """Raised for a closed period or a plano owned by another professor."""

    pass


class AttendanceService:
    """Service for attendance records of one institution.

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

    async def registrar_presencas(
        self,
        request: PresencaLoteRequest,
        usuario_id: str,
        roles: Iterable[str] = (),
    ) -> list[PresencaResponse]:
        """Create or update the attendance of each listed student.

        Raises:
            AttendanceNotFoundError: Aula lançada not found.
            AttendanceValidationError: Plano not active, duplicated student in
                the batch, or a student outside the tenant.
            AttendanceForbiddenError: Period closed or plano owned by another
                professor.
        """
        aula = await self._get_aula(request.aula_lancada_id)
        plano = await self._get_plano(aula.plano_ensino_id)

        if not plano.is_ativo:
            raise AttendanceValidationError(
                "Plano de ensino não está ativo (aprovado e não bloqueado)"
            )
        self._check_owner(plano, usuario_id, roles)
        try:
            await self.closing.verificar_periodo_aberto(plano.ano_letivo_id, aula.periodo)
        except PeriodoEncerradoError as e:
            raise AttendanceForbiddenError(str(e)) from e

        aluno_ids = [item.aluno_id for item in request.presencas]
        if len(set(aluno_ids)) != len(aluno_ids):
            raise AttendanceValidationError("Aluno repetido no lote de presenças")

        result = await self.db.execute(
            select(User.id).where(
                User.id.in_(aluno_ids),
                User.instituicao_id == self.instituicao_id,
            )
        )
        encontrados = set(result.scalars().all())
        desconhecidos = [a for a in aluno_ids if a not in encontrados]
        if desconhecidos:
            raise AttendanceValidationError(
                f"Alunos não pertencem à instituição: {', '.join(desconhecidos)}"
            )

        result = await self.db.execute(
            select(Presenca).where(
                Presenca.aula_lancada_id == aula.id,
                Presenca.aluno_id.in_(aluno_ids),
            )
        )
        existentes = {p.aluno_id: p for p in result.scalars().all()}

        registros: list[Presenca] = []
        anteriores: dict[str, str] = {}
        for item in request.presencas:
            presenca = existentes.get(item.aluno_id)
            if presenca is None:
                presenca = Presenca(
                    instituicao_id=self.instituicao_id,
                    aula_lancada_id=aula.id,
                    aluno_id=item.aluno_id,
                )
                self.db.add(presenca)
            else:
                anteriores[item.aluno_id] = presenca.status
            presenca.status = item.status.value
            presenca.origem = item.origem.value
            presenca.observacoes = item.observacoes
            presenca.registrado_por = usuario_id
            registros.append(presenca)

        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.PRESENCAS,
            AcaoAuditoria.UPDATE if anteriores else AcaoAuditoria.CREATE,
            "Presenca",
            aula.id,
            usuario_id=usuario_id,
            dados_anteriores=anteriores or None,
            dados_novos={item.aluno_id: item.status.value for item in request.presencas},
        )
        await self.db.commit()
        for presenca in registros:
            await self.db.refresh(presenca)

        logger.info(
            "Recorded %d presença(s) for aula %s (%d updated)",
            len(registros),
            aula.id,
            len(anteriores),
        )

        return [PresencaResponse.model_validate(p) for p in registros]

    async def list_presencas_aula(self, aula_lancada_id: str) -> PresencasAulaResponse:
        """Attendance of a posted lesson.

        Every student actively enrolled in the plano's turma is listed, with
        a null status when no record exists yet.
        """
        aula = await self._get_aula(aula_lancada_id)
        plano = await self._get_plano(aula.plano_ensino_id)

        result = await self.db.execute(
            select(Presenca).where(Presenca.aula_lancada_id == aula.id)
        )
        presencas = {p.aluno_id: p for p in result.scalars().all()}

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
        alunos = list(result.all())

        # Records of students no longer enrolled are still reported
        enrolled = {aluno_id for aluno_id, _ in alunos}
        orfaos = [aluno_id for aluno_id in presencas if aluno_id not in enrolled]
        if orfaos:
            result = await self.db.execute(
                select(User.id, User.nome_completo).where(User.id.in_(orfaos))
            )
            alunos.extend(result.all())

        linhas = []
        for aluno_id, nome in alunos:
            presenca = presencas.get(aluno_id)
            linhas.append(
                PresencaAlunoResponse(
                    aluno_id=aluno_id,
                    nome_completo=nome,
                    presenca_id=presenca.id if presenca else None,
                    status=presenca.status if presenca else None,
                    origem=presenca.origem if presenca else None,
                    observacoes=presenca.observacoes if presenca else None,
                )
            )

        return PresencasAulaResponse(
            aula_lancada_id=aula.id,
            plano_ensino_id=plano.id,
            data=aula.data,
            alunos=linhas,
        )

    async def get_frequencia(self, aluno_id: str, plano_ensino_id: str) -> FrequenciaResponse:
        plano = await self._get_plano(plano_ensino_id)
        minimo = await self._frequencia_minima()
        frequencia = await self.frequencia_aluno(aluno_id, plano.id, minimo)
        return self.to_response(aluno_id, plano.id, frequencia, minimo)

    async def frequencia_aluno(
        self,
        aluno_id: str,
        plano_ensino_id: str,
        frequencia_minima: float | None = None,
    ) -> Frequencia:
        """Compute the frequency of a student in a plano.

        Args:
            aluno_id: Student.
            plano_ensino_id: Plano de ensino.
            frequencia_minima: Minimum percentage; loaded from the institution
                parameters when omitted.
        """
        if frequencia_minima is None:
            frequencia_minima = await self._frequencia_minima()

        result = await self.db.execute(
            select(func.count())
            .select_from(AulaLancada)
            .where(
                AulaLancada.plano_ensino_id == plano_ensino_id,
                AulaLancada.instituicao_id == self.instituicao_id,
            )
        )
        total = result.scalar() or 0

        result = await self.db.execute(
            select(Presenca.status)
            .join(AulaLancada, AulaLancada.id == Presenca.aula_lancada_id)
            .where(
                AulaLancada.plano_ensino_id == plano_ensino_id,
                Presenca.aluno_id == aluno_id,
            )
        )
        return calcular_frequencia(total, result.scalars().all(), frequencia_minima)

    @staticmethod
    def to_response(
        aluno_id: str,
        plano_ensino_id: str,
        frequencia: Frequencia,
        frequencia_minima: float,
    ) -> FrequenciaResponse:
        return FrequenciaResponse(
            aluno_id=aluno_id,
            plano_ensino_id=plano_ensino_id,
            total_aulas=frequencia.total_aulas,
            presencas=frequencia.presencas,
            justificadas=frequencia.justificadas,
            faltas=frequencia.faltas,
            percentual=frequencia.percentual,
            frequencia_minima=float(frequencia_minima),
            situacao=frequencia.situacao,
        )

    async def _frequencia_minima(self) -> float:
        parametros = await load_parametros(self.db, self.instituicao_id)
        return float(parametros.frequencia_minima)

    async def _get_aula(self, aula_id: str) -> AulaLancada:
        result = await self.db.execute(
            select(AulaLancada).where(
                AulaLancada.id == str(aula_id),
                AulaLancada.instituicao_id == self.instituicao_id,
            )
        )
        aula = result.scalar_one_or_none()
        if aula is None:
            raise AttendanceNotFoundError(f"Aula lançada {aula_id} not found")
        return aula

    async def _get_plano(self, plano_id: str) -> PlanoEnsino:
        result = await self.db.execute(
            select(PlanoEnsino).where(
                PlanoEnsino.id == str(plano_id),
                PlanoEnsino.instituicao_id == self.instituicao_id,
            )
        )
        plano = result.scalar_one_or_none()
        if plano is None:
            raise AttendanceNotFoundError(f"Plano de ensino {plano_id} not found")
        return plano

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
                raise AttendanceForbiddenError(
                    "Professor só pode registrar presenças nos seus próprios planos"
                )
