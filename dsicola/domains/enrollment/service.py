# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service.

This module provides the EnrollmentService class for:
- Annual enrollment (MatriculaAnual) of students in an academic year
- Enrollment of students in turmas (Matricula), with capacity control
- Listing and cancelling enrollments
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import (
    AcaoAuditoria,
    ModuloAuditoria,
    StatusMatricula,
    StatusMatriculaAnual,
    TipoAcademico,
    UserRole,
)
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    Classe,
    Curso,
    Matricula,
    MatriculaAnual,
    Turma,
    User,
)
from dsicola.models.enrollment import (
    MatriculaAnualCreateRequest,
    MatriculaAnualResponse,
    MatriculaCreateRequest,
    MatriculaResponse,
)
from dsicola.utils.datetime import utc_today

logger = logging.getLogger(__name__)


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""

    pass


class EnrollmentNotFoundError(EnrollmentServiceError):
    """Raised when an enrollment or a referenced record is not found."""

    pass


class AlreadyEnrolledError(EnrollmentServiceError):
    """Raised when student is already enrolled."""

    pass


class EnrollmentValidationError(EnrollmentServiceError):
    """Raised when the enrollment breaks an academic rule."""

    pass


class EnrollmentService:
    """Service for managing student enrollments of one institution.

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

    # =========================================================================
    # Matrículas anuais
    # =========================================================================

    async def create_matricula_anual(
        self,
        request: MatriculaAnualCreateRequest,
        usuario_id: str,
    ) -> MatriculaAnualResponse:
        """Enroll a student in an academic year.

        Raises:
            EnrollmentNotFoundError: Student, year, curso or classe not found.
            EnrollmentValidationError: Level or structure mismatch.
            AlreadyEnrolledError: Student already has an ATIVA enrollment.
        """
        await self._get_aluno(request.aluno_id)
        await self._get_tenant_record(AnoLetivo, request.ano_letivo_id, "Ano letivo")

        if self.tipo_academico and request.nivel_ensino.value != self.tipo_academico:
            raise EnrollmentValidationError(
                f"Nível de ensino {request.nivel_ensino.value} não corresponde à instituição "
                f"({self.tipo_academico})"
            )
        if request.nivel_ensino == TipoAcademico.SUPERIOR:
            if not request.curso_id:
                raise EnrollmentValidationError("Curso é obrigatório no ensino superior")
            await self._get_tenant_record(Curso, request.curso_id, "Curso")
        else:
            if not request.classe_id:
                raise EnrollmentValidationError("Classe é obrigatória no ensino secundário")
            await self._get_tenant_record(Classe, request.classe_id, "Classe")
            if request.curso_id:
                await self._get_tenant_record(Curso, request.curso_id, "Curso")

        if await self.get_matricula_anual_ativa(request.aluno_id, request.ano_letivo_id):
            raise AlreadyEnrolledError("Aluno já possui matrícula anual ativa neste ano letivo")

        matricula = MatriculaAnual(
            instituicao_id=self.instituicao_id,
            aluno_id=request.aluno_id,
            ano_letivo_id=request.ano_letivo_id,
            nivel_ensino=request.nivel_ensino.value,
            curso_id=request.curso_id,
            classe_id=request.classe_id,
            status=StatusMatriculaAnual.ATIVA.value,
            data_matricula=request.data_matricula or utc_today(),
            observacoes=request.observacoes,
        )
        self.db.add(matricula)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.CREATE,
            "MatriculaAnual",
            matricula.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(matricula)

        logger.info(
            "Created matricula anual %s for aluno %s", matricula.id, matricula.aluno_id
        )

        return MatriculaAnualResponse.model_validate(matricula)

    async def list_matriculas_anuais(
        self,
        ano_letivo_id: str | None = None,
        aluno_id: str | None = None,
        status: str | None = None,
    ) -> tuple[list[MatriculaAnualResponse], int]:
        query = select(MatriculaAnual).where(MatriculaAnual.instituicao_id == self.instituicao_id)
        if ano_letivo_id:
            query = query.where(MatriculaAnual.ano_letivo_id == ano_letivo_id)
        if aluno_id:
            query = query.where(MatriculaAnual.aluno_id == aluno_id)
        if status:
            query = query.where(MatriculaAnual.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(query.order_by(MatriculaAnual.data_matricula.desc()))
        items = [MatriculaAnualResponse.model_validate(m) for m in result.scalars().all()]
        return items, total

    async def get_matricula_anual(self, matricula_id: str) -> MatriculaAnualResponse:
        matricula = await self._get_tenant_record(MatriculaAnual, matricula_id, "Matrícula anual")
        return MatriculaAnualResponse.model_validate(matricula)

    async def update_status_matricula_anual(
        self,
        matricula_id: str,
        status: StatusMatriculaAnual,
        usuario_id: str,
        observacoes: str | None = None,
    ) -> MatriculaAnualResponse:
        """Change the status of an annual enrollment.

        Reactivating is rejected when the student already has another ATIVA
        enrollment in the same year.
        """
        matricula = await self._get_tenant_record(MatriculaAnual, matricula_id, "Matrícula anual")
        anterior = matricula.status

        if status == StatusMatriculaAnual.ATIVA and anterior != status.value:
            other = await self.get_matricula_anual_ativa(matricula.aluno_id, matricula.ano_letivo_id)
            if other and other.id != matricula.id:
                raise AlreadyEnrolledError("Aluno já possui matrícula anual ativa neste ano letivo")

        matricula.status = status.value
        if observacoes is not None:
            matricula.observacoes = observacoes

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.UPDATE,
            "MatriculaAnual",
            matricula.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior},
            dados_novos={"status": matricula.status},
        )
        await self.db.commit()
        await self.db.refresh(matricula)

        logger.info("Matricula anual %s: %s -> %s", matricula.id, anterior, matricula.status)

        return MatriculaAnualResponse.model_validate(matricula)

    async def get_matricula_anual_ativa(
        self, aluno_id: str, ano_letivo_id: str
    ) -> MatriculaAnual | None:
        result = await self.db.execute(
            select(MatriculaAnual).where(
                MatriculaAnual.instituicao_id == self.instituicao_id,
                MatriculaAnual.aluno_id == aluno_id,
                MatriculaAnual.ano_letivo_id == ano_letivo_id,
                MatriculaAnual.status == StatusMatriculaAnual.ATIVA.value,
            )
        )
        return result.scalars().first()

    # =========================================================================
    # Matrículas em turma
    # =========================================================================

    async def enroll_student(
        self,
        request: MatriculaCreateRequest,
        usuario_id: str,
    ) -> MatriculaResponse:
        """Enroll a student in a turma.

        Raises:
            EnrollmentNotFoundError: Student or turma not found.
            EnrollmentValidationError: No active annual enrollment, structure
                mismatch, or turma full.
            AlreadyEnrolledError: Student already in the turma.
        """
        await self._get_aluno(request.aluno_id)
        turma: Turma = await self._get_tenant_record(Turma, request.turma_id, "Turma")

        anual = await self.get_matricula_anual_ativa(request.aluno_id, turma.ano_letivo_id)
        if anual is None:
            raise EnrollmentValidationError(
                "Aluno não possui matrícula anual ativa no ano letivo da turma"
            )

        if anual.nivel_ensino == TipoAcademico.SUPERIOR.value:
            if turma.curso_id != anual.curso_id:
                raise EnrollmentValidationError("Turma pertence a outro curso")
        elif turma.classe_id and turma.classe_id != anual.classe_id:
            raise EnrollmentValidationError("Turma pertence a outra classe")

        existing = await self.db.execute(
            select(Matricula.id).where(
                Matricula.aluno_id == request.aluno_id,
                Matricula.turma_id == turma.id,
            )
        )
        if existing.scalar_one_or_none():
            raise AlreadyEnrolledError("Aluno já matriculado nesta turma")

        ocupadas = await self.count_matriculas_ativas(turma.id)
        if ocupadas >= turma.capacidade:
            raise EnrollmentValidationError(
                f"Turma sem vagas (capacidade {turma.capacidade})"
            )

        matricula = Matricula(
            instituicao_id=self.instituicao_id,
            aluno_id=request.aluno_id,
            turma_id=turma.id,
            ano_letivo_id=turma.ano_letivo_id,
            matricula_anual_id=anual.id,
            status=StatusMatricula.ATIVA.value,
            data_matricula=request.data_matricula or utc_today(),
        )
        self.db.add(matricula)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.CREATE,
            "Matricula",
            matricula.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(matricula)

        logger.info("Enrolled aluno %s in turma %s", matricula.aluno_id, turma.id)

        return MatriculaResponse.model_validate(matricula)

    async def list_matriculas(
        self,
        turma_id: str | None = None,
        aluno_id: str | None = None,
        status: str | None = None,
    ) -> tuple[list[MatriculaResponse], int]:
        query = select(Matricula).where(Matricula.instituicao_id == self.instituicao_id)
        if turma_id:
            query = query.where(Matricula.turma_id == turma_id)
        if aluno_id:
            query = query.where(Matricula.aluno_id == aluno_id)
        if status:
            query = query.where(Matricula.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(query.order_by(Matricula.data_matricula))
        items = [MatriculaResponse.model_validate(m) for m in result.scalars().all()]
        return items, total

    async def update_status_matricula(
        self,
        matricula_id: str,
        status: StatusMatricula,
        usuario_id: str,
    ) -> MatriculaResponse:
        matricula = await self._get_tenant_record(Matricula, matricula_id, "Matrícula")
        anterior = matricula.status
        if anterior == status.value:
            return MatriculaResponse.model_validate(matricula)

        if status == StatusMatricula.ATIVA:
            turma: Turma = await self._get_tenant_record(Turma, matricula.turma_id, "Turma")
            if await self.count_matriculas_ativas(turma.id) >= turma.capacidade:
                raise EnrollmentValidationError(
                    f"Turma sem vagas (capacidade {turma.capacidade})"
                )

        matricula.status = status.value
        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.UPDATE,
            "Matricula",
            matricula.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": anterior},
            dados_novos={"status": matricula.status},
        )
        await self.db.commit()
        await self.db.refresh(matricula)

        logger.info("Matricula %s: %s -> %s", matricula.id, anterior, matricula.status)

        return MatriculaResponse.model_validate(matricula)

    async def cancel_matricula(self, matricula_id: str, usuario_id: str) -> MatriculaResponse:
        return await self.update_status_matricula(
            matricula_id, StatusMatricula.CANCELADA, usuario_id
        )

    async def count_matriculas_ativas(self, turma_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Matricula)
            .where(
                Matricula.turma_id == turma_id,
                Matricula.status == StatusMatricula.ATIVA.value,
            )
        )
        return result.scalar() or 0

    async def _get_aluno(self, aluno_id: str) -> User:
        user = await self._get_tenant_record(User, aluno_id, "Aluno")
        if not user.has_role(UserRole.ALUNO.value):
            raise EnrollmentValidationError("Usuário não possui o perfil ALUNO")
        return user

    async def _get_tenant_record(self, model, record_id: str, label: str):
        result = await self.db.execute(
            select(model).where(model.id == str(record_id), model.instituicao_id == self.instituicao_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise EnrollmentNotFoundError(f"{label} {record_id} not found")
        return record
