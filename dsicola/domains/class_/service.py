# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class service for managing turmas.

This module provides the TurmaService class for:
- Turma CRUD operations
- Validation of the academic structure by tipo acadêmico
- Student count tracking
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, StatusMatricula, TipoAcademico
from dsicola.domains.audit.service import AuditService
from dsicola.domains.instituicao.service import load_parametros
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    AulaLancada,
    Classe,
    Curso,
    Matricula,
    PlanoEnsino,
    Turma,
)
from dsicola.models.class_ import (
    TurmaCreateRequest,
    TurmaResponse,
    TurmaSummary,
    TurmaUpdateRequest,
)

logger = logging.getLogger(__name__)


class TurmaServiceError(Exception):
    """Base exception for turma service errors."""

    pass


class TurmaNotFoundError(TurmaServiceError):
    """Raised when turma, or a record it references, is not found."""

    pass


class TurmaValidationError(TurmaServiceError):
    """Raised when the turma does not fit the institution's structure."""

    pass


class TurmaService:
    """Service for managing the turmas of one institution.

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

    async def create_turma(self, request: TurmaCreateRequest, usuario_id: str) -> TurmaResponse:
        """Create a turma.

        Raises:
            TurmaNotFoundError: Ano letivo, curso or classe not in the institution.
            TurmaValidationError: Structure does not match the tipo acadêmico.
        """
        await self._get_tenant_record(AnoLetivo, request.ano_letivo_id, "Ano letivo")
        await self._validate_structure(request.curso_id, request.classe_id, request.semestre)

        turma = Turma(instituicao_id=self.instituicao_id, **request.model_dump())
        self.db.add(turma)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.CREATE,
            "Turma",
            turma.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(turma)

        logger.info("Created turma: %s (%s)", turma.nome, turma.id)

        return await self._to_response(turma)

    async def list_turmas(
        self,
        ano_letivo_id: str | None = None,
        curso_id: str | None = None,
        classe_id: str | None = None,
        professor_id: str | None = None,
    ) -> tuple[list[TurmaSummary], int]:
        """List turmas, optionally filtered.

        ``professor_id`` restricts the list to turmas where the teacher owns
        a plano de ensino.
        """
        query = select(Turma).where(Turma.instituicao_id == self.instituicao_id)
        if ano_letivo_id:
            query = query.where(Turma.ano_letivo_id == ano_letivo_id)
        if curso_id:
            query = query.where(Turma.curso_id == curso_id)
        if classe_id:
            query = query.where(Turma.classe_id == classe_id)
        if professor_id:
            query = query.where(
                Turma.id.in_(
                    select(PlanoEnsino.turma_id).where(PlanoEnsino.professor_id == professor_id)
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(query.order_by(Turma.nome))
        items = [TurmaSummary.model_validate(t) for t in result.scalars().all()]
        return items, total

    async def get_turma(self, turma_id: str) -> TurmaResponse:
        return await self._to_response(await self.get_model(turma_id))

    async def update_turma(
        self,
        turma_id: str,
        request: TurmaUpdateRequest,
        usuario_id: str,
    ) -> TurmaResponse:
        turma = await self.get_model(turma_id)
        data = request.model_dump(exclude_unset=True)

        await self._validate_structure(
            data.get("curso_id", turma.curso_id),
            data.get("classe_id", turma.classe_id),
            data.get("semestre", turma.semestre),
        )
        if "capacidade" in data and data["capacidade"] is not None:
            if data["capacidade"] < await self._count_alunos(turma.id):
                raise TurmaValidationError("Capacidade inferior ao número de alunos matriculados")

        for field, value in data.items():
            setattr(turma, field, value)

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.UPDATE,
            "Turma",
            turma.id,
            usuario_id=usuario_id,
            dados_novos=data,
        )
        await self.db.commit()
        await self.db.refresh(turma)

        logger.info("Updated turma: %s", turma.id)

        return await self._to_response(turma)

    async def delete_turma(self, turma_id: str, usuario_id: str) -> None:
        """Delete a turma without matrículas or posted lessons.

        Raises:
            TurmaValidationError: Turma still has matrículas or aulas.
        """
        turma = await self.get_model(turma_id)

        matriculas = (
            await self.db.execute(
                select(func.count()).select_from(Matricula).where(Matricula.turma_id == turma.id)
            )
        ).scalar() or 0
        aulas = (
            await self.db.execute(
                select(func.count())
                .select_from(AulaLancada)
                .join(PlanoEnsino, PlanoEnsino.id == AulaLancada.plano_ensino_id)
                .where(PlanoEnsino.turma_id == turma.id)
            )
        ).scalar() or 0
        if matriculas or aulas:
            raise TurmaValidationError("Turma possui matrículas ou aulas vinculadas")

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.DELETE,
            "Turma",
            turma.id,
            usuario_id=usuario_id,
            dados_anteriores=TurmaSummary.model_validate(turma),
        )
        await self.db.delete(turma)
        await self.db.commit()

        logger.info("Deleted turma: %s", turma_id)

    async def get_model(self, turma_id: str) -> Turma:
        """Load a turma of the institution.

        Raises:
            TurmaNotFoundError: If turma not found.
        """
        return await self._get_tenant_record(Turma, turma_id, "Turma")

    async def _validate_structure(
        self,
        curso_id: str | None,
        classe_id: str | None,
        semestre: int | None,
    ) -> None:
        if self.tipo_academico == TipoAcademico.SECUNDARIO.value:
            if not classe_id:
                raise TurmaValidationError("Classe é obrigatória no ensino secundário")
            if semestre is not None:
                raise TurmaValidationError("Semestre não se aplica ao ensino secundário")
            await self._get_tenant_record(Classe, classe_id, "Classe")
            if curso_id:
                await self._get_tenant_record(Curso, curso_id, "Curso")
        elif self.tipo_academico == TipoAcademico.SUPERIOR.value:
            if not curso_id:
                raise TurmaValidationError("Curso é obrigatório no ensino superior")
            if classe_id:
                raise TurmaValidationError("Classe não se aplica ao ensino superior")
            if semestre is None:
                raise TurmaValidationError("Semestre é obrigatório no ensino superior")
            parametros = await load_parametros(self.db, self.instituicao_id)
            if semestre > parametros.quantidade_semestres_por_ano:
                raise TurmaValidationError(
                    f"Semestre deve estar entre 1 e {parametros.quantidade_semestres_por_ano}"
                )
            await self._get_tenant_record(Curso, curso_id, "Curso")
        else:
            raise TurmaValidationError("Tipo acadêmico da instituição não definido")

    async def _get_tenant_record(self, model, record_id: str, label: str):
        result = await self.db.execute(
            select(model).where(model.id == str(record_id), model.instituicao_id == self.instituicao_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise TurmaNotFoundError(f"{label} {record_id} not found")
        return record

    async def _count_alunos(self, turma_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Matricula)
            .where(
                Matricula.turma_id == turma_id,
                Matricula.status == StatusMatricula.ATIVA.value,
            )
        )
        return result.scalar() or 0

    async def _to_response(self, turma: Turma) -> TurmaResponse:
        response = TurmaResponse.model_validate(turma)
        response.total_alunos = await self._count_alunos(turma.id)
        return response
