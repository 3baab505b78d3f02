# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum service for cursos, classes and disciplinas.

Codes are unique per institution. Records still referenced by turmas,
enrollments or planos de ensino cannot be deleted.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, TipoAcademico
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import (
    Classe,
    Curso,
    Disciplina,
    MatriculaAnual,
    PlanoEnsino,
    Turma,
)
from dsicola.models.curriculum import (
    ClasseCreateRequest,
    ClasseResponse,
    ClasseUpdateRequest,
    CursoCreateRequest,
    CursoResponse,
    CursoUpdateRequest,
    DisciplinaCreateRequest,
    DisciplinaResponse,
    DisciplinaUpdateRequest,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", Curso, Classe, Disciplina)


class CurriculumServiceError(Exception):
    """Base exception for curriculum service errors."""

    pass


class CurriculumNotFoundError(CurriculumServiceError):
    pass


class CurriculumConflictError(CurriculumServiceError):
    """Raised when a code is already used in the institution."""

    pass


class CurriculumValidationError(CurriculumServiceError):
    """Raised for operations not allowed for the institution or the record."""

    pass


class CurriculumService:
    """Service for the curriculum structure of one institution.

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
    # Cursos
    # =========================================================================

    async def create_curso(self, request: CursoCreateRequest, usuario_id: str) -> CursoResponse:
        curso = await self._create(Curso, request.model_dump(), usuario_id)
        return CursoResponse.model_validate(curso)

    async def list_cursos(self, only_active: bool = False) -> list[CursoResponse]:
        return [CursoResponse.model_validate(c) for c in await self._list(Curso, only_active)]

    async def get_curso(self, curso_id: str) -> CursoResponse:
        return CursoResponse.model_validate(await self.get_model(Curso, curso_id))

    async def update_curso(
        self, curso_id: str, request: CursoUpdateRequest, usuario_id: str
    ) -> CursoResponse:
        curso = await self._update(Curso, curso_id, request.model_dump(exclude_unset=True), usuario_id)
        return CursoResponse.model_validate(curso)

    async def delete_curso(self, curso_id: str, usuario_id: str) -> None:
        curso = await self.get_model(Curso, curso_id)
        if await self._count(Turma, Turma.curso_id == curso.id) or await self._count(
            MatriculaAnual, MatriculaAnual.curso_id == curso.id
        ):
            raise CurriculumValidationError("Curso possui turmas ou matrículas vinculadas")
        await self._delete(curso, usuario_id)

    # =========================================================================
    # Classes (secondary grade levels)
    # =========================================================================

    async def create_classe(self, request: ClasseCreateRequest, usuario_id: str) -> ClasseResponse:
        self._require_secundario()
        classe = await self._create(Classe, request.model_dump(), usuario_id)
        return ClasseResponse.model_validate(classe)

    async def list_classes(self, only_active: bool = False) -> list[ClasseResponse]:
        return [ClasseResponse.model_validate(c) for c in await self._list(Classe, only_active)]

    async def get_classe(self, classe_id: str) -> ClasseResponse:
        return ClasseResponse.model_validate(await self.get_model(Classe, classe_id))

    async def update_classe(
        self, classe_id: str, request: ClasseUpdateRequest, usuario_id: str
    ) -> ClasseResponse:
        self._require_secundario()
        classe = await self._update(
            Classe, classe_id, request.model_dump(exclude_unset=True), usuario_id
        )
        return ClasseResponse.model_validate(classe)

    async def delete_classe(self, classe_id: str, usuario_id: str) -> None:
        classe = await self.get_model(Classe, classe_id)
        if await self._count(Turma, Turma.classe_id == classe.id) or await self._count(
            MatriculaAnual, MatriculaAnual.classe_id == classe.id
        ):
            raise CurriculumValidationError("Classe possui turmas ou matrículas vinculadas")
        await self._delete(classe, usuario_id)

    # =========================================================================
    # Disciplinas
    # =========================================================================

    async def create_disciplina(
        self, request: DisciplinaCreateRequest, usuario_id: str
    ) -> DisciplinaResponse:
        if request.curso_id:
            await self.get_model(Curso, request.curso_id)
        disciplina = await self._create(Disciplina, request.model_dump(), usuario_id)
        return DisciplinaResponse.model_validate(disciplina)

    async def list_disciplinas(
        self, curso_id: str | None = None, only_active: bool = False
    ) -> list[DisciplinaResponse]:
        items = await self._list(
            Disciplina, only_active, Disciplina.curso_id == curso_id if curso_id else None
        )
        return [DisciplinaResponse.model_validate(d) for d in items]

    async def get_disciplina(self, disciplina_id: str) -> DisciplinaResponse:
        return DisciplinaResponse.model_validate(await self.get_model(Disciplina, disciplina_id))

    async def update_disciplina(
        self, disciplina_id: str, request: DisciplinaUpdateRequest, usuario_id: str
    ) -> DisciplinaResponse:
        data = request.model_dump(exclude_unset=True)
        if data.get("curso_id"):
            await self.get_model(Curso, data["curso_id"])
        disciplina = await self._update(Disciplina, disciplina_id, data, usuario_id)
        return DisciplinaResponse.model_validate(disciplina)

    async def delete_disciplina(self, disciplina_id: str, usuario_id: str) -> None:
        disciplina = await self.get_model(Disciplina, disciplina_id)
        if await self._count(PlanoEnsino, PlanoEnsino.disciplina_id == disciplina.id):
            raise CurriculumValidationError("Disciplina possui planos de ensino vinculados")
        await self._delete(disciplina, usuario_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def get_model(self, model: type[ModelT], record_id: str) -> ModelT:
        """Load a curriculum record of the institution.

        Raises:
            CurriculumNotFoundError: If no such record exists in the institution.
        """
        result = await self.db.execute(
            select(model).where(model.id == str(record_id), model.instituicao_id == self.instituicao_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise CurriculumNotFoundError(f"{model.__name__} {record_id} not found")
        return record

    def _require_secundario(self) -> None:
        if self.tipo_academico != TipoAcademico.SECUNDARIO.value:
            raise CurriculumValidationError("Classes existem apenas no ensino secundário")

    async def _check_codigo(self, model: type[ModelT], codigo: str, exclude_id: str | None = None) -> None:
        query = select(model.id).where(
            model.instituicao_id == self.instituicao_id,
            model.codigo == codigo,
        )
        if exclude_id:
            query = query.where(model.id != exclude_id)
        if (await self.db.execute(query)).scalar_one_or_none():
            raise CurriculumConflictError(f"Código '{codigo}' já existe")

    async def _create(self, model: type[ModelT], data: dict[str, Any], usuario_id: str) -> ModelT:
        await self._check_codigo(model, data["codigo"])
        record = model(instituicao_id=self.instituicao_id, **data)
        self.db.add(record)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.CREATE,
            model.__name__,
            record.id,
            usuario_id=usuario_id,
            dados_novos=data,
        )
        await self.db.commit()
        await self.db.refresh(record)

        logger.info("Created %s: %s (%s)", model.__name__, record.codigo, record.id)
        return record

    async def _update(
        self, model: type[ModelT], record_id: str, data: dict[str, Any], usuario_id: str
    ) -> ModelT:
        record = await self.get_model(model, record_id)
        if data.get("codigo") and data["codigo"] != record.codigo:
            await self._check_codigo(model, data["codigo"], exclude_id=record.id)

        for field, value in data.items():
            setattr(record, field, value)

        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.UPDATE,
            model.__name__,
            record.id,
            usuario_id=usuario_id,
            dados_novos=data,
        )
        await self.db.commit()
        await self.db.refresh(record)

        logger.info("Updated %s: %s", model.__name__, record.id)
        return record

    async def _delete(self, record: Curso | Classe | Disciplina, usuario_id: str) -> None:
        self.audit.log(
            ModuloAuditoria.ACADEMICO,
            AcaoAuditoria.DELETE,
            type(record).__name__,
            record.id,
            usuario_id=usuario_id,
            dados_anteriores={"codigo": record.codigo, "nome": record.nome},
        )
        await self.db.delete(record)
        await self.db.commit()

        logger.info("Deleted %s: %s", type(record).__name__, record.id)

    async def _list(self, model: type[ModelT], only_active: bool, *criteria) -> list[ModelT]:
        query = select(model).where(model.instituicao_id == self.instituicao_id)
        for criterion in criteria:
            if criterion is not None:
                query = query.where(criterion)
        if only_active:
            query = query.where(model.is_active == True)  # noqa: E712
        result = await self.db.execute(query.order_by(model.codigo))
        return list(result.scalars().all())

    async def _count(self, model, *criteria) -> int:
        query = select(func.count()).select_from(model).where(
            model.instituicao_id == self.instituicao_id, *criteria
        )
        return (await self.db.execute(query)).scalar() or 0
