# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teaching plan service.

This module provides:
- PlanoEnsinoService: planos de ensino and their planned lessons
- WorkflowService: status transitions of planos and avaliações, with
  workflow history
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import (
    AcaoAuditoria,
    EntidadeWorkflow,
    ModuloAuditoria,
    StatusWorkflow,
    TipoAcademico,
    UserRole,
)
from dsicola.domains.audit.service import AuditService
from dsicola.domains.instituicao.service import load_parametros
from dsicola.domains.teaching_plan.workflow import (
    InvalidTransitionError,
    TransitionForbiddenError,
    estado_para,
    validate_transition,
)
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    AulaLancada,
    Avaliacao,
    Disciplina,
    PlanoAula,
    PlanoEnsino,
    Turma,
    User,
    WorkflowLog,
)
from dsicola.models.teaching_plan import (
    PlanoAulaCreateRequest,
    PlanoAulaResponse,
    PlanoAulaUpdateRequest,
    PlanoEnsinoCreateRequest,
    PlanoEnsinoResponse,
    PlanoEnsinoSummary,
    PlanoEnsinoUpdateRequest,
    WorkflowLogResponse,
)
from dsicola.utils.datetime import utc_now

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = frozenset({StatusWorkflow.RASCUNHO.value, StatusWorkflow.REJEITADO.value})
LOCKED_STATUSES = frozenset({StatusWorkflow.APROVADO.value, StatusWorkflow.BLOQUEADO.value})
ACTION_BY_STATUS = {
    StatusWorkflow.SUBMETIDO: AcaoAuditoria.SUBMIT,
    StatusWorkflow.APROVADO: AcaoAuditoria.APPROVE,
    StatusWorkflow.REJEITADO: AcaoAuditoria.REJECT,
    StatusWorkflow.BLOQUEADO: AcaoAuditoria.BLOCK,
    StatusWorkflow.RASCUNHO: AcaoAuditoria.UPDATE,
}


class PlanoEnsinoServiceError(Exception):
    """Base exception for plano de ensino service errors."""

    pass


class PlanoEnsinoNotFoundError(PlanoEnsinoServiceError):
    """Raised when a plano, aula or referenced record is not found."""

    pass


class PlanoEnsinoValidationError(PlanoEnsinoServiceError):
    """Raised for invalid data or an operation not allowed in the current status."""

    pass


class PlanoEnsinoConflictError(PlanoEnsinoServiceError):
    """Raised when another approved plano covers the same disciplina and turma."""

    pass


class PlanoEnsinoForbiddenError(PlanoEnsinoServiceError):
    """Raised when the user may not act on the plano."""

    pass


class PlanoEnsinoService:
    """Service for managing planos de ensino of one institution.

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

    async def create_plano(
        self,
        request: PlanoEnsinoCreateRequest,
        usuario_id: str,
    ) -> PlanoEnsinoResponse:
        """Create a plano de ensino in RASCUNHO.

        Raises:
            PlanoEnsinoNotFoundError: A referenced record does not exist.
            PlanoEnsinoValidationError: Professor lacks the PROFESSOR role or
                the turma belongs to another ano letivo.
        """
        await self._get_tenant_record(Disciplina, request.disciplina_id, "Disciplina")
        await self._get_tenant_record(AnoLetivo, request.ano_letivo_id, "Ano letivo")
        turma: Turma = await self._get_tenant_record(Turma, request.turma_id, "Turma")
        await self._get_professor(request.professor_id)

        if turma.ano_letivo_id != request.ano_letivo_id:
            raise PlanoEnsinoValidationError("Turma não pertence ao ano letivo informado")

        plano = PlanoEnsino(
            instituicao_id=self.instituicao_id,
            **request.model_dump(),
            status=StatusWorkflow.RASCUNHO.value,
            estado=estado_para(StatusWorkflow.RASCUNHO).value,
        )
        self.db.add(plano)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.CREATE,
            "PlanoEnsino",
            plano.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(plano)

        logger.info("Created plano de ensino: %s", plano.id)

        return PlanoEnsinoResponse.model_validate(plano)

    async def list_planos(
        self,
        ano_letivo_id: str | None = None,
        turma_id: str | None = None,
        disciplina_id: str | None = None,
        professor_id: str | None = None,
        status: str | None = None,
    ) -> tuple[list[PlanoEnsinoSummary], int]:
        query = select(PlanoEnsino).where(PlanoEnsino.instituicao_id == self.instituicao_id)
        if ano_letivo_id:
            query = query.where(PlanoEnsino.ano_letivo_id == ano_letivo_id)
        if turma_id:
            query = query.where(PlanoEnsino.turma_id == turma_id)
        if disciplina_id:
            query = query.where(PlanoEnsino.disciplina_id == disciplina_id)
        if professor_id:
            query = query.where(PlanoEnsino.professor_id == professor_id)
        if status:
            query = query.where(PlanoEnsino.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(query.order_by(PlanoEnsino.created_at.desc()))
        items = [PlanoEnsinoSummary.model_validate(p) for p in result.scalars().all()]
        return items, total

    async def get_plano(self, plano_id: str) -> PlanoEnsinoResponse:
        return PlanoEnsinoResponse.model_validate(await self.get_model(plano_id))

    async def update_plano(
        self,
        plano_id: str,
        request: PlanoEnsinoUpdateRequest,
        usuario_id: str,
    ) -> PlanoEnsinoResponse:
        """Edit a plano in RASCUNHO or REJEITADO.

        Raises:
            PlanoEnsinoValidationError: Plano in another status.
        """
        plano = await self.get_model(plano_id)
        if plano.status not in EDITABLE_STATUSES:
            raise PlanoEnsinoValidationError(
                f"Plano de ensino {plano.status} não pode ser editado"
            )

        data = request.model_dump(exclude_unset=True)
        if data.get("professor_id"):
            await self._get_professor(data["professor_id"])
        for field, value in data.items():
            setattr(plano, field, value)

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.UPDATE,
            "PlanoEnsino",
            plano.id,
            usuario_id=usuario_id,
            dados_novos=data,
        )
        await self.db.commit()
        await self.db.refresh(plano)

        logger.info("Updated plano de ensino: %s", plano.id)

        return PlanoEnsinoResponse.model_validate(plano)

    async def delete_plano(self, plano_id: str, usuario_id: str) -> None:
        plano = await self.get_model(plano_id)
        if plano.status != StatusWorkflow.RASCUNHO.value:
            raise PlanoEnsinoValidationError("Apenas planos em RASCUNHO podem ser removidos")

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.DELETE,
            "PlanoEnsino",
            plano.id,
            usuario_id=usuario_id,
            dados_anteriores=PlanoEnsinoSummary.model_validate(plano),
        )
        await self.db.delete(plano)
        await self.db.commit()

        logger.info("Deleted plano de ensino: %s", plano_id)

    # =========================================================================
    # Aulas planejadas
    # =========================================================================

    async def add_aula(
        self,
        plano_id: str,
        request: PlanoAulaCreateRequest,
        usuario_id: str,
    ) -> PlanoAulaResponse:
        plano = await self.get_model(plano_id)
        self._check_aulas_editable(plano)
        await self._validate_periodo(request.periodo)

        aula = PlanoAula(plano_ensino_id=plano.id, **request.model_dump())
        plano.aulas.append(aula)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.CREATE,
            "PlanoAula",
            aula.id,
            usuario_id=usuario_id,
            dados_novos=request,
        )
        await self.db.commit()
        await self.db.refresh(aula)

        logger.info("Added aula %s to plano %s", aula.id, plano.id)

        return PlanoAulaResponse.model_validate(aula)

    async def update_aula(
        self,
        plano_id: str,
        aula_id: str,
        request: PlanoAulaUpdateRequest,
        usuario_id: str,
    ) -> PlanoAulaResponse:
        plano = await self.get_model(plano_id)
        self._check_aulas_editable(plano)
        aula = self._find_aula(plano, aula_id)

        data = request.model_dump(exclude_unset=True)
        if data.get("periodo") is not None:
            await self._validate_periodo(data["periodo"])
        if data.get("quantidade_aulas") is not None:
            lancadas = await self._count_lancadas(aula.id)
            if data["quantidade_aulas"] < lancadas:
                raise PlanoEnsinoValidationError(
                    f"Quantidade inferior às {lancadas} aulas já lançadas"
                )
        for field, value in data.items():
            setattr(aula, field, value)

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.UPDATE,
            "PlanoAula",
            aula.id,
            usuario_id=usuario_id,
            dados_novos=data,
        )
        await self.db.commit()
        await self.db.refresh(aula)

        return PlanoAulaResponse.model_validate(aula)

    async def delete_aula(self, plano_id: str, aula_id: str, usuario_id: str) -> None:
        plano = await self.get_model(plano_id)
        self._check_aulas_editable(plano)
        aula = self._find_aula(plano, aula_id)
        if await self._count_lancadas(aula.id):
            raise PlanoEnsinoValidationError("Aula planejada possui aulas lançadas")

        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO,
            AcaoAuditoria.DELETE,
            "PlanoAula",
            aula.id,
            usuario_id=usuario_id,
            dados_anteriores=PlanoAulaResponse.model_validate(aula),
        )
        plano.aulas.remove(aula)
        await self.db.commit()

        logger.info("Removed aula %s from plano %s", aula_id, plano.id)

    async def list_aulas(self, plano_id: str) -> list[PlanoAulaResponse]:
        plano = await self.get_model(plano_id)
        return [PlanoAulaResponse.model_validate(a) for a in plano.aulas]

    async def get_model(self, plano_id: str) -> PlanoEnsino:
        """Load a plano de ensino of the institution.

        Raises:
            PlanoEnsinoNotFoundError: If plano not found.
        """
        return await self._get_tenant_record(PlanoEnsino, plano_id, "Plano de ensino")

    def _check_aulas_editable(self, plano: PlanoEnsino) -> None:
        if plano.status in LOCKED_STATUSES:
            raise PlanoEnsinoValidationError(
                f"Aulas de um plano {plano.status} não podem ser alteradas"
            )

    def _find_aula(self, plano: PlanoEnsino, aula_id: str) -> PlanoAula:
        for aula in plano.aulas:
            if aula.id == str(aula_id):
                return aula
        raise PlanoEnsinoNotFoundError(f"Aula {aula_id} not found")

    async def _validate_periodo(self, periodo: int) -> None:
        if self.tipo_academico == TipoAcademico.SECUNDARIO.value:
            maximo = 3
        else:
            parametros = await load_parametros(self.db, self.instituicao_id)
            maximo = parametros.quantidade_semestres_por_ano
        if periodo > maximo:
            raise PlanoEnsinoValidationError(f"Período deve estar entre 1 e {maximo}")

    async def _count_lancadas(self, plano_aula_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(AulaLancada)
            .where(AulaLancada.plano_aula_id == plano_aula_id)
        )
        return result.scalar() or 0

    async def _get_professor(self, professor_id: str) -> User:
        professor = await self._get_tenant_record(User, professor_id, "Professor")
        if not professor.has_role(UserRole.PROFESSOR.value):
            raise PlanoEnsinoValidationError("Usuário não possui o perfil PROFESSOR")
        return professor

    async def _get_tenant_record(self, model, record_id: str, label: str):
        result = await self.db.execute(
            select(model).where(model.id == str(record_id), model.instituicao_id == self.instituicao_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise PlanoEnsinoNotFoundError(f"{label} {record_id} not found")
        return record


class WorkflowService:
    """Workflow transitions for planos de ensino and avaliações.

    Every transition is validated against the workflow table, recorded in
    the workflow history and audited.
    """

    def __init__(self, db: AsyncSession, instituicao_id: str) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.audit = AuditService(db, instituicao_id)

    async def transition(
        self,
        entidade: EntidadeWorkflow,
        entidade_id: str,
        novo_status: StatusWorkflow,
        usuario_id: str,
        roles: list[str],
        observacao: str | None = None,
    ) -> WorkflowLogResponse:
        """Move an entity to ``novo_status``.

        Raises:
            PlanoEnsinoNotFoundError: Entity not found.
            PlanoEnsinoValidationError: Transition not in the workflow.
            PlanoEnsinoForbiddenError: Role not allowed, or a teacher acting on
                another teacher's plano.
            PlanoEnsinoConflictError: Another APROVADO plano exists for the
                same disciplina, turma and ano letivo.
        """
        entidade = EntidadeWorkflow(entidade)
        novo_status = StatusWorkflow(novo_status)
        record = await self._load(entidade, entidade_id)
        atual = StatusWorkflow(record.status)

        try:
            validate_transition(atual, novo_status, roles)
        except InvalidTransitionError as e:
            raise PlanoEnsinoValidationError(str(e)) from e
        except TransitionForbiddenError as e:
            raise PlanoEnsinoForbiddenError(str(e)) from e

        if isinstance(record, PlanoEnsino):
            self._check_owner(record, usuario_id, roles)
            if novo_status == StatusWorkflow.APROVADO:
                await self._check_single_approved(record)
            self._apply_plano(record, novo_status, usuario_id)
        else:
            record.status = novo_status.value

        log = WorkflowLog(
            instituicao_id=self.instituicao_id,
            entidade=entidade.value,
            entidade_id=record.id,
            status_anterior=atual.value,
            status_novo=novo_status.value,
            usuario_id=usuario_id,
            observacao=observacao,
        )
        self.db.add(log)
        self.audit.log(
            ModuloAuditoria.PLANO_ENSINO
            if entidade == EntidadeWorkflow.PLANO_ENSINO
            else ModuloAuditoria.AVALIACOES_NOTAS,
            ACTION_BY_STATUS[novo_status],
            entidade.value,
            record.id,
            usuario_id=usuario_id,
            dados_anteriores={"status": atual.value},
            dados_novos={"status": novo_status.value},
            observacao=observacao,
        )
        await self.db.commit()
        await self.db.refresh(log)

        logger.info(
            "Workflow %s %s: %s -> %s by %s",
            entidade.value,
            record.id,
            atual.value,
            novo_status.value,
            usuario_id,
        )

        return WorkflowLogResponse.model_validate(log)

    async def historico(
        self, entidade: EntidadeWorkflow, entidade_id: str
    ) -> list[WorkflowLogResponse]:
        """Workflow history of an entity, oldest first."""
        result = await self.db.execute(
            select(WorkflowLog)
            .where(
                WorkflowLog.instituicao_id == self.instituicao_id,
                WorkflowLog.entidade == EntidadeWorkflow(entidade).value,
                WorkflowLog.entidade_id == str(entidade_id),
            )
            .order_by(WorkflowLog.created_at)
        )
        return [WorkflowLogResponse.model_validate(log) for log in result.scalars().all()]

    def _apply_plano(self, plano: PlanoEnsino, status: StatusWorkflow, usuario_id: str) -> None:
        anterior = plano.status
        plano.status = status.value
        plano.estado = estado_para(status).value

        if status == StatusWorkflow.BLOQUEADO:
            plano.bloqueado = True
            plano.bloqueado_por = usuario_id
            plano.data_bloqueio = utc_now()
        elif anterior == StatusWorkflow.BLOQUEADO.value:
            plano.bloqueado = False
            plano.bloqueado_por = None
            plano.data_bloqueio = None

        if status == StatusWorkflow.APROVADO and anterior == StatusWorkflow.SUBMETIDO.value:
            plano.aprovado_por = usuario_id
            plano.data_aprovacao = utc_now()

    def _check_owner(self, plano: PlanoEnsino, usuario_id: str, roles: list[str]) -> None:
        is_staff = bool(
            {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value, UserRole.SECRETARIA.value}.intersection(
                roles
            )
        )
        if not is_staff and plano.professor_id != usuario_id:
            raise PlanoEnsinoForbiddenError("Professor só pode movimentar os próprios planos")

    async def _check_single_approved(self, plano: PlanoEnsino) -> None:
        result = await self.db.execute(
            select(PlanoEnsino.id).where(
                PlanoEnsino.instituicao_id == self.instituicao_id,
                PlanoEnsino.disciplina_id == plano.disciplina_id,
                PlanoEnsino.turma_id == plano.turma_id,
                PlanoEnsino.ano_letivo_id == plano.ano_letivo_id,
                PlanoEnsino.status == StatusWorkflow.APROVADO.value,
                PlanoEnsino.id != plano.id,
            )
        )
        if result.scalars().first():
            raise PlanoEnsinoConflictError(
                "Já existe um plano de ensino aprovado para esta disciplina e turma"
            )

    async def _load(self, entidade: EntidadeWorkflow, entidade_id: str) -> PlanoEnsino | Avaliacao:
        model = PlanoEnsino if entidade == EntidadeWorkflow.PLANO_ENSINO else Avaliacao
        result = await self.db.execute(
            select(model).where(model.id == str(entidade_id), model.instituicao_id == self.instituicao_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise PlanoEnsinoNotFoundError(f"{entidade.value} {entidade_id} not found")
        return record
