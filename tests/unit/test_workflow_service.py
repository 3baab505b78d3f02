# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for workflow transitions of planos de ensino."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.core.enums import EntidadeWorkflow, StatusWorkflow
from dsicola.domains.teaching_plan.service import (
    PlanoEnsinoConflictError,
    PlanoEnsinoForbiddenError,
    PlanoEnsinoNotFoundError,
    PlanoEnsinoValidationError,
    WorkflowService,
)
from dsicola.infrastructure.database.models import PlanoEnsino, WorkflowLog

INSTITUICAO_ID = str(uuid4())
PROFESSOR_ID = str(uuid4())


@pytest.fixture
def workflow_service(mock_db):
    """Create workflow service with mock database."""
    return WorkflowService(mock_db, INSTITUICAO_ID)


def _plano(status: str, **overrides) -> PlanoEnsino:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "professor_id": PROFESSOR_ID,
        "disciplina_id": str(uuid4()),
        "turma_id": str(uuid4()),
        "ano_letivo_id": str(uuid4()),
        "status": status,
        "bloqueado": False,
    }
    values.update(overrides)
    return PlanoEnsino(**values)


def _loaded(record):
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    return result


def _approved(plano_id):
    result = MagicMock()
    result.scalars.return_value.first.return_value = plano_id
    return result


def _added_log(mock_db) -> WorkflowLog:
    return next(
        call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], WorkflowLog)
    )


class TestPlanoTransitions:
    """Tests for WorkflowService.transition on planos."""

    @pytest.mark.asyncio
    async def test_professor_submits_own_plano(self, workflow_service, mock_db):
        plano = _plano("RASCUNHO")
        mock_db.execute.side_effect = [_loaded(plano)]

        with patch("dsicola.domains.teaching_plan.service.WorkflowLogResponse"):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO,
                plano.id,
                StatusWorkflow.SUBMETIDO,
                PROFESSOR_ID,
                ["PROFESSOR"],
            )

        assert plano.status == "SUBMETIDO"
        assert plano.estado == "EM_REVISAO"
        log = _added_log(mock_db)
        assert log.status_anterior == "RASCUNHO"
        assert log.status_novo == "SUBMETIDO"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_professor_cannot_move_other_plano(self, workflow_service, mock_db):
        plano = _plano("RASCUNHO")
        mock_db.execute.side_effect = [_loaded(plano)]

        with pytest.raises(PlanoEnsinoForbiddenError, match="próprios planos"):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO,
                plano.id,
                StatusWorkflow.SUBMETIDO,
                str(uuid4()),
                ["PROFESSOR"],
            )
        assert plano.status == "RASCUNHO"

    @pytest.mark.asyncio
    async def test_invalid_transition(self, workflow_service, mock_db):
        plano = _plano("RASCUNHO")
        mock_db.execute.side_effect = [_loaded(plano)]

        with pytest.raises(PlanoEnsinoValidationError, match="Transição inválida"):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO, plano.id, StatusWorkflow.APROVADO, "admin", ["ADMIN"]
            )

    @pytest.mark.asyncio
    async def test_role_not_allowed(self, workflow_service, mock_db):
        plano = _plano("SUBMETIDO")
        mock_db.execute.side_effect = [_loaded(plano)]

        with pytest.raises(PlanoEnsinoForbiddenError):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO,
                plano.id,
                StatusWorkflow.APROVADO,
                PROFESSOR_ID,
                ["PROFESSOR"],
            )

    @pytest.mark.asyncio
    async def test_approval_sets_approver(self, workflow_service, mock_db):
        plano = _plano("SUBMETIDO")
        mock_db.execute.side_effect = [_loaded(plano), _approved(None)]

        with patch("dsicola.domains.teaching_plan.service.WorkflowLogResponse"):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO, plano.id, StatusWorkflow.APROVADO, "sec", ["SECRETARIA"]
            )

        assert plano.status == "APROVADO"
        assert plano.aprovado_por == "sec"
        assert plano.data_aprovacao is not None

    @pytest.mark.asyncio
    async def test_second_approved_plano_conflicts(self, workflow_service, mock_db):
        plano = _plano("SUBMETIDO")
        mock_db.execute.side_effect = [_loaded(plano), _approved(str(uuid4()))]

        with pytest.raises(PlanoEnsinoConflictError):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO, plano.id, StatusWorkflow.APROVADO, "admin", ["ADMIN"]
            )
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_block_and_unblock(self, workflow_service, mock_db):
        plano = _plano("APROVADO")
        mock_db.execute.side_effect = [_loaded(plano), _loaded(plano), _approved(None)]

        with patch("dsicola.domains.teaching_plan.service.WorkflowLogResponse"):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO, plano.id, StatusWorkflow.BLOQUEADO, "admin", ["ADMIN"]
            )
            assert plano.bloqueado is True
            assert plano.estado == "ENCERRADO"

            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO, plano.id, StatusWorkflow.APROVADO, "admin", ["ADMIN"]
            )

        assert plano.bloqueado is False
        assert plano.bloqueado_por is None
        assert plano.status == "APROVADO"

    @pytest.mark.asyncio
    async def test_missing_plano(self, workflow_service, mock_db):
        mock_db.execute.side_effect = [_loaded(None)]

        with pytest.raises(PlanoEnsinoNotFoundError):
            await workflow_service.transition(
                EntidadeWorkflow.PLANO_ENSINO, str(uuid4()), StatusWorkflow.SUBMETIDO, "x", ["ADMIN"]
            )
