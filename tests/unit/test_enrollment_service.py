# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for annual and turma enrollments."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.enrollment.service import (
    AlreadyEnrolledError,
    EnrollmentService,
    EnrollmentValidationError,
)
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    Classe,
    Matricula,
    MatriculaAnual,
    Turma,
    User,
    UserRoleAssignment,
)
from dsicola.models.enrollment import MatriculaAnualCreateRequest, MatriculaCreateRequest

INSTITUICAO_ID = str(uuid4())
SECRETARIA_ID = str(uuid4())
ANO_LETIVO_ID = str(uuid4())


@pytest.fixture
def enrollment_service(mock_db):
    return EnrollmentService(mock_db, INSTITUICAO_ID, "SECUNDARIO")


@pytest.fixture
def superior_service(mock_db):
    return EnrollmentService(mock_db, INSTITUICAO_ID, "SUPERIOR")


def _aluno(role: str = "ALUNO") -> User:
    user = User(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        email="aluno@escola.ao",
        password_hash="hash",
        nome_completo="Pedro Aluno",
        is_active=True,
    )
    user.roles = [UserRoleAssignment(role=role)]
    return user


def _turma(capacidade: int = 30, **overrides) -> Turma:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "ano_letivo_id": ANO_LETIVO_ID,
        "nome": "10ª A",
        "capacidade": capacidade,
    }
    values.update(overrides)
    return Turma(**values)


def _anual(aluno: User, nivel: str = "SECUNDARIO", **overrides) -> MatriculaAnual:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "aluno_id": aluno.id,
        "ano_letivo_id": ANO_LETIVO_ID,
        "nivel_ensino": nivel,
        "status": "ATIVA",
    }
    values.update(overrides)
    return MatriculaAnual(**values)


def _loaded(record):
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    result.scalars.return_value.first.return_value = record
    return result


def _count(value: int):
    result = MagicMock()
    result.scalar.return_value = value
    return result


def _added(mock_db, model) -> list:
    return [call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], model)]


class TestEnrollStudent:
    """Tests for EnrollmentService.enroll_student."""

    @pytest.mark.asyncio
    async def test_enrolls_with_free_seat(self, enrollment_service, mock_db):
        aluno = _aluno()
        classe_id = str(uuid4())
        turma = _turma(capacidade=30, classe_id=classe_id)
        anual = _anual(aluno, classe_id=classe_id)
        mock_db.execute.side_effect = [
            _loaded(aluno),
            _loaded(turma),
            _loaded(anual),
            _loaded(None),
            _count(29),
        ]

        with patch("dsicola.domains.enrollment.service.MatriculaResponse"):
            await enrollment_service.enroll_student(
                MatriculaCreateRequest(aluno_id=aluno.id, turma_id=turma.id), SECRETARIA_ID
            )

        (matricula,) = _added(mock_db, Matricula)
        assert matricula.status == "ATIVA"
        assert matricula.matricula_anual_id == anual.id
        assert matricula.ano_letivo_id == ANO_LETIVO_ID
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_full_turma_is_rejected(self, enrollment_service, mock_db):
        aluno = _aluno()
        turma = _turma(capacidade=25)
        mock_db.execute.side_effect = [
            _loaded(aluno),
            _loaded(turma),
            _loaded(_anual(aluno)),
            _loaded(None),
            _count(25),
        ]

        with pytest.raises(EnrollmentValidationError, match="capacidade 25"):
            await enrollment_service.enroll_student(
                MatriculaCreateRequest(aluno_id=aluno.id, turma_id=turma.id), SECRETARIA_ID
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_annual_enrollment(self, enrollment_service, mock_db):
        aluno = _aluno()
        turma = _turma()
        mock_db.execute.side_effect = [_loaded(aluno), _loaded(turma), _loaded(None)]

        with pytest.raises(EnrollmentValidationError, match="matrícula anual ativa"):
            await enrollment_service.enroll_student(
                MatriculaCreateRequest(aluno_id=aluno.id, turma_id=turma.id), SECRETARIA_ID
            )

    @pytest.mark.asyncio
    async def test_turma_of_other_classe(self, enrollment_service, mock_db):
        aluno = _aluno()
        turma = _turma(classe_id=str(uuid4()))
        anual = _anual(aluno, classe_id=str(uuid4()))
        mock_db.execute.side_effect = [_loaded(aluno), _loaded(turma), _loaded(anual)]

        with pytest.raises(EnrollmentValidationError, match="outra classe"):
            await enrollment_service.enroll_student(
                MatriculaCreateRequest(aluno_id=aluno.id, turma_id=turma.id), SECRETARIA_ID
            )

    @pytest.mark.asyncio
    async def test_turma_of_other_curso(self, superior_service, mock_db):
        aluno = _aluno()
        turma = _turma(curso_id=str(uuid4()), semestre=1)
        anual = _anual(aluno, "SUPERIOR", curso_id=str(uuid4()))
        mock_db.execute.side_effect = [_loaded(aluno), _loaded(turma), _loaded(anual)]

        with pytest.raises(EnrollmentValidationError, match="outro curso"):
            await superior_service.enroll_student(
                MatriculaCreateRequest(aluno_id=aluno.id, turma_id=turma.id), SECRETARIA_ID
            )

    @pytest.mark.asyncio
    async def test_already_in_turma(self, enrollment_service, mock_db):
        aluno = _aluno()
        turma = _turma()
        mock_db.execute.side_effect = [
            _loaded(aluno),
            _loaded(turma),
            _loaded(_anual(aluno)),
            _loaded(str(uuid4())),
        ]

        with pytest.raises(AlreadyEnrolledError):
            await enrollment_service.enroll_student(
                MatriculaCreateRequest(aluno_id=aluno.id, turma_id=turma.id), SECRETARIA_ID
            )

    @pytest.mark.asyncio
    async def test_user_without_aluno_role(self, enrollment_service, mock_db):
        professor = _aluno("PROFESSOR")
        mock_db.execute.side_effect = [_loaded(professor)]

        with pytest.raises(EnrollmentValidationError, match="perfil ALUNO"):
            await enrollment_service.enroll_student(
                MatriculaCreateRequest(aluno_id=professor.id, turma_id=str(uuid4())),
                SECRETARIA_ID,
            )


class TestCreateMatriculaAnual:
    """Tests for EnrollmentService.create_matricula_anual."""

    @pytest.mark.asyncio
    async def test_second_active_enrollment_conflicts(self, enrollment_service, mock_db):
        aluno = _aluno()
        classe = Classe(id=str(uuid4()), instituicao_id=INSTITUICAO_ID, nome="10ª Classe")
        mock_db.execute.side_effect = [
            _loaded(aluno),
            _loaded(AnoLetivo(id=ANO_LETIVO_ID, instituicao_id=INSTITUICAO_ID, ano=2025)),
            _loaded(classe),
            _loaded(_anual(aluno)),
        ]

        with pytest.raises(AlreadyEnrolledError, match="ativa"):
            await enrollment_service.create_matricula_anual(
                MatriculaAnualCreateRequest(
                    aluno_id=aluno.id,
                    ano_letivo_id=ANO_LETIVO_ID,
                    nivel_ensino="SECUNDARIO",
                    classe_id=classe.id,
                ),
                SECRETARIA_ID,
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_level_must_match_institution(self, enrollment_service, mock_db):
        aluno = _aluno()
        mock_db.execute.side_effect = [
            _loaded(aluno),
            _loaded(AnoLetivo(id=ANO_LETIVO_ID, instituicao_id=INSTITUICAO_ID, ano=2025)),
        ]

        with pytest.raises(EnrollmentValidationError, match="não corresponde"):
            await enrollment_service.create_matricula_anual(
                MatriculaAnualCreateRequest(
                    aluno_id=aluno.id,
                    ano_letivo_id=ANO_LETIVO_ID,
                    nivel_ensino="SUPERIOR",
                    curso_id=str(uuid4()),
                ),
                SECRETARIA_ID,
            )

    @pytest.mark.asyncio
    async def test_secondary_requires_classe(self, enrollment_service, mock_db):
        aluno = _aluno()
        mock_db.execute.side_effect = [
            _loaded(aluno),
            _loaded(AnoLetivo(id=ANO_LETIVO_ID, instituicao_id=INSTITUICAO_ID, ano=2025)),
        ]

        with pytest.raises(EnrollmentValidationError, match="Classe é obrigatória"):
            await enrollment_service.create_matricula_anual(
                MatriculaAnualCreateRequest(
                    aluno_id=aluno.id, ano_letivo_id=ANO_LETIVO_ID, nivel_ensino="SECUNDARIO"
                ),
                SECRETARIA_ID,
            )
