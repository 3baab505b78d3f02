# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for attendance recording."""

from datetime import date
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.attendance.service import (
    AttendanceForbiddenError,
    AttendanceService,
    AttendanceValidationError,
)
from dsicola.infrastructure.database.models import AulaLancada, PlanoEnsino, Presenca
from dsicola.models.attendance import PresencaItem, PresencaLoteRequest

INSTITUICAO_ID = str(uuid4())
PROFESSOR_ID = str(uuid4())
ALUNO_ID = str(uuid4())


@pytest.fixture
def attendance_service(mock_db):
    return AttendanceService(mock_db, INSTITUICAO_ID, "SECUNDARIO")


def _plano(status: str = "APROVADO", **overrides) -> PlanoEnsino:
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


def _aula(plano: PlanoEnsino, periodo: int = 2) -> AulaLancada:
    return AulaLancada(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        plano_ensino_id=plano.id,
        plano_aula_id=str(uuid4()),
        data=date(2025, 5, 12),
        periodo=periodo,
    )


def _loaded(record):
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    return result


def _rows(*values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


def _lote(aula: AulaLancada, *presencas: tuple[str, str]) -> PresencaLoteRequest:
    return PresencaLoteRequest(
        aula_lancada_id=aula.id,
        presencas=[PresencaItem(aluno_id=a, status=s) for a, s in presencas],
    )


class TestRegistrarPresencas:
    """Tests for AttendanceService.registrar_presencas."""

    @pytest.mark.asyncio
    async def test_records_new_attendance(self, attendance_service, mock_db):
        plano = _plano()
        aula = _aula(plano)
        mock_db.execute.side_effect = [
            _loaded(aula),
            _loaded(plano),
            _rows(),  # no closed period
            _rows(ALUNO_ID),
            _rows(),
        ]

        with patch("dsicola.domains.attendance.service.PresencaResponse"):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "AUSENTE")), PROFESSOR_ID, ["PROFESSOR"]
            )

        (presenca,) = [
            c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], Presenca)
        ]
        assert presenca.status == "AUSENTE"
        assert presenca.origem == "MANUAL"
        assert presenca.registrado_por == PROFESSOR_ID
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inactive_plano_is_rejected(self, attendance_service, mock_db):
        plano = _plano("SUBMETIDO")
        aula = _aula(plano)
        mock_db.execute.side_effect = [_loaded(aula), _loaded(plano)]

        with pytest.raises(AttendanceValidationError, match="não está ativo"):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "PRESENTE")), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_blocked_plano_is_rejected(self, attendance_service, mock_db):
        plano = _plano("APROVADO", bloqueado=True)
        aula = _aula(plano)
        mock_db.execute.side_effect = [_loaded(aula), _loaded(plano)]

        with pytest.raises(AttendanceValidationError):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "PRESENTE")), PROFESSOR_ID, ["ADMIN"]
            )

    @pytest.mark.asyncio
    async def test_closed_trimester_is_forbidden(self, attendance_service, mock_db):
        plano = _plano()
        aula = _aula(plano, periodo=2)
        mock_db.execute.side_effect = [
            _loaded(aula),
            _loaded(plano),
            _rows("TRIMESTRE_2"),
        ]

        with pytest.raises(AttendanceForbiddenError, match="TRIMESTRE_2"):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "PRESENTE")), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_year_is_forbidden(self, attendance_service, mock_db):
        plano = _plano()
        aula = _aula(plano)
        mock_db.execute.side_effect = [_loaded(aula), _loaded(plano), _rows("ANO")]

        with pytest.raises(AttendanceForbiddenError, match="ANO"):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "PRESENTE")), PROFESSOR_ID, ["ADMIN"]
            )

    @pytest.mark.asyncio
    async def test_repeated_student_in_batch(self, attendance_service, mock_db):
        plano = _plano()
        aula = _aula(plano)
        mock_db.execute.side_effect = [_loaded(aula), _loaded(plano), _rows()]

        with pytest.raises(AttendanceValidationError, match="repetido"):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "PRESENTE"), (ALUNO_ID, "AUSENTE")),
                PROFESSOR_ID,
                ["PROFESSOR"],
            )

    @pytest.mark.asyncio
    async def test_professor_of_other_plano(self, attendance_service, mock_db):
        plano = _plano(professor_id=str(uuid4()))
        aula = _aula(plano)
        mock_db.execute.side_effect = [_loaded(aula), _loaded(plano)]

        with pytest.raises(AttendanceForbiddenError):
            await attendance_service.registrar_presencas(
                _lote(aula, (ALUNO_ID, "PRESENTE")), PROFESSOR_ID, ["PROFESSOR"]
            )
