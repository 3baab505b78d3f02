# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for posting lessons."""

from datetime import date
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.lesson.service import (
    AulaForbiddenError,
    AulaLancadaService,
    AulaValidationError,
)
from dsicola.infrastructure.database.models import (
    AnoLetivo,
    AulaLancada,
    PlanoAula,
    PlanoEnsino,
    Trimestre,
)
from dsicola.models.lesson import AulaLancadaCreateRequest

INSTITUICAO_ID = str(uuid4())
PROFESSOR_ID = str(uuid4())


@pytest.fixture
def aula_service(mock_db):
    return AulaLancadaService(mock_db, INSTITUICAO_ID, "SECUNDARIO")


def _ano_letivo() -> AnoLetivo:
    ano = AnoLetivo(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        ano=2025,
        data_inicio=date(2025, 2, 1),
        data_fim=date(2025, 12, 15),
        status="ATIVO",
    )
    ano.trimestres = [
        Trimestre(
            id=str(uuid4()),
            instituicao_id=INSTITUICAO_ID,
            numero=numero,
            data_inicio=inicio,
            data_fim=fim,
        )
        for numero, inicio, fim in [
            (1, date(2025, 2, 1), date(2025, 4, 30)),
            (2, date(2025, 5, 5), date(2025, 8, 15)),
            (3, date(2025, 9, 1), date(2025, 12, 15)),
        ]
    ]
    return ano


def _planos(quantidade_aulas: int = 2, status: str = "APROVADO", ano_letivo_id: str = ""):
    plano = PlanoEnsino(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        professor_id=PROFESSOR_ID,
        disciplina_id=str(uuid4()),
        turma_id=str(uuid4()),
        ano_letivo_id=ano_letivo_id or str(uuid4()),
        status=status,
        bloqueado=False,
    )
    plano_aula = PlanoAula(
        id=str(uuid4()),
        plano_ensino_id=plano.id,
        ordem=1,
        titulo="Funções quadráticas",
        periodo=2,
        quantidade_aulas=quantidade_aulas,
    )
    return plano_aula, plano


def _joined(plano_aula, plano):
    result = MagicMock()
    result.first.return_value = (plano_aula, plano)
    return result


def _rows(*values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


def _request(plano_aula: PlanoAula, day: date) -> AulaLancadaCreateRequest:
    return AulaLancadaCreateRequest(plano_aula_id=plano_aula.id, data=day)


class TestLancarAula:
    """Tests for AulaLancadaService.lancar_aula."""

    @pytest.mark.asyncio
    async def test_lesson_takes_period_of_its_date(self, aula_service, mock_db):
        ano = _ano_letivo()
        plano_aula, plano = _planos(ano_letivo_id=ano.id)
        mock_db.get.return_value = ano
        mock_db.execute.side_effect = [_joined(plano_aula, plano), _rows(), _rows()]

        with patch("dsicola.domains.lesson.service.AulaLancadaResponse"):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 6, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )

        (aula,) = [
            c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], AulaLancada)
        ]
        assert aula.periodo == 2
        assert aula.plano_aula_id == plano_aula.id
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_date_outside_every_period(self, aula_service, mock_db):
        ano = _ano_letivo()
        plano_aula, plano = _planos(ano_letivo_id=ano.id)
        mock_db.get.return_value = ano
        mock_db.execute.side_effect = [_joined(plano_aula, plano)]

        # Between the first and second trimesters
        with pytest.raises(AulaValidationError, match="fora dos períodos"):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 5, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_date(self, aula_service, mock_db):
        ano = _ano_letivo()
        plano_aula, plano = _planos(quantidade_aulas=3, ano_letivo_id=ano.id)
        mock_db.get.return_value = ano
        mock_db.execute.side_effect = [
            _joined(plano_aula, plano),
            _rows(),
            _rows(date(2025, 6, 2)),
        ]

        with pytest.raises(AulaValidationError, match="já lançada"):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 6, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_planned_lessons_posted(self, aula_service, mock_db):
        ano = _ano_letivo()
        plano_aula, plano = _planos(quantidade_aulas=2, ano_letivo_id=ano.id)
        mock_db.get.return_value = ano
        mock_db.execute.side_effect = [
            _joined(plano_aula, plano),
            _rows(),
            _rows(date(2025, 5, 12), date(2025, 5, 19)),
        ]

        with pytest.raises(AulaValidationError, match="Todas as 2 aulas"):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 6, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_plano(self, aula_service, mock_db):
        plano_aula, plano = _planos(status="RASCUNHO")
        mock_db.execute.side_effect = [_joined(plano_aula, plano)]

        with pytest.raises(AulaValidationError, match="não está ativo"):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 6, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )

    @pytest.mark.asyncio
    async def test_closed_period_is_forbidden(self, aula_service, mock_db):
        ano = _ano_letivo()
        plano_aula, plano = _planos(ano_letivo_id=ano.id)
        mock_db.get.return_value = ano
        mock_db.execute.side_effect = [_joined(plano_aula, plano), _rows("TRIMESTRE_2")]

        with pytest.raises(AulaForbiddenError):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 6, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )

    @pytest.mark.asyncio
    async def test_professor_of_other_plano(self, aula_service, mock_db):
        plano_aula, plano = _planos()
        plano.professor_id = str(uuid4())
        mock_db.execute.side_effect = [_joined(plano_aula, plano)]

        with pytest.raises(AulaForbiddenError):
            await aula_service.lancar_aula(
                _request(plano_aula, date(2025, 6, 2)), PROFESSOR_ID, ["PROFESSOR"]
            )
