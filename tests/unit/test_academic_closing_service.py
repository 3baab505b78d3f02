# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the academic closing service."""

from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from dsicola.core.enums import PeriodoEncerramento
from dsicola.domains.academic_closing.service import (
    AcademicClosingService,
    ClosingNotFoundError,
    ClosingPrerequisitesError,
    ClosingValidationError,
    PeriodoEncerradoError,
)
from dsicola.infrastructure.database.models import EncerramentoAcademico

INSTITUICAO_ID = str(uuid4())


@pytest.fixture
def superior_service(mock_db):
    return AcademicClosingService(mock_db, INSTITUICAO_ID, "SUPERIOR")


@pytest.fixture
def secundario_service(mock_db):
    return AcademicClosingService(mock_db, INSTITUICAO_ID, "SECUNDARIO")


def _scalar_one(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _scalar(value):
    result = MagicMock()
    result.scalar.return_value = value
    return result


def _ano_letivo(**periodos):
    ano = MagicMock()
    ano.id = str(uuid4())
    ano.semestres = periodos.get("semestres", [])
    ano.trimestres = periodos.get("trimestres", [])
    return ano


class TestPeriodValidation:
    """Tests for period keys by institution type."""

    @pytest.mark.asyncio
    async def test_superior_has_no_trimesters(self, superior_service, mock_db):
        with pytest.raises(ClosingValidationError, match="trimestres"):
            await superior_service.encerrar(str(uuid4()), PeriodoEncerramento.TRIMESTRE_1, "admin")
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_secundario_has_no_semesters(self, secundario_service):
        with pytest.raises(ClosingValidationError, match="semestres"):
            await secundario_service.iniciar(str(uuid4()), PeriodoEncerramento.SEMESTRE_2, "admin")

    @pytest.mark.asyncio
    async def test_missing_ano_letivo(self, superior_service, mock_db):
        mock_db.execute.side_effect = [_scalar_one(None)]

        with pytest.raises(ClosingNotFoundError):
            await superior_service.encerrar(str(uuid4()), PeriodoEncerramento.ANO, "admin")


class TestEncerrarAno:
    """Tests for closing the whole academic year."""

    @pytest.mark.asyncio
    async def test_lists_every_unmet_prerequisite(self, superior_service, mock_db):
        ano = _ano_letivo(
            semestres=[
                SimpleNamespace(numero=1, status="ENCERRADO"),
                SimpleNamespace(numero=2, status="ATIVO"),
            ]
        )
        encerramento = EncerramentoAcademico(
            id=str(uuid4()),
            instituicao_id=INSTITUICAO_ID,
            ano_letivo_id=ano.id,
            periodo="ANO",
            status="ABERTO",
        )
        mock_db.execute.side_effect = [
            _scalar_one(ano),
            _scalar_one(encerramento),
            _scalar(2),
            _scalar(3),
        ]

        with pytest.raises(ClosingPrerequisitesError) as exc_info:
            await superior_service.encerrar(ano.id, PeriodoEncerramento.ANO, "admin")

        assert exc_info.value.falhas == [
            "Semestre 2 não está encerrado",
            "2 plano(s) de ensino aprovado(s) não bloqueado(s)",
            "3 avaliação(ões) ainda não fechada(s) no ano letivo",
        ]
        assert encerramento.status == "ABERTO"
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_already_closed(self, superior_service, mock_db):
        ano = _ano_letivo()
        encerramento = EncerramentoAcademico(
            id=str(uuid4()), ano_letivo_id=ano.id, periodo="ANO", status="ENCERRADO"
        )
        mock_db.execute.side_effect = [_scalar_one(ano), _scalar_one(encerramento)]

        with pytest.raises(ClosingValidationError, match="já está encerrado"):
            await superior_service.encerrar(ano.id, PeriodoEncerramento.ANO, "admin")


class TestReabrir:
    """Tests for reopening periods."""

    @pytest.mark.asyncio
    async def test_requires_justification(self, superior_service, mock_db):
        with pytest.raises(ClosingValidationError, match="Justificativa"):
            await superior_service.reabrir(str(uuid4()), PeriodoEncerramento.ANO, "curta", "admin")
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_period_not_closed(self, superior_service, mock_db):
        ano = _ano_letivo()
        mock_db.execute.side_effect = [_scalar_one(ano), _scalar_one(None)]

        with pytest.raises(ClosingValidationError, match="não está encerrado"):
            await superior_service.reabrir(
                ano.id,
                PeriodoEncerramento.SEMESTRE_1,
                "Correção de notas lançadas com erro",
                "admin",
            )


class TestVerificarPeriodoAberto:
    """Tests for the closed period guard."""

    @pytest.mark.asyncio
    async def test_open_period_passes(self, secundario_service, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_db.execute.return_value = result

        await secundario_service.verificar_periodo_aberto(str(uuid4()), 2)

    @pytest.mark.asyncio
    async def test_closed_period_raises(self, secundario_service, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = ["TRIMESTRE_2"]
        mock_db.execute.return_value = result

        with pytest.raises(PeriodoEncerradoError, match="TRIMESTRE_2"):
            await secundario_service.verificar_periodo_aberto(str(uuid4()), 2)
