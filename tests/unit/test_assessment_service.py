# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for grade entry and grade corrections."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.academic_closing.service import PeriodoEncerradoError
from dsicola.domains.assessment.service import (
    AssessmentForbiddenError,
    AssessmentService,
    AssessmentValidationError,
)
from dsicola.infrastructure.database.models import Avaliacao, Nota, NotaHistorico, PlanoEnsino
from dsicola.models.assessment import NotaLoteItem, NotaLoteRequest

INSTITUICAO_ID = str(uuid4())
PROFESSOR_ID = str(uuid4())
ALUNO_ID = str(uuid4())


@pytest.fixture
def assessment_service(mock_db):
    service = AssessmentService(mock_db, INSTITUICAO_ID, "SECUNDARIO")
    service.posting_windows.verificar_lancamento_aberto = AsyncMock()
    service.closing.verificar_periodo_aberto = AsyncMock()
    return service


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


def _avaliacao(plano: PlanoEnsino, **overrides) -> Avaliacao:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "plano_ensino_id": plano.id,
        "turma_id": plano.turma_id,
        "tipo": "PROVA",
        "nome": "Prova 1",
        "data": date(2025, 3, 10),
        "peso": Decimal("1"),
        "trimestre": 1,
        "fechada": False,
    }
    values.update(overrides)
    return Avaliacao(**values)


def _nota(avaliacao: Avaliacao, valor: str = "10") -> Nota:
    return Nota(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        avaliacao_id=avaliacao.id,
        aluno_id=ALUNO_ID,
        plano_ensino_id=avaliacao.plano_ensino_id,
        valor=Decimal(valor),
    )


def _loaded(record):
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    return result


def _rows(*values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


def _lote(avaliacao: Avaliacao, *notas: tuple[str, str]) -> NotaLoteRequest:
    return NotaLoteRequest(
        avaliacao_id=avaliacao.id,
        notas=[NotaLoteItem(aluno_id=a, valor=Decimal(v)) for a, v in notas],
    )


def _added(mock_db, model) -> list:
    return [call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], model)]


class TestLancarNotasLote:
    """Tests for AssessmentService.lancar_notas_lote."""

    @pytest.mark.asyncio
    async def test_changed_grade_keeps_history(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        nota = _nota(avaliacao, "10")
        mock_db.execute.side_effect = [
            _loaded(avaliacao),
            _loaded(plano),
            _rows(ALUNO_ID),
            _rows(nota),
        ]

        with patch("dsicola.domains.assessment.service.NotaResponse"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["PROFESSOR"]
            )

        historico = _added(mock_db, NotaHistorico)
        assert len(historico) == 1
        assert historico[0].nota_id == nota.id
        assert historico[0].valor_anterior == Decimal("10")
        assert historico[0].valor_novo == Decimal("14")
        assert historico[0].alterado_por == PROFESSOR_ID
        assert nota.valor == Decimal("14")
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unchanged_grade_has_no_history(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        nota = _nota(avaliacao, "12")
        mock_db.execute.side_effect = [
            _loaded(avaliacao),
            _loaded(plano),
            _rows(ALUNO_ID),
            _rows(nota),
        ]

        with patch("dsicola.domains.assessment.service.NotaResponse"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "12")), PROFESSOR_ID, ["PROFESSOR"]
            )

        assert _added(mock_db, NotaHistorico) == []

    @pytest.mark.asyncio
    async def test_new_grade_is_created(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [
            _loaded(avaliacao),
            _loaded(plano),
            _rows(ALUNO_ID),
            _rows(),
        ]

        with patch("dsicola.domains.assessment.service.NotaResponse"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "15.5")), PROFESSOR_ID, ["PROFESSOR"]
            )

        (nota,) = _added(mock_db, Nota)
        assert nota.valor == Decimal("15.5")
        assert nota.plano_ensino_id == plano.id
        assert nota.lancado_por == PROFESSOR_ID

    @pytest.mark.asyncio
    async def test_blocked_plano_rejects_grades(self, assessment_service, mock_db):
        plano = _plano("BLOQUEADO", bloqueado=True)
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano)]

        with pytest.raises(AssessmentValidationError, match="não está ativo"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_approved_but_blocked_plano_rejects_grades(self, assessment_service, mock_db):
        plano = _plano("APROVADO", bloqueado=True)
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano)]

        with pytest.raises(AssessmentValidationError, match="não está ativo"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["ADMIN"]
            )

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_avaliacao_rejects_grades(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano, fechada=True)
        mock_db.execute.side_effect = [_loaded(avaliacao)]

        with pytest.raises(AssessmentValidationError, match="fechada"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["PROFESSOR"]
            )

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_period_is_forbidden(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano)]
        assessment_service.closing.verificar_periodo_aberto.side_effect = PeriodoEncerradoError(
            "1º trimestre está ENCERRADO"
        )

        with pytest.raises(AssessmentForbiddenError, match="ENCERRADO"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["PROFESSOR"]
            )

        assessment_service.closing.verificar_periodo_aberto.assert_awaited_once_with(
            plano.ano_letivo_id, 1
        )
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_repeated_student_in_batch(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano)]

        with pytest.raises(AssessmentValidationError, match="repetido"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14"), (ALUNO_ID, "16")),
                PROFESSOR_ID,
                ["PROFESSOR"],
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_grade_above_scale(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano)]

        with pytest.raises(AssessmentValidationError, match="entre 0 e 20"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "20.5")), PROFESSOR_ID, ["PROFESSOR"]
            )

    @pytest.mark.asyncio
    async def test_student_of_other_institution(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano), _rows()]

        with pytest.raises(AssessmentValidationError, match="não pertencem"):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["PROFESSOR"]
            )

    @pytest.mark.asyncio
    async def test_professor_of_other_plano(self, assessment_service, mock_db):
        plano = _plano(professor_id=str(uuid4()))
        avaliacao = _avaliacao(plano)
        mock_db.execute.side_effect = [_loaded(avaliacao), _loaded(plano)]

        with pytest.raises(AssessmentForbiddenError):
            await assessment_service.lancar_notas_lote(
                _lote(avaliacao, (ALUNO_ID, "14")), PROFESSOR_ID, ["PROFESSOR"]
            )


class TestCorrigirNota:
    """Tests for AssessmentService.corrigir_nota."""

    @pytest.mark.asyncio
    async def test_correction_records_reason(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        nota = _nota(avaliacao, "8")
        mock_db.execute.side_effect = [_loaded(nota), _loaded(avaliacao), _loaded(plano)]

        with patch("dsicola.domains.assessment.service.NotaResponse"):
            await assessment_service.corrigir_nota(
                nota.id, Decimal("11"), "  Erro de transcrição da pauta  ", PROFESSOR_ID
            )

        (historico,) = _added(mock_db, NotaHistorico)
        assert historico.valor_anterior == Decimal("8")
        assert historico.valor_novo == Decimal("11")
        assert historico.motivo == "Erro de transcrição da pauta"
        assert nota.valor == Decimal("11")
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_short_justification(self, assessment_service, mock_db):
        with pytest.raises(AssessmentValidationError, match="pelo menos 10"):
            await assessment_service.corrigir_nota(
                str(uuid4()), Decimal("11"), "  erro    ", PROFESSOR_ID
            )

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_blocked_plano_rejects_correction(self, assessment_service, mock_db):
        plano = _plano("BLOQUEADO", bloqueado=True)
        avaliacao = _avaliacao(plano)
        nota = _nota(avaliacao, "8")
        mock_db.execute.side_effect = [_loaded(nota), _loaded(avaliacao), _loaded(plano)]

        with pytest.raises(AssessmentValidationError, match="não está ativo"):
            await assessment_service.corrigir_nota(
                nota.id, Decimal("11"), "Erro de transcrição da pauta", PROFESSOR_ID
            )

        assert nota.valor == Decimal("8")
        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_avaliacao_rejects_correction(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano, fechada=True)
        nota = _nota(avaliacao, "8")
        mock_db.execute.side_effect = [_loaded(nota), _loaded(avaliacao)]

        with pytest.raises(AssessmentValidationError, match="fechada"):
            await assessment_service.corrigir_nota(
                nota.id, Decimal("11"), "Erro de transcrição da pauta", PROFESSOR_ID
            )

    @pytest.mark.asyncio
    async def test_closed_period_rejects_correction(self, assessment_service, mock_db):
        plano = _plano()
        avaliacao = _avaliacao(plano)
        nota = _nota(avaliacao, "8")
        mock_db.execute.side_effect = [_loaded(nota), _loaded(avaliacao), _loaded(plano)]
        assessment_service.closing.verificar_periodo_aberto.side_effect = PeriodoEncerradoError(
            "Ano letivo encerrado"
        )

        with pytest.raises(AssessmentForbiddenError):
            await assessment_service.corrigir_nota(
                nota.id, Decimal("11"), "Erro de transcrição da pauta", PROFESSOR_ID
            )

        mock_db.commit.assert_not_called()
