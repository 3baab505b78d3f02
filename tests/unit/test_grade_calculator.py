# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the grade calculator."""

from datetime import date

import pytest

from dsicola.core.enums import SituacaoFinal, SituacaoFrequencia, StatusNota, TipoAcademico
from dsicola.domains.grading.calculator import (
    GradeCalculationError,
    NotaCalculo,
    calcular,
    calcular_secundario,
    calcular_superior,
    situacao_final,
    validar_notas,
)


def prova(valor: float, dia: int = 1, trimestre: int | None = None) -> NotaCalculo:
    return NotaCalculo(tipo="PROVA", valor=valor, data=date(2025, 3, dia), trimestre=trimestre)


def nota(tipo: str, valor: float, trimestre: int | None = None) -> NotaCalculo:
    return NotaCalculo(tipo=tipo, valor=valor, trimestre=trimestre)


class TestValidarNotas:
    """Tests for grade range validation."""

    def test_accepts_bounds(self) -> None:
        validar_notas([prova(0), prova(20)])

    @pytest.mark.parametrize("valor", [-0.5, 20.01, 25])
    def test_rejects_out_of_range(self, valor: float) -> None:
        with pytest.raises(GradeCalculationError, match="Nota inválida"):
            validar_notas([prova(valor)])


class TestCalcularSuperior:
    """Tests for higher education grading."""

    def test_average_of_provas(self) -> None:
        result = calcular_superior([prova(12, 1), prova(14, 2)])

        assert result.media_parcial == 13.0
        assert result.media_final == 13.0
        assert result.status == StatusNota.APROVADO
        assert [n.rotulo for n in result.notas_utilizadas] == ["P1", "P2"]

    def test_provas_labelled_by_date(self) -> None:
        result = calcular_superior([prova(8, 20), prova(16, 5)])

        assert result.notas_utilizadas[0].rotulo == "P1"
        assert result.notas_utilizadas[0].valor == 16

    def test_weighted_with_trabalho(self) -> None:
        result = calcular_superior([prova(10, 1), prova(12, 2), nota("TRABALHO", 16)])

        # (11 * 0.8) + (16 * 0.2)
        assert result.media_parcial == 12.0
        assert result.status == StatusNota.APROVADO
        assert "Trabalho × 0.2" in result.formula

    def test_below_minimum_without_recurso_fails(self) -> None:
        result = calcular_superior([prova(8, 1), prova(9, 2)])

        assert result.media_final == 8.5
        assert result.status == StatusNota.REPROVADO

    def test_threshold_compares_rounded_average(self) -> None:
        # 9.995 rounds half-up to 10.00
        result = calcular_superior([prova(9.99, 1), prova(10.0, 2)])

        assert result.media_parcial == 10.0
        assert result.status == StatusNota.APROVADO

    def test_recurso_pending_is_reprovado(self) -> None:
        result = calcular_superior([prova(8, 1), prova(8, 2)], permitir_recurso=True)

        assert result.media_parcial == 8.0
        assert result.status == StatusNota.REPROVADO

    def test_recurso_grade_applied(self) -> None:
        result = calcular_superior(
            [prova(8, 1), prova(8, 2), nota("RECUPERACAO", 14)],
            permitir_recurso=True,
        )

        assert result.media_final == 11.0
        assert result.status == StatusNota.APROVADO

    def test_recurso_grade_still_failing(self) -> None:
        result = calcular_superior(
            [prova(7, 1), prova(7, 2), nota("PROVA_FINAL", 10)],
            permitir_recurso=True,
        )

        assert result.media_final == 8.5
        assert result.status == StatusNota.REPROVADO

    def test_below_resit_threshold_ignores_recurso(self) -> None:
        result = calcular_superior(
            [prova(5, 1), prova(6, 2), nota("RECUPERACAO", 20)],
            permitir_recurso=True,
        )

        assert result.media_final == 5.5
        assert result.status == StatusNota.REPROVADO

    def test_recurso_disabled_warns(self) -> None:
        result = calcular_superior([prova(8, 1), prova(8, 2), nota("RECUPERACAO", 14)])

        assert result.status == StatusNota.REPROVADO
        assert any("recurso/exame está desativado" in o for o in result.observacoes)

    def test_without_provas(self) -> None:
        result = calcular_superior([nota("TRABALHO", 18)])

        assert result.media_final == 0.0
        assert result.status == StatusNota.REPROVADO
        assert result.formula == "Aguardando lançamento de provas"

    def test_single_prova_warns(self) -> None:
        result = calcular_superior([prova(15)])

        assert any("P2" in o for o in result.observacoes)


class TestCalcularSecundario:
    """Tests for secondary education grading."""

    def test_trimester_average(self) -> None:
        notas = [
            nota("TESTE", 12, 1),
            nota("TRABALHO", 14, 1),
            nota("PROVA", 10, 1),
        ]

        result = calcular_secundario(notas, trimestre=1)

        # contínua 13, prova 10
        assert result.media_final == 11.5
        assert result.medias_trimestrais == {1: 11.5}
        assert result.status == StatusNota.APROVADO

    def test_annual_average_of_trimesters(self) -> None:
        notas = [
            nota("TESTE", 10, 1),
            nota("PROVA", 12, 1),
            nota("TESTE", 8, 2),
            nota("EXAME", 8, 2),
            nota("TESTE", 14, 3),
            nota("PROVA", 16, 3),
        ]

        result = calcular_secundario(notas)

        assert result.medias_trimestrais == {1: 11.0, 2: 8.0, 3: 15.0}
        assert result.media_anual == 11.33
        assert result.status == StatusNota.APROVADO

    def test_only_continuous_assessment(self) -> None:
        result = calcular_secundario([nota("TESTE", 9, 2)], trimestre=2)

        assert result.media_final == 9.0
        assert result.status == StatusNota.REPROVADO
        assert any("Apenas avaliação contínua" in o for o in result.observacoes)

    def test_empty_trimester_raises(self) -> None:
        with pytest.raises(GradeCalculationError, match="3º trimestre"):
            calcular_secundario([nota("TESTE", 12, 1)], trimestre=3)

    def test_without_trimesters_uses_all_grades(self) -> None:
        result = calcular_secundario([nota("TESTE", 10), nota("PROVA", 13)])

        assert result.media_anual == 11.5
        assert result.medias_trimestrais == {}


class TestCalcular:
    """Tests for the dispatcher and final situation."""

    def test_no_grades(self) -> None:
        result = calcular(TipoAcademico.SUPERIOR, [])

        assert result.media_final == 0.0
        assert result.status == StatusNota.REPROVADO

    def test_dispatch_by_type(self) -> None:
        superior = calcular("SUPERIOR", [prova(14)])
        secundario = calcular("SECUNDARIO", [nota("TESTE", 14, 1)])

        assert superior.media_parcial == 14.0
        assert secundario.medias_trimestrais == {1: 14.0}

    def test_unknown_type(self) -> None:
        with pytest.raises(GradeCalculationError, match="não suportado"):
            calcular("TECNICO", [prova(10)])

    @pytest.mark.parametrize(
        ("status", "frequencia", "esperado"),
        [
            (StatusNota.APROVADO, SituacaoFrequencia.REGULAR, SituacaoFinal.APROVADO),
            (StatusNota.APROVADO, SituacaoFrequencia.IRREGULAR, SituacaoFinal.REPROVADO_FALTA),
            (StatusNota.REPROVADO, "REGULAR", SituacaoFinal.REPROVADO),
            (None, "REGULAR", SituacaoFinal.EM_CURSO),
            (StatusNota.EXAME_RECURSO, "REGULAR", SituacaoFinal.EM_CURSO),
        ],
    )
    def test_situacao_final(self, status, frequencia, esperado) -> None:
        assert situacao_final(status, frequencia) is esperado
