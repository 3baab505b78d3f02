# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for attendance frequency calculation."""

from dsicola.core.enums import SituacaoFrequencia
from dsicola.domains.attendance.frequency import calcular_frequencia


class TestCalcularFrequencia:
    """Tests for calcular_frequencia."""

    def test_regular_attendance(self) -> None:
        statuses = ["PRESENTE"] * 8 + ["AUSENTE"] * 2

        result = calcular_frequencia(10, statuses, 75)

        assert result.presencas == 8
        assert result.faltas == 2
        assert result.percentual == 80.0
        assert result.situacao == SituacaoFrequencia.REGULAR
        assert result.is_regular

    def test_justified_counts_as_present(self) -> None:
        statuses = ["PRESENTE"] * 6 + ["JUSTIFICADO"] * 2 + ["AUSENTE"] * 2

        result = calcular_frequencia(10, statuses, 75)

        assert result.justificadas == 2
        assert result.percentual == 80.0
        assert result.is_regular

    def test_lessons_without_record_are_absences(self) -> None:
        result = calcular_frequencia(4, ["PRESENTE", "PRESENTE"], 75)

        assert result.faltas == 2
        assert result.percentual == 50.0
        assert result.situacao == SituacaoFrequencia.IRREGULAR

    def test_percentage_rounded_half_up(self) -> None:
        result = calcular_frequencia(3, ["PRESENTE", "PRESENTE"], 75)

        assert result.percentual == 66.67

    def test_exactly_at_minimum_is_regular(self) -> None:
        result = calcular_frequencia(4, ["PRESENTE"] * 3 + ["AUSENTE"], 75)

        assert result.percentual == 75.0
        assert result.is_regular

    def test_no_lessons(self) -> None:
        result = calcular_frequencia(0, [], 75)

        assert result.total_aulas == 0
        assert result.percentual == 0.0
        assert result.situacao == SituacaoFrequencia.IRREGULAR
