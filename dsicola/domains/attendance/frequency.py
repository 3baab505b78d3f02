# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance frequency calculation.

Frequency of a student in a plano de ensino is measured against the lessons
actually posted. JUSTIFICADO absences count as presences; a posted lesson
without a record counts as a falta.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from dsicola.core.enums import SituacaoFrequencia, StatusPresenca
from dsicola.utils.rounding import round_half_up


@dataclass(frozen=True)
class Frequencia:
    """Attendance summary of one student in one plano.

    Attributes:
        total_aulas: Lessons posted for the plano.
        presencas: PRESENTE records.
        justificadas: JUSTIFICADO records.
        faltas: Posted lessons not counted as present or justified.
        percentual: (presencas + justificadas) / total_aulas * 100, 2 decimals.
        situacao: REGULAR or IRREGULAR.
    """

    total_aulas: int
    presencas: int
    justificadas: int
    faltas: int
    percentual: float
    situacao: SituacaoFrequencia

    @property
    def is_regular(self) -> bool:
        return self.situacao == SituacaoFrequencia.REGULAR


def calcular_frequencia(
    total_aulas: int,
    statuses: Iterable[str],
    frequencia_minima: float,
) -> Frequencia:
    """Summarise the attendance records of a student.

    Args:
        total_aulas: Number of lessons posted for the plano.
        statuses: Status of each attendance record of the student.
        frequencia_minima: Minimum percentage for REGULAR attendance.

    Returns:
        The frequency summary. Without posted lessons the percentage is 0
        and the situation is IRREGULAR.
    """
    presencas = 0
    justificadas = 0
    for status in statuses:
        if status == StatusPresenca.PRESENTE.value:
            presencas += 1
        elif status == StatusPresenca.JUSTIFICADO.value:
            justificadas += 1

    if total_aulas <= 0:
        return Frequencia(
            total_aulas=0,
            presencas=presencas,
            justificadas=justificadas,
            faltas=0,
            percentual=0.0,
            situacao=SituacaoFrequencia.IRREGULAR,
        )

    percentual = round_half_up((presencas + justificadas) / total_aulas * 100)
    situacao = (
        SituacaoFrequencia.REGULAR
        if percentual >= float(frequencia_minima)
        else SituacaoFrequencia.IRREGULAR
    )
    return Frequencia(
        total_aulas=total_aulas,
        presencas=presencas,
        justificadas=justificadas,
        faltas=max(total_aulas - presencas - justificadas, 0),
        percentual=percentual,
        situacao=situacao,
    )
