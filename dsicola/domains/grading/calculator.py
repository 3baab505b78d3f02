# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade calculation for higher and secondary education.

Grades use the 0-20 scale. Every average is rounded half-up to two decimals
and the approval thresholds are compared against the rounded values.

Higher education (SUPERIOR):
- Provas are ordered by date and labelled P1, P2, P3...
- Media parcial: average of the provas, or
  ``media_provas * 0.8 + trabalho * 0.2`` when a trabalho exists
- MP >= minimum is APROVADO; MP >= resit threshold with recurso enabled is
  EXAME_RECURSO; anything else is REPROVADO
- With a recurso grade and EXAME_RECURSO, MF = (MP + recurso) / 2

Secondary education (SECUNDARIO):
- Media trimestral: (avaliação contínua + prova) / 2
- Media anual: average of the trimester averages
"""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from dsicola.core.enums import (
    SituacaoFinal,
    SituacaoFrequencia,
    StatusNota,
    TipoAcademico,
    TipoAvaliacao,
)
from dsicola.utils.rounding import round_half_up

NOTA_MINIMA = 0.0
NOTA_MAXIMA = 20.0
PESO_PROVAS = 0.8
PESO_TRABALHO = 0.2

TIPOS_RECURSO = frozenset({TipoAvaliacao.RECUPERACAO.value, TipoAvaliacao.PROVA_FINAL.value})
TIPOS_CONTINUA = frozenset({TipoAvaliacao.TESTE.value, TipoAvaliacao.TRABALHO.value})
TIPOS_PROVA_TRIMESTRAL = frozenset({TipoAvaliacao.PROVA.value, TipoAvaliacao.EXAME.value})


class GradeCalculationError(ValueError):
    """Raised for invalid grades or a calculation without data."""

    pass


@dataclass(frozen=True)
class NotaCalculo:
    """A grade as seen by the calculator.

    Attributes:
        tipo: TipoAvaliacao value of the avaliação.
        valor: Grade on the 0-20 scale.
        data: Date of the avaliação, used to order provas.
        trimestre: Trimester of the avaliação (secondary education).
        avaliacao_id: Source avaliação.
    """

    tipo: str
    valor: float
    data: date | None = None
    trimestre: int | None = None
    avaliacao_id: str | None = None


@dataclass(frozen=True)
class NotaUtilizada:
    """Grade that entered the calculation, with its display label."""

    rotulo: str
    valor: float
    avaliacao_id: str | None = None


@dataclass
class ResultadoCalculo:
    """Result of a grade calculation.

    Attributes:
        media_final: Final average.
        status: APROVADO, REPROVADO or EXAME_RECURSO.
        media_parcial: Higher education partial average.
        medias_trimestrais: Secondary education averages per trimester.
        media_anual: Secondary education yearly average.
        notas_utilizadas: Grades used, labelled.
        formula: Human readable description of the applied formula.
        observacoes: Warnings about missing or ignored grades.
    """

    media_final: float
    status: StatusNota
    media_parcial: float | None = None
    medias_trimestrais: dict[int, float] = field(default_factory=dict)
    media_anual: float | None = None
    notas_utilizadas: list[NotaUtilizada] = field(default_factory=list)
    formula: str = ""
    observacoes: list[str] = field(default_factory=list)


def validar_notas(notas: Sequence[NotaCalculo]) -> None:
    """Reject grades outside the 0-20 scale.

    Raises:
        GradeCalculationError: On the first invalid grade.
    """
    for nota in notas:
        if not NOTA_MINIMA <= nota.valor <= NOTA_MAXIMA:
            raise GradeCalculationError(
                f"Nota inválida: {nota.valor}. Valores devem estar entre "
                f"{NOTA_MINIMA:g} e {NOTA_MAXIMA:g}."
            )


def _media(valores: Sequence[float]) -> float:
    return sum(valores) / len(valores)


def calcular_superior(
    notas: Sequence[NotaCalculo],
    minimo: float = 10.0,
    permitir_recurso: bool = False,
    limiar_recurso: float = 7.0,
) -> ResultadoCalculo:
    """Compute the result of a higher education subject.

    Args:
        notas: Grades of the student in the plano.
        minimo: Minimum passing grade.
        permitir_recurso: Whether the institution allows resit exams.
        limiar_recurso: Lowest partial average that grants a resit.

    Returns:
        The calculation result. Without provas the result is REPROVADO with
        zero averages.
    """
    validar_notas(notas)
    observacoes: list[str] = []

    provas = sorted(
        (n for n in notas if n.tipo == TipoAvaliacao.PROVA.value),
        key=lambda n: n.data or date.min,
    )
    trabalhos = [n for n in notas if n.tipo == TipoAvaliacao.TRABALHO.value]
    recursos = [n for n in notas if n.tipo in TIPOS_RECURSO]

    outras = [NotaUtilizada("Trabalho", t.valor, t.avaliacao_id) for t in trabalhos] + [
        NotaUtilizada("Exame de Recurso", r.valor, r.avaliacao_id) for r in recursos
    ]

    if not provas:
        return ResultadoCalculo(
            media_final=0.0,
            media_parcial=0.0,
            status=StatusNota.REPROVADO,
            notas_utilizadas=outras,
            formula="Aguardando lançamento de provas",
            observacoes=[
                "É necessário pelo menos uma prova (P1) para calcular a média no Ensino Superior."
            ],
        )

    media_provas = _media([p.valor for p in provas])
    if trabalhos:
        trabalho = trabalhos[0]
        media_parcial = round_half_up(media_provas * PESO_PROVAS + trabalho.valor * PESO_TRABALHO)
        formula = (
            f"MP = (Média das Provas × 0.8) + (Trabalho × 0.2) = "
            f"({media_provas:.2f} × 0.8) + ({trabalho.valor:g} × 0.2) = {media_parcial:.2f}"
        )
    else:
        media_parcial = round_half_up(media_provas)
        formula = f"MP = Média das Provas = {media_parcial:.2f}"

    if media_parcial >= minimo:
        status = StatusNota.APROVADO
    elif permitir_recurso and media_parcial >= limiar_recurso:
        status = StatusNota.EXAME_RECURSO
    else:
        status = StatusNota.REPROVADO

    if recursos and status == StatusNota.EXAME_RECURSO:
        recurso = recursos[0]
        media_final = round_half_up((media_parcial + recurso.valor) / 2)
        formula += (
            f"; MF = (MP + Recurso) / 2 = ({media_parcial:.2f} + {recurso.valor:g}) / 2 "
            f"= {media_final:.2f}"
        )
        status = StatusNota.APROVADO if media_final >= minimo else StatusNota.REPROVADO
    else:
        media_final = media_parcial
        formula += f"; MF = MP = {media_final:.2f}"
        if status != StatusNota.APROVADO:
            status = StatusNota.REPROVADO

    if recursos and not permitir_recurso:
        observacoes.append(
            "Notas de recurso encontradas, mas recurso/exame está desativado para esta instituição."
        )
    if len(provas) < 2:
        observacoes.append(
            "Apenas uma prova foi lançada. Recomenda-se lançar P2 para cálculo completo."
        )
    if len(trabalhos) > 1:
        observacoes.append(
            "Múltiplos trabalhos encontrados. Apenas o primeiro foi considerado no cálculo."
        )
    if len(recursos) > 1:
        observacoes.append(
            "Múltiplos recursos encontrados. Apenas o primeiro foi considerado no cálculo."
        )

    utilizadas = [
        NotaUtilizada(f"P{i}", p.valor, p.avaliacao_id) for i, p in enumerate(provas, start=1)
    ]
    return ResultadoCalculo(
        media_final=media_final,
        media_parcial=media_parcial,
        status=status,
        notas_utilizadas=utilizadas + outras,
        formula=formula,
        observacoes=observacoes,
    )


def _media_trimestral(
    notas: Sequence[NotaCalculo], trimestre: int, observacoes: list[str]
) -> float:
    continuas = [n.valor for n in notas if n.tipo in TIPOS_CONTINUA]
    provas = [n.valor for n in notas if n.tipo in TIPOS_PROVA_TRIMESTRAL]

    if continuas and provas:
        return round_half_up((_media(continuas) + _media(provas)) / 2)
    if continuas:
        observacoes.append(
            f"Trimestre {trimestre}: Apenas avaliação contínua encontrada. "
            "Prova trimestral não foi lançada."
        )
        return round_half_up(_media(continuas))
    if provas:
        observacoes.append(
            f"Trimestre {trimestre}: Apenas prova trimestral encontrada. "
            "Avaliação contínua não foi lançada."
        )
        return round_half_up(_media(provas))
    observacoes.append(
        f"Trimestre {trimestre}: Média calculada a partir de todas as avaliações disponíveis."
    )
    return round_half_up(_media([n.valor for n in notas]))


def calcular_secundario(
    notas: Sequence[NotaCalculo],
    minimo: float = 10.0,
    trimestre: int | None = None,
) -> ResultadoCalculo:
    """Compute the result of a secondary education subject.

    Args:
        notas: Grades of the student in the plano.
        minimo: Minimum passing grade.
        trimestre: Restrict the calculation to one trimester.

    Raises:
        GradeCalculationError: ``trimestre`` given but it has no grades.
    """
    validar_notas(notas)
    observacoes: list[str] = []

    if trimestre is not None:
        do_trimestre = [n for n in notas if n.trimestre == trimestre]
        if not do_trimestre:
            raise GradeCalculationError(f"Nenhuma nota encontrada para o {trimestre}º trimestre")
        media = _media_trimestral(do_trimestre, trimestre, observacoes)
        return ResultadoCalculo(
            media_final=media,
            status=StatusNota.APROVADO if media >= minimo else StatusNota.REPROVADO,
            medias_trimestrais={trimestre: media},
            notas_utilizadas=[
                NotaUtilizada(n.tipo, n.valor, n.avaliacao_id) for n in do_trimestre
            ],
            formula=f"MT{trimestre} = (Avaliação Contínua + Prova Trimestral) / 2 = {media:.2f}",
            observacoes=observacoes,
        )

    por_trimestre: dict[int, list[NotaCalculo]] = defaultdict(list)
    for nota in notas:
        if nota.trimestre is not None:
            por_trimestre[nota.trimestre].append(nota)

    medias = {
        numero: _media_trimestral(por_trimestre[numero], numero, observacoes)
        for numero in sorted(por_trimestre)
    }

    if medias:
        media_anual = round_half_up(_media(list(medias.values())))
        utilizadas = [NotaUtilizada(f"{t}º Trimestre", m) for t, m in medias.items()]
        termos = " + ".join(f"MT{t}" for t in medias)
        formula = f"MA = ({termos}) / {len(medias)} = {media_anual:.2f}"
    else:
        media_anual = round_half_up(_media([n.valor for n in notas]))
        utilizadas = [NotaUtilizada(n.tipo, n.valor, n.avaliacao_id) for n in notas]
        formula = f"MA = Média das notas = {media_anual:.2f}"
        observacoes.append(
            "Nenhum trimestre identificado. Média calculada a partir de todas as notas disponíveis."
        )

    return ResultadoCalculo(
        media_final=media_anual,
        media_anual=media_anual,
        status=StatusNota.APROVADO if media_anual >= minimo else StatusNota.REPROVADO,
        medias_trimestrais=medias,
        notas_utilizadas=utilizadas,
        formula=formula,
        observacoes=observacoes,
    )


def calcular(
    tipo_academico: TipoAcademico | str,
    notas: Sequence[NotaCalculo],
    minimo: float = 10.0,
    permitir_recurso: bool = False,
    trimestre: int | None = None,
    limiar_recurso: float = 7.0,
) -> ResultadoCalculo:
    """Dispatch a calculation by institution type.

    Raises:
        GradeCalculationError: Invalid grade, unknown type, or empty
            trimester.
    """
    if not notas:
        return ResultadoCalculo(
            media_final=0.0,
            status=StatusNota.REPROVADO,
            formula="Nenhuma nota lançada",
            observacoes=[
                "Nenhuma nota encontrada para o aluno. Aguardando lançamento de notas."
            ],
        )

    if tipo_academico == TipoAcademico.SUPERIOR:
        return calcular_superior(notas, minimo, permitir_recurso, limiar_recurso)
    if tipo_academico == TipoAcademico.SECUNDARIO:
        return calcular_secundario(notas, minimo, trimestre)
    raise GradeCalculationError(f"Tipo acadêmico não suportado: {tipo_academico}")


def situacao_final(
    status: StatusNota | str | None,
    frequencia: SituacaoFrequencia | str,
) -> SituacaoFinal:
    """Combine the grade outcome with attendance."""
    if frequencia == SituacaoFrequencia.IRREGULAR:
        return SituacaoFinal.REPROVADO_FALTA
    if status == StatusNota.APROVADO:
        return SituacaoFinal.APROVADO
    if status == StatusNota.REPROVADO:
        return SituacaoFinal.REPROVADO
    return SituacaoFinal.EM_CURSO
