# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Late fees and payment status rules for mensalidades.

Rules are resolved with the following priority:
1. ConfiguracaoMulta of the institution
2. Curso overrides (``valor_multa``, ``percentual_juros``) when set
3. FinanceSettings defaults

Fees only apply once the grace period has passed:

    base  = valor - desconto
    multa = base * multa% / 100
    juros = base * juros_dia% / 100 * (dias_atraso - dias_tolerancia)
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from dsicola.core.config.settings import FinanceSettings
from dsicola.core.enums import StatusMensalidade
from dsicola.utils.rounding import to_money

STATUS_FINAIS = frozenset({StatusMensalidade.PAGO.value, StatusMensalidade.CANCELADO.value})


@dataclass(frozen=True)
class RegraMulta:
    """Late-fee rule in percentages.

    Attributes:
        multa_percentual: One-off fine over the base value.
        juros_dia_percentual: Interest per day late over the base value.
        dias_tolerancia: Days late without charges.
        origem: INSTITUICAO, CURSO or PADRAO.
    """

    multa_percentual: Decimal
    juros_dia_percentual: Decimal
    dias_tolerancia: int
    origem: str = "PADRAO"


@dataclass(frozen=True)
class MultaCalculada:
    dias_atraso: int
    multa: Decimal
    juros: Decimal

    @property
    def aplicavel(self) -> bool:
        return self.multa > 0 or self.juros > 0


SEM_MULTA = MultaCalculada(dias_atraso=0, multa=Decimal("0.00"), juros=Decimal("0.00"))


def resolver_regra(
    configuracao: Any | None,
    curso: Any | None,
    settings: FinanceSettings,
) -> RegraMulta:
    """Pick the late-fee rule for a mensalidade.

    Args:
        configuracao: ConfiguracaoMulta of the institution, if any.
        curso: Curso of the mensalidade, if any.
        settings: Finance defaults.
    """
    if configuracao is not None:
        return RegraMulta(
            multa_percentual=Decimal(configuracao.multa_percentual),
            juros_dia_percentual=Decimal(configuracao.juros_dia_percentual),
            dias_tolerancia=configuracao.dias_tolerancia,
            origem="INSTITUICAO",
        )
    if curso is not None and (curso.valor_multa is not None or curso.percentual_juros is not None):
        return RegraMulta(
            multa_percentual=Decimal(
                curso.valor_multa if curso.valor_multa is not None else settings.fine_percent
            ),
            juros_dia_percentual=Decimal(
                curso.percentual_juros
                if curso.percentual_juros is not None
                else settings.daily_interest_percent
            ),
            dias_tolerancia=settings.grace_days,
            origem="CURSO",
        )
    return RegraMulta(
        multa_percentual=Decimal(settings.fine_percent),
        juros_dia_percentual=Decimal(settings.daily_interest_percent),
        dias_tolerancia=settings.grace_days,
    )


def calcular_multa(
    valor: Decimal,
    desconto: Decimal | None,
    data_vencimento: date,
    status: str,
    data_pagamento: date | None,
    regra: RegraMulta,
    hoje: date,
) -> MultaCalculada:
    """Compute the fine and interest owed on a mensalidade today.

    Returns:
        Zero charges when the mensalidade is not overdue, is already settled
        or cancelled, or is still within the grace period.
    """
    if data_vencimento >= hoje or status in STATUS_FINAIS or data_pagamento is not None:
        return SEM_MULTA

    dias_atraso = (hoje - data_vencimento).days
    if dias_atraso <= regra.dias_tolerancia:
        return MultaCalculada(dias_atraso=dias_atraso, multa=Decimal("0.00"), juros=Decimal("0.00"))

    base = Decimal(valor) - Decimal(desconto or 0)
    multa = to_money(base * regra.multa_percentual / 100)
    juros = to_money(
        base * regra.juros_dia_percentual / 100 * (dias_atraso - regra.dias_tolerancia)
    )
    return MultaCalculada(dias_atraso=dias_atraso, multa=multa, juros=juros)


def status_por_pagamentos(
    total: Decimal,
    pago: Decimal,
    data_vencimento: date,
    hoje: date,
) -> StatusMensalidade:
    """Status of a mensalidade from the amount paid so far."""
    if pago >= total:
        return StatusMensalidade.PAGO
    if pago > 0:
        return StatusMensalidade.PARCIAL
    if data_vencimento < hoje:
        return StatusMensalidade.ATRASADO
    return StatusMensalidade.PENDENTE


def numero_recibo(ano: int, sequencia: int) -> str:
    """Receipt number, e.g. ``RC-2025-000042``."""
    return f"RC-{ano}-{sequencia:06d}"
