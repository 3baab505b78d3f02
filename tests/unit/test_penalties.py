# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for tuition late fees and payment status rules."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from dsicola.core.config.settings import FinanceSettings
from dsicola.core.enums import StatusMensalidade
from dsicola.domains.finance.penalties import (
    SEM_MULTA,
    RegraMulta,
    calcular_multa,
    numero_recibo,
    resolver_regra,
    status_por_pagamentos,
)


@pytest.fixture
def finance_settings() -> FinanceSettings:
    return FinanceSettings(fine_percent=Decimal("2.00"), daily_interest_percent=Decimal("0.1"), grace_days=5)


@pytest.fixture
def regra() -> RegraMulta:
    return RegraMulta(
        multa_percentual=Decimal("2"),
        juros_dia_percentual=Decimal("0.1"),
        dias_tolerancia=5,
    )


class TestResolverRegra:
    """Tests for late-fee rule resolution."""

    def test_institution_configuration_wins(self, finance_settings: FinanceSettings) -> None:
        configuracao = SimpleNamespace(
            multa_percentual=Decimal("5"), juros_dia_percentual=Decimal("0.2"), dias_tolerancia=3
        )
        curso = SimpleNamespace(valor_multa=Decimal("1"), percentual_juros=None)

        result = resolver_regra(configuracao, curso, finance_settings)

        assert result.origem == "INSTITUICAO"
        assert result.multa_percentual == Decimal("5")
        assert result.dias_tolerancia == 3

    def test_course_override(self, finance_settings: FinanceSettings) -> None:
        curso = SimpleNamespace(valor_multa=Decimal("4"), percentual_juros=None)

        result = resolver_regra(None, curso, finance_settings)

        assert result.origem == "CURSO"
        assert result.multa_percentual == Decimal("4")
        assert result.juros_dia_percentual == Decimal("0.1")
        assert result.dias_tolerancia == 5

    def test_course_without_override_uses_defaults(self, finance_settings: FinanceSettings) -> None:
        curso = SimpleNamespace(valor_multa=None, percentual_juros=None)

        result = resolver_regra(None, curso, finance_settings)

        assert result.origem == "PADRAO"
        assert result.multa_percentual == Decimal("2.00")


class TestCalcularMulta:
    """Tests for calcular_multa."""

    def test_not_yet_due(self, regra: RegraMulta) -> None:
        result = calcular_multa(
            Decimal("10000"), None, date(2025, 3, 10), "Pendente", None, regra, date(2025, 3, 10)
        )

        assert result is SEM_MULTA
        assert not result.aplicavel

    def test_within_grace_period(self, regra: RegraMulta) -> None:
        result = calcular_multa(
            Decimal("10000"), None, date(2025, 3, 10), "Pendente", None, regra, date(2025, 3, 15)
        )

        assert result.dias_atraso == 5
        assert not result.aplicavel

    def test_past_grace_period(self, regra: RegraMulta) -> None:
        result = calcular_multa(
            Decimal("10000"),
            Decimal("1000"),
            date(2025, 3, 10),
            "Pendente",
            None,
            regra,
            date(2025, 3, 20),
        )

        # base 9000: multa 2%, juros 0.1% x 5 days
        assert result.dias_atraso == 10
        assert result.multa == Decimal("180.00")
        assert result.juros == Decimal("45.00")
        assert result.aplicavel

    @pytest.mark.parametrize("status", ["Pago", "Cancelado"])
    def test_settled_mensalidade(self, regra: RegraMulta, status: str) -> None:
        result = calcular_multa(
            Decimal("10000"), None, date(2025, 1, 10), status, None, regra, date(2025, 3, 20)
        )

        assert result is SEM_MULTA

    def test_with_payment_date(self, regra: RegraMulta) -> None:
        result = calcular_multa(
            Decimal("10000"),
            None,
            date(2025, 1, 10),
            "Parcial",
            date(2025, 1, 12),
            regra,
            date(2025, 3, 20),
        )

        assert result is SEM_MULTA


class TestStatusPorPagamentos:
    """Tests for status_por_pagamentos."""

    def test_fully_paid(self) -> None:
        status = status_por_pagamentos(
            Decimal("100"), Decimal("100"), date(2025, 1, 1), date(2025, 2, 1)
        )

        assert status is StatusMensalidade.PAGO

    def test_partial(self) -> None:
        status = status_por_pagamentos(
            Decimal("100"), Decimal("40"), date(2025, 1, 1), date(2025, 2, 1)
        )

        assert status is StatusMensalidade.PARCIAL

    def test_unpaid_overdue(self) -> None:
        status = status_por_pagamentos(Decimal("100"), Decimal("0"), date(2025, 1, 1), date(2025, 2, 1))

        assert status is StatusMensalidade.ATRASADO

    def test_unpaid_not_due(self) -> None:
        status = status_por_pagamentos(Decimal("100"), Decimal("0"), date(2025, 3, 1), date(2025, 2, 1))

        assert status is StatusMensalidade.PENDENTE


def test_numero_recibo() -> None:
    assert numero_recibo(2025, 42) == "RC-2025-000042"
    assert numero_recibo(2026, 1234567) == "RC-2026-1234567"
