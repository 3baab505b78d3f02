# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the finance service."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.core.enums import MetodoPagamento
from dsicola.domains.finance.service import (
    FinanceNotFoundError,
    FinanceService,
    FinanceValidationError,
)
from dsicola.infrastructure.database.models import Mensalidade, Pagamento
from dsicola.models.finance import PagamentoCreateRequest

INSTITUICAO_ID = str(uuid4())


@pytest.fixture
def finance_service(mock_db):
    """Create finance service with mock database."""
    return FinanceService(mock_db, INSTITUICAO_ID)


def _mensalidade(**overrides) -> Mensalidade:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "aluno_id": str(uuid4()),
        "curso_id": None,
        "mes_referencia": 3,
        "ano_referencia": 2025,
        "valor": Decimal("10000.00"),
        "desconto": Decimal("0.00"),
        "multa": Decimal("0.00"),
        "juros": Decimal("0.00"),
        "data_vencimento": date.today() + timedelta(days=30),
        "data_pagamento": None,
        "status": "Pendente",
        "created_at": datetime.now(timezone.utc),
    }
    values.update(overrides)
    return Mensalidade(**values)


def _scalar_one(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _scalar(value):
    result = MagicMock()
    result.scalar.return_value = value
    return result


def _added_pagamento(mock_db) -> Pagamento:
    return next(
        call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], Pagamento)
    )


class TestRegistrarPagamento:
    """Tests for payment registration."""

    @pytest.mark.asyncio
    async def test_mensalidade_not_found(self, finance_service, mock_db):
        mock_db.execute.side_effect = [_scalar_one(None)]

        with pytest.raises(FinanceNotFoundError):
            await finance_service.registrar_pagamento(
                str(uuid4()),
                PagamentoCreateRequest(valor=Decimal("100"), metodo=MetodoPagamento.DINHEIRO),
                "sec",
            )

    @pytest.mark.asyncio
    async def test_cancelled_mensalidade(self, finance_service, mock_db):
        mock_db.execute.side_effect = [_scalar_one(_mensalidade(status="Cancelado"))]

        with pytest.raises(FinanceValidationError, match="cancelada"):
            await finance_service.registrar_pagamento(
                str(uuid4()),
                PagamentoCreateRequest(valor=Decimal("100"), metodo=MetodoPagamento.DINHEIRO),
                "sec",
            )

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, finance_service, mock_db):
        mock_db.execute.side_effect = [
            _scalar_one(_mensalidade()),
            _scalar_one(None),
            _scalar(0),
        ]

        with pytest.raises(FinanceValidationError, match="maior que zero"):
            await finance_service.registrar_pagamento(
                str(uuid4()),
                PagamentoCreateRequest(valor=Decimal("0"), metodo=MetodoPagamento.DINHEIRO),
                "sec",
            )

    @pytest.mark.asyncio
    async def test_amount_above_balance(self, finance_service, mock_db):
        mock_db.execute.side_effect = [
            _scalar_one(_mensalidade()),
            _scalar_one(None),
            _scalar(Decimal("8000")),
        ]

        with pytest.raises(FinanceValidationError, match="excede"):
            await finance_service.registrar_pagamento(
                str(uuid4()),
                PagamentoCreateRequest(valor=Decimal("2500"), metodo=MetodoPagamento.MULTICAIXA),
                "sec",
            )
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_partial_payment_issues_next_receipt(self, finance_service, mock_db):
        mensalidade = _mensalidade()
        mock_db.execute.side_effect = [
            _scalar_one(mensalidade),
            _scalar_one(None),
            _scalar(0),
            _scalar("RC-2025-000041"),
        ]

        with patch("dsicola.domains.finance.service.PagamentoResultResponse"), patch(
            "dsicola.domains.finance.service.PagamentoResponse"
        ):
            await finance_service.registrar_pagamento(
                mensalidade.id,
                PagamentoCreateRequest(
                    valor=Decimal("4000"),
                    metodo=MetodoPagamento.TRANSFERENCIA,
                    data_pagamento=date(2025, 3, 5),
                ),
                "sec",
            )

        pagamento = _added_pagamento(mock_db)
        assert pagamento.numero_recibo == "RC-2025-000042"
        assert pagamento.valor == Decimal("4000.00")
        assert mensalidade.status == "Parcial"
        assert mensalidade.data_pagamento is None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_settling_payment(self, finance_service, mock_db):
        mensalidade = _mensalidade()
        mock_db.execute.side_effect = [
            _scalar_one(mensalidade),
            _scalar_one(None),
            _scalar(Decimal("6000")),
            _scalar(None),
        ]

        with patch("dsicola.domains.finance.service.PagamentoResultResponse"), patch(
            "dsicola.domains.finance.service.PagamentoResponse"
        ):
            await finance_service.registrar_pagamento(
                mensalidade.id,
                PagamentoCreateRequest(
                    valor=Decimal("4000"),
                    metodo=MetodoPagamento.DEPOSITO,
                    data_pagamento=date(2026, 1, 15),
                ),
                "sec",
            )

        assert _added_pagamento(mock_db).numero_recibo == "RC-2026-000001"
        assert mensalidade.status == "Pago"
        assert mensalidade.data_pagamento == date(2026, 1, 15)
        assert mensalidade.forma_pagamento == "DEPOSITO"


class TestAplicarMultas:
    """Tests for the late fee batch."""

    @pytest.mark.asyncio
    async def test_applies_fees_past_grace_period(self, finance_service, mock_db):
        atrasada = _mensalidade(data_vencimento=date(2025, 3, 1))
        tolerancia = _mensalidade(data_vencimento=date(2025, 3, 28))
        result = MagicMock()
        result.scalars.return_value.all.return_value = [atrasada, tolerancia]
        mock_db.execute.side_effect = [result, _scalar_one(None)]

        atualizadas = await finance_service.aplicar_multas(hoje=date(2025, 3, 31))

        assert atualizadas == 1
        assert atrasada.status == "Atrasado"
        assert atrasada.multa == Decimal("200.00")
        assert atrasada.juros > 0
        assert tolerancia.status == "Pendente"
        assert tolerancia.multa == Decimal("0.00")
        mock_db.commit.assert_awaited_once()


def _pagamento(mensalidade: Mensalidade, valor: str, **overrides) -> Pagamento:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "mensalidade_id": mensalidade.id,
        "valor": Decimal(valor),
        "metodo": "MULTICAIXA",
        "data_pagamento": date(2025, 3, 5),
        "numero_recibo": "RC-2025-000007",
        "estornado": False,
        "estorno_de_id": None,
    }
    values.update(overrides)
    return Pagamento(**values)


class TestEstornarPagamento:
    """Tests for payment reversals."""

    @pytest.mark.asyncio
    async def test_reversal_reopens_paid_mensalidade(self, finance_service, mock_db):
        mensalidade = _mensalidade(
            status="Pago", data_pagamento=date(2025, 3, 5), forma_pagamento="MULTICAIXA"
        )
        original = _pagamento(mensalidade, "10000.00")
        mock_db.execute.side_effect = [
            _scalar_one(original),
            _scalar_one(mensalidade),
            _scalar(Decimal("10000.00")),
        ]

        with patch("dsicola.domains.finance.service.PagamentoResultResponse"), patch(
            "dsicola.domains.finance.service.PagamentoResponse"
        ), patch("dsicola.domains.finance.service.MensalidadeResponse"):
            await finance_service.estornar_pagamento(original.id, "sec", "Pagamento em duplicado")

        estorno = _added_pagamento(mock_db)
        assert estorno.valor == Decimal("-10000.00")
        assert estorno.metodo == "ESTORNO_MULTICAIXA"
        assert estorno.estorno_de_id == original.id
        assert estorno.referencia == "RC-2025-000007"
        assert original.estornado is True
        assert mensalidade.status == "Pendente"
        assert mensalidade.data_pagamento is None
        assert mensalidade.forma_pagamento is None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reversal_leaves_partial_balance(self, finance_service, mock_db):
        mensalidade = _mensalidade(status="Pago")
        original = _pagamento(mensalidade, "4000.00")
        mock_db.execute.side_effect = [
            _scalar_one(original),
            _scalar_one(mensalidade),
            _scalar(Decimal("10000.00")),
        ]

        with patch("dsicola.domains.finance.service.PagamentoResultResponse"), patch(
            "dsicola.domains.finance.service.PagamentoResponse"
        ), patch("dsicola.domains.finance.service.MensalidadeResponse"):
            await finance_service.estornar_pagamento(original.id, "sec")

        assert mensalidade.status == "Parcial"

    @pytest.mark.asyncio
    async def test_reversal_of_overdue_mensalidade(self, finance_service, mock_db):
        mensalidade = _mensalidade(status="Pago", data_vencimento=date(2020, 1, 10))
        original = _pagamento(mensalidade, "10000.00")
        mock_db.execute.side_effect = [
            _scalar_one(original),
            _scalar_one(mensalidade),
            _scalar(Decimal("10000.00")),
        ]

        with patch("dsicola.domains.finance.service.PagamentoResultResponse"), patch(
            "dsicola.domains.finance.service.PagamentoResponse"
        ), patch("dsicola.domains.finance.service.MensalidadeResponse"):
            await finance_service.estornar_pagamento(original.id, "sec")

        assert mensalidade.status == "Atrasado"

    @pytest.mark.asyncio
    async def test_already_reversed_payment(self, finance_service, mock_db):
        original = _pagamento(_mensalidade(), "10000.00", estornado=True)
        mock_db.execute.side_effect = [_scalar_one(original)]

        with pytest.raises(FinanceValidationError, match="já foi estornado"):
            await finance_service.estornar_pagamento(original.id, "sec")

        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_reversal_entry_cannot_be_reversed(self, finance_service, mock_db):
        estorno = _pagamento(
            _mensalidade(), "-10000.00", metodo="ESTORNO_DINHEIRO", estorno_de_id=str(uuid4())
        )
        mock_db.execute.side_effect = [_scalar_one(estorno)]

        with pytest.raises(FinanceValidationError, match="positivos"):
            await finance_service.estornar_pagamento(estorno.id, "sec")

    @pytest.mark.asyncio
    async def test_unknown_payment(self, finance_service, mock_db):
        mock_db.execute.side_effect = [_scalar_one(None)]

        with pytest.raises(FinanceNotFoundError):
            await finance_service.estornar_pagamento(str(uuid4()), "sec")
