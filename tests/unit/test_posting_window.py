# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for grade posting windows."""

from datetime import date
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from dsicola.domains.assessment.posting_window import (
    PostingWindowClosedError,
    PostingWindowForbiddenError,
    PostingWindowService,
    PostingWindowValidationError,
    to_response,
)
from dsicola.infrastructure.database.models import PeriodoLancamentoNotas

INSTITUICAO_ID = str(uuid4())


@pytest.fixture
def posting_service(mock_db):
    return PostingWindowService(mock_db, INSTITUICAO_ID, "SECUNDARIO")


def _periodo(status: str = "ABERTO", **overrides) -> PeriodoLancamentoNotas:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "ano_letivo_id": str(uuid4()),
        "tipo": "TRIMESTRE",
        "numero": 1,
        "data_inicio": date(2025, 3, 1),
        "data_fim": date(2025, 3, 31),
        "status": status,
    }
    values.update(overrides)
    return PeriodoLancamentoNotas(**values)


def _loaded(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestEffectiveStatus:
    """Tests for window status as of a date."""

    def test_open_window_past_end_is_expired(self) -> None:
        response = to_response(_periodo(), today=date(2025, 4, 1))

        assert response.status == "EXPIRADO"

    def test_open_window_within_dates(self) -> None:
        assert to_response(_periodo(), today=date(2025, 3, 31)).status == "ABERTO"

    def test_closed_window_stays_closed(self) -> None:
        assert to_response(_periodo("FECHADO"), today=date(2025, 3, 10)).status == "FECHADO"


class TestVerificarLancamentoAberto:
    """Tests for the posting guard."""

    @pytest.mark.asyncio
    async def test_no_window_configured_allows_posting(self, posting_service, mock_db):
        mock_db.execute.return_value = _loaded(None)

        await posting_service.verificar_lancamento_aberto(str(uuid4()), 1, today=date(2025, 3, 10))

    @pytest.mark.asyncio
    async def test_without_period_number_skips_check(self, posting_service, mock_db):
        await posting_service.verificar_lancamento_aberto(str(uuid4()), None)

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_open_window_allows_posting(self, posting_service, mock_db):
        mock_db.execute.return_value = _loaded(_periodo())

        await posting_service.verificar_lancamento_aberto(str(uuid4()), 1, today=date(2025, 3, 10))

    @pytest.mark.asyncio
    async def test_expired_window_blocks_posting(self, posting_service, mock_db):
        mock_db.execute.return_value = _loaded(_periodo())

        with pytest.raises(PostingWindowClosedError, match="EXPIRADO"):
            await posting_service.verificar_lancamento_aberto(
                str(uuid4()), 1, today=date(2025, 4, 2)
            )

    @pytest.mark.asyncio
    async def test_window_not_started_blocks_posting(self, posting_service, mock_db):
        mock_db.execute.return_value = _loaded(_periodo())

        with pytest.raises(PostingWindowClosedError):
            await posting_service.verificar_lancamento_aberto(
                str(uuid4()), 1, today=date(2025, 2, 20)
            )


class TestReabrirPeriodo:
    """Tests for reopening windows."""

    @pytest.mark.asyncio
    async def test_only_admin_reopens(self, posting_service, mock_db):
        with pytest.raises(PostingWindowForbiddenError):
            await posting_service.reabrir_periodo(str(uuid4()), "atraso", "sec", ["SECRETARIA"])
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_window_is_reopened(self, posting_service, mock_db):
        periodo = _periodo("FECHADO")
        mock_db.execute.return_value = _loaded(periodo)

        await posting_service.reabrir_periodo(
            periodo.id, "Lançamento tardio", "admin", ["ADMIN"], data_fim=date(2030, 1, 31)
        )

        assert periodo.status == "ABERTO"
        assert periodo.reaberto_por == "admin"
        assert periodo.motivo_reabertura == "Lançamento tardio"
        assert periodo.data_fim == date(2030, 1, 31)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_new_end_before_start(self, posting_service, mock_db):
        mock_db.execute.return_value = _loaded(_periodo("FECHADO"))

        with pytest.raises(PostingWindowValidationError, match="posterior"):
            await posting_service.reabrir_periodo(
                str(uuid4()), "motivo", "admin", ["ADMIN"], data_fim=date(2025, 2, 1)
            )
