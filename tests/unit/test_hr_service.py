# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the HR history of funcionários."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.hr.service import FuncionarioNotFoundError, HrService, HrValidationError
from dsicola.infrastructure.database.models import Funcionario, HistoricoRh
from dsicola.models.hr import HistoricoRhCreateRequest

INSTITUICAO_ID = str(uuid4())
RH_ID = str(uuid4())


@pytest.fixture
def hr_service(mock_db):
    return HrService(mock_db, INSTITUICAO_ID)


def _funcionario(status: str = "ATIVO") -> Funcionario:
    return Funcionario(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        nome_completo="Joana Contabilista",
        cargo="Contabilista",
        data_admissao=date(2022, 1, 10),
        salario_base=Decimal("150000.00"),
        status=status,
    )


def _loaded(record):
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    return result


def _entrada(funcionario: Funcionario, tipo: str, **extra) -> HistoricoRhCreateRequest:
    return HistoricoRhCreateRequest(funcionario_id=funcionario.id, tipo_alteracao=tipo, **extra)


class TestCreateHistorico:
    """Tests for HrService.create_historico."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tipo", "status"),
        [("DEMISSAO", "DEMITIDO"), ("SUSPENSAO", "SUSPENSO")],
    )
    async def test_entry_changes_status(self, hr_service, mock_db, tipo, status):
        funcionario = _funcionario()
        mock_db.execute.side_effect = [_loaded(funcionario)]

        with patch("dsicola.domains.hr.service.HistoricoRhResponse"):
            await hr_service.create_historico(
                _entrada(funcionario, tipo, data_alteracao=date(2025, 6, 30)), RH_ID
            )

        assert funcionario.status == status
        (historico,) = [
            c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], HistoricoRh)
        ]
        assert historico.tipo_alteracao == tipo
        assert historico.data_alteracao == date(2025, 6, 30)
        assert historico.registrado_por == RH_ID
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_entries_keep_status(self, hr_service, mock_db):
        funcionario = _funcionario()
        mock_db.execute.side_effect = [_loaded(funcionario)]

        with patch("dsicola.domains.hr.service.HistoricoRhResponse"):
            await hr_service.create_historico(
                _entrada(
                    funcionario,
                    "ALTERACAO_SALARIAL",
                    valor_anterior="150000.00",
                    valor_novo="175000.00",
                ),
                RH_ID,
            )

        assert funcionario.status == "ATIVO"

    @pytest.mark.asyncio
    async def test_suspended_funcionario_can_be_dismissed(self, hr_service, mock_db):
        funcionario = _funcionario("SUSPENSO")
        mock_db.execute.side_effect = [_loaded(funcionario)]

        with patch("dsicola.domains.hr.service.HistoricoRhResponse"):
            await hr_service.create_historico(_entrada(funcionario, "DEMISSAO"), RH_ID)

        assert funcionario.status == "DEMITIDO"

    @pytest.mark.asyncio
    async def test_dismissed_funcionario_cannot_be_dismissed_again(self, hr_service, mock_db):
        funcionario = _funcionario("DEMITIDO")
        mock_db.execute.side_effect = [_loaded(funcionario)]

        with pytest.raises(HrValidationError, match="já foi demitido"):
            await hr_service.create_historico(_entrada(funcionario, "SUSPENSAO"), RH_ID)

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_funcionario(self, hr_service, mock_db):
        mock_db.execute.side_effect = [_loaded(None)]

        with pytest.raises(FuncionarioNotFoundError):
            await hr_service.create_historico(
                HistoricoRhCreateRequest(funcionario_id=str(uuid4()), tipo_alteracao="OUTRO"),
                RH_ID,
            )
