# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for academic years and their periods."""

from datetime import date
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.academic_year.service import (
    AcademicYearConflictError,
    AcademicYearService,
    AcademicYearValidationError,
)
from dsicola.infrastructure.database.models import AnoLetivo, Trimestre
from dsicola.models.academic_year import (
    AnoLetivoCreateRequest,
    AnoLetivoUpdateRequest,
    PeriodoCreateRequest,
)

INSTITUICAO_ID = str(uuid4())
ADMIN_ID = str(uuid4())


@pytest.fixture
def year_service(mock_db):
    return AcademicYearService(mock_db, INSTITUICAO_ID, "SECUNDARIO")


def _ano(status: str = "PLANEJADO", **overrides) -> AnoLetivo:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "ano": 2026,
        "data_inicio": date(2026, 2, 1),
        "data_fim": date(2026, 12, 15),
        "status": status,
    }
    values.update(overrides)
    return AnoLetivo(**values)


def _loaded(record):
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    return result


def _first(value):
    result = MagicMock()
    result.scalars.return_value.first.return_value = value
    return result


class TestCreateAnoLetivo:
    """Tests for AcademicYearService.create_ano_letivo."""

    @pytest.mark.asyncio
    async def test_new_year_starts_planned(self, year_service, mock_db):
        mock_db.execute.side_effect = [_loaded(None), _first(None)]

        with patch("dsicola.domains.academic_year.service.AnoLetivoResponse"):
            await year_service.create_ano_letivo(
                AnoLetivoCreateRequest(
                    ano=2026, data_inicio=date(2026, 2, 1), data_fim=date(2026, 12, 15)
                ),
                ADMIN_ID,
            )

        (ano,) = [
            c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], AnoLetivo)
        ]
        assert ano.status == "PLANEJADO"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_overlapping_dates_conflict(self, year_service, mock_db):
        mock_db.execute.side_effect = [_loaded(None), _first(2025)]

        with pytest.raises(AcademicYearConflictError, match="sobrepõem-se ao ano letivo 2025"):
            await year_service.create_ano_letivo(
                AnoLetivoCreateRequest(
                    ano=2026, data_inicio=date(2025, 11, 1), data_fim=date(2026, 7, 31)
                ),
                ADMIN_ID,
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_year_conflict(self, year_service, mock_db):
        mock_db.execute.side_effect = [_loaded(str(uuid4()))]

        with pytest.raises(AcademicYearConflictError, match="já existe"):
            await year_service.create_ano_letivo(
                AnoLetivoCreateRequest(
                    ano=2026, data_inicio=date(2026, 2, 1), data_fim=date(2026, 12, 15)
                ),
                ADMIN_ID,
            )

    @pytest.mark.asyncio
    async def test_start_after_end(self, year_service, mock_db):
        with pytest.raises(AcademicYearValidationError):
            await year_service.create_ano_letivo(
                AnoLetivoCreateRequest(
                    ano=2026, data_inicio=date(2026, 12, 15), data_fim=date(2026, 2, 1)
                ),
                ADMIN_ID,
            )

        mock_db.execute.assert_not_called()


class TestUpdateAnoLetivo:
    """Tests for AcademicYearService.update_ano_letivo."""

    @pytest.mark.asyncio
    async def test_new_dates_overlap_other_year(self, year_service, mock_db):
        ano = _ano()
        mock_db.execute.side_effect = [_loaded(ano), _first(2025)]

        with pytest.raises(AcademicYearConflictError):
            await year_service.update_ano_letivo(
                ano.id, AnoLetivoUpdateRequest(data_inicio=date(2025, 12, 1)), ADMIN_ID
            )

        assert ano.data_inicio == date(2026, 2, 1)

    @pytest.mark.asyncio
    async def test_active_year_is_read_only(self, year_service, mock_db):
        mock_db.execute.side_effect = [_loaded(_ano("ATIVO"))]

        with pytest.raises(AcademicYearValidationError, match="não pode ser editado"):
            await year_service.update_ano_letivo(
                str(uuid4()), AnoLetivoUpdateRequest(descricao="Novo"), ADMIN_ID
            )


class TestActivateAnoLetivo:
    """Tests for AcademicYearService.activate_ano_letivo."""

    @pytest.mark.asyncio
    async def test_second_active_year_conflicts(self, year_service, mock_db):
        ano = _ano()
        mock_db.execute.side_effect = [_loaded(ano), _first(2025)]

        with pytest.raises(AcademicYearConflictError, match="ativo \\(2025\\)"):
            await year_service.activate_ano_letivo(ano.id, ADMIN_ID)

        assert ano.status == "PLANEJADO"
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_activates_planned_year(self, year_service, mock_db):
        ano = _ano()
        mock_db.execute.side_effect = [_loaded(ano), _first(None)]

        with patch("dsicola.domains.academic_year.service.AnoLetivoResponse"):
            await year_service.activate_ano_letivo(ano.id, ADMIN_ID)

        assert ano.status == "ATIVO"
        assert ano.ativado_por == ADMIN_ID
        assert ano.ativado_em is not None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_active_year_is_unchanged(self, year_service, mock_db):
        ano = _ano("ATIVO")
        mock_db.execute.side_effect = [_loaded(ano)]

        with patch("dsicola.domains.academic_year.service.AnoLetivoResponse"):
            await year_service.activate_ano_letivo(ano.id, ADMIN_ID)

        assert mock_db.execute.await_count == 1
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_year_cannot_be_activated(self, year_service, mock_db):
        mock_db.execute.side_effect = [_loaded(_ano("ENCERRADO"))]

        with pytest.raises(AcademicYearValidationError, match="encerrado"):
            await year_service.activate_ano_letivo(str(uuid4()), ADMIN_ID)


class TestCreateTrimestre:
    """Tests for trimester creation."""

    @pytest.mark.asyncio
    async def test_trimester_outside_year(self, year_service, mock_db):
        ano = _ano()
        mock_db.execute.side_effect = [_loaded(ano)]

        with pytest.raises(AcademicYearValidationError, match="fora das datas"):
            await year_service.create_trimestre(
                ano.id,
                PeriodoCreateRequest(
                    numero=1, data_inicio=date(2026, 1, 10), data_fim=date(2026, 4, 30)
                ),
                ADMIN_ID,
            )

    @pytest.mark.asyncio
    async def test_duplicate_trimester_number(self, year_service, mock_db):
        ano = _ano()
        mock_db.execute.side_effect = [_loaded(ano), _loaded(str(uuid4()))]

        with pytest.raises(AcademicYearConflictError, match="Trimestre 2"):
            await year_service.create_trimestre(
                ano.id,
                PeriodoCreateRequest(
                    numero=2, data_inicio=date(2026, 5, 4), data_fim=date(2026, 8, 14)
                ),
                ADMIN_ID,
            )

        assert not [
            c for c in mock_db.add.call_args_list if isinstance(c.args[0], Trimestre)
        ]

    @pytest.mark.asyncio
    async def test_higher_education_has_no_trimesters(self, mock_db):
        service = AcademicYearService(mock_db, INSTITUICAO_ID, "SUPERIOR")

        with pytest.raises(AcademicYearValidationError, match="apenas no ensino secundário"):
            await service.create_trimestre(
                str(uuid4()),
                PeriodoCreateRequest(
                    numero=1, data_inicio=date(2026, 2, 1), data_fim=date(2026, 4, 30)
                ),
                ADMIN_ID,
            )
