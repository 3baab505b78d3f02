# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the library service."""

from datetime import date, timedelta
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from dsicola.domains.library.service import (
    LibraryConflictError,
    LibraryNotFoundError,
    LibraryService,
    LibraryValidationError,
    copias_livres,
)
from dsicola.infrastructure.database.models import BibliotecaItem, EmprestimoBiblioteca
from dsicola.models.library import EmprestimoCreateRequest

INSTITUICAO_ID = str(uuid4())


@pytest.fixture
def library_service(mock_db):
    """Create library service with mock database."""
    return LibraryService(mock_db, INSTITUICAO_ID)


@pytest.fixture
def sample_item():
    item = MagicMock()
    item.id = str(uuid4())
    item.titulo = "Os Lusíadas"
    item.quantidade = 2
    return item


@pytest.fixture
def digital_item():
    return BibliotecaItem(
        id=str(uuid4()),
        instituicao_id=INSTITUICAO_ID,
        titulo="Mayombe",
        tipo="DIGITAL",
        quantidade=1,
    )


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _first(value):
    result = MagicMock()
    result.first.return_value = value
    return result


def _counts(rows):
    result = MagicMock()
    result.all.return_value = rows
    return result


class TestEmprestar:
    """Tests for lending items."""

    @pytest.mark.asyncio
    async def test_item_not_found(self, library_service, mock_db):
        mock_db.execute.side_effect = [_scalar(None)]

        with pytest.raises(LibraryNotFoundError):
            await library_service.emprestar(
                EmprestimoCreateRequest(item_id=str(uuid4()), usuario_id=str(uuid4())), "sec"
            )

    @pytest.mark.asyncio
    async def test_user_of_other_institution(self, library_service, mock_db, sample_item):
        mock_db.execute.side_effect = [_scalar(sample_item), _scalar(None)]

        with pytest.raises(LibraryNotFoundError, match="Usuário"):
            await library_service.emprestar(
                EmprestimoCreateRequest(item_id=sample_item.id, usuario_id=str(uuid4())), "sec"
            )

    @pytest.mark.asyncio
    async def test_open_loan_conflict(self, library_service, mock_db, sample_item):
        usuario_id = str(uuid4())
        mock_db.execute.side_effect = [
            _scalar(sample_item),
            _scalar(usuario_id),
            _first((str(uuid4()),)),
        ]

        with pytest.raises(LibraryConflictError):
            await library_service.emprestar(
                EmprestimoCreateRequest(item_id=sample_item.id, usuario_id=usuario_id), "sec"
            )
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_copy_available(self, library_service, mock_db, sample_item):
        usuario_id = str(uuid4())
        mock_db.execute.side_effect = [
            _scalar(sample_item),
            _scalar(usuario_id),
            _first(None),
            _counts([(sample_item.id, 2)]),
        ]

        with pytest.raises(LibraryValidationError, match="Nenhum exemplar"):
            await library_service.emprestar(
                EmprestimoCreateRequest(item_id=sample_item.id, usuario_id=usuario_id), "sec"
            )

    @pytest.mark.asyncio
    async def test_return_date_before_loan(self, library_service, mock_db, sample_item):
        usuario_id = str(uuid4())
        mock_db.execute.side_effect = [
            _scalar(sample_item),
            _scalar(usuario_id),
            _first(None),
            _counts([]),
        ]

        with pytest.raises(LibraryValidationError, match="anterior"):
            await library_service.emprestar(
                EmprestimoCreateRequest(
                    item_id=sample_item.id,
                    usuario_id=usuario_id,
                    data_emprestimo=date(2025, 5, 10),
                    data_prevista_devolucao=date(2025, 5, 1),
                ),
                "sec",
            )

    @pytest.mark.asyncio
    async def test_default_return_date(self, library_service, mock_db, sample_item):
        usuario_id = str(uuid4())
        mock_db.execute.side_effect = [
            _scalar(sample_item),
            _scalar(usuario_id),
            _first(None),
            _counts([(sample_item.id, 1)]),
        ]

        with patch("dsicola.domains.library.service.EmprestimoResponse") as response_cls:
            await library_service.emprestar(
                EmprestimoCreateRequest(
                    item_id=sample_item.id,
                    usuario_id=usuario_id,
                    data_emprestimo=date(2025, 5, 1),
                ),
                "sec",
            )

        emprestimo = next(
            call.args[0]
            for call in mock_db.add.call_args_list
            if isinstance(call.args[0], EmprestimoBiblioteca)
        )
        assert emprestimo.status == "ATIVO"
        assert emprestimo.data_prevista_devolucao == date(2025, 5, 1) + timedelta(days=14)
        mock_db.commit.assert_awaited_once()
        response_cls.model_validate.assert_called_once_with(emprestimo)


class TestDevolver:
    """Tests for returning items."""

    @pytest.mark.asyncio
    async def test_already_returned(self, library_service, mock_db):
        emprestimo = MagicMock()
        emprestimo.status = "DEVOLVIDO"
        mock_db.execute.side_effect = [_scalar(emprestimo)]

        with pytest.raises(LibraryValidationError, match="já foi devolvido"):
            await library_service.devolver(str(uuid4()), "sec")

    @pytest.mark.asyncio
    async def test_overdue_loan_can_be_returned(self, library_service, mock_db):
        emprestimo = MagicMock()
        emprestimo.id = str(uuid4())
        emprestimo.status = "ATRASADO"
        mock_db.execute.side_effect = [_scalar(emprestimo)]

        with patch("dsicola.domains.library.service.EmprestimoResponse"):
            await library_service.devolver(emprestimo.id, "sec", data_devolucao=date(2025, 6, 2))

        assert emprestimo.status == "DEVOLVIDO"
        assert emprestimo.data_devolucao == date(2025, 6, 2)
        mock_db.commit.assert_awaited_once()


class TestAtrasados:
    """Tests for overdue detection."""

    @pytest.mark.asyncio
    async def test_marks_active_loans_overdue(self, library_service, mock_db):
        ativo = MagicMock(status="ATIVO")
        atrasado = MagicMock(status="ATRASADO")
        result = MagicMock()
        result.scalars.return_value.all.return_value = [ativo, atrasado]
        mock_db.execute.side_effect = [result]

        with patch("dsicola.domains.library.service.EmprestimoResponse"):
            emprestimos = await library_service.list_atrasados(hoje=date(2025, 6, 1))

        assert len(emprestimos) == 2
        assert ativo.status == "ATRASADO"
        mock_db.commit.assert_awaited_once()


class TestDisponibilidade:
    """Tests for copy availability."""

    def test_physical_copies_never_negative(self):
        item = BibliotecaItem(titulo="Os Lusíadas", tipo="FISICO", quantidade=2)

        assert copias_livres(item, 1) == 1
        assert copias_livres(item, 3) == 0

    def test_digital_ignores_open_loans(self, digital_item):
        assert copias_livres(digital_item, 5) == 1

    @pytest.mark.asyncio
    async def test_digital_item_is_always_available(self, library_service, mock_db, digital_item):
        assert await library_service.disponivel(digital_item) == 1

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_digital_item_lent_to_many_readers(self, library_service, mock_db, digital_item):
        usuario_id = str(uuid4())
        mock_db.execute.side_effect = [
            _scalar(digital_item),
            _scalar(usuario_id),
            _first(None),
        ]

        with patch("dsicola.domains.library.service.EmprestimoResponse"):
            await library_service.emprestar(
                EmprestimoCreateRequest(item_id=digital_item.id, usuario_id=usuario_id), "sec"
            )

        assert mock_db.execute.await_count == 3
        mock_db.commit.assert_awaited_once()
