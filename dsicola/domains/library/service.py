# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Library service: catalogue, loans and returns."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.config import get_settings
from dsicola.core.enums import (
    AcaoAuditoria,
    ModuloAuditoria,
    StatusEmprestimo,
    TipoItemBiblioteca,
)
from dsicola.domains.audit.service import AuditService
from dsicola.infrastructure.database.models import BibliotecaItem, EmprestimoBiblioteca, User
from dsicola.models.library import (
    BibliotecaItemCreateRequest,
    BibliotecaItemResponse,
    BibliotecaItemUpdateRequest,
    EmprestimoCreateRequest,
    EmprestimoResponse,
)
from dsicola.utils.datetime import utc_today

logger = logging.getLogger(__name__)

OPEN_LOAN_STATUSES = (StatusEmprestimo.ATIVO.value, StatusEmprestimo.ATRASADO.value)


def copias_livres(item: BibliotecaItem, emprestados: int) -> int:
    if item.tipo == TipoItemBiblioteca.DIGITAL.value:
        return item.quantidade
    return max(item.quantidade - emprestados, 0)


class LibraryServiceError(Exception):
    """Base exception for library errors."""

    pass


class LibraryNotFoundError(LibraryServiceError):
    pass


class LibraryConflictError(LibraryServiceError):
    """Raised when the user already holds an active loan of the item."""

    pass


class LibraryValidationError(LibraryServiceError):
    pass


class LibraryService:
    """Service for the library of one institution."""

    def __init__(self, db: AsyncSession, instituicao_id: str) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.audit = AuditService(db, instituicao_id)

    # =========================================================================
    # Items
    # =========================================================================

    async def create_item(
        self, request: BibliotecaItemCreateRequest, usuario_id: str
    ) -> BibliotecaItemResponse:
        item = BibliotecaItem(
            instituicao_id=self.instituicao_id,
            **request.model_dump(exclude={"tipo"}),
            tipo=request.tipo.value,
        )
        self.db.add(item)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.BIBLIOTECA,
            AcaoAuditoria.CREATE,
            "BibliotecaItem",
            item.id,
            usuario_id=usuario_id,
            dados_novos=request.model_dump(mode="json"),
        )
        await self.db.commit()
        await self.db.refresh(item)

        logger.info("Created library item %s: %s", item.id, item.titulo)

        return self._to_response(item, item.quantidade)

    async def list_items(
        self,
        search: str | None = None,
        tipo: str | None = None,
    ) -> tuple[list[BibliotecaItemResponse], int]:
        query = select(BibliotecaItem).where(BibliotecaItem.instituicao_id == self.instituicao_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    BibliotecaItem.titulo.ilike(pattern),
                    BibliotecaItem.autor.ilike(pattern),
                    BibliotecaItem.isbn.ilike(pattern),
                )
            )
        if tipo:
            query = query.where(BibliotecaItem.tipo == tipo)
        result = await self.db.execute(query.order_by(BibliotecaItem.titulo))
        items = list(result.scalars().all())

        ativos = await self._emprestimos_abertos([i.id for i in items])
        responses = [self._to_response(i, copias_livres(i, ativos.get(i.id, 0))) for i in items]
        return responses, len(responses)

    async def get_item(self, item_id: str) -> BibliotecaItemResponse:
        item = await self._get_item(item_id)
        return self._to_response(item, await self.disponivel(item))

    async def update_item(
        self,
        item_id: str,
        request: BibliotecaItemUpdateRequest,
        usuario_id: str,
    ) -> BibliotecaItemResponse:
        item = await self._get_item(item_id)
        updates = request.model_dump(exclude_unset=True, mode="json")

        if "quantidade" in updates and item.tipo != TipoItemBiblioteca.DIGITAL.value:
            emprestados = (await self._emprestimos_abertos([item.id])).get(item.id, 0)
            if updates["quantidade"] < emprestados:
                raise LibraryValidationError(
                    f"Quantidade não pode ser menor que os {emprestados} exemplares emprestados"
                )

        anteriores = {key: getattr(item, key) for key in updates}
        for key, value in updates.items():
            setattr(item, key, value)

        self.audit.log(
            ModuloAuditoria.BIBLIOTECA,
            AcaoAuditoria.UPDATE,
            "BibliotecaItem",
            item.id,
            usuario_id=usuario_id,
            dados_anteriores=anteriores,
            dados_novos=updates,
        )
        await self.db.commit()
        await self.db.refresh(item)

        logger.info("Updated library item %s", item.id)

        return self._to_response(item, await self.disponivel(item))

    async def delete_item(self, item_id: str, usuario_id: str) -> None:
        item = await self._get_item(item_id)
        if (await self._emprestimos_abertos([item.id])).get(item.id, 0):
            raise LibraryValidationError("Item com empréstimos em aberto não pode ser excluído")

        self.audit.log(
            ModuloAuditoria.BIBLIOTECA,
            AcaoAuditoria.DELETE,
            "BibliotecaItem",
            item.id,
            usuario_id=usuario_id,
            dados_anteriores={"titulo": item.titulo},
        )
        await self.db.delete(item)
        await self.db.commit()

        logger.info("Deleted library item %s", item_id)

    async def disponivel(self, item: BibliotecaItem) -> int:
        """Copies not currently on loan. Digital items are always available."""
        if item.tipo == TipoItemBiblioteca.DIGITAL.value:
            return item.quantidade
        emprestados = (await self._emprestimos_abertos([item.id])).get(item.id, 0)
        return copias_livres(item, emprestados)

    # =========================================================================
    # Loans
    # =========================================================================

    async def emprestar(self, request: EmprestimoCreateRequest, registrado_por: str) -> EmprestimoResponse:
        """Lend an item to a user.

        Raises:
            LibraryNotFoundError: Item or user not found.
            LibraryValidationError: No copy available or invalid return date.
            LibraryConflictError: User already holds an open loan of the item.
        """
        item = await self._get_item(request.item_id)
        result = await self.db.execute(
            select(User.id).where(
                User.id == request.usuario_id,
                User.instituicao_id == self.instituicao_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise LibraryNotFoundError(f"Usuário {request.usuario_id} not found")

        result = await self.db.execute(
            select(EmprestimoBiblioteca.id).where(
                EmprestimoBiblioteca.item_id == item.id,
                EmprestimoBiblioteca.usuario_id == request.usuario_id,
                EmprestimoBiblioteca.status.in_(OPEN_LOAN_STATUSES),
            )
        )
        if result.first() is not None:
            raise LibraryConflictError("Usuário já possui empréstimo ativo deste item")

        if await self.disponivel(item) <= 0:
            raise LibraryValidationError("Nenhum exemplar disponível para empréstimo")

        data_emprestimo = request.data_emprestimo or utc_today()
        prevista = request.data_prevista_devolucao or data_emprestimo + timedelta(
            days=get_settings().finance.loan_days
        )
        if prevista < data_emprestimo:
            raise LibraryValidationError("Data prevista de devolução anterior ao empréstimo")

        emprestimo = EmprestimoBiblioteca(
            instituicao_id=self.instituicao_id,
            item_id=item.id,
            usuario_id=request.usuario_id,
            data_emprestimo=data_emprestimo,
            data_prevista_devolucao=prevista,
            status=StatusEmprestimo.ATIVO.value,
            observacoes=request.observacoes,
            registrado_por=registrado_por,
        )
        self.db.add(emprestimo)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.BIBLIOTECA,
            AcaoAuditoria.CREATE,
            "EmprestimoBiblioteca",
            emprestimo.id,
            usuario_id=registrado_por,
            dados_novos={
                "item_id": item.id,
                "usuario_id": request.usuario_id,
                "data_prevista_devolucao": prevista,
            },
        )
        await self.db.commit()
        await self.db.refresh(emprestimo)

        logger.info("Lent item %s to user %s until %s", item.id, request.usuario_id, prevista)

        return EmprestimoResponse.model_validate(emprestimo)

    async def devolver(
        self,
        emprestimo_id: str,
        registrado_por: str,
        data_devolucao: date | None = None,
    ) -> EmprestimoResponse:
        emprestimo = await self._get_emprestimo(emprestimo_id)
        if emprestimo.status not in OPEN_LOAN_STATUSES:
            raise LibraryValidationError("Empréstimo já foi devolvido")

        anterior = emprestimo.status
        emprestimo.status = StatusEmprestimo.DEVOLVIDO.value
        emprestimo.data_devolucao = data_devolucao or utc_today()

        self.audit.log(
            ModuloAuditoria.BIBLIOTECA,
            AcaoAuditoria.UPDATE,
            "EmprestimoBiblioteca",
            emprestimo.id,
            usuario_id=registrado_por,
            dados_anteriores={"status": anterior},
            dados_novos={"status": emprestimo.status, "data_devolucao": emprestimo.data_devolucao},
        )
        await self.db.commit()
        await self.db.refresh(emprestimo)

        logger.info("Returned emprestimo %s", emprestimo.id)

        return EmprestimoResponse.model_validate(emprestimo)

    async def list_emprestimos(
        self,
        usuario_id: str | None = None,
        status: str | None = None,
    ) -> list[EmprestimoResponse]:
        query = select(EmprestimoBiblioteca).where(
            EmprestimoBiblioteca.instituicao_id == self.instituicao_id
        )
        if usuario_id:
            query = query.where(EmprestimoBiblioteca.usuario_id == usuario_id)
        if status:
            query = query.where(EmprestimoBiblioteca.status == status)
        result = await self.db.execute(query.order_by(EmprestimoBiblioteca.data_emprestimo.desc()))
        return [EmprestimoResponse.model_validate(e) for e in result.scalars().all()]

    async def list_atrasados(self, hoje: date | None = None) -> list[EmprestimoResponse]:
        """Overdue loans. ATIVO loans past their due date are marked ATRASADO."""
        hoje = hoje or utc_today()
        result = await self.db.execute(
            select(EmprestimoBiblioteca)
            .where(
                EmprestimoBiblioteca.instituicao_id == self.instituicao_id,
                EmprestimoBiblioteca.status.in_(OPEN_LOAN_STATUSES),
                EmprestimoBiblioteca.data_prevista_devolucao < hoje,
            )
            .order_by(EmprestimoBiblioteca.data_prevista_devolucao)
        )
        emprestimos = list(result.scalars().all())

        marcados = 0
        for emprestimo in emprestimos:
            if emprestimo.status == StatusEmprestimo.ATIVO.value:
                emprestimo.status = StatusEmprestimo.ATRASADO.value
                marcados += 1
        if marcados:
            await self.db.commit()
            logger.info("Marked %d emprestimo(s) as ATRASADO", marcados)

        return [EmprestimoResponse.model_validate(e) for e in emprestimos]

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _emprestimos_abertos(self, item_ids: list[str]) -> dict[str, int]:
        if not item_ids:
            return {}
        result = await self.db.execute(
            select(EmprestimoBiblioteca.item_id, func.count())
            .where(
                EmprestimoBiblioteca.item_id.in_(item_ids),
                EmprestimoBiblioteca.status.in_(OPEN_LOAN_STATUSES),
            )
            .group_by(EmprestimoBiblioteca.item_id)
        )
        return {item_id: count for item_id, count in result.all()}

    @staticmethod
    def _to_response(item: BibliotecaItem, disponivel: int) -> BibliotecaItemResponse:
        response = BibliotecaItemResponse.model_validate(item)
        response.disponivel = max(disponivel, 0)
        return response

    async def _get_item(self, item_id: str) -> BibliotecaItem:
        result = await self.db.execute(
            select(BibliotecaItem).where(
                BibliotecaItem.id == str(item_id),
                BibliotecaItem.instituicao_id == self.instituicao_id,
            )
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise LibraryNotFoundError(f"Item {item_id} not found")
        return item

    async def _get_emprestimo(self, emprestimo_id: str) -> EmprestimoBiblioteca:
        result = await self.db.execute(
            select(EmprestimoBiblioteca).where(
                EmprestimoBiblioteca.id == str(emprestimo_id),
                EmprestimoBiblioteca.instituicao_id == self.instituicao_id,
            )
        )
        emprestimo = result.scalar_one_or_none()
        if emprestimo is None:
            raise LibraryNotFoundError(f"Empréstimo {emprestimo_id} not found")
        return emprestimo
