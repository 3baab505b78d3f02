# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grading service.

Loads the grades of a student in a plano de ensino and runs the
calculation matching the institution's academic type and parameters.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.config import get_settings
from dsicola.core.enums import StatusMatricula
from dsicola.domains.grading.calculator import (
    GradeCalculationError,
    NotaCalculo,
    ResultadoCalculo,
    calcular,
)
from dsicola.domains.instituicao.service import load_parametros
from dsicola.infrastructure.database.models import (
    Avaliacao,
    Matricula,
    Nota,
    ParametrosSistema,
    PlanoEnsino,
)
from dsicola.models.grading import (
    MediaAlunoResponse,
    MediaLoteItem,
    ResultadoCalculoResponse,
)

logger = logging.getLogger(__name__)


class GradingServiceError(Exception):
    """Base exception for grading errors."""

    pass


class GradingNotFoundError(GradingServiceError):
    pass


class GradingValidationError(GradingServiceError):
    """Raised when a calculation cannot be performed."""

    pass


def to_response(resultado: ResultadoCalculo) -> ResultadoCalculoResponse:
    return ResultadoCalculoResponse.model_validate(asdict(resultado))


class GradingService:
    """Service for grade averages of one institution.

    Attributes:
        db: Async database session.
        instituicao_id: Tenant identifier.
        tipo_academico: SECUNDARIO or SUPERIOR.
    """

    def __init__(
        self,
        db: AsyncSession,
        instituicao_id: str,
        tipo_academico: str | None = None,
    ) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.tipo_academico = tipo_academico

    async def calcular_media(
        self,
        aluno_id: str,
        plano_ensino_id: str,
        trimestre: int | None = None,
    ) -> MediaAlunoResponse:
        """Compute the average of a student in a plano.

        Raises:
            GradingNotFoundError: Plano not found.
            GradingValidationError: Invalid grades, unknown academic type or
                an empty trimester.
        """
        plano = await self._get_plano(plano_ensino_id)
        parametros = await load_parametros(self.db, self.instituicao_id)
        resultado = await self.resultado_aluno(aluno_id, plano.id, parametros, trimestre)
        return MediaAlunoResponse(
            aluno_id=aluno_id,
            plano_ensino_id=plano.id,
            resultado=to_response(resultado),
        )

    async def calcular_lote(
        self,
        plano_ensino_id: str,
        aluno_ids: list[str] | None = None,
        trimestre: int | None = None,
    ) -> list[MediaLoteItem]:
        """Compute averages for several students of a plano.

        Each student is computed independently; a failure is reported in
        that student's item instead of aborting the batch.
        """
        plano = await self._get_plano(plano_ensino_id)
        parametros = await load_parametros(self.db, self.instituicao_id)

        if not aluno_ids:
            aluno_ids = await self._alunos_matriculados(plano.turma_id)

        itens: list[MediaLoteItem] = []
        for aluno_id in aluno_ids:
            try:
                resultado = await self.resultado_aluno(aluno_id, plano.id, parametros, trimestre)
            except GradingValidationError as e:
                logger.warning("Grade calculation failed for aluno %s: %s", aluno_id, e)
                itens.append(MediaLoteItem(aluno_id=aluno_id, erro=str(e)))
                continue
            itens.append(MediaLoteItem(aluno_id=aluno_id, resultado=to_response(resultado)))

        logger.info(
            "Calculated %d average(s) for plano %s (%d failed)",
            len(itens),
            plano.id,
            sum(1 for item in itens if item.erro),
        )
        return itens

    async def resultado_aluno(
        self,
        aluno_id: str,
        plano_ensino_id: str,
        parametros: ParametrosSistema,
        trimestre: int | None = None,
    ) -> ResultadoCalculo:
        """Run the calculation for one student with already loaded parameters.

        Raises:
            GradingValidationError: When the calculator rejects the grades.
        """
        notas = await self._notas_aluno(aluno_id, plano_ensino_id)
        try:
            return calcular(
                self.tipo_academico,
                notas,
                minimo=float(parametros.percentual_minimo_aprovacao),
                permitir_recurso=bool(parametros.permitir_exame_recurso),
                trimestre=trimestre,
                limiar_recurso=get_settings().academic.resit_threshold,
            )
        except GradeCalculationError as e:
            raise GradingValidationError(str(e)) from e

    async def _notas_aluno(self, aluno_id: str, plano_ensino_id: str) -> list[NotaCalculo]:
        result = await self.db.execute(
            select(Nota.valor, Avaliacao.tipo, Avaliacao.data, Avaliacao.trimestre, Avaliacao.id)
            .join(Avaliacao, Avaliacao.id == Nota.avaliacao_id)
            .where(
                Nota.instituicao_id == self.instituicao_id,
                Nota.aluno_id == str(aluno_id),
                Nota.plano_ensino_id == str(plano_ensino_id),
            )
            .order_by(Avaliacao.data)
        )
        return [
            NotaCalculo(
                tipo=tipo,
                valor=float(valor),
                data=data,
                trimestre=trimestre,
                avaliacao_id=avaliacao_id,
            )
            for valor, tipo, data, trimestre, avaliacao_id in result.all()
        ]

    async def _alunos_matriculados(self, turma_id: str) -> list[str]:
        result = await self.db.execute(
            select(Matricula.aluno_id).where(
                Matricula.turma_id == turma_id,
                Matricula.instituicao_id == self.instituicao_id,
                Matricula.status == StatusMatricula.ATIVA.value,
            )
        )
        return list(result.scalars().all())

    async def _get_plano(self, plano_id: str) -> PlanoEnsino:
        result = await self.db.execute(
            select(PlanoEnsino).where(
                PlanoEnsino.id == str(plano_id),
                PlanoEnsino.instituicao_id == self.instituicao_id,
            )
        )
        plano = result.scalar_one_or_none()
        if plano is None:
            raise GradingNotFoundError(f"Plano de ensino {plano_id} not found")
        return plano
