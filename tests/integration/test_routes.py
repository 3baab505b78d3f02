# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for route registration.

Checks that every API module is mounted under /api/v1 with the expected
paths. No database access is needed.
"""

import pytest
from fastapi import FastAPI

from dsicola.api.v1 import router as v1_router


@pytest.fixture(scope="module")
def route_paths() -> set[str]:
    app = FastAPI()
    app.include_router(v1_router)
    return {route.path for route in app.routes}


@pytest.mark.parametrize(
    "path",
    [
        "/api/v1/auth/login",
        "/api/v1/auth/refresh",
        "/api/v1/auth/logout",
        "/api/v1/auth/me",
        "/api/v1/auth/password/change",
        "/api/v1/instituicoes/configuracao/parametros",
        "/api/v1/instituicoes/configuracao/multa",
        "/api/v1/users/{user_id}",
        "/api/v1/anos-letivos/ativo",
        "/api/v1/anos-letivos/{ano_letivo_id}/trimestres",
        "/api/v1/anos-letivos/{ano_letivo_id}/semestres",
        "/api/v1/cursos",
        "/api/v1/classes",
        "/api/v1/disciplinas",
        "/api/v1/turmas",
        "/api/v1/matriculas-anuais",
        "/api/v1/matriculas",
        "/api/v1/plano-ensino",
        "/api/v1/plano-ensino/{plano_id}/aulas",
        "/api/v1/plano-ensino/{plano_id}/{acao}",
        "/api/v1/workflow/{entidade}/{entidade_id}/transicao",
        "/api/v1/workflow/{entidade}/{entidade_id}/historico",
        "/api/v1/aulas-lancadas",
        "/api/v1/presencas",
        "/api/v1/presencas/frequencia",
        "/api/v1/avaliacoes",
        "/api/v1/notas/avaliacao/lote",
        "/api/v1/notas/{nota_id}/corrigir",
        "/api/v1/periodos-lancamento",
        "/api/v1/periodos-lancamento/{periodo_id}/reabrir",
        "/api/v1/calculo-notas/media",
        "/api/v1/calculo-notas/lote",
        "/api/v1/encerramentos/iniciar",
        "/api/v1/encerramentos/encerrar",
        "/api/v1/encerramentos/reabrir",
        "/api/v1/encerramentos/status/{ano_letivo_id}",
        "/api/v1/mensalidades",
        "/api/v1/mensalidades/gerar",
        "/api/v1/mensalidades/aplicar-multas",
        "/api/v1/mensalidades/{mensalidade_id}/pagamentos",
        "/api/v1/pagamentos/{pagamento_id}/estornar",
        "/api/v1/biblioteca/itens",
        "/api/v1/biblioteca/emprestimos",
        "/api/v1/biblioteca/emprestimos/atrasados",
        "/api/v1/biblioteca/emprestimos/{emprestimo_id}/devolver",
        "/api/v1/rh/funcionarios",
        "/api/v1/rh/historico",
        "/api/v1/auditoria",
        "/api/v1/relatorios-oficiais/boletim/{aluno_id}",
        "/api/v1/relatorios-oficiais/pauta/{plano_id}",
    ],
)
def test_route_registered(route_paths: set[str], path: str) -> None:
    assert path in route_paths
