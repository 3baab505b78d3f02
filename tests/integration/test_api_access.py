# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the API surface.

The full application is built with create_app and requests carry real
access tokens, so the auth and tenant middleware and the role checks run
unchanged. Services are patched and the database session is replaced by a
mock, so no database is required.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from dsicola.api.app import create_app
from dsicola.api.dependencies import get_db
from dsicola.api.middleware.tenant import TenantContext
from dsicola.core.config import get_settings
from dsicola.domains.academic_closing.service import ClosingPrerequisitesError
from dsicola.domains.auth.jwt import JWTManager
from dsicola.domains.library.service import LibraryConflictError
from dsicola.domains.teaching_plan.service import PlanoEnsinoForbiddenError
from dsicola.models.finance import MensalidadeResponse

INSTITUICAO_ID = "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def app():
    application = create_app()

    async def _mock_db():
        yield AsyncMock()

    application.dependency_overrides[get_db] = _mock_db
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_headers():
    """Build Authorization headers for a user with the given roles."""
    manager = JWTManager(get_settings().jwt)

    def _make(*roles: str, user_id: str | None = None, instituicao_id: str = INSTITUICAO_ID):
        token = manager.create_access_token(
            user_id=user_id or str(uuid4()),
            email="user@escola.ao",
            instituicao_id=instituicao_id,
            roles=list(roles),
            tipo_academico="SUPERIOR",
        )
        return {"Authorization": f"Bearer {token}"}

    return _make


def _mensalidade(aluno_id: str) -> MensalidadeResponse:
    return MensalidadeResponse(
        id=str(uuid4()),
        aluno_id=aluno_id,
        curso_id=None,
        mes_referencia=3,
        ano_referencia=2025,
        valor=Decimal("15000.00"),
        desconto=Decimal("0.00"),
        multa=Decimal("0.00"),
        juros=Decimal("0.00"),
        valor_total=Decimal("15000.00"),
        data_vencimento=date(2025, 3, 10),
        data_pagamento=None,
        status="Pendente",
        forma_pagamento=None,
        observacoes=None,
        created_at=datetime.now(timezone.utc),
    )


class TestHealth:
    """Tests for the health endpoint."""

    def test_health_is_public(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"]


class TestAuthentication:
    """Tests for authentication and tenant isolation."""

    def test_missing_token_is_unauthorized(self, client: TestClient) -> None:
        response = client.get("/api/v1/biblioteca/itens")

        assert response.status_code == 401

    def test_invalid_token_is_unauthorized(self, client: TestClient) -> None:
        response = client.get(
            "/api/v1/biblioteca/itens", headers={"Authorization": "Bearer invalid"}
        )

        assert response.status_code == 401

    def test_token_of_other_institution_is_rejected(self, client: TestClient, make_headers) -> None:
        other = TenantContext(
            tenant_id=str(uuid4()),
            code="outra-escola",
            name="Outra Escola",
            status="ativa",
            tipo_academico="SUPERIOR",
        )

        with patch(
            "dsicola.api.middleware.tenant.TenantMiddleware._resolve_tenant",
            new=AsyncMock(return_value=other),
        ):
            response = client.get(
                "/api/v1/biblioteca/itens",
                headers={**make_headers("ADMIN"), "X-Tenant-Code": "outra-escola"},
            )

        assert response.status_code == 403
        assert response.json()["detail"] == "Acesso negado a esta instituição"

    def test_inactive_institution_is_forbidden(self, client: TestClient, make_headers) -> None:
        suspensa = TenantContext(
            tenant_id=INSTITUICAO_ID,
            code="escola-teste",
            name="Escola Teste",
            status="suspensa",
            tipo_academico="SUPERIOR",
        )

        with patch(
            "dsicola.api.middleware.tenant.TenantMiddleware._resolve_tenant",
            new=AsyncMock(return_value=suspensa),
        ):
            response = client.get(
                "/api/v1/biblioteca/itens",
                headers={**make_headers("ADMIN"), "X-Tenant-Code": "escola-teste"},
            )

        assert response.status_code == 403
        assert response.json()["detail"] == "Instituição não está ativa"


class TestEncerramentos:
    """Tests for the academic closing endpoints."""

    def test_student_cannot_close(self, client: TestClient, make_headers) -> None:
        response = client.post(
            "/api/v1/encerramentos/encerrar",
            json={"ano_letivo_id": str(uuid4()), "periodo": "SEMESTRE_1"},
            headers=make_headers("ALUNO"),
        )

        assert response.status_code == 403

    def test_unmet_prerequisites_are_listed(self, client: TestClient, make_headers) -> None:
        service = MagicMock()
        service.encerrar = AsyncMock(
            side_effect=ClosingPrerequisitesError(["Disciplina X: nenhuma aula lançada"])
        )

        with patch("dsicola.api.v1.encerramentos._get_service", return_value=service):
            response = client.post(
                "/api/v1/encerramentos/encerrar",
                json={"ano_letivo_id": str(uuid4()), "periodo": "SEMESTRE_1"},
                headers=make_headers("DIRECAO"),
            )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["falhas"] == ["Disciplina X: nenhuma aula lançada"]
        assert "Pré-requisitos" in detail["message"]

    def test_invalid_period_is_rejected(self, client: TestClient, make_headers) -> None:
        response = client.post(
            "/api/v1/encerramentos/encerrar",
            json={"ano_letivo_id": str(uuid4()), "periodo": "BIMESTRE_1"},
            headers=make_headers("ADMIN"),
        )

        assert response.status_code == 422


class TestFinanceiro:
    """Tests for tuition endpoints."""

    def test_student_sees_own_mensalidade(self, client: TestClient, make_headers) -> None:
        aluno_id = str(uuid4())
        service = MagicMock()
        service.get_mensalidade = AsyncMock(return_value=_mensalidade(aluno_id))

        with patch("dsicola.api.v1.financeiro._get_service", return_value=service):
            response = client.get(
                f"/api/v1/mensalidades/{uuid4()}",
                headers=make_headers("ALUNO", user_id=aluno_id),
            )

        assert response.status_code == 200
        assert response.json()["status"] == "Pendente"

    def test_student_cannot_see_other_mensalidade(self, client: TestClient, make_headers) -> None:
        service = MagicMock()
        service.get_mensalidade = AsyncMock(return_value=_mensalidade(str(uuid4())))

        with patch("dsicola.api.v1.financeiro._get_service", return_value=service):
            response = client.get(
                f"/api/v1/mensalidades/{uuid4()}",
                headers=make_headers("ALUNO"),
            )

        assert response.status_code == 403

    def test_only_admin_reverses_payments(self, client: TestClient, make_headers) -> None:
        response = client.post(
            f"/api/v1/pagamentos/{uuid4()}/estornar",
            headers=make_headers("FINANCEIRO"),
        )

        assert response.status_code == 403

    def test_student_listing_is_scoped_to_self(self, client: TestClient, make_headers) -> None:
        aluno_id = str(uuid4())
        service = MagicMock()
        service.list_mensalidades = AsyncMock(
            return_value={"items": [], "total": 0, "page": 1, "page_size": 20}
        )

        with patch("dsicola.api.v1.financeiro._get_service", return_value=service):
            response = client.get(
                f"/api/v1/mensalidades?aluno_id={uuid4()}",
                headers=make_headers("ALUNO", user_id=aluno_id),
            )

        assert response.status_code == 200
        assert service.list_mensalidades.await_args.kwargs["aluno_id"] == aluno_id


class TestBiblioteca:
    """Tests for library endpoints."""

    def test_loan_conflict_returns_409(self, client: TestClient, make_headers) -> None:
        service = MagicMock()
        service.emprestar = AsyncMock(
            side_effect=LibraryConflictError("Usuário já possui empréstimo ativo deste item")
        )

        with patch("dsicola.api.v1.biblioteca._get_service", return_value=service):
            response = client.post(
                "/api/v1/biblioteca/emprestimos",
                json={"item_id": str(uuid4()), "usuario_id": str(uuid4())},
                headers=make_headers("SECRETARIA"),
            )

        assert response.status_code == 409

    def test_professor_cannot_lend(self, client: TestClient, make_headers) -> None:
        response = client.post(
            "/api/v1/biblioteca/emprestimos",
            json={"item_id": str(uuid4()), "usuario_id": str(uuid4())},
            headers=make_headers("PROFESSOR"),
        )

        assert response.status_code == 403


class TestPlanoEnsinoWorkflow:
    """Tests for the plano workflow shortcuts."""

    def test_unknown_action_returns_404(self, client: TestClient, make_headers) -> None:
        response = client.post(
            f"/api/v1/plano-ensino/{uuid4()}/publicar",
            headers=make_headers("ADMIN"),
        )

        assert response.status_code == 404

    def test_forbidden_transition_returns_403(self, client: TestClient, make_headers) -> None:
        workflow = MagicMock()
        workflow.transition = AsyncMock(
            side_effect=PlanoEnsinoForbiddenError("Perfil sem permissão")
        )

        with patch("dsicola.api.v1.plano_ensino._get_workflow", return_value=workflow):
            response = client.post(
                f"/api/v1/plano-ensino/{uuid4()}/aprovar",
                headers=make_headers("PROFESSOR"),
            )

        assert response.status_code == 403
        args = workflow.transition.await_args.args
        assert args[2].value == "APROVADO"
        assert args[4] == ["PROFESSOR"]
