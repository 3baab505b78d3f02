# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for tenant code extraction."""

from unittest.mock import MagicMock

import pytest

from dsicola.api.middleware.tenant import TenantContext, TenantMiddleware
from dsicola.core.config.settings import TenancySettings


@pytest.fixture
def middleware() -> TenantMiddleware:
    return TenantMiddleware(MagicMock(), settings=TenancySettings(base_domain="dsicola.com"))


class TestExtractTenantCode:
    """Tests for TenantMiddleware.extract_tenant_code."""

    def test_header_has_priority(self, middleware: TenantMiddleware) -> None:
        assert middleware.extract_tenant_code(" Escola-ABC ", "outra.dsicola.com") == "escola-abc"

    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("escola-abc.dsicola.com", "escola-abc"),
            ("Escola-ABC.DSICOLA.com:443", "escola-abc"),
            ("www.dsicola.com", None),
            ("app.dsicola.com", None),
            ("dsicola.com", None),
            ("a.b.dsicola.com", None),
            ("escola.outrodominio.ao", None),
            ("localhost:8000", None),
            ("127.0.0.1", None),
            ("", None),
        ],
    )
    def test_subdomain(self, middleware: TenantMiddleware, host: str, expected: str | None) -> None:
        assert middleware.extract_tenant_code(None, host) == expected

    def test_blank_header_falls_back_to_host(self, middleware: TenantMiddleware) -> None:
        assert middleware.extract_tenant_code("  ", "escola-x.dsicola.com") == "escola-x"


class TestTenantContext:
    """Tests for TenantContext."""

    def test_from_instituicao(self) -> None:
        instituicao = MagicMock()
        instituicao.id = "inst-1"
        instituicao.subdominio = "escola-abc"
        instituicao.nome = "Escola ABC"
        instituicao.status = "ativa"
        instituicao.tipo_academico = "SECUNDARIO"

        tenant = TenantContext.from_instituicao(instituicao)

        assert tenant.id == "inst-1"
        assert tenant.code == "escola-abc"
        assert tenant.is_active

    def test_suspended_is_not_active(self) -> None:
        tenant = TenantContext("inst-1", "x", "X", "suspensa", "SUPERIOR")

        assert not tenant.is_active
