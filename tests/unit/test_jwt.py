# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token operations.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from dsicola.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
    TokenPayload,
)

SECRET = "test-secret-key-for-jwt-testing"


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr(SECRET)
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    settings.refresh_token_expire_days = 7
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_token_pair_returns_valid_tokens(self, jwt_manager: JWTManager) -> None:
        """Test that create_token_pair returns valid token pair."""
        result = jwt_manager.create_token_pair(
            user_id=str(uuid4()),
            email="professor@escola.ao",
            instituicao_id=str(uuid4()),
            roles=["PROFESSOR"],
            tipo_academico="SUPERIOR",
        )

        assert isinstance(result, TokenPair)
        assert result.access_token
        assert result.refresh_token
        assert result.token_type == "Bearer"
        assert result.expires_in == 30 * 60
        assert result.refresh_expires_in == 7 * 24 * 60 * 60

    def test_access_token_carries_claims(self, jwt_manager: JWTManager) -> None:
        user_id = str(uuid4())
        instituicao_id = str(uuid4())

        token = jwt_manager.create_access_token(
            user_id=user_id,
            email="admin@escola.ao",
            instituicao_id=instituicao_id,
            roles=["ADMIN", "PROFESSOR"],
            tipo_academico="SECUNDARIO",
        )
        payload = jwt_manager.decode_token(token, expected_type="access")

        assert isinstance(payload, TokenPayload)
        assert payload.sub == user_id
        assert payload.type == "access"
        assert payload.email == "admin@escola.ao"
        assert payload.instituicao_id == instituicao_id
        assert payload.roles == ["ADMIN", "PROFESSOR"]
        assert payload.tipo_academico == "SECUNDARIO"

    def test_platform_admin_token_has_no_institution(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), roles=["SUPER_ADMIN"])

        payload = jwt_manager.decode_token(token)

        assert payload.instituicao_id is None
        assert payload.roles == ["SUPER_ADMIN"]

    def test_refresh_token_has_refresh_type(self, jwt_manager: JWTManager) -> None:
        pair = jwt_manager.create_token_pair(user_id=str(uuid4()))

        payload = jwt_manager.decode_token(pair.refresh_token, expected_type="refresh")

        assert payload.type == "refresh"
        assert payload.roles == []

    def test_tokens_have_unique_jti(self, jwt_manager: JWTManager) -> None:
        user_id = str(uuid4())

        first = jwt_manager.decode_token(jwt_manager.create_access_token(user_id=user_id))
        second = jwt_manager.decode_token(jwt_manager.create_access_token(user_id=user_id))

        assert first.jti != second.jti


class TestDecodeToken:
    """Tests for token validation failures."""

    def test_wrong_type_is_rejected(self, jwt_manager: JWTManager) -> None:
        pair = jwt_manager.create_token_pair(user_id=str(uuid4()))

        with pytest.raises(InvalidTokenError, match="Expected access token"):
            jwt_manager.decode_token(pair.refresh_token, expected_type="access")

    def test_expired_token_raises(self, jwt_manager: JWTManager) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "user",
                "type": "access",
                "exp": int((past + timedelta(minutes=5)).timestamp()),
                "iat": int(past.timestamp()),
                "jti": "abc",
            },
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(token)

    def test_invalid_signature_raises(self, jwt_manager: JWTManager) -> None:
        token = jwt.encode(
            {"sub": "user", "type": "access", "exp": 9999999999, "iat": 0, "jti": "x"},
            "another-secret",
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_garbage_token_raises(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not-a-jwt")

    def test_missing_claims_raise(self, jwt_manager: JWTManager) -> None:
        token = jwt.encode({"sub": "user", "exp": 9999999999}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError, match="Invalid token claims"):
            jwt_manager.decode_token(token)

    def test_verify_token(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()))

        assert jwt_manager.verify_token(token) is True
        assert jwt_manager.verify_token(token, expected_type="refresh") is False
        assert jwt_manager.verify_token("invalid") is False


class TestHashToken:
    """Tests for refresh token hashing."""

    def test_hash_is_deterministic_sha256(self) -> None:
        first = JWTManager.hash_token("some-token")

        assert first == JWTManager.hash_token("some-token")
        assert len(first) == 64
        assert first != JWTManager.hash_token("other-token")
