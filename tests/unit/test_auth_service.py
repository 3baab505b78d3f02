# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the authentication service."""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from pydantic import SecretStr

from dsicola.core.config.settings import SecuritySettings
from dsicola.domains.auth.jwt import JWTManager
from dsicola.domains.auth.service import (
    AccountInactiveError,
    AccountLockedError,
    AmbiguousLoginError,
    AuthService,
    InvalidCredentialsError,
    NoInstitutionError,
    PasswordChangeRequiredError,
    TokenRefreshError,
)
from dsicola.infrastructure.database.models import (
    LogAuditoria,
    LoginAttempt,
    RefreshToken,
    User,
    UserRoleAssignment,
)
from dsicola.utils.datetime import utc_now

INSTITUICAO_ID = str(uuid4())
EMAIL = "secretaria@escola.ao"


@pytest.fixture
def jwt_manager() -> JWTManager:
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-auth-service")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    settings.refresh_token_expire_days = 7
    return JWTManager(settings)


@pytest.fixture
def hasher() -> MagicMock:
    hasher = MagicMock()
    hasher.verify.return_value = True
    hasher.hash.return_value = "hashed"
    return hasher


@pytest.fixture
def auth_service(mock_db, jwt_manager, hasher) -> AuthService:
    return AuthService(
        mock_db,
        jwt_manager,
        hasher=hasher,
        security=SecuritySettings(
            max_login_attempts=5, lockout_minutes=5, admin_password_max_age_days=90
        ),
    )


def _user(*roles: str, **overrides) -> User:
    values = {
        "id": str(uuid4()),
        "instituicao_id": INSTITUICAO_ID,
        "email": EMAIL,
        "password_hash": "stored-hash",
        "nome_completo": "Ana Secretária",
        "is_active": True,
        "must_change_password": False,
        "password_updated_at": utc_now(),
    }
    values.update(overrides)
    user = User(**values)
    user.roles = [UserRoleAssignment(role=role) for role in roles or ("SECRETARIA",)]
    return user


def _found(*users):
    result = MagicMock()
    result.scalars.return_value.first.return_value = users[0] if users else None
    result.scalars.return_value.all.return_value = list(users)
    return result


def _lookup(attempt=None, instituicao=None):
    """Side effect for session.get keyed by model."""

    async def get(model, key):
        if model is LoginAttempt:
            return attempt
        return instituicao

    return get


def _added(mock_db, model):
    return [call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], model)]


class TestLogin:
    """Tests for AuthService.login."""

    @pytest.mark.asyncio
    async def test_successful_login_returns_tokens(self, auth_service, mock_db):
        user = _user()
        instituicao = MagicMock(tipo_academico="SECUNDARIO")
        mock_db.get.side_effect = _lookup(instituicao=instituicao)
        mock_db.execute.return_value = _found(user)

        response = await auth_service.login(" Secretaria@Escola.AO ", "Segura#2025", INSTITUICAO_ID)

        assert response.user.id == user.id
        assert response.user.roles == ["SECRETARIA"]
        assert response.user.tipo_academico == "SECUNDARIO"
        assert response.access_token and response.refresh_token
        assert user.last_login_at is not None
        assert len(_added(mock_db, RefreshToken)) == 1
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_locked_account_is_rejected_before_lookup(self, auth_service, mock_db):
        attempt = LoginAttempt(
            email=EMAIL, attempt_count=5, locked_until=utc_now() + timedelta(minutes=3)
        )
        mock_db.get.side_effect = _lookup(attempt=attempt)

        with pytest.raises(AccountLockedError, match="5 minutos"):
            await auth_service.login(EMAIL, "qualquer", INSTITUICAO_ID)
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_password_records_attempt(self, auth_service, mock_db, hasher):
        hasher.verify.return_value = False
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(_user())

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(EMAIL, "errada", INSTITUICAO_ID, ip="10.0.0.7")

        attempt = _added(mock_db, LoginAttempt)[0]
        assert attempt.attempt_count == 1
        assert attempt.locked_until is None
        assert attempt.ip_origem == "10.0.0.7"
        assert _added(mock_db, LogAuditoria)[0].acao == "LOGIN_FAILED"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_email_records_attempt(self, auth_service, mock_db):
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found()

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("ninguem@escola.ao", "x", INSTITUICAO_ID)

        assert _added(mock_db, LoginAttempt)[0].email == "ninguem@escola.ao"

    @pytest.mark.asyncio
    async def test_account_locks_at_max_attempts(self, auth_service, mock_db, hasher):
        hasher.verify.return_value = False
        attempt = LoginAttempt(email=EMAIL, attempt_count=4, locked_until=None)
        mock_db.get.side_effect = _lookup(attempt=attempt)
        mock_db.execute.return_value = _found(_user())

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(EMAIL, "errada", INSTITUICAO_ID)

        assert attempt.attempt_count == 5
        assert attempt.is_locked
        assert _added(mock_db, LogAuditoria)[0].acao == "LOGIN_BLOCKED"

    @pytest.mark.asyncio
    async def test_expired_lock_starts_new_series(self, auth_service, mock_db, hasher):
        hasher.verify.return_value = False
        attempt = LoginAttempt(
            email=EMAIL, attempt_count=5, locked_until=utc_now() - timedelta(minutes=1)
        )
        mock_db.get.side_effect = _lookup(attempt=attempt)
        mock_db.execute.return_value = _found(_user())

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(EMAIL, "errada", INSTITUICAO_ID)

        assert attempt.attempt_count == 1
        assert attempt.locked_until is None

    @pytest.mark.asyncio
    async def test_success_clears_attempts(self, auth_service, mock_db):
        attempt = LoginAttempt(email=EMAIL, attempt_count=3, locked_until=None)
        mock_db.get.side_effect = _lookup(
            attempt=attempt, instituicao=MagicMock(tipo_academico="SUPERIOR")
        )
        mock_db.execute.return_value = _found(_user())

        await auth_service.login(EMAIL, "Segura#2025", INSTITUICAO_ID)

        mock_db.delete.assert_awaited_once_with(attempt)

    @pytest.mark.asyncio
    async def test_inactive_user(self, auth_service, mock_db):
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(_user(is_active=False))

        with pytest.raises(AccountInactiveError):
            await auth_service.login(EMAIL, "Segura#2025", INSTITUICAO_ID)
        assert _added(mock_db, RefreshToken) == []

    @pytest.mark.asyncio
    async def test_must_change_password(self, auth_service, mock_db):
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(_user(must_change_password=True))

        with pytest.raises(PasswordChangeRequiredError, match="MUST_CHANGE_PASSWORD"):
            await auth_service.login(EMAIL, "Segura#2025", INSTITUICAO_ID)

    @pytest.mark.asyncio
    async def test_expired_admin_password_forces_change(self, auth_service, mock_db):
        admin = _user("ADMIN", password_updated_at=utc_now() - timedelta(days=91))
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(admin)

        with pytest.raises(PasswordChangeRequiredError):
            await auth_service.login(EMAIL, "Segura#2025", INSTITUICAO_ID)

        assert admin.must_change_password is True
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_old_password_of_non_admin_is_accepted(self, auth_service, mock_db):
        professor = _user("PROFESSOR", password_updated_at=utc_now() - timedelta(days=400))
        mock_db.get.side_effect = _lookup(instituicao=MagicMock(tipo_academico="SUPERIOR"))
        mock_db.execute.return_value = _found(professor)

        await auth_service.login(EMAIL, "Segura#2025", INSTITUICAO_ID)

        assert professor.must_change_password is False

    @pytest.mark.asyncio
    async def test_user_without_institution(self, auth_service, mock_db):
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(_user("ADMIN", instituicao_id=None))

        with pytest.raises(NoInstitutionError):
            await auth_service.login(EMAIL, "Segura#2025")

    @pytest.mark.asyncio
    async def test_super_admin_without_institution(self, auth_service, mock_db):
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(_user("SUPER_ADMIN", instituicao_id=None))

        response = await auth_service.login(EMAIL, "Segura#2025")

        assert response.user.instituicao_id is None
        assert response.user.tipo_academico is None

    @pytest.mark.asyncio
    async def test_email_in_several_institutions_needs_tenant(self, auth_service, mock_db):
        mock_db.get.side_effect = _lookup()
        mock_db.execute.return_value = _found(
            _user(instituicao_id=str(uuid4())), _user(instituicao_id=str(uuid4()))
        )

        with pytest.raises(AmbiguousLoginError, match="subdomínio"):
            await auth_service.login(EMAIL, "Segura#2025")

        assert _added(mock_db, LoginAttempt) == []
        mock_db.commit.assert_not_called()


class TestRefreshTokens:
    """Tests for refresh token rotation."""

    @pytest.mark.asyncio
    async def test_rotation_revokes_old_token(self, auth_service, mock_db, jwt_manager):
        user = _user()
        tokens = jwt_manager.create_token_pair(user_id=user.id, instituicao_id=INSTITUICAO_ID)
        stored = RefreshToken(
            user_id=user.id,
            token_hash=jwt_manager.hash_token(tokens.refresh_token),
            expires_at=utc_now() + timedelta(days=7),
        )
        result = MagicMock()
        result.scalar_one_or_none.return_value = stored
        mock_db.execute.return_value = result
        mock_db.get.side_effect = [user, MagicMock(tipo_academico="SECUNDARIO")]

        new_tokens = await auth_service.refresh_tokens(tokens.refresh_token)

        assert stored.revoked_at is not None
        assert new_tokens.refresh_token != tokens.refresh_token
        novo = _added(mock_db, RefreshToken)[0]
        assert novo.token_hash == jwt_manager.hash_token(new_tokens.refresh_token)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revoked_token_is_rejected(self, auth_service, mock_db, jwt_manager):
        user_id = str(uuid4())
        tokens = jwt_manager.create_token_pair(user_id=user_id)
        stored = RefreshToken(
            user_id=user_id,
            token_hash=jwt_manager.hash_token(tokens.refresh_token),
            expires_at=utc_now() + timedelta(days=7),
            revoked_at=utc_now() - timedelta(minutes=1),
        )
        result = MagicMock()
        result.scalar_one_or_none.return_value = stored
        mock_db.execute.return_value = result

        with pytest.raises(TokenRefreshError, match="revoked"):
            await auth_service.refresh_tokens(tokens.refresh_token)
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, auth_service, mock_db, jwt_manager):
        tokens = jwt_manager.create_token_pair(user_id=str(uuid4()))

        with pytest.raises(TokenRefreshError):
            await auth_service.refresh_tokens(tokens.access_token)
        mock_db.execute.assert_not_called()
