# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service.

This module provides the AuthService that orchestrates:
- Email and password login with account lockout
- Token refresh with rotation
- Logout
- Password change and administrative reset

Example:
    >>> auth_service = AuthService(db_session, jwt_manager)
    >>> result = await auth_service.login("aluno@escola.ao", "segredo", ip="10.0.0.1")
"""

import logging
from datetime import timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.config import get_settings
from dsicola.core.config.settings import SecuritySettings
from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, UserRole
from dsicola.domains.audit.service import AuditService
from dsicola.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
)
from dsicola.domains.auth.password import (
    PasswordHasher,
    WeakPasswordError,
    validate_password,
)
from dsicola.infrastructure.database.models import (
    Instituicao,
    LoginAttempt,
    RefreshToken,
    User,
)
from dsicola.models.auth import AuthenticatedUserInfo, LoginResponse
from dsicola.utils.datetime import days_from_now, ensure_utc, utc_now

logger = logging.getLogger(__name__)

MUST_CHANGE_PASSWORD = "MUST_CHANGE_PASSWORD"


class AuthenticationError(Exception):
    """Base exception for authentication errors."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials are invalid."""

    pass


class AccountLockedError(AuthenticationError):
    """Raised when too many failed logins locked the account."""

    pass


class AccountInactiveError(AuthenticationError):
    """Raised when account is not active."""

    pass


class PasswordChangeRequiredError(AuthenticationError):
    """Raised when the user must set a new password before logging in."""

    def __init__(self) -> None:
        super().__init__(MUST_CHANGE_PASSWORD)


class AmbiguousLoginError(AuthenticationError):
    """Raised when a login email without tenant matches several accounts."""

    pass


class NoInstitutionError(AuthenticationError):
    """Raised when a non platform user is not linked to an institution."""

    pass


class TokenRefreshError(AuthenticationError):
    """Raised when token refresh fails."""

    pass


class PasswordPolicyError(AuthenticationError):
    """Raised when a new password does not satisfy the policy."""

    pass


class UserNotFoundError(AuthenticationError):
    pass


class AuthService:
    """Authentication service.

    Attributes:
        _db: Database session for queries.
        _jwt_manager: JWT token manager.
        _hasher: Password hasher.
        _security: Lockout and password age policy.
    """

    def __init__(
        self,
        db: AsyncSession,
        jwt_manager: JWTManager,
        hasher: PasswordHasher | None = None,
        security: SecuritySettings | None = None,
    ) -> None:
        self._db = db
        self._jwt_manager = jwt_manager
        self._hasher = hasher or PasswordHasher()
        self._security = security or get_settings().security

    async def login(
        self,
        email: str,
        password: str,
        instituicao_id: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResponse:
        """Authenticate with email and password.

        Args:
            email: Login email, compared case-insensitively.
            password: Plain text password.
            instituicao_id: Tenant resolved for the request, if any. When set,
                only users of that institution (or platform admins) match.
            ip: Client address, kept on failed attempts.
            user_agent: Client user agent.

        Returns:
            Token pair and user summary.

        Raises:
            AccountLockedError: Too many consecutive failures.
            AmbiguousLoginError: No tenant and the email exists in several
                institutions.
            InvalidCredentialsError: Unknown email or wrong password.
            AccountInactiveError: User deactivated.
            PasswordChangeRequiredError: Password must be changed first.
            NoInstitutionError: User without an institution.
        """
        email = email.strip().lower()

        attempt = await self._db.get(LoginAttempt, email)
        if attempt and attempt.is_locked:
            logger.warning("Login blocked for locked account: %s", email)
            raise AccountLockedError(
                "Conta temporariamente bloqueada por excesso de tentativas. "
                f"Tente novamente em {self._security.lockout_minutes} minutos."
            )

        user = await self._find_user(email, instituicao_id)
        if user is None or not self._hasher.verify(password, user.password_hash):
            await self._record_failed_login(email, attempt, user, ip, user_agent)
            await self._db.commit()
            raise InvalidCredentialsError("Email ou senha inválidos")

        if attempt is not None:
            await self._db.delete(attempt)

        if not user.is_active:
            await self._db.commit()
            raise AccountInactiveError("Conta desativada")

        if not user.must_change_password and self._admin_password_expired(user):
            user.must_change_password = True
            logger.info("Admin password expired, forcing change: %s", user.id)

        if user.must_change_password:
            await self._db.commit()
            raise PasswordChangeRequiredError()

        if user.instituicao_id is None and not user.has_role(UserRole.SUPER_ADMIN.value):
            await self._db.commit()
            raise NoInstitutionError("Usuário sem instituição associada")

        tipo_academico = await self._tipo_academico(user.instituicao_id)
        tokens = self._jwt_manager.create_token_pair(
            user_id=user.id,
            email=user.email,
            instituicao_id=user.instituicao_id,
            roles=user.role_names,
            tipo_academico=tipo_academico,
        )
        self._store_refresh_token(user.id, tokens.refresh_token)
        user.last_login_at = utc_now()
        await self._db.commit()

        logger.info("User logged in: %s", user.id)

        return LoginResponse(
            **tokens.model_dump(),
            user=AuthenticatedUserInfo(
                id=user.id,
                email=user.email,
                nome_completo=user.nome_completo,
                instituicao_id=user.instituicao_id,
                tipo_academico=tipo_academico,
                roles=user.role_names,
            ),
        )

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Refresh access token using a refresh token.

        Implements refresh token rotation: the old refresh token is revoked
        and a new one is stored.

        Raises:
            TokenRefreshError: If refresh token is invalid, unknown or revoked.
        """
        try:
            payload = self._jwt_manager.decode_token(refresh_token, expected_type="refresh")
        except (TokenExpiredError, InvalidTokenError) as e:
            raise TokenRefreshError(f"Invalid refresh token: {str(e)}")

        token_hash = self._jwt_manager.hash_token(refresh_token)
        stmt = select(RefreshToken).where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.user_id == payload.sub,
        )
        stored_token = (await self._db.execute(stmt)).scalar_one_or_none()

        if not stored_token:
            raise TokenRefreshError("Refresh token not found")
        if not stored_token.is_valid:
            logger.warning("Reuse of revoked refresh token for user: %s", payload.sub)
            raise TokenRefreshError("Refresh token has been used or revoked")

        user = await self._db.get(User, payload.sub)
        if not user or not user.is_active:
            raise TokenRefreshError("User not found or inactive")

        stored_token.revoked_at = utc_now()

        new_tokens = self._jwt_manager.create_token_pair(
            user_id=user.id,
            email=user.email,
            instituicao_id=user.instituicao_id,
            roles=user.role_names,
            tipo_academico=await self._tipo_academico(user.instituicao_id),
        )
        self._store_refresh_token(user.id, new_tokens.refresh_token)
        await self._db.commit()

        logger.info("Tokens refreshed for user: %s", user.id)

        return new_tokens

    async def logout(self, user_id: str, refresh_token: str | None = None) -> None:
        """Revoke one refresh token, or every token of the user."""
        stmt = update(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at == None,  # noqa: E711
        )
        if refresh_token:
            stmt = stmt.where(RefreshToken.token_hash == self._jwt_manager.hash_token(refresh_token))
        await self._db.execute(stmt.values(revoked_at=utc_now()))
        await self._db.commit()

        logger.info("User logged out: %s (all=%s)", user_id, refresh_token is None)

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """Change the user's own password.

        Raises:
            UserNotFoundError: Unknown user.
            InvalidCredentialsError: Current password does not match.
            PasswordPolicyError: New password rejected by the policy.
        """
        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        if not self._hasher.verify(current_password, user.password_hash):
            raise InvalidCredentialsError("Senha atual incorreta")

        self._apply_new_password(user, new_password)
        user.must_change_password = False
        await self._db.commit()

        logger.info("Password changed for user: %s", user.id)

    async def change_password_with_credentials(
        self,
        email: str,
        current_password: str,
        new_password: str,
        instituicao_id: str | None = None,
    ) -> None:
        """Change a password using credentials instead of a session.

        Used by accounts flagged MUST_CHANGE_PASSWORD, which cannot log in.
        """
        user = await self._find_user(email.strip().lower(), instituicao_id)
        if user is None:
            raise InvalidCredentialsError("Email ou senha inválidos")
        await self.change_password(user.id, current_password, new_password)

    async def reset_user_password(
        self,
        admin_id: str,
        admin_instituicao_id: str | None,
        admin_is_super: bool,
        user_id: str,
        new_password: str,
    ) -> None:
        """Set a new password for another user and force a change at next login.

        Raises:
            UserNotFoundError: Unknown user or user of another institution.
            PasswordPolicyError: New password rejected by the policy.
        """
        user = await self._db.get(User, user_id)
        if user is None or (not admin_is_super and user.instituicao_id != admin_instituicao_id):
            raise UserNotFoundError(f"User {user_id} not found")

        self._apply_new_password(user, new_password)
        user.must_change_password = True

        AuditService(self._db, user.instituicao_id).log(
            ModuloAuditoria.SEGURANCA,
            AcaoAuditoria.PASSWORD_RESET,
            "User",
            user.id,
            usuario_id=admin_id,
            observacao=f"Senha redefinida para {user.email}",
        )
        await self._db.commit()

        logger.info("Password reset for user %s by %s", user.id, admin_id)

    def _apply_new_password(self, user: User, new_password: str) -> None:
        try:
            validate_password(new_password, user.role_names)
        except WeakPasswordError as e:
            raise PasswordPolicyError(str(e)) from e
        user.password_hash = self._hasher.hash(new_password)
        user.password_updated_at = utc_now()

    def _admin_password_expired(self, user: User) -> bool:
        if not user.has_role(UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value):
            return False
        if user.password_updated_at is None:
            return False
        max_age = timedelta(days=self._security.admin_password_max_age_days)
        return utc_now() - ensure_utc(user.password_updated_at) > max_age

    async def _find_user(self, email: str, instituicao_id: str | None) -> User | None:
        """Find the login account of an email.

        With a tenant, a user of that institution wins over a platform account
        with the same email. Without one, the email must be unambiguous.

        Raises:
            AmbiguousLoginError: No tenant and several accounts share the email.
        """
        stmt = select(User).where(User.email == email)
        if instituicao_id:
            stmt = stmt.where(
                or_(User.instituicao_id == instituicao_id, User.instituicao_id == None)  # noqa: E711
            )
            stmt = stmt.order_by(User.instituicao_id.is_(None), User.created_at).limit(1)
            return (await self._db.execute(stmt)).scalars().first()

        users = (await self._db.execute(stmt.limit(2))).scalars().all()
        if len(users) > 1:
            logger.warning("Login without tenant for email shared by institutions: %s", email)
            raise AmbiguousLoginError(
                "Email associado a mais de uma instituição. "
                "Aceda pelo endereço (subdomínio) da sua instituição."
            )
        return users[0] if users else None

    async def _tipo_academico(self, instituicao_id: str | None) -> str | None:
        if not instituicao_id:
            return None
        instituicao = await self._db.get(Instituicao, instituicao_id)
        return instituicao.tipo_academico if instituicao else None

    async def _record_failed_login(
        self,
        email: str,
        attempt: LoginAttempt | None,
        user: User | None,
        ip: str | None,
        user_agent: str | None,
    ) -> None:
        now = utc_now()
        if attempt is None:
            attempt = LoginAttempt(email=email, attempt_count=0)
            self._db.add(attempt)
        elif attempt.locked_until is not None:
            # Lock window elapsed, start a new series
            attempt.attempt_count = 0
            attempt.locked_until = None

        attempt.attempt_count += 1
        attempt.last_attempt_at = now
        attempt.ip_origem = ip

        audit = AuditService(self._db, user.instituicao_id if user else None)
        acao = AcaoAuditoria.LOGIN_FAILED
        if attempt.attempt_count >= self._security.max_login_attempts:
            attempt.locked_until = now + timedelta(minutes=self._security.lockout_minutes)
            acao = AcaoAuditoria.LOGIN_BLOCKED
            logger.warning("Account locked after %d failures: %s", attempt.attempt_count, email)
        else:
            logger.warning("Failed login %d for %s", attempt.attempt_count, email)

        audit.log(
            ModuloAuditoria.SEGURANCA,
            acao,
            "User",
            user.id if user else None,
            usuario_id=user.id if user else None,
            usuario_email=email,
            ip_origem=ip,
            user_agent=user_agent,
            observacao=f"Tentativa {attempt.attempt_count}",
        )

    def _store_refresh_token(self, user_id: str, refresh_token: str) -> RefreshToken:
        token = RefreshToken(
            user_id=user_id,
            token_hash=self._jwt_manager.hash_token(refresh_token),
            expires_at=days_from_now(self._jwt_manager.refresh_expire_days),
        )
        self._db.add(token)
        return token
