# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for managing users of an institution.

This module provides the UserService class for:
- User CRUD and activation
- Role assignment
- Guardian (RESPONSAVEL) to student links
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dsicola.core.enums import AcaoAuditoria, ModuloAuditoria, UserRole
from dsicola.domains.audit.service import AuditService
from dsicola.domains.auth.password import PasswordHasher, WeakPasswordError, validate_password
from dsicola.infrastructure.database.models import (
    ResponsavelAluno,
    User,
    UserRoleAssignment,
)
from dsicola.models.user import (
    AlunoDoResponsavel,
    ResponsavelAlunoResponse,
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserSummary,
    UserUpdateRequest,
)
from dsicola.utils.datetime import utc_now

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value})


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when user is not found."""

    pass


class UserAlreadyExistsError(UserServiceError):
    """Raised when the email is already used in the institution."""

    pass


class UserValidationError(UserServiceError):
    """Raised for invalid user data."""

    pass


class UserForbiddenError(UserServiceError):
    """Raised when the acting user may not perform the operation."""

    pass


class UserService:
    """Service for managing users of one institution.

    Attributes:
        db: Async database session.
        instituicao_id: Tenant identifier.
    """

    def __init__(
        self,
        db: AsyncSession,
        instituicao_id: str,
        hasher: PasswordHasher | None = None,
    ) -> None:
        self.db = db
        self.instituicao_id = instituicao_id
        self.hasher = hasher or PasswordHasher()
        self.audit = AuditService(db, instituicao_id)

    async def create_user(
        self,
        request: UserCreateRequest,
        actor_id: str,
        actor_roles: list[str],
    ) -> UserResponse:
        """Create a user.

        Args:
            request: User data.
            actor_id: Acting user.
            actor_roles: Roles of the acting user.

        Returns:
            Created user.

        Raises:
            UserForbiddenError: Non super admin granting ADMIN or SUPER_ADMIN.
            UserAlreadyExistsError: Email already used in the institution.
            UserValidationError: Password rejected by the policy.
        """
        roles = sorted({r.value for r in request.roles})
        self._check_can_grant(roles, actor_roles)

        existing = await self.db.execute(
            select(User.id).where(
                User.instituicao_id == self.instituicao_id,
                User.email == request.email,
            )
        )
        if existing.scalar_one_or_none():
            raise UserAlreadyExistsError(f"Email '{request.email}' já cadastrado")

        try:
            validate_password(request.password, roles)
        except WeakPasswordError as e:
            raise UserValidationError(str(e)) from e

        user = User(
            instituicao_id=self.instituicao_id,
            email=request.email,
            nome_completo=request.nome_completo,
            telefone=request.telefone,
            numero_identificacao=request.numero_identificacao,
            password_hash=self.hasher.hash(request.password),
            password_updated_at=utc_now(),
            must_change_password=request.must_change_password,
            roles=[UserRoleAssignment(role=role) for role in roles],
        )
        self.db.add(user)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.USUARIOS,
            AcaoAuditoria.CREATE,
            "User",
            user.id,
            usuario_id=actor_id,
            dados_novos={"email": user.email, "roles": roles},
        )
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("Created user: %s (%s) roles=%s", user.email, user.id, roles)

        return self._to_response(user)

    async def list_users(
        self,
        role: str | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> UserListResponse:
        query = select(User).where(User.instituicao_id == self.instituicao_id)

        if role:
            query = query.where(
                User.id.in_(select(UserRoleAssignment.user_id).where(UserRoleAssignment.role == role))
            )
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(User.nome_completo.ilike(pattern), User.email.ilike(pattern)))
        if is_active is not None:
            query = query.where(User.is_active == is_active)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(User.nome_completo).offset((page - 1) * page_size).limit(page_size)
        result = await self.db.execute(query)
        items = [self._to_summary(u) for u in result.scalars().all()]

        return UserListResponse(items=items, total=total, page=page, page_size=page_size)

    async def get_user(self, user_id: str) -> UserResponse:
        return self._to_response(await self._get_by_id(user_id))

    async def update_user(
        self,
        user_id: str,
        request: UserUpdateRequest,
        actor_id: str,
        actor_roles: list[str],
    ) -> UserResponse:
        user = await self._get_by_id(user_id)
        antes = self._to_response(user)
        data = request.model_dump(exclude_unset=True)

        roles = data.pop("roles", None)
        if roles is not None:
            new_roles = sorted({getattr(r, "value", r) for r in roles})
            # Granting or revoking privileged roles needs a super admin
            self._check_can_grant(
                sorted(set(new_roles) ^ set(user.role_names)), actor_roles
            )
            current = {assignment.role: assignment for assignment in user.roles}
            user.roles = [
                current.get(role) or UserRoleAssignment(role=role) for role in new_roles
            ]

        for field, value in data.items():
            setattr(user, field, value)

        await self.db.flush()
        self.audit.log(
            ModuloAuditoria.USUARIOS,
            AcaoAuditoria.UPDATE,
            "User",
            user.id,
            usuario_id=actor_id,
            dados_anteriores=antes,
            dados_novos=self._to_response(user),
        )
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("Updated user: %s", user.id)

        return self._to_response(user)

    async def set_active(self, user_id: str, active: bool, actor_id: str) -> UserResponse:
        """Activate or deactivate a user."""
        user = await self._get_by_id(user_id)
        if user.id == actor_id and not active:
            raise UserValidationError("Não é possível desativar a própria conta")

        user.is_active = active
        self.audit.log(
            ModuloAuditoria.USUARIOS,
            AcaoAuditoria.UPDATE,
            "User",
            user.id,
            usuario_id=actor_id,
            dados_novos={"is_active": active},
        )
        await self.db.commit()

        logger.info("User %s %s", user.id, "activated" if active else "deactivated")

        return self._to_response(user)

    async def link_responsavel(
        self,
        responsavel_id: str,
        aluno_id: str,
        parentesco: str | None,
        actor_id: str,
    ) -> ResponsavelAlunoResponse:
        """Link a guardian to a student of the same institution.

        Raises:
            UserNotFoundError: Either user missing in the institution.
            UserValidationError: Users lack the RESPONSAVEL / ALUNO roles.
            UserAlreadyExistsError: Link already exists.
        """
        responsavel = await self._get_by_id(responsavel_id)
        aluno = await self._get_by_id(aluno_id)

        if not responsavel.has_role(UserRole.RESPONSAVEL.value):
            raise UserValidationError("Usuário não possui o perfil RESPONSAVEL")
        if not aluno.has_role(UserRole.ALUNO.value):
            raise UserValidationError("Usuário não possui o perfil ALUNO")

        existing = await self.db.execute(
            select(ResponsavelAluno.id).where(
                ResponsavelAluno.responsavel_id == responsavel.id,
                ResponsavelAluno.aluno_id == aluno.id,
            )
        )
        if existing.scalar_one_or_none():
            raise UserAlreadyExistsError("Responsável já vinculado a este aluno")

        link = ResponsavelAluno(
            instituicao_id=self.instituicao_id,
            responsavel_id=responsavel.id,
            aluno_id=aluno.id,
            parentesco=parentesco,
        )
        self.db.add(link)
        await self.db.flush()

        self.audit.log(
            ModuloAuditoria.USUARIOS,
            AcaoAuditoria.CREATE,
            "ResponsavelAluno",
            link.id,
            usuario_id=actor_id,
            dados_novos={"responsavel_id": responsavel.id, "aluno_id": aluno.id},
        )
        await self.db.commit()
        await self.db.refresh(link)

        logger.info("Linked responsavel %s to aluno %s", responsavel.id, aluno.id)

        return ResponsavelAlunoResponse.model_validate(link)

    async def list_alunos_do_responsavel(self, responsavel_id: str) -> list[AlunoDoResponsavel]:
        result = await self.db.execute(
            select(User, ResponsavelAluno.parentesco)
            .join(ResponsavelAluno, ResponsavelAluno.aluno_id == User.id)
            .where(
                ResponsavelAluno.instituicao_id == self.instituicao_id,
                ResponsavelAluno.responsavel_id == responsavel_id,
            )
            .order_by(User.nome_completo)
        )
        return [
            AlunoDoResponsavel(
                aluno_id=aluno.id,
                nome_completo=aluno.nome_completo,
                email=aluno.email,
                numero_identificacao=aluno.numero_identificacao,
                parentesco=parentesco,
            )
            for aluno, parentesco in result.all()
        ]

    async def is_responsavel_de(self, responsavel_id: str, aluno_id: str) -> bool:
        result = await self.db.execute(
            select(ResponsavelAluno.id).where(
                ResponsavelAluno.instituicao_id == self.instituicao_id,
                ResponsavelAluno.responsavel_id == responsavel_id,
                ResponsavelAluno.aluno_id == aluno_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def get_with_role(self, user_id: str, role: UserRole) -> User:
        """Load a user of the institution that holds ``role``.

        Raises:
            UserNotFoundError: User missing in the institution.
            UserValidationError: User lacks the role.
        """
        user = await self._get_by_id(user_id)
        if not user.has_role(role.value):
            raise UserValidationError(f"Usuário não possui o perfil {role.value}")
        return user

    def _check_can_grant(self, roles: list[str], actor_roles: list[str]) -> None:
        if PRIVILEGED_ROLES.intersection(roles) and UserRole.SUPER_ADMIN.value not in actor_roles:
            raise UserForbiddenError("Apenas SUPER_ADMIN pode atribuir perfis ADMIN ou SUPER_ADMIN")

    async def _get_by_id(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User).where(
                User.id == str(user_id),
                User.instituicao_id == self.instituicao_id,
            )
        )
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def _to_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            instituicao_id=user.instituicao_id,
            email=user.email,
            nome_completo=user.nome_completo,
            telefone=user.telefone,
            numero_identificacao=user.numero_identificacao,
            roles=user.role_names,
            is_active=user.is_active,
            must_change_password=user.must_change_password,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
        )

    def _to_summary(self, user: User) -> UserSummary:
        return UserSummary(
            id=user.id,
            email=user.email,
            nome_completo=user.nome_completo,
            roles=user.role_names,
            is_active=user.is_active,
        )
