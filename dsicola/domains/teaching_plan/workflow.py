# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Approval workflow rules shared by planos de ensino and avaliações.

Pure functions with no database access.
"""

from collections.abc import Iterable

from dsicola.core.enums import EstadoPlano, StatusWorkflow, UserRole

S = StatusWorkflow

TRANSITIONS: dict[tuple[StatusWorkflow, StatusWorkflow], frozenset[str]] = {
    (S.RASCUNHO, S.SUBMETIDO): frozenset(
        {UserRole.PROFESSOR.value, UserRole.SECRETARIA.value, UserRole.ADMIN.value}
    ),
    (S.SUBMETIDO, S.APROVADO): frozenset(
        {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value, UserRole.SECRETARIA.value}
    ),
    (S.SUBMETIDO, S.REJEITADO): frozenset(
        {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value, UserRole.SECRETARIA.value}
    ),
    (S.SUBMETIDO, S.RASCUNHO): frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}),
    (S.APROVADO, S.BLOQUEADO): frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}),
    (S.REJEITADO, S.RASCUNHO): frozenset(
        {UserRole.PROFESSOR.value, UserRole.SECRETARIA.value, UserRole.ADMIN.value}
    ),
    (S.BLOQUEADO, S.APROVADO): frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}),
}

ESTADO_POR_STATUS: dict[StatusWorkflow, EstadoPlano] = {
    S.RASCUNHO: EstadoPlano.RASCUNHO,
    S.SUBMETIDO: EstadoPlano.EM_REVISAO,
    S.APROVADO: EstadoPlano.APROVADO,
    S.REJEITADO: EstadoPlano.RASCUNHO,
    S.BLOQUEADO: EstadoPlano.ENCERRADO,
}


class WorkflowError(Exception):
    """Base exception for workflow rule violations."""

    pass


class InvalidTransitionError(WorkflowError):
    """Raised when the transition is not part of the workflow."""

    pass


class TransitionForbiddenError(WorkflowError):
    """Raised when none of the user's roles may perform the transition."""

    pass


def allowed_roles(atual: StatusWorkflow | str, novo: StatusWorkflow | str) -> frozenset[str] | None:
    """Roles allowed to perform a transition, or None if it does not exist."""
    return TRANSITIONS.get((StatusWorkflow(atual), StatusWorkflow(novo)))


def next_statuses(atual: StatusWorkflow | str) -> list[StatusWorkflow]:
    atual = StatusWorkflow(atual)
    return [novo for (origem, novo) in TRANSITIONS if origem == atual]


def validate_transition(
    atual: StatusWorkflow | str,
    novo: StatusWorkflow | str,
    roles: Iterable[str],
) -> None:
    """Check that ``roles`` may move an entity from ``atual`` to ``novo``.

    Raises:
        InvalidTransitionError: Transition not in the workflow.
        TransitionForbiddenError: No role of the user is allowed.
    """
    permitidos = allowed_roles(atual, novo)
    if permitidos is None:
        raise InvalidTransitionError(
            f"Transição inválida: {StatusWorkflow(atual).value} -> {StatusWorkflow(novo).value}"
        )
    if not permitidos.intersection(roles):
        raise TransitionForbiddenError(
            f"Perfil sem permissão para {StatusWorkflow(atual).value} -> "
            f"{StatusWorkflow(novo).value} (requer: {', '.join(sorted(permitidos))})"
        )


def estado_para(status: StatusWorkflow | str) -> EstadoPlano:
    """Operational estado of a plano for a workflow status."""
    return ESTADO_POR_STATUS[StatusWorkflow(status)]
