# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the approval workflow rules."""

import pytest

from dsicola.core.enums import EstadoPlano, StatusWorkflow
from dsicola.domains.teaching_plan.workflow import (
    InvalidTransitionError,
    TransitionForbiddenError,
    allowed_roles,
    estado_para,
    next_statuses,
    validate_transition,
)


class TestValidateTransition:
    """Tests for validate_transition."""

    def test_professor_submits_draft(self) -> None:
        validate_transition(StatusWorkflow.RASCUNHO, StatusWorkflow.SUBMETIDO, ["PROFESSOR"])

    @pytest.mark.parametrize("role", ["ADMIN", "SUPER_ADMIN", "SECRETARIA"])
    def test_staff_approves(self, role: str) -> None:
        validate_transition("SUBMETIDO", "APROVADO", [role])

    def test_professor_cannot_approve(self) -> None:
        with pytest.raises(TransitionForbiddenError, match="requer"):
            validate_transition("SUBMETIDO", "APROVADO", ["PROFESSOR"])

    def test_only_admin_blocks(self) -> None:
        validate_transition("APROVADO", "BLOQUEADO", ["ADMIN"])

        with pytest.raises(TransitionForbiddenError):
            validate_transition("APROVADO", "BLOQUEADO", ["SECRETARIA"])

    def test_unblock_requires_admin(self) -> None:
        validate_transition("BLOQUEADO", "APROVADO", ["SUPER_ADMIN"])

        with pytest.raises(TransitionForbiddenError):
            validate_transition("BLOQUEADO", "APROVADO", ["PROFESSOR"])

    def test_any_matching_role_is_enough(self) -> None:
        validate_transition("SUBMETIDO", "RASCUNHO", ["PROFESSOR", "ADMIN"])

    @pytest.mark.parametrize(
        ("atual", "novo"),
        [
            ("RASCUNHO", "APROVADO"),
            ("RASCUNHO", "BLOQUEADO"),
            ("APROVADO", "RASCUNHO"),
            ("REJEITADO", "APROVADO"),
            ("BLOQUEADO", "RASCUNHO"),
        ],
    )
    def test_invalid_transitions(self, atual: str, novo: str) -> None:
        with pytest.raises(InvalidTransitionError, match="Transição inválida"):
            validate_transition(atual, novo, ["SUPER_ADMIN", "ADMIN"])

    def test_unknown_status_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_transition("RASCUNHO", "PUBLICADO", ["ADMIN"])


class TestWorkflowHelpers:
    """Tests for allowed_roles, next_statuses and estado_para."""

    def test_allowed_roles_for_missing_transition(self) -> None:
        assert allowed_roles("APROVADO", "REJEITADO") is None

    def test_next_statuses_from_submitted(self) -> None:
        assert set(next_statuses("SUBMETIDO")) == {
            StatusWorkflow.APROVADO,
            StatusWorkflow.REJEITADO,
            StatusWorkflow.RASCUNHO,
        }

    def test_next_statuses_from_blocked(self) -> None:
        assert next_statuses(StatusWorkflow.BLOQUEADO) == [StatusWorkflow.APROVADO]

    @pytest.mark.parametrize(
        ("status", "estado"),
        [
            ("RASCUNHO", EstadoPlano.RASCUNHO),
            ("SUBMETIDO", EstadoPlano.EM_REVISAO),
            ("APROVADO", EstadoPlano.APROVADO),
            ("REJEITADO", EstadoPlano.RASCUNHO),
            ("BLOQUEADO", EstadoPlano.ENCERRADO),
        ],
    )
    def test_estado_para(self, status: str, estado: EstadoPlano) -> None:
        assert estado_para(status) is estado
