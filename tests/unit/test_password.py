# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing and password policy."""

import pytest

from dsicola.domains.auth.password import (
    PasswordHasher,
    PasswordStrength,
    WeakPasswordError,
    hash_password,
    password_strength,
    requires_strong_password,
    validate_password,
    verify_password,
)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Fast hasher for tests."""
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_and_verify(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("Segura_123")

        assert hashed != "Segura_123"
        assert hashed.startswith("$2")
        assert hasher.verify("Segura_123", hashed) is True
        assert hasher.verify("errada", hashed) is False

    def test_hash_uses_random_salt(self, hasher: PasswordHasher) -> None:
        assert hasher.hash("Segura_123") != hasher.hash("Segura_123")

    def test_hash_empty_password_raises(self, hasher: PasswordHasher) -> None:
        with pytest.raises(ValueError):
            hasher.hash("")

    def test_verify_empty_inputs(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("Segura_123")

        assert hasher.verify("", hashed) is False
        assert hasher.verify("Segura_123", None) is False

    def test_verify_invalid_hash(self, hasher: PasswordHasher) -> None:
        assert hasher.verify("Segura_123", "not-a-bcrypt-hash") is False

    def test_module_helpers(self) -> None:
        hashed = hash_password("Outra-senha1")

        assert verify_password("Outra-senha1", hashed) is True


class TestPasswordStrength:
    """Tests for password strength classification."""

    @pytest.mark.parametrize(
        "password",
        ["Ab1!", "abcdefgh1!", "ABCDEFGH12", "ABCDEFG!"],
    )
    def test_pessima(self, password: str) -> None:
        assert password_strength(password) is PasswordStrength.PESSIMA

    def test_media(self) -> None:
        assert password_strength("Abcdefg!") is PasswordStrength.MEDIA

    def test_boa(self) -> None:
        assert password_strength("Abcdefghijk!") is PasswordStrength.BOA

    def test_forte(self) -> None:
        assert password_strength("Abcdef1!") is PasswordStrength.FORTE
        assert password_strength("Muito-Segura-2025") is PasswordStrength.FORTE


class TestPasswordPolicy:
    """Tests for role dependent password rules."""

    @pytest.mark.parametrize("role", ["ADMIN", "PROFESSOR", "SECRETARIA", "SUPER_ADMIN", "POS"])
    def test_staff_roles_require_strong_password(self, role: str) -> None:
        assert requires_strong_password([role]) is True

    def test_student_roles_do_not(self) -> None:
        assert requires_strong_password(["ALUNO", "RESPONSAVEL"]) is False

    def test_basic_policy_minimum_length(self) -> None:
        validate_password("abcdef", ["ALUNO"])

        with pytest.raises(WeakPasswordError, match="6 caracteres"):
            validate_password("abc", ["ALUNO"])

    def test_strong_policy_minimum_length(self) -> None:
        with pytest.raises(WeakPasswordError, match="8 caracteres"):
            validate_password("Ab1!", ["PROFESSOR"])

    def test_strong_policy_requires_uppercase(self) -> None:
        with pytest.raises(WeakPasswordError, match="maiúscula"):
            validate_password("abcdefgh1!", ["ADMIN"])

    def test_strong_policy_requires_special_character(self) -> None:
        with pytest.raises(WeakPasswordError, match="especial"):
            validate_password("Abcdefgh12", ["SECRETARIA"])

    def test_strong_policy_accepts_good_password(self) -> None:
        validate_password("Abcdef1!", ["ADMIN"])
