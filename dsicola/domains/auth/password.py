# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing and password policy.

Hashing uses the bcrypt library directly. The policy classifies password
strength and enforces stricter rules for staff roles.

Example:
    >>> hasher = PasswordHasher()
    >>> hashed = hasher.hash("My_password1")
    >>> hasher.verify("My_password1", hashed)
    True
    >>> password_strength("Abcdefghijk!")
    <PasswordStrength.BOA: 'BOA'>
"""

import logging
import re
from collections.abc import Iterable
from enum import Enum

import bcrypt

from dsicola.core.enums import UserRole

logger = logging.getLogger(__name__)

SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>\[\]\\/_+\-=~`]")

STRONG_PASSWORD_ROLES = frozenset(
    {
        UserRole.ADMIN.value,
        UserRole.PROFESSOR.value,
        UserRole.SECRETARIA.value,
        UserRole.SUPER_ADMIN.value,
        UserRole.POS.value,
    }
)

MIN_LENGTH_STRONG = 8
MIN_LENGTH_BASIC = 6


class PasswordStrength(str, Enum):
    PESSIMA = "PESSIMA"
    MEDIA = "MEDIA"
    BOA = "BOA"
    FORTE = "FORTE"


class WeakPasswordError(ValueError):
    """Raised when a password does not satisfy the policy."""

    pass


class PasswordHasher:
    """Secure password hashing using bcrypt.

    Attributes:
        _rounds: Number of bcrypt rounds for hashing.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the password hasher.

        Args:
            rounds: Number of bcrypt rounds. Higher is more secure but slower.
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password to hash.

        Returns:
            Bcrypt hash string with salt embedded.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str | None) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plain text password to verify.
            password_hash: Bcrypt hash to verify against.

        Returns:
            True if password matches the hash, False otherwise.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError as e:
            logger.warning("Password verification failed: %s", str(e))
            return False


def password_strength(password: str) -> PasswordStrength:
    """Classify a password.

    Anything shorter than 8 characters, or without an uppercase letter or a
    special character, is PESSIMA regardless of its score.
    """
    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = SPECIAL_CHARS.search(password) is not None

    if len(password) < MIN_LENGTH_STRONG or not has_upper or not has_special:
        return PasswordStrength.PESSIMA

    score = 0
    for threshold in (8, 12, 16):
        if len(password) >= threshold:
            score += 10

    kinds = sum((has_upper, has_lower, has_digit, has_special))
    score += 10 * kinds
    if kinds >= 3:
        score += 15
    if kinds == 4:
        score += 15

    if score < 40:
        return PasswordStrength.PESSIMA
    if score < 60:
        return PasswordStrength.MEDIA
    if score < 80:
        return PasswordStrength.BOA
    return PasswordStrength.FORTE


def requires_strong_password(roles: Iterable[str]) -> bool:
    return any(str(getattr(r, "value", r)) in STRONG_PASSWORD_ROLES for r in roles)


def validate_password(password: str, roles: Iterable[str]) -> None:
    """Apply the password policy for a user holding ``roles``.

    Raises:
        WeakPasswordError: With a user-facing message describing the failure.
    """
    if not requires_strong_password(roles):
        if not password or len(password) < MIN_LENGTH_BASIC:
            raise WeakPasswordError(
                f"A senha deve ter no mínimo {MIN_LENGTH_BASIC} caracteres"
            )
        return

    if not password or len(password) < MIN_LENGTH_STRONG:
        raise WeakPasswordError(f"A senha deve ter no mínimo {MIN_LENGTH_STRONG} caracteres")
    if not any(c.isupper() for c in password):
        raise WeakPasswordError("A senha deve conter pelo menos uma letra maiúscula")
    if SPECIAL_CHARS.search(password) is None:
        raise WeakPasswordError("A senha deve conter pelo menos um caractere especial")
    if password_strength(password) is PasswordStrength.PESSIMA:
        raise WeakPasswordError("Senha muito fraca. Escolha uma senha mais segura.")


# Default instance for convenience
_default_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password using the default hasher."""
    return _default_hasher.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a password using the default hasher."""
    return _default_hasher.verify(password, password_hash)
