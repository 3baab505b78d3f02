# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for half-up rounding helpers."""

from decimal import Decimal

import pytest

from dsicola.utils.rounding import round_half_up, to_money


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.675, 2.68), (2.665, 2.67), (10.005, 10.01), (9.994, 9.99), (13, 13.0)],
)
def test_round_half_up(value: float, expected: float) -> None:
    assert round_half_up(value) == expected


def test_round_half_up_places() -> None:
    assert round_half_up(66.666, places=1) == 66.7


def test_to_money() -> None:
    assert to_money(None) == Decimal("0.00")
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(7) == Decimal("7.00")
