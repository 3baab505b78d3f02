# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Half-up rounding helpers.

Python's built-in ``round`` uses banker's rounding and binary floats, so
``round(2.675, 2)`` gives ``2.67``. Grades and money are rounded half-up
on their decimal representation instead.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_half_up(value: float | Decimal, places: int = 2) -> float:
    """Round a number half-up to the given decimal places.

    Args:
        value: Number to round.
        places: Number of decimal places.

    Returns:
        Rounded value as float.

    Example:
        >>> round_half_up(2.675)
        2.68
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def to_money(value: Decimal | float | int | str | None) -> Decimal:
    """Convert a value to a Decimal rounded to cents.

    Args:
        value: Amount to convert. None is treated as zero.

    Returns:
        Decimal with two decimal places.
    """
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
