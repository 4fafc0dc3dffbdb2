# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Numeric helpers shared by scoring and estimation code."""

import math


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up.

    Built-in round() uses banker's rounding (round(2.5) == 2); level and
    difficulty estimates always round halves upward.
    """
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    """Render whole floats without a trailing .0 (85.0 -> "85")."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
