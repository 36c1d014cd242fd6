# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Normalization of focus-duration signals.

Clients report focus time either as a numeric ``focus_minutes`` value or
as a ``focus_duration`` string, usually the "MM:SS" clock shown by the
session timer. Everything is reduced to a single non-negative number of
minutes before it reaches the state machine.
"""

import math
from collections.abc import Mapping
from typing import Any

from src.utils.datetime import format_clock


def _as_number(value: Any) -> float | None:
    """Convert a scalar to a finite float, or None when not possible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_clock(value: str) -> float | None:
    parts = value.split(":")
    if len(parts) != 2:
        return None
    minutes = _as_number(parts[0])
    seconds = _as_number(parts[1])
    if minutes is None or seconds is None:
        return None
    return minutes + seconds / 60


def parse_focus_minutes(payload: Mapping[str, Any] | None) -> float:
    """Extract focus minutes from a request payload.

    Resolution order:
    1. ``focus_minutes`` when it is a finite number.
    2. ``focus_duration`` as "MM:SS", giving minutes + seconds / 60.
    3. ``focus_duration`` as a bare number of minutes.
    4. 0.

    Never raises. Negative results are clamped to 0.

    Args:
        payload: Decoded request body.

    Returns:
        Focus time in minutes.

    Example:
        >>> parse_focus_minutes({"focus_duration": "5:30"})
        5.5
    """
    if not payload:
        return 0.0

    raw_minutes = payload.get("focus_minutes")
    if isinstance(raw_minutes, (int, float)) and not isinstance(raw_minutes, bool):
        if math.isfinite(raw_minutes):
            return max(0.0, float(raw_minutes))

    duration = payload.get("focus_duration")
    if duration is None:
        return 0.0

    if isinstance(duration, str):
        clock = _parse_clock(duration)
        if clock is not None:
            return max(0.0, clock)

    bare = _as_number(duration)
    if bare is not None:
        return max(0.0, bare)

    return 0.0


def format_focus_duration(elapsed_seconds: int) -> str:
    """Encode a session's elapsed seconds as the "MM:SS" focus_duration."""
    return format_clock(elapsed_seconds)
