# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for focus signal normalization."""

import pytest

from src.domains.engagement.signals import format_focus_duration, parse_focus_minutes


class TestParseFocusMinutes:
    """Tests for parse_focus_minutes."""

    def test_numeric_focus_minutes_wins(self) -> None:
        """A finite focus_minutes is used even when focus_duration is present."""
        assert parse_focus_minutes({"focus_minutes": 61, "focus_duration": "01:00"}) == 61.0

    def test_clock_duration(self) -> None:
        assert parse_focus_minutes({"focus_duration": "5:30"}) == 5.5

    def test_zero_padded_clock_duration(self) -> None:
        assert parse_focus_minutes({"focus_duration": "62:00"}) == 62.0

    def test_bare_number_duration(self) -> None:
        assert parse_focus_minutes({"focus_duration": "45"}) == 45.0

    def test_numeric_duration(self) -> None:
        assert parse_focus_minutes({"focus_duration": 12.5}) == 12.5

    @pytest.mark.parametrize("payload", [
        {"focus_duration": "bad"},
        {"focus_duration": "1:2:3"},
        {"focus_duration": ""},
        {"focus_duration": None},
        {"focus_duration": ["05:00"]},
        {},
        None,
    ])
    def test_unparseable_is_zero(self, payload) -> None:
        """Malformed or missing durations never raise."""
        assert parse_focus_minutes(payload) == 0.0

    def test_non_finite_focus_minutes_falls_through(self) -> None:
        assert parse_focus_minutes({"focus_minutes": float("nan"), "focus_duration": "10:00"}) == 10.0

    def test_boolean_focus_minutes_ignored(self) -> None:
        assert parse_focus_minutes({"focus_minutes": True}) == 0.0

    def test_negative_values_clamped(self) -> None:
        assert parse_focus_minutes({"focus_minutes": -5}) == 0.0
        assert parse_focus_minutes({"focus_duration": "-3"}) == 0.0


class TestFormatFocusDuration:
    """Tests for format_focus_duration."""

    def test_pads_minutes_and_seconds(self) -> None:
        assert format_focus_duration(330) == "05:30"

    def test_minutes_not_wrapped(self) -> None:
        assert format_focus_duration(3725) == "62:05"

    def test_parses_back_to_minutes(self) -> None:
        assert parse_focus_minutes({"focus_duration": format_focus_duration(90)}) == 1.5
