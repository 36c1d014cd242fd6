# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the student focus app controller and API client."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.client.api import EngagementAPIClient
from src.client.app import InvalidScoreError, StudentFocusApp, parse_quiz_score
from src.client.sync import StatusSubscriber
from src.core.config.settings import ClientSettings
from src.domains.engagement.state_machine import EngagementState


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(api_url="http://api.test/api/v1", student_id="s-1")


@pytest.fixture
def api() -> AsyncMock:
    mock = AsyncMock()
    mock.get_status = AsyncMock(return_value={
        "student": {"id": "s-1", "status": "normal"},
        "intervention": None,
    })
    return mock


@pytest.fixture
def app(api, settings) -> StudentFocusApp:
    return StudentFocusApp(api, settings)


class TestParseQuizScore:
    """Tests for parse_quiz_score."""

    @pytest.mark.parametrize("raw,expected", [("1", 1.0), (" 10 ", 10.0), ("7.5", 7.5)])
    def test_valid(self, raw, expected) -> None:
        assert parse_quiz_score(raw) == expected

    @pytest.mark.parametrize("raw", ["", "  ", "abc", "0", "11", "-3"])
    def test_invalid(self, raw) -> None:
        with pytest.raises(InvalidScoreError):
            parse_quiz_score(raw)


class TestStudentFocusApp:
    """Tests for StudentFocusApp."""

    @pytest.mark.asyncio
    async def test_refresh_applies_server_state(self, app, api) -> None:
        api.get_status.return_value = {
            "student": {"id": "s-1", "status": "remedial"},
            "intervention": {"id": 3, "task_description": "Essay"},
        }

        assert await app.refresh() is True

        assert app.state.status is EngagementState.REMEDIAL
        assert app.state.intervention["id"] == 3

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_state(self, app, api) -> None:
        app.state.mark_violation()
        api.get_status.side_effect = httpx.ConnectError("offline")

        assert await app.refresh() is False

        assert app.state.status is EngagementState.NEEDS_INTERVENTION
        assert app.state.activity[0].message == "Unable to sync latest status"

    @pytest.mark.asyncio
    async def test_submit_checkin_sends_session_time(self, app, api) -> None:
        api.daily_checkin = AsyncMock(return_value={"status": "On Track", "state": "normal"})
        app.monitor.session.elapsed_seconds = 3725

        result = await app.submit_checkin("9")

        api.daily_checkin.assert_awaited_once_with(9.0, "62:05")
        assert result["status"] == "On Track"
        api.get_status.assert_awaited()

    @pytest.mark.asyncio
    async def test_submit_checkin_rejects_bad_score(self, app, api) -> None:
        with pytest.raises(InvalidScoreError):
            await app.submit_checkin("12")
        api.daily_checkin.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_intervention(self, app, api) -> None:
        api.complete_intervention = AsyncMock(return_value={"success": True})
        app.state.set_status("remedial")
        app.state.intervention = {"id": 7}
        app.monitor.session.violated = True

        assert await app.complete_intervention() is True

        api.complete_intervention.assert_awaited_once_with(7, "00:00")
        assert app.state.status is EngagementState.NORMAL
        assert app.monitor.session.violated is False

    @pytest.mark.asyncio
    async def test_complete_without_intervention(self, app, api) -> None:
        assert await app.complete_intervention() is False
        api.complete_intervention.assert_not_called()


class TestEngagementAPIClient:
    """Tests for EngagementAPIClient request shapes."""

    @pytest.mark.asyncio
    async def test_report_cheat_body(self, settings) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"status": "Logged cheat and notified mentor"})

        client = httpx.AsyncClient(
            base_url=settings.api_url,
            transport=httpx.MockTransport(handler),
        )
        async with EngagementAPIClient(settings, client=client) as api:
            await api.report_cheat("05:30", "window blurred")

        assert seen == [(
            "/api/v1/report-cheat",
            {"student_id": "s-1", "focus_duration": "05:30", "reason": "window blurred"},
        )]

    @pytest.mark.asyncio
    async def test_error_status_raises(self, settings) -> None:
        client = httpx.AsyncClient(
            base_url=settings.api_url,
            transport=httpx.MockTransport(lambda r: httpx.Response(404, json={"error": "Student not found"})),
        )
        api = EngagementAPIClient(settings, client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await api.get_status()
        await api.close()


class TestStatusSubscriber:
    """Tests for stream message handling."""

    def test_joined_marks_connected(self, settings) -> None:
        changes = MagicMock()
        subscriber = StatusSubscriber(settings, MagicMock(), AsyncMock(), changes)

        subscriber.handle_message({"type": "joined", "student_id": "s-1"})

        assert subscriber.connected is True
        changes.assert_called_once_with(True)

    def test_status_update_dispatched(self, settings) -> None:
        on_update = MagicMock()
        subscriber = StatusSubscriber(settings, on_update, AsyncMock())
        message = {"type": "status_update", "status": "remedial"}

        subscriber.handle_message(message)
        subscriber.handle_message({"type": "pong"})

        on_update.assert_called_once_with(message)
