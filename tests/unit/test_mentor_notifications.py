# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for mentor notification delivery."""

import json

import httpx
import pytest

from src.core.config.settings import MentorNotificationSettings
from src.domains.engagement.exceptions import NotificationError
from src.infrastructure.notifications import MentorNotificationService, build_mentor_notifier
from src.infrastructure.notifications.channels import (
    DeliveryStatus,
    MentorAlertPayload,
    WebhookChannel,
)

WEBHOOK_URL = "https://mentors.example.com/alerts"


def make_channel(handler) -> WebhookChannel:
    settings = MentorNotificationSettings(webhook_url=WEBHOOK_URL)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookChannel(settings, client=client)


class TestWebhookChannel:
    """Tests for WebhookChannel."""

    @pytest.mark.asyncio
    async def test_posts_alert_json(self) -> None:
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(202)

        result = await make_channel(handler).send(MentorAlertPayload("s-1", 4, 30.0))

        assert result.status is DeliveryStatus.SENT
        assert received[0]["student_id"] == "s-1"
        assert received[0]["quiz_score"] == 4
        assert received[0]["focus_minutes"] == 30.0
        assert "triggered_at" in received[0]

    @pytest.mark.asyncio
    async def test_http_error_is_failure(self) -> None:
        result = await make_channel(lambda request: httpx.Response(503)).send(
            MentorAlertPayload("s-1", 0, 0)
        )

        assert result.status is DeliveryStatus.FAILED
        assert result.metadata["status_code"] == 503

    @pytest.mark.asyncio
    async def test_connection_error_is_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = await make_channel(handler).send(MentorAlertPayload("s-1", 0, 0))

        assert result.status is DeliveryStatus.FAILED
        assert "refused" in result.error_message

    @pytest.mark.asyncio
    async def test_unconfigured_is_skipped(self) -> None:
        channel = WebhookChannel(MentorNotificationSettings(webhook_url=None))

        result = await channel.send(MentorAlertPayload("s-1", 0, 0))

        assert result.status is DeliveryStatus.SKIPPED
        assert result.error_message == "Mentor webhook not configured"


class TestMentorNotificationService:
    """Tests for MentorNotificationService."""

    @pytest.mark.asyncio
    async def test_sent(self) -> None:
        service = MentorNotificationService(make_channel(lambda r: httpx.Response(200)))

        result = await service.notify("s-1", 3, 10.0)

        assert result.skipped is False

    @pytest.mark.asyncio
    async def test_cooldown_skips_second_alert(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        service = MentorNotificationService(make_channel(handler), cooldown_seconds=300)

        await service.notify("s-1", 3, 10.0)
        second = await service.notify("s-1", 2, 11.0)
        other = await service.notify("s-2", 2, 11.0)

        assert second.skipped is True
        assert second.message == "Mentor already notified recently"
        assert other.skipped is False
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_zero_cooldown_always_sends(self) -> None:
        service = MentorNotificationService(make_channel(lambda r: httpx.Response(200)), cooldown_seconds=0)

        await service.notify("s-1", 3, 10.0)
        result = await service.notify("s-1", 3, 10.0)

        assert result.skipped is False

    @pytest.mark.asyncio
    async def test_failure_raises(self) -> None:
        service = MentorNotificationService(make_channel(lambda r: httpx.Response(500)))

        with pytest.raises(NotificationError) as exc_info:
            await service.notify("s-1", 3, 10.0)

        assert exc_info.value.details == {"status_code": 500}

    @pytest.mark.asyncio
    async def test_failure_does_not_start_cooldown(self) -> None:
        responses = iter([httpx.Response(500), httpx.Response(200)])
        service = MentorNotificationService(make_channel(lambda r: next(responses)))

        with pytest.raises(NotificationError):
            await service.notify("s-1", 3, 10.0)
        result = await service.notify("s-1", 3, 10.0)

        assert result.skipped is False

    @pytest.mark.asyncio
    async def test_unconfigured_webhook_skips(self) -> None:
        notifier = build_mentor_notifier(MentorNotificationSettings(webhook_url=None))

        result = await notifier.notify("s-1", 0, 0)

        assert result.skipped is True
        assert result.message == "Mentor webhook not configured"
