# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the in-memory event bus."""

from unittest.mock import AsyncMock

import pytest

from src.infrastructure.events import EventBus, EventTypes


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_exact_subscription(self, bus) -> None:
        handler = AsyncMock()
        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, handler)

        event = await bus.publish(EventTypes.Engagement.STATUS_UPDATED, {"status": "normal"}, student_id="s-1")

        handler.assert_awaited_once_with(event)
        assert event.student_id == "s-1"
        assert event.payload == {"status": "normal"}

    @pytest.mark.asyncio
    async def test_other_event_types_not_delivered(self, bus) -> None:
        handler = AsyncMock()
        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, handler)

        await bus.publish("engagement.other", {})

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_error_isolated(self, bus) -> None:
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, failing)
        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, healthy)

        await bus.publish(EventTypes.Engagement.STATUS_UPDATED, {})

        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus) -> None:
        handler = AsyncMock()
        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, handler)

        assert bus.unsubscribe(EventTypes.Engagement.STATUS_UPDATED, handler) is True
        assert bus.unsubscribe(EventTypes.Engagement.STATUS_UPDATED, handler) is False

        await bus.publish(EventTypes.Engagement.STATUS_UPDATED, {})
        handler.assert_not_awaited()
