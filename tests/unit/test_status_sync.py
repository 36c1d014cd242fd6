# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for status sync publishers and the relay."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config.settings import StatusSyncSettings
from src.infrastructure.cache import RedisError
from src.infrastructure.events import EventBus, EventTypes
from src.infrastructure.status_sync import (
    EventBusStatusPublisher,
    LogStatusPublisher,
    RedisStatusPublisher,
    RedisStatusRelay,
    StatusSyncChannel,
    build_status_publisher,
)


class TestBuildStatusPublisher:
    """Tests for backend selection."""

    def test_log_backend(self) -> None:
        publisher = build_status_publisher(StatusSyncSettings(backend="log"), EventBus())
        assert isinstance(publisher, LogStatusPublisher)

    def test_event_bus_backend(self) -> None:
        bus = EventBus()
        publisher = build_status_publisher(StatusSyncSettings(backend="event_bus"), bus)
        assert isinstance(publisher, EventBusStatusPublisher)
        assert publisher.bus is bus

    def test_redis_backend(self) -> None:
        publisher = build_status_publisher(
            StatusSyncSettings(backend="redis", channel_prefix="status"),
            EventBus(),
            MagicMock(),
        )
        assert isinstance(publisher, RedisStatusPublisher)
        assert publisher.channel_for("s-1") == "status:s-1"

    def test_redis_backend_without_client_falls_back(self) -> None:
        publisher = build_status_publisher(StatusSyncSettings(backend="redis"), EventBus())
        assert isinstance(publisher, EventBusStatusPublisher)


class TestPublishers:
    """Tests for publisher implementations."""

    @pytest.mark.asyncio
    async def test_event_bus_publisher_scopes_to_student(self) -> None:
        bus = EventBus()
        handler = AsyncMock()
        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, handler)

        await EventBusStatusPublisher(bus).publish("s-1", {"status": "remedial"})

        event = handler.await_args.args[0]
        assert event.student_id == "s-1"
        assert event.payload == {"status": "remedial"}

    @pytest.mark.asyncio
    async def test_redis_publisher_caches_and_publishes(self) -> None:
        redis = AsyncMock()
        publisher = RedisStatusPublisher(redis, channel_prefix="student_status", ttl_seconds=60)

        await publisher.publish("s-1", {"status": "normal"})

        redis.set.assert_awaited_once_with("student_status:s-1", {"status": "normal"}, expire_seconds=60)
        redis.publish.assert_awaited_once_with("student_status:s-1", {"status": "normal"})


class TestStatusSyncChannel:
    """Tests for fire-and-forget emission."""

    @pytest.mark.asyncio
    async def test_emit_returns_before_publish(self) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        class SlowPublisher:
            async def publish(self, student_id, payload):
                started.set()
                await release.wait()

        channel = StatusSyncChannel(SlowPublisher())
        channel.emit("s-1", {"status": "normal"})

        await started.wait()
        release.set()
        await channel.drain()

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self) -> None:
        publisher = AsyncMock()
        publisher.publish = AsyncMock(side_effect=ConnectionError("down"))
        channel = StatusSyncChannel(publisher)

        channel.emit("s-1", {"status": "normal"})
        await channel.drain()

        publisher.publish.assert_awaited_once()


class TestRedisStatusRelay:
    """Tests for the Redis to event bus relay."""

    @staticmethod
    def _collecting_bus(expected: int) -> tuple[EventBus, list, asyncio.Event]:
        bus = EventBus()
        received: list = []
        done = asyncio.Event()

        async def handler(event) -> None:
            received.append(event)
            if len(received) >= expected:
                done.set()

        bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, handler)
        return bus, received, done

    @pytest.mark.asyncio
    async def test_forwards_messages_to_bus(self) -> None:
        async def listen(pattern):
            assert pattern == "student_status:*"
            yield "student_status:s-2", "not a dict"
            yield "student_status:s-1", {"status": "remedial"}
            await asyncio.sleep(10)

        redis = MagicMock()
        redis.listen = listen
        bus, received, done = self._collecting_bus(1)

        relay = RedisStatusRelay(redis, bus, "student_status")
        relay.start()
        await asyncio.wait_for(done.wait(), timeout=1)
        await relay.stop()

        assert len(received) == 1
        assert received[0].student_id == "s-1"
        assert received[0].payload == {"status": "remedial"}

    @pytest.mark.asyncio
    async def test_resubscribes_after_redis_error(self) -> None:
        calls = 0

        async def listen(pattern):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RedisError("Subscription to student_status:* failed")
            yield "student_status:s-1", {"status": "normal"}
            await asyncio.sleep(10)

        redis = MagicMock()
        redis.listen = listen
        bus, received, done = self._collecting_bus(1)

        relay = RedisStatusRelay(redis, bus, "student_status")
        relay.RETRY_DELAY_SECONDS = 0.01
        relay.start()
        await asyncio.wait_for(done.wait(), timeout=1)

        assert calls == 2
        assert not relay._task.done()
        assert received[0].payload == {"status": "normal"}
        await relay.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_task(self) -> None:
        async def listen(pattern):
            await asyncio.sleep(10)
            yield "never", {}

        redis = MagicMock()
        redis.listen = listen
        relay = RedisStatusRelay(redis, EventBus(), "student_status")

        relay.start()
        await asyncio.sleep(0)
        await relay.stop()

        assert relay._task is None
