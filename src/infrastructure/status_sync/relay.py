# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Forwards Redis status messages onto the local event bus.

With the redis backend each API worker runs one relay, so a status
change handled by any worker reaches WebSocket clients on all of them.
"""

import asyncio
import logging

from src.infrastructure.cache import RedisClient, RedisError
from src.infrastructure.events import EventBus, EventTypes

logger = logging.getLogger(__name__)


class RedisStatusRelay:
    """Background task bridging Redis pub/sub to the event bus."""

    RETRY_DELAY_SECONDS = 1.0
    MAX_RETRY_DELAY_SECONDS = 30.0

    def __init__(self, redis: RedisClient, bus: EventBus, channel_prefix: str) -> None:
        self.redis = redis
        self.bus = bus
        self.channel_prefix = channel_prefix
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="redis-status-relay")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        pattern = f"{self.channel_prefix}:*"
        delay = self.RETRY_DELAY_SECONDS
        while True:
            try:
                async for channel, payload in self.redis.listen(pattern):
                    delay = self.RETRY_DELAY_SECONDS
                    await self._forward(channel, payload)
            except RedisError as e:
                logger.warning("Status relay lost subscription, retrying in %.1fs: %s", delay, str(e))
            else:
                logger.warning("Status relay subscription ended, retrying in %.1fs", delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.MAX_RETRY_DELAY_SECONDS)

    async def _forward(self, channel: str, payload: object) -> None:
        if not isinstance(payload, dict):
            return
        await self.bus.publish(
            EventTypes.Engagement.STATUS_UPDATED,
            payload,
            student_id=channel[len(self.channel_prefix) + 1:],
        )
