# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Status publishers: where a student's new engagement state is pushed.

Every backend implements ``publish(student_id, payload)``. Payloads are
JSON-safe dicts shaped like ``{"status": ..., "intervention": ...}``.
"""

import logging
from typing import Any, Protocol

from src.infrastructure.cache import RedisClient
from src.infrastructure.events import EventBus, EventTypes

logger = logging.getLogger(__name__)


class StatusPublisher(Protocol):
    """Destination for per-student status updates."""

    async def publish(self, student_id: str, payload: dict[str, Any]) -> None: ...


class LogStatusPublisher:
    """Records status updates in the log only. Clients must poll."""

    async def publish(self, student_id: str, payload: dict[str, Any]) -> None:
        logger.info("Status update for %s: %s", student_id, payload.get("status"))


class EventBusStatusPublisher:
    """Publishes on the in-process event bus, feeding WebSocket subscribers."""

    def __init__(self, bus: EventBus) -> None:
        self.bus = bus

    async def publish(self, student_id: str, payload: dict[str, Any]) -> None:
        await self.bus.publish(
            EventTypes.Engagement.STATUS_UPDATED,
            payload,
            student_id=student_id,
        )


class RedisStatusPublisher:
    """Publishes through Redis so every API worker can forward the update.

    The last status per student is also cached under the channel name
    for ``ttl_seconds``.
    """

    def __init__(
        self,
        redis: RedisClient,
        channel_prefix: str = "student_status",
        ttl_seconds: int = 3600,
    ) -> None:
        self.redis = redis
        self.channel_prefix = channel_prefix
        self.ttl_seconds = ttl_seconds

    def channel_for(self, student_id: str) -> str:
        return f"{self.channel_prefix}:{student_id}"

    async def publish(self, student_id: str, payload: dict[str, Any]) -> None:
        channel = self.channel_for(student_id)
        await self.redis.set(channel, payload, expire_seconds=self.ttl_seconds)
        await self.redis.publish(channel, payload)
