# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort propagation of engagement state changes to clients.

Backends (STATUS_SYNC_BACKEND):
- log: no push, clients poll the status endpoint
- event_bus: push to WebSocket clients of this process
- redis: push through Redis pub/sub to WebSocket clients of all workers
"""

from src.core.config.settings import StatusSyncSettings
from src.infrastructure.cache import RedisClient
from src.infrastructure.events import EventBus
from src.infrastructure.status_sync.channel import StatusSyncChannel
from src.infrastructure.status_sync.publishers import (
    EventBusStatusPublisher,
    LogStatusPublisher,
    RedisStatusPublisher,
    StatusPublisher,
)
from src.infrastructure.status_sync.relay import RedisStatusRelay


def build_status_publisher(
    settings: StatusSyncSettings,
    bus: EventBus,
    redis: RedisClient | None = None,
) -> StatusPublisher:
    """Select the publisher for the configured backend.

    Falls back to the event bus when the redis backend is configured but
    no Redis client is available.
    """
    if settings.backend == "log":
        return LogStatusPublisher()
    if settings.backend == "redis" and redis is not None:
        return RedisStatusPublisher(
            redis,
            channel_prefix=settings.channel_prefix,
            ttl_seconds=settings.last_status_ttl_seconds,
        )
    return EventBusStatusPublisher(bus)


__all__ = [
    "EventBusStatusPublisher",
    "LogStatusPublisher",
    "RedisStatusPublisher",
    "RedisStatusRelay",
    "StatusPublisher",
    "StatusSyncChannel",
    "build_status_publisher",
]
