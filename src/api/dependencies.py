# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module owns the process-wide runtime objects (database, status
channel, mentor notifier) and exposes them to endpoints as dependencies.
Tests replace get_store, get_mentor_notifier and get_status_channel
through app.dependency_overrides.

Example:
    @router.post("/daily-checkin")
    async def daily_checkin(
        service: EngagementService = Depends(get_engagement_service),
    ):
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends

from src.core.config import get_settings
from src.domains.engagement.coordinator import EscalationCoordinator, MentorNotifier
from src.domains.engagement.service import EngagementService
from src.domains.engagement.state_machine import EngagementStateMachine
from src.domains.engagement.store import EngagementStore
from src.domains.intervention.service import InterventionService
from src.infrastructure.cache import get_redis, is_redis_initialized
from src.infrastructure.database.connection import close_database, init_database
from src.infrastructure.database.migrations.runner import run_migrations
from src.infrastructure.database.repository import SqlAlchemyEngagementStore
from src.infrastructure.events import get_event_bus
from src.infrastructure.notifications import MentorNotificationService, build_mentor_notifier
from src.infrastructure.status_sync import (
    RedisStatusRelay,
    StatusSyncChannel,
    build_status_publisher,
)

logger = logging.getLogger(__name__)

_status_channel: StatusSyncChannel | None = None
_status_relay: RedisStatusRelay | None = None
_mentor_notifier: MentorNotificationService | None = None


async def init_db() -> None:
    """Connect to the database, migrate and seed when configured."""
    settings = get_settings()

    if settings.database.run_migrations:
        applied = await run_migrations(settings.database.url)
        if applied:
            logger.info("Applied migrations: %s", ", ".join(applied))

    await init_database(settings)

    if settings.database.seed_student_id:
        await SqlAlchemyEngagementStore().ensure_student(settings.database.seed_student_id)


async def close_db() -> None:
    """Close database connections."""
    await close_database()


def init_status_sync() -> None:
    """Build the status channel for the configured backend.

    Call after Redis initialization so the redis backend can be used.
    """
    global _status_channel, _status_relay
    settings = get_settings()
    bus = get_event_bus()
    redis = get_redis() if is_redis_initialized() else None

    if settings.status_sync.backend == "redis" and redis is None:
        logger.warning("Redis unavailable, status sync falls back to the event bus")

    publisher = build_status_publisher(settings.status_sync, bus, redis)
    _status_channel = StatusSyncChannel(publisher)

    if settings.status_sync.backend == "redis" and redis is not None:
        _status_relay = RedisStatusRelay(redis, bus, settings.status_sync.channel_prefix)
        _status_relay.start()

    logger.info("Status sync using %s", type(publisher).__name__)


async def close_status_sync() -> None:
    """Flush pending pushes and stop the Redis relay."""
    global _status_channel, _status_relay

    if _status_channel is not None:
        await _status_channel.drain()
        _status_channel = None

    if _status_relay is not None:
        await _status_relay.stop()
        _status_relay = None


# =========================================================================
# Service Dependencies
# =========================================================================


def get_store() -> EngagementStore:
    """Get the engagement store."""
    return SqlAlchemyEngagementStore()


def get_status_channel() -> StatusSyncChannel:
    """Get the status channel, defaulting to the in-process event bus."""
    global _status_channel
    if _status_channel is None:
        _status_channel = StatusSyncChannel(
            build_status_publisher(get_settings().status_sync, get_event_bus())
        )
    return _status_channel


def get_mentor_notifier() -> MentorNotifier:
    """Get the mentor notification service singleton."""
    global _mentor_notifier
    if _mentor_notifier is None:
        _mentor_notifier = build_mentor_notifier(get_settings().mentor)
    return _mentor_notifier


def get_state_machine() -> EngagementStateMachine:
    """Get a state machine using the configured thresholds."""
    settings = get_settings()
    return EngagementStateMachine(
        quiz_score_threshold=settings.engagement.quiz_score_threshold,
        focus_minutes_threshold=settings.engagement.focus_minutes_threshold,
    )


def get_coordinator(
    store: Annotated[EngagementStore, Depends(get_store)],
    notifier: Annotated[MentorNotifier, Depends(get_mentor_notifier)],
    status_channel: Annotated[StatusSyncChannel, Depends(get_status_channel)],
) -> EscalationCoordinator:
    """Get an escalation coordinator for the request."""
    return EscalationCoordinator(
        store,
        notifier,
        status_channel,
        notify_timeout=get_settings().mentor.timeout_seconds,
    )


def get_engagement_service(
    store: Annotated[EngagementStore, Depends(get_store)],
    coordinator: Annotated[EscalationCoordinator, Depends(get_coordinator)],
    state_machine: Annotated[EngagementStateMachine, Depends(get_state_machine)],
) -> EngagementService:
    """Get the engagement service for the request."""
    return EngagementService(store, coordinator, state_machine)


def get_intervention_service(
    store: Annotated[EngagementStore, Depends(get_store)],
    coordinator: Annotated[EscalationCoordinator, Depends(get_coordinator)],
    state_machine: Annotated[EngagementStateMachine, Depends(get_state_machine)],
) -> InterventionService:
    """Get the intervention service for the request."""
    return InterventionService(
        store,
        coordinator,
        state_machine,
        duplicate_policy=get_settings().intervention.duplicate_policy,
    )
