# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mentor notification transport.

Example:
    from src.infrastructure.notifications import build_mentor_notifier

    notifier = build_mentor_notifier(settings.mentor)
    result = await notifier.notify("s-1", 4, 12.5)
"""

from src.core.config.settings import MentorNotificationSettings
from src.infrastructure.notifications.channels import WebhookChannel
from src.infrastructure.notifications.service import (
    MentorNotificationService,
    MentorNotifyResult,
)


def build_mentor_notifier(settings: MentorNotificationSettings) -> MentorNotificationService:
    """Create the notification service for the configured webhook."""
    return MentorNotificationService(
        WebhookChannel(settings),
        cooldown_seconds=settings.cooldown_seconds,
    )


__all__ = [
    "MentorNotificationService",
    "MentorNotifyResult",
    "build_mentor_notifier",
]
