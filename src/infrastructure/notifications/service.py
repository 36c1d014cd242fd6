# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mentor notification service.

Implements the transport call the escalation coordinator depends on:

    notify(student_id, score, focus_minutes) -> MentorNotifyResult

Outcomes:
- delivered: MentorNotifyResult(skipped=False)
- deliberately not sent (no webhook configured, or the student was
  alerted within the cooldown window): MentorNotifyResult(skipped=True,
  message=reason)
- delivery failed: NotificationError is raised
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.domains.engagement.exceptions import NotificationError
from src.infrastructure.notifications.channels import (
    BaseChannel,
    DeliveryStatus,
    MentorAlertPayload,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class MentorNotifyResult:
    """Outcome of a mentor notification that did not fail.

    Attributes:
        skipped: True when the transport declined to send.
        message: Reason for skipping.
    """

    skipped: bool = False
    message: str | None = None


class MentorNotificationService:
    """Sends mentor alerts through a channel, rate-limited per student.

    Attributes:
        channel: Delivery channel.
        cooldown: Minimum time between two alerts for one student.
    """

    def __init__(self, channel: BaseChannel, cooldown_seconds: int = 300) -> None:
        self.channel = channel
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self._last_sent: dict[str, datetime] = {}

    async def notify(
        self,
        student_id: str,
        score: float,
        focus_minutes: float,
    ) -> MentorNotifyResult:
        """Alert a mentor about a student.

        Args:
            student_id: Student needing review.
            score: Quiz score that triggered the alert.
            focus_minutes: Focus time reported with the signal.

        Returns:
            MentorNotifyResult, with skipped=True when nothing was sent.

        Raises:
            NotificationError: If the channel failed to deliver.
        """
        now = utc_now()
        last = self._last_sent.get(student_id)
        if last is not None and self.cooldown and now - last < self.cooldown:
            logger.info("Mentor alert for %s suppressed by cooldown", student_id)
            return MentorNotifyResult(skipped=True, message="Mentor already notified recently")

        payload = MentorAlertPayload(
            student_id=student_id,
            quiz_score=score,
            focus_minutes=focus_minutes,
            triggered_at=now,
        )
        result = await self.channel.send(payload)

        if result.status is DeliveryStatus.SENT:
            self._last_sent[student_id] = now
            return MentorNotifyResult()

        if result.status is DeliveryStatus.SKIPPED:
            logger.info("Mentor alert for %s skipped: %s", student_id, result.error_message)
            return MentorNotifyResult(skipped=True, message=result.error_message)

        raise NotificationError(
            result.error_message or "Mentor notification failed",
            status_code=result.metadata.get("status_code"),
        )
