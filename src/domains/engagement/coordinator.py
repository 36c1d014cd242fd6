# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Escalation coordinator.

Applies a state machine Transition in a fixed order:

1. Append the daily log row.
2. Write the new student state.
3. Alert the mentor if the transition requires it.
4. Push the new state to the status sync channel.

A store failure in step 1 or 2 raises PersistenceError and stops the
sequence; rows already written stay written. Mentor alert problems in
step 3 never fail the operation: they are reported as a warning next to
the state that was actually persisted. Step 4 is fire-and-forget.
"""

import asyncio
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from src.domains.engagement.state_machine import EngagementState, Transition
from src.domains.engagement.store import EngagementStore, Row
from src.infrastructure.status_sync import StatusSyncChannel

logger = logging.getLogger(__name__)

NOTIFICATION_SKIPPED_WARNING = "Notification skipped"
NOTIFICATION_FAILED_WARNING = "Notification may have failed"


class MentorNotifier(Protocol):
    """Mentor notification transport.

    Returns an object with ``skipped`` and ``message`` attributes, or a
    mapping with those keys, and raises when delivery failed.
    """

    async def notify(self, student_id: str, score: float, focus_minutes: float) -> Any: ...


class NotificationOutcome(str, Enum):
    """Classification of the mentor alert attempt."""

    NOT_REQUIRED = "not_required"
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class EscalationResult:
    """What happened while applying a transition.

    Attributes:
        transition: The applied transition.
        log: The daily log row, if one was written.
        notification: Outcome of the mentor alert.
        warning: Set when the alert was skipped or may have failed.
    """

    transition: Transition
    log: Row | None = None
    notification: NotificationOutcome = NotificationOutcome.NOT_REQUIRED
    warning: str | None = None

    @property
    def state(self) -> EngagementState:
        return self.transition.target


def round_focus_minutes(focus_minutes: float) -> int:
    """Round half up to whole minutes for the daily log."""
    return int(math.floor(focus_minutes + 0.5))


class EscalationCoordinator:
    """Sequences persistence, mentor alerts and status pushes.

    Attributes:
        store: Engagement store.
        notifier: Mentor notification transport.
        status_channel: Status push channel.
        notify_timeout: Seconds before an alert attempt counts as failed.
    """

    def __init__(
        self,
        store: EngagementStore,
        notifier: MentorNotifier,
        status_channel: StatusSyncChannel,
        notify_timeout: float = 10.0,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.status_channel = status_channel
        self.notify_timeout = notify_timeout

    async def escalate(
        self,
        student_id: str,
        transition: Transition,
        status_extra: dict[str, Any] | None = None,
    ) -> EscalationResult:
        """Apply a transition for a student.

        Args:
            student_id: Student the signal belongs to.
            transition: Decision from the state machine.
            status_extra: Additional fields for the status push.

        Returns:
            EscalationResult describing the persisted outcome.

        Raises:
            PersistenceError: If writing the log or the state fails.
        """
        result = EscalationResult(transition=transition)
        focus_minutes = transition.signal.focus_minutes

        if transition.writes_log:
            result.log = await self.store.insert_daily_log(
                student_id,
                transition.log_quiz_score,
                round_focus_minutes(focus_minutes),
                transition.log_outcome,
            )

        await self.store.update_student_status(student_id, transition.target.value)

        logger.info(
            "Student %s: %s -> %s on %s",
            student_id,
            transition.source.value,
            transition.target.value,
            transition.signal.kind.value,
        )

        if transition.notify_mentor:
            result.notification, result.warning = await self._notify_mentor(
                student_id,
                transition.log_quiz_score,
                focus_minutes,
            )

        self.publish_status(student_id, transition.target, status_extra)
        return result

    async def _notify_mentor(
        self,
        student_id: str,
        score: float,
        focus_minutes: float,
    ) -> tuple[NotificationOutcome, str | None]:
        try:
            response = await asyncio.wait_for(
                self.notifier.notify(student_id, score, focus_minutes),
                timeout=self.notify_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Mentor notification for %s timed out after %.1fs",
                student_id,
                self.notify_timeout,
            )
            return NotificationOutcome.FAILED, NOTIFICATION_FAILED_WARNING
        except Exception as e:
            logger.error(
                "Mentor notification for %s failed: %s",
                student_id,
                str(e),
                exc_info=True,
            )
            return NotificationOutcome.FAILED, NOTIFICATION_FAILED_WARNING

        if isinstance(response, Mapping):
            skipped, message = response.get("skipped", False), response.get("message")
        else:
            skipped = getattr(response, "skipped", False)
            message = getattr(response, "message", None)

        if skipped:
            message = message or NOTIFICATION_SKIPPED_WARNING
            return NotificationOutcome.SKIPPED, message

        return NotificationOutcome.SENT, None

    def publish_status(
        self,
        student_id: str,
        state: EngagementState,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Schedule a status push for a student."""
        payload: dict[str, Any] = {"status": state.value}
        if extra:
            payload.update(extra)
        self.status_channel.emit(student_id, payload)
