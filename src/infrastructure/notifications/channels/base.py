# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for mentor notification channels.

A channel delivers a mentor alert through one medium. Channels never
raise on delivery problems; they report them through ChannelResult so
the caller can decide what a failure means.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.utils.datetime import format_iso, utc_now


class ChannelType(str, Enum):
    """Available notification channel types."""

    WEBHOOK = "webhook"


class DeliveryStatus(str, Enum):
    """Delivery status for a channel."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class MentorAlertPayload:
    """Alert sent to a mentor when a student needs review.

    Attributes:
        student_id: Student the alert is about.
        quiz_score: Score that triggered the alert (0 for violations).
        focus_minutes: Focus time at the moment of the signal.
        triggered_at: When the escalation happened.
    """

    student_id: str
    quiz_score: float
    focus_minutes: float
    triggered_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "quiz_score": self.quiz_score,
            "focus_minutes": self.focus_minutes,
            "triggered_at": format_iso(self.triggered_at),
        }


@dataclass
class ChannelResult:
    """Result of a channel send operation.

    Attributes:
        channel: Which channel was used.
        status: Delivery status.
        error_message: Failure or skip reason.
        sent_at: When the attempt finished.
        metadata: Additional result metadata.
    """

    channel: ChannelType
    status: DeliveryStatus
    error_message: str | None = None
    sent_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class BaseChannel(ABC):
    """Abstract base class for notification channels."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        ...

    @abstractmethod
    async def send(self, payload: MentorAlertPayload) -> ChannelResult:
        """Deliver an alert through this channel."""
        ...

    def create_success_result(self, metadata: dict[str, Any] | None = None) -> ChannelResult:
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SENT,
            sent_at=utc_now(),
            metadata=metadata or {},
        )

    def create_failure_result(
        self,
        error_message: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChannelResult:
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.FAILED,
            error_message=error_message,
            sent_at=utc_now(),
            metadata=metadata or {},
        )

    def create_skipped_result(self, reason: str) -> ChannelResult:
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SKIPPED,
            error_message=reason,
            sent_at=utc_now(),
        )
