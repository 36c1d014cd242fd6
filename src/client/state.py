# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local view of the student's engagement state."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.domains.engagement.state_machine import EngagementState
from src.utils.datetime import utc_now

ACTIVITY_LOG_LIMIT = 25

STATUS_TEXT = {
    EngagementState.NORMAL: "All clear",
    EngagementState.NEEDS_INTERVENTION: "Mentor review pending",
    EngagementState.REMEDIAL: "Remedial task assigned",
}


@dataclass
class ActivityEntry:
    message: str
    timestamp: datetime = field(default_factory=utc_now)


class LocalEngagementState:
    """Client-side engagement state.

    Local updates are optimistic. Whatever the server reports later
    (status fetch or push) replaces them.
    """

    def __init__(self) -> None:
        self.status = EngagementState.NORMAL
        self.intervention: dict[str, Any] | None = None
        self.activity: deque[ActivityEntry] = deque(maxlen=ACTIVITY_LOG_LIMIT)

    @property
    def status_text(self) -> str:
        return STATUS_TEXT.get(self.status, "Status updating")

    @property
    def is_locked(self) -> bool:
        """Focus tools are only available in the normal state."""
        return self.status is not EngagementState.NORMAL

    def log(self, message: str) -> None:
        # Newest first
        self.activity.appendleft(ActivityEntry(message))

    def set_status(self, status: str | EngagementState) -> None:
        try:
            self.status = EngagementState(status)
        except ValueError:
            self.log(f"Ignored unknown status {status!r}")

    def mark_violation(self) -> None:
        self.status = EngagementState.NEEDS_INTERVENTION
        self.intervention = None

    def mark_completed(self) -> None:
        self.status = EngagementState.NORMAL
        self.intervention = None

    def apply_status_response(self, data: dict[str, Any]) -> None:
        """Apply a GET /student/{id}/status body."""
        student = data.get("student") or {}
        if student.get("status"):
            self.set_status(student["status"])
        self.intervention = data.get("intervention")

    def apply_push(self, payload: dict[str, Any]) -> None:
        """Apply a status_update pushed by the server."""
        if payload.get("status"):
            self.set_status(payload["status"])
        if payload.get("intervention"):
            self.intervention = payload["intervention"]
        self.log("Mentor updated your status")
