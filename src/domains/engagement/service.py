# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Engagement service for check-ins, focus violations and status reads.

This module provides the EngagementService class for:
- Evaluating daily check-ins against the engagement thresholds
- Recording focus violations reported by the session monitor
- Reading a student's current state and pending intervention
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.domains.engagement.coordinator import (
    EscalationCoordinator,
    EscalationResult,
    NotificationOutcome,
)
from src.domains.engagement.exceptions import StudentNotFoundError, ValidationError
from src.domains.engagement.signals import parse_focus_minutes
from src.domains.engagement.state_machine import (
    MAX_REASON_LENGTH,
    EngagementState,
    EngagementStateMachine,
    Signal,
)
from src.domains.engagement.store import EngagementStore, Row

logger = logging.getLogger(__name__)

CHECKIN_ON_TRACK = "On Track"
CHECKIN_PENDING_REVIEW = "Pending Mentor Review"

VIOLATION_STATUS = {
    NotificationOutcome.SENT: "Logged cheat and notified mentor",
    NotificationOutcome.SKIPPED: "Logged cheat (notification skipped)",
    NotificationOutcome.FAILED: "Logged cheat (notification may have failed)",
}


@dataclass
class SignalOutcome:
    """Response for a check-in or violation report.

    Attributes:
        status: Human-readable outcome.
        state: Engagement state after the signal.
        warning: Set when the mentor alert was skipped or may have failed.
    """

    status: str
    state: EngagementState
    warning: str | None = None


def require_student_id(payload: Mapping[str, Any]) -> str:
    """Return a non-blank student_id or raise ValidationError."""
    student_id = payload.get("student_id")
    if student_id is None or not str(student_id).strip():
        raise ValidationError("Missing required fields", {"field": "student_id"})
    return str(student_id).strip()


class EngagementService:
    """Service driving the engagement state machine from client signals.

    Attributes:
        store: Engagement store.
        coordinator: Escalation coordinator applying transitions.
        state_machine: Transition rules.
    """

    def __init__(
        self,
        store: EngagementStore,
        coordinator: EscalationCoordinator,
        state_machine: EngagementStateMachine | None = None,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.state_machine = state_machine or EngagementStateMachine()

    async def get_status(self, student_id: str) -> dict[str, Row | None]:
        """Get a student and their latest pending intervention.

        Raises:
            StudentNotFoundError: If the student is unknown.
            PersistenceError: If the store fails.
        """
        student = await self._get_student(student_id)
        intervention = await self.store.get_pending_intervention(student_id)
        return {"student": student, "intervention": intervention}

    async def daily_checkin(self, payload: Mapping[str, Any]) -> SignalOutcome:
        """Evaluate a daily check-in.

        Passing requires a quiz score above the score threshold and focus
        time above the focus threshold; anything else escalates to a
        mentor.

        Args:
            payload: Request body with student_id, quiz_score and
                focus_minutes or focus_duration.

        Returns:
            SignalOutcome with "On Track" or "Pending Mentor Review".

        Raises:
            ValidationError: If student_id or quiz_score is missing.
            StudentNotFoundError: If the student is unknown.
            PersistenceError: If the log or state write fails.
        """
        student_id = require_student_id(payload)
        quiz_score = payload.get("quiz_score")
        if quiz_score is None:
            raise ValidationError("Missing required fields", {"field": "quiz_score"})
        try:
            quiz_score = float(quiz_score)
        except (TypeError, ValueError) as e:
            raise ValidationError("quiz_score must be a number", {"field": "quiz_score"}) from e

        student = await self._get_student(student_id)
        focus_minutes = parse_focus_minutes(payload)

        transition = self.state_machine.decide(
            student["status"],
            Signal.checkin(quiz_score, focus_minutes),
        )
        result = await self.coordinator.escalate(student_id, transition)

        status = (
            CHECKIN_ON_TRACK
            if result.state is EngagementState.NORMAL
            else CHECKIN_PENDING_REVIEW
        )
        return SignalOutcome(status=status, state=result.state, warning=result.warning)

    async def report_violation(self, payload: Mapping[str, Any]) -> SignalOutcome:
        """Record a focus violation and escalate to a mentor.

        Args:
            payload: Request body with student_id and optional
                focus_duration and reason.

        Raises:
            ValidationError: If student_id is missing or reason is too long.
            StudentNotFoundError: If the student is unknown.
            PersistenceError: If the log or state write fails.
        """
        student_id = require_student_id(payload)
        reason = payload.get("reason")
        if reason is not None and len(str(reason)) > MAX_REASON_LENGTH:
            raise ValidationError(
                f"reason must be at most {MAX_REASON_LENGTH} characters",
                {"field": "reason"},
            )
        student = await self._get_student(student_id)

        signal = Signal.focus_violation(
            parse_focus_minutes(payload),
            reason=reason,
        )
        transition = self.state_machine.decide(student["status"], signal)
        result = await self.coordinator.escalate(student_id, transition)

        logger.info("Focus violation for %s: %s", student_id, signal.reason)
        return self._violation_outcome(result)

    def _violation_outcome(self, result: EscalationResult) -> SignalOutcome:
        status = VIOLATION_STATUS.get(result.notification, VIOLATION_STATUS[NotificationOutcome.SENT])
        return SignalOutcome(status=status, state=result.state, warning=result.warning)

    async def _get_student(self, student_id: str) -> Row:
        student = await self.store.get_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student
