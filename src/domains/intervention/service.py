# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intervention lifecycle service.

This module provides the InterventionService class for:
- Assigning a remedial task, which moves the student to remedial
- Completing a remedial task, which returns the student to normal
"""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from src.domains.engagement.coordinator import EscalationCoordinator
from src.domains.engagement.exceptions import (
    DuplicateInterventionError,
    InterventionNotFoundError,
    StudentNotFoundError,
    ValidationError,
)
from src.domains.engagement.service import require_student_id
from src.domains.engagement.signals import parse_focus_minutes
from src.domains.engagement.state_machine import EngagementStateMachine, Signal
from src.domains.engagement.store import EngagementStore, Row
from src.models.engagement import intervention_payload

logger = logging.getLogger(__name__)

DuplicatePolicy = Literal["reject", "allow"]


class InterventionService:
    """Service for remedial task assignment and completion.

    Attributes:
        store: Engagement store.
        coordinator: Escalation coordinator, used for state writes and pushes.
        state_machine: Transition rules.
        duplicate_policy: "reject" refuses a second pending intervention.
    """

    def __init__(
        self,
        store: EngagementStore,
        coordinator: EscalationCoordinator,
        state_machine: EngagementStateMachine | None = None,
        duplicate_policy: DuplicatePolicy = "reject",
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.state_machine = state_machine or EngagementStateMachine()
        self.duplicate_policy = duplicate_policy

    async def assign(self, payload: Mapping[str, Any]) -> Row:
        """Assign a remedial task and move the student to remedial.

        The current state is not checked. With the "reject" policy an
        existing pending intervention blocks the assignment.

        Args:
            payload: Request body with student_id and task_description.

        Returns:
            The created intervention row.

        Raises:
            ValidationError: If a field is missing or blank.
            StudentNotFoundError: If the student is unknown.
            DuplicateInterventionError: If a pending intervention exists
                and the policy is "reject".
            PersistenceError: If the store fails.
        """
        student_id = require_student_id(payload)
        task_description = payload.get("task_description")
        if task_description is None or not str(task_description).strip():
            raise ValidationError("Missing required fields", {"field": "task_description"})
        task_description = str(task_description).strip()

        student = await self.store.get_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)

        if self.duplicate_policy == "reject":
            pending = await self.store.get_pending_intervention(student_id)
            if pending is not None:
                raise DuplicateInterventionError(student_id, pending["id"])

        transition = self.state_machine.decide(
            student["status"], Signal.intervention_assigned()
        )
        intervention = await self.store.insert_intervention(student_id, task_description)
        await self.coordinator.escalate(
            student_id,
            transition,
            status_extra={"intervention": intervention_payload(intervention)},
        )

        logger.info("Assigned intervention %s to %s", intervention["id"], student_id)
        return intervention

    async def complete(self, payload: Mapping[str, Any]) -> None:
        """Complete a pending intervention and return the student to normal.

        Other pending interventions, if any, do not prevent the return to
        normal.

        Args:
            payload: Request body with student_id, intervention_id and
                optional focus_duration.

        Raises:
            ValidationError: If a field is missing.
            InterventionNotFoundError: If no pending intervention matches
                both ids. The state is left unchanged.
            PersistenceError: If the store fails.
        """
        student_id = require_student_id(payload)
        intervention_id = payload.get("intervention_id")
        if intervention_id is None:
            raise ValidationError("Missing required fields", {"field": "intervention_id"})
        try:
            intervention_id = int(intervention_id)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "intervention_id must be an integer", {"field": "intervention_id"}
            ) from e

        updated = await self.store.complete_intervention(student_id, intervention_id)
        if updated == 0:
            raise InterventionNotFoundError(student_id, intervention_id)

        focus_minutes = parse_focus_minutes(payload)
        student = await self.store.get_student(student_id)
        current = student["status"] if student else "remedial"
        transition = self.state_machine.decide(
            current, Signal.intervention_completed(focus_minutes)
        )
        await self.coordinator.escalate(
            student_id,
            transition,
            status_extra={"focus_minutes": focus_minutes},
        )

        logger.info("Completed intervention %s for %s", intervention_id, student_id)
