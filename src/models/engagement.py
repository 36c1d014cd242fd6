# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response schemas for engagement endpoints.

Request fields are optional at the schema level. Missing required values
are reported by the services as ValidationError, which the API maps to
400 rather than FastAPI's 422.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domains.engagement.state_machine import MAX_REASON_LENGTH, EngagementState


class DailyCheckinRequest(BaseModel):
    """Daily check-in submitted by the student client."""

    student_id: str | None = Field(None, description="Student identifier")
    quiz_score: float | None = Field(None, description="Score of the daily quiz")
    focus_minutes: Any = Field(None, description="Focus time in minutes")
    focus_duration: Any = Field(None, description='Focus time as "MM:SS"')


class ReportViolationRequest(BaseModel):
    """Focus violation reported by the session monitor."""

    student_id: str | None = Field(None, description="Student identifier")
    focus_minutes: Any = Field(None, description="Focus time in minutes")
    focus_duration: Any = Field(None, description='Elapsed session time as "MM:SS"')
    reason: str | None = Field(
        None,
        max_length=MAX_REASON_LENGTH,
        description='Violation reason, defaults to "cheated"',
    )


class AssignInterventionRequest(BaseModel):
    """Remedial task assigned by a mentor."""

    student_id: str | None = Field(None, description="Student identifier")
    task_description: str | None = Field(None, description="Remedial task to complete")


class CompleteInterventionRequest(BaseModel):
    """Completion of a remedial task by the student."""

    student_id: str | None = Field(None, description="Student identifier")
    intervention_id: int | None = Field(None, description="Intervention to complete")
    focus_minutes: Any = Field(None, description="Focus time in minutes")
    focus_duration: Any = Field(None, description='Focus time as "MM:SS"')


class StudentOut(BaseModel):
    """Student as stored on the server."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    status: EngagementState
    updated_at: datetime | None = None


class InterventionOut(BaseModel):
    """Remedial task."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: str
    task_description: str
    status: str
    assigned_at: datetime | None = None
    completed_at: datetime | None = None


class StudentStatusResponse(BaseModel):
    """Current state plus the latest pending intervention."""

    student: StudentOut
    intervention: InterventionOut | None = None


class SignalResponse(BaseModel):
    """Outcome of a check-in or violation report.

    ``status`` is the human-readable outcome, ``state`` the resulting
    engagement state, ``warning`` set when the mentor alert was not
    confirmed.
    """

    status: str
    state: EngagementState
    warning: str | None = None


class AssignInterventionResponse(BaseModel):
    success: bool = True
    intervention_id: int


class CompleteInterventionResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str


def intervention_payload(row: dict[str, Any] | None) -> dict[str, Any] | None:
    """JSON-safe intervention dict for status pushes."""
    if row is None:
        return None
    return InterventionOut.model_validate(row).model_dump(mode="json")
