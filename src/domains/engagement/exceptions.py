# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the engagement and intervention services.

Hierarchy:
- EngagementError: Base exception for all engagement errors
- ValidationError: Missing or malformed request fields
- NotFoundError: Unknown student or intervention
- DuplicateInterventionError: A pending intervention already exists
- PersistenceError: The engagement store failed
- NotificationError: The mentor notification transport failed
"""


class EngagementError(Exception):
    """Base exception for all engagement-related errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(EngagementError):
    """Raised when required request fields are missing or malformed."""

    pass


class NotFoundError(EngagementError):
    """Raised when a referenced entity does not exist."""

    pass


class StudentNotFoundError(NotFoundError):
    """Raised when the student is unknown."""

    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__("Student not found", {"student_id": student_id})


class InterventionNotFoundError(NotFoundError):
    """Raised when no pending intervention matches the id and student."""

    def __init__(self, student_id: str, intervention_id: int):
        self.student_id = student_id
        self.intervention_id = intervention_id
        super().__init__(
            "Intervention not found",
            {"student_id": student_id, "intervention_id": intervention_id},
        )


class DuplicateInterventionError(EngagementError):
    """Raised when assigning while another intervention is still pending."""

    def __init__(self, student_id: str, pending_id: int):
        self.student_id = student_id
        self.pending_id = pending_id
        super().__init__(
            "Student already has a pending intervention",
            {"student_id": student_id, "intervention_id": pending_id},
        )


class PersistenceError(EngagementError):
    """Raised when the engagement store is unavailable or a write fails.

    Attributes:
        original_error: The underlying driver or ORM exception.
    """

    def __init__(self, message: str, original_error: Exception | None = None):
        self.original_error = original_error
        super().__init__(message)


class NotificationError(EngagementError):
    """Raised by the mentor notification transport on delivery failure.

    Attributes:
        status_code: HTTP status returned by the transport, if any.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, {"status_code": status_code} if status_code else None)
