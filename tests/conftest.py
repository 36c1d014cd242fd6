# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An in-memory engagement store
- Mentor notifier mocks
- A status channel that records pushes
"""

import os

# Settings are read at import time by the rate limiter.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_RUN_MIGRATIONS", "false")
os.environ.setdefault("STATUS_SYNC_BACKEND", "event_bus")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from src.domains.engagement.coordinator import EscalationCoordinator  # noqa: E402
from src.domains.engagement.exceptions import PersistenceError  # noqa: E402
from src.domains.engagement.state_machine import EngagementStateMachine  # noqa: E402
from src.infrastructure.notifications import MentorNotifyResult  # noqa: E402
from src.infrastructure.status_sync import StatusSyncChannel  # noqa: E402


# =============================================================================
# In-memory store
# =============================================================================


class FakeEngagementStore:
    """Dict-backed EngagementStore.

    Add a method name to ``fail_on`` to make that call raise
    PersistenceError.
    """

    def __init__(self) -> None:
        self.students: dict[str, dict[str, Any]] = {}
        self.logs: list[dict[str, Any]] = []
        self.interventions: list[dict[str, Any]] = []
        self.fail_on: set[str] = set()
        self._next_log_id = 1
        self._next_intervention_id = 1

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PersistenceError(f"{operation} failed", RuntimeError("connection lost"))

    def add_student(self, student_id: str, status: str = "normal") -> dict[str, Any]:
        student = {
            "id": student_id,
            "name": f"Student {student_id}",
            "status": status,
            "updated_at": datetime.now(timezone.utc),
        }
        self.students[student_id] = student
        return student

    async def get_student(self, student_id: str) -> dict[str, Any] | None:
        self._check("get_student")
        student = self.students.get(student_id)
        return dict(student) if student else None

    async def ensure_student(self, student_id: str, name: str | None = None) -> bool:
        self._check("ensure_student")
        if student_id in self.students:
            return False
        self.add_student(student_id)
        return True

    async def update_student_status(self, student_id: str, status: str) -> int:
        self._check("update_student_status")
        student = self.students.get(student_id)
        if student is None:
            return 0
        student["status"] = status
        student["updated_at"] = datetime.now(timezone.utc)
        return 1

    async def insert_daily_log(
        self,
        student_id: str,
        quiz_score: float,
        focus_minutes: int,
        status: str,
    ) -> dict[str, Any]:
        self._check("insert_daily_log")
        row = {
            "id": self._next_log_id,
            "student_id": student_id,
            "quiz_score": quiz_score,
            "focus_minutes": focus_minutes,
            "status": status,
            "created_at": datetime.now(timezone.utc),
        }
        self._next_log_id += 1
        self.logs.append(row)
        return dict(row)

    async def insert_intervention(self, student_id: str, task_description: str) -> dict[str, Any]:
        self._check("insert_intervention")
        row = {
            "id": self._next_intervention_id,
            "student_id": student_id,
            "task_description": task_description,
            "status": "pending",
            "assigned_at": datetime.now(timezone.utc),
            "completed_at": None,
        }
        self._next_intervention_id += 1
        self.interventions.append(row)
        return dict(row)

    async def get_pending_intervention(self, student_id: str) -> dict[str, Any] | None:
        self._check("get_pending_intervention")
        pending = [
            row for row in self.interventions
            if row["student_id"] == student_id and row["status"] == "pending"
        ]
        return dict(pending[-1]) if pending else None

    async def complete_intervention(self, student_id: str, intervention_id: int) -> int:
        self._check("complete_intervention")
        for row in self.interventions:
            if (
                row["id"] == intervention_id
                and row["student_id"] == student_id
                and row["status"] == "pending"
            ):
                row["status"] = "completed"
                row["completed_at"] = datetime.now(timezone.utc)
                return 1
        return 0


class RecordingPublisher:
    """Status publisher keeping every push in memory."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, student_id: str, payload: dict[str, Any]) -> None:
        self.published.append((student_id, payload))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "student-123"


@pytest.fixture
def store(sample_student_id: str) -> FakeEngagementStore:
    """In-memory store with one student in the normal state."""
    fake = FakeEngagementStore()
    fake.add_student(sample_student_id)
    return fake


@pytest.fixture
def notifier() -> AsyncMock:
    """Mentor notifier that always delivers."""
    mock = AsyncMock()
    mock.notify = AsyncMock(return_value=MentorNotifyResult())
    return mock


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def status_channel(publisher: RecordingPublisher) -> StatusSyncChannel:
    return StatusSyncChannel(publisher)


@pytest.fixture
def state_machine() -> EngagementStateMachine:
    return EngagementStateMachine()


@pytest.fixture
def coordinator(
    store: FakeEngagementStore,
    notifier: AsyncMock,
    status_channel: StatusSyncChannel,
) -> EscalationCoordinator:
    return EscalationCoordinator(store, notifier, status_channel, notify_timeout=0.5)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
