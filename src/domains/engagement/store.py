# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Storage interface used by the engagement and intervention services.

Operations return plain rows (dicts) and affected-row counts. Each write
is durable on return; there is no transaction spanning several calls.
All failures surface as PersistenceError.
"""

from typing import Any, Protocol

Row = dict[str, Any]


class EngagementStore(Protocol):
    """Row-level access to students, daily logs and interventions."""

    async def get_student(self, student_id: str) -> Row | None: ...

    async def ensure_student(self, student_id: str, name: str | None = None) -> bool:
        """Create the student in the normal state if missing. True if created."""
        ...

    async def update_student_status(self, student_id: str, status: str) -> int: ...

    async def insert_daily_log(
        self,
        student_id: str,
        quiz_score: float,
        focus_minutes: int,
        status: str,
    ) -> Row: ...

    async def insert_intervention(self, student_id: str, task_description: str) -> Row: ...

    async def get_pending_intervention(self, student_id: str) -> Row | None:
        """Most recently assigned pending intervention, or None."""
        ...

    async def complete_intervention(self, student_id: str, intervention_id: int) -> int:
        """Mark a pending intervention completed. Returns rows affected."""
        ...
