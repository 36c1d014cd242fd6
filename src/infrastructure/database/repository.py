# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy implementation of the engagement store.

Every method runs in its own session and commits before returning, so a
daily log row stays written even if a later step of the same request
fails.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.engagement.exceptions import PersistenceError
from src.domains.engagement.store import Row
from src.infrastructure.database.connection import DatabaseError, get_session
from src.infrastructure.database.models import DailyLog, Intervention, Student
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlAlchemyEngagementStore:
    """Engagement store backed by PostgreSQL.

    Attributes:
        session_scope: Factory for committing session contexts.
    """

    def __init__(self, session_scope: SessionScope = get_session) -> None:
        self.session_scope = session_scope

    async def get_student(self, student_id: str) -> Row | None:
        try:
            async with self.session_scope() as session:
                student = await session.get(Student, student_id)
                return student.to_dict() if student else None
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to load student", e) from e

    async def ensure_student(self, student_id: str, name: str | None = None) -> bool:
        try:
            async with self.session_scope() as session:
                if await session.get(Student, student_id) is not None:
                    return False
                session.add(Student(id=student_id, name=name, status="normal"))
            logger.info("Created student %s", student_id)
            return True
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to create student", e) from e

    async def update_student_status(self, student_id: str, status: str) -> int:
        try:
            async with self.session_scope() as session:
                result = await session.execute(
                    update(Student)
                    .where(Student.id == student_id)
                    .values(status=status, updated_at=utc_now())
                )
                return result.rowcount
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to update student status", e) from e

    async def insert_daily_log(
        self,
        student_id: str,
        quiz_score: float,
        focus_minutes: int,
        status: str,
    ) -> Row:
        try:
            async with self.session_scope() as session:
                result = await session.execute(
                    insert(DailyLog)
                    .values(
                        student_id=student_id,
                        quiz_score=quiz_score,
                        focus_minutes=focus_minutes,
                        status=status,
                        created_at=utc_now(),
                    )
                    .returning(DailyLog.id, DailyLog.created_at)
                )
                row = result.one()
                return {
                    "id": row.id,
                    "student_id": student_id,
                    "quiz_score": quiz_score,
                    "focus_minutes": focus_minutes,
                    "status": status,
                    "created_at": row.created_at,
                }
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to write daily log", e) from e

    async def insert_intervention(self, student_id: str, task_description: str) -> Row:
        try:
            async with self.session_scope() as session:
                intervention = Intervention(
                    student_id=student_id,
                    task_description=task_description,
                    status="pending",
                    assigned_at=utc_now(),
                )
                session.add(intervention)
                await session.flush()
                return intervention.to_dict()
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to create intervention", e) from e

    async def get_pending_intervention(self, student_id: str) -> Row | None:
        try:
            async with self.session_scope() as session:
                result = await session.execute(
                    select(Intervention)
                    .where(
                        Intervention.student_id == student_id,
                        Intervention.status == "pending",
                    )
                    .order_by(Intervention.assigned_at.desc(), Intervention.id.desc())
                    .limit(1)
                )
                intervention = result.scalar_one_or_none()
                return intervention.to_dict() if intervention else None
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to load intervention", e) from e

    async def complete_intervention(self, student_id: str, intervention_id: int) -> int:
        try:
            async with self.session_scope() as session:
                result = await session.execute(
                    update(Intervention)
                    .where(
                        Intervention.id == intervention_id,
                        Intervention.student_id == student_id,
                        Intervention.status == "pending",
                    )
                    .values(status="completed", completed_at=utc_now())
                )
                return result.rowcount
        except (SQLAlchemyError, DatabaseError) as e:
            raise PersistenceError("Failed to complete intervention", e) from e
