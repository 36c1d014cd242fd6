# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    students: Engagement signals, status and remedial tasks.
    status_stream: WebSocket push of status updates.
"""

from fastapi import APIRouter

from src.api.v1 import status_stream, students

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(students.router, tags=["Students"])
router.include_router(status_stream.router, tags=["Status Stream"])
