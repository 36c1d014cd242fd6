# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fire-and-forget status emission.

``StatusSyncChannel.emit`` schedules the publish and returns at once.
Publisher failures are logged and never reach the request that caused
the state change.
"""

import asyncio
import logging
from typing import Any

from src.infrastructure.status_sync.publishers import StatusPublisher

logger = logging.getLogger(__name__)


class StatusSyncChannel:
    """Schedules status pushes on the running event loop.

    Attributes:
        publisher: Backend receiving the updates.
    """

    def __init__(self, publisher: StatusPublisher) -> None:
        self.publisher = publisher
        self._pending: set[asyncio.Task] = set()

    def emit(self, student_id: str, payload: dict[str, Any]) -> None:
        """Push a status update without waiting for it."""
        task = asyncio.create_task(self._publish(student_id, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _publish(self, student_id: str, payload: dict[str, Any]) -> None:
        try:
            await self.publisher.publish(student_id, payload)
        except Exception as e:
            logger.warning(
                "Status push for %s failed: %s",
                student_id,
                str(e),
            )

    async def drain(self) -> None:
        """Wait for all scheduled pushes. Used at shutdown and in tests."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
