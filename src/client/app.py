# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student focus app controller.

Ties the API client, local state, focus monitor and status subscriber
together behind the actions a student UI offers.
"""

import logging
from typing import Any

import httpx

from src.client.api import EngagementAPIClient
from src.client.lifecycle import LifecycleObserver
from src.client.monitor import FocusSessionMonitor
from src.client.state import LocalEngagementState
from src.client.sync import StatusSubscriber
from src.core.config.settings import ClientSettings

logger = logging.getLogger(__name__)

MIN_QUIZ_SCORE = 1
MAX_QUIZ_SCORE = 10


class InvalidScoreError(ValueError):
    """Raised when a check-in score is outside 1-10."""


def parse_quiz_score(raw: str) -> float:
    """Parse a score typed by the student.

    Raises:
        InvalidScoreError: If blank, non-numeric or outside 1-10.
    """
    text = (raw or "").strip()
    try:
        score = float(text)
    except ValueError:
        raise InvalidScoreError("Please enter a number between 1 and 10.") from None
    if not MIN_QUIZ_SCORE <= score <= MAX_QUIZ_SCORE:
        raise InvalidScoreError("Please enter a number between 1 and 10.")
    return score


class StudentFocusApp:
    """Controller for one student's focus client."""

    def __init__(
        self,
        api: EngagementAPIClient,
        settings: ClientSettings,
        observer: LifecycleObserver | None = None,
    ) -> None:
        self.api = api
        self.settings = settings
        self.state = LocalEngagementState()
        self.monitor = FocusSessionMonitor(api, self.state, observer, on_reported=self.refresh)
        self.subscriber = StatusSubscriber(
            settings,
            on_update=self.state.apply_push,
            poll=self.refresh,
            on_connection_change=self._connection_changed,
        )

    async def start(self) -> None:
        self.monitor.attach()
        self.subscriber.start()
        await self.refresh()

    async def stop(self) -> None:
        self.monitor.detach()
        await self.subscriber.stop()
        await self.monitor.wait_for_reports()

    async def refresh(self) -> bool:
        """Replace local state with the server's view."""
        try:
            data = await self.api.get_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to fetch student status: %s", str(e))
            self.state.log("Unable to sync latest status")
            return False

        self.state.apply_status_response(data)
        self.state.log("Synced status with mentor loop")
        return True

    async def submit_checkin(self, raw_score: str) -> dict[str, Any] | None:
        """Submit today's check-in with the current session's focus time.

        Raises:
            InvalidScoreError: If the score is not a number in 1-10.
        """
        score = parse_quiz_score(raw_score)
        try:
            result = await self.api.daily_checkin(score, self.monitor.session.focus_duration)
        except httpx.HTTPError as e:
            logger.error("Daily check-in failed: %s", str(e))
            self.state.log("Daily check-in failed")
            return None

        self.state.log(f"Daily check-in submitted ({result.get('status', 'sent')})")
        await self.refresh()
        return result

    async def complete_intervention(self) -> bool:
        """Mark the cached remedial task complete."""
        intervention = self.state.intervention
        if not intervention:
            return False

        try:
            await self.api.complete_intervention(
                intervention["id"],
                self.monitor.session.focus_duration,
            )
        except httpx.HTTPError as e:
            logger.error("Failed to complete intervention: %s", str(e))
            self.state.log("Failed to complete remedial task")
            return False

        self.state.log("Marked remedial task complete")
        self.state.mark_completed()
        self.monitor.session.violated = False
        await self.refresh()
        return True

    def _connection_changed(self, connected: bool) -> None:
        if connected:
            self.state.log("Connected to mentor loop")
        else:
            self.state.log("Status stream disconnected, polling")
