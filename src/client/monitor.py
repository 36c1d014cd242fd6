# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Focus session monitor.

Counts the seconds of a timed focus session and reports a focus
violation once when the student leaves the app while it is running.

States: idle -> running -> (stopped | violated); reset returns to idle.
All callbacks run on the event loop, so the running flag needs no lock.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from src.client.api import EngagementAPIClient
from src.client.lifecycle import LifecycleObserver, Unsubscribe
from src.client.state import LocalEngagementState
from src.domains.engagement.signals import format_focus_duration

logger = logging.getLogger(__name__)


@dataclass
class FocusSession:
    """Client-local session counters."""

    elapsed_seconds: int = 0
    running: bool = False
    violated: bool = False

    @property
    def focus_duration(self) -> str:
        return format_focus_duration(self.elapsed_seconds)


class FocusSessionMonitor:
    """Drives a FocusSession and turns focus loss into a violation report.

    Attributes:
        api: Engagement API client used for the report.
        state: Local engagement state, updated optimistically.
        session: Current session counters.
    """

    TICK_SECONDS = 1.0

    def __init__(
        self,
        api: EngagementAPIClient,
        state: LocalEngagementState,
        observer: LifecycleObserver | None = None,
        on_reported: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.api = api
        self.state = state
        self.session = FocusSession()
        self._observer = observer
        self._on_reported = on_reported
        self._unsubscribe: Unsubscribe | None = None
        self._ticker: asyncio.Task | None = None
        self._reports: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self.session.running

    def attach(self) -> None:
        """Start listening for focus loss. Call once per monitor lifetime."""
        if self._observer is not None and self._unsubscribe is None:
            self._unsubscribe = self._observer.register(self.handle_focus_loss)

    def detach(self) -> None:
        self._halt()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def start(self) -> None:
        if self.session.running:
            return
        self.session.violated = False
        self.session.running = True
        self._ticker = asyncio.get_running_loop().create_task(self._tick_loop())
        self.state.log("Focus session started")

    def stop(self) -> None:
        self._halt()
        self.state.log(f"Focus session stopped at {self.session.focus_duration}")

    def reset(self) -> None:
        self._halt()
        self.session.elapsed_seconds = 0
        self.session.violated = False
        self.state.log("Timer reset")

    def tick(self) -> None:
        """Count one second if the session is running."""
        if self.session.running:
            self.session.elapsed_seconds += 1

    def handle_focus_loss(self, reason: str) -> None:
        """Record a violation and schedule its report.

        Ignored unless a session is running, so repeated platform events
        for one departure produce one report.
        """
        if not self.session.running:
            return

        self._halt()
        self.session.violated = True
        self.state.mark_violation()
        self.state.log("Focus session interrupted")

        task = asyncio.get_running_loop().create_task(
            self._report(self.session.focus_duration, reason)
        )
        self._reports.add(task)
        task.add_done_callback(self._reports.discard)

    async def wait_for_reports(self) -> None:
        """Wait for scheduled violation reports to finish."""
        if self._reports:
            await asyncio.gather(*list(self._reports))

    def _halt(self) -> None:
        self.session.running = False
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _tick_loop(self) -> None:
        while self.session.running:
            await asyncio.sleep(self.TICK_SECONDS)
            self.tick()

    async def _report(self, focus_duration: str, reason: str) -> None:
        try:
            await self.api.report_cheat(focus_duration, reason)
        except (httpx.HTTPError, ValueError) as e:
            # Not retried; the next status poll reconciles local state.
            logger.error("Failed to report focus violation: %s", str(e))
            self.state.log("Failed to notify mentor about focus violation")
            return

        self.state.log("Focus violation reported to mentor")
        if self._on_reported is not None:
            await self._on_reported()
