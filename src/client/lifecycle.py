# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Platform lifecycle observers.

A focus session ends in a violation when the student leaves the app.
Platforms report that differently (page visibility, window blur, app
state changes, terminal job control); observers turn each of them into
one callback, on_suspend(reason).
"""

import asyncio
import logging
import signal
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

SuspendCallback = Callable[[str], None]
Unsubscribe = Callable[[], None]

REASON_WINDOW_HIDDEN = "window hidden"
REASON_WINDOW_BLURRED = "window blurred"
REASON_APP_BACKGROUNDED = "app backgrounded"


class LifecycleObserver(Protocol):
    """Source of focus-loss events."""

    def register(self, on_suspend: SuspendCallback) -> Unsubscribe:
        """Call on_suspend(reason) on focus loss until unsubscribed."""
        ...


class AppLifecycleObserver:
    """Observer fed explicitly by the host UI.

    The host forwards visibility, blur and app state events; this class
    decides which of them count as leaving the session.
    """

    def __init__(self, initial_state: str = "active") -> None:
        self._callbacks: list[SuspendCallback] = []
        self._app_state = initial_state

    def register(self, on_suspend: SuspendCallback) -> Unsubscribe:
        self._callbacks.append(on_suspend)

        def unsubscribe() -> None:
            if on_suspend in self._callbacks:
                self._callbacks.remove(on_suspend)

        return unsubscribe

    @property
    def app_state(self) -> str:
        return self._app_state

    def visibility_changed(self, hidden: bool) -> None:
        if hidden:
            self._fire(REASON_WINDOW_HIDDEN)

    def window_blurred(self) -> None:
        self._fire(REASON_WINDOW_BLURRED)

    def app_state_changed(self, next_state: str) -> None:
        # Only active -> background counts; "inactive" is transient on mobile.
        was_active = self._app_state == "active"
        self._app_state = next_state
        if was_active and next_state == "background":
            self._fire(REASON_APP_BACKGROUNDED)

    def _fire(self, reason: str) -> None:
        for callback in list(self._callbacks):
            callback(reason)


class SignalLifecycleObserver:
    """Observer for terminal clients using POSIX job-control signals.

    SIGTSTP (Ctrl+Z) counts as backgrounding the app and SIGHUP as the
    window going away. Handlers run on the event loop.
    """

    SIGNAL_REASONS = {
        "SIGTSTP": REASON_APP_BACKGROUNDED,
        "SIGHUP": REASON_WINDOW_HIDDEN,
    }

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def register(self, on_suspend: SuspendCallback) -> Unsubscribe:
        loop = self._loop or asyncio.get_running_loop()
        installed: list[signal.Signals] = []

        for name, reason in self.SIGNAL_REASONS.items():
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            try:
                loop.add_signal_handler(signum, on_suspend, reason)
            except (NotImplementedError, RuntimeError) as e:
                logger.warning("Cannot watch %s: %s", name, str(e))
                continue
            installed.append(signum)

        def unsubscribe() -> None:
            for signum in installed:
                loop.remove_signal_handler(signum)
            installed.clear()

        return unsubscribe
