# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student focus client.

Runs a timed focus session, reports focus violations, submits daily
check-ins and keeps a local view of the engagement state in sync with
the server.

Example:
    settings = get_settings().client
    async with EngagementAPIClient(settings) as api:
        app = StudentFocusApp(api, settings)
        await app.refresh()
"""

from src.client.api import EngagementAPIClient
from src.client.app import StudentFocusApp
from src.client.lifecycle import (
    AppLifecycleObserver,
    LifecycleObserver,
    SignalLifecycleObserver,
)
from src.client.monitor import FocusSession, FocusSessionMonitor
from src.client.state import LocalEngagementState
from src.client.sync import StatusSubscriber

__all__ = [
    "AppLifecycleObserver",
    "EngagementAPIClient",
    "FocusSession",
    "FocusSessionMonitor",
    "LifecycleObserver",
    "LocalEngagementState",
    "SignalLifecycleObserver",
    "StatusSubscriber",
    "StudentFocusApp",
]
