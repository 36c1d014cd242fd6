# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event type constants, organized by domain."""


class EventTypes:
    """All event types published on the event bus."""

    class Engagement:
        """Student engagement events."""

        STATUS_UPDATED = "engagement.status.updated"
