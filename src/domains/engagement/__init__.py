# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student engagement: signal normalization, state machine and escalation."""

from src.domains.engagement.coordinator import (
    EscalationCoordinator,
    EscalationResult,
    NotificationOutcome,
)
from src.domains.engagement.service import EngagementService, SignalOutcome
from src.domains.engagement.state_machine import (
    EngagementState,
    EngagementStateMachine,
    Signal,
    SignalKind,
    Transition,
)

__all__ = [
    "EngagementService",
    "EngagementState",
    "EngagementStateMachine",
    "EscalationCoordinator",
    "EscalationResult",
    "NotificationOutcome",
    "Signal",
    "SignalKind",
    "SignalOutcome",
    "Transition",
]
