# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Engagement state machine.

Pure decision logic: given a student's current state and an incoming
signal, decide the target state and which side effects the escalation
layer must perform. Nothing here touches storage or the network.

States:
    normal -> needs_intervention   failed check-in, focus violation
    needs_intervention -> remedial intervention assigned
    remedial -> normal             intervention completed
    any -> normal                  passing check-in

Every (state, signal) pair has a defined outcome, so a student is always
in exactly one of the three states.
"""

from dataclasses import dataclass
from enum import Enum

DEFAULT_VIOLATION_REASON = "cheated"
# Reasons are stored in daily_logs.status.
MAX_REASON_LENGTH = 64


class EngagementState(str, Enum):
    """Engagement state of a student."""

    NORMAL = "normal"
    NEEDS_INTERVENTION = "needs_intervention"
    REMEDIAL = "remedial"


class SignalKind(str, Enum):
    """Kinds of signals driving state transitions."""

    CHECKIN = "checkin"
    FOCUS_VIOLATION = "focus_violation"
    INTERVENTION_ASSIGNED = "intervention_assigned"
    INTERVENTION_COMPLETED = "intervention_completed"


class LogOutcome(str, Enum):
    """Outcome tags written to the daily log for check-ins."""

    ON_TRACK = "on_track"
    NEEDS_INTERVENTION = "needs_intervention"


@dataclass(frozen=True)
class Signal:
    """A normalized engagement signal.

    Attributes:
        kind: What happened.
        quiz_score: Reported quiz score, check-ins only.
        focus_minutes: Normalized focus time at the moment of the signal.
        reason: Violation reason, focus violations only.
    """

    kind: SignalKind
    quiz_score: float | None = None
    focus_minutes: float = 0.0
    reason: str | None = None

    @classmethod
    def checkin(cls, quiz_score: float, focus_minutes: float) -> "Signal":
        return cls(SignalKind.CHECKIN, quiz_score=quiz_score, focus_minutes=focus_minutes)

    @classmethod
    def focus_violation(cls, focus_minutes: float, reason: str | None = None) -> "Signal":
        return cls(
            SignalKind.FOCUS_VIOLATION,
            focus_minutes=focus_minutes,
            reason=reason or DEFAULT_VIOLATION_REASON,
        )

    @classmethod
    def intervention_assigned(cls) -> "Signal":
        return cls(SignalKind.INTERVENTION_ASSIGNED)

    @classmethod
    def intervention_completed(cls, focus_minutes: float = 0.0) -> "Signal":
        return cls(SignalKind.INTERVENTION_COMPLETED, focus_minutes=focus_minutes)


@dataclass(frozen=True)
class Transition:
    """Decision produced for one signal.

    Attributes:
        signal: The signal that was evaluated.
        source: State before the signal.
        target: State after the signal.
        log_outcome: Tag for the daily log row, None when nothing is logged.
        log_quiz_score: Score recorded in the daily log row.
        notify_mentor: Whether a mentor must be alerted.
        creates_intervention: Whether a pending intervention is created.
        completes_intervention: Whether a pending intervention is closed.
    """

    signal: Signal
    source: EngagementState
    target: EngagementState
    log_outcome: str | None = None
    log_quiz_score: float = 0.0
    notify_mentor: bool = False
    creates_intervention: bool = False
    completes_intervention: bool = False

    @property
    def writes_log(self) -> bool:
        return self.log_outcome is not None

    @property
    def changed(self) -> bool:
        return self.source is not self.target


class EngagementStateMachine:
    """Maps (current state, signal) to a Transition.

    Attributes:
        quiz_score_threshold: Score a passing check-in must exceed.
        focus_minutes_threshold: Focus minutes a passing check-in must exceed.
    """

    def __init__(
        self,
        quiz_score_threshold: float = 7,
        focus_minutes_threshold: float = 60,
    ) -> None:
        self.quiz_score_threshold = quiz_score_threshold
        self.focus_minutes_threshold = focus_minutes_threshold

    def passes_checkin(self, quiz_score: float, focus_minutes: float) -> bool:
        """Strict guard on both dimensions; boundary values fail."""
        return (
            quiz_score > self.quiz_score_threshold
            and focus_minutes > self.focus_minutes_threshold
        )

    def decide(self, current: EngagementState, signal: Signal) -> Transition:
        """Evaluate a signal against the current state.

        Args:
            current: The student's state before the signal.
            signal: The normalized signal.

        Returns:
            The transition to apply.

        Raises:
            ValueError: If the signal kind is unknown.
        """
        current = EngagementState(current)

        if signal.kind is SignalKind.CHECKIN:
            score = signal.quiz_score if signal.quiz_score is not None else 0.0
            if self.passes_checkin(score, signal.focus_minutes):
                return Transition(
                    signal=signal,
                    source=current,
                    target=EngagementState.NORMAL,
                    log_outcome=LogOutcome.ON_TRACK.value,
                    log_quiz_score=score,
                )
            return Transition(
                signal=signal,
                source=current,
                target=EngagementState.NEEDS_INTERVENTION,
                log_outcome=LogOutcome.NEEDS_INTERVENTION.value,
                log_quiz_score=score,
                notify_mentor=True,
            )

        if signal.kind is SignalKind.FOCUS_VIOLATION:
            return Transition(
                signal=signal,
                source=current,
                target=EngagementState.NEEDS_INTERVENTION,
                log_outcome=signal.reason or DEFAULT_VIOLATION_REASON,
                log_quiz_score=0.0,
                notify_mentor=True,
            )

        if signal.kind is SignalKind.INTERVENTION_ASSIGNED:
            return Transition(
                signal=signal,
                source=current,
                target=EngagementState.REMEDIAL,
                creates_intervention=True,
            )

        if signal.kind is SignalKind.INTERVENTION_COMPLETED:
            return Transition(
                signal=signal,
                source=current,
                target=EngagementState.NORMAL,
                completes_intervention=True,
            )

        raise ValueError(f"Unknown signal kind: {signal.kind}")
