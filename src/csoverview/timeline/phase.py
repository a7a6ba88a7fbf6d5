"""
Round phase tracking.

A small state machine over ``Phase``. Round events move it forward and stamp
the transition with the event's playback time; the latest transition is the
anchor for the countdown timer until the next one replaces it.

Warmup is not a state this machine enters. The world state reports the warmup
period directly and the timer short-circuits on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from csoverview.core.constants import Phase
from csoverview.source import EventKind

logger = logging.getLogger(__name__)

PHASE_TRANSITIONS: dict[EventKind, Phase] = {
    EventKind.ROUND_START: Phase.FREEZETIME,
    EventKind.FREEZETIME_END: Phase.REGULAR,
    EventKind.BOMB_PLANTED: Phase.PLANTED,
    EventKind.ROUND_END: Phase.RESTART,
    EventKind.HALF_ENDED: Phase.HALFTIME,
}


@dataclass(frozen=True)
class PhaseTransition:
    phase: Phase
    timestamp: float  # seconds of playback


class PhaseTracker:
    """
    Tracks the active round phase.

    Usage:
        tracker = PhaseTracker()
        tracker.handle(EventKind.ROUND_START, timestamp=12.5)
        tracker.phase  # Phase.FREEZETIME
    """

    def __init__(self):
        self._latest = PhaseTransition(Phase.WARMUP, 0.0)

    @property
    def phase(self) -> Phase:
        return self._latest.phase

    @property
    def last_transition(self) -> PhaseTransition:
        return self._latest

    def handle(self, kind: EventKind, timestamp: float) -> bool:
        """
        Apply a round event.

        Returns:
            True if the event caused a transition, False if it was ignored
        """
        phase = PHASE_TRANSITIONS.get(kind)
        if phase is None:
            return False

        logger.debug(f"Phase {self._latest.phase} -> {phase} at {timestamp:.2f}s")
        self._latest = PhaseTransition(phase, timestamp)
        return True
