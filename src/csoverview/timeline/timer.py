"""
Round countdown derivation.

The on-screen timer is recomputed every frame from the active phase, the time
of the last phase transition and the server's configured phase lengths:

    remaining = duration(phase) - (now - last_transition)

The result is not clamped; it goes negative when the next round event arrives
later than the configuration predicts.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from csoverview.core.constants import (
    C4_TIMER_SECONDS,
    CONVAR_C4TIMER,
    CONVAR_FREEZETIME,
    CONVAR_HALFTIME_DURATION,
    CONVAR_RESTART_DELAY,
    CONVAR_ROUNDTIME_DEFUSE,
    Phase,
)
from csoverview.core.utils import safe_float
from csoverview.timeline.models import Timer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseDurations:
    """Configured length of each timed phase, in seconds."""

    freezetime: float = 0.0
    round_time: float = 0.0
    bomb_timer: float = C4_TIMER_SECONDS
    restart_delay: float = 0.0
    halftime: float = 0.0

    @classmethod
    def from_convars(
        cls, convars: Mapping[str, str], c4_timer_fallback: float = C4_TIMER_SECONDS
    ) -> PhaseDurations:
        """
        Read phase lengths from server convars.

        Missing or unparseable values count as zero, so the countdown for
        that phase reads as already expired. ``mp_roundtime_defuse`` is in
        minutes. ``mp_c4timer`` falls back to ``c4_timer_fallback``.
        """
        bomb_timer = c4_timer_fallback
        if convars.get(CONVAR_C4TIMER) not in (None, ""):
            bomb_timer = safe_float(convars.get(CONVAR_C4TIMER), c4_timer_fallback)

        return cls(
            freezetime=safe_float(convars.get(CONVAR_FREEZETIME)),
            round_time=safe_float(convars.get(CONVAR_ROUNDTIME_DEFUSE)) * 60,
            bomb_timer=bomb_timer,
            restart_delay=safe_float(convars.get(CONVAR_RESTART_DELAY)),
            halftime=safe_float(convars.get(CONVAR_HALFTIME_DURATION)),
        )

    def for_phase(self, phase: Phase) -> float:
        return {
            Phase.FREEZETIME: self.freezetime,
            Phase.REGULAR: self.round_time,
            Phase.PLANTED: self.bomb_timer,
            Phase.RESTART: self.restart_delay,
            Phase.HALFTIME: self.halftime,
        }.get(phase, 0.0)


# Halftime is displayed with the Restart tag. Kept for compatibility with
# existing overview renderers.
TIMER_DISPLAY_PHASE: dict[Phase, Phase] = {
    Phase.HALFTIME: Phase.RESTART,
}


def derive_timer(
    phase: Phase,
    last_transition: float,
    now: float,
    durations: PhaseDurations,
    is_warmup: bool = False,
) -> Timer:
    """
    Compute the countdown for the current frame.

    Args:
        phase: Phase from the tracker
        last_transition: Playback time (s) of the transition into ``phase``
        now: Current playback time (s)
        durations: Configured phase lengths
        is_warmup: Warmup flag from the world state, overrides everything

    Returns:
        Timer with the remaining seconds and the phase tag to display
    """
    if is_warmup or phase == Phase.WARMUP:
        return Timer(time_remaining=0.0, phase=Phase.WARMUP)

    remaining = durations.for_phase(phase) - (now - last_transition)
    return Timer(time_remaining=remaining, phase=TIMER_DISPLAY_PHASE.get(phase, phase))
