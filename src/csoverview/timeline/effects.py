"""
Frame-indexed timeline of ephemeral effects.

An effect (grenade burst or smoke, weapon-fire tracer, kill-feed line) is
registered once, at the frame of its triggering event, and is then visible on
that frame and the following ``lifetime - 1`` frames.

Storage is a fixed ring of bucket slots indexed by ``frame % window``. Each
slot remembers which frame it currently holds, so a slot that is reused for a
later frame starts empty and a stale slot reads as empty. The window must be
at least as long as the longest lifetime registered (smoke cloud or kill
feed); memory stays bounded for the whole match.

Kill-feed buckets are capped: once a frame holds ``killfeed_max_entries``
kills, the oldest is dropped when another arrives.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace

from csoverview.core.constants import (
    KILLFEED_LIFETIME_SECONDS,
    KILLFEED_MAX_ENTRIES,
    SMOKE_EFFECT_SECONDS,
)
from csoverview.core.utils import round_half_up
from csoverview.timeline.models import EffectEntry, GrenadeEffect, Kill, Shot

logger = logging.getLogger(__name__)


# ============================================================================
# Lifetimes
# ============================================================================


def smoke_effect_lifetime(frame_rate: float, seconds: float = SMOKE_EFFECT_SECONDS) -> int:
    """Smoke duration is defined in real time, so it scales with the frame rate."""
    return int(seconds * frame_rate)


def weapon_fire_lifetime(frame_rate: float, is_awp_shot: bool = False) -> int:
    """Tracer lifetime in frames: 1/32 s, or 1/8 s for the AWP, at least one frame."""
    divisor = 8 if is_awp_shot else 32
    return max(1, round_half_up((frame_rate + 1) / divisor))


def killfeed_lifetime(frame_rate_rounded: int, seconds: int = KILLFEED_LIFETIME_SECONDS) -> int:
    return frame_rate_rounded * seconds


# ============================================================================
# Index
# ============================================================================


@dataclass
class _Slot:
    frame: int = -1
    grenade_effects: list[GrenadeEffect] = field(default_factory=list)
    shots: list[Shot] = field(default_factory=list)
    killfeed: deque[Kill] = field(default_factory=deque)


class EffectLifetimeIndex:
    """
    Ring-buffered frame -> effects timeline.

    Usage:
        index = EffectLifetimeIndex(window=1152)
        index.register(shot, origin_frame=100, lifetime=2)
        index.shots_at(101)  # (shot,)
        index.shots_at(102)  # ()
    """

    def __init__(self, window: int, killfeed_max_entries: int = KILLFEED_MAX_ENTRIES):
        if window < 1:
            raise ValueError(f"Effect window must be at least 1 frame, got {window}")
        self.window = window
        self.killfeed_max_entries = killfeed_max_entries
        self._slots = [self._empty_slot(-1) for _ in range(window)]

    def _empty_slot(self, frame: int) -> _Slot:
        return _Slot(frame=frame, killfeed=deque(maxlen=self.killfeed_max_entries))

    def _slot_for_write(self, frame: int) -> _Slot:
        index = frame % self.window
        slot = self._slots[index]
        if slot.frame != frame:
            slot = self._empty_slot(frame)
            self._slots[index] = slot
        return slot

    def _slot_for_read(self, frame: int) -> _Slot | None:
        if frame < 0:
            return None
        slot = self._slots[frame % self.window]
        return slot if slot.frame == frame else None

    def register(self, entry: EffectEntry, origin_frame: int, lifetime: int) -> None:
        """
        Make ``entry`` visible on frames ``[origin_frame, origin_frame + lifetime)``.

        Grenade effects are stored with their age on each frame.

        Raises:
            ValueError: if the lifetime does not fit in the ring window
        """
        if lifetime > self.window:
            raise ValueError(
                f"Effect lifetime of {lifetime} frames exceeds the timeline window of "
                f"{self.window} frames"
            )

        for offset in range(lifetime):
            slot = self._slot_for_write(origin_frame + offset)
            if isinstance(entry, GrenadeEffect):
                slot.grenade_effects.append(replace(entry, age=offset))
            elif isinstance(entry, Shot):
                slot.shots.append(entry)
            elif isinstance(entry, Kill):
                slot.killfeed.append(entry)
            else:
                raise TypeError(f"Unsupported effect entry: {type(entry).__name__}")

    def clear_grenade_effects(self, start_frame: int, stop_frame: int) -> None:
        """Drop grenade effects on frames ``[start_frame, stop_frame)``; shots and kills stay."""
        for frame in range(start_frame, min(stop_frame, start_frame + self.window)):
            slot = self._slot_for_read(frame)
            if slot is not None:
                slot.grenade_effects.clear()

    def grenade_effects_at(self, frame: int) -> tuple[GrenadeEffect, ...]:
        slot = self._slot_for_read(frame)
        return tuple(slot.grenade_effects) if slot else ()

    def shots_at(self, frame: int) -> tuple[Shot, ...]:
        slot = self._slot_for_read(frame)
        return tuple(slot.shots) if slot else ()

    def killfeed_at(self, frame: int) -> tuple[Kill, ...]:
        slot = self._slot_for_read(frame)
        return tuple(slot.killfeed) if slot else ()

    def entries_at(self, frame: int) -> tuple[EffectEntry, ...]:
        """All effects visible on ``frame``: grenade effects, then shots, then kills."""
        return self.grenade_effects_at(frame) + self.shots_at(frame) + self.killfeed_at(frame)
