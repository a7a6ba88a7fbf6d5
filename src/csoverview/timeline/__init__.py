"""
csoverview Timeline - Per-frame overview reconstruction.

This module contains:
- models: Frozen snapshot and effect data structures
- phase: Round phase state machine
- timer: Countdown derivation from phase and server convars
- effects: Ring-buffered frame -> effects lifetime index
- ingest: Event dispatch into the phase tracker and effect index
- snapshot: Per-frame snapshot assembly
"""

from csoverview.timeline.effects import EffectLifetimeIndex
from csoverview.timeline.ingest import EventIngestor
from csoverview.timeline.models import (
    Bomb,
    GrenadeEffect,
    GrenadeProjectile,
    Inferno,
    Kill,
    OverviewState,
    Player,
    Point,
    Shot,
    TeamState,
    Timer,
)
from csoverview.timeline.phase import PhaseTracker, PhaseTransition
from csoverview.timeline.snapshot import SnapshotBuilder
from csoverview.timeline.timer import PhaseDurations, derive_timer

__all__ = [
    "Bomb",
    "EffectLifetimeIndex",
    "EventIngestor",
    "GrenadeEffect",
    "GrenadeProjectile",
    "Inferno",
    "Kill",
    "OverviewState",
    "PhaseDurations",
    "PhaseTracker",
    "PhaseTransition",
    "Player",
    "Point",
    "Shot",
    "SnapshotBuilder",
    "TeamState",
    "Timer",
    "derive_timer",
]
