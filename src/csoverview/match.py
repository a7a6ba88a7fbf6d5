"""
Match construction.

``build_match`` runs the whole pipeline over a decoder in one ordered pass:

1. Read header and rates (falling back to caller-supplied values when the
   demo does not report usable ones)
2. Subscribe the event ingestor to the decoder's event stream
3. Advance frame by frame, building one overview snapshot per frame
4. Freeze everything into a ``Match``

Usage:
    from csoverview.match import load_match

    match = load_match("match.dem", fallback_frame_rate=64)
    state = match.states[1000]
    px, py = match.translate_scaled(state.bomb.position.x, state.bomb.position.y)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from csoverview.core.config import TimelineConfig
from csoverview.core.constants import FLASH_EFFECT_LIFETIME, HE_EFFECT_LIFETIME
from csoverview.core.utils import PerformanceMonitor, is_valid_rate, round_half_up
from csoverview.map_data import get_map_metadata
from csoverview.source import DemoSource, TickDecodeError
from csoverview.timeline.effects import (
    EffectLifetimeIndex,
    killfeed_lifetime,
    smoke_effect_lifetime,
    weapon_fire_lifetime,
)
from csoverview.timeline.ingest import EventIngestor
from csoverview.timeline.models import OverviewState, Point
from csoverview.timeline.phase import PhaseTracker
from csoverview.timeline.snapshot import SnapshotBuilder
from csoverview.visualization.radar import CoordinateTranslator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    """
    Everything a renderer needs to play back a demo on the map overview.

    Immutable once built; ``states[i]`` is the i-th decoded frame.
    """

    map_name: str
    map_origin: Point
    map_scale: float
    frame_rate: float
    frame_rate_rounded: int
    tick_rate: float
    smoke_effect_lifetime: int
    half_starts: tuple[int, ...] = ()
    round_starts: tuple[int, ...] = ()
    states: tuple[OverviewState, ...] = ()
    skipped_frames: tuple[int, ...] = field(default=(), repr=False)

    @property
    def translator(self) -> CoordinateTranslator:
        return CoordinateTranslator(self.map_origin.x, self.map_origin.y, self.map_scale)

    def translate(self, x: float, y: float) -> tuple[float, float]:
        """Translate world coordinates to (0, 0)-relative coordinates."""
        return self.translator.translate(x, y)

    def translate_scaled(self, x: float, y: float) -> tuple[float, float]:
        """Translate and scale world coordinates to overview pixel coordinates."""
        return self.translator.translate_scaled(x, y)

    @property
    def duration_seconds(self) -> float:
        return len(self.states) / self.frame_rate if self.frame_rate else 0.0


def resolve_rate(name: str, reported: float | None, fallback: float | None, option: str) -> float:
    """
    Pick the decoder's rate, or the fallback when the decoder's is 0/NaN.

    Raises:
        ValueError: if a fallback is needed but none was supplied (or it is invalid)
    """
    if is_valid_rate(reported):
        return float(reported)

    if fallback is None:
        raise ValueError(
            f"Could not parse {name} from demo. "
            f"Please provide a fallback value (command-line option {option})"
        )
    if not is_valid_rate(fallback):
        raise ValueError(f"Fallback {name} must be a positive number, got {fallback!r}")

    logger.info(f"Demo reports no usable {name}, using fallback {fallback}")
    return float(fallback)


def effect_window(frame_rate: float, smoke_lifetime: int, killfeed_seconds: int) -> int:
    """Ring size for the effect index: the longest lifetime that can be registered."""
    return max(
        smoke_lifetime,
        killfeed_lifetime(round_half_up(frame_rate), killfeed_seconds),
        weapon_fire_lifetime(frame_rate, is_awp_shot=True),
        FLASH_EFFECT_LIFETIME,
        HE_EFFECT_LIFETIME,
    )


def build_match(
    source: DemoSource,
    fallback_frame_rate: float | None = None,
    fallback_tick_rate: float | None = None,
    timeline: TimelineConfig | None = None,
) -> Match:
    """
    Build a Match from a decoder.

    Args:
        source: Decoder implementing the DemoSource protocol
        fallback_frame_rate: Used if the demo's frame rate is 0 or NaN
        fallback_tick_rate: Used if the demo's tick rate is 0 or NaN
        timeline: Effect and timer settings (defaults if omitted)

    Returns:
        The finished, immutable Match

    Raises:
        ValueError: if a rate is missing and no fallback was given
    """
    timeline = timeline or TimelineConfig()

    header = source.header()
    frame_rate = resolve_rate("framerate", header.frame_rate, fallback_frame_rate, "--framerate")
    tick_rate = resolve_rate("tickrate", source.tick_rate(), fallback_tick_rate, "--tickrate")

    metadata = get_map_metadata(header.map_name)
    smoke_lifetime = smoke_effect_lifetime(frame_rate, timeline.smoke_seconds)

    tracker = PhaseTracker()
    effects = EffectLifetimeIndex(
        window=effect_window(frame_rate, smoke_lifetime, timeline.killfeed_seconds),
        killfeed_max_entries=timeline.killfeed_max_entries,
    )
    ingestor = EventIngestor(
        tracker,
        effects,
        frame_rate=frame_rate,
        smoke_lifetime=smoke_lifetime,
        killfeed_seconds=timeline.killfeed_seconds,
    )
    builder = SnapshotBuilder(tracker, effects, c4_timer_fallback=timeline.c4_timer_fallback)

    source.subscribe(ingestor.dispatch)

    logger.info(
        f"Building overview for {header.map_name} at {frame_rate:.2f} fps / {tick_rate:.2f} tick"
    )

    states: list[OverviewState] = []
    skipped: list[int] = []

    while True:
        try:
            if not source.next_frame():
                break
            world = source.world_state()
        except TickDecodeError as e:
            logger.warning(f"Skipping undecodable tick: {e}")
            skipped.append(e.frame)
            continue

        states.append(builder.build(source.current_frame, source.current_time, world))

    logger.info(
        f"Built {len(states)} frames ({len(skipped)} skipped), "
        f"{len(ingestor.round_starts)} rounds, {ingestor.events_handled} events"
    )

    return Match(
        map_name=header.map_name,
        map_origin=Point(metadata.pos_x, metadata.pos_y),
        map_scale=metadata.scale,
        frame_rate=frame_rate,
        frame_rate_rounded=round_half_up(frame_rate),
        tick_rate=tick_rate,
        smoke_effect_lifetime=smoke_lifetime,
        half_starts=tuple(ingestor.half_starts),
        round_starts=tuple(ingestor.round_starts),
        states=tuple(states),
        skipped_frames=tuple(skipped),
    )


def load_match(
    demo_path: str | Path,
    fallback_frame_rate: float | None = None,
    fallback_tick_rate: float | None = None,
    sample_rate: int = 1,
    timeline: TimelineConfig | None = None,
) -> Match:
    """
    Decode a .dem file with demoparser2 and build its Match.

    demoparser2 headers usually carry no tick rate, so the fallbacks decide
    the rates. Without an explicit frame rate, one frame every ``sample_rate``
    ticks gives ``fallback_tick_rate / sample_rate``.

    Raises:
        FileNotFoundError: if the demo does not exist
        ValueError: if a rate is missing and no fallback was given
    """
    from csoverview.core.parser import Demoparser2Source

    source = Demoparser2Source(demo_path, sample_rate=sample_rate, fallback_tick_rate=fallback_tick_rate)
    if fallback_frame_rate is None and is_valid_rate(fallback_tick_rate):
        fallback_frame_rate = fallback_tick_rate / sample_rate

    try:
        with PerformanceMonitor(f"building overview for {Path(demo_path).name}"):
            return build_match(
                source,
                fallback_frame_rate=fallback_frame_rate,
                fallback_tick_rate=fallback_tick_rate,
                timeline=timeline,
            )
    finally:
        source.close()
