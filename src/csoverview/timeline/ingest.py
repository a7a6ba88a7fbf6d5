"""
Event ingestion.

The decoder's event stream is fed through a single ordered dispatcher. Each
``EventKind`` maps to one handler in a lookup table; kinds without a handler
are ignored. Handlers update the phase tracker, register effects in the
lifetime index and record half and round start frames.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from csoverview.core.constants import (
    FLASH_EFFECT_LIFETIME,
    HE_EFFECT_LIFETIME,
    KILLFEED_LIFETIME_SECONDS,
    NON_FIRING_CLASSES,
    WORLD_NAME,
    EquipmentType,
    Team,
)
from csoverview.core.utils import round_half_up
from csoverview.source import (
    EventKind,
    GameEvent,
    GrenadeDetonation,
    KillActor,
    KillInfo,
    WeaponFire,
)
from csoverview.timeline.effects import (
    EffectLifetimeIndex,
    killfeed_lifetime,
    weapon_fire_lifetime,
)
from csoverview.timeline.models import GrenadeEffect, Kill, Point, Shot
from csoverview.timeline.phase import PhaseTracker

logger = logging.getLogger(__name__)


class EventIngestor:
    """
    Dispatches decoded events to the phase tracker and effect index.

    Usage:
        ingestor = EventIngestor(tracker, index, frame_rate=64.0, smoke_lifetime=1152)
        source.subscribe(ingestor.dispatch)
    """

    def __init__(
        self,
        tracker: PhaseTracker,
        effects: EffectLifetimeIndex,
        frame_rate: float,
        smoke_lifetime: int,
        killfeed_seconds: int = KILLFEED_LIFETIME_SECONDS,
    ):
        self.tracker = tracker
        self.effects = effects
        self.frame_rate = frame_rate
        self.frame_rate_rounded = round_half_up(frame_rate)
        self.smoke_lifetime = smoke_lifetime
        self.killfeed_lifetime = killfeed_lifetime(self.frame_rate_rounded, killfeed_seconds)

        self.half_starts: list[int] = []
        self.round_starts: list[int] = []
        self.events_handled = 0

        self._handlers: dict[EventKind, Callable[[GameEvent], None]] = {
            EventKind.MATCH_START: self._on_half_start,
            EventKind.WIN_PANEL_MATCH: self._on_half_start,
            EventKind.HALF_ENDED: self._on_half_ended,
            EventKind.ROUND_START: self._on_round_start,
            EventKind.FREEZETIME_END: self._on_phase_event,
            EventKind.BOMB_PLANTED: self._on_phase_event,
            EventKind.ROUND_END: self._on_phase_event,
            EventKind.WEAPON_FIRE: self._on_weapon_fire,
            EventKind.FLASH_EXPLODE: self._on_grenade,
            EventKind.HE_EXPLODE: self._on_grenade,
            EventKind.SMOKE_START: self._on_grenade,
            EventKind.KILL: self._on_kill,
        }

    def dispatch(self, event: GameEvent) -> None:
        handler = self._handlers.get(event.kind)
        if handler is None:
            logger.debug(f"No handler for {event.kind}, ignoring")
            return
        handler(event)
        self.events_handled += 1

    # ------------------------------------------------------------------
    # Round and match events
    # ------------------------------------------------------------------

    def _on_phase_event(self, event: GameEvent) -> None:
        self.tracker.handle(event.kind, event.time)

    def _on_half_start(self, event: GameEvent) -> None:
        self.half_starts.append(event.frame)

    def _on_half_ended(self, event: GameEvent) -> None:
        self.half_starts.append(event.frame)
        self.tracker.handle(event.kind, event.time)

    def _on_round_start(self, event: GameEvent) -> None:
        self.round_starts.append(event.frame)
        self.tracker.handle(event.kind, event.time)
        # Smokes from the previous round do not carry over
        self.effects.clear_grenade_effects(event.frame + 1, event.frame + self.smoke_lifetime)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _on_weapon_fire(self, event: GameEvent) -> None:
        fire = event.payload
        if not isinstance(fire, WeaponFire) or fire.shooter is None:
            return
        if fire.weapon.equipment_class in NON_FIRING_CLASSES:
            return

        is_awp_shot = fire.weapon == EquipmentType.AWP
        shot = Shot(
            position=Point(fire.shooter.x, fire.shooter.y),
            view_direction_x=fire.shooter.view_direction_x,
            is_awp_shot=is_awp_shot,
        )
        self.effects.register(shot, event.frame, weapon_fire_lifetime(self.frame_rate, is_awp_shot))

    def _on_grenade(self, event: GameEvent) -> None:
        detonation = event.payload
        if not isinstance(detonation, GrenadeDetonation):
            return

        lifetime = {
            EventKind.FLASH_EXPLODE: FLASH_EFFECT_LIFETIME,
            EventKind.HE_EXPLODE: HE_EFFECT_LIFETIME,
            EventKind.SMOKE_START: self.smoke_lifetime,
        }[event.kind]
        effect = GrenadeEffect(
            position=Point(detonation.x, detonation.y),
            grenade_type=detonation.grenade_type,
        )
        self.effects.register(effect, event.frame, lifetime)

    def _on_kill(self, event: GameEvent) -> None:
        info = event.payload
        if not isinstance(info, KillInfo):
            return

        killer = info.killer or KillActor(WORLD_NAME, Team.UNASSIGNED)
        victim = info.victim or KillActor(WORLD_NAME, Team.UNASSIGNED)
        kill = Kill(
            killer_name=killer.name,
            killer_team=killer.team,
            victim_name=victim.name,
            victim_team=victim.team,
            weapon=info.weapon,
        )
        logger.debug(f"Kill at frame {event.frame}: {kill.killer_name} -> {kill.victim_name}")
        self.effects.register(kill, event.frame, self.killfeed_lifetime)
