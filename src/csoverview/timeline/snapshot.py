"""
Per-frame snapshot assembly.

For every decoded frame the builder reads the decoder's world state, resolves
players, projectiles, infernos, bomb and team state into overview types,
merges in the effects visible on that frame and the current countdown, and
returns one ``OverviewState``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from csoverview.core.constants import (
    C4_TIMER_SECONDS,
    INVENTORY_CLASSES,
    EquipmentType,
    Team,
)
from csoverview.source import HeldItem, InfernoState, PlayerState, WorldState
from csoverview.timeline.effects import EffectLifetimeIndex
from csoverview.timeline.models import (
    Bomb,
    GrenadeProjectile,
    Inferno,
    OverviewState,
    Player,
    Point,
    TeamState,
)
from csoverview.timeline.phase import PhaseTracker
from csoverview.timeline.timer import PhaseDurations, derive_timer

logger = logging.getLogger(__name__)

PLAYING_TEAMS = (Team.TERRORIST, Team.CT)


def build_inventory(weapons: Iterable[HeldItem]) -> tuple[tuple[EquipmentType, ...], bool]:
    """
    Classify held items into the overview inventory.

    Only pistols, SMGs, heavy weapons, rifles and grenades are listed. A
    flashbang with reserve ammo is listed twice so the overview shows both.

    Returns:
        (sorted inventory, whether the bomb is among the held items)
    """
    has_bomb = False
    inventory: list[EquipmentType] = []

    for item in weapons:
        if item.type == EquipmentType.BOMB:
            has_bomb = True
        if item.type.equipment_class in INVENTORY_CLASSES:
            if item.type == EquipmentType.FLASH and item.ammo_reserve > 0:
                inventory.append(item.type)
            inventory.append(item.type)

    inventory.sort()
    return tuple(inventory), has_bomb


def convex_hull_2d(points: Sequence[tuple[float, float]]) -> tuple[Point, ...]:
    """
    Counter-clockwise convex hull of 2D points (monotone chain).

    Fewer than three distinct points are returned as-is.
    """
    if len(points) == 0:
        return ()

    pts = np.unique(np.asarray(points, dtype=float).reshape(-1, 2), axis=0)
    if len(pts) < 3:
        return tuple(Point(float(x), float(y)) for x, y in pts)

    def half_hull(ordered: np.ndarray) -> list[np.ndarray]:
        hull: list[np.ndarray] = []
        for p in ordered:
            while len(hull) >= 2:
                a = hull[-1] - hull[-2]
                b = p - hull[-2]
                if a[0] * b[1] - a[1] * b[0] > 0:
                    break
                hull.pop()
            hull.append(p)
        return hull

    lower = half_hull(pts)
    upper = half_hull(pts[::-1])
    return tuple(Point(float(x), float(y)) for x, y in lower[:-1] + upper[:-1])


def resolve_player(state: PlayerState) -> Player:
    inventory, has_bomb = build_inventory(state.weapons)
    return Player(
        name=state.name,
        steam_id=state.steam_id,
        team=state.team,
        position=Point(state.x, state.y),
        last_alive_position=Point(state.last_alive_x, state.last_alive_y),
        view_direction_x=state.view_direction_x,
        flash_duration=state.flash_duration,
        flash_time_remaining=state.flash_time_remaining,
        inventory=inventory,
        health=state.health,
        armor=state.armor,
        money=state.money,
        kills=state.kills,
        deaths=state.deaths,
        assists=state.assists,
        is_alive=state.is_alive,
        is_defusing=state.is_defusing,
        has_helmet=state.has_helmet,
        has_defuse_kit=state.has_defuse_kit,
        has_bomb=has_bomb,
    )


def resolve_inferno(state: InfernoState) -> Inferno:
    return Inferno(convex_hull_2d=convex_hull_2d(state.fires))


class SnapshotBuilder:
    """
    Composes one OverviewState per frame.

    The builder only reads the phase tracker and effect index; the event
    ingestor is the one that updates them.
    """

    def __init__(
        self,
        tracker: PhaseTracker,
        effects: EffectLifetimeIndex,
        c4_timer_fallback: float = C4_TIMER_SECONDS,
    ):
        self.tracker = tracker
        self.effects = effects
        self.c4_timer_fallback = c4_timer_fallback

    def build(self, frame: int, now: float, world: WorldState) -> OverviewState:
        """
        Assemble the snapshot for ``frame``.

        Args:
            frame: Decoder frame number (keys the effect index)
            now: Playback time of the frame in seconds
            world: Decoder world state for the frame
        """
        players = tuple(resolve_player(p) for p in world.players if p.team in PLAYING_TEAMS)
        grenades = tuple(
            GrenadeProjectile(position=Point(g.x, g.y), type=g.type)
            for g in world.grenade_projectiles
        )
        infernos = tuple(resolve_inferno(i) for i in world.infernos)
        bomb = Bomb(
            position=Point(world.bomb.x, world.bomb.y),
            is_being_carried=world.bomb.carrier_steam_id is not None,
        )

        durations = PhaseDurations.from_convars(world.convars, self.c4_timer_fallback)
        transition = self.tracker.last_transition
        timer = derive_timer(
            transition.phase,
            transition.timestamp,
            now,
            durations,
            is_warmup=world.is_warmup_period,
        )

        return OverviewState(
            ingame_tick=world.ingame_tick,
            players=players,
            grenades=grenades,
            infernos=infernos,
            bomb=bomb,
            team_counter_terrorists=TeamState(world.team_ct.clan_name, world.team_ct.score),
            team_terrorists=TeamState(world.team_t.clan_name, world.team_t.score),
            timer=timer,
            grenade_effects=self.effects.grenade_effects_at(frame),
            shots=self.effects.shots_at(frame),
            killfeed=self.effects.killfeed_at(frame),
        )
