"""
Overview data structures.

Everything a renderer receives for a frame. All types are frozen so that a
finished match can be shared between reader threads without locking.
``to_dict`` produces the compact JSON shape used by the exporter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from csoverview.core.constants import EquipmentType, Phase, Team


@dataclass(frozen=True)
class Point:
    """World-relative x/y coordinates (z is not shown on the overview)."""

    x: float
    y: float

    def to_dict(self, precision: int = 1) -> dict:
        return {"x": round(self.x, precision), "y": round(self.y, precision)}


@dataclass(frozen=True)
class Player:
    """Player state at a single frame."""

    name: str
    steam_id: int
    team: Team
    position: Point
    last_alive_position: Point
    view_direction_x: float
    flash_duration: float
    flash_time_remaining: float
    inventory: tuple[EquipmentType, ...]
    health: int
    armor: int
    money: int
    kills: int
    deaths: int
    assists: int
    is_alive: bool
    is_defusing: bool
    has_helmet: bool
    has_defuse_kit: bool
    has_bomb: bool

    def to_dict(self, precision: int = 1) -> dict:
        return {
            "sid": self.steam_id,
            "n": self.name,
            "t": self.team.name,
            "pos": self.position.to_dict(precision),
            "last": self.last_alive_position.to_dict(precision),
            "yaw": round(self.view_direction_x, precision),
            "flash": round(self.flash_time_remaining, 2),
            "inv": [item.name for item in self.inventory],
            "hp": self.health,
            "armor": self.armor,
            "money": self.money,
            "k": self.kills,
            "d": self.deaths,
            "a": self.assists,
            "alive": self.is_alive,
            "defusing": self.is_defusing,
            "helmet": self.has_helmet,
            "kit": self.has_defuse_kit,
            "bomb": self.has_bomb,
        }


@dataclass(frozen=True)
class GrenadeProjectile:
    """A grenade in flight."""

    position: Point
    type: EquipmentType

    def to_dict(self, precision: int = 1) -> dict:
        return {"type": self.type.name, **self.position.to_dict(precision)}


@dataclass(frozen=True)
class Inferno:
    """Outline of the burning area of a molotov or incendiary."""

    convex_hull_2d: tuple[Point, ...]

    def to_dict(self, precision: int = 1) -> dict:
        return {"hull": [[round(p.x, precision), round(p.y, precision)] for p in self.convex_hull_2d]}


@dataclass(frozen=True)
class Bomb:
    position: Point
    is_being_carried: bool

    def to_dict(self, precision: int = 1) -> dict:
        return {**self.position.to_dict(precision), "carried": self.is_being_carried}


@dataclass(frozen=True)
class TeamState:
    clan_name: str
    score: int

    def to_dict(self) -> dict:
        return {"name": self.clan_name, "score": self.score}


@dataclass(frozen=True)
class Timer:
    """Countdown shown on the overview. ``time_remaining`` may be negative."""

    time_remaining: float  # seconds
    phase: Phase

    def to_dict(self) -> dict:
        return {"remaining": round(self.time_remaining, 2), "phase": self.phase.value}


# ============================================================================
# Ephemeral effects
# ============================================================================


@dataclass(frozen=True)
class GrenadeEffect:
    """Flash/HE burst or smoke cloud. ``age`` counts frames since detonation."""

    position: Point
    grenade_type: EquipmentType
    age: int = 0

    def to_dict(self, precision: int = 1) -> dict:
        return {"type": self.grenade_type.name, "age": self.age, **self.position.to_dict(precision)}


@dataclass(frozen=True)
class Shot:
    """Weapon-fire tracer marker."""

    position: Point
    view_direction_x: float
    is_awp_shot: bool

    def to_dict(self, precision: int = 1) -> dict:
        return {
            **self.position.to_dict(precision),
            "yaw": round(self.view_direction_x, precision),
            "awp": self.is_awp_shot,
        }


@dataclass(frozen=True)
class Kill:
    """Kill-feed line."""

    killer_name: str
    killer_team: Team
    victim_name: str
    victim_team: Team
    weapon: EquipmentType

    def to_dict(self) -> dict:
        return {
            "killer": self.killer_name,
            "killer_team": self.killer_team.name,
            "victim": self.victim_name,
            "victim_team": self.victim_team.name,
            "weapon": self.weapon.name,
        }


EffectEntry = GrenadeEffect | Shot | Kill


@dataclass(frozen=True)
class OverviewState:
    """The fully resolved state of one frame."""

    ingame_tick: int
    players: tuple[Player, ...]
    grenades: tuple[GrenadeProjectile, ...]
    infernos: tuple[Inferno, ...]
    bomb: Bomb
    team_counter_terrorists: TeamState
    team_terrorists: TeamState
    timer: Timer
    grenade_effects: tuple[GrenadeEffect, ...] = field(default_factory=tuple)
    shots: tuple[Shot, ...] = field(default_factory=tuple)
    killfeed: tuple[Kill, ...] = field(default_factory=tuple)

    def to_dict(self, precision: int = 1) -> dict:
        result = {
            "tick": self.ingame_tick,
            "players": [p.to_dict(precision) for p in self.players],
            "bomb": self.bomb.to_dict(precision),
            "ct": self.team_counter_terrorists.to_dict(),
            "t": self.team_terrorists.to_dict(),
            "timer": self.timer.to_dict(),
        }

        if self.grenades:
            result["grenades"] = [g.to_dict(precision) for g in self.grenades]
        if self.infernos:
            result["infernos"] = [i.to_dict(precision) for i in self.infernos]
        if self.grenade_effects:
            result["effects"] = [e.to_dict(precision) for e in self.grenade_effects]
        if self.shots:
            result["shots"] = [s.to_dict(precision) for s in self.shots]
        if self.killfeed:
            result["killfeed"] = [k.to_dict() for k in self.killfeed]

        return result
