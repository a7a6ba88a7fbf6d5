"""
Decoder contract.

The overview pipeline never touches the demo file itself. It talks to a
decoder through the ``DemoSource`` protocol defined here:

- a header accessor (map name, declared frame rate, playback frames)
- a tick-rate accessor
- an ordered event subscription
- a per-frame world-state accessor
- a sequential ``next_frame`` that reports end of stream or raises
  ``TickDecodeError`` for a tick that could not be decoded

Events are a tagged variant: an ``EventKind`` plus a kind-specific payload.
``csoverview.core.parser.Demoparser2Source`` implements the protocol on top
of demoparser2; tests use in-memory sources.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

from csoverview.core.constants import EquipmentType, Team


class TickDecodeError(Exception):
    """A single tick could not be decoded; the frame is skipped."""

    def __init__(self, frame: int, message: str):
        super().__init__(f"frame {frame}: {message}")
        self.frame = frame


class EventKind(StrEnum):
    """Game events the overview pipeline reacts to."""

    MATCH_START = "match_start"
    ROUND_START = "round_start"
    FREEZETIME_END = "freezetime_end"
    BOMB_PLANTED = "bomb_planted"
    ROUND_END = "round_end"
    HALF_ENDED = "half_ended"
    WIN_PANEL_MATCH = "win_panel_match"
    WEAPON_FIRE = "weapon_fire"
    FLASH_EXPLODE = "flash_explode"
    HE_EXPLODE = "he_explode"
    SMOKE_START = "smoke_start"
    KILL = "kill"


# ============================================================================
# Event payloads
# ============================================================================


@dataclass(frozen=True)
class Shooter:
    """The firing player as seen at the moment of a weapon_fire event."""

    name: str
    x: float
    y: float
    view_direction_x: float


@dataclass(frozen=True)
class WeaponFire:
    shooter: Shooter | None
    weapon: EquipmentType


@dataclass(frozen=True)
class GrenadeDetonation:
    grenade_type: EquipmentType
    x: float
    y: float


@dataclass(frozen=True)
class KillActor:
    name: str
    team: Team


@dataclass(frozen=True)
class KillInfo:
    """Killer and victim are None for world damage (falls, bomb, etc.)."""

    killer: KillActor | None
    victim: KillActor | None
    weapon: EquipmentType


EventPayload = WeaponFire | GrenadeDetonation | KillInfo | None


@dataclass(frozen=True)
class GameEvent:
    """One decoded event, stamped with the frame and playback time it occurred at."""

    kind: EventKind
    frame: int
    time: float  # seconds of playback
    payload: EventPayload = None


EventHandler = Callable[[GameEvent], None]


# ============================================================================
# Header and world state
# ============================================================================


@dataclass(frozen=True)
class DemoHeader:
    map_name: str
    frame_rate: float  # may be 0 or NaN when the demo does not declare it
    playback_frames: int = 0


@dataclass(frozen=True)
class HeldItem:
    type: EquipmentType
    ammo_reserve: int = 0


@dataclass
class PlayerState:
    """Raw per-tick player status as reported by the decoder."""

    name: str
    steam_id: int
    team: Team
    x: float
    y: float
    last_alive_x: float
    last_alive_y: float
    view_direction_x: float
    health: int = 0
    armor: int = 0
    money: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    is_alive: bool = False
    is_defusing: bool = False
    has_helmet: bool = False
    has_defuse_kit: bool = False
    flash_duration: float = 0.0
    flash_time_remaining: float = 0.0
    weapons: list[HeldItem] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectileState:
    type: EquipmentType
    x: float
    y: float


@dataclass
class InfernoState:
    """Currently burning fire points of one inferno (molotov/incendiary)."""

    fires: list[tuple[float, float]] = field(default_factory=list)


@dataclass(frozen=True)
class BombState:
    x: float
    y: float
    carrier_steam_id: int | None = None


@dataclass(frozen=True)
class TeamInfo:
    clan_name: str = ""
    score: int = 0


@dataclass
class WorldState:
    """Everything the decoder knows about the current tick."""

    ingame_tick: int
    players: list[PlayerState] = field(default_factory=list)
    grenade_projectiles: list[ProjectileState] = field(default_factory=list)
    infernos: list[InfernoState] = field(default_factory=list)
    bomb: BombState = field(default_factory=lambda: BombState(0.0, 0.0))
    team_ct: TeamInfo = field(default_factory=TeamInfo)
    team_t: TeamInfo = field(default_factory=TeamInfo)
    convars: dict[str, str] = field(default_factory=dict)
    is_warmup_period: bool = False


@runtime_checkable
class DemoSource(Protocol):
    """What the overview pipeline needs from a demo decoder."""

    @property
    def current_frame(self) -> int: ...

    @property
    def current_time(self) -> float: ...

    def header(self) -> DemoHeader: ...

    def tick_rate(self) -> float: ...

    def subscribe(self, handler: EventHandler) -> None: ...

    def next_frame(self) -> bool: ...

    def world_state(self) -> WorldState: ...

    def close(self) -> None: ...
