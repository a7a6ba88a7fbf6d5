"""Shared fixtures: an in-memory decoder and world-state factories."""

from __future__ import annotations

from collections import defaultdict

import pytest

from csoverview.core.constants import EquipmentType, Team
from csoverview.source import (
    BombState,
    DemoHeader,
    EventHandler,
    EventKind,
    GameEvent,
    HeldItem,
    PlayerState,
    TeamInfo,
    TickDecodeError,
    WorldState,
)

DEFAULT_CONVARS = {
    "mp_freezetime": "5",
    "mp_roundtime_defuse": "1.92",
    "mp_c4timer": "40",
    "mp_round_restart_delay": "7",
    "mp_halftime_duration": "15",
}


def make_player(
    name: str = "player",
    steam_id: int = 1,
    team: Team = Team.CT,
    x: float = 0.0,
    y: float = 0.0,
    weapons: list[HeldItem] | None = None,
    **kwargs,
) -> PlayerState:
    return PlayerState(
        name=name,
        steam_id=steam_id,
        team=team,
        x=x,
        y=y,
        last_alive_x=kwargs.pop("last_alive_x", x),
        last_alive_y=kwargs.pop("last_alive_y", y),
        view_direction_x=kwargs.pop("view_direction_x", 90.0),
        health=kwargs.pop("health", 100),
        is_alive=kwargs.pop("is_alive", True),
        weapons=weapons if weapons is not None else [HeldItem(EquipmentType.KNIFE)],
        **kwargs,
    )


def make_world(tick: int = 0, convars: dict[str, str] | None = None, **kwargs) -> WorldState:
    return WorldState(
        ingame_tick=tick,
        players=kwargs.pop("players", [make_player()]),
        bomb=kwargs.pop("bomb", BombState(0.0, 0.0)),
        team_ct=kwargs.pop("team_ct", TeamInfo("CT Team", 0)),
        team_t=kwargs.pop("team_t", TeamInfo("T Team", 0)),
        convars=dict(DEFAULT_CONVARS) if convars is None else convars,
        **kwargs,
    )


class FakeDemoSource:
    """
    In-memory DemoSource.

    Events are (frame, kind, payload) tuples dispatched when their frame is
    reached. ``error_frames`` raise TickDecodeError from ``world_state``.
    """

    def __init__(
        self,
        frame_count: int,
        frame_rate: float = 10.0,
        tick_rate: float = 64.0,
        map_name: str = "de_dust2",
        events: list[tuple[int, EventKind, object]] | None = None,
        worlds: dict[int, WorldState] | None = None,
        error_frames: set[int] | None = None,
        convars: dict[str, str] | None = None,
    ):
        self.frame_count = frame_count
        self.frame_rate = frame_rate
        self._tick_rate = tick_rate
        self.map_name = map_name
        self.worlds = worlds or {}
        self.error_frames = error_frames or set()
        self.convars = convars
        self.handlers: list[EventHandler] = []
        self.closed = False
        self._frame = -1
        self._events: dict[int, list[tuple[EventKind, object]]] = defaultdict(list)
        for frame, kind, payload in events or []:
            self._events[frame].append((kind, payload))

    @property
    def current_frame(self) -> int:
        return self._frame

    @property
    def current_time(self) -> float:
        return self._frame / self.frame_rate if self.frame_rate > 0 else 0.0

    def header(self) -> DemoHeader:
        return DemoHeader(self.map_name, self.frame_rate, self.frame_count)

    def tick_rate(self) -> float:
        return self._tick_rate

    def subscribe(self, handler: EventHandler) -> None:
        self.handlers.append(handler)

    def next_frame(self) -> bool:
        if self._frame + 1 >= self.frame_count:
            return False
        self._frame += 1
        for kind, payload in self._events.get(self._frame, []):
            event = GameEvent(kind=kind, frame=self._frame, time=self.current_time, payload=payload)
            for handler in self.handlers:
                handler(event)
        return True

    def world_state(self) -> WorldState:
        if self._frame in self.error_frames:
            raise TickDecodeError(self._frame, "corrupt entity update")
        if self._frame in self.worlds:
            return self.worlds[self._frame]
        return make_world(tick=self._frame, convars=self.convars)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_source_factory():
    """Build FakeDemoSource instances with keyword overrides."""
    return FakeDemoSource


@pytest.fixture
def player_factory():
    """Build PlayerState instances with sensible defaults."""
    return make_player


@pytest.fixture
def world_factory():
    """Build WorldState instances with one default player and default convars."""
    return make_world
