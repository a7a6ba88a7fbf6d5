"""
demoparser2 decoder backend.

Implements the ``DemoSource`` protocol on top of demoparser2's DataFrame API:

- Header: ``parse_header`` (map name, tick rate when present)
- Events: ``parse_event`` per game event, merged into one tick-ordered stream
- Player state: ``parse_ticks`` with the props below
- Grenades in flight: ``parse_grenades``
- Infernos: ``inferno_startburn`` / ``inferno_expire`` events (ignition point only)
- Server convars: ``parse_convars``

Each frame is every ``sample_rate``-th recorded tick, so the frame rate is
``tick_rate / sample_rate``. Events recorded between two frames are dispatched
when the later frame is reached.
"""

from __future__ import annotations

import logging
import math
from collections import Counter, defaultdict
from pathlib import Path
from typing import Any

import pandas as pd
from demoparser2 import DemoParser as Demoparser2

from csoverview.core.constants import CS2_TICK_RATE, INFERNO_BURN_SECONDS, EquipmentType, Team
from csoverview.core.utils import is_valid_rate, safe_bool, safe_float, safe_int, safe_str, timed
from csoverview.source import (
    BombState,
    DemoHeader,
    EventHandler,
    EventKind,
    GameEvent,
    GrenadeDetonation,
    HeldItem,
    InfernoState,
    KillActor,
    KillInfo,
    PlayerState,
    ProjectileState,
    Shooter,
    TeamInfo,
    TickDecodeError,
    WeaponFire,
    WorldState,
)

logger = logging.getLogger(__name__)


class Demoparser2Source:
    """
    DemoSource backed by demoparser2.

    Usage:
        source = Demoparser2Source("match.dem", sample_rate=2)
        source.subscribe(print)
        while source.next_frame():
            state = source.world_state()
    """

    PLAYER_PROPS = [
        "X",
        "Y",
        "yaw",
        "health",
        "armor_value",
        "balance",
        "kills_total",
        "deaths_total",
        "assists_total",
        "is_alive",
        "is_defusing",
        "has_helmet",
        "has_defuser",
        "team_num",
        "inventory",
        "team_clan_name",
        "team_rounds_total",
        "is_warmup_period",
    ]

    EVENT_PLAYER_PROPS = ["X", "Y", "yaw", "team_num"]

    # Dispatch order for events recorded on the same tick
    EVENT_NAMES: dict[str, EventKind] = {
        "round_end": EventKind.ROUND_END,
        "announce_phase_end": EventKind.HALF_ENDED,
        "cs_win_panel_match": EventKind.WIN_PANEL_MATCH,
        "round_announce_match_start": EventKind.MATCH_START,
        "round_start": EventKind.ROUND_START,
        "round_freeze_end": EventKind.FREEZETIME_END,
        "bomb_planted": EventKind.BOMB_PLANTED,
        "weapon_fire": EventKind.WEAPON_FIRE,
        "flashbang_detonate": EventKind.FLASH_EXPLODE,
        "hegrenade_detonate": EventKind.HE_EXPLODE,
        "smokegrenade_detonate": EventKind.SMOKE_START,
        "player_death": EventKind.KILL,
    }

    GRENADE_EVENT_TYPES = {
        EventKind.FLASH_EXPLODE: EquipmentType.FLASH,
        EventKind.HE_EXPLODE: EquipmentType.HE,
        EventKind.SMOKE_START: EquipmentType.SMOKE,
    }

    def __init__(self, demo_path: str | Path, sample_rate: int = 1, fallback_tick_rate: float | None = None):
        """
        Open a demo file.

        Args:
            demo_path: Path to the .dem file
            sample_rate: Use every Nth tick as a frame (1 = every tick)
            fallback_tick_rate: Converts ticks to seconds when the header has
                no tick rate. Not reported by ``tick_rate()``.
        """
        self.demo_path = Path(demo_path)
        if not self.demo_path.exists():
            raise FileNotFoundError(f"Demo file not found: {demo_path}")
        if self.demo_path.suffix.lower() != ".dem":
            raise ValueError(f"Expected .dem file, got: {self.demo_path.suffix}")
        if sample_rate < 1:
            raise ValueError(f"sample_rate must be at least 1, got {sample_rate}")

        self.sample_rate = sample_rate
        self._parser = Demoparser2(str(self.demo_path))
        self._raw_header: dict[str, Any] = self._parser.parse_header() or {}
        self._reported_tick_rate = safe_float(self._raw_header.get("tickrate"), math.nan)
        self._clock_rate = self._pick_clock_rate(fallback_tick_rate)
        self._handlers: list[EventHandler] = []
        self._loaded = False

        self._frame = -1
        self._frame_ticks: list[int] = []
        self._rows_by_tick: dict[int, pd.DataFrame] = {}
        self._grenades_by_tick: dict[int, pd.DataFrame] = {}
        self._events: list[tuple[int, int, EventKind, Any]] = []
        self._next_event = 0
        self._inferno_windows: list[tuple[int, int, float, float]] = []
        self._blind_events: list[tuple[int, int, float]] = []
        self._next_blind = 0
        self._blinds: dict[int, tuple[int, float]] = {}
        self._last_alive: dict[int, tuple[float, float]] = {}
        self._planted_at: tuple[float, float] | None = None
        self._bomb_last: tuple[float, float] = (0.0, 0.0)
        self._convars: dict[str, str] = {}

    # ------------------------------------------------------------------
    # DemoSource protocol
    # ------------------------------------------------------------------

    @property
    def current_frame(self) -> int:
        return self._frame

    @property
    def current_tick(self) -> int:
        if self._frame < 0:
            return 0
        return self._frame_ticks[self._frame]

    @property
    def current_time(self) -> float:
        return self.current_tick / self._clock_rate

    def header(self) -> DemoHeader:
        self._ensure_loaded()
        return DemoHeader(
            map_name=safe_str(self._raw_header.get("map_name"), "unknown"),
            frame_rate=self.tick_rate() / self.sample_rate,
            playback_frames=len(self._frame_ticks),
        )

    def tick_rate(self) -> float:
        """Header tick rate, NaN when the demo does not report a usable one."""
        return self._reported_tick_rate if is_valid_rate(self._reported_tick_rate) else math.nan

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def next_frame(self) -> bool:
        self._ensure_loaded()
        if self._frame + 1 >= len(self._frame_ticks):
            return False

        self._frame += 1
        self._dispatch_until(self.current_tick)
        return True

    def world_state(self) -> WorldState:
        tick = self.current_tick
        rows = self._rows_by_tick.get(tick)
        if rows is None:
            raise TickDecodeError(self._frame, f"no player data for tick {tick}")

        try:
            players = [self._player_from_row(row, tick) for row in rows.to_dict("records")]
            teams = self._teams_from_rows(rows)
            is_warmup = bool(rows["is_warmup_period"].fillna(False).any()) if "is_warmup_period" in rows.columns else False
        except (KeyError, TypeError, ValueError) as e:
            raise TickDecodeError(self._frame, str(e)) from e

        for player in players:
            if player.is_alive:
                self._last_alive[player.steam_id] = (player.x, player.y)

        return WorldState(
            ingame_tick=tick,
            players=players,
            grenade_projectiles=self._projectiles_at(tick),
            infernos=self._infernos_at(tick),
            bomb=self._bomb_at(players),
            team_ct=teams.get(Team.CT, TeamInfo()),
            team_t=teams.get(Team.TERRORIST, TeamInfo()),
            convars=self._convars,
            is_warmup_period=is_warmup,
        )

    def close(self) -> None:
        self._rows_by_tick.clear()
        self._grenades_by_tick.clear()
        self._events.clear()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _pick_clock_rate(self, fallback_tick_rate: float | None) -> float:
        """Ticks per second for timestamps: header rate, then the fallback, then 64."""
        if is_valid_rate(self._reported_tick_rate):
            return self._reported_tick_rate
        if is_valid_rate(fallback_tick_rate):
            return float(fallback_tick_rate)
        logger.debug(f"No tick rate in header or fallback, timestamps assume {CS2_TICK_RATE} tick")
        return float(CS2_TICK_RATE)

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        self._load()

    @timed
    def _load(self) -> None:
        logger.info(f"Decoding demo: {self.demo_path}")

        ticks_df = self._parser.parse_ticks(self.PLAYER_PROPS)
        if ticks_df is None or ticks_df.empty:
            logger.warning("Demo contains no tick data")
            return

        all_ticks = sorted(int(t) for t in ticks_df["tick"].unique())
        self._frame_ticks = all_ticks[:: self.sample_rate]
        wanted = set(self._frame_ticks)
        sampled = ticks_df[ticks_df["tick"].isin(wanted)]
        self._rows_by_tick = {int(tick): df for tick, df in sampled.groupby("tick")}

        self._load_grenades(wanted)
        self._load_infernos()
        self._load_blinds()
        self._load_events()
        self._load_convars()

        logger.info(
            f"Decoded {len(all_ticks)} ticks -> {len(self._frame_ticks)} frames, "
            f"{len(self._events)} events"
        )

    def _parse_event_safe(self, event_name: str, player_props: list[str] | None = None) -> pd.DataFrame:
        """Safely parse an event, returning an empty DataFrame on failure."""
        try:
            df = (
                self._parser.parse_event(event_name, player=player_props)
                if player_props
                else self._parser.parse_event(event_name)
            )
            if df is not None and not df.empty:
                logger.debug(f"Parsed {len(df)} {event_name} events")
                return df
        except Exception as e:
            logger.debug(f"Could not parse {event_name}: {e}")
        return pd.DataFrame()

    @staticmethod
    def _find_column(df: pd.DataFrame, options: list[str]) -> str | None:
        """Find first matching column from options."""
        for col in options:
            if col in df.columns:
                return col
        return None

    def _load_events(self) -> None:
        order = {kind: i for i, kind in enumerate(self.EVENT_NAMES.values())}
        events: list[tuple[int, int, EventKind, Any]] = []

        for name, kind in self.EVENT_NAMES.items():
            wants_players = kind in (EventKind.WEAPON_FIRE, EventKind.KILL, EventKind.BOMB_PLANTED)
            df = self._parse_event_safe(name, self.EVENT_PLAYER_PROPS if wants_players else None)
            if df.empty or "tick" not in df.columns:
                continue
            for row in df.to_dict("records"):
                events.append((safe_int(row.get("tick")), order[kind], kind, self._payload(kind, row)))

        events.sort(key=lambda e: (e[0], e[1]))
        self._events = events

    def _payload(self, kind: EventKind, row: dict[str, Any]) -> Any:
        if kind == EventKind.WEAPON_FIRE:
            shooter = None
            if not pd.isna(row.get("user_steamid", math.nan)) or not pd.isna(row.get("user_X", math.nan)):
                shooter = Shooter(
                    name=safe_str(row.get("user_name")),
                    x=safe_float(row.get("user_X")),
                    y=safe_float(row.get("user_Y")),
                    view_direction_x=safe_float(row.get("user_yaw")),
                )
            return WeaponFire(shooter=shooter, weapon=EquipmentType.from_name(safe_str(row.get("weapon"))))

        if kind in self.GRENADE_EVENT_TYPES:
            return GrenadeDetonation(
                grenade_type=self.GRENADE_EVENT_TYPES[kind],
                x=safe_float(row.get("x")),
                y=safe_float(row.get("y")),
            )

        if kind == EventKind.KILL:
            return KillInfo(
                killer=self._kill_actor(row, "attacker"),
                victim=self._kill_actor(row, "user"),
                weapon=EquipmentType.from_name(safe_str(row.get("weapon"))),
            )

        if kind == EventKind.BOMB_PLANTED:
            return (safe_float(row.get("user_X")), safe_float(row.get("user_Y")))

        return None

    @staticmethod
    def _kill_actor(row: dict[str, Any], prefix: str) -> KillActor | None:
        name = safe_str(row.get(f"{prefix}_name"))
        if not name:
            return None
        return KillActor(name=name, team=Team.parse(safe_int(row.get(f"{prefix}_team_num"))))

    def _load_grenades(self, wanted: set[int]) -> None:
        try:
            grenades = self._parser.parse_grenades()
        except Exception as e:
            logger.warning(f"Failed to parse grenades: {e}")
            return
        if grenades is None or grenades.empty:
            return

        x_col = self._find_column(grenades, ["x", "X"])
        y_col = self._find_column(grenades, ["y", "Y"])
        if x_col is None or y_col is None:
            logger.warning(f"Grenade data has no position columns: {list(grenades.columns)}")
            return

        in_flight = grenades[grenades["tick"].isin(wanted)].dropna(subset=[x_col, y_col])
        in_flight = in_flight.rename(columns={x_col: "x", y_col: "y"})
        self._grenades_by_tick = {int(tick): df for tick, df in in_flight.groupby("tick")}

    def _load_infernos(self) -> None:
        started = self._parse_event_safe("inferno_startburn")
        expired = self._parse_event_safe("inferno_expire")
        if started.empty:
            return

        expiry: dict[int, list[int]] = defaultdict(list)
        if not expired.empty and "entityid" in expired.columns:
            for row in expired.to_dict("records"):
                expiry[safe_int(row.get("entityid"))].append(safe_int(row.get("tick")))

        for row in started.to_dict("records"):
            start = safe_int(row.get("tick"))
            ends = [t for t in expiry.get(safe_int(row.get("entityid")), []) if t >= start]
            end = min(ends) if ends else start + int(INFERNO_BURN_SECONDS * self._clock_rate)
            self._inferno_windows.append(
                (start, end, safe_float(row.get("x")), safe_float(row.get("y")))
            )

    def _load_blinds(self) -> None:
        blinds = self._parse_event_safe("player_blind")
        if blinds.empty:
            return
        self._blind_events = sorted(
            (
                (safe_int(row.get("tick")), safe_int(row.get("user_steamid")), safe_float(row.get("blind_duration")))
                for row in blinds.to_dict("records")
            ),
            key=lambda b: b[0],
        )

    def _load_convars(self) -> None:
        try:
            convars = self._parser.parse_convars() or {}
        except Exception as e:
            logger.warning(f"Failed to parse convars, round timer will read as expired: {e}")
            convars = {}
        self._convars = {str(k): str(v) for k, v in dict(convars).items()}

    # ------------------------------------------------------------------
    # Per-frame resolution
    # ------------------------------------------------------------------

    def _dispatch_until(self, tick: int) -> None:
        time = tick / self._clock_rate
        while self._next_event < len(self._events) and self._events[self._next_event][0] <= tick:
            _, _, kind, payload = self._events[self._next_event]
            self._next_event += 1

            if kind == EventKind.BOMB_PLANTED:
                self._planted_at = payload
                payload = None
            elif kind == EventKind.ROUND_START:
                self._planted_at = None

            event = GameEvent(kind=kind, frame=self._frame, time=time, payload=payload)
            for handler in self._handlers:
                handler(event)

        while self._next_blind < len(self._blind_events) and self._blind_events[self._next_blind][0] <= tick:
            blind_tick, steam_id, duration = self._blind_events[self._next_blind]
            self._blinds[steam_id] = (blind_tick, duration)
            self._next_blind += 1

    def _player_from_row(self, row: dict[str, Any], tick: int) -> PlayerState:
        steam_id = safe_int(row.get("steamid"))
        x, y = safe_float(row.get("X")), safe_float(row.get("Y"))
        is_alive = safe_bool(row.get("is_alive"))
        last_x, last_y = (x, y) if is_alive else self._last_alive.get(steam_id, (x, y))

        flash_duration, flash_remaining = 0.0, 0.0
        if steam_id in self._blinds:
            blind_tick, flash_duration = self._blinds[steam_id]
            flash_remaining = max(0.0, flash_duration - (tick - blind_tick) / self._clock_rate)

        return PlayerState(
            name=safe_str(row.get("name")),
            steam_id=steam_id,
            team=Team.parse(safe_int(row.get("team_num"))),
            x=x,
            y=y,
            last_alive_x=last_x,
            last_alive_y=last_y,
            view_direction_x=safe_float(row.get("yaw")),
            health=safe_int(row.get("health")),
            armor=safe_int(row.get("armor_value")),
            money=safe_int(row.get("balance")),
            kills=safe_int(row.get("kills_total")),
            deaths=safe_int(row.get("deaths_total")),
            assists=safe_int(row.get("assists_total")),
            is_alive=is_alive,
            is_defusing=safe_bool(row.get("is_defusing")),
            has_helmet=safe_bool(row.get("has_helmet")),
            has_defuse_kit=safe_bool(row.get("has_defuser")),
            flash_duration=flash_duration,
            flash_time_remaining=flash_remaining,
            weapons=self._held_items(row.get("inventory")),
        )

    @staticmethod
    def _held_items(inventory: Any) -> list[HeldItem]:
        """One item per weapon type; extra copies of a grenade count as reserve ammo."""
        if inventory is None or isinstance(inventory, (float, str)):
            return []
        counts = Counter(EquipmentType.from_name(str(name)) for name in inventory)
        return [HeldItem(type=t, ammo_reserve=n - 1) for t, n in counts.items()]

    @staticmethod
    def _teams_from_rows(rows: pd.DataFrame) -> dict[Team, TeamInfo]:
        teams: dict[Team, TeamInfo] = {}
        for row in rows.to_dict("records"):
            team = Team.parse(safe_int(row.get("team_num")))
            if team in (Team.CT, Team.TERRORIST) and team not in teams:
                teams[team] = TeamInfo(
                    clan_name=safe_str(row.get("team_clan_name")),
                    score=safe_int(row.get("team_rounds_total")),
                )
        return teams

    def _projectiles_at(self, tick: int) -> list[ProjectileState]:
        df = self._grenades_by_tick.get(tick)
        if df is None:
            return []
        return [
            ProjectileState(
                type=EquipmentType.from_name(safe_str(row.get("grenade_type"))),
                x=safe_float(row.get("x")),
                y=safe_float(row.get("y")),
            )
            for row in df.to_dict("records")
        ]

    def _infernos_at(self, tick: int) -> list[InfernoState]:
        """
        Burning infernos at ``tick``, one fire each.

        demoparser2 reports only the ignition point of an inferno, not its
        spreading fire positions, so each inferno is a single-point marker and
        its outline is that point.
        """
        return [
            InfernoState(fires=[(x, y)])
            for start, end, x, y in self._inferno_windows
            if start <= tick < end
        ]

    def _bomb_at(self, players: list[PlayerState]) -> BombState:
        if self._planted_at is not None:
            return BombState(*self._planted_at)

        for player in players:
            if any(item.type == EquipmentType.BOMB for item in player.weapons):
                self._bomb_last = (player.x, player.y)
                return BombState(player.x, player.y, carrier_steam_id=player.steam_id)

        return BombState(*self._bomb_last)
