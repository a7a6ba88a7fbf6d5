"""Tests for per-frame snapshot assembly."""

import pytest

from csoverview.core.constants import EquipmentType, Phase, Team
from csoverview.source import BombState, EventKind, HeldItem, InfernoState, ProjectileState
from csoverview.timeline.effects import EffectLifetimeIndex
from csoverview.timeline.models import Point, Shot
from csoverview.timeline.phase import PhaseTracker
from csoverview.timeline.snapshot import SnapshotBuilder, build_inventory, convex_hull_2d


@pytest.fixture
def tracker():
    return PhaseTracker()


@pytest.fixture
def effects():
    return EffectLifetimeIndex(window=100)


@pytest.fixture
def builder(tracker, effects):
    return SnapshotBuilder(tracker, effects)


class TestBuildInventory:
    """Tests for inventory classification."""

    def test_only_listed_classes_kept(self):
        """Knife, kevlar and kit are not listed; guns and grenades are."""
        inventory, has_bomb = build_inventory(
            [
                HeldItem(EquipmentType.KNIFE),
                HeldItem(EquipmentType.AK47),
                HeldItem(EquipmentType.GLOCK),
                HeldItem(EquipmentType.KEVLAR),
                HeldItem(EquipmentType.SMOKE),
                HeldItem(EquipmentType.DEFUSE_KIT),
            ]
        )
        assert inventory == (EquipmentType.GLOCK, EquipmentType.AK47, EquipmentType.SMOKE)
        assert has_bomb is False

    def test_sorted_by_type_value(self):
        """Inventory is ordered pistols, SMGs, heavy, rifles, grenades."""
        inventory, _ = build_inventory(
            [HeldItem(EquipmentType.HE), HeldItem(EquipmentType.MP9), HeldItem(EquipmentType.USP)]
        )
        assert inventory == (EquipmentType.USP, EquipmentType.MP9, EquipmentType.HE)

    def test_bomb_detected_but_not_listed(self):
        """The bomb sets has_bomb without appearing in the inventory."""
        inventory, has_bomb = build_inventory([HeldItem(EquipmentType.BOMB), HeldItem(EquipmentType.GLOCK)])
        assert has_bomb is True
        assert EquipmentType.BOMB not in inventory

    def test_flash_with_reserve_listed_twice(self):
        """A flashbang with reserve ammo shows two flashes."""
        inventory, _ = build_inventory([HeldItem(EquipmentType.FLASH, ammo_reserve=1)])
        assert inventory == (EquipmentType.FLASH, EquipmentType.FLASH)

    def test_flash_without_reserve_listed_once(self):
        inventory, _ = build_inventory([HeldItem(EquipmentType.FLASH)])
        assert inventory == (EquipmentType.FLASH,)

    def test_empty(self):
        assert build_inventory([]) == ((), False)


class TestConvexHull:
    """Tests for inferno outlines."""

    def test_square_with_interior_point(self):
        """Interior points are dropped, corners returned counter-clockwise."""
        hull = convex_hull_2d([(0, 0), (1, 0), (1, 1), (0, 1), (0.5, 0.5)])
        assert hull == (Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1))

    def test_duplicates_ignored(self):
        hull = convex_hull_2d([(0, 0), (2, 0), (0, 2), (2, 0), (0, 0)])
        assert len(hull) == 3

    def test_collinear_points_drop_middle(self):
        hull = convex_hull_2d([(0, 0), (1, 0), (2, 0), (1, 1)])
        assert Point(1, 0) not in hull
        assert len(hull) == 3

    def test_degenerate_inputs(self):
        """Fewer than three distinct points come back unchanged."""
        assert convex_hull_2d([]) == ()
        assert convex_hull_2d([(3, 4)]) == (Point(3, 4),)
        assert convex_hull_2d([(3, 4), (3, 4)]) == (Point(3, 4),)


class TestSnapshotBuilder:
    """Tests for full snapshot assembly."""

    def test_spectators_filtered_out(self, builder, world_factory, player_factory):
        """Only terrorists and counter-terrorists are listed."""
        world = world_factory(
            players=[
                player_factory("ct", 1, Team.CT),
                player_factory("t", 2, Team.TERRORIST),
                player_factory("spec", 3, Team.SPECTATOR),
                player_factory("nobody", 4, Team.UNASSIGNED),
            ]
        )
        state = builder.build(0, 0.0, world)
        assert [p.name for p in state.players] == ["ct", "t"]

    def test_player_fields_copied(self, builder, world_factory, player_factory):
        """Player status and inventory are resolved."""
        world = world_factory(
            players=[
                player_factory(
                    "carrier",
                    7,
                    Team.TERRORIST,
                    x=100.0,
                    y=-50.0,
                    weapons=[HeldItem(EquipmentType.BOMB), HeldItem(EquipmentType.AK47)],
                    money=3200,
                    has_helmet=True,
                    flash_duration=2.5,
                    flash_time_remaining=1.0,
                    last_alive_x=90.0,
                    last_alive_y=-40.0,
                )
            ]
        )
        player = builder.build(0, 0.0, world).players[0]
        assert player.position == Point(100.0, -50.0)
        assert player.last_alive_position == Point(90.0, -40.0)
        assert player.has_bomb is True
        assert player.inventory == (EquipmentType.AK47,)
        assert player.money == 3200
        assert player.has_helmet is True
        assert player.flash_time_remaining == 1.0

    def test_world_objects_resolved(self, builder, world_factory):
        """Projectiles, infernos, bomb and teams are carried over."""
        world = world_factory(
            tick=4242,
            grenade_projectiles=[ProjectileState(EquipmentType.MOLOTOV, 5.0, 6.0)],
            infernos=[InfernoState([(0, 0), (10, 0), (0, 10)])],
            bomb=BombState(1.0, 2.0, carrier_steam_id=7),
        )
        state = builder.build(3, 1.0, world)
        assert state.ingame_tick == 4242
        assert state.grenades[0].type == EquipmentType.MOLOTOV
        assert state.grenades[0].position == Point(5.0, 6.0)
        assert len(state.infernos[0].convex_hull_2d) == 3
        assert state.bomb.position == Point(1.0, 2.0)
        assert state.bomb.is_being_carried is True
        assert state.team_counter_terrorists.clan_name == "CT Team"
        assert state.team_terrorists.clan_name == "T Team"

    def test_dropped_bomb_not_carried(self, builder, world_factory):
        state = builder.build(0, 0.0, world_factory(bomb=BombState(1.0, 2.0)))
        assert state.bomb.is_being_carried is False

    def test_timer_from_tracker_and_convars(self, builder, tracker, world_factory):
        """The countdown uses the latest transition and the frame's convars."""
        tracker.handle(EventKind.ROUND_START, 10.0)
        state = builder.build(0, 12.0, world_factory(convars={"mp_freezetime": "5"}))
        assert state.timer.phase == Phase.FREEZETIME
        assert state.timer.time_remaining == pytest.approx(3.0)

    def test_warmup_world_state(self, builder, tracker, world_factory):
        tracker.handle(EventKind.FREEZETIME_END, 10.0)
        state = builder.build(0, 12.0, world_factory(is_warmup_period=True))
        assert state.timer.phase == Phase.WARMUP
        assert state.timer.time_remaining == 0

    def test_c4_timer_fallback_used(self, tracker, effects, world_factory):
        """Without mp_c4timer the builder's fallback sets the planted countdown."""
        tracker.handle(EventKind.BOMB_PLANTED, 0.0)
        builder = SnapshotBuilder(tracker, effects, c4_timer_fallback=45)
        state = builder.build(0, 5.0, world_factory(convars={}))
        assert state.timer.time_remaining == pytest.approx(40.0)

    def test_effects_merged_for_frame(self, builder, effects, world_factory):
        """Effects registered for the frame appear in the snapshot."""
        shot = Shot(Point(0.0, 0.0), 180.0, False)
        effects.register(shot, 5, 2)

        assert builder.build(5, 0.5, world_factory()).shots == (shot,)
        assert builder.build(7, 0.7, world_factory()).shots == ()
