"""Tests for phase tracking and round countdown derivation."""

import pytest

from csoverview.core.constants import Phase
from csoverview.source import EventKind
from csoverview.timeline.phase import PHASE_TRANSITIONS, PhaseTracker
from csoverview.timeline.timer import PhaseDurations, derive_timer


@pytest.fixture
def durations():
    return PhaseDurations(freezetime=15, round_time=115, bomb_timer=40, restart_delay=7, halftime=15)


class TestPhaseTracker:
    """Tests for the round phase state machine."""

    def test_starts_in_warmup(self):
        """A fresh tracker is in warmup at time zero."""
        tracker = PhaseTracker()
        assert tracker.phase == Phase.WARMUP
        assert tracker.last_transition.timestamp == 0.0

    @pytest.mark.parametrize(
        "kind,phase",
        [
            (EventKind.ROUND_START, Phase.FREEZETIME),
            (EventKind.FREEZETIME_END, Phase.REGULAR),
            (EventKind.BOMB_PLANTED, Phase.PLANTED),
            (EventKind.ROUND_END, Phase.RESTART),
            (EventKind.HALF_ENDED, Phase.HALFTIME),
        ],
    )
    def test_round_events_transition(self, kind, phase):
        """Each round event moves to its phase and stamps the time."""
        tracker = PhaseTracker()
        assert tracker.handle(kind, 12.5) is True
        assert tracker.phase == phase
        assert tracker.last_transition.timestamp == 12.5

    def test_other_events_ignored(self):
        """Effect events do not change the phase."""
        tracker = PhaseTracker()
        tracker.handle(EventKind.ROUND_START, 1.0)

        for kind in (EventKind.WEAPON_FIRE, EventKind.KILL, EventKind.MATCH_START):
            assert tracker.handle(kind, 5.0) is False

        assert tracker.phase == Phase.FREEZETIME
        assert tracker.last_transition.timestamp == 1.0

    def test_full_round_sequence(self):
        """A round walks freezetime, regular, planted, restart."""
        tracker = PhaseTracker()
        seen = []
        for kind, t in [
            (EventKind.ROUND_START, 0.0),
            (EventKind.FREEZETIME_END, 15.0),
            (EventKind.BOMB_PLANTED, 60.0),
            (EventKind.ROUND_END, 100.0),
        ]:
            tracker.handle(kind, t)
            seen.append(tracker.phase)

        assert seen == [Phase.FREEZETIME, Phase.REGULAR, Phase.PLANTED, Phase.RESTART]

    def test_warmup_never_a_transition_target(self):
        """No event leads into warmup."""
        assert Phase.WARMUP not in PHASE_TRANSITIONS.values()


class TestPhaseDurations:
    """Tests for reading phase lengths from server convars."""

    def test_from_convars(self):
        """Round time is converted from minutes."""
        d = PhaseDurations.from_convars(
            {
                "mp_freezetime": "15",
                "mp_roundtime_defuse": "1.92",
                "mp_c4timer": "35",
                "mp_round_restart_delay": "5",
                "mp_halftime_duration": "20",
            }
        )
        assert d.freezetime == 15
        assert d.round_time == pytest.approx(115.2)
        assert d.bomb_timer == 35
        assert d.restart_delay == 5
        assert d.halftime == 20

    def test_missing_convars_read_as_zero(self):
        """Missing values count as zero except the bomb timer."""
        d = PhaseDurations.from_convars({})
        assert d.freezetime == 0
        assert d.round_time == 0
        assert d.restart_delay == 0
        assert d.halftime == 0
        assert d.bomb_timer == 40

    def test_unparseable_convars_read_as_zero(self):
        """Garbage values do not raise."""
        d = PhaseDurations.from_convars({"mp_freezetime": "abc", "mp_roundtime_defuse": ""})
        assert d.freezetime == 0
        assert d.round_time == 0

    def test_c4_timer_fallback(self):
        """A missing or empty mp_c4timer uses the configured fallback."""
        assert PhaseDurations.from_convars({}, c4_timer_fallback=45).bomb_timer == 45
        assert PhaseDurations.from_convars({"mp_c4timer": ""}, c4_timer_fallback=45).bomb_timer == 45
        assert PhaseDurations.from_convars({"mp_c4timer": "x"}, c4_timer_fallback=45).bomb_timer == 45

    def test_for_phase(self, durations):
        """Each timed phase maps to its duration; warmup has none."""
        assert durations.for_phase(Phase.FREEZETIME) == 15
        assert durations.for_phase(Phase.REGULAR) == 115
        assert durations.for_phase(Phase.PLANTED) == 40
        assert durations.for_phase(Phase.RESTART) == 7
        assert durations.for_phase(Phase.HALFTIME) == 15
        assert durations.for_phase(Phase.WARMUP) == 0


class TestDeriveTimer:
    """Tests for countdown derivation."""

    @pytest.mark.parametrize("phase", list(Phase))
    def test_warmup_flag_overrides_phase(self, phase, durations):
        """During warmup the timer is always zero and tagged warmup."""
        timer = derive_timer(phase, 3.0, 50.0, durations, is_warmup=True)
        assert timer.time_remaining == 0
        assert timer.phase == Phase.WARMUP

    def test_initial_warmup_phase(self, durations):
        """Before any round event the timer reads as warmup."""
        timer = derive_timer(Phase.WARMUP, 0.0, 30.0, durations)
        assert timer.time_remaining == 0
        assert timer.phase == Phase.WARMUP

    def test_remaining_formula(self, durations):
        """remaining = duration - (now - last_transition)."""
        timer = derive_timer(Phase.REGULAR, 20.0, 30.0, durations)
        assert timer.time_remaining == pytest.approx(105.0)
        assert timer.phase == Phase.REGULAR

    def test_strictly_decreasing_within_phase(self, durations):
        """Later frames in the same phase show less time."""
        values = [derive_timer(Phase.PLANTED, 10.0, 10.0 + t / 4, durations).time_remaining for t in range(20)]
        assert all(a > b for a, b in zip(values, values[1:]))

    def test_negative_remaining_not_clamped(self, durations):
        """A late round event leaves the countdown below zero."""
        timer = derive_timer(Phase.FREEZETIME, 0.0, 20.0, durations)
        assert timer.time_remaining == pytest.approx(-5.0)

    def test_halftime_shown_as_restart(self, durations):
        """Halftime counts down the halftime duration under the restart tag."""
        timer = derive_timer(Phase.HALFTIME, 100.0, 105.0, durations)
        assert timer.phase == Phase.RESTART
        assert timer.time_remaining == pytest.approx(10.0)
